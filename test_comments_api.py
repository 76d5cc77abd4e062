"""
API tests for article comments: moderation status, reply trees, deletes and reports.
"""

from datetime import datetime

import pytest

from app.extensions import db
from app.models import Article, ArticleStatus, Comment, CommentStatus, DELETED_COMMENT_PLACEHOLDER


@pytest.fixture
def article_id(app, author):
    with app.app_context():
        article = Article(title='Varroa Treatments', slug='varroa-treatments', content='Oxalic acid in winter.',
                          status=ArticleStatus.PUBLISHED, user_id=author.id, published_at=datetime.utcnow())
        db.session.add(article)
        db.session.commit()
        return article.id


def _post(client, article_id, content='Very helpful, thanks!', parent_id=None):
    payload = {'article_id': article_id, 'content': content}
    if parent_id is not None:
        payload['parent_id'] = parent_id
    return client.post('/api/comments', json=payload)


def _approve(admin_client, comment_id):
    response = admin_client.put(f'/api/admin/comments/{comment_id}/status', json={'status': 'approved'})
    assert response.status_code == 200


def test_reader_comment_waits_for_approval(client, login, admin, reader, article_id):
    response = _post(login(reader), article_id)
    assert response.status_code == 201
    data = response.get_json()
    assert data['data']['status'] == 'pending'
    assert data['message'] == 'Comment submitted and awaiting moderation'

    assert client.get(f'/api/articles/{article_id}/comments').get_json()['data'] == []

    _approve(login(admin), data['data']['id'])
    tree = client.get(f'/api/articles/{article_id}/comments').get_json()['data']
    assert [node['id'] for node in tree] == [data['data']['id']]


def test_admin_comment_is_approved_immediately(login, admin, article_id):
    response = _post(login(admin), article_id)
    assert response.get_json()['data']['status'] == 'approved'


def test_comment_content_is_stripped_of_html(login, reader, article_id):
    response = _post(login(reader), article_id, content='<b>Bold</b> claim <script>x()</script>')
    content = response.get_json()['data']['content']
    assert '<' not in content
    assert content.startswith('Bold claim')


def test_comment_content_is_plain_text(login, reader, article_id):
    response = _post(login(reader), article_id, content='Wax & propolis <i>both</i> sell well')
    assert response.get_json()['data']['content'] == 'Wax & propolis both sell well'


def test_anonymous_cannot_comment(client, article_id):
    assert _post(client, article_id).status_code == 401


def test_reply_tree(client, login, admin, reader, article_id):
    admin_client = login(admin)
    top = _post(admin_client, article_id, 'Top level').get_json()['data']
    reply = _post(login(reader), article_id, 'A reply', parent_id=top['id']).get_json()['data']
    _approve(admin_client, reply['id'])
    nested = _post(admin_client, article_id, 'A nested reply', parent_id=reply['id']).get_json()['data']

    tree = client.get(f'/api/articles/{article_id}/comments').get_json()['data']
    assert len(tree) == 1
    assert tree[0]['replies'][0]['id'] == reply['id']
    assert tree[0]['replies'][0]['replies'][0]['id'] == nested['id']


def test_parent_must_belong_to_same_article(app, login, admin, author, article_id):
    with app.app_context():
        other = Article(title='Other', slug='other', content='Body', status=ArticleStatus.PUBLISHED,
                        user_id=author.id, published_at=datetime.utcnow())
        db.session.add(other)
        db.session.commit()
        other_id = other.id

    admin_client = login(admin)
    foreign = _post(admin_client, other_id, 'Elsewhere').get_json()['data']

    response = _post(admin_client, article_id, 'Wrong parent', parent_id=foreign['id'])
    assert response.status_code == 400
    assert response.get_json()['error']['message'] == 'Invalid parent comment'

    assert _post(admin_client, article_id, 'Missing parent', parent_id=9999).status_code == 400


def test_comments_on_missing_or_blocked_article(login, admin, reader, article_id):
    reader_client = login(reader)
    assert _post(reader_client, 9999).status_code == 404

    login(admin).put(f'/api/admin/articles/{article_id}/block', json={'reason': 'Under review'})
    assert _post(reader_client, article_id).status_code == 403


def test_user_edit_sends_comment_back_to_moderation(app, login, admin, reader, article_id):
    reader_client = login(reader)
    comment = _post(reader_client, article_id).get_json()['data']
    _approve(login(admin), comment['id'])

    response = reader_client.put(f"/api/comments/{comment['id']}", json={'content': 'Edited text'})
    assert response.status_code == 200
    assert response.get_json()['data']['status'] == 'pending'

    with app.app_context():
        assert db.session.get(Comment, comment['id']).content == 'Edited text'


def test_only_owner_or_admin_may_edit_or_delete(make_user, login, admin, reader, article_id):
    comment = _post(login(reader), article_id).get_json()['data']
    stranger = login(make_user())

    assert stranger.put(f"/api/comments/{comment['id']}", json={'content': 'Nope'}).status_code == 403
    assert stranger.delete(f"/api/comments/{comment['id']}").status_code == 403

    response = login(admin).put(f"/api/comments/{comment['id']}", json={'content': 'Moderated'})
    assert response.status_code == 200
    # Admin edits do not reset moderation
    assert response.get_json()['data']['status'] == 'pending'


def test_delete_leaf_and_tombstone_parent(app, login, admin, article_id):
    admin_client = login(admin)
    parent = _post(admin_client, article_id, 'Parent').get_json()['data']
    child = _post(admin_client, article_id, 'Child', parent_id=parent['id']).get_json()['data']

    response = admin_client.delete(f"/api/comments/{parent['id']}")
    assert response.get_json()['data'] == {'outcome': 'tombstoned'}

    response = admin_client.delete(f"/api/comments/{child['id']}")
    assert response.get_json()['data'] == {'outcome': 'deleted'}

    with app.app_context():
        tombstone = db.session.get(Comment, parent['id'])
        assert tombstone.content == DELETED_COMMENT_PLACEHOLDER
        assert tombstone.to_dict()['is_deleted'] is True
        assert db.session.get(Comment, child['id']) is None


def test_report_and_clear(app, login, admin, reader, article_id):
    comment = _post(login(admin), article_id, 'Controversial opinion').get_json()['data']
    reader_client = login(reader)

    assert reader_client.post(f"/api/comments/{comment['id']}/report", json={}).status_code == 400
    response = reader_client.post(f"/api/comments/{comment['id']}/report", json={'reason': 'Off topic'})
    assert response.status_code == 200

    admin_client = login(admin)
    reported = admin_client.get('/api/admin/comments?reported=true').get_json()['data']
    assert [item['id'] for item in reported] == [comment['id']]
    assert reported[0]['report_reason'] == 'Off topic'
    assert reported[0]['reported_by'] == reader.id

    assert admin_client.put(f"/api/admin/comments/{comment['id']}/clear-report").status_code == 200
    assert admin_client.get('/api/admin/comments?reported=true').get_json()['data'] == []


def test_admin_status_validation(login, admin, reader, article_id):
    comment = _post(login(reader), article_id).get_json()['data']
    admin_client = login(admin)

    response = admin_client.put(f"/api/admin/comments/{comment['id']}/status", json={'status': 'spam'})
    assert response.status_code == 400

    pending = admin_client.get('/api/admin/comments?status=pending').get_json()
    assert pending['pagination']['total_items'] == 1

    assert login(reader).get('/api/admin/comments').status_code == 403


def test_comments_feature_toggle(client, login, reader, set_feature, article_id):
    set_feature('comments', False)

    response = client.get(f'/api/articles/{article_id}/comments')
    assert response.status_code == 403
    assert response.get_json()['error']['message'] == 'Comments feature is currently disabled'
    assert _post(login(reader), article_id).status_code == 403

    set_feature('comments', True)
    assert client.get(f'/api/articles/{article_id}/comments').status_code == 200


def test_rejected_comments_stay_hidden(app, client, login, admin, reader, article_id):
    comment = _post(login(reader), article_id).get_json()['data']
    login(admin).put(f"/api/admin/comments/{comment['id']}/status", json={'status': 'rejected'})

    assert client.get(f'/api/articles/{article_id}/comments').get_json()['data'] == []
    with app.app_context():
        assert db.session.get(Comment, comment['id']).status == CommentStatus.REJECTED
