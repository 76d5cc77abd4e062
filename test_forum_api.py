"""
API tests for forum categories, threads and comments.
"""

from app.extensions import db
from app.models import Role, ForumThread


def _category(client, name='Hive Management', **extra):
    payload = {'name': name, 'description': 'Everything about keeping hives healthy'}
    payload.update(extra)
    return client.post('/api/forum/categories', json=payload)


def _thread(client, category_id, title='Swarm prevention tips', **extra):
    payload = {'category_id': category_id, 'title': title, 'content': 'What works for you in early May?'}
    payload.update(extra)
    return client.post('/api/forum/threads', json=payload)


def _comment(client, thread_id, content='Split the colony early.', parent_comment_id=None):
    payload = {'thread_id': thread_id, 'content': content}
    if parent_comment_id is not None:
        payload['parent_comment_id'] = parent_comment_id
    return client.post('/api/forum/comments', json=payload)


# ==================== Access ====================

def test_forum_disabled_by_default(client, login, author):
    response = login(author).get('/api/forum/categories')
    assert response.status_code == 403
    assert response.get_json()['error']['message'] == 'Forum feature is currently disabled'


def test_forum_requires_login(client, forum_enabled):
    assert client.get('/api/forum/categories').status_code == 401
    assert client.get('/api/forum/threads').status_code == 401


def test_plain_users_can_read_but_not_post(login, author, reader, forum_enabled):
    category = _category(login(author)).get_json()['data']
    reader_client = login(reader)

    assert reader_client.get('/api/forum/categories').status_code == 200

    response = _category(reader_client, name='Reader Corner')
    assert response.status_code == 403
    assert response.get_json()['error']['message'] == 'Only authors and admins can create forum categories'

    assert _thread(reader_client, category['id']).status_code == 403


# ==================== Categories ====================

def test_create_category_and_list_counts(login, author, forum_enabled):
    client = login(author)
    response = _category(client)
    assert response.status_code == 201
    category = response.get_json()['data']
    assert category['slug'] == 'hive-management'
    assert category['thread_count'] == 0

    _thread(client, category['id'])

    listing = client.get('/api/forum/categories').get_json()['data']
    assert [(item['slug'], item['thread_count']) for item in listing] == [('hive-management', 1)]

    detail = client.get('/api/forum/categories/hive-management').get_json()['data']
    assert [thread['slug'] for thread in detail['threads']] == ['swarm-prevention-tips']


def test_forum_slugs_keep_only_ascii_letters_and_digits(login, author, forum_enabled):
    client = login(author)

    category = _category(client, name='Bees & Honey').get_json()['data']
    assert category['name'] == 'Bees & Honey'
    assert category['slug'] == 'bees-honey'

    thread = _thread(client, category['id'], title='Crème de la Ruche').get_json()['data']
    assert thread['slug'] == 'cr-me-de-la-ruche'

    thread = _thread(client, category['id'], title='1,000 bees in a nuc?').get_json()['data']
    assert thread['slug'] == '1-000-bees-in-a-nuc'


def test_duplicate_category_slug_is_conflict(login, author, forum_enabled):
    client = login(author)
    assert _category(client).status_code == 201

    response = _category(client)
    assert response.status_code == 409

    # The session was rolled back, so the forum is still usable
    assert _category(client, name='Queen Breeding').status_code == 201


def test_category_with_threads_cannot_be_deleted(login, author, forum_enabled):
    client = login(author)
    category = _category(client).get_json()['data']
    thread = _thread(client, category['id']).get_json()['data']

    response = client.delete(f"/api/forum/categories/{category['id']}")
    assert response.status_code == 400

    assert client.delete(f"/api/forum/threads/{thread['id']}").status_code == 200
    assert client.delete(f"/api/forum/categories/{category['id']}").status_code == 200


def test_only_owner_or_admin_edits_category(make_user, login, admin, author, forum_enabled):
    category = _category(login(author)).get_json()['data']
    other_author = login(make_user(Role.AUTHOR))

    response = other_author.put(f"/api/forum/categories/{category['id']}", json={'name': 'Taken Over'})
    assert response.status_code == 403

    response = login(admin).put(f"/api/forum/categories/{category['id']}", json={'name': 'Colony Care'})
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['name'] == 'Colony Care'
    # Renaming keeps the slug
    assert data['slug'] == 'hive-management'


# ==================== Threads ====================

def test_thread_validation(login, author, forum_enabled):
    client = login(author)
    category = _category(client).get_json()['data']

    response = client.post('/api/forum/threads', json={'category_id': category['id'], 'title': 'Hi', 'content': 'short'})
    assert response.status_code == 400
    details = response.get_json()['error']['details']
    assert 'title' in details and 'content' in details

    assert _thread(client, 9999).status_code == 404


def test_thread_read_counts_views(app, login, author, reader, forum_enabled):
    author_client = login(author)
    category = _category(author_client).get_json()['data']
    thread = _thread(author_client, category['id']).get_json()['data']

    reader_client = login(reader)
    for _ in range(2):
        assert reader_client.get(f"/api/forum/threads/{thread['slug']}").status_code == 200

    with app.app_context():
        assert db.session.get(ForumThread, thread['id']).view_count == 2


def test_pinned_threads_listed_first(login, admin, author, forum_enabled):
    author_client = login(author)
    category = _category(author_client).get_json()['data']
    older = _thread(author_client, category['id'], title='Older thread here').get_json()['data']
    newer = _thread(author_client, category['id'], title='Newer thread here').get_json()['data']
    _comment(author_client, newer['id'])

    listing = author_client.get('/api/forum/threads').get_json()['data']
    assert [item['id'] for item in listing] == [newer['id'], older['id']]

    pinned = login(admin).put(f"/api/admin/forum/threads/{older['id']}/pin", json={'pin': True})
    assert pinned.get_json()['data']['is_pinned'] is True

    listing = author_client.get('/api/forum/threads').get_json()['data']
    assert [item['id'] for item in listing] == [older['id'], newer['id']]
    assert listing[1]['comment_count'] == 1

    recent = author_client.get('/api/forum/threads?sort=recent').get_json()['data']
    assert [item['id'] for item in recent] == [newer['id'], older['id']]


def test_locked_thread_rejects_comments_and_owner_edits(login, admin, author, forum_enabled):
    author_client = login(author)
    category = _category(author_client).get_json()['data']
    thread = _thread(author_client, category['id']).get_json()['data']

    login(admin).put(f"/api/admin/forum/threads/{thread['id']}/lock", json={'lock': True})

    response = _comment(author_client, thread['id'])
    assert response.status_code == 403
    assert response.get_json()['error']['message'] == \
        'This thread is locked or blocked and cannot receive new comments'

    assert author_client.put(f"/api/forum/threads/{thread['id']}", json={'title': 'Edited title'}).status_code == 403
    # Owners may still delete a locked thread
    assert author_client.delete(f"/api/forum/threads/{thread['id']}").status_code == 200


def test_blocked_category_refuses_new_threads(login, admin, author, forum_enabled):
    author_client = login(author)
    category = _category(author_client).get_json()['data']

    response = login(admin).put(f"/api/admin/forum/categories/{category['id']}/block",
                                json={'block': True, 'reason': 'Category under review'})
    assert response.status_code == 200

    assert _thread(author_client, category['id']).status_code == 403


def test_blocked_thread_hidden_from_other_users(make_user, login, admin, author, forum_enabled):
    author_client = login(author)
    category = _category(author_client).get_json()['data']
    thread = _thread(author_client, category['id']).get_json()['data']

    login(admin).put(f"/api/admin/forum/threads/{thread['id']}/block",
                     json={'block': True, 'reason': 'Spam links in the post'})

    other = login(make_user(Role.AUTHOR))
    assert other.get(f"/api/forum/threads/{thread['slug']}").status_code == 404
    assert other.get('/api/forum/threads').get_json()['data'] == []
    assert author_client.get(f"/api/forum/threads/{thread['slug']}").status_code == 200


# ==================== Comments ====================

def test_comment_replies_and_parent_checks(login, author, forum_enabled):
    client = login(author)
    category = _category(client).get_json()['data']
    first = _thread(client, category['id'], title='First thread title').get_json()['data']
    second = _thread(client, category['id'], title='Second thread title').get_json()['data']

    parent = _comment(client, first['id']).get_json()['data']
    reply = _comment(client, first['id'], 'Agreed', parent_comment_id=parent['id'])
    assert reply.status_code == 201
    assert reply.get_json()['data']['parent_comment_id'] == parent['id']

    response = _comment(client, second['id'], 'Wrong thread', parent_comment_id=parent['id'])
    assert response.status_code == 400

    comments = client.get(f"/api/forum/threads/{first['id']}/comments").get_json()['data']
    assert [item['id'] for item in comments] == [parent['id'], reply.get_json()['data']['id']]


def test_comment_edit_and_delete_permissions(make_user, login, admin, author, forum_enabled):
    author_client = login(author)
    category = _category(author_client).get_json()['data']
    thread = _thread(author_client, category['id']).get_json()['data']
    comment = _comment(author_client, thread['id']).get_json()['data']

    other = login(make_user(Role.AUTHOR))
    assert other.put(f"/api/forum/comments/{comment['id']}", json={'content': 'Hijack'}).status_code == 403

    response = author_client.put(f"/api/forum/comments/{comment['id']}", json={'content': 'Revised advice'})
    assert response.get_json()['data']['content'] == 'Revised advice'

    assert login(admin).delete(f"/api/forum/comments/{comment['id']}").status_code == 200


def test_banned_user_cannot_post(login, admin, author, forum_enabled):
    author_client = login(author)
    category = _category(author_client).get_json()['data']
    thread = _thread(author_client, category['id']).get_json()['data']

    response = login(admin).post(f'/api/admin/forum/users/{author.id}/ban',
                                 json={'ban': True, 'reason': 'Repeated off-topic posts', 'duration_days': 7})
    assert response.status_code == 200
    assert response.get_json()['data']['is_permanent'] is False

    response = _comment(author_client, thread['id'])
    assert response.status_code == 403
    assert response.get_json()['error']['message'] == 'You are banned from participating in the forum'
    assert _thread(author_client, category['id'], title='Another thread').status_code == 403

    # Reading is still allowed
    assert author_client.get('/api/forum/threads').status_code == 200
