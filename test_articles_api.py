"""
API tests for articles, tags, likes and article moderation.
"""

from app.extensions import db
from app.models import Article


def _create(client, **overrides):
    payload = {
        'title': 'Spring Inspection Checklist',
        'content': '<p>Check the <strong>brood</strong> pattern.</p><script>alert(1)</script>',
        'status': 'published',
        'tags': ['Hive Care', 'spring'],
    }
    payload.update(overrides)
    return client.post('/api/articles', json=payload)


# ==================== Authoring ====================

def test_author_creates_published_article(login, author):
    response = _create(login(author))
    assert response.status_code == 201

    data = response.get_json()['data']
    assert data['slug'] == 'spring-inspection-checklist'
    assert data['status'] == 'published'
    assert data['published_at'] is not None
    assert '<script>' not in data['content']
    assert '<strong>brood</strong>' in data['content']
    assert data['excerpt'].startswith('Check the brood pattern.')
    assert '<' not in data['excerpt']
    assert sorted(tag['slug'] for tag in data['tags']) == ['hive-care', 'spring']
    assert data['author']['username'] == author.username


def test_duplicate_titles_get_suffixed_slugs(login, author):
    client = login(author)
    first = _create(client).get_json()['data']
    second = _create(client).get_json()['data']

    assert first['slug'] == 'spring-inspection-checklist'
    assert second['slug'] == 'spring-inspection-checklist-1'


def test_reader_cannot_create_article(login, reader):
    response = _create(login(reader))
    assert response.status_code == 403


def test_anonymous_cannot_create_article(client):
    response = _create(client)
    assert response.status_code == 401
    assert response.get_json()['error']['code'] == 401


def test_validation_errors_are_reported_per_field(login, author):
    response = login(author).post('/api/articles', json={'title': '', 'status': 'live'})
    assert response.status_code == 400

    details = response.get_json()['error']['details']
    assert 'title' in details
    assert 'content' in details
    assert 'status' in details


def test_author_edits_own_article_but_not_others(login, make_user, author):
    from app.models import Role

    client = login(author)
    article = _create(client).get_json()['data']

    response = client.put(f"/api/articles/{article['id']}", json={'title': 'Autumn Checklist', 'slug': ''})
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['title'] == 'Autumn Checklist'
    # An empty slug regenerates it from the title
    assert data['slug'] == 'autumn-checklist'

    other = make_user(Role.AUTHOR)
    response = login(other).put(f"/api/articles/{article['id']}", json={'title': 'Hijacked'})
    assert response.status_code == 403


def test_admin_can_delete_any_article(app, login, admin, author):
    article = _create(login(author)).get_json()['data']

    response = login(admin).delete(f"/api/articles/{article['id']}")
    assert response.status_code == 200

    with app.app_context():
        assert db.session.get(Article, article['id']) is None


# ==================== Reading ====================

def test_drafts_hidden_from_public(client, login, author):
    author_client = login(author)
    _create(author_client, title='Secret Draft', status='draft')

    assert client.get('/api/articles/secret-draft').status_code == 404
    assert author_client.get('/api/articles/secret-draft').status_code == 200

    listing = client.get('/api/articles').get_json()
    assert listing['pagination']['total_items'] == 0


def test_listing_filters_and_pagination(client, login, author):
    author_client = login(author)
    for index in range(3):
        _create(author_client, title=f'Queen Rearing Part {index}', tags=['queens'])
    _create(author_client, title='Harvest Notes', tags=['honey'])

    page = client.get('/api/articles?per_page=2').get_json()
    assert len(page['data']) == 2
    assert page['pagination']['total_items'] == 4
    assert page['pagination']['has_next'] is True

    tagged = client.get('/api/articles?tag=queens').get_json()
    assert tagged['pagination']['total_items'] == 3

    found = client.get('/api/articles?search=harvest').get_json()
    assert [item['slug'] for item in found['data']] == ['harvest-notes']

    assert 'content' not in page['data'][0]


def test_tags_endpoints(client, login, author):
    _create(login(author), tags=['Hive Care', 'spring'])

    tags = client.get('/api/tags').get_json()['data']
    assert {tag['slug']: tag['article_count'] for tag in tags} == {'hive-care': 1, 'spring': 1}

    assert client.get('/api/tags/spring').status_code == 200
    assert client.get('/api/tags/missing').status_code == 404
    assert len(client.get('/api/tags/popular?limit=1').get_json()['data']) == 1


# ==================== Likes ====================

def test_like_toggle(login, author, reader):
    article = _create(login(author)).get_json()['data']
    reader_client = login(reader)

    liked = reader_client.post(f"/api/articles/{article['id']}/like").get_json()['data']
    assert liked == {'liked': True, 'like_count': 1}

    assert reader_client.get(f"/api/articles/{article['slug']}").get_json()['data']['user_has_liked'] is True
    liked_list = reader_client.get('/api/articles/liked').get_json()['data']
    assert [item['id'] for item in liked_list] == [article['id']]

    unliked = reader_client.post(f"/api/articles/{article['id']}/like").get_json()['data']
    assert unliked == {'liked': False, 'like_count': 0}


# ==================== Moderation ====================

def test_blocked_article_hidden_except_to_owner_and_admin(client, login, admin, author):
    article = _create(login(author)).get_json()['data']
    admin_client = login(admin)

    response = admin_client.put(f"/api/admin/articles/{article['id']}/block", json={})
    assert response.status_code == 200
    assert response.get_json()['data']['blocked_reason'] == 'No reason specified'

    assert admin_client.put(f"/api/admin/articles/{article['id']}/block", json={}).status_code == 400

    assert client.get(f"/api/articles/{article['slug']}").status_code == 403
    assert client.get('/api/articles').get_json()['pagination']['total_items'] == 0
    assert login(author).get(f"/api/articles/{article['slug']}").status_code == 200
    assert admin_client.get(f"/api/articles/{article['slug']}").status_code == 200

    blocked = admin_client.get('/api/admin/articles/blocked').get_json()
    assert [item['id'] for item in blocked['data']] == [article['id']]

    assert admin_client.put(f"/api/admin/articles/{article['id']}/unblock").status_code == 200
    assert admin_client.put(f"/api/admin/articles/{article['id']}/unblock").status_code == 400
    assert client.get(f"/api/articles/{article['slug']}").status_code == 200
