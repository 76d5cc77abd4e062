"""
API tests for the admin area: forum moderation, bans, feature flags and user roles.
"""

import pytest

from app.extensions import db
from app.models import Role, User, ForumCategory, ForumThread, ForumComment


@pytest.fixture
def forum(app, author):
    """Two categories, a thread in the first and one comment. Returns their ids."""
    with app.app_context():
        general = ForumCategory(name='General', slug='general', user_id=author.id)
        equipment = ForumCategory(name='Equipment', slug='equipment', user_id=author.id)
        db.session.add_all([general, equipment])
        db.session.flush()

        thread = ForumThread(title='Best smoker fuel', slug='best-smoker-fuel', content='Pine needles or burlap?',
                             category_id=general.id, user_id=author.id)
        db.session.add(thread)
        db.session.flush()

        comment = ForumComment(content='Burlap, always.', thread_id=thread.id, user_id=author.id)
        db.session.add(comment)
        db.session.commit()

        return {'general': general.id, 'equipment': equipment.id, 'thread': thread.id, 'comment': comment.id}


# ==================== Access ====================

@pytest.mark.parametrize('path', [
    '/api/admin/stats',
    '/api/admin/forum/stats',
    '/api/admin/features',
    '/api/admin/users',
    '/api/admin/contacts',
])
def test_admin_routes_reject_non_admins(client, login, author, path):
    assert client.get(path).status_code == 401
    assert login(author).get(path).status_code == 403


def test_dashboard_stats(login, admin, author, reader):
    data = login(admin).get('/api/admin/stats').get_json()['data']
    assert data['users'] == 3
    assert data['articles'] == {}
    assert data['active_forum_bans'] == 0


# ==================== Forum blocks ====================

@pytest.mark.parametrize('kind, key', [
    ('categories', 'general'),
    ('threads', 'thread'),
    ('comments', 'comment'),
])
def test_forum_block_requires_reason(login, admin, forum, kind, key):
    admin_client = login(admin)
    path = f'/api/admin/forum/{kind}/{forum[key]}/block'

    assert admin_client.put(path, json={'block': True}).status_code == 400
    assert admin_client.put(path, json={'block': True, 'reason': 'too short'}).status_code == 400
    assert admin_client.put(path, json={'block': True, 'reason': 'x' * 501}).status_code == 400

    response = admin_client.put(path, json={'block': True, 'reason': 'Breaks the posting rules'})
    assert response.status_code == 200
    data = response.get_json()['data']
    assert data['is_blocked'] is True
    assert data['blocked_reason'] == 'Breaks the posting rules'
    assert data['blocked_by'] == admin.id

    response = admin_client.put(path, json={'block': False})
    data = response.get_json()['data']
    assert data['is_blocked'] is False
    assert data['blocked_reason'] is None
    assert data['blocked_by'] is None


def test_block_missing_target(login, admin):
    response = login(admin).put('/api/admin/forum/threads/9999/block',
                                json={'block': True, 'reason': 'Breaks the posting rules'})
    assert response.status_code == 404


def test_blocked_content_overview(login, admin, forum):
    admin_client = login(admin)
    admin_client.put(f"/api/admin/forum/threads/{forum['thread']}/block",
                     json={'block': True, 'reason': 'Duplicate discussion'})

    blocked = admin_client.get('/api/admin/forum/blocked').get_json()['data']
    assert [item['id'] for item in blocked['threads']] == [forum['thread']]
    assert blocked['categories'] == [] and blocked['comments'] == []

    stats = admin_client.get('/api/admin/forum/stats').get_json()['data']
    assert stats['stats']['threads'] == {'total': 1, 'blocked': 1}
    assert stats['stats']['categories'] == {'total': 2, 'blocked': 0}
    assert len(stats['recent_activity']['comments']) == 1


# ==================== Thread tools ====================

def test_lock_pin_and_move_thread(app, login, admin, forum):
    admin_client = login(admin)
    thread_path = f"/api/admin/forum/threads/{forum['thread']}"

    assert admin_client.put(f'{thread_path}/lock', json={}).status_code == 400
    assert admin_client.put(f'{thread_path}/lock', json={'lock': True}).get_json()['data']['is_locked'] is True
    assert admin_client.put(f'{thread_path}/pin', json={'pin': 'true'}).get_json()['data']['is_pinned'] is True

    response = admin_client.put(f'{thread_path}/move', json={'category_id': forum['equipment']})
    assert response.status_code == 200
    assert response.get_json()['data']['category']['slug'] == 'equipment'

    assert admin_client.put(f'{thread_path}/move', json={'category_id': 9999}).status_code == 404

    with app.app_context():
        thread = db.session.get(ForumThread, forum['thread'])
        assert thread.category_id == forum['equipment']
        assert thread.is_locked and thread.is_pinned


# ==================== Bans ====================

def test_ban_and_unban_through_admin_api(login, admin, reader):
    admin_client = login(admin)
    path = f'/api/admin/forum/users/{reader.id}/ban'

    assert admin_client.post(path, json={'ban': True, 'reason': 'short'}).status_code == 400

    response = admin_client.post(path, json={'ban': True, 'reason': 'Harassing other members'})
    assert response.status_code == 200
    assert response.get_json()['message'] == 'User banned from forum successfully'
    assert response.get_json()['data']['is_permanent'] is True
    assert response.get_json()['data']['user_id'] == reader.id

    bans = admin_client.get('/api/admin/forum/bans').get_json()
    assert [ban['user_id'] for ban in bans['data']] == [reader.id]
    assert bans['data'][0]['user']['username'] == reader.username

    users = admin_client.get('/api/admin/users?search=reader').get_json()['data']
    assert users[0]['forum_banned'] is True

    response = admin_client.post(path, json={'ban': False})
    assert response.get_json()['message'] == 'User unbanned from forum successfully'
    assert admin_client.get('/api/admin/forum/bans').get_json()['data'] == []


def test_ban_validation_through_admin_api(login, admin, reader):
    admin_client = login(admin)

    response = admin_client.post(f'/api/admin/forum/users/{reader.id}/ban',
                                 json={'ban': True, 'reason': 'Harassing other members', 'duration_days': 0})
    assert response.status_code == 400

    assert admin_client.post(f'/api/admin/forum/users/{admin.id}/ban',
                             json={'ban': True, 'reason': 'Banning myself for fun'}).status_code == 400
    assert admin_client.post('/api/admin/forum/users/9999/ban',
                             json={'ban': True, 'reason': 'Nobody is here at all'}).status_code == 404
    assert admin_client.post('/api/admin/forum/users/9999/ban', json={'ban': False}).status_code == 404


# ==================== Feature flags ====================

def test_feature_flag_management(client, login, admin, author):
    admin_client = login(admin)

    response = admin_client.post('/api/admin/features', json={'name': 'polls', 'description': 'Reader polls'})
    assert response.status_code == 201
    assert response.get_json()['data']['enabled'] is False

    assert admin_client.post('/api/admin/features', json={'name': 'polls'}).status_code == 409
    assert admin_client.post('/api/admin/features', json={'name': 'Bad Name!'}).status_code == 400

    # Omitting 'enabled' flips the current value
    assert admin_client.put('/api/admin/features/polls', json={}).get_json()['data']['enabled'] is True
    assert admin_client.put('/api/admin/features/polls', json={'enabled': False}).get_json()['data']['enabled'] is False

    names = [feature['name'] for feature in admin_client.get('/api/admin/features').get_json()['data']]
    assert names == ['polls']

    assert admin_client.delete('/api/admin/features/polls').status_code == 200
    assert admin_client.delete('/api/admin/features/polls').status_code == 404


def test_enabling_forum_opens_forum_routes(login, admin, author):
    author_client = login(author)
    assert author_client.get('/api/forum/categories').status_code == 403

    login(admin).put('/api/admin/features/forum', json={'enabled': True})
    assert author_client.get('/api/forum/categories').status_code == 200


def test_public_feature_status(client, set_feature):
    set_feature('newsletter', False)
    response = client.get('/api/features')
    assert response.status_code == 200
    flags = response.get_json()['data']
    assert flags['newsletter'] is False
    assert flags['comments'] is True
    assert flags['forum'] is False


# ==================== Users ====================

def test_user_listing_and_role_changes(app, login, admin, author, reader):
    admin_client = login(admin)

    authors = admin_client.get('/api/admin/users?role=author').get_json()['data']
    assert [user['username'] for user in authors] == ['author']
    assert authors[0]['email'] == 'author@example.com'
    assert admin_client.get('/api/admin/users?role=wizard').status_code == 400

    response = admin_client.put(f'/api/admin/users/{reader.id}/role', json={'role': 'author'})
    assert response.status_code == 200
    assert response.get_json()['data']['role'] == 'author'

    assert admin_client.put(f'/api/admin/users/{reader.id}/role', json={'role': 'king'}).status_code == 400
    assert admin_client.put(f'/api/admin/users/{admin.id}/role', json={'role': 'user'}).status_code == 400
    assert admin_client.put('/api/admin/users/9999/role', json={'role': 'user'}).status_code == 404

    with app.app_context():
        assert db.session.get(User, reader.id).role == Role.AUTHOR
