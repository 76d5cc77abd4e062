"""
Shared pytest fixtures.

The database is an in-memory SQLite shared by every app context of one
``app`` fixture. Setup code opens its own ``app.app_context()``; requests
run outside it so each one gets a fresh ``g`` (and therefore a fresh
``current_user``).
"""

from types import SimpleNamespace

import pytest

from app import create_app
from app.extensions import db
from app.models import User, Role
from app.services import FeatureService
from config import TestingConfig

DEFAULT_PASSWORD = 'correct-horse-battery'


@pytest.fixture
def app():
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """An app context for tests that talk to services and models directly."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """
    Factory creating a committed user.

    Returns a plain namespace (id, username, email, password, role) so it can
    be used outside the app context that created it.
    """
    counter = {'n': 0}

    def _make_user(role=Role.USER, username=None, password=DEFAULT_PASSWORD):
        counter['n'] += 1
        username = username or f'{role.value}{counter["n"]}'
        with app.app_context():
            user = User(username=username, email=f'{username}@example.com', role=role)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            return SimpleNamespace(
                id=user.id, username=user.username, email=user.email, password=password, role=role
            )

    return _make_user


@pytest.fixture
def login(app):
    """Return a new test client logged in as the given user."""

    def _login(user):
        client = app.test_client()
        response = client.post('/api/auth/login', json={'login': user.username, 'password': user.password})
        assert response.status_code == 200, response.get_json()
        return client

    return _login


@pytest.fixture
def admin(make_user):
    return make_user(Role.ADMIN, username='admin')


@pytest.fixture
def author(make_user):
    return make_user(Role.AUTHOR, username='author')


@pytest.fixture
def reader(make_user):
    return make_user(Role.USER, username='reader')


@pytest.fixture
def set_feature(app):
    def _set_feature(name, enabled):
        with app.app_context():
            FeatureService.set_enabled(name, enabled)
            db.session.commit()

    return _set_feature


@pytest.fixture
def forum_enabled(set_feature):
    set_feature('forum', True)
