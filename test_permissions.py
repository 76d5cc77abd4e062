"""
Tests for the edit/delete authorization rules in app.permissions.
"""

from types import SimpleNamespace

import pytest

from app.models import Role, Article, Comment, ForumCategory, ForumThread, ForumComment
from app.permissions import can_edit, can_delete, can_author, is_admin, coerce_role


def actor(role, user_id=1):
    return SimpleNamespace(id=user_id, role=role, is_authenticated=True)


OWNED_TYPES = [Article, ForumCategory, ForumThread, ForumComment]


@pytest.mark.parametrize('model', OWNED_TYPES + [Comment])
def test_admin_can_edit_and_delete_anything(model):
    entity = model(user_id=42)
    admin = actor(Role.ADMIN, user_id=1)

    assert can_edit(admin, entity) is True
    assert can_delete(admin, entity) is True


@pytest.mark.parametrize('model', OWNED_TYPES)
def test_author_limited_to_own_content(model):
    author = actor(Role.AUTHOR, user_id=7)

    assert can_edit(author, model(user_id=7)) is True
    assert can_delete(author, model(user_id=7)) is True
    assert can_edit(author, model(user_id=8)) is False
    assert can_delete(author, model(user_id=8)) is False


def test_locked_thread_blocks_owner_edit_but_not_delete():
    author = actor(Role.AUTHOR, user_id=7)
    thread = ForumThread(user_id=7, is_locked=True)

    assert can_edit(author, thread) is False
    assert can_delete(author, thread) is True


def test_locked_thread_still_editable_by_admin():
    thread = ForumThread(user_id=7, is_locked=True)
    assert can_edit(actor(Role.ADMIN, user_id=1), thread) is True


@pytest.mark.parametrize('model', OWNED_TYPES)
def test_plain_user_cannot_edit_or_delete_even_own_forum_and_article_content(model):
    user = actor(Role.USER, user_id=3)
    entity = model(user_id=3)

    assert can_edit(user, entity) is False
    assert can_delete(user, entity) is False


def test_plain_user_manages_own_article_comment_only():
    user = actor(Role.USER, user_id=3)

    assert can_edit(user, Comment(user_id=3)) is True
    assert can_delete(user, Comment(user_id=3)) is True
    assert can_edit(user, Comment(user_id=4)) is False


def test_role_given_as_string_is_accepted():
    assert can_edit(actor('admin'), Article(user_id=99)) is True
    assert can_edit(actor('AUTHOR', user_id=5), Article(user_id=5)) is True


@pytest.mark.parametrize('bad_actor', [
    None,
    SimpleNamespace(id=1, role='superuser', is_authenticated=True),
    SimpleNamespace(id=1, role=None, is_authenticated=True),
    SimpleNamespace(id=1, role=Role.ADMIN, is_authenticated=False),
])
def test_unknown_or_anonymous_actors_are_denied(bad_actor):
    entity = Article(user_id=1)
    assert can_edit(bad_actor, entity) is False
    assert can_delete(bad_actor, entity) is False


def test_missing_owner_never_matches():
    author = actor(Role.AUTHOR, user_id=None)
    assert can_edit(author, Article(user_id=None)) is False


def test_role_helpers():
    assert is_admin(actor(Role.ADMIN)) is True
    assert is_admin(actor(Role.AUTHOR)) is False
    assert can_author(actor(Role.AUTHOR)) is True
    assert can_author(actor(Role.ADMIN)) is True
    assert can_author(actor(Role.USER)) is False
    assert coerce_role(' Admin ') is Role.ADMIN
    assert coerce_role('nobody') is None
    assert coerce_role(3) is None
