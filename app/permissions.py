# app/permissions.py
"""
Authorization rules for mutating content.

``can_edit`` and ``can_delete`` are pure predicates over an actor (anything
exposing ``id`` and ``role``) and an already-loaded entity exposing
``user_id``. They never raise and fail closed: an anonymous actor, an unknown
role or a missing owner id all mean "not permitted". Routes turn a False
result into a 403.

Rules, for Article, ForumCategory, ForumThread and ForumComment:

- ADMIN may edit and delete anything.
- AUTHOR may edit and delete what they own, except that a locked
  ForumThread cannot be edited (it can still be deleted).
- USER may not edit or delete, unless the entity type is open to plain
  owners (article comments set ``editable_by_owner_users``).
"""

from app.models.user import Role


def coerce_role(value):
    """Return the Role for `value` (Role or its string value), or None if unknown."""
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        try:
            return Role(value.strip().lower())
        except ValueError:
            return None
    return None


def _is_owner(actor, entity):
    actor_id = getattr(actor, 'id', None)
    owner_id = getattr(entity, 'user_id', None)
    if actor_id is None or owner_id is None:
        return False
    return actor_id == owner_id


def _admin_rule(actor, entity, honour_lock):
    return True


def _author_rule(actor, entity, honour_lock):
    if not _is_owner(actor, entity):
        return False
    # Only forum threads carry a lock
    if honour_lock and getattr(entity, 'is_locked', False):
        return False
    return True


def _user_rule(actor, entity, honour_lock):
    if not getattr(entity, 'editable_by_owner_users', False):
        return False
    return _is_owner(actor, entity)


_ROLE_RULES = {
    Role.ADMIN: _admin_rule,
    Role.AUTHOR: _author_rule,
    Role.USER: _user_rule,
}

# Every role must have a rule; adding a Role without one fails at import time
assert set(_ROLE_RULES) == set(Role), 'permission rules must cover every Role'


def _evaluate(actor, entity, honour_lock):
    if actor is None or entity is None:
        return False
    if getattr(actor, 'is_authenticated', True) is False:
        return False

    role = coerce_role(getattr(actor, 'role', None))
    if role is None:
        return False

    return bool(_ROLE_RULES[role](actor, entity, honour_lock))


def can_edit(actor, entity):
    """True if `actor` may modify `entity`."""
    return _evaluate(actor, entity, honour_lock=True)


def can_delete(actor, entity):
    """True if `actor` may remove `entity`. Thread locks do not prevent deletion."""
    return _evaluate(actor, entity, honour_lock=False)


def is_admin(actor):
    if actor is None or getattr(actor, 'is_authenticated', True) is False:
        return False
    return coerce_role(getattr(actor, 'role', None)) is Role.ADMIN


def can_author(actor):
    """True if `actor` may create articles and forum content (authors and admins)."""
    if actor is None or getattr(actor, 'is_authenticated', True) is False:
        return False
    return coerce_role(getattr(actor, 'role', None)) in (Role.AUTHOR, Role.ADMIN)
