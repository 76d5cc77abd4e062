"""Database mixins for common model functionality."""

from datetime import datetime
from sqlalchemy import Column, Boolean, DateTime, Integer, Text, ForeignKey
from sqlalchemy.orm import declared_attr, relationship


class ModerationMixin:
    """
    Admin-controlled blocking for user content.

    A blocked row is hidden from public listings but stays readable to its
    owner and to admins. ``blocked_by`` is SET NULL when the moderator's
    account is removed, so the block itself survives.
    """

    @declared_attr
    def is_blocked(cls):
        return Column(Boolean, default=False, nullable=False, index=True)

    @declared_attr
    def blocked_reason(cls):
        return Column(Text, nullable=True)

    @declared_attr
    def blocked_at(cls):
        return Column(DateTime, nullable=True)

    @declared_attr
    def blocked_by(cls):
        return Column(Integer, ForeignKey('user.id', ondelete='SET NULL'), nullable=True, index=True)

    @declared_attr
    def blocker(cls):
        return relationship(
            'User',
            foreign_keys=f'{cls.__name__}.blocked_by',
            backref=f'{cls.__tablename__}_blocked'
        )

    def block(self, moderator_id, reason):
        self.is_blocked = True
        self.blocked_reason = reason
        self.blocked_by = moderator_id
        self.blocked_at = datetime.utcnow()
        return self

    def unblock(self):
        self.is_blocked = False
        self.blocked_reason = None
        self.blocked_by = None
        self.blocked_at = None
        return self

    def is_visible_to(self, user):
        """Blocked content is visible to its owner and to admins only."""
        if not self.is_blocked:
            return True
        if user is None or not getattr(user, 'is_authenticated', False):
            return False
        from app.permissions import is_admin
        return is_admin(user) or getattr(user, 'id', None) == getattr(self, 'user_id', None)

    def moderation_dict(self):
        return {
            'is_blocked': bool(self.is_blocked),
            'blocked_reason': self.blocked_reason,
            'blocked_at': self.blocked_at.isoformat() if self.blocked_at else None,
            'blocked_by': self.blocked_by,
        }
