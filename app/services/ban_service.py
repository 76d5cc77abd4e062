"""
Ban Service - forum ban registry.

One row per user in ``user_forum_ban`` (unique user_id). Banning again
overwrites that row; lifting the ban deletes it. The registry only gates
forum writes; content a user posted before the ban stays where it is.
"""

import logging
from datetime import datetime
from sqlalchemy import select, func, or_
from app.extensions import db
from app.exceptions import ValidationFailed, ResourceNotFound

logger = logging.getLogger(__name__)


class BanService:
    """Service for checking and managing forum bans."""

    @staticmethod
    def get_latest_ban(user_id):
        """Most recently created ban row for the user, or None."""
        from app.models import UserForumBan

        return db.session.scalar(
            select(UserForumBan)
            .where(UserForumBan.user_id == user_id)
            .order_by(UserForumBan.created_at.desc(), UserForumBan.id.desc())
            .limit(1)
        )

    @staticmethod
    def is_banned(user_id, now=None):
        """
        True if the user has an active forum ban.

        A ban is active when it has no expiry or its expiry is strictly after `now`.
        """
        if user_id is None:
            return False

        ban = BanService.get_latest_ban(user_id)
        if ban is None:
            return False

        return ban.is_active(now)

    @staticmethod
    def ban_user(user_id, moderator_id, reason=None, expires_at=None):
        """
        Ban a user from the forum, replacing any existing ban row.

        Args:
            user_id: User to ban
            moderator_id: Admin issuing the ban
            reason: Optional free-text reason
            expires_at: Naive UTC datetime, or None for a permanent ban

        Returns:
            UserForumBan: The (new or updated) ban row, not yet committed
        """
        from app.models import User, UserForumBan

        user = db.session.get(User, user_id)
        if user is None:
            raise ResourceNotFound('User not found')
        if user_id == moderator_id:
            raise ValidationFailed('You cannot ban yourself from the forum')

        now = datetime.utcnow()
        if expires_at is not None and expires_at <= now:
            raise ValidationFailed('Ban expiry must be in the future')

        ban = BanService.get_latest_ban(user_id)
        if ban is None:
            ban = UserForumBan(user_id=user_id, created_at=now)
            db.session.add(ban)

        ban.banned_by = moderator_id
        ban.reason = reason
        ban.banned_at = now
        ban.expires_at = expires_at

        logger.info(f"User {user_id} banned from forum by {moderator_id} until {expires_at or 'forever'}")
        return ban

    @staticmethod
    def lift_ban(user_id):
        """Remove the user's ban row. Returns True if a row was removed."""
        ban = BanService.get_latest_ban(user_id)
        if ban is None:
            return False

        db.session.delete(ban)
        logger.info(f"Forum ban lifted for user {user_id}")
        return True

    @staticmethod
    def active_bans_query(now=None):
        from app.models import UserForumBan

        now = now or datetime.utcnow()
        return (
            select(UserForumBan)
            .where(or_(UserForumBan.expires_at.is_(None), UserForumBan.expires_at > now))
            .order_by(UserForumBan.banned_at.desc())
        )

    @staticmethod
    def count_active_bans(now=None):
        from app.models import UserForumBan

        now = now or datetime.utcnow()
        return db.session.scalar(
            select(func.count(UserForumBan.id))
            .where(or_(UserForumBan.expires_at.is_(None), UserForumBan.expires_at > now))
        ) or 0

    @staticmethod
    def purge_expired(now=None):
        """Delete ban rows whose expiry has passed. Returns the number removed."""
        from app.models import UserForumBan

        now = now or datetime.utcnow()
        expired = db.session.scalars(
            select(UserForumBan).where(
                UserForumBan.expires_at.is_not(None),
                UserForumBan.expires_at <= now
            )
        ).all()

        for ban in expired:
            db.session.delete(ban)

        if expired:
            logger.info(f"Purged {len(expired)} expired forum bans")
        return len(expired)
