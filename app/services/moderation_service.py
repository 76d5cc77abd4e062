"""
Moderation Service - admin actions on articles, forum content and forum bans.

Each action is written to the moderation log with the acting admin's id.
"""

import logging
from sqlalchemy import select, func
from app.extensions import db
from app.exceptions import ResourceNotFound, ValidationFailed
from app.logging_config import log_moderation_action
from app.security import InputSanitizer
from app.services.ban_service import BanService
from app.time_helpers import ban_expiry_from_days

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_REASON = 'No reason specified'
MIN_BLOCK_REASON_LENGTH = 10
MAX_BLOCK_REASON_LENGTH = 500


def _forum_models():
    from app.models import ForumCategory, ForumThread, ForumComment
    return {
        'category': ForumCategory,
        'thread': ForumThread,
        'comment': ForumComment,
    }


_PLURALS = {'category': 'categories', 'thread': 'threads', 'comment': 'comments'}


def _required_reason(reason, action):
    reason = InputSanitizer.sanitize_description(reason, max_length=None)
    if len(reason) < MIN_BLOCK_REASON_LENGTH or len(reason) > MAX_BLOCK_REASON_LENGTH:
        raise ValidationFailed(
            f'Reason is required when {action} and must be between '
            f'{MIN_BLOCK_REASON_LENGTH} and {MAX_BLOCK_REASON_LENGTH} characters'
        )
    return reason


class ModerationService:

    # --- Articles ---

    @staticmethod
    def block_article(moderator, article, reason=None):
        if article.is_blocked:
            raise ValidationFailed('Article is already blocked')

        reason = InputSanitizer.sanitize_description(reason, max_length=MAX_BLOCK_REASON_LENGTH) or DEFAULT_BLOCK_REASON
        article.block(moderator.id, reason)
        log_moderation_action(moderator.id, 'block', 'article', article.id, reason=reason)
        return article

    @staticmethod
    def unblock_article(moderator, article):
        if not article.is_blocked:
            raise ValidationFailed('Article is not blocked')

        article.unblock()
        log_moderation_action(moderator.id, 'unblock', 'article', article.id)
        return article

    @staticmethod
    def blocked_articles_query():
        from app.models import Article
        return select(Article).where(Article.is_blocked.is_(True)).order_by(Article.blocked_at.desc())

    # --- Forum content ---

    @staticmethod
    def get_forum_entity(kind, entity_id):
        model = _forum_models().get(kind)
        if model is None:
            raise ResourceNotFound(f'Unknown forum content type: {kind}')

        entity = db.session.get(model, entity_id)
        if entity is None:
            raise ResourceNotFound(f'{kind.capitalize()} not found')
        return entity

    @staticmethod
    def set_forum_block(moderator, kind, entity_id, block, reason=None):
        """
        Block or unblock a forum category, thread or comment.

        Blocking needs a reason of 10 to 500 characters; unblocking clears it.
        """
        entity = ModerationService.get_forum_entity(kind, entity_id)

        if block:
            reason = _required_reason(reason, 'blocking content')
            entity.block(moderator.id, reason)
            log_moderation_action(moderator.id, 'block', f'forum_{kind}', entity.id, reason=reason)
        else:
            entity.unblock()
            log_moderation_action(moderator.id, 'unblock', f'forum_{kind}', entity.id)

        return entity

    @staticmethod
    def set_thread_lock(moderator, thread_id, lock):
        thread = ModerationService.get_forum_entity('thread', thread_id)
        thread.is_locked = bool(lock)
        log_moderation_action(moderator.id, 'lock' if lock else 'unlock', 'forum_thread', thread.id)
        return thread

    @staticmethod
    def set_thread_pin(moderator, thread_id, pin):
        thread = ModerationService.get_forum_entity('thread', thread_id)
        thread.is_pinned = bool(pin)
        log_moderation_action(moderator.id, 'pin' if pin else 'unpin', 'forum_thread', thread.id)
        return thread

    @staticmethod
    def move_thread(moderator, thread_id, category_id):
        from app.models import ForumCategory

        thread = ModerationService.get_forum_entity('thread', thread_id)
        category = db.session.get(ForumCategory, category_id) if category_id is not None else None
        if category is None:
            raise ResourceNotFound('Target category not found')

        previous_category_id = thread.category_id
        thread.category_id = category.id
        thread.category = category
        log_moderation_action(
            moderator.id, 'move', 'forum_thread', thread.id,
            from_category=previous_category_id, to_category=category.id
        )
        return thread

    # --- Bans ---

    @staticmethod
    def set_user_ban(moderator, user_id, ban, reason=None, duration_days=None, expires_at=None):
        """
        Ban (or re-ban) a user from the forum, or lift their ban.

        Args:
            duration_days: Positive number of days the ban lasts
            expires_at: Explicit naive UTC expiry; used when duration_days is not given.
                With neither, the ban is permanent.

        Returns:
            UserForumBan or None when the ban was lifted
        """
        if ban:
            if duration_days:
                expires_at = ban_expiry_from_days(duration_days)
            reason = _required_reason(reason, 'banning a user')
            record = BanService.ban_user(user_id, moderator.id, reason=reason, expires_at=expires_at)
            log_moderation_action(
                moderator.id, 'ban', 'user', user_id, reason=reason,
                expires_at=expires_at.isoformat() if expires_at else 'never'
            )
            return record

        from app.models import User
        if db.session.get(User, user_id) is None:
            raise ResourceNotFound('User not found')

        BanService.lift_ban(user_id)
        log_moderation_action(moderator.id, 'unban', 'user', user_id)
        return None

    # --- Overview ---

    @staticmethod
    def forum_stats(recent_limit=5):
        from app.models import ForumThread, ForumComment

        stats = {}
        for kind, model in _forum_models().items():
            total = db.session.scalar(select(func.count(model.id))) or 0
            blocked = db.session.scalar(select(func.count(model.id)).where(model.is_blocked.is_(True))) or 0
            stats[f'{kind}_total'] = total
            stats[f'{kind}_blocked'] = blocked

        stats['banned_users'] = BanService.count_active_bans()

        recent_threads = db.session.scalars(
            select(ForumThread).order_by(ForumThread.created_at.desc()).limit(recent_limit)
        ).all()
        recent_comments = db.session.scalars(
            select(ForumComment).order_by(ForumComment.created_at.desc()).limit(recent_limit)
        ).all()

        return {
            'stats': {
                'categories': {'total': stats['category_total'], 'blocked': stats['category_blocked']},
                'threads': {'total': stats['thread_total'], 'blocked': stats['thread_blocked']},
                'comments': {'total': stats['comment_total'], 'blocked': stats['comment_blocked']},
                'banned_users': stats['banned_users'],
            },
            'recent_activity': {
                'threads': [thread.to_dict(include_content=False) for thread in recent_threads],
                'comments': [comment.to_dict() for comment in recent_comments],
            },
        }

    @staticmethod
    def blocked_forum_content():
        content = {}
        for kind, model in _forum_models().items():
            rows = db.session.scalars(
                select(model).where(model.is_blocked.is_(True)).order_by(model.blocked_at.desc())
            ).all()
            content[_PLURALS[kind]] = [
                row.to_dict(include_content=False) if kind == 'thread' else row.to_dict() for row in rows
            ]
        return content
