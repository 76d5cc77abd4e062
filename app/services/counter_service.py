"""
Counter Service - view counts and thread activity stamps.

Each update is a single UPDATE statement evaluated by the database
(``view_count = view_count + 1``) that leaves updated_at untouched, so
concurrent readers never lose an increment the way a load/modify/save
cycle would.
"""

import logging
from datetime import datetime
from sqlalchemy import update
from app.extensions import db

logger = logging.getLogger(__name__)


class CounterService:

    @staticmethod
    def increment_view_count(model, entity_id):
        """
        Atomically add one to `model.view_count` for the row `entity_id`.

        Returns:
            bool: True if a row was updated
        """
        result = db.session.execute(
            update(model)
            .where(model.id == entity_id)
            .values(view_count=model.view_count + 1, updated_at=model.updated_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    @staticmethod
    def touch_last_activity(thread_id, when=None):
        """Atomically stamp a forum thread's last_activity_at (default: now)."""
        from app.models import ForumThread

        result = db.session.execute(
            update(ForumThread)
            .where(ForumThread.id == thread_id)
            .values(last_activity_at=when or datetime.utcnow(), updated_at=ForumThread.updated_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    @staticmethod
    def record_view(entity):
        """
        Increment the stored counter for a loaded entity; the instance picks up
        the new value on its next attribute access.
        """
        if CounterService.increment_view_count(type(entity), entity.id):
            db.session.expire(entity, ['view_count'])
        return entity
