"""
Forum Service - categories, threads and threaded comments.

Write paths run the same checks in the same order: forum ban, role,
container state, then ownership via ``can_edit``/``can_delete``. Slugs are
derived once at creation; a duplicate surfaces as an IntegrityError at
commit and is reported as 409 by the error handlers.
"""

import logging
from sqlalchemy import select, func
from app.extensions import db
from app.exceptions import (
    ResourceNotFound, AuthorizationDenied, ForumBanned, ContentBlocked, ValidationFailed
)
from app.permissions import can_edit, can_delete, can_author, is_admin
from app.security import InputSanitizer
from app.services.ban_service import BanService
from app.services.counter_service import CounterService
from app.services.nesting_service import NestingService
from app.utils import resolve_slug, CATEGORY_SLUG_LENGTH, THREAD_SLUG_LENGTH

logger = logging.getLogger(__name__)

THREAD_SORTS = ('pinned', 'recent')


def _visible_filter(model, viewer):
    """WHERE clause hiding blocked rows from everyone but admins and the row's owner."""
    if is_admin(viewer):
        return None
    viewer_id = getattr(viewer, 'id', None) if viewer is not None else None
    if viewer_id is None:
        return model.is_blocked.is_(False)
    return (model.is_blocked.is_(False)) | (model.user_id == viewer_id)


def _ensure_not_banned(user):
    if BanService.is_banned(user.id):
        logger.info(f"Forum write refused for banned user {user.id}")
        raise ForumBanned()


class ForumService:

    # --- Categories ---

    @staticmethod
    def category_list(viewer=None):
        """
        Categories newest first, each with the number of threads the viewer can see.

        Returns:
            list: category dicts with 'thread_count'
        """
        from app.models import ForumCategory, ForumThread

        thread_count = select(func.count(ForumThread.id)).where(ForumThread.category_id == ForumCategory.id)
        visible_threads = _visible_filter(ForumThread, viewer)
        if visible_threads is not None:
            thread_count = thread_count.where(visible_threads)

        query = select(ForumCategory, thread_count.scalar_subquery().label('thread_count'))
        visible = _visible_filter(ForumCategory, viewer)
        if visible is not None:
            query = query.where(visible)

        rows = db.session.execute(query.order_by(ForumCategory.created_at.desc(), ForumCategory.id.desc())).all()
        return [category.to_dict(thread_count=count or 0) for category, count in rows]

    @staticmethod
    def get_category(category_id):
        from app.models import ForumCategory

        category = db.session.get(ForumCategory, category_id)
        if category is None:
            raise ResourceNotFound('Category not found')
        return category

    @staticmethod
    def get_category_by_slug(slug, viewer=None):
        from app.models import ForumCategory

        category = db.session.scalar(select(ForumCategory).where(ForumCategory.slug == slug))
        if category is None or not category.is_visible_to(viewer):
            raise ResourceNotFound('Category not found')
        return category

    @staticmethod
    def create_category(user, name, description=None, slug=None):
        from app.models import ForumCategory

        if not can_author(user):
            raise AuthorizationDenied('Only authors and admins can create forum categories')

        name = InputSanitizer.sanitize_description(name, max_length=100)
        if not name:
            raise ValidationFailed('Category name is required')

        category_slug = resolve_slug(slug, name, CATEGORY_SLUG_LENGTH)
        if not category_slug:
            raise ValidationFailed('Could not derive a slug from the category name')

        category = ForumCategory(
            name=name,
            slug=category_slug,
            description=InputSanitizer.sanitize_description(description, max_length=None) or None,
            user_id=user.id,
        )
        db.session.add(category)
        return category

    @staticmethod
    def update_category(user, category, name=None, description=None, slug=None):
        """Rename or re-describe a category. The slug only changes when one is passed explicitly."""
        if not can_edit(user, category):
            raise AuthorizationDenied('You do not have permission to edit this category')

        if name:
            category.name = InputSanitizer.sanitize_description(name, max_length=100)
        if description is not None:
            category.description = InputSanitizer.sanitize_description(description, max_length=None) or None
        if slug is not None:
            new_slug = resolve_slug(slug, category.name, CATEGORY_SLUG_LENGTH)
            if new_slug:
                category.slug = new_slug
        return category

    @staticmethod
    def delete_category(user, category):
        from app.models import ForumThread

        if not can_delete(user, category):
            raise AuthorizationDenied('You do not have permission to delete this category')

        thread_count = db.session.scalar(
            select(func.count(ForumThread.id)).where(ForumThread.category_id == category.id)
        )
        if thread_count:
            raise ValidationFailed(
                'Cannot delete category with existing threads. Please move or delete all threads first.'
            )

        db.session.delete(category)
        logger.info(f"Forum category {category.id} deleted by user {user.id}")

    # --- Threads ---

    @staticmethod
    def comment_counts(thread_ids, viewer=None):
        """Map thread id -> number of comments the viewer can see, for a page of threads."""
        from app.models import ForumComment

        if not thread_ids:
            return {}

        query = (
            select(ForumComment.thread_id, func.count(ForumComment.id))
            .where(ForumComment.thread_id.in_(thread_ids))
            .group_by(ForumComment.thread_id)
        )
        visible = _visible_filter(ForumComment, viewer)
        if visible is not None:
            query = query.where(visible)

        counts = {thread_id: 0 for thread_id in thread_ids}
        counts.update(dict(db.session.execute(query).all()))
        return counts

    @staticmethod
    def thread_list_query(viewer=None, category_id=None, sort='pinned'):
        """
        Threads visible to the viewer, optionally within one category.

        'pinned' (default) lists pinned threads first, then by last activity;
        'recent' orders by last activity only.
        """
        from app.models import ForumThread

        if sort not in THREAD_SORTS:
            sort = 'pinned'

        query = select(ForumThread)
        visible = _visible_filter(ForumThread, viewer)
        if visible is not None:
            query = query.where(visible)
        if category_id is not None:
            query = query.where(ForumThread.category_id == category_id)

        if sort == 'recent':
            return query.order_by(ForumThread.last_activity_at.desc(), ForumThread.id.desc())
        return query.order_by(
            ForumThread.is_pinned.desc(), ForumThread.last_activity_at.desc(), ForumThread.id.desc()
        )

    @staticmethod
    def get_thread(thread_id):
        from app.models import ForumThread

        thread = db.session.get(ForumThread, thread_id)
        if thread is None:
            raise ResourceNotFound('Thread not found')
        return thread

    @staticmethod
    def get_thread_for_reader(slug, viewer=None):
        """
        Load a thread by slug, count the view and return it with its visible comments.

        Returns:
            tuple: (ForumThread, list of ForumComment in creation order)
        """
        from app.models import ForumThread

        thread = db.session.scalar(select(ForumThread).where(ForumThread.slug == slug))
        if thread is None or not thread.is_visible_to(viewer):
            raise ResourceNotFound('Thread not found')

        CounterService.record_view(thread)
        return thread, ForumService.thread_comments(thread, viewer)

    @staticmethod
    def thread_comments(thread, viewer=None):
        from app.models import ForumComment

        query = select(ForumComment).where(ForumComment.thread_id == thread.id)
        visible = _visible_filter(ForumComment, viewer)
        if visible is not None:
            query = query.where(visible)
        return db.session.scalars(query.order_by(ForumComment.created_at.asc(), ForumComment.id.asc())).all()

    @staticmethod
    def create_thread(user, category_id, title, content, slug=None):
        from app.models import ForumCategory, ForumThread

        _ensure_not_banned(user)
        if not can_author(user):
            raise AuthorizationDenied('Only authors and admins can create forum threads')

        category = db.session.get(ForumCategory, category_id) if category_id is not None else None
        if category is None:
            raise ResourceNotFound('Category not found')
        if category.is_blocked and not is_admin(user):
            raise ContentBlocked('Cannot create thread in a blocked category')

        title = InputSanitizer.sanitize_description(title, max_length=255)
        content = InputSanitizer.sanitize_text(content)
        if not title or not content:
            raise ValidationFailed('Title and content are required')

        thread_slug = resolve_slug(slug, title, THREAD_SLUG_LENGTH)
        if not thread_slug:
            raise ValidationFailed('Could not derive a slug from the thread title')

        thread = ForumThread(
            title=title,
            slug=thread_slug,
            content=content,
            category_id=category.id,
            user_id=user.id,
        )
        db.session.add(thread)
        return thread

    @staticmethod
    def update_thread(user, thread, title=None, content=None):
        _ensure_not_banned(user)
        if not can_edit(user, thread):
            raise AuthorizationDenied('You do not have permission to edit this thread')

        if title:
            thread.title = InputSanitizer.sanitize_description(title, max_length=255)
        if content:
            thread.content = InputSanitizer.sanitize_text(content)
        return thread

    @staticmethod
    def delete_thread(user, thread):
        if not can_delete(user, thread):
            raise AuthorizationDenied('You do not have permission to delete this thread')

        db.session.delete(thread)
        logger.info(f"Forum thread {thread.id} deleted by user {user.id}")

    # --- Comments ---

    @staticmethod
    def get_comment(comment_id):
        from app.models import ForumComment

        comment = db.session.get(ForumComment, comment_id)
        if comment is None:
            raise ResourceNotFound('Comment not found')
        return comment

    @staticmethod
    def create_comment(user, thread_id, content, parent_comment_id=None):
        """
        Post a comment (or a reply) in a thread and bump the thread's activity stamp.

        Raises:
            ForumBanned, AuthorizationDenied, ResourceNotFound, ContentBlocked, InvalidParent
        """
        from app.models import ForumThread, ForumComment

        _ensure_not_banned(user)
        if not can_author(user):
            raise AuthorizationDenied('Only authors and admins can post comments in the forum')

        thread = db.session.get(ForumThread, thread_id) if thread_id is not None else None
        if thread is None:
            raise ResourceNotFound('Thread not found')
        if not thread.can_receive_comments:
            raise ContentBlocked('This thread is locked or blocked and cannot receive new comments')

        NestingService.resolve_parent(
            ForumComment, parent_comment_id,
            scope_attr='thread_id', scope_id=thread.id, parent_attr='parent_comment_id'
        )

        content = InputSanitizer.sanitize_text(content)
        if not content:
            raise ValidationFailed('Comment content is required')

        comment = ForumComment(
            content=content,
            thread_id=thread.id,
            user_id=user.id,
            parent_comment_id=parent_comment_id,
        )
        db.session.add(comment)
        db.session.flush()

        CounterService.touch_last_activity(thread.id, when=comment.created_at)
        db.session.expire(thread, ['last_activity_at'])
        return comment

    @staticmethod
    def update_comment(user, comment, content):
        _ensure_not_banned(user)
        if not can_edit(user, comment):
            raise AuthorizationDenied('You do not have permission to edit this comment')
        if not comment.thread.can_receive_comments:
            raise ContentBlocked('Cannot edit comments in a locked or blocked thread')

        content = InputSanitizer.sanitize_text(content)
        if not content:
            raise ValidationFailed('Comment content is required')
        comment.content = content
        return comment

    @staticmethod
    def delete_comment(user, comment):
        if not can_delete(user, comment):
            raise AuthorizationDenied('You do not have permission to delete this comment')

        db.session.delete(comment)
        logger.info(f"Forum comment {comment.id} deleted by user {user.id}")
