"""
Comment Service - article comments, reply trees, moderation status and reports.
"""

import logging
from flask import current_app
from sqlalchemy import select, func
from app.extensions import db
from app.exceptions import ResourceNotFound, ContentBlocked, ValidationFailed
from app.permissions import is_admin
from app.security import InputSanitizer
from app.services.nesting_service import NestingService

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 5000


class CommentService:

    @staticmethod
    def get_by_id(comment_id):
        from app.models import Comment

        comment = db.session.get(Comment, comment_id)
        if comment is None:
            raise ResourceNotFound('Comment not found')
        return comment

    @staticmethod
    def clean_content(content):
        content = InputSanitizer.sanitize_text(content)
        if not content:
            raise ValidationFailed('Comment content is required')
        if len(content) > MAX_COMMENT_LENGTH:
            raise ValidationFailed(f'Comment must not exceed {MAX_COMMENT_LENGTH} characters')
        return content

    @staticmethod
    def build_tree(comments):
        """
        Nest a flat, creation-ordered list of comments into top-level entries
        with 'replies'. Replies whose parent is not in the list are dropped.
        """
        nodes = {}
        roots = []

        for comment in comments:
            node = comment.to_dict()
            node['replies'] = []
            nodes[comment.id] = node

        for comment in comments:
            node = nodes[comment.id]
            if comment.parent_id is None:
                roots.append(node)
            elif comment.parent_id in nodes:
                nodes[comment.parent_id]['replies'].append(node)

        return roots

    @staticmethod
    def tree_for_article(article, viewer=None):
        """Comment tree for an article. Readers see approved comments only; admins see all."""
        from app.models import Comment, CommentStatus

        query = select(Comment).where(Comment.article_id == article.id)
        if not is_admin(viewer):
            query = query.where(Comment.status == CommentStatus.APPROVED)

        comments = db.session.scalars(query.order_by(Comment.created_at.asc(), Comment.id.asc())).all()
        return CommentService.build_tree(comments)

    @staticmethod
    def admin_query(status=None, reported=None, article_id=None):
        from app.models import Comment, CommentStatus

        query = select(Comment)
        if status and status != 'all':
            try:
                query = query.where(Comment.status == CommentStatus(status))
            except ValueError:
                raise ValidationFailed(f'Invalid status: {status}')
        if reported is not None:
            query = query.where(Comment.reported.is_(bool(reported)))
        if article_id is not None:
            query = query.where(Comment.article_id == article_id)
        return query.order_by(Comment.created_at.desc())

    @staticmethod
    def create_comment(user, article_id, content, parent_id=None, ip_address=None):
        """
        Add a comment to an article.

        The article must exist and not be blocked; a parent must be a comment
        on the same article. Comments start pending unless written by an admin
        and COMMENT_AUTO_APPROVE_ADMIN is set.
        """
        from app.models import Article, Comment, CommentStatus

        article = db.session.get(Article, article_id)
        if article is None or not (article.is_published or is_admin(user) or article.user_id == user.id):
            raise ResourceNotFound('Article not found')
        if article.is_blocked:
            raise ContentBlocked('Cannot comment on a blocked article')

        NestingService.resolve_parent(
            Comment, parent_id, scope_attr='article_id', scope_id=article.id, parent_attr='parent_id'
        )

        auto_approve = is_admin(user) and current_app.config.get('COMMENT_AUTO_APPROVE_ADMIN', True)
        comment = Comment(
            content=CommentService.clean_content(content),
            article_id=article.id,
            user_id=user.id,
            parent_id=parent_id,
            ip_address=ip_address,
            status=CommentStatus.APPROVED if auto_approve else CommentStatus.PENDING,
        )
        db.session.add(comment)
        return comment

    @staticmethod
    def update_comment(comment, actor, content):
        """Edit a comment's text. Edits by non-admins send it back to moderation."""
        from app.models import CommentStatus

        comment.content = CommentService.clean_content(content)
        if not is_admin(actor):
            comment.status = CommentStatus.PENDING
        return comment

    @staticmethod
    def delete_comment(comment):
        """
        Remove a comment. A comment with replies is replaced by a placeholder
        so the replies keep their place in the thread.

        Returns:
            str: 'deleted' or 'tombstoned'
        """
        from app.models import Comment, DELETED_COMMENT_PLACEHOLDER

        reply_count = db.session.scalar(
            select(func.count(Comment.id)).where(Comment.parent_id == comment.id)
        )
        if reply_count:
            comment.content = DELETED_COMMENT_PLACEHOLDER
            comment.clear_report()
            return 'tombstoned'

        db.session.delete(comment)
        return 'deleted'

    @staticmethod
    def set_status(comment, status):
        from app.models import CommentStatus

        try:
            comment.status = CommentStatus(status)
        except ValueError:
            raise ValidationFailed('Invalid status. Must be one of: pending, approved, rejected')
        return comment

    @staticmethod
    def report(comment, reporter, reason):
        reason = InputSanitizer.sanitize_description(reason, max_length=500)
        if not reason:
            raise ValidationFailed('A reason is required to report a comment')
        comment.report(reporter.id, reason)
        logger.info(f"Comment {comment.id} reported by user {reporter.id}")
        return comment

    @staticmethod
    def count_by_status():
        from app.models import Comment

        rows = db.session.execute(select(Comment.status, func.count(Comment.id)).group_by(Comment.status)).all()
        return {status.value: count for status, count in rows}
