"""
Comment Routes

Reader comments on articles: the public reply tree, posting, editing,
deleting and reporting.
"""

from flask import current_app
from flask_login import current_user, login_required
from app.api import bp
from app.api.forms import CommentForm, CommentUpdateForm, ReportForm
from app.api_auth import ensure_permission, api_success, client_ip
from app.extensions import db, limiter
from app.exceptions import ResourceNotFound
from app.permissions import can_edit, can_delete, is_admin
from app.services import ArticleService, CommentService, feature_required


@bp.route('/articles/<int:article_id>/comments', methods=['GET'])
@feature_required('comments')
def article_comments(article_id):
    """Top-level comments with nested replies. Readers only see approved comments."""
    article = ArticleService.get_by_id(article_id)
    if not article.is_visible_to(current_user) or not (
        article.is_published or is_admin(current_user) or getattr(current_user, 'id', None) == article.user_id
    ):
        raise ResourceNotFound('Article not found')

    return api_success(CommentService.tree_for_article(article, viewer=current_user))


@bp.route('/comments', methods=['POST'])
@login_required
@feature_required('comments')
@limiter.limit(lambda: current_app.config.get("RATELIMIT_COMMENT", "10 per minute"))
def create_comment():
    form = CommentForm.from_json().validate_or_raise()

    comment = CommentService.create_comment(
        current_user,
        article_id=form.article_id.data,
        content=form.content.data,
        parent_id=form.parent_id.data,
        ip_address=client_ip(),
    )
    db.session.commit()

    message = 'Comment posted' if comment.is_approved else 'Comment submitted and awaiting moderation'
    return api_success(comment.to_dict(), message, 201)


@bp.route('/comments/<int:comment_id>', methods=['PUT'])
@login_required
@feature_required('comments')
def update_comment(comment_id):
    comment = CommentService.get_by_id(comment_id)
    ensure_permission(can_edit(current_user, comment), 'You do not have permission to edit this comment')

    form = CommentUpdateForm.from_json().validate_or_raise()
    CommentService.update_comment(comment, current_user, form.content.data)
    db.session.commit()

    return api_success(comment.to_dict(), 'Comment updated successfully')


@bp.route('/comments/<int:comment_id>', methods=['DELETE'])
@login_required
def delete_comment(comment_id):
    comment = CommentService.get_by_id(comment_id)
    ensure_permission(can_delete(current_user, comment), 'You do not have permission to delete this comment')

    outcome = CommentService.delete_comment(comment)
    db.session.commit()

    return api_success({'outcome': outcome}, 'Comment deleted successfully')


@bp.route('/comments/<int:comment_id>/report', methods=['POST'])
@login_required
@limiter.limit(lambda: current_app.config.get("RATELIMIT_COMMENT", "10 per minute"))
def report_comment(comment_id):
    comment = CommentService.get_by_id(comment_id)
    form = ReportForm.from_json().validate_or_raise()

    CommentService.report(comment, current_user, form.reason.data)
    db.session.commit()

    return api_success(message='Comment reported. Thank you for helping keep the discussion civil.')
