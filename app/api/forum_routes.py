"""
Forum Routes

Categories, threads and threaded comments. Every route sits behind the
'forum' feature flag and requires a logged-in user; posting additionally
requires the author or admin role and no active forum ban.
"""

from flask import current_app, request
from flask_login import current_user, login_required
from app.api import bp
from app.api.forms import (
    CategoryForm, CategoryUpdateForm, ThreadForm, ThreadUpdateForm,
    ForumCommentForm, ForumCommentUpdateForm
)
from app.api_auth import api_success, api_paginated_response, get_pagination_args
from app.exceptions import ValidationFailed, ResourceNotFound
from app.extensions import db, limiter
from app.security import InputSanitizer
from app.services import ForumService, feature_required


def _forum_post_limit():
    return current_app.config.get("RATELIMIT_FORUM_POST", "20 per minute")


# ==================== Categories ====================

@bp.route('/forum/categories', methods=['GET'])
@feature_required('forum')
@login_required
def list_categories():
    return api_success(ForumService.category_list(viewer=current_user))


@bp.route('/forum/categories/<slug>', methods=['GET'])
@feature_required('forum')
@login_required
def get_category(slug):
    """A category with its threads, pinned first."""
    category = ForumService.get_category_by_slug(slug, viewer=current_user)
    threads = db.session.scalars(
        ForumService.thread_list_query(viewer=current_user, category_id=category.id)
    ).all()
    counts = ForumService.comment_counts([thread.id for thread in threads], viewer=current_user)

    data = category.to_dict(thread_count=len(threads))
    data['threads'] = [
        thread.to_dict(comment_count=counts.get(thread.id, 0), include_content=False) for thread in threads
    ]
    return api_success(data)


@bp.route('/forum/categories', methods=['POST'])
@feature_required('forum')
@login_required
@limiter.limit(_forum_post_limit)
def create_category():
    form = CategoryForm.from_json().validate_or_raise()
    category = ForumService.create_category(
        current_user, form.name.data, description=form.description.data, slug=form.slug.data or None
    )
    db.session.commit()
    return api_success(category.to_dict(thread_count=0), 'Category created successfully', 201)


@bp.route('/forum/categories/<int:category_id>', methods=['PUT'])
@feature_required('forum')
@login_required
def update_category(category_id):
    category = ForumService.get_category(category_id)
    form = CategoryUpdateForm.from_json().validate_or_raise()

    ForumService.update_category(
        current_user, category,
        name=form.name.data or None,
        description=(form.description.data or '') if form.provided('description') else None,
        slug=form.slug.data if form.provided('slug') else None,
    )
    db.session.commit()
    return api_success(category.to_dict(), 'Category updated successfully')


@bp.route('/forum/categories/<int:category_id>', methods=['DELETE'])
@feature_required('forum')
@login_required
def delete_category(category_id):
    category = ForumService.get_category(category_id)
    ForumService.delete_category(current_user, category)
    db.session.commit()
    return api_success(message='Category deleted successfully')


# ==================== Threads ====================

@bp.route('/forum/threads', methods=['GET'])
@feature_required('forum')
@login_required
def list_threads():
    """
    List threads.

    Query params: category (id), sort ('pinned' default, or 'recent'), page, per_page.
    """
    category_id = request.args.get('category')
    if category_id:
        try:
            category_id = InputSanitizer.sanitize_positive_integer(category_id)
        except ValueError:
            raise ValidationFailed('Invalid category ID')
    else:
        category_id = None

    query = ForumService.thread_list_query(
        viewer=current_user, category_id=category_id, sort=request.args.get('sort', 'pinned')
    )
    page, per_page = get_pagination_args()
    pagination = db.paginate(query, page=page, per_page=per_page, error_out=False)

    threads = pagination.items
    counts = ForumService.comment_counts([thread.id for thread in threads], viewer=current_user)
    items = [
        thread.to_dict(comment_count=counts.get(thread.id, 0), include_content=False) for thread in threads
    ]
    return api_paginated_response(items, page, per_page, pagination.total or 0)


@bp.route('/forum/threads/<slug>', methods=['GET'])
@feature_required('forum')
@login_required
def get_thread(slug):
    """A thread with its comments, oldest first. Each read counts one view."""
    thread, comments = ForumService.get_thread_for_reader(slug, viewer=current_user)
    db.session.commit()

    data = thread.to_dict(comment_count=len(comments))
    data['comments'] = [comment.to_dict() for comment in comments]
    return api_success(data)


@bp.route('/forum/threads', methods=['POST'])
@feature_required('forum')
@login_required
@limiter.limit(_forum_post_limit)
def create_thread():
    form = ThreadForm.from_json().validate_or_raise()
    thread = ForumService.create_thread(
        current_user,
        category_id=form.category_id.data,
        title=form.title.data,
        content=form.content.data,
        slug=form.slug.data or None,
    )
    db.session.commit()
    return api_success(thread.to_dict(comment_count=0), 'Thread created successfully', 201)


@bp.route('/forum/threads/<int:thread_id>', methods=['PUT'])
@feature_required('forum')
@login_required
def update_thread(thread_id):
    thread = ForumService.get_thread(thread_id)
    form = ThreadUpdateForm.from_json().validate_or_raise()

    ForumService.update_thread(current_user, thread, title=form.title.data, content=form.content.data)
    db.session.commit()
    return api_success(thread.to_dict(), 'Thread updated successfully')


@bp.route('/forum/threads/<int:thread_id>', methods=['DELETE'])
@feature_required('forum')
@login_required
def delete_thread(thread_id):
    thread = ForumService.get_thread(thread_id)
    ForumService.delete_thread(current_user, thread)
    db.session.commit()
    return api_success(message='Thread deleted successfully')


# ==================== Comments ====================

@bp.route('/forum/threads/<int:thread_id>/comments', methods=['GET'])
@feature_required('forum')
@login_required
def list_thread_comments(thread_id):
    thread = ForumService.get_thread(thread_id)
    if not thread.is_visible_to(current_user):
        raise ResourceNotFound('Thread not found')
    return api_success([comment.to_dict() for comment in ForumService.thread_comments(thread, current_user)])


@bp.route('/forum/comments', methods=['POST'])
@feature_required('forum')
@login_required
@limiter.limit(_forum_post_limit)
def create_forum_comment():
    form = ForumCommentForm.from_json().validate_or_raise()
    comment = ForumService.create_comment(
        current_user,
        thread_id=form.thread_id.data,
        content=form.content.data,
        parent_comment_id=form.parent_comment_id.data,
    )
    db.session.commit()
    return api_success(comment.to_dict(), 'Comment posted successfully', 201)


@bp.route('/forum/comments/<int:comment_id>', methods=['PUT'])
@feature_required('forum')
@login_required
def update_forum_comment(comment_id):
    comment = ForumService.get_comment(comment_id)
    form = ForumCommentUpdateForm.from_json().validate_or_raise()

    ForumService.update_comment(current_user, comment, form.content.data)
    db.session.commit()
    return api_success(comment.to_dict(), 'Comment updated successfully')


@bp.route('/forum/comments/<int:comment_id>', methods=['DELETE'])
@feature_required('forum')
@login_required
def delete_forum_comment(comment_id):
    comment = ForumService.get_comment(comment_id)
    ForumService.delete_comment(current_user, comment)
    db.session.commit()
    return api_success(message='Comment deleted successfully')
