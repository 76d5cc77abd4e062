# app/admin/routes.py
"""
Admin routes: content moderation, the comment queue, forum tools, the
newsletter list, the contact inbox, feature flags and user roles.

Every route requires an admin session.
"""

from flask import request, current_app, Response
from flask_login import current_user
from sqlalchemy import select, func
from app.admin import bp
from app.api.forms import MoveThreadForm, FeatureForm, json_bool
from app.api_auth import (
    api_admin_required, api_success, api_paginated_response, paginate_query, get_bool_arg, get_json_body
)
from app.exceptions import ResourceNotFound, ValidationFailed
from app.extensions import db, limiter
from app.logging_config import log_moderation_action
from app.models import User, Role, Comment, ForumCategory, ForumThread, ForumComment
from app.permissions import coerce_role
from app.security import InputSanitizer, SQLInjectionPrevention
from app.services import (
    ArticleService, CommentService, ModerationService, BanService,
    NewsletterService, ContactService, FeatureService
)


def _admin_action_limit():
    return current_app.config.get("RATELIMIT_ADMIN_ACTION", "60 per minute")


# --- Dashboard Route ---
@bp.route('/stats', methods=['GET'])
@api_admin_required
def dashboard_stats():
    """Counts for the admin dashboard."""
    return api_success({
        'users': db.session.scalar(select(func.count(User.id))) or 0,
        'articles': ArticleService.count_by_status(),
        'comments': CommentService.count_by_status(),
        'reported_comments': db.session.scalar(
            select(func.count(Comment.id)).where(Comment.reported.is_(True))
        ) or 0,
        'active_forum_bans': BanService.count_active_bans(),
    })


# ==================== Articles ====================

@bp.route('/articles/blocked', methods=['GET'])
@api_admin_required
def blocked_articles():
    items, page, per_page, total = paginate_query(
        ModerationService.blocked_articles_query(),
        lambda article: article.to_dict(include_content=False)
    )
    return api_paginated_response(items, page, per_page, total)


@bp.route('/articles/<int:article_id>/block', methods=['PUT'])
@api_admin_required
@limiter.limit(_admin_action_limit)
def block_article(article_id):
    article = ArticleService.get_by_id(article_id)
    data = get_json_body()

    ModerationService.block_article(current_user, article, reason=data.get('reason'))
    db.session.commit()
    return api_success(article.to_dict(include_content=False), 'Article blocked successfully')


@bp.route('/articles/<int:article_id>/unblock', methods=['PUT'])
@api_admin_required
@limiter.limit(_admin_action_limit)
def unblock_article(article_id):
    article = ArticleService.get_by_id(article_id)

    ModerationService.unblock_article(current_user, article)
    db.session.commit()
    return api_success(article.to_dict(include_content=False), 'Article unblocked successfully')


# ==================== Comments ====================

@bp.route('/comments', methods=['GET'])
@api_admin_required
def list_comments():
    """Query params: status (pending/approved/rejected/all), reported (true/false), article_id."""
    article_id = request.args.get('article_id')
    if article_id:
        try:
            article_id = InputSanitizer.sanitize_positive_integer(article_id)
        except ValueError:
            raise ValidationFailed('Invalid article ID')

    query = CommentService.admin_query(
        status=request.args.get('status') or None,
        reported=get_bool_arg('reported'),
        article_id=article_id or None,
    )
    items, page, per_page, total = paginate_query(query, lambda comment: comment.to_dict(include_report=True))
    return api_paginated_response(items, page, per_page, total)


@bp.route('/comments/<int:comment_id>/status', methods=['PUT'])
@api_admin_required
def set_comment_status(comment_id):
    comment = CommentService.get_by_id(comment_id)
    data = get_json_body()

    CommentService.set_status(comment, data.get('status'))
    db.session.commit()

    log_moderation_action(current_user.id, f'comment_{comment.status.value}', 'comment', comment.id)
    return api_success(comment.to_dict(include_report=True), 'Comment status updated')


@bp.route('/comments/<int:comment_id>/clear-report', methods=['PUT'])
@api_admin_required
def clear_comment_report(comment_id):
    comment = CommentService.get_by_id(comment_id)
    comment.clear_report()
    db.session.commit()

    log_moderation_action(current_user.id, 'clear_report', 'comment', comment.id)
    return api_success(comment.to_dict(include_report=True), 'Report cleared')


# ==================== Forum ====================

def _forum_block(kind, entity_id):
    data = get_json_body()
    block = json_bool(data, 'block')

    entity = ModerationService.set_forum_block(current_user, kind, entity_id, block, reason=data.get('reason'))
    db.session.commit()

    payload = entity.to_dict(include_content=False) if kind == 'thread' else entity.to_dict()
    return api_success(payload, f"{kind.capitalize()} {'blocked' if block else 'unblocked'} successfully")


@bp.route('/forum/categories/<int:category_id>/block', methods=['PUT'])
@api_admin_required
def block_forum_category(category_id):
    return _forum_block('category', category_id)


@bp.route('/forum/threads/<int:thread_id>/block', methods=['PUT'])
@api_admin_required
def block_forum_thread(thread_id):
    return _forum_block('thread', thread_id)


@bp.route('/forum/comments/<int:comment_id>/block', methods=['PUT'])
@api_admin_required
def block_forum_comment(comment_id):
    return _forum_block('comment', comment_id)


@bp.route('/forum/threads/<int:thread_id>/lock', methods=['PUT'])
@api_admin_required
def lock_forum_thread(thread_id):
    lock = json_bool(get_json_body(), 'lock')
    thread = ModerationService.set_thread_lock(current_user, thread_id, lock)
    db.session.commit()
    return api_success(thread.to_dict(include_content=False),
                       f"Thread {'locked' if lock else 'unlocked'} successfully")


@bp.route('/forum/threads/<int:thread_id>/pin', methods=['PUT'])
@api_admin_required
def pin_forum_thread(thread_id):
    pin = json_bool(get_json_body(), 'pin')
    thread = ModerationService.set_thread_pin(current_user, thread_id, pin)
    db.session.commit()
    return api_success(thread.to_dict(include_content=False),
                       f"Thread {'pinned' if pin else 'unpinned'} successfully")


@bp.route('/forum/threads/<int:thread_id>/move', methods=['PUT'])
@api_admin_required
def move_forum_thread(thread_id):
    form = MoveThreadForm.from_json().validate_or_raise()
    thread = ModerationService.move_thread(current_user, thread_id, form.category_id.data)
    db.session.commit()
    return api_success(thread.to_dict(include_content=False), 'Thread moved successfully')


@bp.route('/forum/users/<int:user_id>/ban', methods=['POST'])
@api_admin_required
@limiter.limit(_admin_action_limit)
def ban_forum_user(user_id):
    """
    Body: {"ban": true, "reason": "...", "duration_days": 7} to ban (no duration
    means permanent), or {"ban": false} to lift the ban.
    """
    data = get_json_body()
    ban = json_bool(data, 'ban')

    duration_days = data.get('duration_days')
    if duration_days is not None:
        try:
            duration_days = InputSanitizer.sanitize_positive_integer(duration_days, max_val=3650)
        except ValueError:
            raise ValidationFailed('duration_days must be a positive number of days')

    record = ModerationService.set_user_ban(
        current_user, user_id, ban, reason=data.get('reason'), duration_days=duration_days
    )
    db.session.commit()

    if record is None:
        return api_success(message='User unbanned from forum successfully')
    return api_success(record.to_dict(), 'User banned from forum successfully')


@bp.route('/forum/bans', methods=['GET'])
@api_admin_required
def list_forum_bans():
    items, page, per_page, total = paginate_query(BanService.active_bans_query())
    return api_paginated_response(items, page, per_page, total)


@bp.route('/forum/stats', methods=['GET'])
@api_admin_required
def forum_stats():
    return api_success(ModerationService.forum_stats())


@bp.route('/forum/blocked', methods=['GET'])
@api_admin_required
def forum_blocked_content():
    return api_success(ModerationService.blocked_forum_content())


# ==================== Newsletter ====================

@bp.route('/newsletter/subscribers', methods=['GET'])
@api_admin_required
def newsletter_subscribers():
    query = NewsletterService.subscribers_query(request.args.get('status', 'active'))
    items, page, per_page, total = paginate_query(query)
    return api_paginated_response(items, page, per_page, total)


@bp.route('/newsletter/export', methods=['GET'])
@api_admin_required
def newsletter_export():
    csv_text = NewsletterService.export_csv(request.args.get('status', 'active'))
    current_app.logger.info(f"Admin {current_user.id} exported the newsletter list")
    return Response(
        csv_text,
        mimetype='text/csv',
        headers={'Content-Disposition': 'attachment; filename=newsletter-subscribers.csv'}
    )


# ==================== Contact Inbox ====================

@bp.route('/contacts', methods=['GET'])
@api_admin_required
def list_contacts():
    """Query params: status, search, sort_by, sort_order (asc/desc)."""
    query = ContactService.list_query(
        status=request.args.get('status') or None,
        search=request.args.get('search') or None,
        sort_by=request.args.get('sort_by', 'created_at'),
        sort_order=request.args.get('sort_order', 'desc'),
    )
    items, page, per_page, total = paginate_query(query)
    return api_paginated_response(items, page, per_page, total)


@bp.route('/contacts/stats', methods=['GET'])
@api_admin_required
def contact_stats():
    return api_success(ContactService.stats())


@bp.route('/contacts/<int:message_id>', methods=['GET'])
@api_admin_required
def get_contact(message_id):
    contact = ContactService.open_message(message_id)
    db.session.commit()
    return api_success(contact.to_dict())


@bp.route('/contacts/<int:message_id>/status', methods=['PUT'])
@api_admin_required
def set_contact_status(message_id):
    contact = ContactService.get_by_id(message_id)
    data = get_json_body()

    ContactService.set_status(contact, data.get('status'))
    db.session.commit()
    return api_success({'id': contact.id, 'status': contact.status.value}, 'Contact message status updated')


@bp.route('/contacts/<int:message_id>', methods=['DELETE'])
@api_admin_required
def delete_contact(message_id):
    ContactService.delete(ContactService.get_by_id(message_id))
    db.session.commit()
    return api_success(message='Contact message deleted')


# ==================== Feature Flags ====================

@bp.route('/features', methods=['GET'])
@api_admin_required
def list_features():
    from app.models import Feature
    features = db.session.scalars(select(Feature).order_by(Feature.name)).all()
    return api_success([feature.to_dict() for feature in features])


@bp.route('/features', methods=['POST'])
@api_admin_required
def create_feature():
    form = FeatureForm.from_json().validate_or_raise()
    enabled = json_bool(form.raw, 'enabled', default=False)

    feature = FeatureService.create(form.name.data, enabled=enabled, description=form.description.data or None)
    db.session.commit()
    return api_success(feature.to_dict(), 'Feature created', 201)


@bp.route('/features/<name>', methods=['PUT'])
@api_admin_required
def toggle_feature(name):
    """Body: {"enabled": true|false}. Omitting 'enabled' flips the current value."""
    data = get_json_body()
    if 'enabled' in data:
        enabled = json_bool(data, 'enabled')
    else:
        enabled = not FeatureService.is_enabled(name)

    feature = FeatureService.set_enabled(name, enabled, description=data.get('description'))
    db.session.commit()

    log_moderation_action(current_user.id, 'enable' if enabled else 'disable', 'feature', name)
    return api_success(feature.to_dict(), f"Feature '{name}' {'enabled' if enabled else 'disabled'}")


@bp.route('/features/<name>', methods=['DELETE'])
@api_admin_required
def delete_feature(name):
    FeatureService.delete(name)
    db.session.commit()
    return api_success(message=f"Feature '{name}' deleted")


# ==================== Users ====================

@bp.route('/users', methods=['GET'])
@api_admin_required
def list_users():
    query = select(User).order_by(User.created_at.desc())

    role = request.args.get('role')
    if role:
        role_value = coerce_role(role)
        if role_value is None:
            raise ValidationFailed(f'Invalid role: {role}')
        query = query.where(User.role == role_value)

    search = request.args.get('search')
    if search:
        pattern = f"%{SQLInjectionPrevention.sanitize_for_like(search)}%"
        query = query.where(User.username.ilike(pattern, escape='\\') | User.email.ilike(pattern, escape='\\'))

    def serialize(user):
        data = user.to_dict(include_private=True)
        data['forum_banned'] = BanService.is_banned(user.id)
        return data

    items, page, per_page, total = paginate_query(query, serialize)
    return api_paginated_response(items, page, per_page, total)


@bp.route('/users/<int:user_id>/role', methods=['PUT'])
@api_admin_required
@limiter.limit(_admin_action_limit)
def set_user_role(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise ResourceNotFound('User not found')

    role = coerce_role(get_json_body().get('role'))
    if role is None:
        raise ValidationFailed('Role must be one of: ' + ', '.join(r.value for r in Role))
    if user.id == current_user.id and role is not Role.ADMIN:
        raise ValidationFailed('You cannot remove your own admin role')

    previous = user.role
    user.role = role
    db.session.commit()

    log_moderation_action(current_user.id, 'set_role', 'user', user.id, previous=previous.value, new=role.value)
    return api_success(user.to_dict(include_private=True), 'Role updated')
