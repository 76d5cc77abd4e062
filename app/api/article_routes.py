"""
Article Routes

Public reading of published articles, authoring for authors/admins, and likes.
"""

from flask import current_app, request
from flask_login import current_user, login_required
from app.api import bp
from app.api.forms import ArticleForm, ArticleUpdateForm, json_tags
from app.api_auth import (
    roles_required, ensure_permission, api_success, api_paginated_response, paginate_query
)
from app.extensions import db, limiter
from app.models import Role
from app.permissions import can_edit, can_delete
from app.services import ArticleService


def _summary(article):
    return article.to_dict(include_content=False)


# ==================== Reading ====================

@bp.route('/articles', methods=['GET'])
def list_articles():
    """
    List articles, newest first.

    Query params: author (username), tag (slug), search, status (admins and
    authors filtering on themselves), page, per_page.
    """
    query = ArticleService.list_query(
        viewer=current_user,
        author=request.args.get('author') or None,
        tag=request.args.get('tag') or None,
        search=request.args.get('search') or None,
        status=request.args.get('status') or None,
    )
    items, page, per_page, total = paginate_query(query, _summary)
    return api_paginated_response(items, page, per_page, total)


@bp.route('/articles/liked', methods=['GET'])
@login_required
def liked_articles():
    items, page, per_page, total = paginate_query(ArticleService.liked_articles_query(current_user), _summary)
    return api_paginated_response(items, page, per_page, total)


@bp.route('/articles/<slug>', methods=['GET'])
def get_article(slug):
    article = ArticleService.get_for_reader(slug, viewer=current_user)
    db.session.commit()

    data = article.to_dict(include_content=True)
    data['user_has_liked'] = article.has_user_liked(current_user.id) if current_user.is_authenticated else False
    return api_success(data)


# ==================== Authoring ====================

@bp.route('/articles', methods=['POST'])
@roles_required(Role.AUTHOR, Role.ADMIN)
@limiter.limit(lambda: current_app.config.get("RATELIMIT_ADMIN_ACTION", "60 per minute"))
def create_article():
    form = ArticleForm.from_json().validate_or_raise()

    article = ArticleService.create_article(
        current_user,
        title=form.title.data,
        content=form.content.data,
        status=form.status.data or None,
        slug=form.slug.data or None,
        excerpt=form.excerpt.data or None,
        featured_image=form.featured_image.data or None,
        tags=json_tags(form.raw),
    )
    db.session.commit()

    current_app.logger.info(f"User {current_user.id} created article {article.id}")
    return api_success(article.to_dict(), 'Article created successfully', 201)


@bp.route('/articles/<int:article_id>', methods=['PUT'])
@login_required
def update_article(article_id):
    article = ArticleService.get_by_id(article_id)
    ensure_permission(can_edit(current_user, article), 'You do not have permission to edit this article')

    form = ArticleUpdateForm.from_json().validate_or_raise()

    def provided(name):
        return getattr(form, name).data if form.provided(name) else None

    ArticleService.update_article(
        article,
        title=provided('title'),
        content=provided('content'),
        status=provided('status') or None,
        slug=(form.slug.data or '') if form.provided('slug') else None,
        excerpt=(form.excerpt.data or '') if form.provided('excerpt') else None,
        featured_image=(form.featured_image.data or '') if form.provided('featured_image') else None,
        tags=json_tags(form.raw),
    )
    db.session.commit()

    return api_success(article.to_dict(), 'Article updated successfully')


@bp.route('/articles/<int:article_id>', methods=['DELETE'])
@login_required
def delete_article(article_id):
    article = ArticleService.get_by_id(article_id)
    ensure_permission(can_delete(current_user, article), 'You do not have permission to delete this article')

    ArticleService.delete_article(article)
    db.session.commit()

    return api_success(message='Article deleted successfully')


# ==================== Likes ====================

@bp.route('/articles/<int:article_id>/like', methods=['POST'])
@login_required
def toggle_like(article_id):
    article = ArticleService.get_by_id(article_id)
    liked, like_count = ArticleService.toggle_like(article, current_user)
    db.session.commit()

    return api_success(
        {'liked': liked, 'like_count': like_count},
        'Article liked' if liked else 'Article unliked'
    )


@bp.route('/articles/<int:article_id>/like', methods=['GET'])
def like_status(article_id):
    article = ArticleService.get_by_id(article_id)
    liked = article.has_user_liked(current_user.id) if current_user.is_authenticated else False
    return api_success({'liked': liked, 'like_count': article.like_count})
