"""
Article Service - listing, visibility, authoring and likes for blog articles.
"""

import logging
from flask import current_app
from sqlalchemy import select, func, or_
from app.extensions import db
from app.exceptions import ResourceNotFound, ContentBlocked, Conflict, ValidationFailed
from app.permissions import is_admin
from app.security import InputSanitizer, SQLInjectionPrevention
from app.services.counter_service import CounterService
from app.services.tag_service import TagService, invalidate_tag_cache
from app.utils import slugify, make_excerpt, ARTICLE_SLUG_LENGTH

logger = logging.getLogger(__name__)


class ArticleService:
    """Service for article reads and writes. Callers commit."""

    @staticmethod
    def unique_slug(base, exclude_id=None):
        """
        Return `base` if unused, else the first free `base-1`, `base-2`, ...

        Suffixes are fitted inside the column width by shortening the base.
        """
        from app.models import Article

        def taken(candidate):
            query = select(Article.id).where(Article.slug == candidate)
            if exclude_id is not None:
                query = query.where(Article.id != exclude_id)
            return db.session.scalar(query) is not None

        if not taken(base):
            return base

        counter = 1
        while True:
            suffix = f'-{counter}'
            candidate = base[:ARTICLE_SLUG_LENGTH - len(suffix)].rstrip('-') + suffix
            if not taken(candidate):
                return candidate
            counter += 1

    @staticmethod
    def list_query(viewer=None, author=None, tag=None, search=None, status=None):
        """
        Build the listing query.

        Readers only ever see published, unblocked articles. Admins may ask
        for any status ('all' included) and see blocked rows; an author
        filtering on their own username may also pick a status.
        """
        from app.models import Article, ArticleStatus, User, Tag

        query = select(Article)
        viewer_is_admin = is_admin(viewer)
        own_listing = (
            author is not None
            and viewer is not None
            and getattr(viewer, 'is_authenticated', False)
            and viewer.username == author
        )

        if status and (viewer_is_admin or own_listing):
            if status != 'all':
                try:
                    query = query.where(Article.status == ArticleStatus(status))
                except ValueError:
                    raise ValidationFailed(f'Invalid status: {status}')
        else:
            query = query.where(Article.status == ArticleStatus.PUBLISHED)

        if not viewer_is_admin:
            if own_listing:
                query = query.where(or_(Article.is_blocked.is_(False), Article.user_id == viewer.id))
            else:
                query = query.where(Article.is_blocked.is_(False))

        if author:
            query = query.join(User, User.id == Article.user_id).where(User.username == author)

        if tag:
            query = query.where(Article.tags.any(Tag.slug == tag))

        if search:
            pattern = f"%{SQLInjectionPrevention.sanitize_for_like(search)}%"
            query = query.where(or_(
                Article.title.ilike(pattern, escape='\\'),
                Article.excerpt.ilike(pattern, escape='\\'),
                Article.content.ilike(pattern, escape='\\'),
            ))

        return query.order_by(Article.published_at.desc(), Article.created_at.desc())

    @staticmethod
    def get_by_id(article_id):
        from app.models import Article

        article = db.session.get(Article, article_id)
        if article is None:
            raise ResourceNotFound('Article not found')
        return article

    @staticmethod
    def get_for_reader(slug, viewer=None):
        """
        Load an article by slug for display, enforcing visibility, and count the view.

        Blocked articles are readable by their author and admins only (403 for
        everyone else). Unpublished articles are hidden (404) from everyone but
        their author and admins. Views are only counted for published,
        unblocked articles.
        """
        from app.models import Article

        article = db.session.scalar(select(Article).where(Article.slug == slug))
        if article is None:
            raise ResourceNotFound('Article not found')

        if not article.is_visible_to(viewer):
            raise ContentBlocked('This article has been blocked')

        is_owner = viewer is not None and getattr(viewer, 'is_authenticated', False) and viewer.id == article.user_id
        if not article.is_published and not (is_owner or is_admin(viewer)):
            raise ResourceNotFound('Article not found')

        if article.is_published and not article.is_blocked:
            CounterService.record_view(article)

        return article

    @staticmethod
    def create_article(author, title, content, status=None, slug=None, excerpt=None,
                       featured_image=None, tags=None):
        from app.models import Article, ArticleStatus

        title = InputSanitizer.sanitize_description(title, max_length=255)
        content = InputSanitizer.sanitize_html(content)
        if not title or not content:
            raise ValidationFailed('Title and content are required')

        base_slug = slugify(slug or title, ARTICLE_SLUG_LENGTH)
        if not base_slug:
            raise ValidationFailed('Could not derive a slug from the title')

        article = Article(
            title=title,
            slug=ArticleService.unique_slug(base_slug),
            content=content,
            excerpt=InputSanitizer.sanitize_description(excerpt, max_length=None) or make_excerpt(
                InputSanitizer.strip_tags(content), current_app.config.get('EXCERPT_LENGTH', 200)
            ),
            featured_image=featured_image or None,
            status=ArticleStatus(status) if status else ArticleStatus.DRAFT,
            user_id=author.id,
        )
        if article.status == ArticleStatus.PUBLISHED:
            article.publish()

        if tags:
            article.tags = TagService.find_or_create(tags)

        db.session.add(article)
        logger.info(f"Article '{article.slug}' created by user {author.id} ({article.status.value})")
        return article

    @staticmethod
    def update_article(article, title=None, content=None, status=None, slug=None, excerpt=None,
                       featured_image=None, tags=None):
        """Apply the given fields. None means "leave unchanged"; an empty slug means "regenerate"."""
        from app.models import ArticleStatus

        if title is not None:
            title = InputSanitizer.sanitize_description(title, max_length=255)
            if not title:
                raise ValidationFailed('Title cannot be empty')
            article.title = title

        if content is not None:
            content = InputSanitizer.sanitize_html(content)
            if not content:
                raise ValidationFailed('Content cannot be empty')
            article.content = content

        if slug is not None:
            if slug.strip():
                new_slug = slugify(slug, ARTICLE_SLUG_LENGTH)
                if ArticleService.unique_slug(new_slug, exclude_id=article.id) != new_slug:
                    raise Conflict('An article with this slug already exists')
            else:
                new_slug = ArticleService.unique_slug(slugify(article.title, ARTICLE_SLUG_LENGTH), exclude_id=article.id)
            article.slug = new_slug

        if excerpt is not None:
            article.excerpt = InputSanitizer.sanitize_description(excerpt, max_length=None) or make_excerpt(
                InputSanitizer.strip_tags(article.content), current_app.config.get('EXCERPT_LENGTH', 200)
            )

        if featured_image is not None:
            article.featured_image = featured_image or None

        if status is not None:
            new_status = ArticleStatus(status)
            if new_status == ArticleStatus.PUBLISHED:
                article.publish()
            else:
                article.status = new_status

        if tags is not None:
            article.tags = TagService.find_or_create(tags)
            invalidate_tag_cache()

        return article

    @staticmethod
    def delete_article(article):
        logger.info(f"Article '{article.slug}' deleted")
        db.session.delete(article)
        invalidate_tag_cache()

    @staticmethod
    def toggle_like(article, user):
        """
        Like or unlike an article.

        Returns:
            tuple: (liked: bool, like_count: int)
        """
        from app.models import ArticleLike

        if article.is_blocked:
            raise ContentBlocked('Cannot like a blocked article')
        if not article.is_published:
            raise ResourceNotFound('Article not found')

        existing = db.session.scalar(
            select(ArticleLike).where(ArticleLike.article_id == article.id, ArticleLike.user_id == user.id)
        )
        if existing:
            db.session.delete(existing)
            liked = False
        else:
            db.session.add(ArticleLike(article_id=article.id, user_id=user.id))
            liked = True

        db.session.flush()
        return liked, article.like_count

    @staticmethod
    def liked_articles_query(user):
        from app.models import Article, ArticleLike, ArticleStatus

        return (
            select(Article)
            .join(ArticleLike, ArticleLike.article_id == Article.id)
            .where(
                ArticleLike.user_id == user.id,
                Article.status == ArticleStatus.PUBLISHED,
                Article.is_blocked.is_(False)
            )
            .order_by(ArticleLike.created_at.desc())
        )

    @staticmethod
    def count_by_status():
        from app.models import Article

        rows = db.session.execute(select(Article.status, func.count(Article.id)).group_by(Article.status)).all()
        return {status.value: count for status, count in rows}
