"""
Tag Service - tag lookup, find-or-create and article counts.
"""

import logging
from flask import current_app
from sqlalchemy import select, func
from app.extensions import db, cache
from app.exceptions import ResourceNotFound, Conflict, ValidationFailed
from app.security import InputSanitizer, SQLInjectionPrevention
from app.utils import slugify, TAG_SLUG_LENGTH

logger = logging.getLogger(__name__)

TAG_LIST_CACHE_KEY = 'tag_list_with_counts'


def invalidate_tag_cache():
    cache.delete(TAG_LIST_CACHE_KEY)


class TagService:

    @staticmethod
    def normalize_name(name):
        cleaned = InputSanitizer.sanitize_description(name, max_length=50)
        if not cleaned:
            raise ValidationFailed('Tag name is required')
        return cleaned

    @staticmethod
    def find_or_create(names):
        """
        Resolve tag names to Tag rows, creating missing ones.

        Names are matched case-insensitively and de-duplicated by slug.

        Returns:
            list: Tag instances in input order
        """
        from app.models import Tag

        tags = []
        seen_slugs = set()
        created = False

        for raw_name in names or []:
            name = InputSanitizer.sanitize_description(raw_name, max_length=50)
            slug = slugify(name, TAG_SLUG_LENGTH)
            if not slug or slug in seen_slugs:
                continue
            seen_slugs.add(slug)

            tag = db.session.scalar(
                select(Tag).where((func.lower(Tag.name) == name.lower()) | (Tag.slug == slug))
            )
            if tag is None:
                tag = Tag(name=name, slug=slug)
                db.session.add(tag)
                created = True
            tags.append(tag)

        if created:
            invalidate_tag_cache()
        return tags

    @staticmethod
    def list_with_counts(search=None):
        """All tags alphabetically, each with the number of published articles using it."""
        if not search:
            cached = cache.get(TAG_LIST_CACHE_KEY)
            if cached is not None:
                return cached

        from app.models import Tag, Article, ArticleStatus, article_tag

        article_count = (
            select(func.count(article_tag.c.article_id))
            .join(Article, Article.id == article_tag.c.article_id)
            .where(
                article_tag.c.tag_id == Tag.id,
                Article.status == ArticleStatus.PUBLISHED,
                Article.is_blocked.is_(False)
            )
            .scalar_subquery()
        )

        query = select(Tag, article_count.label('article_count')).order_by(Tag.name.asc())
        if search:
            pattern = f"%{SQLInjectionPrevention.sanitize_for_like(search)}%"
            query = query.where(
                Tag.name.ilike(pattern, escape='\\') | Tag.description.ilike(pattern, escape='\\')
            )

        results = []
        for tag, count in db.session.execute(query).all():
            item = tag.to_dict()
            item['article_count'] = count or 0
            results.append(item)

        if not search:
            cache.set(TAG_LIST_CACHE_KEY, results, timeout=current_app.config.get('CACHE_TIMEOUT_TAGS', 600))
        return results

    @staticmethod
    def popular(limit=10):
        tags = [tag for tag in TagService.list_with_counts() if tag['article_count'] > 0]
        tags.sort(key=lambda tag: (-tag['article_count'], tag['name']))
        return tags[:limit]

    @staticmethod
    def get_by_slug(slug):
        from app.models import Tag

        tag = db.session.scalar(select(Tag).where(Tag.slug == slug))
        if tag is None:
            raise ResourceNotFound('Tag not found')
        return tag

    @staticmethod
    def create(name, description=None):
        from app.models import Tag

        name = TagService.normalize_name(name)
        slug = slugify(name, TAG_SLUG_LENGTH)
        existing = db.session.scalar(select(Tag).where((func.lower(Tag.name) == name.lower()) | (Tag.slug == slug)))
        if existing is not None:
            raise Conflict('Tag already exists')

        tag = Tag(name=name, slug=slug, description=InputSanitizer.sanitize_description(description) or None)
        db.session.add(tag)
        invalidate_tag_cache()
        return tag

    @staticmethod
    def update(tag, name=None, description=None):
        from app.models import Tag

        if name is not None:
            name = TagService.normalize_name(name)
            slug = slugify(name, TAG_SLUG_LENGTH)
            clash = db.session.scalar(
                select(Tag).where(Tag.id != tag.id, (func.lower(Tag.name) == name.lower()) | (Tag.slug == slug))
            )
            if clash is not None:
                raise Conflict('Tag already exists')
            tag.name = name
            tag.slug = slug

        if description is not None:
            tag.description = InputSanitizer.sanitize_description(description) or None

        invalidate_tag_cache()
        return tag

    @staticmethod
    def delete(tag):
        db.session.delete(tag)
        invalidate_tag_cache()
