"""
Feature Service - site feature flags (forum, comments, newsletter).

Lookups are cached with Flask-Caching; every write clears the cached entry.
"""

import logging
from functools import wraps
from flask import current_app
from sqlalchemy import select
from app.extensions import db, cache
from app.exceptions import FeatureDisabled, ResourceNotFound, Conflict

logger = logging.getLogger(__name__)


def _cache_key(name):
    return f'feature_enabled_{name}'


class FeatureService:

    @staticmethod
    def get(name):
        from app.models import Feature
        return db.session.scalar(select(Feature).where(Feature.name == name))

    @staticmethod
    def is_enabled(name):
        """
        True if the named feature is switched on.

        Unknown features fall back to DEFAULT_FEATURES, and are off if not listed there.
        """
        cached = cache.get(_cache_key(name))
        if cached is not None:
            return cached

        from app.models import DEFAULT_FEATURES

        feature = FeatureService.get(name)
        if feature is not None:
            enabled = bool(feature.enabled)
        else:
            enabled = DEFAULT_FEATURES.get(name, (False, None))[0]

        cache.set(_cache_key(name), enabled, timeout=current_app.config.get('CACHE_TIMEOUT_FEATURES', 60))
        return enabled

    @staticmethod
    def status_map():
        """{name: enabled} for the default features plus any stored rows."""
        from app.models import Feature, DEFAULT_FEATURES

        status = {name: enabled for name, (enabled, _) in DEFAULT_FEATURES.items()}
        for feature in db.session.scalars(select(Feature)):
            status[feature.name] = bool(feature.enabled)
        return status

    @staticmethod
    def set_enabled(name, enabled, description=None):
        """Create or update a feature flag. Returns the Feature (not committed)."""
        from app.models import Feature, DEFAULT_FEATURES

        feature = FeatureService.get(name)
        if feature is None:
            default_description = DEFAULT_FEATURES.get(name, (None, None))[1]
            feature = Feature(name=name, description=description or default_description)
            db.session.add(feature)
        elif description is not None:
            feature.description = description

        feature.enabled = bool(enabled)
        cache.delete(_cache_key(name))
        logger.info(f"Feature '{name}' {'enabled' if enabled else 'disabled'}")
        return feature

    @staticmethod
    def create(name, enabled=False, description=None):
        if FeatureService.get(name) is not None:
            raise Conflict(f"Feature '{name}' already exists")
        return FeatureService.set_enabled(name, enabled, description)

    @staticmethod
    def delete(name):
        feature = FeatureService.get(name)
        if feature is None:
            raise ResourceNotFound(f"Feature '{name}' not found")
        db.session.delete(feature)
        cache.delete(_cache_key(name))

    @staticmethod
    def seed_defaults():
        """Insert any DEFAULT_FEATURES rows that are missing. Returns the names added."""
        from app.models import Feature, DEFAULT_FEATURES

        added = []
        for name, (enabled, description) in DEFAULT_FEATURES.items():
            if FeatureService.get(name) is None:
                db.session.add(Feature(name=name, enabled=enabled, description=description))
                cache.delete(_cache_key(name))
                added.append(name)
        return added


def feature_required(name):
    """
    Decorator rejecting requests with 403 while the named feature is disabled.

    Usage:
        @bp.route('/forum/threads')
        @feature_required('forum')
        def list_threads():
            ...
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not FeatureService.is_enabled(name):
                raise FeatureDisabled(name)
            return f(*args, **kwargs)
        return decorated_function
    return decorator
