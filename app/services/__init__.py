"""
Service layer for business logic.

Services are stateless classes with static methods that operate on model
instances. They add and modify rows but leave committing to the caller.
"""

from .ban_service import BanService
from .counter_service import CounterService
from .nesting_service import NestingService
from .feature_service import FeatureService, feature_required
from .tag_service import TagService
from .article_service import ArticleService
from .comment_service import CommentService
from .forum_service import ForumService
from .moderation_service import ModerationService
from .newsletter_service import NewsletterService
from .contact_service import ContactService

__all__ = [
    'BanService',
    'CounterService',
    'NestingService',
    'FeatureService',
    'feature_required',
    'TagService',
    'ArticleService',
    'CommentService',
    'ForumService',
    'ModerationService',
    'NewsletterService',
    'ContactService',
]
