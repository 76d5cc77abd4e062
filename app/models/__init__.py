# beekeeper/app/models/__init__.py

from app.extensions import db

# Import models and association tables/enums from their respective files
from .user import User, Role
from .article import Article, ArticleStatus, ArticleLike, Tag, article_tag
from .comment import Comment, CommentStatus, DELETED_COMMENT_PLACEHOLDER
from .forum import ForumCategory, ForumThread, ForumComment, UserForumBan
from .newsletter import NewsletterSubscriber, SubscriberStatus, generate_unsubscribe_token
from .contact import ContactMessage, ContactStatus
from .feature import Feature, DEFAULT_FEATURES

__all__ = [
    'db',
    'User', 'Role',
    'Article', 'ArticleStatus', 'ArticleLike', 'Tag', 'article_tag',
    'Comment', 'CommentStatus', 'DELETED_COMMENT_PLACEHOLDER',
    'ForumCategory', 'ForumThread', 'ForumComment', 'UserForumBan',
    'NewsletterSubscriber', 'SubscriberStatus', 'generate_unsubscribe_token',
    'ContactMessage', 'ContactStatus',
    'Feature', 'DEFAULT_FEATURES',
]
