# app/models/article.py
"""
Article, tag and like models for the blog.

Articles are written by authors and admins, published through a
draft/published/archived status, tagged, liked by readers and
moderated by admins through ModerationMixin.
"""

from datetime import datetime
from enum import Enum
from app.extensions import db
from app.mixins import ModerationMixin


class ArticleStatus(Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


article_tag = db.Table(
    'article_tag',
    db.Column('article_id', db.Integer, db.ForeignKey('article.id', ondelete='CASCADE'), primary_key=True),
    db.Column('tag_id', db.Integer, db.ForeignKey('tag.id', ondelete='CASCADE'), primary_key=True),
)


class Article(ModerationMixin, db.Model):
    """
    Represents a blog article.

    Only published, unblocked articles appear in public listings. Drafts are
    visible to their author and admins; blocked articles likewise.
    """
    __tablename__ = 'article'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    excerpt = db.Column(db.Text, nullable=True)
    featured_image = db.Column(db.String(500), nullable=True)
    status = db.Column(db.Enum(ArticleStatus), default=ArticleStatus.DRAFT, nullable=False, index=True)
    view_count = db.Column(db.Integer, default=0, nullable=False)
    published_at = db.Column(db.DateTime, nullable=True, index=True)

    # Foreign keys
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    author = db.relationship('User', back_populates='articles', foreign_keys=[user_id])
    tags = db.relationship('Tag', secondary=article_tag, back_populates='articles', lazy='selectin')
    likes = db.relationship('ArticleLike', back_populates='article', cascade="all, delete-orphan")
    comments = db.relationship('Comment', back_populates='article', cascade="all, delete-orphan")

    def __repr__(self):
        return f'<Article {self.slug}>'

    @property
    def is_published(self):
        return self.status == ArticleStatus.PUBLISHED

    @property
    def like_count(self):
        return db.session.scalar(
            db.select(db.func.count(ArticleLike.id)).where(ArticleLike.article_id == self.id)
        ) or 0

    def has_user_liked(self, user_id):
        """Check if a specific user has liked this article."""
        return db.session.scalar(
            db.select(ArticleLike.id).where(ArticleLike.article_id == self.id, ArticleLike.user_id == user_id)
        ) is not None

    def publish(self):
        """Move to published, stamping published_at the first time only."""
        self.status = ArticleStatus.PUBLISHED
        if self.published_at is None:
            self.published_at = datetime.utcnow()

    def to_dict(self, include_content=True):
        data = {
            'id': self.id,
            'title': self.title,
            'slug': self.slug,
            'excerpt': self.excerpt,
            'featured_image': self.featured_image,
            'status': self.status.value if self.status else None,
            'view_count': self.view_count or 0,
            'like_count': self.like_count,
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'author': self.author.to_summary() if self.author else None,
            'tags': [tag.to_dict() for tag in self.tags],
        }
        if include_content:
            data['content'] = self.content
        data.update(self.moderation_dict())
        return data


class Tag(db.Model):
    __tablename__ = 'tag'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False)
    slug = db.Column(db.String(50), unique=True, nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    articles = db.relationship('Article', secondary=article_tag, back_populates='tags', lazy='dynamic')

    def __repr__(self):
        return f'<Tag {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
        }


class ArticleLike(db.Model):
    """
    A reader's like on an article.

    Each user can like an article once; liking again removes the like.
    """
    __tablename__ = 'article_like'

    id = db.Column(db.Integer, primary_key=True)
    article_id = db.Column(db.Integer, db.ForeignKey('article.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    article = db.relationship('Article', back_populates='likes')
    user = db.relationship('User', back_populates='likes')

    __table_args__ = (
        db.UniqueConstraint('article_id', 'user_id', name='unique_article_like'),
    )

    def __repr__(self):
        return f'<ArticleLike user={self.user_id} article={self.article_id}>'
