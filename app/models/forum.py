# app/models/forum.py
"""
Forum models: categories, threads, threaded comments and forum bans.

Deleting a category removes its threads, and deleting a thread removes its
comments. Moderator references (blocked_by, banned_by) are SET NULL so the
moderation state survives removal of the moderator's account.
"""

from datetime import datetime
from app.extensions import db
from app.mixins import ModerationMixin


class ForumCategory(ModerationMixin, db.Model):
    __tablename__ = 'forum_category'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(150), unique=True, nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)

    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    owner = db.relationship('User', back_populates='forum_categories', foreign_keys=[user_id])
    threads = db.relationship('ForumThread', back_populates='category', cascade="all, delete-orphan")

    def __repr__(self):
        return f'<ForumCategory {self.slug}>'

    def to_dict(self, thread_count=None):
        data = {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'owner': self.owner.to_summary() if self.owner else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if thread_count is not None:
            data['thread_count'] = thread_count
        data.update(self.moderation_dict())
        return data


class ForumThread(ModerationMixin, db.Model):
    """
    A discussion thread inside a category.

    Locked threads take no new comments and cannot be edited by their author;
    pinned threads sort first in the default listing.
    """
    __tablename__ = 'forum_thread'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(300), unique=True, nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)

    category_id = db.Column(db.Integer, db.ForeignKey('forum_category.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)

    is_pinned = db.Column(db.Boolean, default=False, nullable=False, index=True)
    is_locked = db.Column(db.Boolean, default=False, nullable=False)
    view_count = db.Column(db.Integer, default=0, nullable=False)
    last_activity_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    category = db.relationship('ForumCategory', back_populates='threads')
    author = db.relationship('User', back_populates='forum_threads', foreign_keys=[user_id])
    comments = db.relationship('ForumComment', back_populates='thread', cascade="all, delete-orphan")

    def __repr__(self):
        return f'<ForumThread {self.slug}>'

    @property
    def can_receive_comments(self):
        return not self.is_locked and not self.is_blocked

    def to_dict(self, comment_count=None, include_content=True):
        data = {
            'id': self.id,
            'title': self.title,
            'slug': self.slug,
            'category_id': self.category_id,
            'category': {'id': self.category.id, 'name': self.category.name, 'slug': self.category.slug}
            if self.category else None,
            'author': self.author.to_summary() if self.author else None,
            'is_pinned': bool(self.is_pinned),
            'is_locked': bool(self.is_locked),
            'view_count': self.view_count or 0,
            'last_activity_at': self.last_activity_at.isoformat() if self.last_activity_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_content:
            data['content'] = self.content
        if comment_count is not None:
            data['comment_count'] = comment_count
        data.update(self.moderation_dict())
        return data


class ForumComment(ModerationMixin, db.Model):
    __tablename__ = 'forum_comment'

    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)

    thread_id = db.Column(db.Integer, db.ForeignKey('forum_thread.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    parent_comment_id = db.Column(db.Integer, db.ForeignKey('forum_comment.id', ondelete='CASCADE'),
                                  nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    thread = db.relationship('ForumThread', back_populates='comments')
    author = db.relationship('User', back_populates='forum_comments', foreign_keys=[user_id])
    parent = db.relationship('ForumComment', remote_side=[id], back_populates='replies')
    replies = db.relationship('ForumComment', back_populates='parent', cascade="all, delete-orphan")

    def __repr__(self):
        return f'<ForumComment {self.id} in Thread {self.thread_id}>'

    def to_dict(self):
        data = {
            'id': self.id,
            'content': self.content,
            'thread_id': self.thread_id,
            'parent_comment_id': self.parent_comment_id,
            'author': self.author.to_summary() if self.author else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        data.update(self.moderation_dict())
        return data


class UserForumBan(db.Model):
    """
    A user's forum ban. There is at most one row per user; banning again
    overwrites it. expires_at NULL means the ban is permanent.
    """
    __tablename__ = 'user_forum_ban'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, unique=True)
    banned_by = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='SET NULL'), nullable=True)
    reason = db.Column(db.Text, nullable=True)
    banned_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = db.relationship('User', back_populates='forum_ban', foreign_keys=[user_id])
    moderator = db.relationship('User', foreign_keys=[banned_by], backref='issued_forum_bans')

    def __repr__(self):
        return f'<UserForumBan user={self.user_id} expires={self.expires_at}>'

    @property
    def is_permanent(self):
        return self.expires_at is None

    def is_active(self, now=None):
        """Active while permanent or until expires_at (exclusive)."""
        if self.expires_at is None:
            return True
        return self.expires_at > (now or datetime.utcnow())

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'user': self.user.to_summary() if self.user else {'id': self.user_id},
            'banned_by': self.banned_by,
            'reason': self.reason,
            'banned_at': self.banned_at.isoformat() if self.banned_at else None,
            'expires_at': self.expires_at.isoformat() if self.expires_at else None,
            'is_permanent': self.is_permanent,
            'is_active': self.is_active(),
        }
