# app/models/user.py

import logging
from datetime import datetime
from enum import Enum
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from . import db

logger = logging.getLogger(__name__)


class Role(Enum):
    """Closed set of account roles. Permission rules in app.permissions cover each one."""
    ADMIN = "admin"
    AUTHOR = "author"
    USER = "user"


class User(UserMixin, db.Model):
    """A registered account: reader, author or administrator."""
    __tablename__ = 'user'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), index=True, unique=True, nullable=False)
    email = db.Column(db.String(255), index=True, unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(Role), default=Role.USER, nullable=False, index=True)
    bio = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    last_login_at = db.Column(db.DateTime, nullable=True)

    # Owned content goes with the account
    articles = db.relationship('Article', back_populates='author', cascade='all, delete-orphan',
                               foreign_keys='Article.user_id')
    comments = db.relationship('Comment', back_populates='author', cascade='all, delete-orphan',
                               foreign_keys='Comment.user_id')
    forum_categories = db.relationship('ForumCategory', back_populates='owner', cascade='all, delete-orphan',
                                       foreign_keys='ForumCategory.user_id')
    forum_threads = db.relationship('ForumThread', back_populates='author', cascade='all, delete-orphan',
                                    foreign_keys='ForumThread.user_id')
    forum_comments = db.relationship('ForumComment', back_populates='author', cascade='all, delete-orphan',
                                     foreign_keys='ForumComment.user_id')
    likes = db.relationship('ArticleLike', back_populates='user', cascade='all, delete-orphan')
    forum_ban = db.relationship('UserForumBan', back_populates='user', uselist=False,
                                cascade='all, delete-orphan', foreign_keys='UserForumBan.user_id')

    def __repr__(self):
        return f'<User {self.username} ({self.role.value if self.role else "?"})>'

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash or not password:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self, include_private=False):
        data = {
            'id': self.id,
            'username': self.username,
            'role': self.role.value if self.role else None,
            'bio': self.bio,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
        if include_private:
            data['email'] = self.email
            data['last_login_at'] = self.last_login_at.isoformat() if self.last_login_at else None
        return data

    def to_summary(self):
        """Minimal author block embedded in content payloads."""
        return {'id': self.id, 'username': self.username}
