# app/models/comment.py
"""Reader comments on articles, with nested replies and user reports."""

from datetime import datetime
from enum import Enum
from app.extensions import db

DELETED_COMMENT_PLACEHOLDER = '[This comment has been deleted]'


class CommentStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Comment(db.Model):
    """
    A comment on an article. Replies point at their parent through parent_id;
    removing a comment removes its replies.

    New comments start as pending and are shown publicly once approved.
    """
    __tablename__ = 'comment'

    # Owners may edit/delete their own comments whatever their role
    editable_by_owner_users = True

    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)
    status = db.Column(db.Enum(CommentStatus), default=CommentStatus.PENDING, nullable=False, index=True)
    ip_address = db.Column(db.String(45), nullable=True)

    # Foreign keys
    article_id = db.Column(db.Integer, db.ForeignKey('article.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    parent_id = db.Column(db.Integer, db.ForeignKey('comment.id', ondelete='CASCADE'), nullable=True, index=True)

    # Reporting
    reported = db.Column(db.Boolean, default=False, nullable=False, index=True)
    report_reason = db.Column(db.Text, nullable=True)
    reported_by = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='SET NULL'), nullable=True)
    reported_at = db.Column(db.DateTime, nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    article = db.relationship('Article', back_populates='comments')
    author = db.relationship('User', back_populates='comments', foreign_keys=[user_id])
    reporter = db.relationship('User', foreign_keys=[reported_by], backref='reported_comments')
    parent = db.relationship('Comment', remote_side=[id], back_populates='replies')
    replies = db.relationship('Comment', back_populates='parent', cascade="all, delete-orphan",
                              order_by='Comment.created_at')

    def __repr__(self):
        return f'<Comment {self.id} on Article {self.article_id}>'

    @property
    def is_approved(self):
        return self.status == CommentStatus.APPROVED

    @property
    def is_tombstone(self):
        return self.content == DELETED_COMMENT_PLACEHOLDER

    def report(self, reporter_id, reason):
        self.reported = True
        self.report_reason = reason
        self.reported_by = reporter_id
        self.reported_at = datetime.utcnow()

    def clear_report(self):
        self.reported = False
        self.report_reason = None
        self.reported_by = None
        self.reported_at = None

    def to_dict(self, include_report=False):
        data = {
            'id': self.id,
            'content': self.content,
            'status': self.status.value if self.status else None,
            'article_id': self.article_id,
            'parent_id': self.parent_id,
            'is_deleted': self.is_tombstone,
            'author': self.author.to_summary() if self.author else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_report:
            data.update({
                'reported': bool(self.reported),
                'report_reason': self.report_reason,
                'reported_by': self.reported_by,
                'reported_at': self.reported_at.isoformat() if self.reported_at else None,
                'ip_address': self.ip_address,
            })
        return data
