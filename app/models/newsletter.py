# app/models/newsletter.py

import secrets
from datetime import datetime
from enum import Enum
from app.extensions import db


class SubscriberStatus(Enum):
    ACTIVE = "active"
    UNSUBSCRIBED = "unsubscribed"


def generate_unsubscribe_token():
    """64 hex characters (32 random bytes)."""
    return secrets.token_hex(32)


class NewsletterSubscriber(db.Model):
    """An email address on the newsletter list. The token backs the one-click unsubscribe link."""
    __tablename__ = 'newsletter_subscriber'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    status = db.Column(db.Enum(SubscriberStatus), default=SubscriberStatus.ACTIVE, nullable=False, index=True)
    token = db.Column(db.String(64), unique=True, nullable=False, default=generate_unsubscribe_token)
    subscribed_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    unsubscribed_at = db.Column(db.DateTime, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<NewsletterSubscriber {self.email} ({self.status.value if self.status else "?"})>'

    @property
    def is_active(self):
        return self.status == SubscriberStatus.ACTIVE

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'status': self.status.value if self.status else None,
            'subscribed_at': self.subscribed_at.isoformat() if self.subscribed_at else None,
            'unsubscribed_at': self.unsubscribed_at.isoformat() if self.unsubscribed_at else None,
        }
