# app/models/feature.py

from datetime import datetime
from app.extensions import db

# Known feature flags and whether they start enabled
DEFAULT_FEATURES = {
    'forum': (False, 'Community forum: categories, threads and comments'),
    'comments': (True, 'Reader comments on articles'),
    'newsletter': (True, 'Newsletter subscriptions'),
}


class Feature(db.Model):
    """A named on/off switch for a site area, toggled by admins."""
    __tablename__ = 'feature'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False, index=True)
    enabled = db.Column(db.Boolean, default=False, nullable=False)
    description = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<Feature {self.name}={"on" if self.enabled else "off"}>'

    def to_dict(self):
        return {
            'name': self.name,
            'enabled': bool(self.enabled),
            'description': self.description,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
