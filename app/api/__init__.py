"""
API Blueprint

JSON endpoints for the blog, comments, tags, forum, newsletter, contact
form and feature flags. Admin endpoints live in the admin blueprint.
"""

from flask import Blueprint

bp = Blueprint('api', __name__, url_prefix='/api')

# Import routes after blueprint creation to avoid circular imports
from app.api import (
    article_routes, comment_routes, tag_routes, forum_routes,
    newsletter_routes, contact_routes, feature_routes
)
