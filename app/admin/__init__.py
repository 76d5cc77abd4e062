# app/admin/__init__.py
"""
Admin blueprint for moderation, inbox and site management endpoints.
"""

from flask import Blueprint

bp = Blueprint('admin', __name__, url_prefix='/api/admin')

from app.admin import routes
