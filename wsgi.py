# wsgi.py
"""Application entry point for `flask --app wsgi` and gunicorn (`gunicorn -c gunicorn.conf.py wsgi:app`)."""

import os
from app import create_app
from config import config

app = create_app(config[os.environ.get('FLASK_ENV', 'default')])
