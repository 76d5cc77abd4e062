from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_caching import Cache
from flask_wtf.csrf import CSRFProtect

db = SQLAlchemy()
migrate = Migrate()
login = LoginManager()
login.login_message = 'Please log in to access this resource.'

@login.unauthorized_handler
def unauthorized_callback():
    """The API has no login page, so unauthenticated requests always get JSON."""
    from flask import jsonify

    return jsonify({
        'error': {
            'code': 401,
            'title': 'Authentication Required',
            'message': login.login_message,
        }
    }), 401

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"],
)

cache = Cache()
csrf = CSRFProtect()
