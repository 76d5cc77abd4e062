import os
from datetime import timedelta
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
# Use override=True to ensure .env values override any system environment variables
load_dotenv(os.path.join(basedir, '.env'), override=True)


def _database_uri():
    """Build the database URI from DATABASE_* variables, DATABASE_URL or a local SQLite file."""
    db_user = os.environ.get('DATABASE_USER')
    db_password = os.environ.get('DATABASE_PASSWORD')
    db_host = os.environ.get('DATABASE_HOST')
    db_name = os.environ.get('DATABASE_NAME')

    if all([db_user, db_host, db_name]):
        if db_password:
            return f'mysql+pymysql://{db_user}:{db_password}@{db_host}/{db_name}?charset=utf8mb4'
        return f'mysql+pymysql://{db_user}@{db_host}/{db_name}?charset=utf8mb4'

    if any([db_user, db_host, db_name]):
        raise ValueError("Database configuration is incomplete. Check .env file.")

    return os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(basedir, 'beekeeper.db')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    ENV = os.environ.get('FLASK_ENV', 'development')

    SITE_NAME = os.environ.get('SITE_NAME', 'Beekeeper')
    SITE_TIMEZONE = os.environ.get('SITE_TIMEZONE', 'Europe/Paris')

    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = 3600
    WTF_CSRF_SSL_STRICT = False
    # The single-page client sends the token from /api/auth/csrf-token in this header
    WTF_CSRF_HEADERS = ['X-CSRFToken', 'X-CSRF-Token']

    # Session Security Configuration
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'False').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = 43200  # 12 hours

    REMEMBER_COOKIE_DURATION = timedelta(seconds=43200)
    REMEMBER_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'False').lower() == 'true'

    SECURITY_HEADERS = {
        'X-Content-Type-Options': 'nosniff',
        'X-Frame-Options': 'SAMEORIGIN',
        'Strict-Transport-Security': 'max-age=31536000; includeSubDomains',
        'Referrer-Policy': 'strict-origin-when-cross-origin',
        'Permissions-Policy': 'geolocation=(), microphone=(), camera=(), payment=()',
        'Cross-Origin-Opener-Policy': 'same-origin',
        'Cross-Origin-Resource-Policy': 'same-origin',
    }

    # The API only serves JSON, so nothing may be loaded or framed
    CONTENT_SECURITY_POLICY = {
        'default-src': ["'none'"],
        'frame-ancestors': ["'none'"],
        'base-uri': ["'none'"],
        'form-action': ["'self'"],
    }

    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = "memory://"
    RATELIMIT_STRATEGY = "fixed-window"
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_DEFAULT = "1000 per day, 200 per hour"

    # Authentication (strict - prevents brute force)
    RATELIMIT_LOGIN = "10 per minute"
    RATELIMIT_REGISTER = "5 per hour"

    # Public forms (prevents spam)
    RATELIMIT_CONTACT = "5 per hour"
    RATELIMIT_NEWSLETTER = "10 per hour"
    RATELIMIT_COMMENT = "30 per hour"
    RATELIMIT_FORUM_POST = "60 per hour"

    RATELIMIT_ADMIN_ACTION = "500 per hour"

    CACHE_TYPE = os.environ.get('CACHE_TYPE', 'SimpleCache')
    CACHE_DEFAULT_TIMEOUT = 300
    CACHE_KEY_PREFIX = 'beekeeper_'

    CACHE_REDIS_HOST = os.environ.get('REDIS_HOST', 'localhost')
    CACHE_REDIS_PORT = int(os.environ.get('REDIS_PORT', 6379))
    CACHE_REDIS_DB = int(os.environ.get('REDIS_DB', 0))
    CACHE_REDIS_PASSWORD = os.environ.get('REDIS_PASSWORD')

    CACHE_TIMEOUT_TAGS = 600
    CACHE_TIMEOUT_FEATURES = 60
    CACHE_TIMEOUT_FORUM_STATS = 120

    SQLALCHEMY_DATABASE_URI = _database_uri()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_recycle': 1800,
        'pool_pre_ping': True,
    }

    # Pagination
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

    # Content rules
    EXCERPT_LENGTH = 200
    COMMENT_AUTO_APPROVE_ADMIN = True

    PROPAGATE_EXCEPTIONS = None
    TRAP_HTTP_EXCEPTIONS = False
    TRAP_BAD_REQUEST_ERRORS = None


class DevelopmentConfig(Config):
    """Development environment configuration with relaxed security for debugging."""
    ENV = 'development'
    DEBUG = True
    TESTING = False

    SESSION_COOKIE_SECURE = False

    PROPAGATE_EXCEPTIONS = False
    TRAP_BAD_REQUEST_ERRORS = True


class ProductionConfig(Config):
    """Production environment configuration with maximum security."""
    ENV = 'production'
    DEBUG = False
    TESTING = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_size': 20,
        'max_overflow': 40,
        'pool_timeout': 30,
        'pool_recycle': 1800,
        'pool_pre_ping': True,
    }

    SESSION_COOKIE_SECURE = True
    REMEMBER_COOKIE_SECURE = True
    WTF_CSRF_SSL_STRICT = True

    RATELIMIT_LOGIN = "5 per minute"
    RATELIMIT_REGISTER = "3 per hour"

    # Production: Use Redis for rate limiting (shared between workers)
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL', "redis://localhost:6379/1")

    PROPAGATE_EXCEPTIONS = False
    TRAP_HTTP_EXCEPTIONS = False
    TRAP_BAD_REQUEST_ERRORS = False


class TestingConfig(Config):
    """Testing environment configuration."""
    ENV = 'testing'
    TESTING = True
    DEBUG = False

    # Testing: Use in-memory database
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}

    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False

    CACHE_TYPE = 'NullCache'

    SECURITY_HEADERS = {}
    CONTENT_SECURITY_POLICY = {}


# Configuration dictionary for easy selection
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
