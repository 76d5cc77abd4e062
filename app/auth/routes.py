# app/auth/routes.py

# --- Imports ---
from datetime import datetime
from flask import current_app, session
from flask_login import login_user, logout_user, current_user, login_required
from flask_wtf.csrf import generate_csrf
from sqlalchemy import select, or_

from app.extensions import db, limiter
from app.auth import bp  # Import the blueprint
from app.api.forms import RegisterForm, LoginForm, json_bool
from app.api_auth import api_success, api_error, client_ip
from app.exceptions import Conflict
from app.logging_config import log_security_event
from app.models import User, Role
from app.security import InputSanitizer


# --- Session Authentication Routes ---

@bp.route('/register', methods=['POST'])
@limiter.limit(lambda: current_app.config.get("RATELIMIT_REGISTER", "5 per hour"))
def register():
    """Create a reader account and log it in."""
    form = RegisterForm.from_json().validate_or_raise()

    username = InputSanitizer.sanitize_username(form.username.data)
    email = form.email.data

    existing = db.session.scalar(select(User).where(or_(User.username == username, User.email == email)))
    if existing is not None:
        raise Conflict('Username or email is already registered')

    user = User(username=username, email=email, role=Role.USER)
    user.set_password(form.password.data)
    db.session.add(user)
    db.session.commit()

    session.clear()
    login_user(user)
    current_app.logger.info(f"New user registered: {user.username} (id {user.id})")

    return api_success(user.to_dict(include_private=True), 'Registration successful', 201)


@bp.route('/login', methods=['POST'])
@limiter.limit(lambda: current_app.config.get("RATELIMIT_LOGIN", "10 per minute"))
def login():
    """Log in with username or email and password. Sets the session cookie."""
    form = LoginForm.from_json().validate_or_raise()

    identifier = form.login.data.strip()
    user = db.session.scalar(
        select(User).where(or_(User.username == identifier, User.email == identifier.lower()))
    )

    if user is None or not user.check_password(form.password.data):
        log_security_event(
            'LOGIN_FAILED',
            user_id=user.id if user else None,
            ip_address=client_ip(),
            description=f"Failed login for '{identifier}'"
        )
        return api_error('Invalid credentials', 401)

    # New session on every login
    session.clear()
    remember = json_bool(form.raw, 'remember', default=False)
    login_user(user, remember=remember)

    user.last_login_at = datetime.utcnow()
    db.session.commit()

    current_app.logger.info(f"User {user.username} logged in from {client_ip()}")
    return api_success(user.to_dict(include_private=True), 'Login successful')


@bp.route('/logout', methods=['POST'])
@login_required
def logout():
    user_id = current_user.id
    logout_user()
    session.clear()
    current_app.logger.info(f"User {user_id} logged out")
    return api_success(message='Logged out')


@bp.route('/me', methods=['GET'])
@login_required
def me():
    return api_success(current_user.to_dict(include_private=True))


@bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    """Token the browser client sends back in the X-CSRFToken header."""
    return api_success({'csrf_token': generate_csrf()})
