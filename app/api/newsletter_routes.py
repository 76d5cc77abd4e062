"""Newsletter Routes - public subscribe/unsubscribe and status lookups."""

from flask import current_app
from app.api import bp
from app.api.forms import NewsletterForm
from app.api_auth import api_success, client_ip
from app.extensions import db, limiter
from app.services import NewsletterService, feature_required
from app.services.newsletter_service import ALREADY_SUBSCRIBED, REACTIVATED


@bp.route('/newsletter/subscribe', methods=['POST'])
@feature_required('newsletter')
@limiter.limit(lambda: current_app.config.get("RATELIMIT_NEWSLETTER", "5 per hour"))
def newsletter_subscribe():
    form = NewsletterForm.from_json().validate_or_raise()
    subscriber, outcome = NewsletterService.subscribe(form.email.data, ip_address=client_ip())
    db.session.commit()

    if outcome == ALREADY_SUBSCRIBED:
        return api_success(message='You are already subscribed to our newsletter')
    if outcome == REACTIVATED:
        return api_success(message='Welcome back! Your subscription has been reactivated')

    return api_success(
        {
            'email': subscriber.email,
            'subscribed_at': subscriber.subscribed_at.isoformat() if subscriber.subscribed_at else None,
        },
        'Thank you for subscribing to our newsletter!',
        201
    )


@bp.route('/newsletter/unsubscribe/<token>', methods=['GET'])
def newsletter_unsubscribe(token):
    NewsletterService.unsubscribe(token)
    db.session.commit()
    return api_success(message='You have been successfully unsubscribed from our newsletter')


@bp.route('/newsletter/status/<email>', methods=['GET'])
@limiter.limit(lambda: current_app.config.get("RATELIMIT_NEWSLETTER", "5 per hour"))
def newsletter_status(email):
    return api_success(NewsletterService.status(email))
