"""Contact Routes - the public contact form."""

from flask import current_app, request
from app.api import bp
from app.api.forms import ContactForm
from app.api_auth import api_success, client_ip
from app.extensions import db, limiter
from app.services import ContactService


@bp.route('/contact', methods=['POST'])
@limiter.limit(lambda: current_app.config.get("RATELIMIT_CONTACT", "5 per hour"))
def submit_contact():
    form = ContactForm.from_json().validate_or_raise()

    contact = ContactService.submit(
        name=form.name.data,
        email=form.email.data,
        subject=form.subject.data,
        message=form.message.data,
        ip_address=client_ip(),
        user_agent=request.headers.get('User-Agent'),
    )
    db.session.commit()

    return api_success(
        {'id': contact.id, 'created_at': contact.created_at.isoformat()},
        'Thank you for your message. We will get back to you soon.',
        201
    )
