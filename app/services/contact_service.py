"""
Contact Service - public contact form submissions and the admin inbox.
"""

import logging
from sqlalchemy import select, func, or_
from app.extensions import db
from app.exceptions import ResourceNotFound, ValidationFailed
from app.security import InputSanitizer, SQLInjectionPrevention
from app.time_helpers import get_day_start_utc

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ('created_at', 'updated_at', 'name', 'email', 'subject', 'status')


class ContactService:

    @staticmethod
    def submit(name, email, subject, message, ip_address=None, user_agent=None):
        from app.models import ContactMessage

        try:
            email = InputSanitizer.sanitize_email(email)
        except ValueError:
            raise ValidationFailed('Please provide a valid email address')

        contact = ContactMessage(
            name=InputSanitizer.sanitize_description(name, max_length=100),
            email=email,
            subject=InputSanitizer.sanitize_description(subject, max_length=200),
            message=InputSanitizer.sanitize_text(message, max_length=5000),
            ip_address=ip_address,
            user_agent=(user_agent or '')[:500] or None,
        )
        db.session.add(contact)
        logger.info(f"Contact message received from {email}")
        return contact

    @staticmethod
    def list_query(status=None, search=None, sort_by='created_at', sort_order='desc'):
        """
        Inbox query. Unknown sort fields fall back to created_at; the order is
        'asc' or anything else for descending.
        """
        from app.models import ContactMessage, ContactStatus

        query = select(ContactMessage)
        if status:
            try:
                query = query.where(ContactMessage.status == ContactStatus(status))
            except ValueError:
                raise ValidationFailed(f'Invalid status: {status}')

        if search:
            pattern = f"%{SQLInjectionPrevention.sanitize_for_like(search)}%"
            query = query.where(or_(
                ContactMessage.name.ilike(pattern, escape='\\'),
                ContactMessage.email.ilike(pattern, escape='\\'),
                ContactMessage.subject.ilike(pattern, escape='\\'),
                ContactMessage.message.ilike(pattern, escape='\\'),
            ))

        column = getattr(ContactMessage, sort_by if sort_by in SORTABLE_FIELDS else 'created_at')
        ordering = column.asc() if (sort_order or '').lower() == 'asc' else column.desc()
        return query.order_by(ordering, ContactMessage.id.desc())

    @staticmethod
    def get_by_id(message_id):
        from app.models import ContactMessage

        contact = db.session.get(ContactMessage, message_id)
        if contact is None:
            raise ResourceNotFound('Contact message not found')
        return contact

    @staticmethod
    def open_message(message_id):
        """Load a message for an admin; opening a new message marks it read."""
        from app.models import ContactStatus

        contact = ContactService.get_by_id(message_id)
        if contact.status == ContactStatus.NEW:
            contact.status = ContactStatus.READ
        return contact

    @staticmethod
    def set_status(contact, status):
        from app.models import ContactStatus

        try:
            contact.status = ContactStatus(status)
        except ValueError:
            valid = ', '.join(s.value for s in ContactStatus)
            raise ValidationFailed(f'Invalid status. Must be one of: {valid}')
        return contact

    @staticmethod
    def delete(contact):
        db.session.delete(contact)

    @staticmethod
    def stats(now=None):
        """Totals for the inbox: overall, since site-local midnight, and per status."""
        from app.models import ContactMessage, ContactStatus

        total = db.session.scalar(select(func.count(ContactMessage.id))) or 0
        today = db.session.scalar(
            select(func.count(ContactMessage.id)).where(ContactMessage.created_at >= get_day_start_utc(now=now))
        ) or 0

        by_status = {status.value: 0 for status in ContactStatus}
        rows = db.session.execute(
            select(ContactMessage.status, func.count(ContactMessage.id)).group_by(ContactMessage.status)
        ).all()
        for status, count in rows:
            by_status[status.value] = count

        return {'total': total, 'today': today, 'by_status': by_status}
