"""
Newsletter Service - subscriptions, token unsubscribe and admin export.
"""

import csv
import io
import logging
from datetime import datetime
from sqlalchemy import select
from app.extensions import db
from app.exceptions import ResourceNotFound, ValidationFailed
from app.security import InputSanitizer

logger = logging.getLogger(__name__)

SUBSCRIBED = 'subscribed'
ALREADY_SUBSCRIBED = 'already_subscribed'
REACTIVATED = 'reactivated'


def _normalize_email(email):
    try:
        return InputSanitizer.sanitize_email(email)
    except ValueError:
        raise ValidationFailed('Please provide a valid email address')


class NewsletterService:

    @staticmethod
    def get_by_email(email):
        from app.models import NewsletterSubscriber
        return db.session.scalar(
            select(NewsletterSubscriber).where(NewsletterSubscriber.email == _normalize_email(email))
        )

    @staticmethod
    def subscribe(email, ip_address=None):
        """
        Add an address to the list, or reactivate it.

        Returns:
            tuple: (subscriber, outcome) where outcome is SUBSCRIBED,
            ALREADY_SUBSCRIBED or REACTIVATED
        """
        from app.models import NewsletterSubscriber, SubscriberStatus

        email = _normalize_email(email)
        subscriber = db.session.scalar(select(NewsletterSubscriber).where(NewsletterSubscriber.email == email))

        if subscriber is not None:
            if subscriber.is_active:
                return subscriber, ALREADY_SUBSCRIBED

            subscriber.status = SubscriberStatus.ACTIVE
            subscriber.subscribed_at = datetime.utcnow()
            subscriber.unsubscribed_at = None
            logger.info(f"Newsletter subscription reactivated for subscriber {subscriber.id}")
            return subscriber, REACTIVATED

        subscriber = NewsletterSubscriber(email=email, ip_address=ip_address)
        db.session.add(subscriber)
        return subscriber, SUBSCRIBED

    @staticmethod
    def unsubscribe(token):
        from app.models import NewsletterSubscriber, SubscriberStatus

        subscriber = None
        if token:
            subscriber = db.session.scalar(
                select(NewsletterSubscriber).where(
                    NewsletterSubscriber.token == token,
                    NewsletterSubscriber.status == SubscriberStatus.ACTIVE
                )
            )
        if subscriber is None:
            raise ResourceNotFound('Subscription not found or already unsubscribed')

        subscriber.status = SubscriberStatus.UNSUBSCRIBED
        subscriber.unsubscribed_at = datetime.utcnow()
        return subscriber

    @staticmethod
    def status(email):
        subscriber = NewsletterService.get_by_email(email)
        if subscriber is None:
            return {'is_subscribed': False, 'status': 'not_subscribed'}

        return {
            'is_subscribed': subscriber.is_active,
            'status': subscriber.status.value,
            'subscribed_at': subscriber.subscribed_at.isoformat() if subscriber.subscribed_at else None,
            'unsubscribed_at': subscriber.unsubscribed_at.isoformat() if subscriber.unsubscribed_at else None,
        }

    @staticmethod
    def subscribers_query(status='active'):
        """Subscribers newest first; status 'all' disables the filter."""
        from app.models import NewsletterSubscriber, SubscriberStatus

        query = select(NewsletterSubscriber)
        status = status or 'active'
        if status != 'all':
            try:
                query = query.where(NewsletterSubscriber.status == SubscriberStatus(status))
            except ValueError:
                raise ValidationFailed(f'Invalid status: {status}')
        return query.order_by(NewsletterSubscriber.subscribed_at.desc(), NewsletterSubscriber.id.desc())

    @staticmethod
    def export_csv(status='active'):
        """CSV text with an 'Email,Subscribed Date' header row."""
        output = io.StringIO()
        writer = csv.writer(output, lineterminator='\n')
        writer.writerow(['Email', 'Subscribed Date'])

        for subscriber in db.session.scalars(NewsletterService.subscribers_query(status)):
            writer.writerow([
                subscriber.email,
                subscriber.subscribed_at.isoformat() if subscriber.subscribed_at else ''
            ])

        return output.getvalue()
