"""
Notification Module

"Job offered" events for contractors, delivered through pluggable
channels either inline or via a Redis Queue.

Usage:
    from notification import OfferNotifier

    notifier = OfferNotifier(config.notifications)
    notifier.notify_job_offered(job_id, contractor_id, assignment_id, expires_at)
"""

from notification.channels import (
    NotificationChannel,
    WebhookChannel,
    LogChannel,
    NotificationChannelFactory,
)

from notification.service import (
    OfferNotifier,
    process_offer_notification,
    EVENT_JOB_OFFERED,
)

__all__ = [
    'NotificationChannel',
    'WebhookChannel',
    'LogChannel',
    'NotificationChannelFactory',
    'OfferNotifier',
    'process_offer_notification',
    'EVENT_JOB_OFFERED',
]
