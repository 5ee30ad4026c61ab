#!/usr/bin/env python3
"""
Offer Notification Service

Tells a contractor a job was offered to them. Delivery is fire-and-forget:
the offer already exists when the notifier is called, so a lost
notification never affects dispatch.

Messages go through a Redis Queue when one is reachable (processed by
``notification.worker``) and are sent inline otherwise.

Usage:
    from notification.service import OfferNotifier

    notifier = OfferNotifier(config.notifications)
    notifier.notify_job_offered(job_id, contractor_id, assignment_id, expires_at)
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from redis import Redis
from rq import Queue, Retry

from core.config_loader import NotificationConfig
from core.errors import ExternalServiceError
from notification.channels import NotificationChannelFactory

logger = logging.getLogger(__name__)

EVENT_JOB_OFFERED = 'job_offered'


def process_offer_notification(notification_data: Dict[str, Any]) -> bool:
    """
    Deliver one notification (called by the RQ worker, or inline in sync mode).

    Raises:
        ExternalServiceError: the channel reported a failed delivery, so RQ can retry
    """
    channel_type = notification_data['channel_type']
    recipient = notification_data['recipient']

    logger.info(f"Processing {notification_data.get('event_type')} notification via {channel_type}")

    channel = NotificationChannelFactory.get_channel(channel_type)
    success = channel.send(
        recipient,
        notification_data['subject'],
        notification_data['body'],
        notification_data.get('metadata', {})
    )
    if not success:
        raise ExternalServiceError(f"{channel_type} delivery to {recipient} failed")
    return True


class OfferNotifier:
    """
    Emits "job offered" events to contractors.

    Args:
        config: NotificationConfig (enabled flag, queue and webhook settings)
    """

    def __init__(self, config: NotificationConfig):
        self.config = config
        self.redis_conn = None
        self.queue = None
        self.async_mode = False

        if not config.enabled:
            logger.info("Offer notifications disabled via config.")
            return

        if not config.use_async_queue:
            logger.info("Async queue disabled via config. Using sync mode.")
            return

        redis_url = config.redis_url or 'redis://localhost:6379/0'
        try:
            self.redis_conn = Redis.from_url(redis_url)
            # Validate connection with ping before using
            self.redis_conn.ping()
            self.queue = Queue(config.queue_name, connection=self.redis_conn)
            self.async_mode = True
            logger.info("Offer notifier connected to Redis")
        except Exception as e:
            logger.error(f"Redis connection failed: {e}. Falling back to sync mode.")
            self.redis_conn = None
            self.queue = None

    def build_offer_notification(
        self,
        job_id: Any,
        contractor_id: Any,
        assignment_id: Any,
        expires_at: datetime
    ) -> Dict[str, Any]:
        if self.config.webhook_url:
            channel_type, recipient = 'webhook', self.config.webhook_url
        else:
            channel_type, recipient = 'log', f"contractor:{contractor_id}"

        return {
            'channel_type': channel_type,
            'recipient': recipient,
            'subject': 'New job offer',
            'body': f"Job {job_id} is offered to you until {expires_at.isoformat()}",
            'event_type': EVENT_JOB_OFFERED,
            'metadata': {
                'event_type': EVENT_JOB_OFFERED,
                'job_id': str(job_id),
                'contractor_id': str(contractor_id),
                'assignment_id': str(assignment_id),
                'expires_at': expires_at.isoformat(),
            }
        }

    def notify_job_offered(
        self,
        job_id: Any,
        contractor_id: Any,
        assignment_id: Any,
        expires_at: datetime
    ) -> Optional[str]:
        """
        Returns:
            RQ job id when queued, the assignment id when sent inline,
            None when disabled or delivery failed
        """
        if not self.config.enabled:
            return None

        notification_data = self.build_offer_notification(job_id, contractor_id, assignment_id, expires_at)

        if self.async_mode:
            # Retry 3 times with increasing delays
            retry_policy = Retry(max=3, interval=[30, 60, 120])
            job = self.queue.enqueue(
                process_offer_notification,
                notification_data,
                job_timeout='5m',
                result_ttl=86400,
                retry=retry_policy
            )
            logger.info(f"Queued offer notification for assignment {assignment_id} as job {job.id}")
            return job.id

        try:
            process_offer_notification(notification_data)
        except Exception as e:
            logger.error(f"Offer notification for assignment {assignment_id} failed: {e}")
            return None
        return str(assignment_id)

    def health_check(self) -> Dict[str, Any]:
        if not self.async_mode:
            return {'status': 'ok', 'mode': 'sync' if self.config.enabled else 'disabled'}
        try:
            return {
                'status': 'ok',
                'mode': 'async',
                'queue_length': len(self.queue),
                'redis_connected': self.redis_conn.ping()
            }
        except Exception as e:
            return {'status': 'error', 'error': str(e)}
