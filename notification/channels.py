#!/usr/bin/env python3
"""
Notification Channels

Delivery backends for contractor notifications. Each channel implements
the same ``send`` interface so the notifier never cares where a message
ends up.

Usage:
    from notification.channels import NotificationChannelFactory

    channel = NotificationChannelFactory.get_channel('webhook')
    channel.send(recipient, subject, body, metadata)
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Any
import logging
import urllib.parse

import requests

logger = logging.getLogger(__name__)


class NotificationChannel(ABC):
    """Abstract base class for all notification channels."""

    @property
    @abstractmethod
    def channel_type(self) -> str:
        """Return the channel type identifier."""
        pass

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        """
        Send a notification through this channel.

        Args:
            recipient: Target recipient (format depends on channel)
            subject: Notification subject/title
            body: Notification body
            metadata: Additional channel-specific metadata

        Returns:
            True if sent successfully, False otherwise
        """
        pass


class WebhookChannel(NotificationChannel):
    """Posts a JSON event to an HTTP endpoint (recipient is the URL)."""

    def __init__(self, timeout_seconds: int = 10):
        self.timeout_seconds = timeout_seconds

    @property
    def channel_type(self) -> str:
        return 'webhook'

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        parsed = urllib.parse.urlparse(recipient or '')
        if parsed.scheme not in ('http', 'https') or not parsed.hostname:
            logger.error(f"Invalid webhook URL: {recipient}")
            return False

        payload = {
            'subject': subject,
            'body': body,
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'metadata': metadata,
        }

        try:
            response = requests.post(
                recipient,
                json=payload,
                headers={
                    'Content-Type': 'application/json',
                    'User-Agent': 'Dispatch-Notification-Service/1.0'
                },
                timeout=self.timeout_seconds
            )
            response.raise_for_status()
        except Exception as e:
            logger.error(f"Failed to send webhook: {e}")
            return False

        logger.info(f"Webhook sent to {parsed.scheme}://{parsed.hostname}{parsed.path}")
        return True


class LogChannel(NotificationChannel):
    """Writes the notification to the application log. Used when no webhook is configured."""

    @property
    def channel_type(self) -> str:
        return 'log'

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        logger.info(f"[NOTIFY] {recipient}: {subject} - {body}")
        return True


class NotificationChannelFactory:
    """Factory for the configured notification channels."""

    _channels: Dict[str, type] = {
        'webhook': WebhookChannel,
        'log': LogChannel,
    }

    @classmethod
    def get_channel(cls, channel_type: str) -> NotificationChannel:
        """
        Raises:
            ValueError: If channel type is unknown
        """
        channel_class = cls._channels.get(channel_type.lower())
        if not channel_class:
            raise ValueError(f"Unknown channel type: {channel_type}. "
                             f"Available: {', '.join(cls._channels.keys())}")
        return channel_class()
