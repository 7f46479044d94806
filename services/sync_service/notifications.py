"""Notification utilities for critical errors."""

import logging
import os
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class NotificationService:
    """Posts critical sync failures to a webhook."""

    def __init__(self):
        """Initialize notification service."""
        self.notification_enabled = os.getenv("ENABLE_NOTIFICATIONS", "false").lower() == "true"
        self.notification_webhook = os.getenv("NOTIFICATION_WEBHOOK_URL")

    async def send_critical_error_notification(
        self,
        error_message: str,
        context: Optional[dict] = None
    ):
        """
        Send notification for a run that aborted.

        Delivery failures are logged, never raised.

        Args:
            error_message: The error message
            context: Optional additional context
        """
        if not self.notification_enabled:
            logger.info("Notifications disabled, skipping critical error notification")
            return

        notification_message = (
            f"Critical Error in Notion Sync\n"
            f"Error: {error_message}\n"
        )

        if context:
            notification_message += f"Context: {context}\n"

        logger.warning(f"CRITICAL ERROR NOTIFICATION: {notification_message}")

        if not self.notification_webhook:
            return

        try:
            async with httpx.AsyncClient() as client:
                await client.post(
                    self.notification_webhook,
                    json={
                        "text": notification_message,
                        "error": error_message,
                        "context": context or {}
                    },
                    timeout=10.0
                )
            logger.info("Critical error notification sent")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Failed to send notification: {e}")
