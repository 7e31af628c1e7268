"""Notification delivery — render, record, send, retry once.

Callers get a notification id back (or None) and never an exception: a
notification problem must not undo or fail the order operation that
triggered it.
"""

import json

import structlog
from notifications.channel import get_channel
from notifications.channel.email_port import SENT, SendResult, not_delivered
from notifications.kinds import NotificationChannel, RecipientType
from notifications.templates import get_template
from protean.utils.globals import current_domain

from ordering.notification.notification import Notification

logger = structlog.get_logger(__name__)


def _attempt(notification: Notification) -> bool:
    try:
        adapter = get_channel(notification.channel)
        result = _dispatch_via_channel(adapter, notification)
    except Exception as e:
        notification.mark_failed(str(e))
        logger.error(
            "Notification dispatch failed",
            notification_id=str(notification.id),
            error=str(e),
        )
        return False

    if result.get("status") == SENT:
        notification.mark_sent()
        return True

    notification.mark_failed(result.get("error") or "Unknown dispatch error")
    logger.warning(
        "Notification rejected by channel",
        notification_id=str(notification.id),
        error=notification.failure_reason,
        retry_count=notification.retry_count,
    )
    return False


def _dispatch_via_channel(adapter, notification: Notification) -> SendResult:
    """Route dispatch to the correct adapter method based on channel."""
    if notification.channel == NotificationChannel.EMAIL.value:
        return adapter.send(
            to=notification.recipient,
            subject=notification.subject or "",
            body=notification.body,
        )
    return not_delivered(f"Unknown channel: {notification.channel}")


def deliver(notification: Notification) -> bool:
    """Send a pending notification, retrying once on failure."""
    if _attempt(notification):
        return True
    if notification.can_retry:
        notification.retry()
        return _attempt(notification)
    return False


def send_notification(
    recipient: str,
    notification_type: str,
    context: dict,
    recipient_type: str = RecipientType.CUSTOMER.value,
    order_id: str | None = None,
    source_event_type: str | None = None,
) -> str | None:
    """Render a template for ``recipient``, deliver it and record the outcome.

    Returns:
        Notification ID, or None when the notification could not even be created.
    """
    try:
        template_cls = get_template(notification_type)
        rendered = template_cls.render(context)

        notification = Notification.create(
            recipient=recipient,
            notification_type=notification_type,
            channel=template_cls.default_channels[0],
            subject=rendered.get("subject"),
            body=rendered["body"],
            recipient_type=recipient_type,
            template_name=template_cls.__name__,
            order_id=order_id,
            source_event_type=source_event_type,
            context_data=json.dumps(context),
        )
        sent = deliver(notification)
        current_domain.repository_for(Notification).add(notification)
    except Exception as e:
        logger.error(
            "Notification could not be created",
            notification_type=notification_type,
            order_id=order_id,
            error=str(e),
        )
        return None

    logger.info(
        "Notification processed",
        notification_id=str(notification.id),
        notification_type=notification_type,
        status=notification.status,
        sent=sent,
    )
    return str(notification.id)
