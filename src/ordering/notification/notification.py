"""Notification aggregate (CQRS) — one transactional message to one recipient.

Notifications are best-effort: a failed send is recorded, retried once, and
never propagated back into the order flow that caused it.

State Machine:
    PENDING → SENT
    PENDING → FAILED → (retry) → PENDING
"""

from datetime import UTC, datetime
from enum import Enum

from notifications.kinds import NotificationChannel, NotificationType, RecipientType
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from ordering.domain import ordering
from ordering.notification.events import (
    NotificationCreated,
    NotificationFailed,
    NotificationRetried,
    NotificationSent,
)


class NotificationStatus(Enum):
    PENDING = "Pending"
    SENT = "Sent"
    FAILED = "Failed"


_VALID_TRANSITIONS = {
    NotificationStatus.PENDING: {
        NotificationStatus.SENT,
        NotificationStatus.FAILED,
    },
    NotificationStatus.FAILED: {
        NotificationStatus.PENDING,  # Via retry
    },
    NotificationStatus.SENT: set(),  # Terminal
}


@ordering.aggregate
class Notification:
    """A single message dispatched to a recipient via a channel."""

    # Recipient (an email address for the email channel)
    recipient: String(required=True, max_length=254)
    recipient_type: String(choices=RecipientType, default=RecipientType.CUSTOMER.value)

    notification_type: String(choices=NotificationType, required=True)
    channel: String(choices=NotificationChannel, required=True)

    subject: String(max_length=500)
    body: Text(required=True)
    template_name: String(max_length=200)

    # Correlation
    order_id: Identifier()
    source_event_type: String(max_length=200)
    context_data: Text()  # JSON: data used to render the template

    status: String(choices=NotificationStatus, default=NotificationStatus.PENDING.value)
    sent_at: DateTime()
    failure_reason: String(max_length=500)

    # Number of retries performed so far
    retry_count: Integer(default=0)
    max_retries: Integer(default=1)

    created_at: DateTime()
    updated_at: DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        recipient,
        notification_type,
        channel,
        body,
        subject=None,
        recipient_type=RecipientType.CUSTOMER.value,
        template_name=None,
        order_id=None,
        source_event_type=None,
        context_data=None,
        max_retries=1,
    ):
        """Create a new notification in PENDING status."""
        now = datetime.now(UTC)

        notification = cls(
            recipient=recipient,
            recipient_type=recipient_type,
            notification_type=notification_type,
            channel=channel,
            subject=subject,
            body=body,
            template_name=template_name,
            order_id=order_id,
            source_event_type=source_event_type,
            context_data=context_data,
            status=NotificationStatus.PENDING.value,
            retry_count=0,
            max_retries=max_retries,
            created_at=now,
            updated_at=now,
        )

        notification.raise_(
            NotificationCreated(
                notification_id=str(notification.id),
                recipient=recipient,
                recipient_type=recipient_type,
                notification_type=notification_type,
                channel=channel,
                subject=subject,
                order_id=str(order_id) if order_id else None,
                created_at=now,
            )
        )

        return notification

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        """Validate state machine transition."""
        current = NotificationStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self, sent_at=None):
        self._assert_can_transition(NotificationStatus.SENT)

        now = sent_at or datetime.now(UTC)
        self.status = NotificationStatus.SENT.value
        self.sent_at = now
        self.failure_reason = None
        self.updated_at = now

        self.raise_(
            NotificationSent(
                notification_id=str(self.id),
                recipient=self.recipient,
                channel=self.channel,
                sent_at=now,
            )
        )

    def mark_failed(self, reason):
        self._assert_can_transition(NotificationStatus.FAILED)

        now = datetime.now(UTC)
        self.status = NotificationStatus.FAILED.value
        self.failure_reason = reason[:500]
        self.updated_at = now

        self.raise_(
            NotificationFailed(
                notification_id=str(self.id),
                recipient=self.recipient,
                channel=self.channel,
                reason=self.failure_reason,
                retry_count=self.retry_count,
                max_retries=self.max_retries,
                failed_at=now,
            )
        )

    @property
    def can_retry(self) -> bool:
        return NotificationStatus(self.status) == NotificationStatus.FAILED and self.retry_count < self.max_retries

    def retry(self):
        """Queue a failed notification for another attempt."""
        if NotificationStatus(self.status) != NotificationStatus.FAILED:
            raise ValidationError({"status": ["Only failed notifications can be retried"]})
        if self.retry_count >= self.max_retries:
            raise ValidationError({"retry_count": ["Maximum retry attempts exceeded"]})

        now = datetime.now(UTC)
        self._assert_can_transition(NotificationStatus.PENDING)
        self.status = NotificationStatus.PENDING.value
        self.retry_count = self.retry_count + 1
        self.updated_at = now

        self.raise_(
            NotificationRetried(
                notification_id=str(self.id),
                recipient=self.recipient,
                channel=self.channel,
                retry_count=self.retry_count,
                retried_at=now,
            )
        )
