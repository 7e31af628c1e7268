"""Domain events for the Notification aggregate."""

from protean.fields import DateTime, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Notification")
class NotificationCreated:
    """A notification was rendered and queued for delivery."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient: String(required=True)
    recipient_type: String(required=True)
    notification_type: String(required=True)
    channel: String(required=True)
    subject: String()
    order_id: Identifier()
    created_at: DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationSent:
    """The channel adapter accepted the notification."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient: String(required=True)
    channel: String(required=True)
    sent_at: DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationFailed:
    """A delivery attempt failed."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient: String(required=True)
    channel: String(required=True)
    reason: String(required=True)
    retry_count: Integer(required=True)
    max_retries: Integer(required=True)
    failed_at: DateTime(required=True)


@ordering.event(part_of="Notification")
class NotificationRetried:
    """A failed notification was queued for another attempt."""

    __version__ = 1

    notification_id: Identifier(required=True)
    recipient: String(required=True)
    channel: String(required=True)
    retry_count: Integer(required=True)
    retried_at: DateTime(required=True)
