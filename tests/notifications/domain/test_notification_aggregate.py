"""Tests for the Notification aggregate state machine."""

import pytest
from notifications.kinds import NotificationChannel, NotificationType
from ordering.notification.events import NotificationCreated, NotificationFailed, NotificationRetried, NotificationSent
from ordering.notification.notification import Notification, NotificationStatus
from protean.exceptions import ValidationError


def _notification(**overrides):
    defaults = {
        "recipient": "guest@example.com",
        "notification_type": NotificationType.ORDER_CONFIRMATION.value,
        "channel": NotificationChannel.EMAIL.value,
        "subject": "Order confirmation - ALN-1-AAAAAAAA",
        "body": "Hello",
        "order_id": "order-1",
    }
    defaults.update(overrides)
    return Notification.create(**defaults)


def test_create_is_pending():
    notification = _notification()
    assert notification.status == NotificationStatus.PENDING.value
    assert notification.retry_count == 0
    assert notification.max_retries == 1
    assert isinstance(notification._events[0], NotificationCreated)


def test_mark_sent():
    notification = _notification()
    notification.mark_sent()
    assert notification.status == NotificationStatus.SENT.value
    assert notification.sent_at is not None
    assert isinstance(notification._events[-1], NotificationSent)


def test_sent_is_terminal():
    notification = _notification()
    notification.mark_sent()
    with pytest.raises(ValidationError):
        notification.mark_failed("late failure")


def test_mark_failed_records_reason():
    notification = _notification()
    notification.mark_failed("mailbox unavailable")
    assert notification.status == NotificationStatus.FAILED.value
    assert notification.failure_reason == "mailbox unavailable"
    assert isinstance(notification._events[-1], NotificationFailed)


def test_one_retry_allowed():
    notification = _notification()
    notification.mark_failed("timeout")
    assert notification.can_retry

    notification.retry()
    assert notification.status == NotificationStatus.PENDING.value
    assert notification.retry_count == 1
    assert isinstance(notification._events[-1], NotificationRetried)

    notification.mark_failed("timeout again")
    assert not notification.can_retry
    with pytest.raises(ValidationError):
        notification.retry()


def test_only_failed_notifications_retry():
    notification = _notification()
    with pytest.raises(ValidationError):
        notification.retry()
