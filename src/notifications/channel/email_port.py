"""Email port — what the notification dispatcher needs from a mail provider.

Adapters never raise for delivery problems. They report the outcome as a
``SendResult`` so the dispatcher can record the failure on the notification
and decide whether to retry.
"""

from abc import ABC, abstractmethod
from typing import TypedDict

SENT = "sent"
FAILED = "failed"


class SendResult(TypedDict):
    message_id: str | None
    status: str
    error: str | None


def delivered(message_id: str | None) -> SendResult:
    return {"message_id": message_id, "status": SENT, "error": None}


def not_delivered(error: str) -> SendResult:
    return {"message_id": None, "status": FAILED, "error": error}


class EmailPort(ABC):
    @abstractmethod
    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> SendResult:
        """Hand one message to the provider; ``html_body`` is an optional alternative part."""
