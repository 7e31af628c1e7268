"""Channel adapter registry — pluggable notification dispatch channels.

Provides singleton access to channel adapters. EMAIL_ADAPTER selects the
email adapter: "fake" (default) keeps messages in memory, "resend" delivers
through Resend using RESEND_API_KEY and EMAIL_FROM.
"""

import os

from notifications.kinds import NotificationChannel

_channel_instances: dict[str, object] = {}


def _build_email_adapter():
    adapter = os.environ.get("EMAIL_ADAPTER", "fake").lower()
    if adapter == "resend":
        from notifications.channel.resend_email import ResendEmailAdapter

        return ResendEmailAdapter(
            api_key=os.environ["RESEND_API_KEY"],
            from_email=os.environ.get("EMAIL_FROM", "onboarding@resend.dev"),
            timeout=float(os.environ.get("EMAIL_HTTP_TIMEOUT", "10")),
        )
    if adapter == "fake":
        from notifications.channel.fake_email import FakeEmailAdapter

        return FakeEmailAdapter()
    raise ValueError(f"Unknown email adapter: {adapter}")


def get_channel(channel_type: str):
    """Return the configured channel adapter (singleton per channel type).

    Args:
        channel_type: One of NotificationChannel enum values ("Email")
    """
    if channel_type not in _channel_instances:
        if channel_type == NotificationChannel.EMAIL.value:
            _channel_instances[channel_type] = _build_email_adapter()
        else:
            raise ValueError(f"Unknown channel type: {channel_type}")

    return _channel_instances[channel_type]


def set_channel(channel_type: str, adapter) -> None:
    _channel_instances[channel_type] = adapter


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
