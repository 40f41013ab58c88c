"""Notification channels and the fallback chain."""
from .chain import NotifierChain, channels_for_platform
from .channels import (
    AppleScriptChannel,
    DialogChannel,
    NotificationChannel,
    NotifySendChannel,
    PowerShellToastChannel,
    TrayBalloonChannel,
)
from .messages import format_notification

__all__ = [
    "AppleScriptChannel",
    "DialogChannel",
    "NotificationChannel",
    "NotifierChain",
    "NotifySendChannel",
    "PowerShellToastChannel",
    "TrayBalloonChannel",
    "channels_for_platform",
    "format_notification",
]
