"""
Firebase Cloud Messaging integration.

Publishes topic messages through the FCM HTTP v1 API.
"""

from feelin_pay.integrations.fcm.client import FCMClient, PushMessage
from feelin_pay.integrations.fcm.exceptions import (
    FCMError,
    FCMAuthenticationError,
    FCMRateLimitError,
    FCMConnectionError,
    FCMTimeoutError,
)

__all__ = [
    # Client
    "FCMClient",
    "PushMessage",
    # Exceptions
    "FCMError",
    "FCMAuthenticationError",
    "FCMRateLimitError",
    "FCMConnectionError",
    "FCMTimeoutError",
]
