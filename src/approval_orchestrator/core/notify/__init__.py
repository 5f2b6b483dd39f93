# src/approval_orchestrator/core/notify/__init__.py
"""Notification Dispatcher e o contrato de publicação em tópico."""

from .dispatcher import (
    DEFAULT_SUBJECT,
    InMemoryTopicPublisher,
    NotificationDispatcher,
    NotificationPayload,
    Publisher,
)

__all__ = [
    "DEFAULT_SUBJECT",
    "InMemoryTopicPublisher",
    "NotificationDispatcher",
    "NotificationPayload",
    "Publisher",
]
