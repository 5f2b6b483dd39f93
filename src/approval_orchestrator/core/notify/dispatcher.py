# src/approval_orchestrator/core/notify/dispatcher.py
"""
Notification Dispatcher.

Publica um resumo estruturado de cada evento que passou pelo filtro em um
único tópico lógico, independentemente do resultado do Trigger Handler.

Payload (JSON):
    {"modelIdentifier": <ARN | nome do grupo | null>,
     "approvalStatus": <status | null>,
     "timestamp": <ISO 8601 UTC>}

Regras:
    - `modelIdentifier` é o ARN do model package; na ausência, o nome do grupo
    - `timestamp` é o `time` do evento; na ausência, o relógio do dispatcher
    - Falhas de transporte viram NotifyError: logadas e levantadas ao chamador
    - Nenhum retry inline
"""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from approval_orchestrator.core.events.types import (
    MODEL_APPROVAL_STATUS,
    MODEL_PACKAGE_ARN,
    MODEL_PACKAGE_GROUP_NAME,
    Event,
)
from approval_orchestrator.core.exceptions import NotifyError
from approval_orchestrator.core.logging import get_logger


logger = get_logger(__name__)

DEFAULT_SUBJECT = "Model Approval Notifications"


class Publisher(Protocol):
    def publish(self, topic: str, message: str, subject: Optional[str] = None) -> None:
        ...


Subscriber = Callable[[str, Optional[str]], None]


class InMemoryTopicPublisher:
    """
    Publisher in-process: cada tópico tem uma lista de subscribers (callables).

    Mensagens publicadas ficam registradas em `published` para inspeção.
    """

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._published: List[Tuple[str, str, Optional[str]]] = []
        self._lock = threading.Lock()

    def subscribe(self, topic: str, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers.setdefault(topic, []).append(subscriber)

    def publish(self, topic: str, message: str, subject: Optional[str] = None) -> None:
        with self._lock:
            self._published.append((topic, message, subject))
            subscribers = list(self._subscribers.get(topic, []))
        for subscriber in subscribers:
            subscriber(message, subject)

    @property
    def published(self) -> List[Tuple[str, str, Optional[str]]]:
        with self._lock:
            return list(self._published)


@dataclass(frozen=True)
class NotificationPayload:
    model_identifier: Optional[str]
    approval_status: Optional[str]
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "modelIdentifier": self.model_identifier,
            "approvalStatus": self.approval_status,
            "timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True)


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


class NotificationDispatcher:
    """Publica o resumo do evento no tópico fixo de notificações."""

    def __init__(
        self,
        *,
        publisher: Publisher,
        topic: str,
        subject: str = DEFAULT_SUBJECT,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.publisher = publisher
        self.topic = topic
        self.subject = subject
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def summarize(self, event: Event) -> NotificationPayload:
        detail = event.detail
        identifier = _text(detail.get(MODEL_PACKAGE_ARN)) or _text(detail.get(MODEL_PACKAGE_GROUP_NAME))
        return NotificationPayload(
            model_identifier=identifier,
            approval_status=_text(detail.get(MODEL_APPROVAL_STATUS)),
            timestamp=event.time or self._clock().astimezone(timezone.utc).isoformat(),
        )

    def notify(self, event: Event) -> NotificationPayload:
        """
        Raises:
            NotifyError: o publisher falhou (sem retry).
        """
        payload = self.summarize(event)
        try:
            self.publisher.publish(self.topic, payload.to_json(), self.subject)
        except Exception as exc:
            logger.error(
                "notification publish failed",
                extra={"topic": self.topic, "model_identifier": payload.model_identifier},
                exc_info=True,
            )
            raise NotifyError(
                message=f"Failed to publish notification to {self.topic}",
                details={
                    "topic": self.topic,
                    "model_identifier": payload.model_identifier,
                    "exception_class": exc.__class__.__name__,
                    "reason": str(exc),
                },
                hint="Verifique o transporte de notificações; o start do pipeline não é afetado",
            ) from exc

        logger.info(
            "notification published",
            extra={"topic": self.topic, "model_identifier": payload.model_identifier},
        )
        return payload

    def __call__(self, event: Event) -> NotificationPayload:
        return self.notify(event)
