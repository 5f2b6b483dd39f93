# src/approval_orchestrator/core/orchestrator.py
"""
Orchestrator — composition root.

Liga o filtro de eventos aos dois consumidores independentes:

    evento → regras (EventPattern nomeados, primeira que casa vence)
           → [Trigger Handler → Execution Engine]
           → [Notification Dispatcher]

Decisões arquiteturais:
    - Os dois consumidores sempre rodam para um evento que casou; a falha de
      um nunca bloqueia nem desfaz o outro
    - Falhas são contidas por entrega e registradas como ErrorPayload no
      `DeliveryOutcome` (sem stack trace)
    - Entregas independentes podem ser processadas em paralelo (`handle_many`)
    - Toda configuração é injetada no startup (`build_orchestrator`)

Limites explícitos:
    - Não faz retry; o chamador decide se reentrega
    - Não cria recursos externos (tópicos, buckets, pipelines)
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from approval_orchestrator.core.config.loader import load_config
from approval_orchestrator.core.config.settings import OrchestratorSettings, RuleSettings
from approval_orchestrator.core.engine.engine import ExecutionEngine, ExecutionHandle, TimeoutWatcher
from approval_orchestrator.core.engine.workers import TrainingRunner
from approval_orchestrator.core.errors import ErrorPayload
from approval_orchestrator.core.events.pattern import matches
from approval_orchestrator.core.events.types import Event
from approval_orchestrator.core.exceptions import exception_to_error
from approval_orchestrator.core.logging import configure_logging, correlation_scope, get_logger
from approval_orchestrator.core.notify.dispatcher import (
    InMemoryTopicPublisher,
    NotificationDispatcher,
    NotificationPayload,
    Publisher,
)
from approval_orchestrator.core.pipeline.definition import load_definition
from approval_orchestrator.core.storage import ArtifactStore
from approval_orchestrator.core.trigger.handler import TriggerHandler


logger = get_logger(__name__)


@dataclass(frozen=True)
class DeliveryOutcome:
    """Resultado do processamento de uma entrega de evento."""

    matched: bool
    rule: Optional[str] = None
    handle: Optional[ExecutionHandle] = None
    trigger_error: Optional[ErrorPayload] = None
    notify_error: Optional[ErrorPayload] = None
    notification: Optional[NotificationPayload] = None

    @property
    def ok(self) -> bool:
        return self.trigger_error is None and self.notify_error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matched": self.matched,
            "rule": self.rule,
            "executionId": self.handle.execution_id if self.handle else None,
            "triggerError": self.trigger_error.to_dict() if self.trigger_error else None,
            "notifyError": self.notify_error.to_dict() if self.notify_error else None,
            "notification": self.notification.to_dict() if self.notification else None,
        }


@dataclass
class Orchestrator:
    rules: Sequence[RuleSettings]
    trigger: TriggerHandler
    dispatcher: NotificationDispatcher
    engine: ExecutionEngine
    settings: Optional[OrchestratorSettings] = field(default=None, repr=False)

    def match(self, event: Event) -> Optional[str]:
        """Nome da primeira regra que casa com o evento, ou None."""
        for rule in self.rules:
            if matches(event, rule.pattern):
                return rule.name
        return None

    def handle(self, event: Event) -> DeliveryOutcome:
        """Processa uma entrega sob seu próprio correlation id (o `id` do evento ou um novo)."""
        with correlation_scope(event.id or None):
            return self._deliver(event)

    def _deliver(self, event: Event) -> DeliveryOutcome:
        rule = self.match(event)
        if rule is None:
            logger.debug("event dropped by filter", extra={"source": event.source, "detail_type": event.detail_type})
            return DeliveryOutcome(matched=False)

        handle: Optional[ExecutionHandle] = None
        trigger_error: Optional[ErrorPayload] = None
        try:
            handle = self.trigger.on_event(event)
        except Exception as exc:
            trigger_error = exception_to_error(exc)
            logger.warning(
                "trigger path failed",
                extra={"rule": rule, "error_type": trigger_error.type, "error_message": trigger_error.message},
            )

        notification: Optional[NotificationPayload] = None
        notify_error: Optional[ErrorPayload] = None
        try:
            notification = self.dispatcher.notify(event)
        except Exception as exc:
            notify_error = exception_to_error(exc)
            logger.warning(
                "notification path failed",
                extra={"rule": rule, "error_type": notify_error.type, "error_message": notify_error.message},
            )

        return DeliveryOutcome(
            matched=True,
            rule=rule,
            handle=handle,
            trigger_error=trigger_error,
            notify_error=notify_error,
            notification=notification,
        )

    def handle_envelope(self, envelope: Mapping[str, Any]) -> DeliveryOutcome:
        """
        Raises:
            MalformedEventError: envelope sem source/detail-type/detail válidos.
        """
        return self.handle(Event.from_envelope(envelope))

    def handle_many(self, events: Iterable[Event], *, max_workers: int = 4) -> List[DeliveryOutcome]:
        """Processa entregas independentes em paralelo; a ordem do retorno segue a entrada."""
        events = list(events)
        if not events:
            return []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(self.handle, events))

    def timeout_watcher(self) -> TimeoutWatcher:
        """TimeoutWatcher (não iniciado) do engine, com o intervalo configurado."""
        interval = self.settings.timeout_sweep_seconds if self.settings is not None else 5.0
        return TimeoutWatcher(self.engine, interval_seconds=interval)


def build_orchestrator(
    settings: Optional[OrchestratorSettings] = None,
    *,
    config_path: Optional[Union[str, Path]] = None,
    local_config_path: Optional[Union[str, Path]] = None,
    publisher: Optional[Publisher] = None,
    store: Optional[ArtifactStore] = None,
    training_runner: Optional[TrainingRunner] = None,
    engine: Optional[ExecutionEngine] = None,
    configure_logs: bool = False,
) -> Orchestrator:
    """
    Monta o Orchestrator a partir da configuração resolvida.

    Sem `settings`, a configuração é carregada de `config_path` (ou dos
    defaults embarcados) com overrides opcionais de `local_config_path`.
    A definição de pipeline configurada é carregada, recebe os URIs de
    storage como defaults de `TrainingDataUri`/`ArtifactUri` e é registrada
    no engine com o nome configurado.

    Raises:
        ConfigError: configuração inválida.
        DefinitionError: definição de pipeline inválida.
    """
    if settings is None:
        settings = OrchestratorSettings.from_config(
            load_config(defaults_path=config_path, local_path=local_config_path)
        )

    if configure_logs:
        configure_logging(level=settings.logging.level, json_logs=settings.logging.json)

    if engine is None:
        engine = ExecutionEngine(
            store=store, training_runner=training_runner, manifest_dir=settings.manifest_dir
        )

    definition = load_definition(settings.definition_path, name=settings.pipeline_name)
    definition = definition.with_defaults(
        {"TrainingDataUri": settings.data_uri, "ArtifactUri": settings.artifact_uri}
    )
    engine.register(definition, replace=True)

    orchestrator = Orchestrator(
        rules=settings.rules,
        trigger=TriggerHandler(
            engine=engine,
            pipeline_name=settings.pipeline_name,
            include_group_name=settings.include_group_name,
        ),
        dispatcher=NotificationDispatcher(
            publisher=publisher if publisher is not None else InMemoryTopicPublisher(),
            topic=settings.topic,
            subject=settings.subject,
        ),
        engine=engine,
        settings=settings,
    )
    logger.info(
        "orchestrator ready",
        extra={
            "project": settings.project_name,
            "pipeline": settings.pipeline_name,
            "rules": [r.name for r in settings.rules],
            "config_hash": settings.config_hash,
        },
    )
    return orchestrator

