"""
Approval Orchestrator — Canonical Exceptions (v1)

Este módulo define as exceções tipadas do orquestrador.

Objetivo:
- Permitir que filtro, handler, engine e dispatcher levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para ErrorPayload
- Evitar ValueError/RuntimeError genéricos nas fronteiras do core

Regras:
- Exceções carregam apenas dados estruturados (serializáveis) em `details`.
- Cada classe declara um `code` estável do catálogo em `core.errors`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional

from .errors import (
    DEFINITION_DUPLICATE,
    DEFINITION_INVALID,
    EVENT_MALFORMED,
    EXECUTION_NOT_FOUND,
    INVALID_TRANSITION,
    NOTIFY_FAILED,
    START_MISSING_PARAMETER,
    START_UNKNOWN_DEFINITION,
    STEP_TIMEOUT,
    ErrorPayload,
    unexpected_error,
)


@dataclass(frozen=True)
class OrchestratorException(Exception):
    """Base class para exceções internas do orquestrador.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    code: ClassVar[str] = "ORCHESTRATOR_ERROR"

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message

    def to_error(self) -> ErrorPayload:
        return ErrorPayload(
            type=self.code,
            message=self.message,
            details=dict(self.details),
            hint=self.hint,
        )


# ---------------------------------------------------------------------------
# Eventos
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MalformedEventError(OrchestratorException):
    """Campo obrigatório ausente ou com tipo errado no evento recebido."""

    code: ClassVar[str] = EVENT_MALFORMED


# ---------------------------------------------------------------------------
# Definição de pipeline
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DefinitionError(OrchestratorException):
    """Violação estrutural de uma definição de pipeline.

    `details` sempre carrega `step` (quando aplicável) e `rule`.
    """

    code: ClassVar[str] = DEFINITION_INVALID

    @property
    def step(self) -> Optional[str]:
        return self.details.get("step")

    @property
    def rule(self) -> Optional[str]:
        return self.details.get("rule")


@dataclass(frozen=True)
class DuplicateStepNameError(DefinitionError):
    """Dois Steps com o mesmo nome na mesma definição."""


@dataclass(frozen=True)
class UnknownDependencyError(DefinitionError):
    """`dependsOn` referencia um Step inexistente."""


@dataclass(frozen=True)
class ForwardReferenceError(DefinitionError):
    """`dependsOn` referencia um Step declarado depois do dependente."""


@dataclass(frozen=True)
class CycleDetectedError(DefinitionError):
    """O grafo de dependências contém um ciclo."""


@dataclass(frozen=True)
class IncompleteStepConfigError(DefinitionError):
    """Configuração específica do tipo do Step está incompleta."""


@dataclass(frozen=True)
class DuplicateDefinitionError(DefinitionError):
    """Já existe uma definição registrada com o mesmo nome."""

    code: ClassVar[str] = DEFINITION_DUPLICATE


# ---------------------------------------------------------------------------
# Start de execução
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StartError(OrchestratorException):
    """Requisição de start não pode ser atendida; nenhuma execução é criada."""


@dataclass(frozen=True)
class MissingParameterError(StartError):
    """Placeholder referenciado pela definição sem valor nem default."""

    code: ClassVar[str] = START_MISSING_PARAMETER


@dataclass(frozen=True)
class UnknownDefinitionError(StartError):
    """Nome de pipeline não corresponde a nenhuma definição registrada."""

    code: ClassVar[str] = START_UNKNOWN_DEFINITION


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StepTimeoutError(OrchestratorException):
    """Step de Training excedeu o tempo máximo configurado."""

    code: ClassVar[str] = STEP_TIMEOUT


@dataclass(frozen=True)
class ExecutionNotFoundError(OrchestratorException):
    """Handle de execução desconhecido."""

    code: ClassVar[str] = EXECUTION_NOT_FOUND


@dataclass(frozen=True)
class InvalidTransitionError(OrchestratorException):
    """Transição de estado não permitida (execução terminal, Step não agendado, etc.)."""

    code: ClassVar[str] = INVALID_TRANSITION


# ---------------------------------------------------------------------------
# Notificação
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NotifyError(OrchestratorException):
    """Publicação no tópico de notificação falhou."""

    code: ClassVar[str] = NOTIFY_FAILED


def exception_to_error(exc: BaseException) -> ErrorPayload:
    """Converte exceções em ErrorPayload (serializável, acionável).

    Regras:
    - OrchestratorException: já vem com code/message/details/hint.
    - Outras exceções: encapsular como UNEXPECTED_ERROR sem expor stack trace.
    """
    if isinstance(exc, OrchestratorException):
        return exc.to_error()
    return unexpected_error(exc)
