"""
Approval Orchestrator — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do orquestrador.
Erros são artefatos de domínio e fazem parte do contrato operacional:
toda falha que atravessa uma fronteira (entrega de evento, start de
pipeline, publicação de notificação) é convertida em um `ErrorPayload`
serializável, visível ao operador e sem stack trace cru.

Nenhuma decisão implícita é permitida.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do orquestrador.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
    - hint: ação sugerida ao operador (onde corrigir)
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Eventos
EVENT_MALFORMED = "EVENT_MALFORMED"

# Definição de pipeline
DEFINITION_INVALID = "DEFINITION_INVALID"
DEFINITION_DUPLICATE = "DEFINITION_DUPLICATE"

# Start de execução
START_MISSING_PARAMETER = "START_MISSING_PARAMETER"
START_UNKNOWN_DEFINITION = "START_UNKNOWN_DEFINITION"

# Execução
STEP_TIMEOUT = "STEP_TIMEOUT"
STEP_FAILED = "STEP_FAILED"
EXECUTION_NOT_FOUND = "EXECUTION_NOT_FOUND"
INVALID_TRANSITION = "INVALID_TRANSITION"

# Notificação
NOTIFY_FAILED = "NOTIFY_FAILED"

# Fallback genérico
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def step_failed(
    *,
    step: str,
    reason: str,
    details: Optional[Dict[str, Any]] = None,
) -> ErrorPayload:
    """Falha reportada pelo worker externo de um Step (training runner ou aprovador)."""
    merged: Dict[str, Any] = {"step": step}
    merged.update(details or {})
    return ErrorPayload(
        type=STEP_FAILED,
        message=reason or "Step reportou falha",
        details=merged,
        hint="Consulte o log do worker responsável pelo Step",
    )


def unexpected_error(exc: BaseException) -> ErrorPayload:
    return ErrorPayload(
        type=UNEXPECTED_ERROR,
        message=str(exc) or "Erro inesperado durante o processamento",
        details={"exception_class": exc.__class__.__name__},
        hint="Verifique o log técnico do orquestrador",
    )
