# src/approval_orchestrator/core/pipeline/types.py
"""
Tipos canônicos do pipeline de aprovação.

Este módulo define os enums que padronizam a comunicação entre a
definição de pipeline, o Execution Engine e a camada de rastreabilidade:

    - StepType        → Training | Approval | Callback
    - StepStatus      → Pending | Succeeded | Failed
    - ExecutionStatus → Executing | Succeeded | Failed | Stopped
    - StepOutcome     → resultado reportado por um worker externo

Os valores são strings para facilitar serialização em JSON, persistência
no manifest e leitura em notificações.

Invariantes:
    - Os valores textuais dos enums são estáveis e canônicos
    - Estados terminais nunca são reabertos

Limites explícitos:
    - Não executa Steps
    - Não decide políticas de execução
"""

from __future__ import annotations

from enum import Enum


class StepType(str, Enum):
    """
    Tipos de Step suportados pela definição de pipeline.

    Tipos definidos:
        - TRAINING: job de treinamento opaco, com canais de entrada,
          saída, recursos e timeout
        - APPROVAL: gate manual; bloqueia dependentes até um sinal externo
        - CALLBACK: gate manual que, ao ser agendado, publica uma localização
          onde o aprovador deposita o payload da decisão

    Os dois formatos de pipeline observados (Training + Approval e
    Callback puro) são composições destes mesmos tipos.
    """
    TRAINING = "Training"
    APPROVAL = "Approval"
    CALLBACK = "Callback"

    @property
    def is_gate(self) -> bool:
        return self in (StepType.APPROVAL, StepType.CALLBACK)


class StepStatus(str, Enum):
    """
    Estados de um Step dentro de uma execução.

    Transições permitidas:
        - PENDING → SUCCEEDED
        - PENDING → FAILED
    """
    PENDING = "Pending"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self is not StepStatus.PENDING


class ExecutionStatus(str, Enum):
    """
    Estados de uma execução de pipeline.

    Transições permitidas:
        - EXECUTING → SUCCEEDED | FAILED | STOPPED
    """
    EXECUTING = "Executing"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    STOPPED = "Stopped"

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.EXECUTING


class StepOutcome(str, Enum):
    """Resultado reportado ao engine pelo worker de um Step."""
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
