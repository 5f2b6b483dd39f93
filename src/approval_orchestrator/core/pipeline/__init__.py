# src/approval_orchestrator/core/pipeline/__init__.py
"""
# Pipeline Core

Este pacote define o modelo declarativo de um pipeline de aprovação.

Um pipeline é um **DAG explícito de Steps tipados**:
- `Training`: job opaco com canais de entrada, saída, recursos e timeout
- `Approval`: gate manual que bloqueia dependentes até um sinal externo
- `Callback`: gate manual que publica uma localização para a decisão

## Componentes

- **types**: `StepType`, `StepStatus`, `ExecutionStatus`, `StepOutcome`
- **definition**: `PipelineDefinition`, `StepDefinition`, placeholders de
  parâmetros (`{"Get": "Parameters.<Name>"}`) e `load_definition`

## Limites Explícitos

- Não valida o DAG (ver `core.engine.planner`)
- Não executa pipeline
"""

from .definition import (
    CallbackConfig,
    DataChannel,
    ParameterRef,
    ParameterSpec,
    PipelineDefinition,
    ResourceSpec,
    StepDefinition,
    TrainingConfig,
    load_definition,
)
from .types import ExecutionStatus, StepOutcome, StepStatus, StepType

__all__ = [
    "CallbackConfig",
    "DataChannel",
    "ExecutionStatus",
    "ParameterRef",
    "ParameterSpec",
    "PipelineDefinition",
    "ResourceSpec",
    "StepDefinition",
    "StepOutcome",
    "StepStatus",
    "StepType",
    "TrainingConfig",
    "load_definition",
]
