# src/approval_orchestrator/core/engine/__init__.py
"""
Execution Engine do orquestrador.

Componentes principais:
    - planner  → validação estrutural e ordenação topológica determinística
    - registry → definições validadas no registro (não a cada start)
    - engine   → registro de execuções e máquina de estados por execução
    - workers  → contrato com o runner de jobs de treinamento

Princípios fundamentais:
    - Planejamento e execução são responsabilidades separadas
    - Steps só são agendados após suas dependências terem sucesso
    - Idempotência de start é explícita e verificada de forma atômica
"""

from .engine import (
    ExecutionEngine,
    ExecutionHandle,
    PipelineExecution,
    StepExecution,
    TimeoutWatcher,
)
from .planner import plan_execution, validate_definition
from .registry import DefinitionRegistry
from .workers import InMemoryTrainingRunner, TrainingJobRequest, TrainingRunner

__all__ = [
    "DefinitionRegistry",
    "ExecutionEngine",
    "ExecutionHandle",
    "InMemoryTrainingRunner",
    "PipelineExecution",
    "StepExecution",
    "TimeoutWatcher",
    "TrainingJobRequest",
    "TrainingRunner",
    "plan_execution",
    "validate_definition",
]
