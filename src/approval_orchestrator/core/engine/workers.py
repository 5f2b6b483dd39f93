# src/approval_orchestrator/core/engine/workers.py
"""
Contrato com o executor de jobs de treinamento.

O algoritmo executado dentro de um Step de Training é opaco ao core. O
engine apenas submete uma `TrainingJobRequest` com os argumentos já
resolvidos e espera que o worker reporte o resultado via
`ExecutionEngine.advance(handle, step, outcome)`.

Limites explícitos:
    - Não executa treinamento
    - Não faz retry de submissões
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Protocol


@dataclass(frozen=True)
class TrainingJobRequest:
    """Job de treinamento submetido pelo engine ao agendar um Step de Training."""

    execution_id: str
    pipeline_name: str
    step_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    @property
    def job_name(self) -> str:
        return f"{self.pipeline_name}-{self.step_name}-{self.execution_id}"


class TrainingRunner(Protocol):
    def submit(self, job: TrainingJobRequest) -> None:
        ...


class InMemoryTrainingRunner:
    """Runner que apenas registra as submissões (execução local e testes)."""

    def __init__(self) -> None:
        self._jobs: List[TrainingJobRequest] = []
        self._lock = threading.Lock()

    def submit(self, job: TrainingJobRequest) -> None:
        with self._lock:
            self._jobs.append(job)

    @property
    def jobs(self) -> List[TrainingJobRequest]:
        with self._lock:
            return list(self._jobs)
