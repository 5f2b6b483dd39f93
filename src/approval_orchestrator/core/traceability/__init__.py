# src/approval_orchestrator/core/traceability/__init__.py
"""
Pacote de rastreabilidade — Manifest de execução.

API pública exposta:
    - ExecutionManifest → estrutura canônica do Manifest
    - create_manifest   → criação explícita do Manifest
    - add_event         → registro explícito de eventos no Event Log
    - step_scheduled    → marca um Step como agendado
    - step_finished     → registra conclusão bem-sucedida de um Step
    - step_failed       → registra falha de um Step
    - save_manifest     → persistência do Manifest em JSON
    - load_manifest     → restauração determinística do Manifest

Decisões arquiteturais:
    - Nenhum evento é emitido implicitamente
    - A ordem do Event Log reflete a ordem de chamada
"""

from .manifest import (
    ExecutionManifest,
    create_manifest,
    add_event,
    step_scheduled,
    step_finished,
    step_failed,
    save_manifest,
    load_manifest,
)

__all__ = [
    "ExecutionManifest",
    "create_manifest",
    "add_event",
    "step_scheduled",
    "step_finished",
    "step_failed",
    "save_manifest",
    "load_manifest",
]
