# src/approval_orchestrator/__init__.py
"""
Approval Orchestrator — orquestração orientada a eventos de pipelines de aprovação de modelos.

Este pacote reage a notificações "um model package mudou de estado no
registry" e conduz um pipeline com gate de aprovação:

    evento → filtro → [Trigger Handler → Execution Engine]
                    → [Notification Dispatcher]

Arquitetura em alto nível:
    - core.events       → Event, ModelPackageStateChange e o filtro (EventPattern)
    - core.pipeline     → definição declarativa de pipeline (Training | Approval | Callback)
    - core.engine       → validação do DAG, registro de definições e execuções
    - core.trigger      → evento → start idempotente de pipeline
    - core.notify       → resumo do evento publicado em um tópico
    - core.orchestrator → composition root
    - core.config       → defaults + overrides, settings tipados, hashing
    - core.traceability → Manifest e Event Log por execução

Limites explícitos:
    - Não provisiona buckets, tópicos, roles ou pipelines
    - Não executa o algoritmo de treinamento
    - Não oferece UI para aprovadores
"""

from .core.orchestrator import DeliveryOutcome, Orchestrator, build_orchestrator

__all__ = ["DeliveryOutcome", "Orchestrator", "build_orchestrator"]
