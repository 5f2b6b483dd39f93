# src/approval_orchestrator/core/__init__.py
"""
Core do orquestrador de aprovação.

O core é projetado para ser:
    - determinístico
    - testável de forma isolada
    - livre de SDKs de nuvem (colaboradores externos entram por protocolos)

Componentes principais:
    - events        → eventos tipados e filtro declarativo
    - pipeline      → definição de pipeline e placeholders de parâmetros
    - engine        → planner, registro de definições e Execution Engine
    - trigger       → Trigger Handler
    - notify        → Notification Dispatcher
    - orchestrator  → composition root
    - config        → configuração injetada no startup
    - traceability  → Manifest e Event Log por execução
    - storage       → contrato de armazenamento de artefatos por URI

Princípios fundamentais:
    - Nenhuma decisão silenciosa: todo erro vira uma exceção tipada ou ErrorPayload
    - Estado compartilhado existe apenas no registro de execuções do engine
"""
