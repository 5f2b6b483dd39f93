# src/approval_orchestrator/core/config/__init__.py

"""
Camada de configuração do orquestrador.

A configuração é:
    - declarativa
    - determinística
    - injetada no composition root no startup (sem globais mutáveis)

Responsabilidades do pacote:
    - Carregamento de arquivos de configuração (defaults + overrides locais)
    - Resolução de configuração final via deep-merge determinístico
    - Conversão para o registro tipado `OrchestratorSettings`
    - Geração de hash canônico para rastreabilidade e idempotência

Invariantes:
    - A configuração resolvida é um dicionário puro (dict)
    - Conflitos estruturais são tratados como erro

Limites explícitos:
    - Não cria recursos externos
    - Não executa pipeline
"""

from .errors import ConfigError, InvalidSettingsError
from .hashing import compute_config_hash, compute_idempotency_key
from .loader import default_config_path, load_config, load_document
from .merge import deep_merge
from .settings import LoggingSettings, OrchestratorSettings, RuleSettings

__all__ = [
    "ConfigError",
    "InvalidSettingsError",
    "LoggingSettings",
    "OrchestratorSettings",
    "RuleSettings",
    "compute_config_hash",
    "compute_idempotency_key",
    "deep_merge",
    "default_config_path",
    "load_config",
    "load_document",
]
