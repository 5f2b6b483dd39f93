# src/approval_orchestrator/core/config/errors.py
"""
Exceções canônicas da camada de configuração do orquestrador.

As exceções aqui definidas representam violações estruturais da
configuração injetada no startup (arquivos de defaults, overrides locais
e o registro tipado `OrchestratorSettings`). Nenhuma delas representa
falha de execução de pipeline ou de processamento de evento.

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Erros de configuração são fatais para o startup
"""


class ConfigError(Exception):
    """
    Exceção base para erros relacionados à configuração do orquestrador.

    Permite captura genérica de erros de configuração no composition root,
    separando falhas de startup de falhas por entrega de evento.
    """


class DefaultsNotFoundError(ConfigError):
    """
    Exceção levantada quando o arquivo de configuração base (defaults)
    não é encontrado no caminho especificado.

    Decisões arquiteturais:
        - O arquivo de defaults é obrigatório
        - A ausência de defaults invalida o startup do orquestrador
    """


class UnsupportedConfigFormatError(ConfigError):
    """
    Exceção levantada quando o formato do arquivo de configuração
    não é suportado pelo loader.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


class InvalidConfigRootTypeError(ConfigError):
    """
    Exceção levantada quando o conteúdo raiz da configuração
    não é um dicionário (`dict`).
    """


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"notifications": {"topic": "model-approval"}}
        - override: {"notifications": "model-approval"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """


class InvalidSettingsError(ConfigError):
    """
    Exceção levantada quando a configuração resolvida não pode ser
    convertida em `OrchestratorSettings` (campo obrigatório ausente,
    tipo incorreto ou regra de evento malformada).
    """
