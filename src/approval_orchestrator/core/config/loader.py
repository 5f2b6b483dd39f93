# src/approval_orchestrator/core/config/loader.py
"""
Loader canônico de configuração do orquestrador.

Este módulo é responsável por carregar, validar estruturalmente e resolver
a configuração efetiva injetada no composition root (`Orchestrator`).

A configuração é resolvida a partir de:
    - um arquivo de defaults (obrigatório; o pacote embarca
      `resources/orchestrator.defaults.yaml`)
    - um arquivo local de overrides (opcional)

Responsabilidades do módulo:
    - Carregar documentos em YAML ou JSON
    - Validar requisitos estruturais mínimos (tipo raiz)
    - Resolver a configuração final via deep-merge determinístico
    - Garantir precedência explícita do override local sobre defaults

Invariantes:
    - O arquivo de defaults é obrigatório
    - O resultado é sempre um dicionário puro (`dict`)
    - Overrides nunca mutam os defaults

Limites explícitos:
    - Não converte a configuração em tipos de domínio (ver `settings`)
    - Não cria recursos externos (tópicos, buckets, pipelines)
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union
import json

import yaml  # PyYAML

from .merge import deep_merge
from .errors import (
    DefaultsNotFoundError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
)

RESOURCES_DIR = Path(__file__).resolve().parents[2] / "resources"
DEFAULTS_FILENAME = "orchestrator.defaults.yaml"


def default_config_path() -> Path:
    """Caminho do arquivo de defaults embarcado no pacote."""
    return RESOURCES_DIR / DEFAULTS_FILENAME


def load_document(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Carrega um documento YAML/JSON e valida sua estrutura básica.

    Usado tanto para arquivos de configuração quanto para documentos de
    definição de pipeline.

    Decisões arquiteturais:
        - O formato é inferido exclusivamente pela extensão
        - Arquivos vazios são interpretados como dicionários vazios
        - O conteúdo raiz deve ser um dicionário (`dict`)

    Args:
        path (Union[str, Path]): Caminho para o documento.

    Returns:
        Dict[str, Any]: Conteúdo do documento como dicionário.

    Raises:
        DefaultsNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    path = Path(path)
    if not path.exists():
        raise DefaultsNotFoundError(f"Arquivo não encontrado: {path}")

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(f"Formato não suportado: {path.suffix}")

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            f"Config root deve ser dict, recebido: {type(data).__name__}"
        )

    return data


def load_config(
    *,
    defaults_path: Optional[Union[str, Path]] = None,
    local_path: Optional[Union[str, Path]] = None,
) -> Dict[str, Any]:
    """
    Carrega e resolve a configuração efetiva do orquestrador.

    Política de resolução:
        - Sem `defaults_path`, usa os defaults embarcados no pacote
        - O arquivo local é opcional; se informado e inexistente, é ignorado
        - Quando presente, o local sempre tem prioridade sobre defaults

    Args:
        defaults_path: Caminho para o arquivo de configuração base.
        local_path: Caminho opcional para overrides locais.

    Returns:
        Dict[str, Any]: Configuração final resolvida.

    Raises:
        DefaultsNotFoundError: Se o arquivo de defaults não existir.
        UnsupportedConfigFormatError: Se o formato do arquivo não for suportado.
        InvalidConfigRootTypeError: Se o conteúdo não for um dicionário.
        ConfigTypeConflictError: Se ocorrer conflito estrutural durante o merge.
    """

    defaults = load_document(defaults_path if defaults_path is not None else default_config_path())

    effective = defaults

    if local_path is not None:
        local_file = Path(local_path)
        if local_file.exists():
            effective = deep_merge(defaults, load_document(local_file))

    return effective
