# src/approval_orchestrator/core/config/merge.py
"""
Deep-merge de configuração (defaults + overrides locais).

Política de merge (v1):
    - dict → merge recursivo por chave
    - list → sobrescrita total (regras de evento e listas de valores
      permitidos nunca são mescladas elemento a elemento)
    - escalar → sobrescrita direta
    - conflito de tipos → erro estrutural explícito

Invariantes:
    - Nenhum input é mutado
    - A mesma entrada sempre produz a mesma saída
"""

from copy import deepcopy
from typing import Any, Dict

from .errors import ConfigTypeConflictError


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Realiza um deep-merge determinístico entre dois dicionários de configuração.

    Args:
        base (Dict[str, Any]): Configuração base (ex.: defaults empacotados).
        override (Dict[str, Any]): Overrides explícitos (ex.: arquivo local).

    Returns:
        Dict[str, Any]: Nova configuração resultante do deep-merge.

    Raises:
        ConfigTypeConflictError: Se ocorrer conflito de tipo entre base e override.
    """

    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            f"Deep-merge requer dicts no nível raiz, recebido: "
            f"{type(base).__name__} vs {type(override).__name__}"
        )

    merged: Dict[str, Any] = deepcopy(base)

    for key, incoming in override.items():
        if key not in merged:
            merged[key] = deepcopy(incoming)
            continue

        current = merged[key]

        if isinstance(current, dict) and isinstance(incoming, dict):
            merged[key] = deep_merge(current, incoming)
            continue

        if isinstance(incoming, list):
            merged[key] = deepcopy(incoming)
            continue

        # None no base aceita qualquer override (campo opcional não preenchido)
        if current is not None and type(current) is not type(incoming):
            raise ConfigTypeConflictError(
                f"Conflito de tipo na chave '{key}': "
                f"{type(current).__name__} vs {type(incoming).__name__}"
            )

        merged[key] = deepcopy(incoming)

    return merged
