# src/approval_orchestrator/core/events/pattern.py
"""
Filtro de eventos (Event Filter).

Um `EventPattern` é um predicado declarativo sobre um `Event`:
    - um conjunto de valores permitidos por campo de topo
      (`source`, `detail_type`, `account`, `region`)
    - um mapa aninhado de valores permitidos por campo de `detail`

Semântica de `matches` (v1):
    - cada campo configurado precisa existir no evento
    - o valor do evento precisa pertencer ao conjunto permitido do campo
    - campos não configurados não restringem nada
    - padrão vazio casa com qualquer evento
    - AND estrito: não existe match parcial

Decisões arquiteturais:
    - `matches` é uma função pura, sem I/O e sem efeitos colaterais
    - Padrões são imutáveis após a construção
    - Valores não-hasheáveis no evento (listas, mapas) nunca casam com
      um conjunto de valores escalares
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping

from .types import Event


TOP_LEVEL_FIELDS = {
    "source": "source",
    "detail-type": "detail_type",
    "detailType": "detail_type",
    "detail_type": "detail_type",
    "account": "account",
    "region": "region",
}


def _allowed(key: str, values: Any) -> FrozenSet[Any]:
    if not isinstance(values, (list, tuple, set, frozenset)):
        raise ValueError(f"pattern field '{key}' must be a list of allowed values")
    try:
        return frozenset(values)
    except TypeError as e:
        raise ValueError(f"pattern field '{key}' must contain only scalar values") from e


def _normalize_detail(spec: Mapping[str, Any], prefix: str = "detail") -> Mapping[str, Any]:
    out: Dict[str, Any] = {}
    for key, value in spec.items():
        path = f"{prefix}.{key}"
        if isinstance(value, Mapping):
            out[str(key)] = _normalize_detail(value, path)
        else:
            out[str(key)] = _allowed(path, value)
    return MappingProxyType(out)


@dataclass(frozen=True)
class EventPattern:
    """Predicado declarativo e imutável sobre um Event."""

    fields: Mapping[str, FrozenSet[Any]] = field(default_factory=dict)
    detail: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        if not isinstance(self.detail, MappingProxyType):
            object.__setattr__(self, "detail", _normalize_detail(self.detail))

    @classmethod
    def from_dict(cls, spec: Mapping[str, Any]) -> "EventPattern":
        """
        Constrói um padrão a partir da forma declarativa de configuração.

        Exemplo:
            {"source": ["aws.sagemaker"],
             "detail-type": ["SageMaker Model Package State Change"],
             "detail": {"ModelApprovalStatus": ["Approved"]}}

        Raises:
            ValueError: campo de topo desconhecido ou valores não-lista.
        """
        if spec is None:
            spec = {}
        if not isinstance(spec, Mapping):
            raise ValueError("event pattern must be a mapping")

        fields: Dict[str, FrozenSet[Any]] = {}
        detail: Mapping[str, Any] = MappingProxyType({})
        for key, values in spec.items():
            if key == "detail":
                if not isinstance(values, Mapping):
                    raise ValueError("pattern field 'detail' must be a mapping")
                detail = _normalize_detail(values)
                continue
            attr = TOP_LEVEL_FIELDS.get(key)
            if attr is None:
                raise ValueError(f"unsupported pattern field: {key}")
            fields[attr] = _allowed(key, values)
        return cls(fields=fields, detail=detail)

    @property
    def is_empty(self) -> bool:
        return not self.fields and not self.detail

    def to_dict(self) -> Dict[str, Any]:
        def _detail(spec: Mapping[str, Any]) -> Dict[str, Any]:
            return {
                k: _detail(v) if isinstance(v, Mapping) else sorted(v, key=str)
                for k, v in spec.items()
            }

        out: Dict[str, Any] = {k: sorted(v, key=str) for k, v in self.fields.items()}
        if self.detail:
            out["detail"] = _detail(self.detail)
        return out


def _contains(allowed: FrozenSet[Any], value: Any) -> bool:
    try:
        return value in allowed
    except TypeError:
        return False


def _match_detail(actual: Mapping[str, Any], spec: Mapping[str, Any]) -> bool:
    for key, expected in spec.items():
        if key not in actual:
            return False
        value = actual[key]
        if isinstance(expected, Mapping):
            if not isinstance(value, Mapping) or not _match_detail(value, expected):
                return False
        elif value is None or not _contains(expected, value):
            return False
    return True


def matches(event: Event, pattern: EventPattern) -> bool:
    """Retorna True se todos os campos configurados em `pattern` casam com `event`."""
    for attr, allowed in pattern.fields.items():
        value = getattr(event, attr, None)
        if value is None or not _contains(allowed, value):
            return False
    return _match_detail(event.detail, pattern.detail)
