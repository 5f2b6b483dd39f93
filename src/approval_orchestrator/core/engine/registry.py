# src/approval_orchestrator/core/engine/registry.py
"""
Registro de definições de pipeline.

O `DefinitionRegistry` guarda as definições validadas que o engine pode
executar. A validação estrutural (`validate_definition`) roda uma única vez,
no registro, e não a cada start.

Decisões arquiteturais:
    - Nomes de definição são únicos; re-registro exige `replace=True`
    - A ordem de registro é preservada
    - Cada definição registrada carrega o hash canônico do seu documento

Invariantes:
    - Apenas definições válidas são armazenadas
    - `get` de um nome desconhecido levanta UnknownDefinitionError

Limites explícitos:
    - Não executa pipelines
    - Não persiste definições
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, List

from approval_orchestrator.core.config.hashing import compute_config_hash
from approval_orchestrator.core.exceptions import DuplicateDefinitionError, UnknownDefinitionError
from approval_orchestrator.core.logging import get_logger
from approval_orchestrator.core.pipeline.definition import PipelineDefinition

from .planner import validate_definition


logger = get_logger(__name__)


@dataclass
class DefinitionRegistry:
    """Registro canônico de definições validadas, indexado por nome."""

    _definitions: Dict[str, PipelineDefinition] = field(default_factory=dict, init=False, repr=False)
    _hashes: Dict[str, str] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def register(self, definition: PipelineDefinition, *, replace: bool = False) -> str:
        """
        Valida e registra uma definição. Retorna o hash canônico do documento.

        Raises:
            DefinitionError: definição estruturalmente inválida.
            DuplicateDefinitionError: nome já registrado (sem `replace`).
        """
        validate_definition(definition)
        digest = compute_config_hash(definition.to_dict())

        with self._lock:
            if definition.name in self._definitions and not replace:
                raise DuplicateDefinitionError(
                    message=f"Pipeline definition already registered: {definition.name}",
                    details={"step": None, "rule": "unique_definition_names", "pipeline": definition.name},
                    hint="Use replace=True para substituir explicitamente",
                )
            if definition.name not in self._definitions:
                self._order.append(definition.name)
            self._definitions[definition.name] = definition
            self._hashes[definition.name] = digest

        logger.info(
            "pipeline definition registered",
            extra={"pipeline": definition.name, "version": definition.version, "definition_hash": digest},
        )
        return digest

    def get(self, name: str) -> PipelineDefinition:
        with self._lock:
            definition = self._definitions.get(name)
        if definition is None:
            raise UnknownDefinitionError(
                message=f"Unknown pipeline definition: {name}",
                details={"pipeline": name},
                hint="Registre a definição antes de iniciar execuções",
            )
        return definition

    def definition_hash(self, name: str) -> str:
        self.get(name)
        with self._lock:
            return self._hashes[name]

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._definitions

    def list(self) -> List[PipelineDefinition]:
        with self._lock:
            return [self._definitions[n] for n in self._order]
