# src/approval_orchestrator/core/config/settings.py
"""
Registro tipado da configuração do orquestrador.

`OrchestratorSettings.from_config` converte o dicionário resolvido por
`load_config` em um registro imutável, injetado no composition root no
startup. Nenhum recurso (tópico, bucket, pipeline) é global ou mutável.

Esquema (v1):

    project:        {name}
    pipeline:       {name, definition, include_group_name}
    model_registry: {model_package_group_name}
    storage:        {data_uri, artifact_uri}
    notifications:  {topic, subject}
    engine:         {timeout_sweep_seconds, manifest_dir}
    logging:        {level, json}
    rules:          [{name, pattern}]

Invariantes:
    - Campos obrigatórios ausentes ou com tipo errado levantam InvalidSettingsError
    - Nomes de regra são únicos; a ordem declarada é a ordem de avaliação
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from approval_orchestrator.core.events.pattern import EventPattern

from .errors import InvalidSettingsError
from .hashing import compute_config_hash
from .loader import RESOURCES_DIR


DEFAULT_DEFINITION_PATH = RESOURCES_DIR / "model-approval-pipeline.yaml"


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = config.get(name) or {}
    if not isinstance(value, Mapping):
        raise InvalidSettingsError(f"Section '{name}' must be a mapping")
    return value


def _str(section: Mapping[str, Any], key: str, where: str, *, required: bool = True) -> Optional[str]:
    value = section.get(key)
    if value is None and not required:
        return None
    if not isinstance(value, str) or not value.strip():
        raise InvalidSettingsError(f"'{where}.{key}' must be a non-empty string")
    return value


def _bool(section: Mapping[str, Any], key: str, where: str, default: bool) -> bool:
    value = section.get(key, default)
    if not isinstance(value, bool):
        raise InvalidSettingsError(f"'{where}.{key}' must be a boolean")
    return value


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    json: bool = False


@dataclass(frozen=True)
class RuleSettings:
    """Regra nomeada do filtro de eventos."""

    name: str
    pattern: EventPattern


@dataclass(frozen=True)
class OrchestratorSettings:
    project_name: str
    pipeline_name: str
    model_package_group_name: str
    topic: str
    data_uri: str
    artifact_uri: str
    rules: Tuple[RuleSettings, ...]
    include_group_name: bool = False
    subject: str = "Model Approval Notifications"
    definition_path: Path = DEFAULT_DEFINITION_PATH
    timeout_sweep_seconds: float = 5.0
    manifest_dir: Optional[Path] = None
    logging: LoggingSettings = LoggingSettings()
    config_hash: str = ""

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "OrchestratorSettings":
        """
        Raises:
            InvalidSettingsError: configuração resolvida inválida.
        """
        if not isinstance(config, Mapping):
            raise InvalidSettingsError("Resolved configuration must be a mapping")

        project = _section(config, "project")
        pipeline = _section(config, "pipeline")
        registry = _section(config, "model_registry")
        storage = _section(config, "storage")
        notifications = _section(config, "notifications")
        engine = _section(config, "engine")
        log_cfg = _section(config, "logging")

        definition = _str(pipeline, "definition", "pipeline", required=False)
        manifest_dir = _str(engine, "manifest_dir", "engine", required=False)

        sweep = engine.get("timeout_sweep_seconds", 5.0)
        if isinstance(sweep, bool) or not isinstance(sweep, (int, float)) or sweep <= 0:
            raise InvalidSettingsError("'engine.timeout_sweep_seconds' must be a positive number")

        level = str(log_cfg.get("level", "INFO")).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise InvalidSettingsError(f"'logging.level' is not a valid level: {level}")

        return cls(
            project_name=_str(project, "name", "project"),  # type: ignore[arg-type]
            pipeline_name=_str(pipeline, "name", "pipeline"),  # type: ignore[arg-type]
            include_group_name=_bool(pipeline, "include_group_name", "pipeline", False),
            definition_path=Path(definition) if definition else DEFAULT_DEFINITION_PATH,
            model_package_group_name=_str(registry, "model_package_group_name", "model_registry"),  # type: ignore[arg-type]
            data_uri=_str(storage, "data_uri", "storage"),  # type: ignore[arg-type]
            artifact_uri=_str(storage, "artifact_uri", "storage"),  # type: ignore[arg-type]
            topic=_str(notifications, "topic", "notifications"),  # type: ignore[arg-type]
            subject=_str(notifications, "subject", "notifications", required=False) or "Model Approval Notifications",
            timeout_sweep_seconds=float(sweep),
            manifest_dir=Path(manifest_dir) if manifest_dir else None,
            logging=LoggingSettings(level=level, json=_bool(log_cfg, "json", "logging", False)),
            rules=_rules(config.get("rules")),
            config_hash=compute_config_hash(dict(config)),
        )


def _rules(raw: Any) -> Tuple[RuleSettings, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise InvalidSettingsError("'rules' must be a list")

    rules = []
    seen: Dict[str, int] = {}
    for pos, item in enumerate(raw):
        if not isinstance(item, Mapping):
            raise InvalidSettingsError(f"Rule at position {pos} must be a mapping")
        name = _str(item, "name", f"rules[{pos}]")
        if name in seen:
            raise InvalidSettingsError(f"Duplicate rule name: {name}")
        seen[name] = pos  # type: ignore[index]
        try:
            pattern = EventPattern.from_dict(item.get("pattern") or {})
        except ValueError as e:
            raise InvalidSettingsError(f"Rule '{name}' has an invalid pattern: {e}") from e
        rules.append(RuleSettings(name=name, pattern=pattern))  # type: ignore[arg-type]
    return tuple(rules)
