# src/approval_orchestrator/core/traceability/manifest.py
"""
Manifest de execução — rastreabilidade forense de execuções de pipeline.

O Manifest consolida, de forma determinística e auditável:
    - metadados da execução (execution_id, pipeline, versão da definição)
    - hashes semânticos de entradas (definição e parâmetros)
    - estado incremental dos Steps
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - A ordem do Event Log reflete a ordem real das transições
    - O Manifest é serializável e reconstruível (round-trip)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - O formato de persistência é JSON determinístico
    - O engine persiste um arquivo por execução quando configurado com `manifest_dir`

Invariantes:
    - `events` é sempre uma lista ordenada
    - `steps` é sempre um dicionário indexado pelo nome do Step

Limites explícitos:
    - Não executa pipeline
    - Não decide políticas de execução
    - Não realiza migração de versões de schema
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Normaliza um timestamp para timezone-aware em UTC (naive é assumido UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


@dataclass
class ExecutionManifest:
    """
    Registro forense de uma execução de pipeline.

    Campos principais:
        - run: metadados da execução (execution_id, pipeline_name,
          definition_version, created_at)
        - inputs: hashes semânticos da definição e dos parâmetros
        - steps: estado incremental de cada Step
        - events: Event Log ordenado de eventos explícitos
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    steps: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Cópia serializável e independente do estado interno."""
        return json.loads(json.dumps({
            "run": self.run,
            "inputs": self.inputs,
            "steps": self.steps,
            "events": self.events,
        }, default=str))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutionManifest":
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            steps={k: dict(v) for k, v in (data.get("steps", {}) or {}).items()},
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_manifest(
    *,
    execution_id: str,
    pipeline_name: str,
    definition_version: str,
    created_at: datetime,
    definition_hash: str,
    parameters_hash: str,
) -> ExecutionManifest:
    """
    Cria o Manifest inicial de uma execução.

    Esta função **não emite eventos implicitamente**: o Event Log inicia
    vazio e só é preenchido por `add_event`, `step_scheduled`,
    `step_finished` ou `step_failed`.
    """
    return ExecutionManifest(
        run={
            "execution_id": execution_id,
            "pipeline_name": pipeline_name,
            "definition_version": definition_version,
            "created_at": _iso(created_at),
        },
        inputs={
            "definition_hash": definition_hash,
            "parameters_hash": parameters_hash,
        },
        steps={},
        events=[],
    )


def add_event(
    manifest: ExecutionManifest,
    *,
    event_type: str,
    ts: datetime,
    step_name: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Adiciona um evento explícito ao Event Log.

    A ordem de chamada é a ordem canônica do Event Log. O evento pode estar
    associado a um Step ou ao escopo da execução (ex.: execution_started).
    """
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts)}
    if step_name is not None:
        ev["step"] = step_name
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def step_scheduled(
    manifest: ExecutionManifest,
    *,
    step_name: str,
    step_type: str,
    ts: datetime,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Marca um Step como agendado (`Pending`) e registra `step_scheduled`."""
    s = manifest.steps.setdefault(step_name, {})
    s.update(
        {
            "step": step_name,
            "type": step_type,
            "status": "Pending",
            "scheduled_at": _iso(ts),
        }
    )
    ev_payload: Dict[str, Any] = {"type": step_type}
    if payload:
        ev_payload.update(payload)
    add_event(manifest, event_type="step_scheduled", ts=ts, step_name=step_name, payload=ev_payload)


def step_finished(
    manifest: ExecutionManifest,
    *,
    step_name: str,
    ts: datetime,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """Registra a conclusão bem-sucedida de um Step, com duração desde o agendamento."""
    s = manifest.steps.setdefault(step_name, {"step": step_name})
    scheduled = s.get("scheduled_at")
    started = datetime.fromisoformat(scheduled) if scheduled else ts
    s.update(
        {
            "status": "Succeeded",
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started, ts),
        }
    )
    ev_payload: Dict[str, Any] = {"status": "Succeeded", "duration_ms": s["duration_ms"]}
    if payload:
        ev_payload.update(payload)
    add_event(manifest, event_type="step_finished", ts=ts, step_name=step_name, payload=ev_payload)


def step_failed(
    manifest: ExecutionManifest,
    *,
    step_name: str,
    ts: datetime,
    error: Dict[str, Any],
) -> None:
    """Registra a falha de um Step com o ErrorPayload serializado."""
    s = manifest.steps.setdefault(step_name, {"step": step_name})
    s.update(
        {
            "status": "Failed",
            "finished_at": _iso(ts),
            "error": error,
        }
    )
    add_event(manifest, event_type="step_failed", ts=ts, step_name=step_name, payload={"error": error})


def save_manifest(manifest: ExecutionManifest, path: Path) -> None:
    """Persiste o Manifest em JSON determinístico (chaves ordenadas, UTF-8)."""
    data = manifest.to_dict()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")


def load_manifest(path: Path) -> ExecutionManifest:
    """
    Carrega um Manifest persistido por `save_manifest`.

    Raises:
        FileNotFoundError: se o arquivo não existir.
        json.JSONDecodeError: se o conteúdo não for JSON válido.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    return ExecutionManifest.from_dict(data)
