# src/approval_orchestrator/core/engine/engine.py
"""
Execution Engine do orquestrador de aprovação.

O engine recebe pedidos de start contra definições registradas, mantém o
registro de execuções e conduz a máquina de estados de cada execução à
medida que workers externos (runner de treinamento, aprovadores) reportam
resultados.

Máquinas de estado:
    - execução: Executing → {Succeeded, Failed, Stopped}; terminais não reabrem
    - Step:     Pending → {Succeeded, Failed}

Agendamento:
    - Um Step é agendado quando todas as suas dependências estão Succeeded
    - Steps de Training são submetidos ao `TrainingRunner` fora do lock da execução
    - Steps de Approval ficam Pending até `approve`/`reject`
    - Steps de Callback, ao serem agendados, recebem uma `callback_uri`
      (`<output>/<execution_id>/<step>.json`) onde o engine grava um
      documento de requisição; o aprovador deposita ali sua decisão

Concorrência:
    - O lock do registro protege o índice de idempotência e o mapa de execuções
    - Cada execução possui um RLock próprio que serializa advance/approve/
      reject/stop/timeouts sobre o mesmo handle

Idempotência:
    - `start` com uma chave já conhecida retorna o handle existente
    - Sem chave explícita, ela é derivada do nome do pipeline e do conjunto
      completo de parâmetros resolvidos

Persistência:
    - Com `manifest_dir`, o manifest de cada execução é regravado em
      `<manifest_dir>/<execution_id>.json` a cada transição, sob o lock da execução

Limites explícitos:
    - Não executa treinamento
    - Não faz retry de Steps que falharam
    - Não aplica timeout a Steps de Approval/Callback
"""

from __future__ import annotations

import threading
import uuid
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from approval_orchestrator.core import errors
from approval_orchestrator.core.config.hashing import compute_config_hash, compute_idempotency_key
from approval_orchestrator.core.errors import ErrorPayload
from approval_orchestrator.core.exceptions import (
    ExecutionNotFoundError,
    InvalidTransitionError,
    MissingParameterError,
    StepTimeoutError,
    exception_to_error,
)
from approval_orchestrator.core.logging import get_logger
from approval_orchestrator.core.pipeline.definition import PipelineDefinition
from approval_orchestrator.core.pipeline.types import ExecutionStatus, StepOutcome, StepStatus, StepType
from approval_orchestrator.core.storage import ArtifactStore, InMemoryArtifactStore, join_uri
from approval_orchestrator.core.traceability import manifest as mf

from .planner import plan_execution
from .registry import DefinitionRegistry
from .workers import InMemoryTrainingRunner, TrainingJobRequest, TrainingRunner


logger = get_logger(__name__)

CALLBACK_REQUEST_KIND = "CallbackRequest"

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ExecutionHandle:
    """Handle opaco de uma execução aceita pelo engine."""

    execution_id: str
    pipeline_name: str

    def __str__(self) -> str:
        return self.execution_id


@dataclass
class StepExecution:
    """Estado de um Step dentro de uma execução (`scheduled_at` None = não agendado)."""

    name: str
    type: StepType
    depends_on: Tuple[str, ...] = ()
    status: StepStatus = StepStatus.PENDING
    scheduled_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    failure_reason: Optional[ErrorPayload] = None
    callback_uri: Optional[str] = None
    decision: Optional[Dict[str, Any]] = None
    arguments: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_scheduled(self) -> bool:
        return self.scheduled_at is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "dependsOn": list(self.depends_on),
            "status": self.status.value,
            "scheduledAt": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "failureReason": self.failure_reason.to_dict() if self.failure_reason else None,
            "callbackUri": self.callback_uri,
            "decision": deepcopy(self.decision),
            "arguments": deepcopy(self.arguments),
        }


@dataclass
class PipelineExecution:
    """Snapshot de uma execução de pipeline."""

    execution_id: str
    pipeline_name: str
    definition_version: str
    parameters: Dict[str, str]
    idempotency_key: str
    created_at: datetime
    status: ExecutionStatus = ExecutionStatus.EXECUTING
    steps: Dict[str, StepExecution] = field(default_factory=dict)
    finished_at: Optional[datetime] = None
    failure_reason: Optional[ErrorPayload] = None
    events: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def handle(self) -> ExecutionHandle:
        return ExecutionHandle(self.execution_id, self.pipeline_name)

    def step(self, name: str) -> StepExecution:
        return self.steps[name]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "executionId": self.execution_id,
            "pipelineName": self.pipeline_name,
            "definitionVersion": self.definition_version,
            "parameters": dict(self.parameters),
            "idempotencyKey": self.idempotency_key,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "failureReason": self.failure_reason.to_dict() if self.failure_reason else None,
            "steps": [s.to_dict() for s in self.steps.values()],
            "events": deepcopy(self.events),
        }


@dataclass
class _ExecutionRecord:
    state: PipelineExecution
    definition: PipelineDefinition
    manifest: mf.ExecutionManifest
    lock: threading.RLock = field(default_factory=threading.RLock)


class ExecutionEngine:
    """Engine canônico: registro de execuções + máquina de estados por execução."""

    def __init__(
        self,
        *,
        registry: Optional[DefinitionRegistry] = None,
        store: Optional[ArtifactStore] = None,
        training_runner: Optional[TrainingRunner] = None,
        clock: Optional[Clock] = None,
        id_factory: Optional[Callable[[], str]] = None,
        manifest_dir: Optional[Union[str, Path]] = None,
    ):
        self.registry = registry if registry is not None else DefinitionRegistry()
        self.store = store if store is not None else InMemoryArtifactStore()
        self.training_runner = training_runner if training_runner is not None else InMemoryTrainingRunner()
        self._clock: Clock = clock or _utcnow
        self._new_id: Callable[[], str] = id_factory or (lambda: uuid.uuid4().hex)
        self.manifest_dir = Path(manifest_dir) if manifest_dir is not None else None

        self._lock = threading.Lock()
        self._executions: Dict[str, _ExecutionRecord] = {}
        self._by_key: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Definições
    # ------------------------------------------------------------------

    def register(self, definition: PipelineDefinition, *, replace: bool = False) -> str:
        return self.registry.register(definition, replace=replace)

    def describe_pipeline(self, name: str) -> Dict[str, Any]:
        definition = self.registry.get(name)
        with self._lock:
            count = sum(1 for r in self._executions.values() if r.state.pipeline_name == name)
        return {
            "name": definition.name,
            "version": definition.version,
            "definitionHash": self.registry.definition_hash(name),
            "parameters": definition.referenced_parameters(),
            "definition": definition.to_dict(),
            "executionCount": count,
        }

    # ------------------------------------------------------------------
    # Start
    # ------------------------------------------------------------------

    def start(
        self,
        pipeline_name: str,
        parameters: Mapping[str, Any],
        *,
        idempotency_key: Optional[str] = None,
    ) -> ExecutionHandle:
        """
        Inicia uma execução (ou retorna a existente para a mesma chave).

        Raises:
            UnknownDefinitionError: pipeline não registrado.
            MissingParameterError: placeholder sem valor nem default.
        """
        definition = self.registry.get(pipeline_name)

        resolved: Dict[str, str] = definition.defaults()
        resolved.update({str(k): str(v) for k, v in parameters.items()})

        missing = [p for p in definition.referenced_parameters() if p not in resolved]
        if missing:
            raise MissingParameterError(
                message=f"Missing pipeline parameter(s): {', '.join(missing)}",
                details={"pipeline": pipeline_name, "missing": missing},
                hint="Forneça todos os parâmetros referenciados pela definição",
            )

        key = idempotency_key or compute_idempotency_key(pipeline_name, resolved)
        ordered = plan_execution(definition.steps)
        steps = {
            s.name: StepExecution(
                name=s.name,
                type=s.type,
                depends_on=s.depends_on,
                arguments=s.resolve_arguments(resolved),
            )
            for s in ordered
        }

        with self._lock:
            existing = self._by_key.get(key)
            if existing is not None:
                logger.info(
                    "duplicate start ignored",
                    extra={"pipeline": pipeline_name, "execution_id": existing, "idempotency_key": key},
                )
                return ExecutionHandle(existing, pipeline_name)

            now = self._clock()
            execution_id = self._new_id()
            state = PipelineExecution(
                execution_id=execution_id,
                pipeline_name=pipeline_name,
                definition_version=definition.version,
                parameters=dict(resolved),
                idempotency_key=key,
                created_at=now,
                steps=steps,
            )
            record = _ExecutionRecord(
                state=state,
                definition=definition,
                manifest=mf.create_manifest(
                    execution_id=execution_id,
                    pipeline_name=pipeline_name,
                    definition_version=definition.version,
                    created_at=now,
                    definition_hash=self.registry.definition_hash(pipeline_name),
                    parameters_hash=compute_config_hash(resolved),
                ),
            )
            # a execução fica visível já bloqueada até o primeiro agendamento
            record.lock.acquire()
            self._executions[execution_id] = record
            self._by_key[key] = execution_id

        try:
            mf.add_event(
                record.manifest,
                event_type="execution_started",
                ts=now,
                payload={"parameters": dict(resolved), "idempotency_key": key},
            )
            jobs = self._schedule(record)
            self._persist(record)
        finally:
            record.lock.release()

        handle = state.handle
        logger.info(
            "execution started",
            extra={"pipeline": pipeline_name, "execution_id": execution_id, "idempotency_key": key},
        )
        self._dispatch(handle, jobs)
        return handle

    # ------------------------------------------------------------------
    # Consulta
    # ------------------------------------------------------------------

    def _get(self, handle: Union[ExecutionHandle, str]) -> _ExecutionRecord:
        execution_id = handle.execution_id if isinstance(handle, ExecutionHandle) else str(handle)
        with self._lock:
            record = self._executions.get(execution_id)
        if record is None:
            raise ExecutionNotFoundError(
                message=f"Unknown execution: {execution_id}",
                details={"execution_id": execution_id},
            )
        return record

    @staticmethod
    def _snapshot(record: _ExecutionRecord) -> PipelineExecution:
        snap = deepcopy(record.state)
        snap.events = deepcopy(record.manifest.events)
        return snap

    def describe(self, handle: Union[ExecutionHandle, str]) -> PipelineExecution:
        """Snapshot read-only (cópia profunda) da execução."""
        record = self._get(handle)
        with record.lock:
            return self._snapshot(record)

    def manifest(self, handle: Union[ExecutionHandle, str]) -> mf.ExecutionManifest:
        record = self._get(handle)
        with record.lock:
            return mf.ExecutionManifest.from_dict(record.manifest.to_dict())

    def manifest_path(self, execution_id: str) -> Optional[Path]:
        """Arquivo do manifest persistido (`<manifest_dir>/<execution_id>.json`), se configurado."""
        if self.manifest_dir is None:
            return None
        return self.manifest_dir / f"{execution_id}.json"

    def load_persisted_manifest(self, execution_id: str) -> mf.ExecutionManifest:
        """
        Lê o manifest gravado em disco, inclusive de execuções de outro processo.

        Raises:
            ExecutionNotFoundError: persistência desabilitada ou arquivo ausente.
        """
        path = self.manifest_path(execution_id)
        if path is None or not path.is_file():
            raise ExecutionNotFoundError(
                message=f"No persisted manifest for execution: {execution_id}",
                details={"execution_id": execution_id, "manifest_dir": str(self.manifest_dir)},
                hint="Configure `manifest_dir` no engine para persistir manifests",
            )
        return mf.load_manifest(path)

    def list_executions(
        self,
        pipeline_name: Optional[str] = None,
        status: Optional[ExecutionStatus] = None,
    ) -> List[PipelineExecution]:
        with self._lock:
            records = list(self._executions.values())
        out = []
        for record in records:
            with record.lock:
                if pipeline_name is not None and record.state.pipeline_name != pipeline_name:
                    continue
                if status is not None and record.state.status is not ExecutionStatus(status):
                    continue
                out.append(self._snapshot(record))
        return out

    # ------------------------------------------------------------------
    # Transições
    # ------------------------------------------------------------------

    def _require_pending(self, record: _ExecutionRecord, step_name: str) -> StepExecution:
        state = record.state
        base = {"execution_id": state.execution_id, "step": step_name}
        if state.status.is_terminal:
            raise InvalidTransitionError(
                message=f"Execution {state.execution_id} is {state.status.value}",
                details={**base, "execution_status": state.status.value},
            )
        st = state.steps.get(step_name)
        if st is None:
            raise InvalidTransitionError(
                message=f"Unknown step: {step_name}",
                details={**base, "rule": "unknown_step"},
            )
        if not st.is_scheduled:
            raise InvalidTransitionError(
                message=f"Step '{step_name}' has not been scheduled",
                details={**base, "rule": "not_scheduled"},
            )
        if st.status.is_terminal:
            raise InvalidTransitionError(
                message=f"Step '{step_name}' already finished as {st.status.value}",
                details={**base, "rule": "already_finished", "step_status": st.status.value},
            )
        return st

    def _require_gate(self, st: StepExecution, execution_id: str) -> None:
        if not st.type.is_gate:
            raise InvalidTransitionError(
                message=f"Step '{st.name}' ({st.type.value}) does not accept approval signals",
                details={"execution_id": execution_id, "step": st.name, "rule": "not_a_gate"},
            )

    def advance(
        self,
        handle: Union[ExecutionHandle, str],
        step_name: str,
        outcome: Union[StepOutcome, str],
        *,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> PipelineExecution:
        """
        Reporta o resultado de um Step agendado.

        Para Callback, o payload depositado na `callback_uri` (se houver) é
        registrado em `decision`, como em `approve`.

        Raises:
            ExecutionNotFoundError: handle desconhecido.
            InvalidTransitionError: execução terminal, Step não agendado ou já finalizado.
        """
        outcome = StepOutcome(outcome)
        record = self._get(handle)
        jobs: List[TrainingJobRequest] = []
        with record.lock:
            st = self._require_pending(record, step_name)
            if st.type is StepType.CALLBACK:
                st.decision = self._read_decision(st)
            if outcome is StepOutcome.SUCCEEDED:
                jobs = self._succeed_step(record, st)
            else:
                self._fail_step(
                    record,
                    st,
                    errors.step_failed(step=step_name, reason=reason or "Step reported failure", details=details),
                )
            self._persist(record)
            snap = self._snapshot(record)
        self._dispatch(snap.handle, jobs)
        return snap

    def approve(self, handle: Union[ExecutionHandle, str], step_name: str) -> PipelineExecution:
        """
        Sinal externo de aprovação de um Step de Approval/Callback.

        Para Callback, o payload depositado na `callback_uri` (se houver) é
        registrado em `decision`.
        """
        record = self._get(handle)
        with record.lock:
            st = self._require_pending(record, step_name)
            self._require_gate(st, record.state.execution_id)
            if st.type is StepType.CALLBACK:
                st.decision = self._read_decision(st)
            mf.add_event(
                record.manifest,
                event_type="step_approved",
                ts=self._clock(),
                step_name=step_name,
                payload={"decision": deepcopy(st.decision)} if st.decision is not None else None,
            )
            jobs = self._succeed_step(record, st)
            self._persist(record)
            snap = self._snapshot(record)
        logger.info("step approved", extra={"execution_id": snap.execution_id, "step": step_name})
        self._dispatch(snap.handle, jobs)
        return snap

    def reject(self, handle: Union[ExecutionHandle, str], step_name: str, reason: str) -> PipelineExecution:
        """Sinal externo de rejeição: o Step e a execução terminam como Failed."""
        record = self._get(handle)
        with record.lock:
            st = self._require_pending(record, step_name)
            self._require_gate(st, record.state.execution_id)
            if st.type is StepType.CALLBACK:
                st.decision = self._read_decision(st)
            self._fail_step(
                record,
                st,
                errors.step_failed(step=step_name, reason=reason or "Rejected", details={"decision": "Rejected"}),
            )
            self._persist(record)
            snap = self._snapshot(record)
        logger.info("step rejected", extra={"execution_id": snap.execution_id, "step": step_name})
        return snap

    def stop(self, handle: Union[ExecutionHandle, str]) -> PipelineExecution:
        """Execução não-terminal → Stopped. Em execução terminal é no-op."""
        record = self._get(handle)
        with record.lock:
            state = record.state
            if not state.status.is_terminal:
                now = self._clock()
                state.status = ExecutionStatus.STOPPED
                state.finished_at = now
                mf.add_event(record.manifest, event_type="execution_stopped", ts=now)
                self._persist(record)
                logger.info("execution stopped", extra={"execution_id": state.execution_id})
            return self._snapshot(record)

    def enforce_timeouts(self, now: Optional[datetime] = None) -> List[Tuple[ExecutionHandle, str]]:
        """
        Falha Steps de Training cujo `timeout_seconds` expirou desde o agendamento.

        Returns:
            Lista de (handle, step) que expiraram nesta varredura.
        """
        now = now or self._clock()
        with self._lock:
            records = list(self._executions.values())

        expired: List[Tuple[ExecutionHandle, str]] = []
        for record in records:
            with record.lock:
                state = record.state
                if state.status.is_terminal:
                    continue
                for st in state.steps.values():
                    if st.type is not StepType.TRAINING or not st.is_scheduled or st.status.is_terminal:
                        continue
                    timeout = record.definition.step(st.name).training.timeout_seconds  # type: ignore[union-attr]
                    elapsed = now - st.scheduled_at  # type: ignore[operator]
                    if elapsed > timedelta(seconds=timeout):
                        exc = StepTimeoutError(
                            message=f"Step '{st.name}' exceeded its timeout of {timeout}s",
                            details={
                                "step": st.name,
                                "timeout_seconds": timeout,
                                "elapsed_seconds": int(elapsed.total_seconds()),
                            },
                            hint="Aumente timeoutSeconds ou investigue o job de treinamento",
                        )
                        self._fail_step(record, st, exc.to_error(), now=now)
                        self._persist(record)
                        expired.append((state.handle, st.name))
                        break
        return expired

    # ------------------------------------------------------------------
    # Internos (sempre sob o lock da execução)
    # ------------------------------------------------------------------

    def _succeed_step(self, record: _ExecutionRecord, st: StepExecution) -> List[TrainingJobRequest]:
        now = self._clock()
        st.status = StepStatus.SUCCEEDED
        st.finished_at = now
        mf.step_finished(record.manifest, step_name=st.name, ts=now)

        state = record.state
        if all(s.status is StepStatus.SUCCEEDED for s in state.steps.values()):
            state.status = ExecutionStatus.SUCCEEDED
            state.finished_at = now
            mf.add_event(record.manifest, event_type="execution_succeeded", ts=now)
            logger.info("execution succeeded", extra={"execution_id": state.execution_id})
            return []
        return self._schedule(record)

    def _fail_step(
        self,
        record: _ExecutionRecord,
        st: StepExecution,
        error: ErrorPayload,
        *,
        now: Optional[datetime] = None,
    ) -> None:
        now = now or self._clock()
        st.status = StepStatus.FAILED
        st.finished_at = now
        st.failure_reason = error
        mf.step_failed(record.manifest, step_name=st.name, ts=now, error=error.to_dict())

        state = record.state
        state.status = ExecutionStatus.FAILED
        state.finished_at = now
        state.failure_reason = error
        mf.add_event(record.manifest, event_type="execution_failed", ts=now, step_name=st.name)
        logger.warning(
            "execution failed",
            extra={"execution_id": state.execution_id, "step": st.name, "error_type": error.type},
        )

    def _persist(self, record: _ExecutionRecord) -> None:
        path = self.manifest_path(record.state.execution_id)
        if path is not None:
            mf.save_manifest(record.manifest, path)

    def _schedule(self, record: _ExecutionRecord) -> List[TrainingJobRequest]:
        state = record.state
        jobs: List[TrainingJobRequest] = []
        for st in state.steps.values():
            if state.status.is_terminal:
                break
            if st.is_scheduled:
                continue
            if not all(state.steps[d].status is StepStatus.SUCCEEDED for d in st.depends_on):
                continue

            now = self._clock()
            st.scheduled_at = now
            st.status = StepStatus.PENDING

            if st.type is StepType.CALLBACK:
                st.callback_uri = join_uri(st.arguments["output"], state.execution_id, f"{st.name}.json")

            mf.step_scheduled(
                record.manifest,
                step_name=st.name,
                step_type=st.type.value,
                ts=now,
                payload={"callback_uri": st.callback_uri} if st.callback_uri else None,
            )

            if st.type is StepType.TRAINING:
                jobs.append(
                    TrainingJobRequest(
                        execution_id=state.execution_id,
                        pipeline_name=state.pipeline_name,
                        step_name=st.name,
                        arguments=deepcopy(st.arguments),
                    )
                )
            elif st.type is StepType.CALLBACK:
                self._write_callback_request(record, st, now)
        if state.status.is_terminal:
            return []
        return jobs

    def _write_callback_request(self, record: _ExecutionRecord, st: StepExecution, now: datetime) -> None:
        state = record.state
        document = {
            "kind": CALLBACK_REQUEST_KIND,
            "executionId": state.execution_id,
            "pipelineName": state.pipeline_name,
            "step": st.name,
            "description": record.definition.step(st.name).description,
            "parameters": dict(state.parameters),
            "requestedAt": now.isoformat(),
        }
        try:
            self.store.put_json(st.callback_uri, document)  # type: ignore[arg-type]
        except Exception as exc:
            logger.exception(
                "callback request write failed",
                extra={"execution_id": state.execution_id, "step": st.name},
            )
            self._fail_step(record, st, exception_to_error(exc))

    def _read_decision(self, st: StepExecution) -> Optional[Dict[str, Any]]:
        document = self.store.get_json(st.callback_uri) if st.callback_uri else None
        if document is None or document.get("kind") == CALLBACK_REQUEST_KIND:
            return None
        return document

    def _dispatch(self, handle: ExecutionHandle, jobs: List[TrainingJobRequest]) -> None:
        for job in jobs:
            try:
                self.training_runner.submit(job)
            except Exception as exc:
                logger.exception(
                    "training job submission failed",
                    extra={"execution_id": handle.execution_id, "step": job.step_name},
                )
                try:
                    self.advance(
                        handle,
                        job.step_name,
                        StepOutcome.FAILED,
                        reason=f"Training job submission failed: {exc}",
                        details={"exception_class": exc.__class__.__name__},
                    )
                except InvalidTransitionError:
                    logger.warning(
                        "submission failure not recorded; execution already terminal",
                        extra={"execution_id": handle.execution_id, "step": job.step_name},
                    )


class TimeoutWatcher:
    """Thread daemon que roda `engine.enforce_timeouts()` periodicamente."""

    def __init__(self, engine: ExecutionEngine, *, interval_seconds: float = 5.0):
        self.engine = engine
        self.interval_seconds = interval_seconds
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            logger.warning("timeout watcher is already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="timeout-watcher", daemon=True)
        self._thread.start()
        logger.info("timeout watcher started", extra={"interval_seconds": self.interval_seconds})

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
        self._thread = None
        logger.info("timeout watcher stopped")

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                expired = self.engine.enforce_timeouts()
            except Exception:
                logger.exception("timeout sweep failed")
            else:
                for handle, step in expired:
                    logger.warning(
                        "training step timed out",
                        extra={"execution_id": handle.execution_id, "step": step},
                    )
            self._stop_event.wait(self.interval_seconds)
