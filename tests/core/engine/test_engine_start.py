# tests/core/engine/test_engine_start.py
"""
Testes de start de execução no Execution Engine.

Os testes asseguram que:
- um start válido cria uma execução Executing e agenda os Steps sem dependências
- Steps de Training são submetidos ao runner com argumentos resolvidos
- starts repetidos com a mesma chave de idempotência retornam o mesmo handle
- parâmetros ausentes e definições desconhecidas não criam execuções
- consultas (describe, list_executions, describe_pipeline) retornam cópias

Decisões arquiteturais:
    - Relógio e gerador de ids são injetados (determinismo)
    - Runner e store em memória (sem I/O)

Limites explícitos:
    - Transições de Step são cobertas em test_engine_transitions.py
"""

import threading

import pytest

try:
    from approval_orchestrator.core.engine.engine import ExecutionEngine, ExecutionHandle
    from approval_orchestrator.core.exceptions import (
        ExecutionNotFoundError,
        MissingParameterError,
        UnknownDefinitionError,
    )
    from approval_orchestrator.core.pipeline.types import ExecutionStatus, StepStatus
    from approval_orchestrator.core.errors import START_MISSING_PARAMETER
except Exception as e:  # noqa: BLE001
    ExecutionEngine = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing execution engine. Implement:\n"
            "- src/approval_orchestrator/core/engine/engine.py (ExecutionEngine)\n"
            f"Import error: {_IMPORT_ERR}"
        )


PARAMS = {"ModelPackageArn": "arn:1", "ModelApprovalStatus": "Approved"}


def test_start_schedules_root_steps(engine, clock):
    """
    Verifica o estado inicial de uma execução aceita.

    Invariantes:
        - O Step sem dependências é agendado (Pending, scheduled_at definido)
        - O gate que depende dele ainda não foi agendado
        - Defaults declarados complementam os parâmetros informados
    """
    _require_imports()
    handle = engine.start("pipeline-x", PARAMS)

    assert handle == ExecutionHandle("exec-0001", "pipeline-x")
    snap = engine.describe(handle)
    assert snap.status is ExecutionStatus.EXECUTING
    assert snap.created_at == clock.now
    assert snap.parameters == {**PARAMS, "ArtifactUri": "s3://artifacts/output"}

    training = snap.step("TrainingStep")
    assert training.status is StepStatus.PENDING
    assert training.scheduled_at == clock.now
    assert training.arguments["output"] == "s3://artifacts/output"

    gate = snap.step("ManualApprovalStep")
    assert not gate.is_scheduled


def test_start_submits_training_job(engine):
    _require_imports()
    handle = engine.start("pipeline-x", PARAMS)

    jobs = engine.training_runner.jobs
    assert len(jobs) == 1
    job = jobs[0]
    assert job.execution_id == handle.execution_id
    assert job.step_name == "TrainingStep"
    assert job.job_name == "pipeline-x-TrainingStep-exec-0001"
    assert job.arguments["environment"] == {"MODEL_PACKAGE_ARN": "arn:1", "MODEL_APPROVAL_STATUS": "Approved"}


def test_start_records_manifest_events(engine):
    _require_imports()
    handle = engine.start("pipeline-x", PARAMS)

    manifest = engine.manifest(handle)
    assert [e["event_type"] for e in manifest.events] == ["execution_started", "step_scheduled"]
    assert manifest.events[1]["step"] == "TrainingStep"
    assert manifest.run["execution_id"] == "exec-0001"
    assert manifest.inputs["definition_hash"] == engine.registry.definition_hash("pipeline-x")
    assert manifest.steps["TrainingStep"]["status"] == "Pending"


def test_duplicate_start_returns_existing_handle(engine):
    _require_imports()
    first = engine.start("pipeline-x", PARAMS)
    second = engine.start("pipeline-x", dict(reversed(list(PARAMS.items()))))

    assert first == second
    assert len(engine.list_executions()) == 1
    assert len(engine.training_runner.jobs) == 1


def test_different_parameters_create_new_execution(engine):
    _require_imports()
    first = engine.start("pipeline-x", PARAMS)
    second = engine.start("pipeline-x", {**PARAMS, "ModelApprovalStatus": "Rejected"})

    assert first != second
    assert second.execution_id == "exec-0002"


def test_explicit_idempotency_key(engine):
    _require_imports()
    first = engine.start("pipeline-x", PARAMS, idempotency_key="k-1")
    second = engine.start("pipeline-x", {**PARAMS, "ModelPackageArn": "arn:2"}, idempotency_key="k-1")

    assert first == second
    assert engine.describe(first).idempotency_key == "k-1"


def test_parameter_values_are_stringified(engine):
    _require_imports()
    handle = engine.start("pipeline-x", {"ModelPackageArn": 42, "ModelApprovalStatus": "Approved"})
    assert engine.describe(handle).parameters["ModelPackageArn"] == "42"


def test_missing_parameter_creates_nothing(engine):
    _require_imports()
    with pytest.raises(MissingParameterError) as exc:
        engine.start("pipeline-x", {"ModelPackageArn": "arn:1"})

    err = exc.value.to_error()
    assert err.type == START_MISSING_PARAMETER
    assert err.details == {"pipeline": "pipeline-x", "missing": ["ModelApprovalStatus"]}
    assert engine.list_executions() == []
    assert engine.training_runner.jobs == []


def test_unknown_definition(engine):
    _require_imports()
    with pytest.raises(UnknownDefinitionError):
        engine.start("nope", PARAMS)
    assert engine.list_executions() == []


def test_unknown_execution(engine):
    _require_imports()
    with pytest.raises(ExecutionNotFoundError):
        engine.describe("exec-9999")
    with pytest.raises(ExecutionNotFoundError):
        engine.approve(ExecutionHandle("exec-9999", "pipeline-x"), "ManualApprovalStep")


def test_describe_returns_a_detached_copy(engine):
    _require_imports()
    handle = engine.start("pipeline-x", PARAMS)

    snap = engine.describe(handle)
    snap.status = ExecutionStatus.FAILED
    snap.steps["TrainingStep"].arguments["output"] = "tampered"

    fresh = engine.describe(handle)
    assert fresh.status is ExecutionStatus.EXECUTING
    assert fresh.step("TrainingStep").arguments["output"] == "s3://artifacts/output"


def test_list_executions_filters(engine):
    _require_imports()
    a = engine.start("pipeline-x", PARAMS)
    b = engine.start("callback-pipeline", PARAMS)
    engine.stop(a)

    assert [e.execution_id for e in engine.list_executions()] == [a.execution_id, b.execution_id]
    assert [e.execution_id for e in engine.list_executions("callback-pipeline")] == [b.execution_id]
    assert [e.execution_id for e in engine.list_executions(status=ExecutionStatus.STOPPED)] == [a.execution_id]
    assert [e.execution_id for e in engine.list_executions(status="Executing")] == [b.execution_id]


def test_describe_pipeline(engine):
    _require_imports()
    engine.start("pipeline-x", PARAMS)

    info = engine.describe_pipeline("pipeline-x")

    assert info["name"] == "pipeline-x"
    assert info["version"] == "2020-12-01"
    assert info["executionCount"] == 1
    assert info["parameters"] == ["ArtifactUri", "ModelPackageArn", "ModelApprovalStatus"]
    assert info["definitionHash"] == engine.registry.definition_hash("pipeline-x")
    assert [s["name"] for s in info["definition"]["steps"]] == ["TrainingStep", "ManualApprovalStep"]


def test_to_dict_is_serializable(engine):
    _require_imports()
    handle = engine.start("pipeline-x", PARAMS)
    data = engine.describe(handle).to_dict()

    assert data["executionId"] == "exec-0001"
    assert data["status"] == "Executing"
    assert data["steps"][0]["status"] == "Pending"
    assert data["steps"][1]["scheduledAt"] is None


def test_concurrent_duplicate_starts_create_one_execution(engine):
    """
    Verifica que starts concorrentes com a mesma identidade convergem.

    Invariantes:
        - Todas as threads recebem o mesmo handle
        - Apenas um job de treinamento é submetido
    """
    _require_imports()
    handles = []
    lock = threading.Lock()
    barrier = threading.Barrier(8)

    def _start():
        barrier.wait()
        h = engine.start("pipeline-x", PARAMS)
        with lock:
            handles.append(h)

    threads = [threading.Thread(target=_start) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(set(handles)) == 1
    assert len(engine.list_executions()) == 1
    assert len(engine.training_runner.jobs) == 1


def test_concurrent_distinct_starts_are_independent(engine):
    _require_imports()
    barrier = threading.Barrier(6)

    def _start(i):
        barrier.wait()
        engine.start("pipeline-x", {**PARAMS, "ModelPackageArn": f"arn:{i}"})

    threads = [threading.Thread(target=_start, args=(i,)) for i in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    executions = engine.list_executions()
    assert len({e.execution_id for e in executions}) == 6
    assert len(engine.training_runner.jobs) == 6
