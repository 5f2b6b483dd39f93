# tests/e2e/test_model_approval_e2e.py
"""
Testes end-to-end do fluxo de aprovação de modelos.

Cenários cobertos:
    - evento aprovado → start de "pipeline-x" + notificação independente
    - mesmo evento entregue duas vezes → uma única execução
    - fluxo completo Training → gate manual → Succeeded
    - Training que expira nunca deixa o gate concluir
    - fluxo por callback com decisão depositada em disco
    - defaults embarcados: evento real do model registry até a aprovação

Decisões arquiteturais:
    - Todos os colaboradores externos são in-process (store, runner, publisher)
    - O relógio é controlado pelo teste

Limites explícitos:
    - Não acessa rede nem serviços gerenciados
"""

import itertools
import json
from pathlib import Path

import pytest

try:
    from approval_orchestrator import Orchestrator, build_orchestrator
    from approval_orchestrator.core.config.settings import RuleSettings
    from approval_orchestrator.core.engine.engine import ExecutionEngine
    from approval_orchestrator.core.events.pattern import EventPattern, matches
    from approval_orchestrator.core.notify.dispatcher import InMemoryTopicPublisher, NotificationDispatcher
    from approval_orchestrator.core.pipeline.types import ExecutionStatus, StepOutcome, StepStatus
    from approval_orchestrator.core.storage import LocalArtifactStore
    from approval_orchestrator.core.trigger.handler import TriggerHandler
    from approval_orchestrator.core.errors import STEP_TIMEOUT
except Exception as e:  # noqa: BLE001
    build_orchestrator = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing orchestrator modules for e2e.\n"
            f"Import error: {_IMPORT_ERR}"
        )


SCENARIO_PATTERN = {"source": ["registry"], "detail": {"ModelApprovalStatus": ["Approved"]}}


@pytest.fixture
def publisher():
    return InMemoryTopicPublisher()


@pytest.fixture
def scenario(engine, publisher, clock):
    """Orchestrator com a regra do cenário, o pipeline "pipeline-x" e o engine de fixture."""
    return Orchestrator(
        rules=(RuleSettings(name="approved", pattern=EventPattern.from_dict(SCENARIO_PATTERN)),),
        trigger=TriggerHandler(engine=engine, pipeline_name="pipeline-x"),
        dispatcher=NotificationDispatcher(publisher=publisher, topic="model-approval-notifications", clock=clock),
        engine=engine,
    )


def test_scenario_approved_event_triggers_and_notifies(scenario, engine, publisher, make_event, clock):
    _require_imports()
    event = make_event("arn:1", "Approved")
    assert matches(event, EventPattern.from_dict(SCENARIO_PATTERN))

    outcome = scenario.handle(event)

    assert outcome.ok
    assert scenario.trigger.build_request(event).to_start_request()["parameters"] == [
        {"name": "ModelPackageArn", "value": "arn:1"},
        {"name": "ModelApprovalStatus", "value": "Approved"},
    ]
    assert outcome.handle.pipeline_name == "pipeline-x"
    assert engine.describe(outcome.handle).status is ExecutionStatus.EXECUTING

    message = json.loads(publisher.published[0][1])
    assert message == {"modelIdentifier": "arn:1", "approvalStatus": "Approved", "timestamp": clock.now.isoformat()}


def test_scenario_duplicate_delivery(scenario, engine, make_event):
    _require_imports()
    first = scenario.handle(make_event("arn:1", "Approved"))
    second = scenario.handle(make_event("arn:1", "Approved"))

    assert first.handle == second.handle
    executions = [
        e for e in engine.list_executions("pipeline-x")
        if e.parameters["ModelPackageArn"] == "arn:1" and e.parameters["ModelApprovalStatus"] == "Approved"
    ]
    assert len(executions) == 1


def test_training_then_manual_approval(scenario, engine, clock, make_event):
    """
    Fluxo completo do formato Training + gate bloqueante.

    Invariantes:
        - O gate só é agendado após o Training ter sucesso
        - A execução só termina após o sinal explícito de aprovação
    """
    _require_imports()
    handle = scenario.handle(make_event("arn:1", "Approved")).handle
    job = engine.training_runner.jobs[0]

    clock.advance(600)
    snap = engine.advance(handle, job.step_name, StepOutcome.SUCCEEDED)
    assert snap.step("ManualApprovalStep").is_scheduled
    assert snap.status is ExecutionStatus.EXECUTING

    clock.advance(3600 * 24)
    assert engine.enforce_timeouts() == []

    final = engine.approve(handle, "ManualApprovalStep")
    assert final.status is ExecutionStatus.SUCCEEDED
    manifest = engine.manifest(handle)
    assert manifest.steps["TrainingStep"]["duration_ms"] == 600_000


def test_training_timeout_blocks_dependents(scenario, engine, clock, make_event):
    _require_imports()
    handle = scenario.handle(make_event("arn:1", "Approved")).handle

    clock.advance(3601)
    engine.enforce_timeouts()

    snap = engine.describe(handle)
    assert snap.status is ExecutionStatus.FAILED
    assert snap.failure_reason.type == STEP_TIMEOUT
    assert not snap.step("ManualApprovalStep").is_scheduled
    assert all(s.status is not StepStatus.SUCCEEDED for s in snap.steps.values())


def test_callback_flow_with_local_store(tmp_path: Path, clock, callback_definition, make_event, publisher):
    """
    Fluxo do formato Callback puro com store em disco.

    O aprovador lê a requisição gravada pelo engine e deposita sua decisão
    no mesmo caminho antes de sinalizar.
    """
    _require_imports()
    store = LocalArtifactStore(root=tmp_path / "artifacts")
    counter = itertools.count(1)
    engine = ExecutionEngine(store=store, clock=clock, id_factory=lambda: f"cb-{next(counter)}")
    engine.register(callback_definition)
    orch = Orchestrator(
        rules=(RuleSettings(name="approved", pattern=EventPattern.from_dict(SCENARIO_PATTERN)),),
        trigger=TriggerHandler(engine=engine, pipeline_name="callback-pipeline"),
        dispatcher=NotificationDispatcher(publisher=publisher, topic="t", clock=clock),
        engine=engine,
    )

    handle = orch.handle(make_event("arn:9", "Approved")).handle
    uri = engine.describe(handle).step("ApprovalCallbackStep").callback_uri
    path = store.path_for(uri)
    assert path == tmp_path / "artifacts" / "artifacts" / "callbacks" / "cb-1" / "ApprovalCallbackStep.json"

    request = json.loads(path.read_text(encoding="utf-8"))
    assert request["parameters"]["ModelPackageArn"] == "arn:9"

    store.put_json(uri, {"decision": "Approved", "reviewer": "reviewer-1"})
    snap = engine.approve(handle, "ApprovalCallbackStep")

    assert snap.status is ExecutionStatus.SUCCEEDED
    assert snap.step("ApprovalCallbackStep").decision == {"decision": "Approved", "reviewer": "reviewer-1"}


def test_packaged_defaults_end_to_end(clock):
    """
    Fluxo com a configuração e a definição embarcadas no pacote.

    Invariantes:
        - Um evento real do model registry casa com a primeira regra (grupo)
        - Os URIs de storage configurados chegam ao job de treinamento
    """
    _require_imports()
    publisher = InMemoryTopicPublisher()
    counter = itertools.count(1)
    orch = build_orchestrator(
        publisher=publisher,
        engine=ExecutionEngine(clock=clock, id_factory=lambda: f"exec-{next(counter):04d}"),
    )
    envelope = {
        "id": "4f0e7c5a",
        "source": "aws.sagemaker",
        "detail-type": "SageMaker Model Package State Change",
        "time": "2026-01-16T12:00:00Z",
        "detail": {
            "ModelPackageGroupName": "AbaloneModelPackageGroup",
            "ModelPackageArn": "arn:aws:sagemaker:ca-central-1:123:model-package/abalonemodelpackagegroup/3",
            "ModelApprovalStatus": "Approved",
        },
    }

    outcome = orch.handle_envelope(envelope)

    assert outcome.ok
    assert outcome.rule == "model-package-group"
    job = orch.engine.training_runner.jobs[0]
    assert job.arguments["inputs"][0]["uri"] == "s3://mlops-e2e-artifacts/data/train"
    assert job.arguments["output"] == "s3://mlops-e2e-artifacts/output"
    assert job.arguments["environment"]["MODEL_APPROVAL_STATUS"] == "Approved"
    assert publisher.published[0][0] == "model-approval-notifications"
    assert json.loads(publisher.published[0][1])["timestamp"] == "2026-01-16T12:00:00Z"

    orch.engine.advance(outcome.handle, "TrainingStep", StepOutcome.SUCCEEDED)
    final = orch.engine.approve(outcome.handle, "ManualApprovalStep")
    assert final.status is ExecutionStatus.SUCCEEDED
