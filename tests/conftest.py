# tests/conftest.py
"""
Fixtures compartilhados para testes do orquestrador de aprovação.

Este módulo define fixtures reutilizáveis que fornecem:
- documentos de definição de pipeline nos dois formatos observados
  (Training + Approval e Callback puro)
- um relógio controlável para testes de timeout e timestamps
- um engine isolado com colaboradores in-process
- uma fábrica de eventos de mudança de estado de model package

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Identificadores e timestamps são determinísticos
    - Imports do core são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture acessa rede ou serviços externos
    - Todas as fixtures são seguras para execução em paralelo

Limites explícitos:
    - Não substituir testes de integração (ver tests/e2e)
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest


T0 = datetime(2026, 1, 16, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Relógio controlável: `advance(seconds)` move o tempo para frente."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def training_document() -> dict:
    """
    Documento de definição com um Step de Training seguido de um gate manual.

    O Training referencia os parâmetros `ModelPackageArn` e
    `ModelApprovalStatus` por placeholder; `ArtifactUri` possui default.

    Returns:
        dict: documento no formato camelCase.
    """
    return {
        "version": "2020-12-01",
        "parameters": [
            {"name": "ModelPackageArn"},
            {"name": "ModelApprovalStatus"},
            {"name": "ArtifactUri", "default": "s3://artifacts/output"},
        ],
        "steps": [
            {
                "name": "TrainingStep",
                "type": "Training",
                "image": "registry.local/xgboost:1.0-1",
                "inputs": [
                    {"channel": "train", "uri": "s3://artifacts/data/train", "contentType": "text/csv"}
                ],
                "output": {"Get": "Parameters.ArtifactUri"},
                "resources": {"instanceType": "ml.m5.large", "instanceCount": 1, "volumeSizeGb": 10},
                "timeoutSeconds": 3600,
                "environment": {
                    "MODEL_PACKAGE_ARN": {"Get": "Parameters.ModelPackageArn"},
                    "MODEL_APPROVAL_STATUS": {"Get": "Parameters.ModelApprovalStatus"},
                },
            },
            {
                "name": "ManualApprovalStep",
                "type": "Approval",
                "description": "Manual approval step for the model",
                "dependsOn": ["TrainingStep"],
            },
        ],
    }


@pytest.fixture
def callback_document() -> dict:
    """Documento com um único Step de Callback (aprovação pura por callback)."""
    return {
        "version": "2020-12-01",
        "parameters": [{"name": "ModelPackageArn"}, {"name": "ModelApprovalStatus"}],
        "steps": [
            {
                "name": "ApprovalCallbackStep",
                "type": "Callback",
                "description": "Reviewer decision",
                "output": "s3://artifacts/callbacks",
            }
        ],
    }


@pytest.fixture
def training_definition(training_document):
    from approval_orchestrator.core.pipeline.definition import PipelineDefinition

    return PipelineDefinition.from_document(training_document, name="pipeline-x")


@pytest.fixture
def callback_definition(callback_document):
    from approval_orchestrator.core.pipeline.definition import PipelineDefinition

    return PipelineDefinition.from_document(callback_document, name="callback-pipeline")


@pytest.fixture
def engine(clock, training_definition, callback_definition):
    """
    Engine isolado com store e runner em memória, relógio fixo e ids sequenciais.

    As duas definições de fixture já estão registradas.
    """
    from approval_orchestrator.core.engine.engine import ExecutionEngine
    from approval_orchestrator.core.engine.workers import InMemoryTrainingRunner
    from approval_orchestrator.core.storage import InMemoryArtifactStore

    counter = itertools.count(1)
    eng = ExecutionEngine(
        store=InMemoryArtifactStore(),
        training_runner=InMemoryTrainingRunner(),
        clock=clock,
        id_factory=lambda: f"exec-{next(counter):04d}",
    )
    eng.register(training_definition)
    eng.register(callback_definition)
    return eng


@pytest.fixture
def make_event():
    """
    Fábrica de eventos de mudança de estado de model package.

    Campos de `detail` com valor None são omitidos do evento.
    """
    from approval_orchestrator.core.events.types import Event

    def _make(
        arn="arn:1",
        status="Approved",
        group=None,
        *,
        source="registry",
        detail_type="StateChange",
        time=None,
        event_id=None,
        **extra_detail,
    ):
        detail = {"ModelPackageArn": arn, "ModelApprovalStatus": status, "ModelPackageGroupName": group}
        detail.update(extra_detail)
        return Event(
            source=source,
            detail_type=detail_type,
            detail={k: v for k, v in detail.items() if v is not None},
            id=event_id,
            time=time,
        )

    return _make


@pytest.fixture
def defaults_yaml() -> str:
    """
    YAML de defaults semelhante ao embarcado no pacote, reduzido ao essencial.

    Returns:
        str: conteúdo YAML de `orchestrator.defaults.yaml`.
    """
    return """\
project:
  name: mlops-e2e
pipeline:
  name: model-approval-pipeline
  include_group_name: false
model_registry:
  model_package_group_name: AbaloneModelPackageGroup
storage:
  data_uri: s3://mlops-e2e-artifacts/data/train
  artifact_uri: s3://mlops-e2e-artifacts/output
notifications:
  topic: model-approval-notifications
logging:
  level: INFO
  json: false
rules:
  - name: model-approval-status
    pattern:
      source: [registry]
      detail:
        ModelApprovalStatus: [Approved]
"""


@pytest.fixture
def local_yaml() -> str:
    """YAML de override local: troca o tópico e substitui a lista de regras."""
    return """\
notifications:
  topic: local-topic
logging:
  level: DEBUG
rules:
  - name: everything
    pattern: {}
"""
