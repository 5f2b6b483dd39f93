# tests/core/events/test_event_types.py
"""
Testes dos tipos canônicos de evento.

Os testes asseguram que:
- envelopes do barramento são convertidos em Event imutáveis
- envelopes malformados levantam MalformedEventError com detalhes estruturados
- o detail de mudança de estado é validado e tipado na fronteira
"""

import pytest

try:
    from approval_orchestrator.core.events.types import (
        ApprovalStatus,
        Event,
        ModelPackageStateChange,
    )
    from approval_orchestrator.core.exceptions import MalformedEventError
    from approval_orchestrator.core.errors import EVENT_MALFORMED
except Exception as e:  # noqa: BLE001
    Event = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing event types module. Implement:\n"
            "- src/approval_orchestrator/core/events/types.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


ENVELOPE = {
    "id": "evt-1",
    "time": "2026-01-16T12:00:00Z",
    "account": "123456789012",
    "region": "us-east-1",
    "source": "aws.sagemaker",
    "detail-type": "SageMaker Model Package State Change",
    "detail": {
        "ModelPackageArn": "arn:aws:sagemaker:us-east-1:123:model-package/abalone/1",
        "ModelPackageGroupName": "AbaloneModelPackageGroup",
        "ModelPackageVersion": 1,
        "ModelApprovalStatus": "Approved",
    },
}


def test_from_envelope_reads_wire_fields():
    _require_imports()
    event = Event.from_envelope(ENVELOPE)

    assert event.source == "aws.sagemaker"
    assert event.detail_type == "SageMaker Model Package State Change"
    assert event.id == "evt-1"
    assert event.region == "us-east-1"
    assert event.detail["ModelApprovalStatus"] == "Approved"
    assert event.to_envelope() == ENVELOPE


def test_event_detail_is_read_only_and_detached():
    _require_imports()
    raw = {"source": "s", "detail-type": "d", "detail": {"a": {"b": 1}}}
    event = Event.from_envelope(raw)

    with pytest.raises(TypeError):
        event.detail["a"] = 2  # type: ignore[index]

    raw["detail"]["a"]["b"] = 99
    assert event.detail["a"]["b"] == 1


def test_detail_type_camel_case_and_missing_detail():
    _require_imports()
    event = Event.from_envelope({"source": "s", "detailType": "d"})
    assert event.detail_type == "d"
    assert dict(event.detail) == {}


@pytest.mark.parametrize(
    "envelope, field",
    [
        ({"detail-type": "d", "detail": {}}, "source"),
        ({"source": 1, "detail-type": "d"}, "source"),
        ({"source": "s", "detail": {}}, "detail-type"),
        ({"source": "s", "detail-type": "d", "detail": "oops"}, "detail"),
    ],
)
def test_malformed_envelopes_raise(envelope, field):
    _require_imports()
    with pytest.raises(MalformedEventError) as exc:
        Event.from_envelope(envelope)

    err = exc.value.to_error()
    assert err.type == EVENT_MALFORMED
    assert field in err.details["fields"]


def test_non_mapping_envelope_raises():
    _require_imports()
    with pytest.raises(MalformedEventError):
        Event.from_envelope(["not", "a", "mapping"])  # type: ignore[arg-type]


def test_state_change_from_detail():
    _require_imports()
    change = ModelPackageStateChange.from_detail(ENVELOPE["detail"], require_group_name=True)

    assert change.model_approval_status is ApprovalStatus.APPROVED
    assert change.model_approval_status.is_terminal
    assert change.model_package_group_name == "AbaloneModelPackageGroup"
    assert change.model_package_version == 1


def test_state_change_reports_missing_and_invalid_fields():
    """
    Verifica que todos os problemas do detail são reportados de uma vez.

    Invariantes:
        - `missing` lista campos obrigatórios ausentes
        - `invalid` mapeia campo → motivo
    """
    _require_imports()
    with pytest.raises(MalformedEventError) as exc:
        ModelPackageStateChange.from_detail(
            {"ModelApprovalStatus": "Maybe", "ModelPackageVersion": "1"},
            require_group_name=True,
        )

    details = exc.value.details
    assert details["missing"] == ["ModelPackageArn", "ModelPackageGroupName"]
    assert set(details["invalid"]) == {"ModelApprovalStatus", "ModelPackageVersion"}


def test_group_name_optional_by_default():
    _require_imports()
    change = ModelPackageStateChange.from_detail(
        {"ModelPackageArn": "arn:1", "ModelApprovalStatus": "PendingManualApproval"}
    )
    assert change.model_package_group_name is None
    assert not change.model_approval_status.is_terminal
