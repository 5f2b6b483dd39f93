# src/approval_orchestrator/core/events/types.py
"""
Tipos canônicos de evento do orquestrador.

Este módulo define:
    - Event → registro imutável de uma entrega do barramento de eventos
    - ApprovalStatus → estados de aprovação publicados pelo model registry
    - ModelPackageStateChange → visão tipada de `Event.detail`

O `detail` de um evento chega como um mapa aberto e fracamente tipado.
A conversão para `ModelPackageStateChange` acontece na fronteira do
Trigger Handler; nenhum mapa não tipado atravessa essa fronteira.

Invariantes:
    - Event é imutável após a construção (detail exposto como mapping read-only)
    - Campos obrigatórios ausentes ou com tipo errado levantam MalformedEventError
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from approval_orchestrator.core.exceptions import MalformedEventError


MODEL_PACKAGE_ARN = "ModelPackageArn"
MODEL_PACKAGE_GROUP_NAME = "ModelPackageGroupName"
MODEL_APPROVAL_STATUS = "ModelApprovalStatus"
MODEL_PACKAGE_NAME = "ModelPackageName"
MODEL_PACKAGE_VERSION = "ModelPackageVersion"


class ApprovalStatus(str, Enum):
    """Estados de aprovação de um model package no registry."""

    PENDING_MANUAL_APPROVAL = "PendingManualApproval"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ApprovalStatus.PENDING_MANUAL_APPROVAL


def _freeze(detail: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(deepcopy(dict(detail)))


@dataclass(frozen=True)
class Event:
    """
    Evento recebido do barramento (uma entrega).

    Campos:
        - source: origem do evento (ex.: "aws.sagemaker")
        - detail_type: tipo do evento (ex.: "SageMaker Model Package State Change")
        - detail: mapa aberto com o conteúdo do evento (read-only)
        - id, time, account, region: campos opcionais do envelope
    """

    source: str
    detail_type: str
    detail: Mapping[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    time: Optional[str] = None
    account: Optional[str] = None
    region: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.detail, MappingProxyType):
            object.__setattr__(self, "detail", _freeze(self.detail or {}))

    @classmethod
    def from_envelope(cls, envelope: Mapping[str, Any]) -> "Event":
        """
        Constrói um Event a partir do envelope bruto do barramento.

        Aceita tanto `detail-type` (forma de wire) quanto `detailType`.

        Raises:
            MalformedEventError: se `source`/`detail-type` não forem strings
                ou se `detail` não for um mapa.
        """
        if not isinstance(envelope, Mapping):
            raise MalformedEventError(
                message="event envelope must be a mapping",
                details={"received": type(envelope).__name__},
            )

        source = envelope.get("source")
        detail_type = envelope.get("detail-type", envelope.get("detailType"))
        detail = envelope.get("detail", {})

        problems: Dict[str, str] = {}
        if not isinstance(source, str):
            problems["source"] = type(source).__name__
        if not isinstance(detail_type, str):
            problems["detail-type"] = type(detail_type).__name__
        if detail is None:
            detail = {}
        if not isinstance(detail, Mapping):
            problems["detail"] = type(detail).__name__
        if problems:
            raise MalformedEventError(
                message="event envelope is missing required fields",
                details={"fields": problems},
                hint="Envelopes precisam de source (str), detail-type (str) e detail (mapa)",
            )

        def _opt(key: str) -> Optional[str]:
            value = envelope.get(key)
            return None if value is None else str(value)

        return cls(
            source=source,
            detail_type=detail_type,
            detail=detail,
            id=_opt("id"),
            time=_opt("time"),
            account=_opt("account"),
            region=_opt("region"),
        )

    def to_envelope(self) -> Dict[str, Any]:
        envelope: Dict[str, Any] = {
            "source": self.source,
            "detail-type": self.detail_type,
            "detail": deepcopy(dict(self.detail)),
        }
        for key in ("id", "time", "account", "region"):
            value = getattr(self, key)
            if value is not None:
                envelope[key] = value
        return envelope


@dataclass(frozen=True)
class ModelPackageStateChange:
    """Visão tipada do `detail` de um evento de mudança de estado de model package."""

    model_package_arn: str
    model_approval_status: ApprovalStatus
    model_package_group_name: Optional[str] = None
    model_package_name: Optional[str] = None
    model_package_version: Optional[int] = None

    @classmethod
    def from_detail(
        cls,
        detail: Mapping[str, Any],
        *,
        require_group_name: bool = False,
    ) -> "ModelPackageStateChange":
        """
        Valida e materializa o `detail` de um evento.

        Raises:
            MalformedEventError: campo obrigatório ausente, tipo errado ou
                status de aprovação desconhecido.
        """
        missing = []
        invalid: Dict[str, str] = {}

        arn = detail.get(MODEL_PACKAGE_ARN)
        if arn is None:
            missing.append(MODEL_PACKAGE_ARN)
        elif not isinstance(arn, str) or not arn.strip():
            invalid[MODEL_PACKAGE_ARN] = "must be a non-empty string"

        raw_status = detail.get(MODEL_APPROVAL_STATUS)
        status: Optional[ApprovalStatus] = None
        if raw_status is None:
            missing.append(MODEL_APPROVAL_STATUS)
        else:
            try:
                status = ApprovalStatus(raw_status)
            except ValueError:
                invalid[MODEL_APPROVAL_STATUS] = (
                    f"must be one of {[s.value for s in ApprovalStatus]}"
                )

        group = detail.get(MODEL_PACKAGE_GROUP_NAME)
        if group is None:
            if require_group_name:
                missing.append(MODEL_PACKAGE_GROUP_NAME)
        elif not isinstance(group, str) or not group.strip():
            invalid[MODEL_PACKAGE_GROUP_NAME] = "must be a non-empty string"

        name = detail.get(MODEL_PACKAGE_NAME)
        if name is not None and not isinstance(name, str):
            invalid[MODEL_PACKAGE_NAME] = "must be a string"

        version = detail.get(MODEL_PACKAGE_VERSION)
        if version is not None and (isinstance(version, bool) or not isinstance(version, int)):
            invalid[MODEL_PACKAGE_VERSION] = "must be an integer"

        if missing or invalid:
            raise MalformedEventError(
                message="model package event is malformed",
                details={"missing": missing, "invalid": invalid},
                hint="Verifique o produtor do evento (model registry)",
            )

        return cls(
            model_package_arn=arn,
            model_approval_status=status,  # type: ignore[arg-type]
            model_package_group_name=group,
            model_package_name=name,
            model_package_version=version,
        )
