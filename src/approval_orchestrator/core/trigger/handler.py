# src/approval_orchestrator/core/trigger/handler.py
"""
Trigger Handler: evento filtrado → pedido de start de pipeline.

Fluxo:
    1. `event.detail` é convertido em `ModelPackageStateChange` (fronteira
       tipada; mapas não tipados não passam daqui)
    2. Um `TriggerRequest` é montado com os parâmetros do pipeline
       (`ModelPackageArn`, `ModelApprovalStatus` e, quando configurado,
       `ModelPackageGroupName`)
    3. A chave de idempotência é derivada de
       (pipeline, ModelPackageArn, ModelApprovalStatus)
    4. `engine.start` é chamado; entregas repetidas do mesmo par
       (identificador, status) retornam o handle existente

Invariantes:
    - Evento malformado levanta MalformedEventError e o engine nunca é chamado
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from approval_orchestrator.core.config.hashing import compute_idempotency_key
from approval_orchestrator.core.engine.engine import ExecutionEngine, ExecutionHandle
from approval_orchestrator.core.events.types import (
    MODEL_APPROVAL_STATUS,
    MODEL_PACKAGE_ARN,
    MODEL_PACKAGE_GROUP_NAME,
    Event,
    ModelPackageStateChange,
)
from approval_orchestrator.core.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineParameter:
    name: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class TriggerRequest:
    """Pedido de start derivado de um evento; existe só durante uma invocação."""

    pipeline_name: str
    parameters: Tuple[PipelineParameter, ...]
    idempotency_key: str

    def parameter_map(self) -> Dict[str, str]:
        return {p.name: p.value for p in self.parameters}

    def to_start_request(self) -> Dict[str, Any]:
        return {
            "pipelineName": self.pipeline_name,
            "parameters": [p.to_dict() for p in self.parameters],
        }


class TriggerHandler:
    """Traduz eventos de mudança de estado de model package em starts de pipeline."""

    def __init__(
        self,
        *,
        engine: ExecutionEngine,
        pipeline_name: str,
        include_group_name: bool = False,
    ):
        self.engine = engine
        self.pipeline_name = pipeline_name
        self.include_group_name = include_group_name

    def build_request(self, event: Event) -> TriggerRequest:
        """
        Raises:
            MalformedEventError: campo obrigatório ausente ou com tipo errado.
        """
        change = ModelPackageStateChange.from_detail(
            event.detail,
            require_group_name=self.include_group_name,
        )

        params: List[PipelineParameter] = [
            PipelineParameter(MODEL_PACKAGE_ARN, change.model_package_arn),
            PipelineParameter(MODEL_APPROVAL_STATUS, change.model_approval_status.value),
        ]
        if self.include_group_name:
            params.append(PipelineParameter(MODEL_PACKAGE_GROUP_NAME, change.model_package_group_name or ""))

        key = compute_idempotency_key(
            self.pipeline_name,
            {
                MODEL_PACKAGE_ARN: change.model_package_arn,
                MODEL_APPROVAL_STATUS: change.model_approval_status.value,
            },
        )
        return TriggerRequest(pipeline_name=self.pipeline_name, parameters=tuple(params), idempotency_key=key)

    def on_event(self, event: Event) -> ExecutionHandle:
        request = self.build_request(event)
        handle = self.engine.start(
            request.pipeline_name,
            request.parameter_map(),
            idempotency_key=request.idempotency_key,
        )
        logger.info(
            "pipeline triggered",
            extra={
                "pipeline": request.pipeline_name,
                "execution_id": handle.execution_id,
                "idempotency_key": request.idempotency_key,
            },
        )
        return handle

    def __call__(self, event: Event) -> ExecutionHandle:
        return self.on_event(event)

