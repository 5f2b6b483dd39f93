# src/approval_orchestrator/core/trigger/__init__.py
"""Trigger Handler: eventos filtrados → starts idempotentes de pipeline."""

from .handler import PipelineParameter, TriggerHandler, TriggerRequest

__all__ = ["PipelineParameter", "TriggerHandler", "TriggerRequest"]
