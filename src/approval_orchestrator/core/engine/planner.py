# src/approval_orchestrator/core/engine/planner.py
"""
Planejador e validador estrutural de definições de pipeline (DAG).

Este módulo valida a estrutura de uma `PipelineDefinition` e produz uma
ordem de execução topológica determinística dos Steps declarados.

O planner opera exclusivamente em nível estrutural, analisando:
    - nomes de Steps
    - dependências declaradas
    - formação de ciclos
    - referências a Steps declarados depois do dependente
    - completude da configuração específica de cada tipo de Step

Ordem das verificações em `validate_definition`:
    1. nomes únicos                   → DuplicateStepNameError
    2. dependências existentes        → UnknownDependencyError
    3. grafo acíclico (Kahn)          → CycleDetectedError
    4. dependências declaradas antes  → ForwardReferenceError
    5. configuração completa por tipo → IncompleteStepConfigError

Decisões arquiteturais:
    - A verificação de ciclo é um Kahn explícito, não apenas a ordem de
      declaração (auto-dependência também é ciclo)
    - Empates na ordenação são resolvidos pela ordem de declaração
    - Erros estruturais são fatais e nomeiam o Step e a regra violada

Invariantes:
    - Nenhum Step aparece antes de suas dependências
    - Todos os Steps aparecem exatamente uma vez
    - A mesma definição produz sempre a mesma ordem

Limites explícitos:
    - Não executa Steps
    - Não resolve placeholders de parâmetros
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from approval_orchestrator.core.exceptions import (
    CycleDetectedError,
    DuplicateStepNameError,
    ForwardReferenceError,
    IncompleteStepConfigError,
    UnknownDependencyError,
)
from approval_orchestrator.core.pipeline.definition import PipelineDefinition, StepDefinition
from approval_orchestrator.core.pipeline.types import StepType


def _index(steps: List[StepDefinition]) -> Dict[str, int]:
    positions: Dict[str, int] = {}
    for pos, s in enumerate(steps):
        if s.name in positions:
            raise DuplicateStepNameError(
                message=f"Duplicate step name: {s.name}",
                details={"step": s.name, "rule": "unique_step_names"},
                hint="Cada Step precisa de um nome único na definição",
            )
        positions[s.name] = pos
    return positions


def plan_execution(steps: Iterable[StepDefinition]) -> List[StepDefinition]:
    """
    Valida o grafo e produz a ordem topológica determinística dos Steps.

    Quando múltiplos Steps estão prontos, a escolha segue a ordem de
    declaração.

    Raises:
        DuplicateStepNameError: nome repetido.
        UnknownDependencyError: dependência inexistente.
        CycleDetectedError: ciclo no grafo (inclui auto-dependência).
    """
    step_list = list(steps)
    positions = _index(step_list)

    for s in step_list:
        for dep in s.depends_on:
            if dep not in positions:
                raise UnknownDependencyError(
                    message=f"Step '{s.name}' depends on unknown step '{dep}'",
                    details={"step": s.name, "rule": "known_dependencies", "dependency": dep},
                )

    # Kahn's algorithm (deterministic)
    incoming = {s.name: len(set(s.depends_on)) for s in step_list}
    outgoing: Dict[str, List[str]] = {s.name: [] for s in step_list}
    for s in step_list:
        for dep in set(s.depends_on):
            outgoing[dep].append(s.name)

    ready = sorted((n for n, c in incoming.items() if c == 0), key=positions.__getitem__)
    order: List[str] = []
    while ready:
        name = ready.pop(0)
        order.append(name)
        for child in outgoing[name]:
            incoming[child] -= 1
            if incoming[child] == 0:
                ready.append(child)
                ready.sort(key=positions.__getitem__)

    if len(order) != len(step_list):
        stuck = [s.name for s in step_list if s.name not in order]
        raise CycleDetectedError(
            message="Cycle detected in step dependency graph",
            details={"step": stuck[0], "rule": "acyclic", "steps": stuck},
        )

    return [step_list[positions[n]] for n in order]


def _check_forward_references(steps: List[StepDefinition]) -> None:
    seen = set()
    for s in steps:
        for dep in s.depends_on:
            if dep not in seen:
                raise ForwardReferenceError(
                    message=f"Step '{s.name}' depends on '{dep}', which is declared later",
                    details={"step": s.name, "rule": "declared_before", "dependency": dep},
                    hint="Declare as dependências antes dos Steps que dependem delas",
                )
        seen.add(s.name)


def _incomplete(step: StepDefinition, missing: List[str]) -> IncompleteStepConfigError:
    return IncompleteStepConfigError(
        message=f"Step '{step.name}' ({step.type.value}) is missing: {', '.join(missing)}",
        details={"step": step.name, "rule": "complete_config", "missing": missing},
    )


def _check_config(step: StepDefinition) -> None:
    if step.type is StepType.TRAINING:
        cfg = step.training
        missing: List[str] = []
        if cfg is None or not cfg.inputs:
            missing.append("inputs")
        elif any(not ch.name or ch.uri is None for ch in cfg.inputs):
            missing.append("inputs.channel")
        if cfg is None or cfg.output_uri is None:
            missing.append("output")
        if cfg is None or cfg.resources is None:
            missing.append("resources")
        elif cfg.resources.instance_count < 1 or cfg.resources.volume_size_gb < 1:
            missing.append("resources.capacity")
        if cfg is None or cfg.timeout_seconds is None or cfg.timeout_seconds <= 0:
            missing.append("timeoutSeconds")
        if missing:
            raise _incomplete(step, missing)
    elif step.type is StepType.CALLBACK:
        if step.callback is None or step.callback.output_uri is None:
            raise _incomplete(step, ["output"])


def validate_definition(definition: PipelineDefinition) -> None:
    """
    Valida uma definição de pipeline completa.

    Raises:
        DefinitionError: (subclasses) nomeando o Step e a regra violada.
    """
    steps = list(definition.steps)
    plan_execution(steps)
    _check_forward_references(steps)
    for s in steps:
        _check_config(s)
