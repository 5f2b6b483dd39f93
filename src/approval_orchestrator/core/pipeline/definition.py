# src/approval_orchestrator/core/pipeline/definition.py
"""
Modelo de definição de pipeline.

Uma `PipelineDefinition` é um documento nomeado e versionado contendo um
conjunto ordenado de Steps ligados por `depends_on`. Cada Step é tipado
(`Training | Approval | Callback`) e carrega configuração específica do tipo.

Formato do documento (YAML ou JSON):

    version: "2020-12-01"
    parameters:
      - name: ModelPackageArn
      - name: ModelApprovalStatus
        default: PendingManualApproval
    steps:
      - name: TrainingStep
        type: Training
        image: <imagem do algoritmo>
        inputs:
          - channel: train
            uri: s3://bucket/data/train
            contentType: text/csv
        output: s3://bucket/output
        resources: {instanceType: ml.m5.large, instanceCount: 1, volumeSizeGb: 10}
        timeoutSeconds: 3600
        environment:
          MODEL_PACKAGE_ARN: {Get: Parameters.ModelPackageArn}
      - name: ManualApprovalStep
        type: Approval
        dependsOn: [TrainingStep]

Também é aceita a forma capitalizada exportada pelo serviço de pipelines
(`Version`, `Steps`, `Name`, `Type`, `DependsOn`, `Arguments` com
`InputDataConfig`, `OutputDataConfig`, `ResourceConfig`, `StoppingCondition`).

Placeholders:
    Qualquer valor no formato `{"Get": "Parameters.<Nome>"}` referencia um
    parâmetro do pipeline e é resolvido no start da execução.

Decisões arquiteturais:
    - O parser é estrutural: campos ausentes viram None/vazio e a
      completude é verificada pelo validador (`engine.planner`)
    - Tipos errados e tipos de Step desconhecidos são DefinitionError imediatos
    - A definição é imutável após construída

Limites explícitos:
    - Não valida DAG nem completude (ver `validate_definition`)
    - Não executa Steps
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from approval_orchestrator.core.config.loader import load_document
from approval_orchestrator.core.exceptions import DefinitionError, MissingParameterError

from .types import StepType


PLACEHOLDER_KEY = "Get"
PLACEHOLDER_PREFIX = "Parameters."


@dataclass(frozen=True)
class ParameterRef:
    """Referência a um parâmetro do pipeline (`{"Get": "Parameters.<name>"}`)."""

    name: str

    def to_dict(self) -> Dict[str, str]:
        return {PLACEHOLDER_KEY: f"{PLACEHOLDER_PREFIX}{self.name}"}


Value = Union[str, ParameterRef]


def _malformed(step: Optional[str], rule: str, message: str, **extra: Any) -> DefinitionError:
    details: Dict[str, Any] = {"step": step, "rule": rule}
    details.update(extra)
    return DefinitionError(message=message, details=details)


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def parse_value(raw: Any, *, step: Optional[str], field_name: str) -> Optional[Value]:
    """Converte um valor bruto do documento em `str` ou `ParameterRef`."""
    if raw is None:
        return None
    if isinstance(raw, Mapping):
        ref = raw.get(PLACEHOLDER_KEY)
        if (
            set(raw) == {PLACEHOLDER_KEY}
            and isinstance(ref, str)
            and ref.startswith(PLACEHOLDER_PREFIX)
            and len(ref) > len(PLACEHOLDER_PREFIX)
        ):
            return ParameterRef(ref[len(PLACEHOLDER_PREFIX):])
        raise _malformed(
            step,
            "invalid_placeholder",
            f"Step '{step}' field '{field_name}' has an invalid placeholder",
            field=field_name,
        )
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise _malformed(
            step,
            "malformed_field",
            f"Step '{step}' field '{field_name}' must be a scalar or a parameter placeholder",
            field=field_name,
        )
    return str(raw)


def resolve_value(value: Optional[Value], parameters: Mapping[str, str]) -> Optional[str]:
    if isinstance(value, ParameterRef):
        if value.name not in parameters:
            raise MissingParameterError(
                message=f"Missing pipeline parameter: {value.name}",
                details={"parameter": value.name},
            )
        return parameters[value.name]
    return value


def _dump_value(value: Optional[Value]) -> Any:
    return value.to_dict() if isinstance(value, ParameterRef) else value


def _as_int(raw: Any, *, step: str, field_name: str) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise _malformed(step, "malformed_field", f"Step '{step}' field '{field_name}' must be an integer", field=field_name)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    raise _malformed(step, "malformed_field", f"Step '{step}' field '{field_name}' must be an integer", field=field_name)


# ---------------------------------------------------------------------------
# Configuração específica por tipo
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DataChannel:
    name: str
    uri: Optional[Value]
    content_type: Optional[str] = None


@dataclass(frozen=True)
class ResourceSpec:
    instance_type: str
    instance_count: int = 1
    volume_size_gb: int = 10


@dataclass(frozen=True)
class TrainingConfig:
    """Configuração de um Step de Training (o algoritmo em si é opaco ao core)."""

    inputs: Tuple[DataChannel, ...] = ()
    output_uri: Optional[Value] = None
    resources: Optional[ResourceSpec] = None
    timeout_seconds: Optional[int] = None
    image: Optional[Value] = None
    environment: Mapping[str, Value] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "environment", MappingProxyType(dict(self.environment)))

    def values(self) -> List[Optional[Value]]:
        out: List[Optional[Value]] = [self.image, self.output_uri]
        out.extend(ch.uri for ch in self.inputs)
        out.extend(self.environment.values())
        return out

    def resolve(self, parameters: Mapping[str, str]) -> Dict[str, Any]:
        return {
            "image": resolve_value(self.image, parameters),
            "inputs": [
                {
                    "channel": ch.name,
                    "uri": resolve_value(ch.uri, parameters),
                    "contentType": ch.content_type,
                }
                for ch in self.inputs
            ],
            "output": resolve_value(self.output_uri, parameters),
            "resources": None if self.resources is None else {
                "instanceType": self.resources.instance_type,
                "instanceCount": self.resources.instance_count,
                "volumeSizeGb": self.resources.volume_size_gb,
            },
            "timeoutSeconds": self.timeout_seconds,
            "environment": {k: resolve_value(v, parameters) for k, v in self.environment.items()},
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image": _dump_value(self.image),
            "inputs": [
                {"channel": ch.name, "uri": _dump_value(ch.uri), "contentType": ch.content_type}
                for ch in self.inputs
            ],
            "output": _dump_value(self.output_uri),
            "resources": None if self.resources is None else {
                "instanceType": self.resources.instance_type,
                "instanceCount": self.resources.instance_count,
                "volumeSizeGb": self.resources.volume_size_gb,
            },
            "timeoutSeconds": self.timeout_seconds,
            "environment": {k: _dump_value(v) for k, v in self.environment.items()},
        }


@dataclass(frozen=True)
class CallbackConfig:
    """Configuração de um Step de Callback: onde o aprovador deposita a decisão."""

    output_uri: Optional[Value] = None

    def values(self) -> List[Optional[Value]]:
        return [self.output_uri]

    def resolve(self, parameters: Mapping[str, str]) -> Dict[str, Any]:
        return {"output": resolve_value(self.output_uri, parameters)}

    def to_dict(self) -> Dict[str, Any]:
        return {"output": _dump_value(self.output_uri)}


# ---------------------------------------------------------------------------
# Step e definição
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StepDefinition:
    """
    Step declarativo de uma definição de pipeline.

    Campos:
        - name: identificador único do Step na definição
        - type: StepType
        - depends_on: nomes de Steps declarados anteriormente
        - description: texto livre (ex.: instrução ao aprovador)
        - training / callback: configuração específica do tipo
    """

    name: str
    type: StepType
    depends_on: Tuple[str, ...] = ()
    description: Optional[str] = None
    training: Optional[TrainingConfig] = None
    callback: Optional[CallbackConfig] = None

    def referenced_parameters(self) -> List[str]:
        config = self.training or self.callback
        if config is None:
            return []
        names: List[str] = []
        for value in config.values():
            if isinstance(value, ParameterRef) and value.name not in names:
                names.append(value.name)
        return names

    def resolve_arguments(self, parameters: Mapping[str, str]) -> Dict[str, Any]:
        config = self.training or self.callback
        return {} if config is None else config.resolve(parameters)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"name": self.name, "type": self.type.value}
        if self.depends_on:
            out["dependsOn"] = list(self.depends_on)
        if self.description is not None:
            out["description"] = self.description
        if self.training is not None:
            out.update(self.training.to_dict())
        if self.callback is not None:
            out.update(self.callback.to_dict())
        return out


@dataclass(frozen=True)
class ParameterSpec:
    name: str
    default: Optional[str] = None


@dataclass(frozen=True)
class PipelineDefinition:
    """Documento nomeado e versionado com um conjunto ordenado de Steps."""

    name: str
    version: str
    steps: Tuple[StepDefinition, ...]
    parameters: Tuple[ParameterSpec, ...] = ()

    @property
    def step_names(self) -> List[str]:
        return [s.name for s in self.steps]

    def step(self, name: str) -> StepDefinition:
        for s in self.steps:
            if s.name == name:
                return s
        raise KeyError(name)

    def referenced_parameters(self) -> List[str]:
        names: List[str] = []
        for s in self.steps:
            for p in s.referenced_parameters():
                if p not in names:
                    names.append(p)
        return names

    def defaults(self) -> Dict[str, str]:
        return {p.name: p.default for p in self.parameters if p.default is not None}

    def with_defaults(self, overrides: Mapping[str, Any]) -> "PipelineDefinition":
        """Nova definição com defaults substituídos para parâmetros já declarados."""
        params = tuple(
            replace(p, default=str(overrides[p.name])) if overrides.get(p.name) is not None else p
            for p in self.parameters
        )
        return replace(self, parameters=params)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "parameters": [
                {"name": p.name, **({"default": p.default} if p.default is not None else {})}
                for p in self.parameters
            ],
            "steps": [s.to_dict() for s in self.steps],
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any], *, name: Optional[str] = None) -> "PipelineDefinition":
        """
        Materializa uma definição a partir do documento bruto (dict).

        Raises:
            DefinitionError: documento estruturalmente malformado.
        """
        if not isinstance(document, Mapping):
            raise _malformed(None, "malformed_document", "Pipeline definition must be a mapping")

        pipeline_name = name or _pick(document, "name", "PipelineName")
        if not isinstance(pipeline_name, str) or not pipeline_name.strip():
            raise _malformed(None, "missing_name", "Pipeline definition must declare a name")

        version = _pick(document, "version", "Version")
        if version is None:
            raise _malformed(None, "missing_version", "Pipeline definition must declare a version")

        raw_steps = _pick(document, "steps", "Steps")
        if not isinstance(raw_steps, list) or not raw_steps:
            raise _malformed(None, "missing_steps", "Pipeline definition must declare a non-empty list of steps")

        raw_params = _pick(document, "parameters", "Parameters") or []
        if not isinstance(raw_params, list):
            raise _malformed(None, "malformed_parameters", "Pipeline parameters must be a list")

        return cls(
            name=pipeline_name,
            version=str(version),
            steps=tuple(_parse_step(raw, index) for index, raw in enumerate(raw_steps)),
            parameters=tuple(_parse_parameter(raw) for raw in raw_params),
        )


def _parse_parameter(raw: Any) -> ParameterSpec:
    if not isinstance(raw, Mapping):
        raise _malformed(None, "malformed_parameters", "Each pipeline parameter must be a mapping")
    pname = _pick(raw, "name", "Name")
    if not isinstance(pname, str) or not pname.strip():
        raise _malformed(None, "malformed_parameters", "Each pipeline parameter must declare a name")
    default = _pick(raw, "default", "DefaultValue")
    return ParameterSpec(name=pname, default=None if default is None else str(default))


def _parse_step(raw: Any, index: int) -> StepDefinition:
    if not isinstance(raw, Mapping):
        raise _malformed(None, "malformed_step", f"Step at position {index} must be a mapping", position=index)

    name = _pick(raw, "name", "Name")
    if not isinstance(name, str) or not name.strip():
        raise _malformed(None, "missing_name", f"Step at position {index} must declare a name", position=index)

    raw_type = _pick(raw, "type", "Type")
    try:
        step_type = StepType(raw_type)
    except ValueError:
        raise _malformed(
            name,
            "unknown_type",
            f"Step '{name}' has unknown type: {raw_type!r}",
            allowed=[t.value for t in StepType],
        ) from None

    depends_on = _pick(raw, "dependsOn", "DependsOn") or []
    if not isinstance(depends_on, list) or not all(isinstance(d, str) for d in depends_on):
        raise _malformed(name, "malformed_depends_on", f"Step '{name}' dependsOn must be a list of step names")

    description = _pick(raw, "description", "Description")

    training = None
    callback = None
    if step_type is StepType.TRAINING:
        arguments = raw.get("Arguments")
        training = _training_from_arguments(name, arguments) if isinstance(arguments, Mapping) else _training(name, raw)
    elif step_type is StepType.CALLBACK:
        arguments = raw.get("Arguments") if isinstance(raw.get("Arguments"), Mapping) else {}
        output = _pick(raw, "output", "Output")
        if output is None:
            output = (arguments.get("OutputDataConfig") or {}).get("S3OutputPath")
        callback = CallbackConfig(output_uri=parse_value(output, step=name, field_name="output"))

    return StepDefinition(
        name=name,
        type=step_type,
        depends_on=tuple(depends_on),
        description=None if description is None else str(description),
        training=training,
        callback=callback,
    )


def _resources(name: str, raw: Any, keys: Sequence[Tuple[str, ...]]) -> Optional[ResourceSpec]:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise _malformed(name, "malformed_field", f"Step '{name}' resources must be a mapping", field="resources")
    instance_type = _pick(raw, *keys[0])
    if not isinstance(instance_type, str) or not instance_type.strip():
        return None
    count = _as_int(_pick(raw, *keys[1]), step=name, field_name="instanceCount")
    volume = _as_int(_pick(raw, *keys[2]), step=name, field_name="volumeSizeGb")
    return ResourceSpec(
        instance_type=instance_type,
        instance_count=1 if count is None else count,
        volume_size_gb=10 if volume is None else volume,
    )


def _environment(name: str, raw: Any) -> Dict[str, Value]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise _malformed(name, "malformed_field", f"Step '{name}' environment must be a mapping", field="environment")
    return {str(k): parse_value(v, step=name, field_name=f"environment.{k}") for k, v in raw.items()}


def _training(name: str, raw: Mapping[str, Any]) -> TrainingConfig:
    raw_inputs = _pick(raw, "inputs", "Inputs") or []
    if not isinstance(raw_inputs, list):
        raise _malformed(name, "malformed_field", f"Step '{name}' inputs must be a list", field="inputs")

    channels = []
    for ch in raw_inputs:
        if not isinstance(ch, Mapping):
            raise _malformed(name, "malformed_field", f"Step '{name}' input channels must be mappings", field="inputs")
        channel_name = _pick(ch, "channel", "name", "ChannelName")
        channels.append(
            DataChannel(
                name=str(channel_name) if channel_name is not None else "",
                uri=parse_value(_pick(ch, "uri", "Uri", "S3Uri"), step=name, field_name="inputs.uri"),
                content_type=_pick(ch, "contentType", "ContentType"),
            )
        )

    return TrainingConfig(
        inputs=tuple(channels),
        output_uri=parse_value(_pick(raw, "output", "Output"), step=name, field_name="output"),
        resources=_resources(
            name,
            _pick(raw, "resources", "Resources"),
            (("instanceType",), ("instanceCount",), ("volumeSizeGb",)),
        ),
        timeout_seconds=_as_int(_pick(raw, "timeoutSeconds", "TimeoutSeconds"), step=name, field_name="timeoutSeconds"),
        image=parse_value(_pick(raw, "image", "Image"), step=name, field_name="image"),
        environment=_environment(name, _pick(raw, "environment", "Environment")),
    )


def _training_from_arguments(name: str, arguments: Mapping[str, Any]) -> TrainingConfig:
    channels = []
    for ch in arguments.get("InputDataConfig") or []:
        if not isinstance(ch, Mapping):
            raise _malformed(name, "malformed_field", f"Step '{name}' InputDataConfig entries must be mappings", field="InputDataConfig")
        s3 = ((ch.get("DataSource") or {}).get("S3DataSource") or {})
        channels.append(
            DataChannel(
                name=str(ch.get("ChannelName", "")),
                uri=parse_value(s3.get("S3Uri"), step=name, field_name="InputDataConfig.S3Uri"),
                content_type=ch.get("ContentType"),
            )
        )

    output = (arguments.get("OutputDataConfig") or {}).get("S3OutputPath")
    stopping = arguments.get("StoppingCondition") or {}
    algorithm = arguments.get("AlgorithmSpecification") or {}

    return TrainingConfig(
        inputs=tuple(channels),
        output_uri=parse_value(output, step=name, field_name="OutputDataConfig.S3OutputPath"),
        resources=_resources(
            name,
            arguments.get("ResourceConfig"),
            (("InstanceType",), ("InstanceCount",), ("VolumeSizeInGB",)),
        ),
        timeout_seconds=_as_int(stopping.get("MaxRuntimeInSeconds"), step=name, field_name="MaxRuntimeInSeconds"),
        image=parse_value(algorithm.get("TrainingImage"), step=name, field_name="TrainingImage"),
        environment=_environment(name, arguments.get("Environment")),
    )


def load_definition(path: Union[str, Path], *, name: Optional[str] = None) -> PipelineDefinition:
    """
    Carrega uma definição de pipeline de um arquivo YAML/JSON.

    Sem nome explícito (argumento ou campo `name` no documento), o nome do
    arquivo sem extensão é usado.
    """
    path = Path(path)
    document = load_document(path)
    if name is None and _pick(document, "name", "PipelineName") is None:
        name = path.stem
    return PipelineDefinition.from_document(document, name=name)
