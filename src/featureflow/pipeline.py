"""
Superfície de declaração de pipelines do featureflow.

Um `Pipeline` agrega registry, versioner e engine de um processo e expõe
os decorators de declaração:

    @pipe.loader()
    def raw_images():
        ...

    @pipe.transformer(parents="raw_images", size=64)
    def small(images, size):
        ...

    @pipe.dataset("flavia:dev", parents=["small"])
    def flavia(images):
        ...

    result = flavia()          # materializa -> RunResult (ref flavia:dev:1)

Cada decorator registra a função imediatamente e devolve um
`DeclaredNode`. Chamar o handle de um node terminal materializa o grafo
(construção tardia); chamar qualquer outro handle apenas o avalia.

Decisões arquiteturais:
    - O grafo só é construído na primeira materialização, portanto parents
      podem ser declarados depois de seus filhos
    - Existe um pipeline padrão por processo (`get_pipeline`), com reset
      explícito (`reset_pipeline`) para isolamento entre testes
    - Labels de sink aceitam `name` ou `name:branch`; sem branch, vale
      `artifacts.default_branch`
"""

from __future__ import annotations

import functools
from pathlib import Path
from threading import Lock
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from featureflow.core.config import EngineSettings, load_config, resolve_settings
from featureflow.core.engine.engine import Engine, RunResult
from featureflow.core.exceptions import InvalidLabelError
from featureflow.core.pipeline.context import ExecutionContext
from featureflow.core.pipeline.registry import NodeRegistry
from featureflow.core.pipeline.types import Node, NodeKind, SinkOptions
from featureflow.persistence import ArtifactStorage, build_storage
from featureflow.versioning.artifact import Artifact
from featureflow.versioning.label import ArtifactRef, parse_label, validate_part
from featureflow.versioning.logger import MetricLogger
from featureflow.versioning.versioner import RefLike, Versioner


ParentsLike = Union[None, str, "DeclaredNode", Iterable[Union[str, "DeclaredNode"]]]


class DeclaredNode:
    """Handle devolvido pelos decorators de declaração."""

    def __init__(self, pipeline: "Pipeline", node: Node) -> None:
        self.pipeline = pipeline
        self.node = node
        functools.update_wrapper(self, node.func)

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def kind(self) -> NodeKind:
        return self.node.kind

    def materialize(self, ctx: Optional[ExecutionContext] = None) -> RunResult:
        return self.pipeline.engine.materialize(self.node.name, ctx=ctx)

    def evaluate(self, ctx: Optional[ExecutionContext] = None) -> Any:
        return self.pipeline.engine.evaluate(self.node.name, ctx=ctx).value

    def __call__(self, ctx: Optional[ExecutionContext] = None) -> Any:
        if self.node.is_sink:
            return self.materialize(ctx)
        return self.evaluate(ctx)

    def __repr__(self) -> str:
        return f"DeclaredNode(name={self.node.name!r}, kind={self.node.kind.value!r})"


def _parent_names(parents: ParentsLike) -> List[str]:
    if parents is None:
        return []
    if isinstance(parents, (str, DeclaredNode)):
        parents = [parents]
    return [p.name if isinstance(p, DeclaredNode) else p for p in parents]


def _sink_options(label: str, persist: Optional[bool]) -> SinkOptions:
    """`name` ou `name:branch`; versões não podem ser fixadas na produção."""
    if isinstance(label, str) and ":" not in label:
        name = validate_part(label.strip(), field_name="name", label=label)
        return SinkOptions(artifact_name=name, branch=None, persist=persist)
    parsed = parse_label(label)
    if parsed.version is not None:
        raise InvalidLabelError(label, reason="a sink label cannot pin a version")
    return SinkOptions(artifact_name=parsed.name, branch=parsed.branch, persist=persist)


class Pipeline:
    """
    Pipeline de um processo: registry + versioner + engine.

    Exemplo:
        pipe = Pipeline({"artifacts": {"store": "local", "root_dir": "/tmp/ff"}})
    """

    def __init__(
        self,
        settings: Union[EngineSettings, Mapping[str, Any], None] = None,
        storage: Optional[ArtifactStorage] = None,
    ) -> None:
        if not isinstance(settings, EngineSettings):
            settings = resolve_settings(dict(settings or {}))
        self.settings: EngineSettings = settings
        self._owns_storage = storage is None
        self.registry = NodeRegistry()
        self.versioner = Versioner(storage if storage is not None else build_storage(settings))
        self.logger = MetricLogger(self.versioner)
        self.engine = Engine(self.registry, self.versioner, settings)

    @classmethod
    def from_files(
        cls,
        *,
        defaults_path: Optional[Path] = None,
        local_path: Optional[Path] = None,
        storage: Optional[ArtifactStorage] = None,
    ) -> "Pipeline":
        config = load_config(defaults_path=defaults_path, local_path=local_path)
        return cls(resolve_settings(config), storage=storage)

    @property
    def storage(self) -> ArtifactStorage:
        return self.versioner.storage

    # ------------------------------------------------------------------
    # Declaração
    # ------------------------------------------------------------------
    def _declare(
        self,
        func: Callable[..., Any],
        *,
        name: Optional[str],
        kind: NodeKind,
        parents: ParentsLike,
        extra_args: Dict[str, Any],
        sink: Optional[SinkOptions] = None,
    ) -> DeclaredNode:
        node = self.registry.register(
            name or func.__name__,
            kind,
            _parent_names(parents),
            func,
            extra_args,
            sink=sink,
        )
        return DeclaredNode(self, node)

    def loader(self, name: Optional[str] = None, **extra_args: Any) -> Callable[[Callable[..., Any]], DeclaredNode]:
        def decorator(func: Callable[..., Any]) -> DeclaredNode:
            return self._declare(
                func, name=name, kind=NodeKind.LOADER, parents=None, extra_args=extra_args
            )

        return decorator

    def transformer(
        self,
        parents: ParentsLike = None,
        name: Optional[str] = None,
        **extra_args: Any,
    ) -> Callable[[Callable[..., Any]], DeclaredNode]:
        def decorator(func: Callable[..., Any]) -> DeclaredNode:
            return self._declare(
                func, name=name, kind=NodeKind.TRANSFORMER, parents=parents, extra_args=extra_args
            )

        return decorator

    def dataset(
        self,
        label: str,
        parents: ParentsLike,
        persist: Optional[bool] = None,
        name: Optional[str] = None,
        **extra_args: Any,
    ) -> Callable[[Callable[..., Any]], DeclaredNode]:
        sink = _sink_options(label, persist)

        def decorator(func: Callable[..., Any]) -> DeclaredNode:
            return self._declare(
                func, name=name, kind=NodeKind.DATASET, parents=parents,
                extra_args=extra_args, sink=sink,
            )

        return decorator

    def model(
        self,
        label: str,
        parents: ParentsLike = None,
        persist: Optional[bool] = None,
        name: Optional[str] = None,
        **extra_args: Any,
    ) -> Callable[[Callable[..., Any]], DeclaredNode]:
        sink = _sink_options(label, persist)

        def decorator(func: Callable[..., Any]) -> DeclaredNode:
            return self._declare(
                func, name=name, kind=NodeKind.MODEL, parents=parents,
                extra_args=extra_args, sink=sink,
            )

        return decorator

    # ------------------------------------------------------------------
    # Execução e artifacts
    # ------------------------------------------------------------------
    def materialize(self, name: str, ctx: Optional[ExecutionContext] = None) -> RunResult:
        return self.engine.materialize(name, ctx=ctx)

    def evaluate(self, name: str, ctx: Optional[ExecutionContext] = None) -> Any:
        return self.engine.evaluate(name, ctx=ctx).value

    def log(
        self,
        metrics: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Artifact]:
        return self.logger.log(metrics=metrics, params=params)

    def attach(
        self,
        ref: RefLike,
        metrics: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Artifact:
        return self.logger.attach(ref, metrics=metrics, params=params)

    def finalize(self, ref: Optional[RefLike] = None) -> Artifact:
        return self.versioner.finalize(ref)

    def get(self, label: RefLike) -> Artifact:
        return self.versioner.get(label)

    def resolve(self, label: RefLike) -> ArtifactRef:
        return self.versioner.resolve(label)

    def reset(self) -> None:
        """Remove nodes declarados e o estado de artifacts do processo."""
        self.registry.reset()
        self.versioner.reset()
        if self._owns_storage and self.settings.store == "memory":
            self.versioner.storage = build_storage(self.settings)


# ---------------------------------------------------------------------------
# Pipeline padrão do processo
# ---------------------------------------------------------------------------

_default: Optional[Pipeline] = None
_default_lock = Lock()


def get_pipeline() -> Pipeline:
    """Retorna o pipeline padrão do processo, criando-o sob demanda."""
    global _default
    with _default_lock:
        if _default is None:
            _default = Pipeline()
        return _default


def reset_pipeline(
    settings: Union[EngineSettings, Mapping[str, Any], None] = None,
    storage: Optional[ArtifactStorage] = None,
) -> Pipeline:
    """Substitui o pipeline padrão por um novo (isolamento explícito)."""
    global _default
    with _default_lock:
        _default = Pipeline(settings, storage=storage)
        return _default


def loader(name: Optional[str] = None, **extra_args: Any) -> Callable[[Callable[..., Any]], DeclaredNode]:
    return get_pipeline().loader(name=name, **extra_args)


def transformer(parents: ParentsLike = None, name: Optional[str] = None, **extra_args: Any) -> Callable[[Callable[..., Any]], DeclaredNode]:
    return get_pipeline().transformer(parents=parents, name=name, **extra_args)


def dataset(
    label: str,
    parents: ParentsLike,
    persist: Optional[bool] = None,
    name: Optional[str] = None,
    **extra_args: Any,
) -> Callable[[Callable[..., Any]], DeclaredNode]:
    return get_pipeline().dataset(label, parents, persist=persist, name=name, **extra_args)


def model(
    label: str,
    parents: ParentsLike = None,
    persist: Optional[bool] = None,
    name: Optional[str] = None,
    **extra_args: Any,
) -> Callable[[Callable[..., Any]], DeclaredNode]:
    return get_pipeline().model(label, parents=parents, persist=persist, name=name, **extra_args)


def log(
    metrics: Optional[Mapping[str, Any]] = None,
    params: Optional[Mapping[str, Any]] = None,
) -> Optional[Artifact]:
    return get_pipeline().log(metrics=metrics, params=params)


def finalize(ref: Optional[RefLike] = None) -> Artifact:
    return get_pipeline().finalize(ref)


__all__ = [
    "Pipeline",
    "DeclaredNode",
    "get_pipeline",
    "reset_pipeline",
    "loader",
    "transformer",
    "dataset",
    "model",
    "log",
    "finalize",
]
