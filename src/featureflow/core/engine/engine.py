"""
Engine de materialização do featureflow.

O Engine é a fachada de uma run: resolve o grafo do node solicitado no
registry, executa-o com o scheduler e, quando o node é terminal (dataset
ou model), comita o valor produzido no versioner.

Fluxo de `materialize(terminal)`:
    1. build_graph → todos os erros estruturais surgem antes da execução
    2. Scheduler.run → execução sequencial com memoização
    3. versioner.commit → label `name:branch:version` com as métricas e
       params acumulados pelo `log()` durante a run
    4. política de finalização (datasets fecham no commit)

Decisões arquiteturais:
    - Falha em qualquer node aborta a run: nenhum artifact é comitado e o
      Manifest registra a falha
    - `VersionConflictError` é propagado sem nova tentativa; o chamador
      reexecuta a run inteira
    - Com `engine.keep_results = false`, os resultados do contexto são
      descartados após o commit
    - Não há cache entre runs: cada materialização sem contexto explícito
      reexecuta todos os ancestrais

Limites explícitos:
    - Não declara nodes
    - Não escolhe o backend de storage
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from featureflow.core.config import EngineSettings, compute_config_hash, resolve_settings
from featureflow.core.exceptions import VersionConflictError
from featureflow.core.pipeline.context import ExecutionContext
from featureflow.core.pipeline.registry import NodeRegistry
from featureflow.core.pipeline.types import Node, NodeKind
from featureflow.core.traceability import (
    RunManifest,
    add_event,
    artifact_committed,
    create_manifest,
    run_finished,
)
from featureflow.version import __version__
from featureflow.versioning.label import ArtifactRef
from featureflow.versioning.versioner import Versioner

from .graph import Graph, build_graph
from .scheduler import Scheduler


@dataclass(frozen=True)
class RunResult:
    """Resultado de uma run.

    - value: valor produzido pelo node solicitado
    - ref: artifact comitado (None quando o node não é terminal)
    - context: ExecutionContext da run (results, trail, events)
    - manifest: RunManifest da run, quando houver
    """

    value: Any
    ref: Optional[ArtifactRef]
    context: ExecutionContext
    manifest: Optional[RunManifest] = None

    @property
    def label(self) -> Optional[str]:
        return None if self.ref is None else str(self.ref)


class Engine:
    """Fachada registry → graph → scheduler → versioner."""

    def __init__(
        self,
        registry: NodeRegistry,
        versioner: Versioner,
        settings: Optional[EngineSettings] = None,
    ) -> None:
        self.registry = registry
        self.versioner = versioner
        self.settings = settings if settings is not None else resolve_settings()
        self.scheduler = Scheduler()

    # ------------------------------------------------------------------
    # Contexto
    # ------------------------------------------------------------------
    def new_context(self, terminal: str) -> ExecutionContext:
        ctx = ExecutionContext.new(
            config=self.settings.raw,
            log_level=self.settings.log_level,
        )
        ctx.manifest = create_manifest(
            run_id=ctx.run_id,
            terminal=terminal,
            started_at=ctx.created_at,
            featureflow_version=__version__,
            config_hash=compute_config_hash(dict(self.settings.raw)),
        )
        return ctx

    def _execute(self, terminal: str, ctx: Optional[ExecutionContext]) -> tuple:
        graph = build_graph(self.registry, terminal)
        if ctx is None:
            ctx = self.new_context(terminal)
        ctx.log(node=None, level="INFO", message="run started", terminal=terminal, nodes=len(graph))
        value = self.scheduler.run(graph, ctx)
        return graph, ctx, value

    # ------------------------------------------------------------------
    # API pública
    # ------------------------------------------------------------------
    def evaluate(self, name: str, ctx: Optional[ExecutionContext] = None) -> RunResult:
        """Executa o grafo até `name` sem comitar artifact."""
        _, ctx, value = self._execute(name, ctx)
        if ctx.pending_metrics or ctx.pending_params:
            ctx.add_warning(
                node=name,
                message="metrics/params logged during evaluation were not committed",
            )
            ctx.pending_metrics.clear()
            ctx.pending_params.clear()
        if ctx.manifest is not None:
            run_finished(ctx.manifest)
        return RunResult(value=value, ref=None, context=ctx, manifest=ctx.manifest)

    def materialize(self, terminal: str, ctx: Optional[ExecutionContext] = None) -> RunResult:
        """
        Executa o grafo de `terminal` e, se for dataset/model, comita o valor.

        Raises:
            UnknownNodeError / CyclicDependencyError: Erros estruturais, antes
                de qualquer execução.
            NodeExecutionError: Se algum node falhar (nenhum commit ocorre).
            VersionConflictError: Se o storage rejeitar a versão atribuída.
        """
        graph, ctx, value = self._execute(terminal, ctx)

        ref: Optional[ArtifactRef] = None
        node = graph.node(terminal)
        if node.is_sink:
            ref = self._commit(node, value, ctx)

        if ctx.manifest is not None:
            run_finished(ctx.manifest)
        if not self.settings.keep_results:
            ctx.clear()
        return RunResult(value=value, ref=ref, context=ctx, manifest=ctx.manifest)

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------
    def _commit(self, node: Node, value: Any, ctx: ExecutionContext) -> ArtifactRef:
        sink = node.sink
        branch = sink.branch or self.settings.default_branch
        persist = self.settings.persist if sink.persist is None else bool(sink.persist)

        try:
            ref = self.versioner.commit(
                sink.artifact_name,
                branch,
                value,
                metrics=ctx.pending_metrics,
                params=ctx.pending_params,
                persist=persist,
                kind=node.kind.value,
                run_id=ctx.run_id,
            )
        except VersionConflictError as exc:
            ctx.log(node=node.name, level="ERROR", message=exc.message)
            if ctx.manifest is not None:
                add_event(
                    ctx.manifest,
                    event_type="commit_conflict",
                    node=node.name,
                    payload={"error": exc.to_payload().to_dict()},
                )
                ctx.manifest.run["status"] = "failed"
            raise

        ctx.pending_metrics.clear()
        ctx.pending_params.clear()

        if node.kind is NodeKind.DATASET and self.settings.finalize_datasets:
            self.versioner.finalize(ref)

        artifact = self.versioner.get(ref)
        ctx.log(
            node=node.name,
            level="INFO",
            message="artifact committed",
            label=str(ref),
            persisted=artifact.persisted,
        )
        if ctx.manifest is not None:
            artifact_committed(
                ctx.manifest,
                label=str(ref),
                kind=artifact.kind,
                fingerprint=artifact.fingerprint,
                persisted=artifact.persisted,
            )
        return ref

    def graph_for(self, terminal: str) -> Graph:
        return build_graph(self.registry, terminal)


__all__ = ["Engine", "RunResult"]
