"""
Scheduler de execução do grafo de um node terminal.

O scheduler percorre `graph.order`, monta as entradas de cada node a partir
dos resultados já produzidos, invoca a lógica opaca do node e memoiza o
valor retornado no `ExecutionContext`.

Decisões arquiteturais:
    - Execução síncrona e sequencial (sem paralelismo entre irmãos)
    - Fail-fast: a primeira falha aborta a run e nada a jusante executa
    - A exceção original é encadeada (`raise ... from`) em
      `NodeExecutionError`, preservando o traceback do node
    - Enquanto um node executa, o contexto é publicado como *run ativa*
      (ContextVar), permitindo que `log()` no corpo do node o encontre

Convenção de chamada:
    - loader (sem parents):  func(**extra_args)
    - um parent:             func(valor_do_parent, **extra_args)
    - vários parents:        func(v1, v2, ..., **extra_args), na ordem
      declarada em `parents`

Invariantes:
    - Um node é invocado no máximo uma vez por contexto
    - A mesma definição de grafo produz sempre a mesma travessia

Limites explícitos:
    - Não constrói nem valida o grafo
    - Não comita artifacts
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Any, List, Optional

from featureflow.core.exceptions import NodeExecutionError
from featureflow.core.pipeline.context import ExecutionContext
from featureflow.core.pipeline.types import Node
from featureflow.core.traceability import node_failed, node_finished, node_started

from .graph import Graph


_ACTIVE_RUN: ContextVar[Optional[ExecutionContext]] = ContextVar(
    "featureflow_active_run", default=None
)


def active_context() -> Optional[ExecutionContext]:
    """Retorna o contexto cujo node está executando neste fluxo, se houver."""
    return _ACTIVE_RUN.get()


def _gather_inputs(node: Node, ctx: ExecutionContext) -> List[Any]:
    return [ctx.get_result(parent) for parent in node.parents]


class Scheduler:
    """Executor sequencial de um `Graph` sobre um `ExecutionContext`."""

    def run(self, graph: Graph, ctx: ExecutionContext) -> Any:
        """
        Executa os nodes de `graph.order` e retorna o resultado do terminal.

        Raises:
            NodeExecutionError: Se a lógica de algum node levantar exceção.
        """
        for position, name in enumerate(graph.order):
            node = graph.node(name)

            if ctx.has_result(name):
                ctx.log(node=name, level="DEBUG", message="memoized result reused")
                continue

            self._run_node(node, position=position, graph=graph, ctx=ctx)

        return ctx.get_result(graph.terminal)

    def _run_node(self, node: Node, *, position: int, graph: Graph, ctx: ExecutionContext) -> None:
        inputs = _gather_inputs(node, ctx)

        ctx.log(
            node=node.name,
            level="DEBUG",
            message="node started",
            kind=node.kind.value,
            position=position,
        )
        if ctx.manifest is not None:
            node_started(ctx.manifest, node=node.name, kind=node.kind.value, position=position)

        token = _ACTIVE_RUN.set(ctx)
        try:
            value = node.func(*inputs, **dict(node.extra_args))
        except Exception as exc:
            error = NodeExecutionError(
                node.name,
                position=position,
                chain=graph.order[: position + 1],
                original=exc,
            )
            ctx.log(node=node.name, level="ERROR", message=error.message)
            if ctx.manifest is not None:
                node_failed(ctx.manifest, node=node.name, error=error.to_payload().to_dict())
            raise error from exc
        finally:
            _ACTIVE_RUN.reset(token)

        ctx.set_result(node.name, value)
        ctx.log(
            node=node.name,
            level="INFO",
            message="node finished",
            output_type=type(value).__name__,
        )
        if ctx.manifest is not None:
            node_finished(ctx.manifest, node=node.name, output_type=type(value).__name__)


def run_graph(graph: Graph, ctx: ExecutionContext) -> Any:
    return Scheduler().run(graph, ctx)


__all__ = ["Scheduler", "run_graph", "active_context"]
