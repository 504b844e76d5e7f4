"""
Construção do grafo de dependências (DAG) de um node terminal.

Este módulo resolve, a partir do `NodeRegistry`, o sub-grafo mínimo de
ancestrais necessário para produzir um node terminal, valida sua estrutura
e calcula uma ordem de execução topológica determinística.

O builder opera exclusivamente em nível estrutural, analisando:
    - nomes de nodes e parents declarados
    - parents inexistentes
    - formação de ciclos

Princípios fundamentais:
    - O sub-grafo deve formar um DAG válido
    - A ordenação é determinística para a mesma entrada
    - Toda validação estrutural ocorre antes de qualquer execução

Decisões arquiteturais:
    - Ciclos são detectados por busca em profundidade com conjunto
      "em progresso", preservando o caminho para a mensagem de erro
    - A ordem é produzida pelo algoritmo de Kahn; entre nodes prontos,
      o menor índice de registro executa primeiro
    - Nodes fora da ancestralidade do terminal não entram no grafo

Invariantes:
    - Nenhum node aparece antes de seus parents
    - Cada node do sub-grafo aparece exatamente uma vez na ordem
    - Um node tem grau de entrada zero apenas se não declara parents

Limites explícitos:
    - Não executa nodes
    - Não interage com ExecutionContext
    - Não registra eventos de rastreabilidade
"""

from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Set, Tuple

from featureflow.core.exceptions import CyclicDependencyError, UnknownNodeError
from featureflow.core.pipeline.registry import NodeRegistry
from featureflow.core.pipeline.types import Node


@dataclass(frozen=True)
class Graph:
    """
    Sub-grafo mínimo e validado de um node terminal.

    Campos:
        - terminal: nome do node solicitado
        - nodes: nome -> Node de todos os ancestrais (e do terminal)
        - order: nomes em ordem topológica determinística
    """

    terminal: str
    nodes: Mapping[str, Node]
    order: Tuple[str, ...]
    _children: Mapping[str, Tuple[str, ...]] = field(
        default_factory=dict, repr=False, compare=False
    )

    def parents_of(self, name: str) -> Tuple[str, ...]:
        return self.nodes[name].parents

    def children_of(self, name: str) -> Tuple[str, ...]:
        if name not in self.nodes:
            raise KeyError(name)
        return tuple(self._children.get(name, ()))

    def node(self, name: str) -> Node:
        return self.nodes[name]

    def __contains__(self, name: object) -> bool:
        return name in self.nodes

    def __len__(self) -> int:
        return len(self.order)


def _collect(registry: NodeRegistry, terminal: str) -> Dict[str, Node]:
    """
    Resolve o terminal e seus ancestrais, detectando ciclos e parents ausentes.

    A busca em profundidade é iterativa; `path` mantém a pilha de nodes em
    progresso na ordem em que foram visitados.
    """
    root = registry.resolve(terminal)

    collected: Dict[str, Node] = {}
    done: Set[str] = set()
    in_progress: Set[str] = set()
    path: List[str] = []

    # pilha de (node, índice do próximo parent a visitar)
    stack: List[Tuple[Node, int]] = [(root, 0)]
    in_progress.add(root.name)
    path.append(root.name)
    collected[root.name] = root

    while stack:
        node, cursor = stack[-1]
        if cursor >= len(node.parents):
            stack.pop()
            path.pop()
            in_progress.discard(node.name)
            done.add(node.name)
            continue

        stack[-1] = (node, cursor + 1)
        parent_name = node.parents[cursor]

        if parent_name in done:
            continue
        if parent_name in in_progress:
            start = path.index(parent_name)
            raise CyclicDependencyError(path[start:] + [parent_name])

        if parent_name not in registry:
            raise UnknownNodeError(parent_name, referenced_by=node.name)
        parent = registry.resolve(parent_name)

        collected[parent.name] = parent
        in_progress.add(parent.name)
        path.append(parent.name)
        stack.append((parent, 0))

    return collected


def _toposort(nodes: Mapping[str, Node]) -> Tuple[Tuple[str, ...], Dict[str, Tuple[str, ...]]]:
    incoming: Dict[str, int] = {name: len(n.parents) for name, n in nodes.items()}
    children: Dict[str, List[str]] = {name: [] for name in nodes}
    for name, n in nodes.items():
        for parent in n.parents:
            children[parent].append(name)

    ready: List[Tuple[int, str]] = [
        (nodes[name].index, name) for name, count in incoming.items() if count == 0
    ]
    heapq.heapify(ready)

    order: List[str] = []
    while ready:
        _, name = heapq.heappop(ready)
        order.append(name)
        for child in children[name]:
            incoming[child] -= 1
            if incoming[child] == 0:
                heapq.heappush(ready, (nodes[child].index, child))

    if len(order) != len(nodes):
        # inalcançável após _collect; mantido como guarda estrutural
        remaining = sorted(n for n, c in incoming.items() if c > 0)
        raise CyclicDependencyError(remaining + remaining[:1])

    ordered_children = {
        name: tuple(sorted(kids, key=lambda k: nodes[k].index))
        for name, kids in children.items()
    }
    return tuple(order), ordered_children


def build_graph(registry: NodeRegistry, terminal: str) -> Graph:
    """
    Constrói e valida o DAG mínimo necessário para produzir `terminal`.

    Raises:
        UnknownNodeError: Se o terminal não existir, ou se algum ancestral
            declarar um parent não registrado (`referenced_by` identifica
            o node declarante).
        CyclicDependencyError: Se houver ciclo entre os ancestrais; `cycle`
            contém o caminho fechado (ex.: ["a", "b", "a"]).
    """
    nodes = _collect(registry, terminal)
    order, children = _toposort(nodes)
    return Graph(
        terminal=terminal,
        nodes=MappingProxyType(dict(nodes)),
        order=order,
        _children=MappingProxyType(children),
    )


__all__ = ["Graph", "build_graph"]
