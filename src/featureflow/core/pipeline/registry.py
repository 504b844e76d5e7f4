"""
Registro estrutural de nodes do pipeline.

Este módulo define o `NodeRegistry`, responsável por registrar nodes
declarados e validar sua integridade estrutural antes de qualquer
construção de grafo ou execução.

O registry atua como uma camada de proteção antecipada, garantindo que:
    - cada node possua um nome válido e único
    - o kind pertença aos quatro kinds reconhecidos
    - a ordem de declaração seja preservada explicitamente

Decisões arquiteturais:
    - A validação ocorre no momento da declaração (decorator)
    - Parents NÃO são resolvidos aqui: um node pode referenciar um parent
      declarado depois dele; a resolução ocorre no graph builder
    - A ordem de registro apenas desempata a ordem de execução
    - Acesso protegido por lock re-entrante, permitindo que runs
      concorrentes compartilhem o mesmo registry

Invariantes:
    - Cada nome registrado é único
    - `list()` reflete exatamente a ordem de registro
    - Nenhum node inválido é aceito

Limites explícitos:
    - Não constrói o grafo
    - Não executa nodes
    - Não interage com o versioner
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from featureflow.core.exceptions import (
    DuplicateNameError,
    InvalidKindError,
    UnknownNodeError,
)

from .types import Node, NodeKind, SinkOptions


def _coerce_kind(kind: Union[NodeKind, str]) -> NodeKind:
    if isinstance(kind, NodeKind):
        return kind
    if isinstance(kind, str):
        try:
            return NodeKind(kind.strip().lower())
        except ValueError:
            pass
    raise InvalidKindError(kind, allowed=[k.value for k in NodeKind])


def _normalize_parents(name: str, parents: Optional[Iterable[str]]) -> tuple:
    if parents is None:
        return ()
    if isinstance(parents, str):
        parents = [parents]
    normalized = tuple(parents)
    for parent in normalized:
        if not isinstance(parent, str) or not parent.strip():
            raise ValueError(f"Node '{name}': parent names must be non-empty strings")
    if len(set(normalized)) != len(normalized):
        raise ValueError(f"Node '{name}': duplicated parent in {list(normalized)}")
    return normalized


class NodeRegistry:
    """
    Registro canônico de nodes declarados.

    Exemplo:
        registry = NodeRegistry()
        registry.register("raw", NodeKind.LOADER, (), load_images, {})
        registry.register("small", "transformer", ["raw"], resize, {"size": 64})
        registry.resolve("small").parents  # ("raw",)
    """

    def __init__(self) -> None:
        self._nodes: Dict[str, Node] = {}
        self._order: List[str] = []
        self._lock = RLock()

    def register(
        self,
        name: str,
        kind: Union[NodeKind, str],
        parents: Optional[Iterable[str]],
        func: Callable[..., Any],
        extra_args: Optional[Mapping[str, Any]] = None,
        sink: Optional[SinkOptions] = None,
    ) -> Node:
        """
        Registra um node e retorna o registro imutável criado.

        Raises:
            DuplicateNameError: Se `name` já estiver registrado.
            InvalidKindError: Se `kind` não for um kind reconhecido.
            ValueError: Se o nome for vazio, se um loader declarar parents,
                se um parent estiver duplicado ou se um sink não tiver
                SinkOptions.
            TypeError: Se `func` não for callable.
        """
        if not isinstance(name, str) or not name.strip():
            raise ValueError("node name must be a non-empty string")

        node_kind = _coerce_kind(kind)
        node_parents = _normalize_parents(name, parents)

        if not callable(func):
            raise TypeError(f"Node '{name}': func must be callable, got {type(func).__name__}")
        if node_kind is NodeKind.LOADER and node_parents:
            raise ValueError(f"Node '{name}': a loader cannot declare parents")
        if node_kind.is_sink and sink is None:
            raise ValueError(f"Node '{name}': {node_kind.value} nodes require sink options")
        if not node_kind.is_sink and sink is not None:
            raise ValueError(f"Node '{name}': only dataset/model nodes accept sink options")

        with self._lock:
            if name in self._nodes:
                raise DuplicateNameError(name)

            node = Node(
                name=name,
                kind=node_kind,
                parents=node_parents,
                func=func,
                extra_args=dict(extra_args or {}),
                sink=sink,
                index=len(self._order),
            )
            self._nodes[name] = node
            self._order.append(name)
            return node

    def resolve(self, name: str) -> Node:
        with self._lock:
            if name not in self._nodes:
                raise UnknownNodeError(name)
            return self._nodes[name]

    def list(self) -> List[Node]:
        with self._lock:
            return [self._nodes[n] for n in self._order]

    def names(self) -> List[str]:
        with self._lock:
            return list(self._order)

    def reset(self) -> None:
        """Remove todos os nodes (uso típico: isolamento entre testes)."""
        with self._lock:
            self._nodes.clear()
            self._order.clear()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._nodes

    def __len__(self) -> int:
        with self._lock:
            return len(self._order)


__all__ = ["NodeRegistry"]
