"""
Tipos canônicos de declaração de pipeline do featureflow.

Este módulo define as estruturas que representam um node declarado:

    - NodeKind    → enum dos quatro kinds reconhecidos
    - SinkOptions → opções de materialização de nodes terminais
    - Node        → registro imutável de um node declarado
    - NodeFunction → protocolo da lógica opaca de um node

Um decorator de declaração (ex.: `@dataset(...)`) não é uma anotação de
linguagem: cada função decorada vira um `Node`, isto é, um registro de
dados (nome, kind, parents, callable) guardado no `NodeRegistry`.

Invariantes:
    - `Node` é imutável (frozen) e `extra_args` é somente leitura
    - `parents` preserva a ordem de declaração
    - Apenas nodes `dataset` e `model` possuem `SinkOptions`

Limites explícitos:
    - Não resolve parents (responsabilidade do graph builder)
    - Não executa nodes
    - Não inspeciona o corpo do callable
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Protocol, Tuple


class NodeKind(str, Enum):
    """
    Kinds reconhecidos de node.

    Os valores são strings para facilitar serialização no Manifest e em
    eventos estruturados.

    Tipos definidos:
        - LOADER: sem parents; produz dados de entrada
        - TRANSFORMER: zero, um ou vários parents; transforma dados
        - DATASET: node terminal que materializa um dataset versionado
        - MODEL: node terminal que materializa um modelo versionado
    """

    LOADER = "loader"
    TRANSFORMER = "transformer"
    DATASET = "dataset"
    MODEL = "model"

    @property
    def is_sink(self) -> bool:
        return self in (NodeKind.DATASET, NodeKind.MODEL)


class NodeFunction(Protocol):
    """Lógica opaca de um node.

    Recebe os valores dos parents posicionalmente, na ordem declarada,
    seguidos dos `extra_args` como keywords, e retorna um único valor.
    """

    def __call__(self, *upstream: Any, **extra_args: Any) -> Any:
        ...


@dataclass(frozen=True)
class SinkOptions:
    """
    Opções de materialização de um node terminal.

    - artifact_name: nome do artifact no label `name:branch[:version]`
    - branch: branch do label; None usa `artifacts.default_branch`
    - persist: persistir no storage (True), apenas em memória (False)
      ou None para usar `artifacts.persist`
    """

    artifact_name: str
    branch: Optional[str] = None
    persist: Optional[bool] = None


@dataclass(frozen=True)
class Node:
    """
    Registro imutável de um node declarado.

    Campos:
        - name: identificador único no registry
        - kind: NodeKind
        - parents: nomes dos parents, na ordem de declaração
        - func: callable opaco (o engine nunca inspeciona seu corpo)
        - extra_args: keywords estáticos repassados em toda invocação
        - sink: SinkOptions para nodes terminais, None nos demais
        - index: posição de registro (desempate determinístico da ordem)
    """

    name: str
    kind: NodeKind
    parents: Tuple[str, ...]
    func: Callable[..., Any] = field(compare=False)
    extra_args: Mapping[str, Any] = field(default_factory=dict, compare=False)
    sink: Optional[SinkOptions] = None
    index: int = 0

    def __post_init__(self) -> None:
        # frozen: a normalização passa por object.__setattr__
        object.__setattr__(self, "parents", tuple(self.parents))
        object.__setattr__(self, "extra_args", MappingProxyType(dict(self.extra_args)))

    @property
    def is_sink(self) -> bool:
        return self.kind.is_sink


__all__ = [
    "NodeKind",
    "NodeFunction",
    "SinkOptions",
    "Node",
]
