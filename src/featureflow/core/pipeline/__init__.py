"""
Camada de declaração de pipeline do featureflow.

Expõe os tipos canônicos de node, o registry estrutural e o contexto de
execução de uma run.
"""

from .context import ExecutionContext
from .registry import NodeRegistry
from .types import Node, NodeFunction, NodeKind, SinkOptions

__all__ = [
    "ExecutionContext",
    "NodeRegistry",
    "Node",
    "NodeFunction",
    "NodeKind",
    "SinkOptions",
]
