"""
featureflow — Exceções canônicas (v1)

Este módulo define a taxonomia de exceções tipadas do featureflow.

Objetivo:
- Permitir que registry, graph builder, scheduler e versioner levantem
  exceções semânticas tipadas
- Facilitar o mapeamento determinístico para ErrorPayload
- Evitar ValueError/RuntimeError genéricos em pontos críticos

Regras:
- Toda exceção carrega dados estruturados em `details`
- A mensagem é curta e identifica o node, label ou versão envolvidos
- Cada exceção herda também da exceção builtin mais próxima
  (ValueError, LookupError, RuntimeError) para compatibilidade
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

from .errors import (
    ARTIFACT_NOT_FOUND,
    CYCLIC_DEPENDENCY,
    DUPLICATE_NAME,
    INVALID_KIND,
    INVALID_LABEL,
    NODE_EXECUTION_ERROR,
    UNEXPECTED_ERROR,
    UNKNOWN_NODE,
    VERSION_CONFLICT,
    ErrorPayload,
)


class FeatureflowError(Exception):
    """Base class para exceções internas do featureflow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    code: str = UNEXPECTED_ERROR

    def __init__(
        self,
        message: str,
        *,
        details: Optional[Dict[str, Any]] = None,
        hint: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = dict(details or {})
        self.hint = hint

    def __str__(self) -> str:
        return self.message

    def to_payload(self) -> ErrorPayload:
        return ErrorPayload(
            type=self.code,
            message=self.message,
            details=dict(self.details),
            hint=self.hint,
        )


# ---------------------------------------------------------------------------
# Registry / declaração
# ---------------------------------------------------------------------------

class DuplicateNameError(FeatureflowError, ValueError):
    """Já existe um node registrado com o mesmo nome."""

    code = DUPLICATE_NAME

    def __init__(self, name: str) -> None:
        super().__init__(
            f"Duplicate node name: {name}",
            details={"name": name},
            hint="Rename one of the declarations or reset the pipeline between runs",
        )
        self.name = name


class InvalidKindError(FeatureflowError, ValueError):
    """O kind informado não é um dos kinds reconhecidos."""

    code = INVALID_KIND

    def __init__(self, kind: Any, *, allowed: Iterable[str]) -> None:
        allowed_list = list(allowed)
        super().__init__(
            f"Invalid node kind: {kind!r} (allowed: {', '.join(allowed_list)})",
            details={"kind": repr(kind), "allowed": allowed_list},
        )
        self.kind = kind
        self.allowed = allowed_list


class UnknownNodeError(FeatureflowError, LookupError):
    """Nome de node não resolvível pelo registry.

    Quando a referência vem da lista de parents de outro node,
    `referenced_by` identifica o node que declarou a dependência.
    """

    code = UNKNOWN_NODE

    def __init__(self, name: str, *, referenced_by: Optional[str] = None) -> None:
        if referenced_by is None:
            message = f"Unknown node: {name}"
        else:
            message = f"Node '{referenced_by}' depends on unknown node '{name}'"
        super().__init__(
            message,
            details={"name": name, "referenced_by": referenced_by},
            hint="Declare the missing node before materializing the pipeline",
        )
        self.name = name
        self.referenced_by = referenced_by


# ---------------------------------------------------------------------------
# Grafo
# ---------------------------------------------------------------------------

class CyclicDependencyError(FeatureflowError, ValueError):
    """O grafo de dependências contém um ciclo.

    `cycle` contém o caminho fechado, repetindo o node inicial no final
    (ex.: ["a", "b", "a"]).
    """

    code = CYCLIC_DEPENDENCY

    def __init__(self, cycle: Sequence[str]) -> None:
        path = list(cycle)
        super().__init__(
            f"Cycle detected in node dependency graph: {' -> '.join(path)}",
            details={"cycle": path},
        )
        self.cycle = path


# ---------------------------------------------------------------------------
# Execução
# ---------------------------------------------------------------------------

class NodeExecutionError(FeatureflowError, RuntimeError):
    """Falha levantada pela lógica opaca de um node (encapsulada).

    A exceção original fica disponível em `__cause__` e em `original`.
    `position` é o índice do node na ordem de execução e `chain` é a
    sequência de nodes da ordem até o node que falhou (inclusive).
    """

    code = NODE_EXECUTION_ERROR

    def __init__(
        self,
        node: str,
        *,
        position: int,
        chain: Sequence[str],
        original: BaseException,
    ) -> None:
        path = list(chain)
        super().__init__(
            f"Node '{node}' failed at position {position}: "
            f"{original.__class__.__name__}: {original}",
            details={
                "node": node,
                "position": position,
                "chain": path,
                "exception_class": original.__class__.__name__,
                "exception_message": str(original),
            },
            hint="Fix the node body and rerun the whole pipeline",
        )
        self.node = node
        self.position = position
        self.chain = path
        self.original = original


# ---------------------------------------------------------------------------
# Versionamento
# ---------------------------------------------------------------------------

class InvalidLabelError(FeatureflowError, ValueError):
    """Label fora do formato `name:branch[:version]`."""

    code = INVALID_LABEL

    def __init__(self, label: Any, *, reason: str) -> None:
        super().__init__(
            f"Invalid artifact label {label!r}: {reason}",
            details={"label": repr(label), "reason": reason},
            hint="Use the form name:branch or name:branch:version",
        )
        self.label = label
        self.reason = reason


class VersionConflictError(FeatureflowError, RuntimeError):
    """A persistência rejeitou a versão atribuída (commit concorrente).

    A falha é fatal para o commit: o chamador deve reexecutar a run inteira.
    """

    code = VERSION_CONFLICT

    def __init__(
        self,
        name: str,
        branch: str,
        version: int,
        *,
        detail: Optional[str] = None,
    ) -> None:
        super().__init__(
            f"Version conflict for {name}:{branch}:{version}"
            + (f" ({detail})" if detail else ""),
            details={
                "name": name,
                "branch": branch,
                "version": version,
                "detail": detail,
            },
            hint="Rerun the entire pipeline; the commit is never retried with another version",
        )
        self.name = name
        self.branch = branch
        self.version = version


class ArtifactNotFoundError(FeatureflowError, LookupError):
    """Artifact desconhecido, ainda não comitado ou já finalizado."""

    code = ARTIFACT_NOT_FOUND

    def __init__(self, label: str, *, reason: str = "not found") -> None:
        super().__init__(
            f"Artifact {label}: {reason}",
            details={"label": label, "reason": reason},
        )
        self.label = label
        self.reason = reason


__all__ = [
    "FeatureflowError",
    "DuplicateNameError",
    "InvalidKindError",
    "UnknownNodeError",
    "CyclicDependencyError",
    "NodeExecutionError",
    "InvalidLabelError",
    "VersionConflictError",
    "ArtifactNotFoundError",
]
