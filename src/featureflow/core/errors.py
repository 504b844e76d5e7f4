"""
featureflow — Estruturas canônicas de erro (v1)

Este módulo define o payload serializável de erro do featureflow e o
catálogo de códigos estáveis associados a cada falha conhecida do core.

Erros são tratados como artefatos de domínio:

- explícitos
- serializáveis
- rastreáveis (nome do node, label, versão)
- acionáveis (hint)

O payload é o formato usado pelo Manifest de execução e por qualquer
adapter externo que precise registrar a falha sem expor stack trace.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ErrorPayload:
    """
    Payload canônico de erro do featureflow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta e objetiva
    - details: dados estruturados para diagnóstico (node, label, versão...)
    - hint: ação sugerida ao operador
    """

    type: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Registry / declaração
DUPLICATE_NAME = "DUPLICATE_NAME"
INVALID_KIND = "INVALID_KIND"
UNKNOWN_NODE = "UNKNOWN_NODE"

# Grafo
CYCLIC_DEPENDENCY = "CYCLIC_DEPENDENCY"

# Execução
NODE_EXECUTION_ERROR = "NODE_EXECUTION_ERROR"

# Versionamento
INVALID_LABEL = "INVALID_LABEL"
VERSION_CONFLICT = "VERSION_CONFLICT"
ARTIFACT_NOT_FOUND = "ARTIFACT_NOT_FOUND"

# Fallback para exceções fora da taxonomia
UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


def error_from_exception(exc: BaseException) -> ErrorPayload:
    """Converte qualquer exceção em ErrorPayload.

    Regras:
    - FeatureflowError: usa o payload próprio da exceção.
    - Outras exceções: encapsula como UNEXPECTED_ERROR, apenas com a classe
      e a mensagem (sem stack trace).
    """
    to_payload = getattr(exc, "to_payload", None)
    if callable(to_payload):
        return to_payload()

    return ErrorPayload(
        type=UNEXPECTED_ERROR,
        message=str(exc) or "Unexpected error",
        details={"exception_class": exc.__class__.__name__},
        hint="Inspect the run events and the failing node body",
    )


__all__ = [
    "ErrorPayload",
    "DUPLICATE_NAME",
    "INVALID_KIND",
    "UNKNOWN_NODE",
    "CYCLIC_DEPENDENCY",
    "NODE_EXECUTION_ERROR",
    "INVALID_LABEL",
    "VERSION_CONFLICT",
    "ARTIFACT_NOT_FOUND",
    "UNEXPECTED_ERROR",
    "error_from_exception",
]
