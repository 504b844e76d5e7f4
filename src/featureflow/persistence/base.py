"""
Contrato de storage de artifacts versionados.

O versioner conversa com o storage exclusivamente por este contrato:

    - get_latest_version(name, branch) -> int   (0 quando não há versões)
    - commit(artifact) -> CommitResult          (ok | conflict)
    - load(ref) -> Artifact
    - update_metadata(artifact) -> None

Decisões arquiteturais:
    - O storage é a fonte da verdade para conflitos entre processos
    - Um conflito é devolvido como resultado, não como exceção; o versioner
      o converte em `VersionConflictError`
    - Commits nunca sobrescrevem uma versão existente
    - Uma versão menor ou igual à última do storage é conflito; lacunas não
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:  # pragma: no cover
    from featureflow.versioning.artifact import Artifact
    from featureflow.versioning.label import ArtifactRef


COMMIT_OK = "ok"
COMMIT_CONFLICT = "conflict"


@dataclass(frozen=True)
class CommitResult:
    status: str
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == COMMIT_OK

    @classmethod
    def success(cls) -> "CommitResult":
        return cls(status=COMMIT_OK)

    @classmethod
    def conflict(cls, detail: str) -> "CommitResult":
        return cls(status=COMMIT_CONFLICT, detail=detail)


@runtime_checkable
class ArtifactStorage(Protocol):
    """Protocolo mínimo de um backend de artifacts."""

    def get_latest_version(self, name: str, branch: str) -> int:
        ...

    def commit(self, artifact: "Artifact") -> CommitResult:
        ...

    def load(self, ref: "ArtifactRef") -> "Artifact":
        ...

    def update_metadata(self, artifact: "Artifact") -> None:
        ...


__all__ = ["ArtifactStorage", "CommitResult", "COMMIT_OK", "COMMIT_CONFLICT"]
