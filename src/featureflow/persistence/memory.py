"""Storage em memória (processo local), usado como default e em testes."""

from __future__ import annotations

from threading import Lock
from typing import TYPE_CHECKING, Dict, List, Tuple

from featureflow.core.exceptions import ArtifactNotFoundError

from .base import CommitResult

if TYPE_CHECKING:  # pragma: no cover
    from featureflow.versioning.artifact import Artifact
    from featureflow.versioning.label import ArtifactRef


class InMemoryStorage:
    """
    Backend dict-based e thread-safe.

    Um commit é aceito quando sua versão é maior que `latest`; versões
    existentes ou inferiores são reportadas como conflito. Lacunas são
    esperadas: versões comitadas com `persist=False` não chegam ao storage.
    """

    def __init__(self) -> None:
        self._data: Dict[Tuple[str, str], Dict[int, "Artifact"]] = {}
        self._lock = Lock()

    def get_latest_version(self, name: str, branch: str) -> int:
        with self._lock:
            versions = self._data.get((name, branch), {})
            return max(versions) if versions else 0

    def versions(self, name: str, branch: str) -> List[int]:
        with self._lock:
            return sorted(self._data.get((name, branch), {}))

    def commit(self, artifact: "Artifact") -> CommitResult:
        ref = artifact.ref
        with self._lock:
            versions = self._data.setdefault((ref.name, ref.branch), {})
            latest = max(versions) if versions else 0
            if ref.version in versions:
                return CommitResult.conflict(f"version {ref.version} already exists")
            if ref.version <= latest:
                return CommitResult.conflict(
                    f"version {ref.version} is not above latest {latest}"
                )
            versions[ref.version] = artifact
            return CommitResult.success()

    def load(self, ref: "ArtifactRef") -> "Artifact":
        with self._lock:
            try:
                return self._data[(ref.name, ref.branch)][ref.version]
            except KeyError:
                raise ArtifactNotFoundError(str(ref), reason="not found in storage") from None

    def update_metadata(self, artifact: "Artifact") -> None:
        ref = artifact.ref
        with self._lock:
            versions = self._data.get((ref.name, ref.branch), {})
            if ref.version not in versions:
                raise ArtifactNotFoundError(str(ref), reason="not found in storage")
            versions[ref.version] = artifact


__all__ = ["InMemoryStorage"]
