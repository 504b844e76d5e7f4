"""
Backends de persistência de artifacts do featureflow.

    - ArtifactStorage → contrato consumido pelo versioner
    - InMemoryStorage → backend de processo (default)
    - LocalStorage    → backend em disco (joblib + JSON)
    - build_storage   → backend a partir de `EngineSettings`
"""

from .base import COMMIT_CONFLICT, COMMIT_OK, ArtifactStorage, CommitResult
from .memory import InMemoryStorage
from .local import LocalStorage
from .factory import build_storage

__all__ = [
    "ArtifactStorage",
    "CommitResult",
    "COMMIT_OK",
    "COMMIT_CONFLICT",
    "InMemoryStorage",
    "LocalStorage",
    "build_storage",
]
