"""Criação do storage configurado em `artifacts.store`."""

from __future__ import annotations

from featureflow.core.config import EngineSettings, InvalidSettingError

from .base import ArtifactStorage
from .local import LocalStorage
from .memory import InMemoryStorage


def build_storage(settings: EngineSettings) -> ArtifactStorage:
    if settings.store == "memory":
        return InMemoryStorage()
    if settings.store == "local":
        return LocalStorage(settings.root_dir)
    raise InvalidSettingError(f"artifacts.store desconhecido: {settings.store!r}")


__all__ = ["build_storage"]
