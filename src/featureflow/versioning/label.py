"""
Labels semânticos de artifacts: `name:branch[:version]`.

Regras:
    - `name` e `branch` casam com `[A-Za-z0-9_.-]+`
    - `version`, quando presente, é um inteiro positivo
    - Label sem versão significa "última versão" no consumo

`ArtifactRef` é a forma resolvida (versão sempre presente) devolvida por
todo commit; `str(ref)` reproduz o label completo.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from featureflow.core.exceptions import InvalidLabelError


_PART_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")


def validate_part(value: object, *, field_name: str, label: object) -> str:
    if not isinstance(value, str) or not _PART_RE.match(value):
        raise InvalidLabelError(label, reason=f"{field_name} must match [A-Za-z0-9_.-]+")
    return value


@dataclass(frozen=True)
class Label:
    name: str
    branch: str
    version: Optional[int] = None

    def __str__(self) -> str:
        if self.version is None:
            return f"{self.name}:{self.branch}"
        return f"{self.name}:{self.branch}:{self.version}"

    @property
    def is_pinned(self) -> bool:
        return self.version is not None


@dataclass(frozen=True)
class ArtifactRef:
    """Referência completa e imutável a uma versão comitada."""

    name: str
    branch: str
    version: int

    def __str__(self) -> str:
        return f"{self.name}:{self.branch}:{self.version}"

    @property
    def label(self) -> Label:
        return Label(self.name, self.branch, self.version)


def parse_label(text: str, *, default_branch: Optional[str] = None) -> Label:
    """
    Converte `name:branch[:version]` em `Label`.

    Quando `default_branch` é informado, a forma curta `name` também é
    aceita e recebe esse branch.

    Raises:
        InvalidLabelError: Para qualquer label fora do formato.
    """
    if not isinstance(text, str) or not text.strip():
        raise InvalidLabelError(text, reason="label must be a non-empty string")

    parts = text.strip().split(":")
    if len(parts) == 1 and default_branch is not None:
        parts.append(default_branch)
    if len(parts) not in (2, 3):
        raise InvalidLabelError(text, reason="expected name:branch or name:branch:version")

    name = validate_part(parts[0], field_name="name", label=text)
    branch = validate_part(parts[1], field_name="branch", label=text)

    version: Optional[int] = None
    if len(parts) == 3:
        raw = parts[2]
        if not raw.isdigit() or int(raw) < 1:
            raise InvalidLabelError(text, reason="version must be a positive integer")
        version = int(raw)

    return Label(name=name, branch=branch, version=version)


def format_label(name: str, branch: str, version: Optional[int] = None) -> str:
    return str(Label(name, branch, version))


__all__ = ["Label", "ArtifactRef", "parse_label", "format_label", "validate_part"]
