"""
Settings tipados do featureflow.

Este módulo converte a configuração efetiva (dict) em um objeto imutável
`EngineSettings`, validando cada chave conhecida. Chaves desconhecidas são
preservadas em `EngineSettings.raw` mas não alteram comportamento.

Schema (v1):

    engine:
      log_level: INFO          # DEBUG | INFO | WARNING | ERROR
      keep_results: true       # mantém ctx.results após o commit
    artifacts:
      default_branch: dev      # branch usado quando o label omite o branch
      persist: true            # persist padrão de datasets sem flag explícito
      finalize_datasets: true  # datasets são finalizados no commit
      store: memory            # memory | local
      root_dir: .featureflow/artifacts
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import InvalidSettingError
from .merge import deep_merge


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
STORE_KINDS = ("memory", "local")

_BRANCH_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")

DEFAULT_CONFIG: Dict[str, Any] = {
    "engine": {
        "log_level": "INFO",
        "keep_results": True,
    },
    "artifacts": {
        "default_branch": "dev",
        "persist": True,
        "finalize_datasets": True,
        "store": "memory",
        "root_dir": ".featureflow/artifacts",
    },
}


@dataclass(frozen=True)
class EngineSettings:
    """Settings resolvidos e validados de uma instância de pipeline."""

    log_level: str = "INFO"
    keep_results: bool = True
    default_branch: str = "dev"
    persist: bool = True
    finalize_datasets: bool = True
    store: str = "memory"
    root_dir: Path = Path(".featureflow/artifacts")
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = config.get(name) or {}
    if not isinstance(value, dict):
        raise InvalidSettingError(f"'{name}' deve ser um mapeamento, recebido: {type(value).__name__}")
    return value


def _bool(section: Dict[str, Any], section_name: str, key: str) -> bool:
    value = section.get(key)
    if not isinstance(value, bool):
        raise InvalidSettingError(
            f"'{section_name}.{key}' deve ser booleano, recebido: {value!r}"
        )
    return value


def _choice(section: Dict[str, Any], section_name: str, key: str, choices: tuple) -> str:
    value = section.get(key)
    normalized = value.strip() if isinstance(value, str) else value
    if section_name == "engine" and isinstance(normalized, str):
        normalized = normalized.upper()
    if normalized not in choices:
        raise InvalidSettingError(
            f"'{section_name}.{key}' deve ser um de {', '.join(choices)}, recebido: {value!r}"
        )
    return normalized


def resolve_settings(config: Optional[Dict[str, Any]] = None) -> EngineSettings:
    """
    Valida a configuração e produz `EngineSettings`.

    A configuração recebida é mesclada sobre `DEFAULT_CONFIG`, de modo que
    um dict parcial (ou None) é sempre aceito.

    Raises:
        ConfigTypeConflictError: Se o tipo de uma chave conflitar com o default.
        InvalidSettingError: Se algum valor estiver fora do domínio aceito.
    """
    effective = deep_merge(DEFAULT_CONFIG, dict(config or {}))

    engine = _section(effective, "engine")
    artifacts = _section(effective, "artifacts")

    branch = artifacts.get("default_branch")
    if not isinstance(branch, str) or not _BRANCH_RE.match(branch):
        raise InvalidSettingError(
            f"'artifacts.default_branch' deve casar com [A-Za-z0-9_.-]+, recebido: {branch!r}"
        )

    root_dir = artifacts.get("root_dir")
    if not isinstance(root_dir, (str, Path)) or not str(root_dir).strip():
        raise InvalidSettingError(
            f"'artifacts.root_dir' deve ser um caminho não vazio, recebido: {root_dir!r}"
        )

    return EngineSettings(
        log_level=_choice(engine, "engine", "log_level", LOG_LEVELS),
        keep_results=_bool(engine, "engine", "keep_results"),
        default_branch=branch,
        persist=_bool(artifacts, "artifacts", "persist"),
        finalize_datasets=_bool(artifacts, "artifacts", "finalize_datasets"),
        store=_choice(artifacts, "artifacts", "store", STORE_KINDS),
        root_dir=Path(root_dir).expanduser(),
        raw=effective,
    )


__all__ = [
    "DEFAULT_CONFIG",
    "EngineSettings",
    "LOG_LEVELS",
    "STORE_KINDS",
    "resolve_settings",
]
