"""
Artifact imutável produzido pelo commit de um node terminal.

Um `Artifact` associa um payload (dataset ou modelo) ao seu label completo,
às métricas e hiperparâmetros registrados e a metadados leves de
rastreabilidade:

    - fingerprint: hash joblib do payload
    - payload_info: tipo do payload; linhas/colunas para DataFrames pandas,
      shape/dtype para arrays numpy

Decisões arquiteturais:
    - Artifact é frozen: anexar métricas produz uma NOVA instância via
      `dataclasses.replace`
    - Métricas e params são expostos como views somente leitura
      (`MappingProxyType` com séries em tuplas)
    - Métricas são séries numéricas por chave (uma entrada por época);
      registrar a mesma chave novamente estende a série
    - Params sobrescrevem por chave
    - Escalares/arrays numpy são normalizados para tipos Python, garantindo
      serialização JSON dos metadados

Limites explícitos:
    - Não persiste nada (responsabilidade do storage)
    - Não atribui versões (responsabilidade do versioner)
"""

from __future__ import annotations

import pickle
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from numbers import Number
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import joblib
import numpy as np
import pandas as pd

from .label import ArtifactRef


ARTIFACT_KINDS = ("dataset", "model")

_PARAM_TYPES = (str, int, float, bool, type(None))


# ---------------------------------------------------------------------------
# Normalização de métricas/params
# ---------------------------------------------------------------------------

def _as_number(key: str, value: Any) -> float:
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, bool) or not isinstance(value, Number):
        raise TypeError(f"Metric '{key}' must be numeric, got: {type(value).__name__}")
    return float(value)


def normalize_metrics(metrics: Optional[Mapping[str, Any]]) -> Dict[str, List[float]]:
    """
    Converte métricas em séries `key -> [float, ...]`.

    Aceita número, escalar numpy, sequência de números ou array numpy 1-D.

    Raises:
        TypeError: Se algum valor não for numérico.
    """
    out: Dict[str, List[float]] = {}
    for key, value in dict(metrics or {}).items():
        if not isinstance(key, str) or not key:
            raise TypeError(f"Metric keys must be non-empty strings, got: {key!r}")
        if isinstance(value, np.ndarray):
            value = value.ravel().tolist()
        if isinstance(value, (list, tuple, pd.Series)):
            out[key] = [_as_number(key, v) for v in list(value)]
        else:
            out[key] = [_as_number(key, value)]
    return out


def normalize_params(params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Valida hiperparâmetros: apenas escalares (str, int, float, bool, None).

    Raises:
        TypeError: Se algum valor não for escalar.
    """
    out: Dict[str, Any] = {}
    for key, value in dict(params or {}).items():
        if not isinstance(key, str) or not key:
            raise TypeError(f"Param keys must be non-empty strings, got: {key!r}")
        if isinstance(value, np.generic):
            value = value.item()
        if not isinstance(value, _PARAM_TYPES):
            raise TypeError(
                f"Param '{key}' must be a scalar or string, got: {type(value).__name__}"
            )
        out[key] = value
    return out


# ---------------------------------------------------------------------------
# Metadados do payload
# ---------------------------------------------------------------------------

def fingerprint_payload(payload: Any) -> str:
    """Hash joblib do payload; payloads não serializáveis recebem marcador de tipo."""
    try:
        return joblib.hash(payload)
    except (pickle.PicklingError, TypeError, AttributeError):
        return f"unhashable:{type(payload).__name__}"


def describe_payload(payload: Any) -> Dict[str, Any]:
    info: Dict[str, Any] = {"type": f"{type(payload).__module__}.{type(payload).__qualname__}"}
    if isinstance(payload, pd.DataFrame):
        info["rows"] = int(payload.shape[0])
        info["columns"] = [str(c) for c in payload.columns]
    elif isinstance(payload, pd.Series):
        info["rows"] = int(payload.shape[0])
        info["name"] = None if payload.name is None else str(payload.name)
    elif isinstance(payload, np.ndarray):
        info["shape"] = [int(d) for d in payload.shape]
        info["dtype"] = str(payload.dtype)
    elif isinstance(payload, (list, tuple, dict)):
        info["length"] = len(payload)
    return info


# ---------------------------------------------------------------------------
# Artifact
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Artifact:
    ref: ArtifactRef
    kind: str
    payload: Any = field(repr=False, compare=False)
    metrics: Mapping[str, Tuple[float, ...]] = field(default_factory=dict)
    params: Mapping[str, Any] = field(default_factory=dict)
    created_at: str = ""
    run_id: Optional[str] = None
    fingerprint: str = ""
    payload_info: Dict[str, Any] = field(default_factory=dict)
    persisted: bool = False

    def __post_init__(self) -> None:
        # frozen: séries viram tuplas e os mapas, views somente leitura
        object.__setattr__(
            self, "metrics", MappingProxyType({k: tuple(v) for k, v in dict(self.metrics).items()})
        )
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @property
    def label(self) -> str:
        return str(self.ref)

    def with_attachments(
        self,
        metrics: Optional[Mapping[str, Sequence[float]]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> "Artifact":
        """Retorna uma nova instância com métricas estendidas e params sobrescritos."""
        merged_metrics = {k: list(v) for k, v in self.metrics.items()}
        for key, series in dict(metrics or {}).items():
            merged_metrics.setdefault(key, []).extend(series)
        merged_params = dict(self.params)
        merged_params.update(dict(params or {}))
        return replace(self, metrics=merged_metrics, params=merged_params)

    def to_metadata(self) -> Dict[str, Any]:
        """Metadados JSON-serializáveis (sem payload)."""
        return {
            "label": str(self.ref),
            "name": self.ref.name,
            "branch": self.ref.branch,
            "version": self.ref.version,
            "kind": self.kind,
            "metrics": {k: list(v) for k, v in self.metrics.items()},
            "params": dict(self.params),
            "created_at": self.created_at,
            "run_id": self.run_id,
            "fingerprint": self.fingerprint,
            "payload_info": dict(self.payload_info),
        }

    @classmethod
    def from_metadata(cls, meta: Mapping[str, Any], payload: Any, *, persisted: bool = True) -> "Artifact":
        return cls(
            ref=ArtifactRef(str(meta["name"]), str(meta["branch"]), int(meta["version"])),
            kind=str(meta["kind"]),
            payload=payload,
            metrics={k: [float(x) for x in v] for k, v in (meta.get("metrics") or {}).items()},
            params=dict(meta.get("params") or {}),
            created_at=str(meta.get("created_at") or ""),
            run_id=meta.get("run_id"),
            fingerprint=str(meta.get("fingerprint") or ""),
            payload_info=dict(meta.get("payload_info") or {}),
            persisted=persisted,
        )


def build_artifact(
    ref: ArtifactRef,
    *,
    kind: str,
    payload: Any,
    metrics: Optional[Mapping[str, Sequence[float]]] = None,
    params: Optional[Mapping[str, Any]] = None,
    run_id: Optional[str] = None,
    persisted: bool = False,
) -> Artifact:
    return Artifact(
        ref=ref,
        kind=kind,
        payload=payload,
        metrics=dict(metrics or {}),
        params=dict(params or {}),
        created_at=datetime.now(timezone.utc).isoformat(),
        run_id=run_id,
        fingerprint=fingerprint_payload(payload),
        payload_info=describe_payload(payload),
        persisted=persisted,
    )


__all__ = [
    "ARTIFACT_KINDS",
    "Artifact",
    "build_artifact",
    "describe_payload",
    "fingerprint_payload",
    "normalize_metrics",
    "normalize_params",
]
