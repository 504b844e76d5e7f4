"""
RunManifest v1 — rastreabilidade forense de uma run do featureflow.

O Manifest consolida, de forma determinística e auditável:
    - metadados da run (run_id, terminal, started_at, versão do featureflow)
    - hash da configuração efetiva
    - estado incremental de cada node executado
    - o artifact comitado (label completo), quando houver
    - Event Log ordenado de eventos explícitos

Princípios fundamentais:
    - Nenhum evento é emitido implicitamente
    - Toda mutação ocorre por chamadas explícitas da API
    - A ordem do Event Log reflete a ordem real de execução
    - O Manifest é serializável e reconstruível (round-trip JSON)

Decisões arquiteturais:
    - UTC é o timezone canônico para todos os timestamps
    - Nodes memoizados não geram eventos (não foram executados)
    - Uma run que falha registra `node_failed` com o ErrorPayload e nunca
      possui artifact

Limites explícitos:
    - Não executa nodes
    - Não decide políticas de execução
    - Não persiste automaticamente (ver `save_manifest`)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


def _ensure_tzaware_utc(dt: datetime) -> datetime:
    """Timestamps naive são assumidos como UTC; os demais são convertidos."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _iso(dt: datetime) -> str:
    return _ensure_tzaware_utc(dt).isoformat()


def _ms_between(start: datetime, end: datetime) -> int:
    s = _ensure_tzaware_utc(start)
    e = _ensure_tzaware_utc(end)
    return max(0, int((e - s).total_seconds() * 1000))


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RunManifest:
    """
    Registro forense de uma run.

    Campos:
        - run: run_id, terminal, started_at, featureflow_version, status
        - inputs: config_hash
        - nodes: estado incremental por nome de node
        - artifact: label/kind/fingerprint do artifact comitado (ou None)
        - events: Event Log ordenado
    """

    run: Dict[str, Any]
    inputs: Dict[str, Any]
    nodes: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    artifact: Optional[Dict[str, Any]] = None
    events: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run": dict(self.run),
            "inputs": dict(self.inputs),
            "nodes": {k: dict(v) for k, v in self.nodes.items()},
            "artifact": dict(self.artifact) if self.artifact is not None else None,
            "events": [dict(e) for e in self.events],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RunManifest":
        artifact = data.get("artifact")
        return cls(
            run=dict(data.get("run", {})),
            inputs=dict(data.get("inputs", {})),
            nodes={k: dict(v) for k, v in (data.get("nodes", {}) or {}).items()},
            artifact=dict(artifact) if artifact else None,
            events=[dict(e) for e in (data.get("events", []) or [])],
        )


def create_manifest(
    *,
    run_id: str,
    terminal: str,
    started_at: datetime,
    featureflow_version: str,
    config_hash: str,
) -> RunManifest:
    """
    Cria o Manifest inicial de uma run.

    Esta função **não** emite eventos: o Event Log inicia vazio.
    """
    return RunManifest(
        run={
            "run_id": run_id,
            "terminal": terminal,
            "started_at": _iso(started_at),
            "featureflow_version": featureflow_version,
            "status": "running",
        },
        inputs={"config_hash": config_hash},
    )


def add_event(
    manifest: RunManifest,
    *,
    event_type: str,
    ts: Optional[datetime] = None,
    node: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Adiciona um evento explícito ao Event Log.

    Cada chamada adiciona exatamente um evento; eventos nunca são
    reordenados ou deduplicados.
    """
    ev: Dict[str, Any] = {"event_type": event_type, "timestamp": _iso(ts or _now())}
    if node is not None:
        ev["node"] = node
    if payload is not None:
        ev["payload"] = payload
    manifest.events.append(ev)


def node_started(
    manifest: RunManifest,
    *,
    node: str,
    kind: str,
    position: int,
    ts: Optional[datetime] = None,
) -> None:
    ts = ts or _now()
    state = manifest.nodes.setdefault(node, {})
    state.update(
        {
            "node": node,
            "kind": kind,
            "position": position,
            "status": "running",
            "started_at": _iso(ts),
        }
    )
    add_event(manifest, event_type="node_started", ts=ts, node=node, payload={"kind": kind})


def node_finished(
    manifest: RunManifest,
    *,
    node: str,
    ts: Optional[datetime] = None,
    output_type: Optional[str] = None,
) -> None:
    """
    Registra a conclusão bem-sucedida de um node.

    A duração é calculada a partir de `started_at` quando disponível.
    """
    ts = ts or _now()
    state = manifest.nodes.setdefault(node, {"node": node})
    started_iso = state.get("started_at")
    started_dt = datetime.fromisoformat(started_iso) if started_iso else ts
    state.update(
        {
            "status": "success",
            "finished_at": _iso(ts),
            "duration_ms": _ms_between(started_dt, ts),
            "output_type": output_type,
        }
    )
    add_event(
        manifest,
        event_type="node_finished",
        ts=ts,
        node=node,
        payload={"duration_ms": state["duration_ms"]},
    )


def node_failed(
    manifest: RunManifest,
    *,
    node: str,
    error: Dict[str, Any],
    ts: Optional[datetime] = None,
) -> None:
    """Marca o node e a run como `failed`, anexando o ErrorPayload serializado."""
    ts = ts or _now()
    state = manifest.nodes.setdefault(node, {"node": node})
    state.update({"status": "failed", "finished_at": _iso(ts), "error": error})
    manifest.run["status"] = "failed"
    add_event(manifest, event_type="node_failed", ts=ts, node=node, payload={"error": error})


def artifact_committed(
    manifest: RunManifest,
    *,
    label: str,
    kind: str,
    fingerprint: str,
    persisted: bool,
    ts: Optional[datetime] = None,
) -> None:
    manifest.artifact = {
        "label": label,
        "kind": kind,
        "fingerprint": fingerprint,
        "persisted": persisted,
    }
    add_event(manifest, event_type="artifact_committed", ts=ts, payload=dict(manifest.artifact))


def run_finished(manifest: RunManifest, *, ts: Optional[datetime] = None) -> None:
    ts = ts or _now()
    manifest.run["status"] = "success"
    manifest.run["finished_at"] = _iso(ts)
    add_event(manifest, event_type="run_finished", ts=ts)


def save_manifest(manifest: Union[RunManifest, Dict[str, Any]], path: Path) -> None:
    """Persiste o Manifest em JSON determinístico (chaves ordenadas)."""
    data = manifest.to_dict() if isinstance(manifest, RunManifest) else manifest
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True, default=str),
        encoding="utf-8",
    )


def load_manifest(path: Path) -> RunManifest:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return RunManifest.from_dict(data)


__all__ = [
    "RunManifest",
    "create_manifest",
    "add_event",
    "node_started",
    "node_finished",
    "node_failed",
    "artifact_committed",
    "run_finished",
    "save_manifest",
    "load_manifest",
]
