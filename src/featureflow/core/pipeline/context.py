"""
Contexto de execução de uma run do pipeline.

Este módulo define o `ExecutionContext`, a estrutura canônica que acompanha
uma única run: identidade da execução, resultados memoizados por node,
eventos de log estruturados e valores registrados por `log()` durante a
execução de nodes.

O ExecutionContext é o único meio permitido de:
    - memoização de resultados de nodes dentro da run
    - registro de logs estruturados de execução
    - coleta de warnings não fatais associados a nodes
    - acúmulo de métricas/params a serem anexados ao artifact comitado

Decisões arquiteturais:
    - Cada run possui seu próprio contexto (nenhum estado compartilhado)
    - Um node é invocado no máximo uma vez por contexto
    - Eventos abaixo de `log_level` são descartados na origem
    - `trail` registra a ordem real de execução (nodes memoizados não entram)

Invariantes:
    - Resultados são indexados pelo nome do node
    - Logs sempre incluem `run_id` e `node`
    - Warnings são agrupados por node

Limites explícitos:
    - Não executa nodes
    - Não constrói o grafo
    - Não persiste dados automaticamente
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from featureflow.core.traceability import RunManifest


_LEVEL_RANK = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def _rank(level: str) -> int:
    try:
        return _LEVEL_RANK[str(level).upper()]
    except KeyError:
        raise ValueError(
            f"Unknown log level: {level!r} (allowed: {', '.join(_LEVEL_RANK)})"
        ) from None


@dataclass
class ExecutionContext:
    """
    Contexto de uma run do pipeline.

    Campos canônicos:
    - run_id: identificador único da execução
    - created_at: timestamp UTC de criação do contexto
    - config: configuração efetiva da run
    - log_level: nível mínimo de eventos registrados em `events`
    - manifest: RunManifest da run (opcional)
    - results: nome do node -> valor produzido
    - trail: nomes dos nodes na ordem em que foram executados
    - events: log estruturado de eventos
    - warnings: warnings por node
    - pending_metrics / pending_params: valores registrados por `log()`
      dentro de nodes, entregues ao commit do artifact terminal
    """

    run_id: str
    created_at: datetime
    config: Dict[str, Any] = field(default_factory=dict)
    log_level: str = "INFO"
    manifest: Optional[RunManifest] = None

    results: Dict[str, Any] = field(default_factory=dict, repr=False)
    trail: List[str] = field(default_factory=list)
    events: List[Dict[str, Any]] = field(default_factory=list, repr=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict)
    pending_metrics: Dict[str, List[float]] = field(default_factory=dict)
    pending_params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.log_level = str(self.log_level).upper()
        _rank(self.log_level)

    @classmethod
    def new(
        cls,
        *,
        config: Optional[Dict[str, Any]] = None,
        log_level: str = "INFO",
        manifest: Optional[RunManifest] = None,
    ) -> "ExecutionContext":
        return cls(
            run_id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            config=dict(config or {}),
            log_level=log_level,
            manifest=manifest,
        )

    # -----------------------------
    # Results (memoização)
    # -----------------------------
    def set_result(self, name: str, value: Any) -> None:
        self.results[name] = value
        self.trail.append(name)

    def has_result(self, name: str) -> bool:
        return name in self.results

    def get_result(self, name: str) -> Any:
        if name not in self.results:
            raise KeyError(name)
        return self.results[name]

    def clear(self) -> None:
        """Descarta resultados e trail; eventos e warnings são preservados."""
        self.results.clear()
        self.trail.clear()

    # -----------------------------
    # Métricas/params pendentes
    # -----------------------------
    def buffer_metric(self, key: str, values: List[float]) -> None:
        self.pending_metrics.setdefault(key, []).extend(values)

    def buffer_param(self, key: str, value: Any) -> None:
        self.pending_params[key] = value

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def is_enabled_for(self, level: str) -> bool:
        return _rank(level) >= _rank(self.log_level)

    def log(self, *, node: Optional[str], level: str, message: str, **extra: Any) -> None:
        if not self.is_enabled_for(level):
            return
        event = {
            "run_id": self.run_id,
            "node": node,
            "level": str(level).upper(),
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)

    def add_warning(self, *, node: str, message: str) -> None:
        self.warnings.setdefault(node, []).append(message)
        self.log(node=node, level="WARNING", message=message)


__all__ = ["ExecutionContext"]
