"""
Pacote de rastreabilidade do featureflow — RunManifest v1.

API pública:
    - RunManifest        → estrutura canônica do Manifest de uma run
    - create_manifest    → criação explícita do Manifest
    - add_event          → registro explícito no Event Log
    - node_started       → início de execução de um node
    - node_finished      → conclusão bem-sucedida de um node
    - node_failed        → falha de um node (aborta a run)
    - artifact_committed → artifact comitado ao final da run
    - run_finished       → conclusão da run
    - save_manifest / load_manifest → persistência JSON (round-trip)

Nenhum evento é emitido implicitamente: o scheduler e o engine chamam esta
API de forma explícita quando `ctx.manifest` está definido.
"""

from .manifest import (
    RunManifest,
    add_event,
    artifact_committed,
    create_manifest,
    load_manifest,
    node_failed,
    node_finished,
    node_started,
    run_finished,
    save_manifest,
)

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
