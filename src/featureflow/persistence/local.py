"""
Storage local em disco para artifacts versionados (v1).

Layout determinístico:

    <root_dir>/<name>/<branch>/v<version>/
        payload.joblib   → payload serializado com joblib
        artifact.json    → metadados (label, kind, métricas, params,
                           fingerprint, payload_info, created_at, run_id)

Decisões (v1):
    - Formato do payload: joblib
    - O diretório da versão é criado com `exist_ok=False`: se outro
      processo já reivindicou a mesma versão, o commit reporta conflito
    - Versões acima de `latest` são aceitas mesmo com lacunas (versões
      comitadas com `persist=False` nunca chegam ao disco)
    - Reescrita de metadados é atômica (arquivo temporário + replace)

Limites explícitos:
    - Não remove versões antigas
    - Não implementa locking entre máquinas
"""

from __future__ import annotations

import json
import re
import shutil
from pathlib import Path
from typing import List, Union

import joblib

from featureflow.core.exceptions import ArtifactNotFoundError
from featureflow.versioning.artifact import Artifact
from featureflow.versioning.label import ArtifactRef

from .base import CommitResult


PAYLOAD_FILE = "payload.joblib"
METADATA_FILE = "artifact.json"

_VERSION_DIR_RE = re.compile(r"^v(\d+)$")


def _dump_json(path: Path, data: dict) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(
        json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True, default=str),
        encoding="utf-8",
    )
    tmp.replace(path)


class LocalStorage:
    """Store em disco compatível com o contrato `ArtifactStorage`."""

    def __init__(self, root_dir: Union[str, Path]):
        self.root_dir = Path(root_dir)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------
    def branch_dir(self, name: str, branch: str) -> Path:
        return self.root_dir / name / branch

    def version_dir(self, ref: ArtifactRef) -> Path:
        return self.branch_dir(ref.name, ref.branch) / f"v{ref.version}"

    def versions(self, name: str, branch: str) -> List[int]:
        base = self.branch_dir(name, branch)
        if not base.is_dir():
            return []
        found = []
        for child in base.iterdir():
            m = _VERSION_DIR_RE.match(child.name)
            if m and child.is_dir():
                found.append(int(m.group(1)))
        return sorted(found)

    # ------------------------------------------------------------------
    # Contrato
    # ------------------------------------------------------------------
    def get_latest_version(self, name: str, branch: str) -> int:
        versions = self.versions(name, branch)
        return versions[-1] if versions else 0

    def commit(self, artifact: Artifact) -> CommitResult:
        ref = artifact.ref
        latest = self.get_latest_version(ref.name, ref.branch)
        if ref.version <= latest:
            return CommitResult.conflict(f"version {ref.version} is not above latest {latest}")

        target = self.version_dir(ref)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            target.mkdir(exist_ok=False)
        except FileExistsError:
            return CommitResult.conflict(f"{target} already exists")

        try:
            joblib.dump(artifact.payload, target / PAYLOAD_FILE)
            _dump_json(target / METADATA_FILE, artifact.to_metadata())
        except Exception:
            shutil.rmtree(target, ignore_errors=True)
            raise
        return CommitResult.success()

    def load(self, ref: ArtifactRef) -> Artifact:
        target = self.version_dir(ref)
        meta_path = target / METADATA_FILE
        if not meta_path.exists():
            raise ArtifactNotFoundError(str(ref), reason=f"not found in {self.root_dir}")
        meta = json.loads(meta_path.read_text(encoding="utf-8"))
        payload = joblib.load(target / PAYLOAD_FILE)
        return Artifact.from_metadata(meta, payload, persisted=True)

    def update_metadata(self, artifact: Artifact) -> None:
        meta_path = self.version_dir(artifact.ref) / METADATA_FILE
        if not meta_path.exists():
            raise ArtifactNotFoundError(str(artifact.ref), reason=f"not found in {self.root_dir}")
        _dump_json(meta_path, artifact.to_metadata())


__all__ = ["LocalStorage", "PAYLOAD_FILE", "METADATA_FILE"]
