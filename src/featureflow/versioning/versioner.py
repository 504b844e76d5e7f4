"""
Versioner de artifacts: atribuição de labels `name:branch:version`.

O versioner recebe o valor produzido por um node terminal, atribui a
próxima versão do par `(name, branch)`, constrói o `Artifact` imutável e o
entrega ao storage.

Decisões arquiteturais:
    - A versão é `max(storage.get_latest_version, maior versão do processo) + 1`,
      calculada sob lock; o storage permanece a fonte da verdade entre
      processos
    - Um conflito reportado pelo storage vira `VersionConflictError`; o
      commit nunca é repetido com outro número
    - `persist=False` mantém o artifact apenas na memória do processo
    - Recommitar nunca sobrescreve: cada commit cria uma nova versão
    - Todo artifact nasce *aberto* (aceita métricas/params) e torna-se o
      artifact aberto mais recente do processo
    - Um novo commit de modelo finaliza o modelo aberto anterior

Invariantes:
    - Versões de um `(name, branch)` são 1, 2, 3, ... dentro do processo
    - Artifacts finalizados nunca são alterados

Limites explícitos:
    - Não executa nodes
    - Não decide quando datasets são finalizados (política do Engine)
"""

from __future__ import annotations

from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from featureflow.core.exceptions import (
    ArtifactNotFoundError,
    InvalidKindError,
    VersionConflictError,
)
from featureflow.persistence.base import ArtifactStorage
from featureflow.persistence.memory import InMemoryStorage

from .artifact import (
    ARTIFACT_KINDS,
    Artifact,
    build_artifact,
    normalize_metrics,
    normalize_params,
)
from .label import ArtifactRef, Label, parse_label, validate_part


RefLike = Union[ArtifactRef, Label, str]


class Versioner:
    """
    Atribui versões e mantém o estado aberto/finalizado dos artifacts.

    Exemplo:
        versioner = Versioner(InMemoryStorage())
        ref = versioner.commit("flavia", "dev", frame)
        str(ref)  # "flavia:dev:1"
    """

    def __init__(self, storage: Optional[ArtifactStorage] = None) -> None:
        self.storage: ArtifactStorage = storage if storage is not None else InMemoryStorage()
        self._lock = RLock()
        self._artifacts: Dict[ArtifactRef, Artifact] = {}
        self._highest: Dict[Tuple[str, str], int] = {}
        self._open: List[ArtifactRef] = []

    @property
    def lock(self) -> RLock:
        return self._lock

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------
    def commit(
        self,
        label_name: str,
        branch: str,
        payload: Any,
        metrics: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
        persist: bool = True,
        *,
        kind: str = "dataset",
        run_id: Optional[str] = None,
    ) -> ArtifactRef:
        """
        Comita `payload` como a próxima versão de `label_name:branch`.

        Raises:
            InvalidLabelError: Se nome ou branch estiverem fora do formato.
            InvalidKindError: Se `kind` não for `dataset` ou `model`.
            TypeError: Se métricas/params não forem valores aceitos.
            VersionConflictError: Se o storage rejeitar a versão atribuída.
        """
        label_text = f"{label_name}:{branch}"
        validate_part(label_name, field_name="name", label=label_text)
        validate_part(branch, field_name="branch", label=label_text)
        if kind not in ARTIFACT_KINDS:
            raise InvalidKindError(kind, allowed=ARTIFACT_KINDS)

        clean_metrics = normalize_metrics(metrics)
        clean_params = normalize_params(params)

        with self._lock:
            version = self.latest_version(label_name, branch) + 1
            ref = ArtifactRef(label_name, branch, version)
            artifact = build_artifact(
                ref,
                kind=kind,
                payload=payload,
                metrics=clean_metrics,
                params=clean_params,
                run_id=run_id,
                persisted=bool(persist),
            )

            if persist:
                result = self.storage.commit(artifact)
                if not result.ok:
                    raise VersionConflictError(label_name, branch, version, detail=result.detail)

            if kind == "model":
                for previous in [r for r in self._open if self._artifacts[r].kind == "model"]:
                    self._open.remove(previous)

            self._artifacts[ref] = artifact
            self._highest[(label_name, branch)] = version
            self._open.append(ref)
            return ref

    # ------------------------------------------------------------------
    # Consulta
    # ------------------------------------------------------------------
    def latest_version(self, name: str, branch: str) -> int:
        """Maior versão conhecida (processo ou storage); 0 quando não há nenhuma."""
        with self._lock:
            local = self._highest.get((name, branch), 0)
            return max(local, int(self.storage.get_latest_version(name, branch)))

    def _to_ref(self, ref: RefLike) -> ArtifactRef:
        if isinstance(ref, ArtifactRef):
            return ref
        label = ref if isinstance(ref, Label) else parse_label(ref)
        version = label.version
        if version is None:
            version = self.latest_version(label.name, label.branch)
            if version == 0:
                raise ArtifactNotFoundError(str(label), reason="no committed version")
        return ArtifactRef(label.name, label.branch, version)

    def resolve(self, label: RefLike) -> ArtifactRef:
        """Resolve um label (versão omitida = última) em `ArtifactRef`."""
        with self._lock:
            return self._to_ref(label)

    def get(self, ref: RefLike) -> Artifact:
        """
        Retorna o artifact de `ref`: primeiro da memória do processo, depois
        do storage.

        Raises:
            ArtifactNotFoundError: Se a versão não existir.
        """
        with self._lock:
            resolved = self._to_ref(ref)
            if resolved in self._artifacts:
                return self._artifacts[resolved]
        return self.storage.load(resolved)

    def is_open(self, ref: RefLike) -> bool:
        with self._lock:
            return self._to_ref(ref) in self._open

    def current_open(self) -> Optional[ArtifactRef]:
        """Artifact aberto mais recente do processo, se houver."""
        with self._lock:
            return self._open[-1] if self._open else None

    # ------------------------------------------------------------------
    # Ciclo de vida
    # ------------------------------------------------------------------
    def replace_open(self, artifact: Artifact) -> Artifact:
        """Substitui a instância de um artifact ainda aberto (uso do logger)."""
        with self._lock:
            if artifact.ref not in self._open:
                raise ArtifactNotFoundError(str(artifact.ref), reason="artifact is finalized or unknown")
            self._artifacts[artifact.ref] = artifact
            if artifact.persisted:
                self.storage.update_metadata(artifact)
            return artifact

    def finalize(self, ref: Optional[RefLike] = None) -> Artifact:
        """
        Fecha um artifact; anexos posteriores falham.

        Sem `ref`, finaliza o artifact aberto mais recente. Finalizar um
        artifact já finalizado não tem efeito.

        Raises:
            ArtifactNotFoundError: Se não houver artifact a finalizar.
        """
        with self._lock:
            if ref is None:
                if not self._open:
                    raise ArtifactNotFoundError("<none>", reason="no open artifact to finalize")
                resolved = self._open[-1]
            else:
                resolved = self._to_ref(ref)
            if resolved not in self._artifacts:
                raise ArtifactNotFoundError(str(resolved), reason="not committed in this process")
            if resolved in self._open:
                self._open.remove(resolved)
            return self._artifacts[resolved]

    def reset(self) -> None:
        """Esquece o estado do processo; o storage não é alterado."""
        with self._lock:
            self._artifacts.clear()
            self._highest.clear()
            self._open.clear()


__all__ = ["Versioner", "RefLike"]
