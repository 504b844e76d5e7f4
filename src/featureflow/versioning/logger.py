"""
Logger de métricas e hiperparâmetros de artifacts.

Dois caminhos de registro:

    - `attach(ref, metrics, params)`: anexa diretamente a um artifact aberto
    - `log(metrics, params)`: chamada de conveniência usada no corpo dos nodes

`log()` decide o destino em tempo de chamada:
    1. dentro de um node em execução → acumula no contexto da run ativa;
       os valores são entregues ao commit do artifact terminal
    2. fora de uma run → anexa ao artifact aberto mais recente
    3. nenhum dos dois → `ArtifactNotFoundError`

Invariantes:
    - Uma chave de métrica registrada novamente estende sua série (épocas)
    - Params sobrescrevem por chave
    - Artifacts finalizados nunca recebem anexos
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from featureflow.core.engine.scheduler import active_context
from featureflow.core.exceptions import ArtifactNotFoundError

from .artifact import Artifact, normalize_metrics, normalize_params
from .versioner import RefLike, Versioner


class MetricLogger:
    def __init__(self, versioner: Versioner) -> None:
        self.versioner = versioner

    def attach(
        self,
        ref: RefLike,
        metrics: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Artifact:
        """
        Anexa métricas/params a um artifact aberto e retorna a nova instância.

        Raises:
            ArtifactNotFoundError: Se `ref` for desconhecido ou já finalizado.
            TypeError: Se algum valor não for aceito.
        """
        clean_metrics = normalize_metrics(metrics)
        clean_params = normalize_params(params)
        with self.versioner.lock:
            resolved = self.versioner.resolve(ref)
            if not self.versioner.is_open(resolved):
                raise ArtifactNotFoundError(str(resolved), reason="artifact is finalized or unknown")
            current = self.versioner.get(resolved)
            updated = current.with_attachments(clean_metrics, clean_params)
            return self.versioner.replace_open(updated)

    def log(
        self,
        metrics: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Artifact]:
        """
        Registra métricas/params na run ativa ou no artifact aberto mais recente.

        Retorna None quando os valores foram acumulados na run ativa, ou o
        artifact atualizado quando foram anexados diretamente.
        """
        ctx = active_context()
        if ctx is not None:
            for key, series in normalize_metrics(metrics).items():
                ctx.buffer_metric(key, series)
            for key, value in normalize_params(params).items():
                ctx.buffer_param(key, value)
            return None

        ref = self.versioner.current_open()
        if ref is None:
            raise ArtifactNotFoundError(
                "<none>", reason="no running node and no open artifact to log into"
            )
        return self.attach(ref, metrics=metrics, params=params)


__all__ = ["MetricLogger"]
