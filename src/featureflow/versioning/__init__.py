"""
Versionamento de artifacts do featureflow.

    - Label / ArtifactRef → labels semânticos `name:branch[:version]`
    - Artifact            → registro imutável de uma versão comitada
    - Versioner           → atribuição de versões e ciclo aberto/finalizado
    - MetricLogger        → anexos de métricas e hiperparâmetros
"""

from .label import ArtifactRef, Label, format_label, parse_label
from .artifact import Artifact, describe_payload, fingerprint_payload
from .versioner import Versioner
from .logger import MetricLogger

__all__ = [
    "ArtifactRef",
    "Label",
    "format_label",
    "parse_label",
    "Artifact",
    "describe_payload",
    "fingerprint_payload",
    "Versioner",
    "MetricLogger",
]
