"""
featureflow — pipelines de features declarativos e versionados.

Um pipeline é um conjunto de funções decoradas (loader, transformer,
dataset, model) com dependências explícitas entre si. Ao materializar um
node terminal, o featureflow constrói o DAG mínimo, executa os nodes em
ordem topológica determinística e comita o resultado como um artifact
imutável identificado por `name:branch:version`.

Arquitetura em alto nível:
    - core.pipeline     → tipos de node, registry e contexto de execução
    - core.engine       → grafo, scheduler e engine de materialização
    - core.config       → carregamento, merge, hashing e settings
    - core.traceability → RunManifest e Event Log
    - versioning        → labels, artifacts, versioner e logger de métricas
    - persistence       → backends de storage (memória, disco local)

Limites explícitos:
    - Não contém lógica de extração de features nem de treino
    - Não faz agendamento distribuído
"""

from .version import __version__
from .pipeline import (
    DeclaredNode,
    Pipeline,
    dataset,
    finalize,
    get_pipeline,
    loader,
    log,
    model,
    reset_pipeline,
    transformer,
)

__all__ = [
    "__version__",
    "Pipeline",
    "DeclaredNode",
    "get_pipeline",
    "reset_pipeline",
    "loader",
    "transformer",
    "dataset",
    "model",
    "log",
    "finalize",
]
