# tests/conftest.py
"""
Fixtures compartilhados para testes do featureflow.

Este módulo define fixtures reutilizáveis que fornecem:
- configurações YAML mínimas e determinísticas
- um NodeRegistry vazio
- um ExecutionContext controlado (run_id e timestamp fixos)
- uma factory de nodes com contagem de invocações
- um Pipeline isolado com storage em memória

Decisões arquiteturais:
    - Imports do core são realizados de forma lazy para melhorar a
      clareza de erros durante falhas
    - Nenhuma fixture usa o pipeline padrão do processo
    - Fixtures de disco usam apenas `tmp_path`

Limites explícitos:
    - Não substituem testes de integração (ver tests/e2e)
    - Não contêm lógica de domínio
"""

from datetime import datetime, timezone

import pytest


# =====================================================
# Config
# =====================================================

@pytest.fixture
def config_defaults_yaml() -> str:
    """YAML de defaults de projeto, aplicado sobre o DEFAULT_CONFIG embutido."""
    return """\
engine:
  log_level: INFO
  keep_results: true
artifacts:
  default_branch: dev
  store: memory
"""


@pytest.fixture
def config_local_yaml() -> str:
    """YAML de overrides locais (por máquina)."""
    return """\
engine:
  log_level: DEBUG
artifacts:
  default_branch: exp
"""


# =====================================================
# Pipeline / engine
# =====================================================

@pytest.fixture
def registry():
    from featureflow.core.pipeline.registry import NodeRegistry

    return NodeRegistry()


@pytest.fixture
def ctx():
    """
    ExecutionContext determinístico.

    `log_level` é DEBUG para que eventos de memoização sejam observáveis.
    """
    from featureflow.core.pipeline.context import ExecutionContext

    return ExecutionContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        config={"engine": {"log_level": "DEBUG"}},
        log_level="DEBUG",
    )


@pytest.fixture
def calls():
    """Registro compartilhado de invocações: nome do node -> contagem."""
    return {}


@pytest.fixture
def make_node(registry, calls):
    """
    Factory que registra nodes cuja lógica apenas registra a invocação.

    Cada node retorna `(name, inputs...)`, o que permite verificar tanto a
    ordem de execução quanto a montagem das entradas.

    Uso:
        make_node("a")
        make_node("b", parents=["a"])
        make_node("ds", kind="dataset", parents=["b"], artifact="ds")
    """
    from featureflow.core.pipeline.types import NodeKind, SinkOptions

    def _make(name, kind=None, parents=None, artifact=None, branch=None, persist=None, func=None, **extra):
        if kind is None:
            kind = NodeKind.TRANSFORMER if parents else NodeKind.LOADER

        def _body(*inputs, **kwargs):
            calls[name] = calls.get(name, 0) + 1
            return (name,) + tuple(inputs)

        sink = None
        if NodeKind(kind).is_sink:
            sink = SinkOptions(artifact_name=artifact or name, branch=branch, persist=persist)
        return registry.register(name, kind, parents or [], func or _body, extra, sink=sink)

    return _make


@pytest.fixture
def pipe():
    """Pipeline isolado (storage em memória, branch padrão `dev`)."""
    from featureflow.pipeline import Pipeline

    return Pipeline()
