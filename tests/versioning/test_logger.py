# tests/versioning/test_logger.py
"""
Testes do MetricLogger.

Os testes asseguram que:
- `attach` estende séries de métricas e sobrescreve params
- artifacts finalizados ou desconhecidos rejeitam anexos
- `log` fora de uma run anexa ao artifact aberto mais recente
- `log` sem run ativa e sem artifact aberto falha explicitamente
- artifacts persistidos têm os metadados reescritos no storage
"""

import pytest

try:
    from featureflow.core.exceptions import ArtifactNotFoundError
    from featureflow.persistence import InMemoryStorage
    from featureflow.versioning.logger import MetricLogger
    from featureflow.versioning.versioner import Versioner
except Exception as e:  # noqa: BLE001
    MetricLogger = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing metric logger. Implement:\n"
            "- src/featureflow/versioning/logger.py (MetricLogger)\n"
            f"Import error: {_IMPORT_ERR}"
        )


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def versioner(storage):
    return Versioner(storage)


@pytest.fixture
def logger(versioner):
    return MetricLogger(versioner)


def test_attach_extends_series_and_overwrites_params(versioner, logger):
    _require_imports()
    ref = versioner.commit("clf", "dev", "model", kind="model")
    logger.attach(ref, metrics={"loss": 0.9}, params={"lr": 0.1})
    art = logger.attach(ref, metrics={"loss": [0.7, 0.5], "acc": 0.8}, params={"lr": 0.01})

    assert art.metrics == {"loss": (0.9, 0.7, 0.5), "acc": (0.8,)}
    assert art.params == {"lr": 0.01}
    assert versioner.get(ref) is art


def test_attach_rewrites_persisted_metadata(versioner, logger, storage):
    _require_imports()
    ref = versioner.commit("clf", "dev", "model", kind="model")
    logger.attach(ref, metrics={"acc": 0.9})
    assert storage.load(ref).metrics == {"acc": (0.9,)}


def test_finalized_artifact_rejects_attach(versioner, logger):
    """
    Depois de `finalize`, o artifact é imutável: anexos falham com
    ArtifactNotFoundError e o conteúdo anterior é preservado.
    """
    _require_imports()
    ref = versioner.commit("clf", "dev", "model", kind="model", metrics={"acc": 0.5})
    versioner.finalize(ref)
    with pytest.raises(ArtifactNotFoundError):
        logger.attach(ref, metrics={"acc": 0.9})
    assert versioner.get(ref).metrics == {"acc": (0.5,)}


def test_unknown_ref_rejects_attach(logger):
    _require_imports()
    with pytest.raises(ArtifactNotFoundError):
        logger.attach("clf:dev:3", metrics={"acc": 0.9})


def test_log_outside_run_targets_most_recent_open_artifact(versioner, logger):
    _require_imports()
    versioner.commit("ds", "dev", [1])
    model_ref = versioner.commit("clf", "dev", "m", kind="model")

    art = logger.log(metrics={"f1": 0.7}, params={"depth": 4})

    assert art.ref == model_ref
    assert versioner.get(model_ref).params == {"depth": 4}


def test_log_without_run_or_open_artifact_fails(logger):
    _require_imports()
    with pytest.raises(ArtifactNotFoundError):
        logger.log(metrics={"f1": 0.7})


def test_invalid_values_rejected_before_any_change(versioner, logger):
    _require_imports()
    ref = versioner.commit("clf", "dev", "m", kind="model")
    with pytest.raises(TypeError):
        logger.attach(ref, metrics={"acc": 0.9}, params={"grid": [1, 2]})
    assert versioner.get(ref).metrics == {}
