"""
Test — Payloads canônicos de erro (Guardrail)

Cenários:
- node que falha durante a run → Manifest registra `error.type = NODE_EXECUTION_ERROR`
- conflito de versão no commit → evento `commit_conflict` com `VERSION_CONFLICT`
- exceções fora da taxonomia → `UNEXPECTED_ERROR`, sem stack trace

Esperado:
- payload segue o schema canônico (type, message, details, hint)
- o conteúdo mínimo de `details` identifica node/label/versão
"""

from __future__ import annotations

import json

import pytest

from featureflow import Pipeline
from featureflow.core.errors import (
    CYCLIC_DEPENDENCY,
    NODE_EXECUTION_ERROR,
    UNEXPECTED_ERROR,
    UNKNOWN_NODE,
    VERSION_CONFLICT,
    ErrorPayload,
    error_from_exception,
)
from featureflow.core.exceptions import (
    CyclicDependencyError,
    NodeExecutionError,
    UnknownNodeError,
    VersionConflictError,
)
from featureflow.persistence import CommitResult, InMemoryStorage


_PAYLOAD_KEYS = {"type", "message", "details", "hint"}


def _assert_subset(payload: dict, expected: dict) -> None:
    for key, value in expected.items():
        assert key in payload, f"missing key {key!r} in {payload}"
        if isinstance(value, dict):
            _assert_subset(payload[key], value)
        else:
            assert payload[key] == value, f"{key}: {payload[key]!r} != {value!r}"


def test_node_failure_payload_in_manifest() -> None:
    pipe = Pipeline()

    @pipe.loader()
    def rows():
        return [1, 2, 3]

    @pipe.dataset("totals", parents=rows)
    def totals(values):
        return sum(values) / 0

    with pytest.raises(NodeExecutionError) as exc:
        totals()

    payload = exc.value.to_payload().to_dict()
    assert set(payload) == _PAYLOAD_KEYS
    _assert_subset(
        payload,
        {
            "type": NODE_EXECUTION_ERROR,
            "details": {
                "node": "totals",
                "position": 1,
                "chain": ["rows", "totals"],
                "exception_class": "ZeroDivisionError",
            },
        },
    )
    json.dumps(payload)


def test_version_conflict_payload_in_manifest_event() -> None:
    class _Contended(InMemoryStorage):
        def commit(self, artifact):
            return CommitResult.conflict("claimed by another writer")

    pipe = Pipeline(storage=_Contended())

    @pipe.loader()
    def rows():
        return [1]

    @pipe.dataset("rows_ds", parents=rows)
    def rows_ds(values):
        return values

    ctx = pipe.engine.new_context("rows_ds")
    with pytest.raises(VersionConflictError):
        rows_ds(ctx)

    assert ctx.manifest.run["status"] == "failed"
    conflicts = [ev for ev in ctx.manifest.events if ev["event_type"] == "commit_conflict"]
    assert len(conflicts) == 1
    _assert_subset(
        conflicts[0]["payload"]["error"],
        {
            "type": VERSION_CONFLICT,
            "details": {"name": "rows_ds", "branch": "dev", "version": 1},
        },
    )


@pytest.mark.parametrize(
    "exc, expected",
    [
        (UnknownNodeError("ghost", referenced_by="clf"), {"type": UNKNOWN_NODE, "details": {"name": "ghost"}}),
        (CyclicDependencyError(["a", "b", "a"]), {"type": CYCLIC_DEPENDENCY, "details": {"cycle": ["a", "b", "a"]}}),
    ],
)
def test_structural_errors_map_to_stable_codes(exc, expected) -> None:
    payload = error_from_exception(exc)
    assert isinstance(payload, ErrorPayload)
    _assert_subset(payload.to_dict(), expected)


def test_unexpected_exception_payload() -> None:
    payload = error_from_exception(KeyError("missing"))
    assert payload.type == UNEXPECTED_ERROR
    assert payload.details == {"exception_class": "KeyError"}
    assert "Traceback" not in payload.message
