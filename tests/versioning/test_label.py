# tests/versioning/test_label.py
"""Testes de parsing e formatação de labels `name:branch[:version]`."""

import pytest

try:
    from featureflow.core.exceptions import InvalidLabelError
    from featureflow.versioning.label import ArtifactRef, Label, format_label, parse_label
except Exception as e:  # noqa: BLE001
    parse_label = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing label module. Implement:\n"
            "- src/featureflow/versioning/label.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


def test_parse_full_and_short_labels():
    _require_imports()
    assert parse_label("flavia:dev:3") == Label("flavia", "dev", 3)
    assert parse_label("flavia:dev") == Label("flavia", "dev", None)
    assert parse_label("flavia", default_branch="prod") == Label("flavia", "prod", None)


def test_label_text_round_trip():
    _require_imports()
    for text in ("ds:dev", "ds:prod:12", "my.data-set_v2:exp-1:1"):
        assert str(parse_label(text)) == text
    assert format_label("ds", "dev", 2) == "ds:dev:2"
    assert str(ArtifactRef("ds", "dev", 2)) == "ds:dev:2"
    assert ArtifactRef("ds", "dev", 2).label.is_pinned


@pytest.mark.parametrize(
    "text",
    ["", "ds", "ds:", ":dev", "ds:dev:0", "ds:dev:-1", "ds:dev:x", "ds:dev:1:2", "d s:dev", "ds:de/v"],
)
def test_invalid_labels(text):
    _require_imports()
    with pytest.raises(InvalidLabelError):
        parse_label(text)
