# tests/unit/tasks/test_cli.py
from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
import typer
from typer.testing import CliRunner

from tariff_sync.config.settings import get_settings
from tariff_sync.tasks.cli import app, load_spreadsheet_ids

runner = CliRunner()


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_load_spreadsheet_ids_reads_json_array(tmp_path: Path) -> None:
    path = tmp_path / "spreadsheets.json"
    path.write_text(json.dumps(["a", "b"]), encoding="utf-8")

    assert load_spreadsheet_ids(path) == ["a", "b"]


@pytest.mark.parametrize("content", ['{"ids": ["a"]}', "[1, 2]", "not json"])
def test_load_spreadsheet_ids_rejects_other_shapes(tmp_path: Path, content: str) -> None:
    path = tmp_path / "spreadsheets.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(typer.BadParameter):
        load_spreadsheet_ids(path)


def test_missing_file_is_a_bad_parameter(tmp_path: Path) -> None:
    with pytest.raises(typer.BadParameter):
        load_spreadsheet_ids(tmp_path / "absent.json")


def test_mock_gateway_is_refused_in_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("WB_USE_MOCK", "true")

    result = runner.invoke(app, ["sync"])

    assert result.exit_code == 2


def test_invalid_settings_exit_with_code_2(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SYNC_INTERVAL_S", "1")

    result = runner.invoke(app, ["sync"])

    assert result.exit_code == 2
