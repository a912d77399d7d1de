from __future__ import annotations

import importlib
import json
from pathlib import Path

import pytest


def test_console_entrypoint_exposes_app() -> None:
    pytest.importorskip("typer")

    module = importlib.import_module("emty_assistant.main")

    assert hasattr(module, "app")
    assert module.app is not None


def test_ask_without_credential_exits_with_configuration_error(monkeypatch, tmp_path: Path) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from emty_assistant.config import settings
    from emty_assistant.main import app

    monkeypatch.setattr(settings, "openai_api_key", None)
    monkeypatch.setattr(settings, "credentials_path", tmp_path / "credentials.json")

    result = typer_testing.CliRunner().invoke(app, ["ask", "merhaba"], catch_exceptions=False)

    assert result.exit_code == 1
    assert "yapılandırılmamış" in result.stdout


def test_set_api_key_saves_key_for_later_sessions(monkeypatch, tmp_path: Path) -> None:
    typer_testing = pytest.importorskip("typer.testing")
    from emty_assistant.config import settings
    from emty_assistant.main import app

    path = tmp_path / "credentials.json"
    monkeypatch.setattr(settings, "credentials_path", path)

    result = typer_testing.CliRunner().invoke(app, ["set-api-key", "sk-1234567890abcd"], catch_exceptions=False)

    assert result.exit_code == 0
    assert json.loads(path.read_text(encoding="utf-8")) == {"api_key": "sk-1234567890abcd"}
