import json
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from pathcraft.cli.main import VERSION, app
from pathcraft.core.config import ConfigManager
from conftest import login_path, step

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(ConfigManager, "CONFIG_DIR", tmp_path / ".home")
    monkeypatch.setattr(ConfigManager, "CONFIG_FILE", tmp_path / ".home" / "config.json")
    return tmp_path


@pytest.fixture
def recording(workspace):
    path = login_path()
    path.steps.insert(1, step("wait", value=100, timestamp=10))
    path.steps.insert(2, step("wait", value=200, timestamp=20))
    target = workspace / "recording.json"
    target.write_text(path.model_dump_json())
    return target


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"pathcraft {VERSION}" in result.stdout

    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert VERSION in result.stdout


def test_help_lists_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("record", "optimize", "generate"):
        assert command in result.stdout


def test_optimize(recording):
    result = runner.invoke(app, ["optimize", str(recording)])

    assert result.exit_code == 0
    optimized = json.loads((recording.parent / "recording.optimized.json").read_text())
    assert [s["type"] for s in optimized["steps"]] == ["navigation", "wait", "type", "click"]
    assert optimized["steps"][1]["value"] == 300


def test_generate(recording, workspace):
    result = runner.invoke(app, ["generate", str(recording), "-f", "cypress", "-l", "javascript", "--fixtures"])

    assert result.exit_code == 0, result.stdout
    assert (workspace / "generated-tests" / "tests" / "login-flow.test.js").exists()
    assert (workspace / "generated-tests" / "fixtures" / "login-flow.fixture.json").exists()
    assert (workspace / "generated-tests" / "test-generation-report.json").exists()
    assert (workspace / "generated-tests" / "README.md").exists()


def test_generate_uses_project_config(recording, workspace):
    (workspace / ".pathcraftrc").write_text(json.dumps({"generation": {"framework": "puppeteer", "output_directory": "e2e"}}))

    result = runner.invoke(app, ["generate", str(recording)])

    assert result.exit_code == 0, result.stdout
    assert (workspace / "e2e" / "tests" / "login-flow.test.ts").exists()


def test_generate_unsupported_framework(recording, workspace):
    result = runner.invoke(app, ["generate", str(recording), "-f", "selenium"])

    assert result.exit_code == 1
    assert "Unsupported framework: selenium" in result.stdout
    report = json.loads((workspace / "generated-tests" / "test-generation-report.json").read_text())
    assert report["files"] == []


def test_generate_invalid_language(recording):
    result = runner.invoke(app, ["generate", str(recording), "-l", "cobol"])
    assert result.exit_code == 1


def test_generate_rejects_invalid_recording(workspace):
    broken = workspace / "broken.json"
    broken.write_text(json.dumps({"steps": "not a list"}))

    result = runner.invoke(app, ["generate", str(broken)])

    assert result.exit_code == 1


def test_record_rejects_invalid_url(workspace):
    result = runner.invoke(app, ["record", "not-a-url"])
    assert result.exit_code == 1


def test_record_saves_path_and_screenshots(workspace):
    captured = AsyncMock(return_value=(login_path(), {"navigation_1.png": b"\x89PNG"}))

    with patch("pathcraft.cli.commands.record.capture", captured):
        result = runner.invoke(app, ["record", "https://example.com/login", "-o", "out/login.json", "--headless"])

    assert result.exit_code == 0, result.stdout
    saved = json.loads((workspace / "out" / "login.json").read_text())
    assert saved["name"] == "Login Flow"
    assert (workspace / "out" / "screenshots" / "navigation_1.png").read_bytes() == b"\x89PNG"
    assert (workspace / "out" / "logs" / "events.json").exists()
    assert captured.await_args.args[2] is True


def test_record_failure_exits_with_error(workspace):
    with patch("pathcraft.cli.commands.record.capture", AsyncMock(side_effect=RuntimeError("browser crashed"))):
        result = runner.invoke(app, ["record", "https://example.com", "--headless"])

    assert result.exit_code == 1
    assert not (workspace / "recording.json").exists()
