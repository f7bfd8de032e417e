"""Tests for the tabtree CLI."""

import json

import pytest
from conftest import A, B, C
from typer.testing import CliRunner

from tabtree.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def tabtree_home(tmp_path, monkeypatch):
    import tabtree.config as config

    monkeypatch.setattr(config, "TABTREE_DIR", tmp_path)
    monkeypatch.setattr(config, "DB_PATH", tmp_path / "cli.db")
    return tmp_path


@pytest.fixture
def events_file(tmp_path):
    events = [
        {"event": "created", "tabId": 1},
        {"event": "updated", "tabId": 1, "url": A, "title": "Alpha"},
        {"event": "updated", "tabId": 1, "url": B, "title": "Beta"},
        {"event": "updated", "tabId": 1, "url": C},
        {"event": "updated", "tabId": 2, "url": B},
        {"event": "closed", "tabId": 2},
    ]
    path = tmp_path / "events.jsonl"
    path.write_text("\n".join(json.dumps(e) for e in events) + "\n")
    return path


class TestCLI:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "tabtree" in result.output

    def test_replay_then_status(self, events_file):
        result = runner.invoke(app, ["replay", str(events_file)])
        assert result.exit_code == 0, result.output
        assert "Replayed 6 events" in result.output

        result = runner.invoke(app, ["request", "getStatus"])
        assert result.exit_code == 0
        assert '"activeTabs": 1' in result.output
        assert '"closedTabs": 1' in result.output

    def test_replay_missing_file(self, tmp_path):
        result = runner.invoke(app, ["replay", str(tmp_path / "nope.jsonl")])
        assert result.exit_code == 1

    def test_replay_bad_line(self, tmp_path):
        path = tmp_path / "bad.jsonl"
        path.write_text('{"event": "created", "tabId": 1}\nnot json\n')
        result = runner.invoke(app, ["replay", str(path)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_trees(self, events_file):
        runner.invoke(app, ["replay", str(events_file)])
        result = runner.invoke(app, ["trees", "--no-closed"])
        assert result.exit_code == 0
        assert "Alpha" in result.output
        assert "Tab 2" not in result.output

    def test_trees_empty(self):
        result = runner.invoke(app, ["trees"])
        assert result.exit_code == 0
        assert "No tab history" in result.output

    def test_refresh(self, events_file):
        runner.invoke(app, ["replay", str(events_file)])
        assert runner.invoke(app, ["refresh", "1"]).exit_code == 0
        assert runner.invoke(app, ["refresh", "2"]).exit_code == 1

    def test_clear_closed_only(self, events_file):
        runner.invoke(app, ["replay", str(events_file)])
        result = runner.invoke(app, ["clear", "--closed-only", "--yes"])
        assert result.exit_code == 0

        result = runner.invoke(app, ["request", "getStatus"])
        assert '"closedTabs": 0' in result.output
        assert '"activeTabs": 1' in result.output

    def test_clear_declined(self, events_file):
        runner.invoke(app, ["replay", str(events_file)])
        result = runner.invoke(app, ["clear"], input="n\n")
        assert result.exit_code == 1

    def test_export(self, events_file, tmp_path):
        runner.invoke(app, ["replay", str(events_file)])
        out = tmp_path / "export.json"
        result = runner.invoke(app, ["export", "--output", str(out)])
        assert result.exit_code == 0

        data = json.loads(out.read_text())
        assert data["version"] == "1.0"
        assert len(data["tabTrees"]) == 2

    def test_unknown_request(self):
        result = runner.invoke(app, ["request", "selfDestruct"])
        assert result.exit_code == 1
        assert "Unknown action" in result.output
