"""
Tests for CLI commands

Tests the Click-based interface for the jira-auto commands.
"""

import io
import json
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest
import yaml
from click.testing import CliRunner

from jira_automation.cli import _read_payload, main
from jira_automation.errors import WebhookProcessingError
from jira_automation.models import Action, ProcessingResult
from tests.conftest import FakeJira, criteria_issue, criteria_webhook, issue_json, webhook

UNSET_ENV = {"GITHUB_EVENT_PATH": None, "JIRA_URL": None, "JIRA_EMAIL": None, "JIRA_API_TOKEN": None}


@pytest.fixture
def config_file(temp_dir: Path) -> Path:
    path = temp_dir / "config.yaml"
    path.write_text(yaml.safe_dump({
        "jira": {"url": "https://jira.example.com", "email": "bot@example.com", "api_token": "secret"},
        "artifacts": {"work_items_path": str(temp_dir / "work-items")},
    }))
    return path


@pytest.fixture
def payload_file(temp_dir: Path):
    def _write(data, name="payload.json") -> Path:
        path = temp_dir / name
        path.write_text(json.dumps(data))
        return path
    return _write


def invoke(args):
    return CliRunner().invoke(main, args, env=UNSET_ENV)


def mock_processor(result=None, error=None):
    processor = Mock()
    processor.process_webhook = AsyncMock(return_value=result, side_effect=error)
    return processor


class TestProcessCommand:

    def test_ignored_event(self, config_file, payload_file):
        path = payload_file({"webhookEvent": "jira:issue_deleted", "issue": issue_json("PCP1-1", "x")})
        result = invoke(["--config", str(config_file), "process", str(path)])

        assert result.exit_code == 0
        assert '"action": "ignored"' in result.output

    def test_system_error_exits_non_zero(self, config_file, payload_file):
        outcome = ProcessingResult(action=Action.SYSTEM_ERROR, error="boom", error_type="validation_failure")
        path = payload_file(criteria_webhook(criteria_issue()))

        with patch("jira_automation.cli.WebhookProcessor") as processor_class:
            processor_class.from_config.return_value = mock_processor(result=outcome)
            result = invoke(["--config", str(config_file), "process", str(path)])

        assert result.exit_code == 1
        assert "validation_failure" in result.output

    def test_processing_error_exits_non_zero(self, config_file, payload_file):
        path = payload_file(webhook("jira:issue_created", issue_json("PCP1-67", "Fix login bug")))

        with patch("jira_automation.cli.WebhookProcessor") as processor_class:
            processor_class.from_config.return_value = mock_processor(error=WebhookProcessingError("analysis failed"))
            result = invoke(["--config", str(config_file), "process", str(path)])

        assert result.exit_code == 1
        assert "analysis failed" in result.output

    def test_github_dispatch_payload_is_unwrapped(self, config_file, payload_file):
        inner = webhook("jira:issue_created", issue_json("PCP1-67", "Fix login bug"))
        path = payload_file({"action": "jira-webhook", "client_payload": inner}, name="event.json")
        processor = mock_processor(result=ProcessingResult(action=Action.REQUIREMENTS_ANALYZED, original_issue="PCP1-67"))

        with patch("jira_automation.cli.WebhookProcessor") as processor_class:
            processor_class.from_config.return_value = processor
            result = CliRunner().invoke(
                main,
                ["--config", str(config_file), "process"],
                env={**UNSET_ENV, "GITHUB_EVENT_PATH": str(path)},
            )

        assert result.exit_code == 0
        processor.process_webhook.assert_awaited_once_with(inner)

    def test_payload_from_stdin(self, config_file):
        data = {"webhookEvent": "jira:issue_created"}
        result = CliRunner().invoke(main, ["--config", str(config_file), "process"], input=json.dumps(data), env=UNSET_ENV)

        assert result.exit_code == 0
        assert "Missing issue data" in result.output

    @pytest.mark.filterwarnings("error::DeprecationWarning")
    def test_read_payload_from_stdin_stream(self, monkeypatch):
        monkeypatch.delenv("GITHUB_EVENT_PATH", raising=False)
        inner = webhook("jira:issue_created", issue_json("PCP1-67", "Fix login bug"))
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps({"client_payload": inner})))

        assert _read_payload(None) == inner

    def test_invalid_json(self, config_file, temp_dir):
        path = temp_dir / "broken.json"
        path.write_text("{not json")
        result = invoke(["--config", str(config_file), "process", str(path)])

        assert result.exit_code == 1
        assert "Could not read webhook payload" in result.output


class TestClassifyCommand:

    def test_criteria_issue(self, payload_file):
        path = payload_file(criteria_webhook(criteria_issue(labels=["claude-stage-analyzed"])))
        result = invoke(["classify", str(path)])

        assert result.exit_code == 0
        assert "deliverable_criteria" in result.output
        assert "analyzed" in result.output
        assert "PCP1-67" in result.output

    def test_rejected_event(self, payload_file):
        path = payload_file({"webhookEvent": "comment_created"})
        result = invoke(["classify", str(path)])

        assert result.exit_code == 0
        assert "Ignored" in result.output


class TestStageCommands:

    @pytest.fixture
    def jira(self) -> FakeJira:
        fake = FakeJira()
        fake.add(criteria_issue(labels=["claude-stage-implemented", "claude-force-retest"]))
        return fake

    def test_show(self, config_file, jira):
        with patch("jira_automation.cli.JiraClient", return_value=jira):
            result = invoke(["--config", str(config_file), "stage", "show", "PCP1-68"])

        assert result.exit_code == 0
        assert "Stage: implemented" in result.output
        assert "Overrides: retest" in result.output

    def test_set(self, config_file, jira):
        with patch("jira_automation.cli.JiraClient", return_value=jira):
            result = invoke(["--config", str(config_file), "stage", "set", "PCP1-68", "tested"])

        assert result.exit_code == 0
        assert jira.issues["PCP1-68"].labels == ["claude-force-retest", "claude-stage-tested"]

    def test_set_rejects_unknown_stage(self, config_file):
        result = invoke(["--config", str(config_file), "stage", "set", "PCP1-68", "deployed"])
        assert result.exit_code == 2

    def test_force(self, config_file, jira):
        with patch("jira_automation.cli.JiraClient", return_value=jira):
            result = invoke(["--config", str(config_file), "stage", "force", "PCP1-68", "reimplement"])

        assert result.exit_code == 0
        assert "claude-force-reimplement" in jira.issues["PCP1-68"].labels

    def test_show_missing_issue(self, config_file):
        with patch("jira_automation.cli.JiraClient", return_value=FakeJira()):
            result = invoke(["--config", str(config_file), "stage", "show", "PCP1-404"])
        assert result.exit_code == 1

    def test_requires_jira_settings(self, temp_dir):
        empty = temp_dir / "empty.yaml"
        empty.write_text("jira: {}\n")
        result = invoke(["--config", str(empty), "stage", "show", "PCP1-68"])

        assert result.exit_code == 1
        assert "not configured" in result.output


class TestArtifactsCommand:

    def test_lists_files(self, config_file, temp_dir):
        phase_dir = temp_dir / "work-items" / "PCP1-67" / "implementation"
        phase_dir.mkdir(parents=True)
        (phase_dir / "solution.js").write_text("x = 1;")

        result = invoke(["--config", str(config_file), "artifacts", "PCP1-67"])

        assert result.exit_code == 0
        assert "solution.js" in result.output
        assert "implementation" in result.output

    def test_no_artifacts(self, config_file):
        result = invoke(["--config", str(config_file), "artifacts", "PCP1-99"])

        assert result.exit_code == 0
        assert "No artifacts found" in result.output


class TestCheckCommand:

    def test_connection_ok(self, config_file):
        client = Mock()
        client.validate_connection = AsyncMock(return_value=True)
        with patch("jira_automation.cli.JiraClient", return_value=client):
            result = invoke(["--config", str(config_file), "check"])

        assert result.exit_code == 0
        assert "Jira connection OK" in result.output

    def test_connection_failed(self, config_file):
        client = Mock()
        client.validate_connection = AsyncMock(return_value=False)
        with patch("jira_automation.cli.JiraClient", return_value=client):
            result = invoke(["--config", str(config_file), "check"])

        assert result.exit_code == 1
