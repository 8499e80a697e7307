"""
Tests for configuration loading and the runtime constants singleton.
"""

from pathlib import Path

import pytest
import yaml

from jira_automation.config import AutomationConfig, get_config, load_config, update_config


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("JIRA_URL", "JIRA_EMAIL", "JIRA_API_TOKEN", "JIRA_TIMEOUT", "CLAUDE_MODEL", "CLAUDE_MAX_TURNS"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestLoadConfig:

    def test_yaml_values(self, clean_env, temp_dir: Path):
        path = temp_dir / "config.yaml"
        path.write_text(yaml.safe_dump({
            "jira": {"url": "https://jira.example.com", "email": "bot@example.com", "api_token": "t", "timeout": 10},
            "claude": {"model": "sonnet", "max_turns": 2},
            "artifacts": {"work_items_path": "out"},
        }))

        config = load_config(path)

        assert config.jira.base_url == "https://jira.example.com"
        assert config.jira.timeout == 10.0
        assert config.jira.is_complete
        assert config.claude.model == "sonnet"
        assert config.claude.max_turns == 2
        assert config.work_items_path == "out"

    def test_environment_fills_gaps(self, clean_env, temp_dir: Path):
        clean_env.setenv("JIRA_URL", "https://env.example.com")
        clean_env.setenv("JIRA_EMAIL", "env@example.com")
        clean_env.setenv("JIRA_API_TOKEN", "env-token")
        clean_env.setenv("CLAUDE_MAX_TURNS", "3")
        path = temp_dir / "config.yaml"
        path.write_text("jira:\n  email: file@example.com\n")

        config = load_config(path)

        assert config.jira.base_url == "https://env.example.com"
        assert config.jira.email == "file@example.com"
        assert config.jira.api_token == "env-token"
        assert config.claude.max_turns == 3

    def test_missing_explicit_file(self, temp_dir: Path):
        with pytest.raises(FileNotFoundError):
            load_config(temp_dir / "nope.yaml")

    def test_incomplete_jira_settings(self, clean_env):
        assert not AutomationConfig.from_env().jira.is_complete


class TestConstants:

    def test_label_names(self):
        config = get_config()
        assert config.stage_label("tested") == "claude-stage-tested"
        assert config.override_label("retest") == "claude-force-retest"

    def test_update_config(self):
        update_config(PASSING_SCORE=85, LABEL_PREFIX="bot-")
        config = get_config()
        assert config.PASSING_SCORE == 85
        assert config.stage_label("analyzed") == "bot-stage-analyzed"

    def test_derived_values_follow_updates(self):
        update_config(TESTING_STATUS="QA Review", CRITERIA_MARKER="Criteria for:")
        config = get_config()
        assert config.ACTIONABLE_STATUSES[-1] == "QA Review"
        assert "Testing Criteria" not in config.ACTIONABLE_STATUSES
        assert "Criteria for:" in config.AUTOMATION_MARKERS
        assert "Deliverable Criteria:" not in config.AUTOMATION_MARKERS

    def test_update_unknown_key(self):
        with pytest.raises(ValueError):
            update_config(NOT_A_SETTING=1)
