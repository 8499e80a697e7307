"""
Configuration and Constants for Jira Automation

Centralizes the marker strings, workflow statuses, label names and scoring
thresholds the webhook state machine depends on, plus the connection settings
for Jira and Claude. Values can be overridden via config YAML files or
environment variables.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


class Constants:
    """Centralized constants for Jira Automation.

    These can be overridden at runtime or via configuration files.
    """

    # Provenance markers written into summaries/descriptions
    CRITERIA_MARKER: str = "Deliverable Criteria:"
    TOUCHED_MARKER: str = "*Touched by Claude*"
    GENERATED_MARKER: str = "*Generated by Claude Automation System*"
    IMPLEMENTATION_MARKER: str = "Implementation:"
    CLAUDE_GENERATED_MARKER: str = "Claude Generated"

    # Issue types
    SUPPORTED_ISSUE_TYPES: List[str] = ["Story", "Task"]
    CRITERIA_ISSUE_TYPE: str = "Task"
    LINK_TYPE: str = "Relates"

    # Workflow statuses
    TESTING_STATUS: str = "Testing Criteria"
    READY_STATUSES: List[str] = [
        "Ready for Implementation",
        "In Progress",
        "Ready for Development",
    ]

    COMPLETION_STATUSES: Dict[str, str] = {
        "code": "Code Complete",
        "documentation": "Documentation Complete",
        "analysis": "Analysis Complete",
        "process": "Process Complete",
        "other": "Implementation Complete",
    }
    DEFAULT_COMPLETION_STATUS: str = "Implementation Complete"

    # Labels
    LABEL_PREFIX: str = os.getenv("JIRA_AUTO_LABEL_PREFIX", "claude-")
    OVERRIDE_KINDS: List[str] = ["reimplement", "retest"]

    # Original issue key recovery
    PROJECT_KEY_PATTERN: str = os.getenv("JIRA_AUTO_PROJECT_KEY_PATTERN", r"PCP1-\d+")

    # Evaluation thresholds
    PASSING_SCORE: int = 80
    MAX_CATEGORY_SCORE: int = 25
    MIN_REQUIREMENTS_COVERAGE: int = 20
    IMPLEMENTATION_PASSING_QUALITY: float = 7.0

    # Artifact storage
    WORK_ITEMS_PATH: str = os.getenv("JIRA_AUTO_WORK_ITEMS_PATH", "work-items")
    ARTIFACT_PREVIEW_CHARS: int = 2000

    @property
    def AUTOMATION_MARKERS(self) -> List[str]:
        """Text that marks an issue as created or touched by the automation."""
        return [
            self.CLAUDE_GENERATED_MARKER,
            self.TOUCHED_MARKER,
            self.CRITERIA_MARKER,
            self.IMPLEMENTATION_MARKER,
            self.GENERATED_MARKER,
        ]

    @property
    def ACTIONABLE_STATUSES(self) -> List[str]:
        """Statuses whose transitions are worth processing for criteria issues."""
        return self.READY_STATUSES + [self.TESTING_STATUS]

    def stage_label(self, stage_name: str) -> str:
        """Label name for a stage value, e.g. ``claude-stage-tested``."""
        return f"{self.LABEL_PREFIX}stage-{stage_name}"

    def override_label(self, kind: str) -> str:
        """Label name for a manual re-run override, e.g. ``claude-force-retest``."""
        return f"{self.LABEL_PREFIX}force-{kind}"


@dataclass
class JiraConfig:
    """Connection settings for the Jira REST API."""
    base_url: str = ""
    email: str = ""
    api_token: str = ""
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> 'JiraConfig':
        return cls(
            base_url=os.getenv("JIRA_URL", ""),
            email=os.getenv("JIRA_EMAIL", ""),
            api_token=os.getenv("JIRA_API_TOKEN", ""),
            timeout=float(os.getenv("JIRA_TIMEOUT", "30")),
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.base_url and self.email and self.api_token)


@dataclass
class ClaudeConfig:
    """Settings for Claude queries issued through the agent SDK."""
    model: Optional[str] = None
    max_turns: int = 1
    cwd: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'ClaudeConfig':
        return cls(
            model=os.getenv("CLAUDE_MODEL") or None,
            max_turns=int(os.getenv("CLAUDE_MAX_TURNS", "1")),
        )


@dataclass
class AutomationConfig:
    """Complete runtime configuration injected into every collaborator."""
    jira: JiraConfig = field(default_factory=JiraConfig)
    claude: ClaudeConfig = field(default_factory=ClaudeConfig)
    work_items_path: str = Constants.WORK_ITEMS_PATH

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AutomationConfig':
        """Build configuration from a parsed YAML mapping.

        Environment variables fill in any value the mapping leaves out.

        Args:
            data: Mapping with optional ``jira``, ``claude`` and ``artifacts`` sections

        Returns:
            AutomationConfig with file values taking precedence over the environment
        """
        jira_env = JiraConfig.from_env()
        claude_env = ClaudeConfig.from_env()

        jira_data = data.get('jira') or {}
        claude_data = data.get('claude') or {}
        artifacts_data = data.get('artifacts') or {}

        jira = JiraConfig(
            base_url=jira_data.get('url', jira_env.base_url),
            email=jira_data.get('email', jira_env.email),
            api_token=jira_data.get('api_token', jira_env.api_token),
            timeout=float(jira_data.get('timeout', jira_env.timeout)),
        )
        claude = ClaudeConfig(
            model=claude_data.get('model', claude_env.model),
            max_turns=int(claude_data.get('max_turns', claude_env.max_turns)),
            cwd=claude_data.get('cwd', claude_env.cwd),
        )
        return cls(
            jira=jira,
            claude=claude,
            work_items_path=artifacts_data.get('work_items_path', Constants.WORK_ITEMS_PATH),
        )

    @classmethod
    def from_env(cls) -> 'AutomationConfig':
        return cls.from_dict({})


CONFIG_SEARCH_PATHS = [
    Path("config/config.yaml"),
    Path("config/default_config.yaml"),
]


def load_config(path: Optional[Path] = None) -> AutomationConfig:
    """Load configuration from a YAML file, falling back to the environment.

    Args:
        path: Explicit config file. When omitted the default search paths are tried.

    Returns:
        AutomationConfig for this process

    Raises:
        FileNotFoundError: If an explicit path was given and does not exist
        yaml.YAMLError: If the config file is not valid YAML
    """
    if path is not None:
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        candidates = [path]
    else:
        candidates = CONFIG_SEARCH_PATHS

    for config_path in candidates:
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
            return AutomationConfig.from_dict(data)

    return AutomationConfig.from_env()


# Configuration singleton that can be updated at runtime
_config: Optional[Constants] = None


def get_config() -> Constants:
    """Get configuration singleton.

    Returns:
        Constants object with current configuration
    """
    global _config
    if _config is None:
        _config = Constants()
    return _config


def update_config(**kwargs) -> None:
    """Update configuration values at runtime.

    Args:
        **kwargs: Configuration key-value pairs to update

    Example:
        update_config(PASSING_SCORE=85, TESTING_STATUS="QA Review")
    """
    config = get_config()
    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            raise ValueError(f"Unknown configuration key: {key}")
