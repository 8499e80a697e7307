"""
Stage Tracker

Reads and advances the progress marker stored as labels on criteria issues,
and manages the manual ``force-<kind>`` override labels. Label writes are
bookkeeping: they report failure through BestEffortResult instead of raising.
"""

from typing import List

from rich.console import Console

from .config import get_config
from .errors import JiraApiError
from .jira_client import JiraClient
from .models import BestEffortResult, Issue, Stage

console = Console()


class StageTracker:
    """Stage and override label management for criteria issues."""

    def __init__(self, jira: JiraClient) -> None:
        self.jira = jira

    @staticmethod
    def current_stage(issue: Issue) -> Stage:
        """Highest stage whose label is present on the issue.

        Several stage labels on one issue is an inconsistency left by
        external tooling; the highest one wins and nothing is corrected.
        """
        return Stage.from_labels(issue.labels)

    @staticmethod
    def has_override_label(issue: Issue, kind: str) -> bool:
        return get_config().override_label(kind) in issue.labels

    async def _write_labels(self, key: str, labels: List[str]) -> None:
        await self.jira.update_issue(key, {"labels": labels})

    async def advance_stage(self, key: str, stage: Stage) -> BestEffortResult:
        """Replace any stage label on ``key`` with the label for ``stage``.

        Args:
            key: Criteria issue key
            stage: Stage to record

        Returns:
            BestEffortResult; ok is False with a warning if Jira rejected a call
        """
        stage_labels = Stage.labels()
        try:
            issue = await self.jira.get_issue(key)
            labels = [label for label in issue.labels if label not in stage_labels]
            if stage.label:
                labels.append(stage.label)
            await self._write_labels(key, labels)
        except JiraApiError as e:
            warning = f"Failed to update stage label for {key}: {e}"
            console.print(f"[yellow]{warning}[/yellow]")
            return BestEffortResult.failed(warning)

        console.print(f"[green]Updated stage label for {key} to {stage.label or 'none'}[/green]")
        return BestEffortResult.success()

    async def clear_override_label(self, key: str, kind: str) -> BestEffortResult:
        """Consume a ``force-<kind>`` label so the override applies to one run only."""
        label = get_config().override_label(kind)
        try:
            issue = await self.jira.get_issue(key)
            await self._write_labels(key, [existing for existing in issue.labels if existing != label])
        except JiraApiError as e:
            warning = f"Failed to remove override label {label} from {key}: {e}"
            console.print(f"[yellow]{warning}[/yellow]")
            return BestEffortResult.failed(warning)

        console.print(f"[blue]Removed override label {label} from {key}[/blue]")
        return BestEffortResult.success()

    async def add_override_label(self, key: str, kind: str) -> None:
        """Attach a ``force-<kind>`` label; raises JiraApiError on failure."""
        config = get_config()
        if kind not in config.OVERRIDE_KINDS:
            raise ValueError(f"Unknown override kind: {kind}. Must be one of: {', '.join(config.OVERRIDE_KINDS)}")

        label = config.override_label(kind)
        issue = await self.jira.get_issue(key)
        if label not in issue.labels:
            await self._write_labels(key, issue.labels + [label])
        console.print(f"[green]Added override label {label} to {key}[/green]")
