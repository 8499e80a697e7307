#!/usr/bin/env python3
"""
Jira Automation CLI

Main command-line interface for Jira Automation using Click.
Provides commands for processing webhook payloads, inspecting stage labels,
and browsing stored artifacts.
"""

import asyncio
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .artifacts import ArtifactStore
from .classifier import classify_issue, rejection_reason
from .config import AutomationConfig, get_config, load_config
from .criteria import find_original_key
from .errors import JiraApiError, WebhookProcessingError
from .jira_client import JiraClient
from .models import Action, Stage, WebhookEvent
from .orchestrator import WebhookProcessor
from .stage_tracker import StageTracker

console = Console()


class Config:
    """Global configuration object passed between commands."""

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: bool = False
        self._settings: Optional[AutomationConfig] = None

    @property
    def settings(self) -> AutomationConfig:
        """Runtime configuration, loaded on first use."""
        if self._settings is None:
            self._settings = load_config(self.config_path)
        return self._settings


pass_config = click.make_pass_decorator(Config, ensure=True)


def _read_payload(payload_path: Optional[Path]) -> Dict[str, Any]:
    """Load a webhook body from a file, the GitHub event file, or stdin.

    A GitHub ``repository_dispatch`` event wraps the Jira body in
    ``client_payload``; that wrapper is removed.
    """
    if payload_path is not None:
        text = payload_path.read_text()
    elif os.getenv("GITHUB_EVENT_PATH"):
        text = Path(os.environ["GITHUB_EVENT_PATH"]).read_text()
    else:
        text = sys.stdin.read()

    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Webhook payload must be a JSON object")
    if isinstance(data.get("client_payload"), dict):
        return data["client_payload"]
    return data


def _load_payload_or_exit(config: Config, payload_path: Optional[Path]) -> Dict[str, Any]:
    try:
        return _read_payload(payload_path)
    except (OSError, ValueError) as e:
        console.print(f"[red]Could not read webhook payload: {e}[/red]")
        if config.verbose:
            raise
        sys.exit(1)


def _jira_client(config: Config) -> JiraClient:
    jira_config = config.settings.jira
    if not jira_config.is_complete:
        console.print("[red]Jira connection is not configured. Set JIRA_URL, JIRA_EMAIL and JIRA_API_TOKEN.[/red]")
        sys.exit(1)
    return JiraClient(jira_config)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Path to a YAML configuration file")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@pass_config
def main(config: Config, config_path: Optional[Path], verbose: bool) -> None:
    """Jira Automation - Claude-driven requirements, implementation and testing."""
    config.verbose = verbose
    config.config_path = config_path


@main.command()
@click.argument("payload", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_config
def process(config: Config, payload: Optional[Path]) -> None:
    """Process a Jira webhook payload (file, $GITHUB_EVENT_PATH, or stdin)."""
    data = _load_payload_or_exit(config, payload)

    try:
        processor = WebhookProcessor.from_config(config.settings)
        result = asyncio.run(processor.process_webhook(data))
    except WebhookProcessingError as e:
        console.print(f"[red]{e}[/red]")
        if config.verbose:
            raise
        sys.exit(1)

    console.print_json(json.dumps(result.to_dict(), default=str))

    for warning in result.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")

    if result.action is Action.SYSTEM_ERROR:
        console.print(f"[red]Processing ended with a system error ({result.error_type})[/red]")
        sys.exit(1)

    console.print(f"[green]Webhook processed: {result.action.value}[/green]")


@main.command()
@click.argument("payload", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@pass_config
def classify(config: Config, payload: Path) -> None:
    """Show how a webhook payload would be routed, without calling Jira or Claude."""
    data = _load_payload_or_exit(config, payload)
    event = WebhookEvent.from_payload(data)

    reason = rejection_reason(event)
    if reason is not None:
        console.print(f"[yellow]Ignored: {reason}[/yellow]")
        return

    issue = event.issue
    console.print(f"[blue]Issue:[/blue] {issue.key} ({issue.issue_type}, status: {issue.status})")
    console.print(f"[blue]Classification:[/blue] {classify_issue(issue).value}")
    console.print(f"[blue]Stage:[/blue] {StageTracker.current_stage(issue).value}")

    original_key = find_original_key(issue.summary, issue.description)
    if original_key:
        console.print(f"[blue]Original issue:[/blue] {original_key}")


@main.group()
def stage() -> None:
    """Inspect and manage stage labels on criteria issues."""
    pass


@stage.command()
@click.argument("key")
@pass_config
def show(config: Config, key: str) -> None:
    """Show the recorded stage and override labels for KEY."""
    jira = _jira_client(config)

    try:
        issue = asyncio.run(jira.get_issue(key))
    except JiraApiError as e:
        console.print(f"[red]Error fetching {key}: {e}[/red]")
        if config.verbose:
            raise
        sys.exit(1)

    settings = get_config()
    console.print(f"[green]{issue.key}[/green]: {issue.summary}")
    console.print(f"  Status: {issue.status}")
    console.print(f"  Stage: {StageTracker.current_stage(issue).value}")
    overrides = [kind for kind in settings.OVERRIDE_KINDS if StageTracker.has_override_label(issue, kind)]
    console.print(f"  Overrides: {', '.join(overrides) if overrides else 'none'}")


@stage.command(name="set")
@click.argument("key")
@click.argument("value", type=click.Choice([s.value for s in Stage]))
@pass_config
def set_stage(config: Config, key: str, value: str) -> None:
    """Record stage VALUE on KEY, replacing any existing stage label."""
    tracker = StageTracker(_jira_client(config))
    outcome = asyncio.run(tracker.advance_stage(key, Stage(value)))
    if not outcome.ok:
        sys.exit(1)


@stage.command()
@click.argument("key")
@click.argument("kind", type=click.Choice(get_config().OVERRIDE_KINDS))
@pass_config
def force(config: Config, key: str, kind: str) -> None:
    """Add a one-shot override label so the next KIND run is not skipped."""
    tracker = StageTracker(_jira_client(config))

    try:
        asyncio.run(tracker.add_override_label(key, kind))
    except JiraApiError as e:
        console.print(f"[red]Error adding override label to {key}: {e}[/red]")
        if config.verbose:
            raise
        sys.exit(1)


@main.command()
@click.argument("key")
@pass_config
def artifacts(config: Config, key: str) -> None:
    """List stored artifacts for original issue KEY."""
    store = ArtifactStore(config.settings.work_items_path)
    entries = store.list_files(key)

    if not entries:
        console.print(f"[yellow]No artifacts found for {key} in {store.base_path}[/yellow]")
        return

    table = Table(title=f"Artifacts for {key}")
    table.add_column("Phase", style="cyan", no_wrap=True)
    table.add_column("File", style="white")
    table.add_column("Size", style="blue", justify="right")

    for phase, name, size in entries:
        table.add_row(phase, name, f"{size} B")

    console.print(table)


@main.command()
@pass_config
def check(config: Config) -> None:
    """Validate the Jira connection settings."""
    jira = _jira_client(config)
    console.print(f"[blue]Checking Jira connection to {config.settings.jira.base_url}...[/blue]")

    if not asyncio.run(jira.validate_connection()):
        console.print("[red]Jira connection failed[/red]")
        sys.exit(1)

    console.print("[green]Jira connection OK[/green]")


if __name__ == "__main__":
    main()
