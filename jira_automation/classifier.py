"""
Classification Engine

Pure functions mapping a webhook event to exactly one processing intent.
Nothing here touches Jira, Claude or the filesystem.
"""

from typing import Optional

from .config import get_config
from .models import Classification, EventType, Issue, WebhookEvent


def rejection_reason(event: WebhookEvent) -> Optional[str]:
    """Explain why an event is not actionable.

    Args:
        event: Inbound webhook event

    Returns:
        Human readable reason, or None when the event should be processed
    """
    config = get_config()

    if event.event_type is EventType.OTHER:
        return f"Unsupported event type: {event.raw_event}"

    issue = event.issue
    if issue is None or not issue.key:
        return "Missing issue data in webhook payload"

    if issue.issue_type not in config.SUPPORTED_ISSUE_TYPES:
        return f"Issue type '{issue.issue_type}' not supported for automation"

    if event.event_type is EventType.UPDATED:
        if not event.has_field_change("status"):
            return "Updated event but no status change"

        if config.CRITERIA_MARKER not in issue.summary:
            return "Regular issue status update"

        if issue.status not in config.ACTIONABLE_STATUSES:
            return f"Deliverable criteria issue not in actionable status: {issue.status}"

    return None


def is_actionable_event(event: WebhookEvent) -> bool:
    return rejection_reason(event) is None


def has_automation_markers(issue: Issue) -> bool:
    """True if the summary or description carries any provenance marker."""
    text = f"{issue.summary}\n{issue.description}"
    return any(marker in text for marker in get_config().AUTOMATION_MARKERS)


def classify_issue(issue: Issue) -> Classification:
    """Classify an issue snapshot that already passed event validation.

    Human-authored issues need analysis; criteria issues react to their
    status (testing is checked before the ready statuses); every other
    marker-bearing issue is left alone.
    """
    config = get_config()

    if not has_automation_markers(issue):
        return Classification.INITIAL_INQUIRY

    if config.CRITERIA_MARKER in issue.summary:
        if issue.status == config.TESTING_STATUS:
            return Classification.TESTING_CRITERIA
        if issue.status in config.READY_STATUSES:
            return Classification.DELIVERABLE_CRITERIA

    return Classification.IGNORE


def classify_event(event: WebhookEvent) -> Classification:
    if not is_actionable_event(event):
        return Classification.IGNORE
    return classify_issue(event.issue)
