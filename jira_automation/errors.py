"""
Error types for Jira Automation

Each class corresponds to one failure category reported back to Jira.
"""

from typing import Optional


class AutomationError(Exception):
    """Base class for all automation failures."""

    error_type = "system_failure"


class CriteriaValidationError(AutomationError):
    """A criteria issue does not carry both provenance markers."""

    error_type = "validation_failure"


class ExtractionError(AutomationError):
    """The original issue key cannot be recovered from a criteria issue."""

    error_type = "extraction_failure"


class AdapterError(AutomationError):
    """A Claude call failed or returned unusable output."""

    error_type = "adapter_failure"


class ResponseParseError(AdapterError):
    """Claude's response did not match the expected JSON structure."""

    error_type = "parse_failure"


class PersistenceError(AutomationError):
    """Artifact files could not be written or read."""

    error_type = "persistence_failure"


class JiraApiError(AutomationError):
    """A Jira REST call failed (transport error or non-success response)."""

    error_type = "tracker_failure"

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WebhookProcessingError(AutomationError):
    """Raised by the top-level handler when a phase propagates a failure."""
