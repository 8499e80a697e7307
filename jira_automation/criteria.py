"""
Criteria Issue Documents

Renders the description of a generated criteria issue and the "touched"
block appended to original issues, and parses criteria issues back:
provenance validation, original key recovery, and requirement sections.
"""

import re
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .config import get_config
from .errors import CriteriaValidationError, ExtractionError
from .models import AnalysisResult, CriteriaRequirements, Issue

BULLET = "•"

GENERIC_KEY_PATTERN = r"[A-Z]{2,}-\d+"
PERMISSIVE_KEY_PATTERN = r"[A-Za-z]+\d*-\d+"
DESCRIPTION_KEY_PATTERN = r"\*\*Original Issue:\*\* ([A-Z]+-\d+)"


def _bullets(items: List[str]) -> str:
    return "\n".join(f"{BULLET} {item}" for item in items)


def _timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).isoformat()


def criteria_summary(original: Issue) -> str:
    return f"{get_config().CRITERIA_MARKER} {original.key} - {original.summary}"


def render_criteria_description(original: Issue, analysis: AnalysisResult, now: Optional[datetime] = None) -> str:
    """Render the structured description of a new criteria issue.

    Args:
        original: The human-authored issue that was analyzed
        analysis: Requirements analysis for it
        now: Analysis timestamp (defaults to the current time)

    Returns:
        Description text ending in the generated-by marker and the
        move-to-Ready instruction
    """
    config = get_config()
    criteria = analysis.delivery_criteria
    tests = analysis.validation_tests
    approach = analysis.technical_approach
    effort = analysis.estimated_effort

    return f"""**Claude Generated Delivery Criteria**

**Original Issue:** {original.key} - {original.summary}
**Analysis Date:** {_timestamp(now)}

## Functional Requirements
{_bullets(criteria.functional_requirements)}

## Technical Requirements
{_bullets(criteria.technical_requirements)}

## Acceptance Criteria
{_bullets(criteria.acceptance_criteria)}

## Validation Tests
**Unit Tests:**
{_bullets(tests.unit_tests)}

**Integration Tests:**
{_bullets(tests.integration_tests)}

## Technical Approach
**Architecture:** {approach.architecture}
**Components:** {', '.join(approach.components)}
**Dependencies:** {', '.join(approach.dependencies)}

## Definition of Done
{_bullets(criteria.definition_of_done)}

## Estimated Effort
**Story Points:** {effort.story_points}
**Complexity:** {effort.complexity}
**Hours:** {effort.hours}

---
{config.GENERATED_MARKER}
**Instructions:** Move this issue to "{config.READY_STATUSES[0]}" to trigger automated development."""


def render_touched_marker(analysis: AnalysisResult, now: Optional[datetime] = None) -> str:
    """Block appended to an original issue's description after analysis."""
    return (
        f"\n\n---\n{get_config().TOUCHED_MARKER} - Requirements analyzed on {_timestamp(now)}\n\n"
        f"**Analysis Summary:**\n"
        f"{BULLET} {len(analysis.delivery_criteria.functional_requirements)} functional requirements identified\n"
        f"{BULLET} {len(analysis.validation_tests.unit_tests)} test scenarios defined\n"
        f"{BULLET} Estimated effort: {analysis.estimated_effort.story_points} story points\n\n"
        f"Detailed delivery criteria created in linked issue."
    )


def validate_criteria_issue(issue: Issue) -> None:
    """Check that a criteria issue carries both provenance markers.

    Raises:
        CriteriaValidationError: If the summary marker or the generated-by
            description marker is missing
    """
    config = get_config()
    if config.CRITERIA_MARKER not in issue.summary:
        raise CriteriaValidationError(
            f"Deliverable criteria must be Claude-generated: summary of {issue.key} lacks '{config.CRITERIA_MARKER}'"
        )
    if config.GENERATED_MARKER not in issue.description:
        raise CriteriaValidationError(
            f"Deliverable criteria must be Claude-generated: description of {issue.key} lacks the generation marker"
        )


def find_original_key(summary: str, description: str) -> Optional[str]:
    """Recover the original issue key from a criteria issue's text.

    Summary patterns are tried from most to least specific, then the
    ``**Original Issue:**`` line of the description.
    """
    if summary:
        for pattern in (get_config().PROJECT_KEY_PATTERN, GENERIC_KEY_PATTERN, PERMISSIVE_KEY_PATTERN):
            match = re.search(f"({pattern})", summary)
            if match:
                return match.group(1)

    if description:
        match = re.search(DESCRIPTION_KEY_PATTERN, description)
        if match:
            return match.group(1)

    return None


def extract_original_key(issue: Issue) -> str:
    """Like find_original_key, but raises ExtractionError when nothing matches."""
    key = find_original_key(issue.summary, issue.description)
    if key is None:
        raise ExtractionError(f"Could not extract original issue key from deliverable criteria {issue.key}")
    return key


def extract_section(text: str, section_name: str, bullets: Tuple[str, ...] = (BULLET,)) -> List[str]:
    """Bulleted items under a ``## <section_name>`` heading.

    A missing section yields an empty list. Lines that are not bullets
    (sub-headings, blank lines) are skipped.

    Args:
        text: Criteria issue description
        section_name: Heading text, matched case-insensitively
        bullets: Line prefixes accepted as list items
    """
    match = re.search(rf"## {re.escape(section_name)}(.*?)(?=##|\Z)", text, re.IGNORECASE | re.DOTALL)
    if not match:
        return []

    items = []
    for line in match.group(1).split("\n"):
        stripped = line.strip()
        for bullet in bullets:
            if stripped.startswith(bullet):
                item = stripped[len(bullet):].strip()
                if item:
                    items.append(item)
                break
    return items


def extract_requirements(issue: Issue, bullets: Tuple[str, ...] = (BULLET,)) -> CriteriaRequirements:
    description = issue.description
    return CriteriaRequirements(
        functional_requirements=extract_section(description, "Functional Requirements", bullets),
        technical_requirements=extract_section(description, "Technical Requirements", bullets),
        acceptance_criteria=extract_section(description, "Acceptance Criteria", bullets),
        validation_tests=extract_section(description, "Validation Tests", bullets),
        definition_of_done=extract_section(description, "Definition of Done", bullets),
    )


def extract_effort_details(description: str) -> Dict[str, Optional[str]]:
    """Story points, complexity and hours from the Estimated Effort section."""
    patterns = {
        "story_points": r"\*\*Story Points:\*\* (\d+)",
        "complexity": r"\*\*Complexity:\*\* (\w+)",
        "hours": r"\*\*Hours:\*\* (\d+)",
    }
    details: Dict[str, Optional[str]] = {}
    for name, pattern in patterns.items():
        match = re.search(pattern, description)
        details[name] = match.group(1) if match else None
    return details
