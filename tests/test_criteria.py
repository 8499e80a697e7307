"""
Tests for criteria issue rendering and parsing.
"""

from datetime import datetime

import pytest

from jira_automation.config import update_config
from jira_automation.criteria import (
    criteria_summary,
    extract_effort_details,
    extract_original_key,
    extract_requirements,
    extract_section,
    find_original_key,
    render_criteria_description,
    render_touched_marker,
    validate_criteria_issue,
)
from jira_automation.errors import CriteriaValidationError, ExtractionError
from jira_automation.models import AnalysisResult, Issue
from tests.conftest import CRITERIA_DESCRIPTION, analysis_json, criteria_issue


@pytest.fixture
def analysis() -> AnalysisResult:
    return AnalysisResult.from_dict(analysis_json())


class TestOriginalKeyExtraction:

    def test_key_in_summary(self):
        assert find_original_key("Deliverable Criteria: PCP1-67 - Fix login bug", "") == "PCP1-67"

    def test_generic_key_in_summary(self):
        assert find_original_key("Deliverable Criteria: OPS-9 - Rotate keys", "") == "OPS-9"

    def test_description_fallback(self):
        summary = "Deliverable Criteria: login fix"
        description = "**Original Issue:** ABC-12 - Something"
        assert find_original_key(summary, description) == "ABC-12"

    def test_nothing_found(self):
        issue = Issue(key="PCP1-68", summary="Deliverable Criteria: login fix", description="no reference")
        assert find_original_key(issue.summary, issue.description) is None
        with pytest.raises(ExtractionError):
            extract_original_key(issue)

    def test_configured_project_pattern(self):
        update_config(PROJECT_KEY_PATTERN=r"web\d-\d+")
        assert find_original_key("Deliverable Criteria: web2-5 and OPS-1", "") == "web2-5"


class TestValidation:

    def test_valid_criteria_issue(self):
        validate_criteria_issue(criteria_issue())

    def test_missing_summary_marker(self):
        with pytest.raises(CriteriaValidationError):
            validate_criteria_issue(criteria_issue(summary="PCP1-67 - Fix login bug"))

    def test_missing_generated_marker(self):
        with pytest.raises(CriteriaValidationError) as exc_info:
            validate_criteria_issue(criteria_issue(description="## Functional Requirements\n• x"))
        assert exc_info.value.error_type == "validation_failure"


class TestSectionExtraction:

    def test_requirements_from_description(self):
        requirements = extract_requirements(criteria_issue())
        assert requirements.functional_requirements == [
            "Users can log in with valid credentials",
            "Invalid credentials show an error",
        ]
        assert requirements.technical_requirements == ["Session cookie is HttpOnly"]
        assert requirements.acceptance_criteria == ["Login succeeds for valid users"]
        assert requirements.validation_tests == ["Test credential check"]
        assert requirements.definition_of_done == ["Code reviewed"]

    def test_missing_section_is_empty(self):
        assert extract_section(CRITERIA_DESCRIPTION, "Security Review") == []

    def test_heading_is_case_insensitive(self):
        assert extract_section("## functional requirements\n• a\n## Next", "Functional Requirements") == ["a"]

    def test_dash_bullets_when_allowed(self):
        text = "## Acceptance Criteria\n- first\n• second\nplain line\n"
        assert extract_section(text, "Acceptance Criteria") == ["second"]
        assert extract_section(text, "Acceptance Criteria", bullets=("•", "-")) == ["first", "second"]

    def test_effort_details(self):
        assert extract_effort_details(CRITERIA_DESCRIPTION) == {"story_points": "3", "complexity": "Low", "hours": "8"}


class TestRendering:

    def test_summary(self):
        original = Issue(key="PCP1-67", summary="Fix login bug")
        assert criteria_summary(original) == "Deliverable Criteria: PCP1-67 - Fix login bug"

    def test_description_round_trips_through_parser(self, analysis):
        original = Issue(key="PCP1-67", summary="Fix login bug")
        description = render_criteria_description(original, analysis, now=datetime(2026, 1, 5))
        issue = Issue(key="PCP1-68", issue_type="Task", summary=criteria_summary(original), description=description)

        validate_criteria_issue(issue)
        assert "**Original Issue:** PCP1-67 - Fix login bug" in description
        assert description.rstrip().endswith('to trigger automated development.')
        assert extract_requirements(issue).functional_requirements == ["Users can log in", "Errors are shown"]
        assert extract_effort_details(description)["story_points"] == "3"

    def test_touched_marker(self, analysis):
        block = render_touched_marker(analysis, now=datetime(2026, 1, 5, 9, 30))
        assert block.startswith("\n\n---\n*Touched by Claude* - Requirements analyzed on 2026-01-05T09:30:00")
        assert "• 2 functional requirements identified" in block
        assert "Estimated effort: 3 story points" in block
