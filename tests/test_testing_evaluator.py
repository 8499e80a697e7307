"""
Tests for evaluation scoring, recommendations and the evaluation adapter.
"""

import pytest

from jira_automation.artifacts import save_implementation
from jira_automation.errors import PersistenceError, ResponseParseError
from jira_automation.models import Evaluation, Implementation, ImplementationResult, ValidationArtifact
from jira_automation.testing_evaluator import (
    TestingEvaluator,
    calculate_final_score,
    generate_recommendation,
    generate_usage_instructions,
)
from tests.conftest import as_response, criteria_issue, evaluation_json, implementation_json


def critical(description="Login crashes on empty password"):
    return {"severity": "CRITICAL", "type": "FUNCTIONAL", "description": description,
            "impact": "Users locked out", "recommendation": "Guard empty input"}


class TestFinalScore:

    def test_passing_evaluation(self):
        score = calculate_final_score(Evaluation.from_dict(evaluation_json((22, 20, 20, 20))))
        assert score.overall_score == 82
        assert score.core_requirements_met
        assert score.meets_criteria

    def test_critical_error_fails_high_score(self):
        evaluation = Evaluation.from_dict(evaluation_json((25, 25, 25, 20), errors=[critical()]))
        score = calculate_final_score(evaluation)
        assert score.overall_score == 95
        assert score.critical_errors == 1
        assert not score.meets_criteria

    def test_high_error_fails(self):
        error = dict(critical(), severity="HIGH")
        score = calculate_final_score(Evaluation.from_dict(evaluation_json((25, 25, 25, 25), errors=[error])))
        assert score.high_errors == 1
        assert not score.meets_criteria

    def test_medium_errors_do_not_block(self):
        error = dict(critical(), severity="MEDIUM")
        score = calculate_final_score(Evaluation.from_dict(evaluation_json((22, 20, 20, 20), errors=[error])))
        assert score.error_count == 1
        assert score.meets_criteria

    def test_low_requirements_coverage_fails(self):
        score = calculate_final_score(Evaluation.from_dict(evaluation_json((19, 25, 25, 25))))
        assert score.overall_score == 94
        assert not score.core_requirements_met
        assert not score.meets_criteria

    def test_not_ready_fails(self):
        assert not calculate_final_score(Evaluation.from_dict(evaluation_json(ready=False))).meets_criteria

    def test_below_passing_score_fails(self):
        assert not calculate_final_score(Evaluation.from_dict(evaluation_json((20, 19, 20, 20)))).meets_criteria

    def test_scores_are_clamped(self):
        score = calculate_final_score(Evaluation.from_dict(evaluation_json((40, -5, 25, 25))))
        assert score.breakdown["requirementsCoverage"] == 25
        assert score.breakdown["qualityCraftsmanship"] == 0
        assert score.overall_score == 75


class TestRecommendation:

    def test_approved(self):
        evaluation = Evaluation.from_dict(evaluation_json())
        recommendation = generate_recommendation(calculate_final_score(evaluation), evaluation)
        assert recommendation.status == "APPROVED"
        assert recommendation.critical_issues == []

    def test_needs_work_lists_reasons(self):
        evaluation = Evaluation.from_dict(evaluation_json((25, 25, 25, 20), errors=[critical()]))
        recommendation = generate_recommendation(calculate_final_score(evaluation), evaluation)
        assert recommendation.status == "NEEDS_WORK"
        assert recommendation.action == "RETURN_FOR_REVISION"
        assert "1 critical" in recommendation.summary
        assert [issue.description for issue in recommendation.critical_issues] == ["Login crashes on empty password"]


class TestUsageInstructions:

    def test_code_with_package_and_tests(self):
        text = generate_usage_instructions("code", {"package.json": "{}", "tests.js": ""}, ready=True)
        assert "npm install" in text
        assert "node solution.js" in text
        assert "production" in text

    def test_code_without_extras(self):
        text = generate_usage_instructions("code", {}, ready=False)
        assert "No package.json found" in text
        assert "development/testing" in text

    @pytest.mark.parametrize("implementation_type,needle", [
        ("documentation", "document.md"),
        ("analysis", "analysis.md"),
        ("process", "process.md"),
        ("other", "README.md"),
    ])
    def test_other_types(self, implementation_type, needle):
        assert needle in generate_usage_instructions(implementation_type, {}, ready=True)


class TestTestingEvaluator:

    @pytest.fixture
    def stored_result(self, store) -> ImplementationResult:
        result = ImplementationResult(
            implementation=Implementation.from_dict(implementation_json()),
            tests=ValidationArtifact(type="code", content="describe()", validation_type="Automated Testing"),
            documentation="# Readme",
        )
        save_implementation(store, "PCP1-67", result)
        return result

    @pytest.mark.asyncio
    async def test_evaluates_stored_artifacts(self, claude, store, stored_result):
        claude.ask.return_value = as_response(evaluation_json())
        result = await TestingEvaluator(claude, store).evaluate_implementation(criteria_issue(), "PCP1-67", stored_result)

        assert result.original_issue == "PCP1-67"
        assert result.criteria_issue == "PCP1-68"
        assert result.implementation_type == "code"
        assert result.final_score.meets_criteria
        assert result.recommendation.status == "APPROVED"

        prompt = claude.ask.call_args.args[0]
        assert "solution.js" in prompt
        assert "Users can log in with valid credentials" in prompt
        assert "Code reviewed" in prompt
        assert "Story Points: 3, Complexity: Low, Hours: 8" in prompt

    @pytest.mark.asyncio
    async def test_effort_not_specified(self, claude, store, stored_result):
        claude.ask.return_value = as_response(evaluation_json())
        issue = criteria_issue(description="## Functional Requirements\n• Users can log in\n")
        await TestingEvaluator(claude, store).evaluate_implementation(issue, "PCP1-67", stored_result)

        prompt = claude.ask.call_args.args[0]
        assert "**Estimated Effort:**\nNot specified" in prompt

    @pytest.mark.asyncio
    async def test_large_artifacts_are_truncated(self, claude, store, stored_result):
        store.write_files("PCP1-67", "implementation", {"big.txt": "x" * 5000})
        claude.ask.return_value = as_response(evaluation_json())
        await TestingEvaluator(claude, store).evaluate_implementation(criteria_issue(), "PCP1-67", stored_result)

        prompt = claude.ask.call_args.args[0]
        assert "x" * 2000 + "...[truncated]" in prompt
        assert "x" * 2001 not in prompt

    @pytest.mark.asyncio
    async def test_malformed_evaluation(self, claude, store, stored_result):
        claude.ask.return_value = as_response({"requirementsCoverage": {"score": 20}})
        with pytest.raises(ResponseParseError):
            await TestingEvaluator(claude, store).evaluate_implementation(criteria_issue(), "PCP1-67", stored_result)

    @pytest.mark.asyncio
    async def test_unknown_severity_is_malformed(self, claude, store, stored_result):
        claude.ask.return_value = as_response(evaluation_json(errors=[dict(critical(), severity="BLOCKER")]))
        with pytest.raises(ResponseParseError):
            await TestingEvaluator(claude, store).evaluate_implementation(criteria_issue(), "PCP1-67", stored_result)

    @pytest.mark.asyncio
    async def test_missing_artifacts(self, claude, store, stored_result):
        with pytest.raises(PersistenceError):
            await TestingEvaluator(claude, store).evaluate_implementation(criteria_issue(), "PCP1-99", stored_result)
        claude.ask.assert_not_called()
