"""
Webhook Processor

Top-level driver for one Jira webhook delivery: validate, classify, and run
the matching phase (requirements analysis, implementation generation or
testing evaluation). Every terminal outcome is mirrored as a Jira comment.
"""

from typing import Any, Dict

from rich.console import Console

from .artifacts import (
    EVALUATION_SUMMARY_FILE,
    ArtifactStore,
    load_implementation_result,
    save_evaluation,
    save_implementation,
)
from .claude_automation import ClaudeSessionManager
from .classifier import classify_issue, rejection_reason
from .config import AutomationConfig, get_config
from .criteria import (
    criteria_summary,
    extract_original_key,
    extract_requirements,
    render_criteria_description,
    render_touched_marker,
    validate_criteria_issue,
)
from .errors import JiraApiError, PersistenceError, WebhookProcessingError
from .implementation_agent import ImplementationAgent
from .jira_client import JiraClient
from .models import (
    Action,
    AnalysisResult,
    BestEffortResult,
    Classification,
    EvaluationResult,
    Issue,
    ProcessingResult,
    Stage,
    WebhookEvent,
)
from .reports import (
    AUTOMATION_FOOTER,
    ERROR_FOOTER,
    EVALUATION_ERROR_FOOTER,
    EVALUATION_FOOTER,
    EVALUATION_SKIPPED_FOOTER,
    SKIPPED_FOOTER,
    completion_note,
    evaluation_failed_content,
    evaluation_passed_content,
    implementation_generated_content,
)
from .requirements_analyzer import RequirementsAnalyzer
from .stage_tracker import StageTracker
from .testing_evaluator import TestingEvaluator, generate_usage_instructions

console = Console()


def completion_status(implementation_type: str) -> str:
    config = get_config()
    return config.COMPLETION_STATUSES.get(implementation_type, config.DEFAULT_COMPLETION_STATUS)


class WebhookProcessor:
    """Routes webhook events to the phase handlers and performs their side effects."""

    def __init__(
        self,
        jira: JiraClient,
        analyzer: RequirementsAnalyzer,
        implementer: ImplementationAgent,
        evaluator: TestingEvaluator,
        store: ArtifactStore,
    ) -> None:
        self.jira = jira
        self.analyzer = analyzer
        self.implementer = implementer
        self.evaluator = evaluator
        self.store = store
        self.stages = StageTracker(jira)

    @classmethod
    def from_config(cls, config: AutomationConfig) -> 'WebhookProcessor':
        """Wire every collaborator from one configuration object."""
        claude = ClaudeSessionManager(config.claude)
        store = ArtifactStore(config.work_items_path)
        return cls(
            jira=JiraClient(config.jira),
            analyzer=RequirementsAnalyzer(claude),
            implementer=ImplementationAgent(claude),
            evaluator=TestingEvaluator(claude, store),
            store=store,
        )

    def _location(self, original_key: str) -> str:
        return str(self.store.base_path / original_key)

    async def _comment(self, result: ProcessingResult, key: str, title: str, content: str, footer: str) -> BestEffortResult:
        """Post an outcome comment; a failed post is recorded as a warning."""
        try:
            await self.jira.add_comment(key, self.jira.format_comment(title, content, footer))
        except JiraApiError as e:
            warning = f"Failed to post '{title}' comment on {key}: {e}"
            console.print(f"[yellow]{warning}[/yellow]")
            return result.note(BestEffortResult.failed(warning))
        return BestEffortResult.success()

    async def process_webhook(self, payload: Dict[str, Any]) -> ProcessingResult:
        """Process one Jira webhook body.

        Args:
            payload: Raw webhook JSON as forwarded by the relay

        Returns:
            ProcessingResult describing the terminal outcome

        Raises:
            WebhookProcessingError: If the requirements-analysis phase fails
        """
        event = WebhookEvent.from_payload(payload)
        console.print(f"[blue]Processing webhook event: {event.raw_event}[/blue]")

        reason = rejection_reason(event)
        if reason is not None:
            console.print(f"[dim]Ignoring event: {reason}[/dim]")
            return ProcessingResult(action=Action.IGNORED, reason=reason)

        issue = event.issue
        classification = classify_issue(issue)
        console.print(f"[blue]Issue {issue.key} classified as {classification.value}[/blue]")

        try:
            if classification is Classification.INITIAL_INQUIRY:
                return await self.process_initial_inquiry(issue)
            if classification is Classification.DELIVERABLE_CRITERIA:
                return await self.process_deliverable_criteria(issue)
            if classification is Classification.TESTING_CRITERIA:
                return await self.process_testing_criteria(issue)
        except Exception as e:
            console.print(f"[red]Webhook processing failed for {issue.key}: {e}[/red]")
            raise WebhookProcessingError(f"Webhook processing failed: {e}") from e

        return ProcessingResult(
            action=Action.IGNORED,
            reason="No action required for this issue type",
            original_issue=issue.key,
        )

    # Requirements analysis

    async def process_initial_inquiry(self, issue: Issue) -> ProcessingResult:
        """Analyze a human-authored issue and create its criteria issue.

        Failures are commented on the original issue and re-raised, since no
        criteria issue exists yet to carry the outcome.
        """
        console.print(f"[green]Processing initial inquiry: {issue.key}[/green]")
        result = ProcessingResult(action=Action.REQUIREMENTS_ANALYZED, original_issue=issue.key)

        try:
            analysis = await self.analyzer.analyze_requirements(issue)
            await self.mark_issue_touched(issue.key, analysis)
            criteria_issue = await self.create_criteria_issue(issue, analysis)
            await self.jira.link_issues(issue.key, criteria_issue.key, get_config().LINK_TYPE)
        except Exception as e:
            console.print(f"[red]Requirements analysis failed for {issue.key}: {e}[/red]")
            await self._comment(
                result,
                issue.key,
                'Claude Analysis Failed',
                f"An error occurred during automated requirements analysis:\n\n`{e}`\n\n"
                f"Please review and try again, or proceed with manual analysis.",
                ERROR_FOOTER,
            )
            raise

        if analysis.is_fallback:
            result.warnings.append("Claude analysis could not be parsed; generic requirements template used")

        result.criteria_issue = criteria_issue.key
        result.stage = Stage.ANALYZED
        result.details['analysis'] = analysis
        result.details['criteria_url'] = self.jira.get_issue_url(criteria_issue.key)
        console.print(f"[green]Initial inquiry complete: {issue.key} -> {criteria_issue.key}[/green]")
        return result

    async def mark_issue_touched(self, key: str, analysis: AnalysisResult) -> None:
        """Append the touched marker block to the current description."""
        current = await self.jira.get_issue(key)
        await self.jira.update_issue(key, {'description': current.description + render_touched_marker(analysis)})
        console.print(f"[blue]Marked {key} as touched by Claude[/blue]")

    async def create_criteria_issue(self, original: Issue, analysis: AnalysisResult) -> Issue:
        config = get_config()
        return await self.jira.create_issue(
            original.project_key,
            config.CRITERIA_ISSUE_TYPE,
            criteria_summary(original),
            render_criteria_description(original, analysis),
            labels=[Stage.ANALYZED.label],
        )

    # Implementation generation

    async def process_deliverable_criteria(self, issue: Issue) -> ProcessingResult:
        console.print(f"[green]Processing deliverable criteria: {issue.key}[/green]")
        result = ProcessingResult(action=Action.SYSTEM_ERROR, criteria_issue=issue.key)

        try:
            await self._generate_implementation(issue, result)
        except Exception as e:
            console.print(f"[red]Failed to process deliverable criteria {issue.key}: {e}[/red]")
            result.action = Action.SYSTEM_ERROR
            result.error = str(e)
            result.error_type = getattr(e, 'error_type', 'system_failure')
            await self._comment(
                result,
                issue.key,
                'Automation System Error',
                f"An error occurred in the Claude automation system:\n\n`{e}`\n\n"
                f"Please check the system logs and try again, or proceed with manual processing.",
                ERROR_FOOTER,
            )

        return result

    async def _generate_implementation(self, issue: Issue, result: ProcessingResult) -> None:
        config = get_config()
        validate_criteria_issue(issue)
        original_key = extract_original_key(issue)
        result.original_issue = original_key

        stage = self.stages.current_stage(issue)
        result.stage = stage
        force = self.stages.has_override_label(issue, 'reimplement')

        if stage in (Stage.IMPLEMENTED, Stage.TESTED) and not force:
            console.print(f"[yellow]Skipping implementation for {issue.key}: already completed (stage: {stage.value})[/yellow]")
            result.action = Action.SKIPPED
            result.reason = "Implementation already exists"
            await self._comment(
                result,
                issue.key,
                'Implementation Skipped',
                f"Implementation was skipped because it has already been completed (stage: {stage.value}).\n\n"
                f"To force regeneration, add the label `{config.override_label('reimplement')}` and try again.",
                SKIPPED_FOOTER,
            )
            return

        if force:
            result.note(await self.stages.clear_override_label(issue.key, 'reimplement'))

        await self.jira.get_issue(original_key)
        requirements = extract_requirements(issue)

        try:
            implementation = await self.implementer.generate_implementation(issue, original_key, requirements)
        except Exception as e:
            console.print(f"[red]Implementation generation failed: {e}[/red]")
            result.action = Action.IMPLEMENTATION_FAILED
            result.error = str(e)
            result.error_type = 'claude_generation_failure'
            await self._comment(
                result,
                issue.key,
                'Implementation Generation Failed',
                f"An error occurred during automated implementation generation:\n\n`{e}`\n\n"
                f"Please review the deliverable criteria and try again.",
                ERROR_FOOTER,
            )
            return

        result.details['implementation'] = implementation

        try:
            files = save_implementation(self.store, original_key, implementation)
        except PersistenceError as e:
            console.print(f"[red]Artifacts creation failed: {e}[/red]")
            result.action = Action.ARTIFACTS_FAILED
            result.error = str(e)
            result.error_type = 'artifacts_creation_failure'
            await self._comment(
                result,
                issue.key,
                'Artifacts Creation Failed',
                f"Implementation was generated successfully, but failed to create file artifacts:\n\n`{e}`\n\n"
                f"Please check file system permissions and try again.",
                ERROR_FOOTER,
            )
            return

        result.details['files'] = files
        location = f"{self._location(original_key)}/implementation/"
        await self._comment(
            result,
            issue.key,
            'Implementation Generated',
            implementation_generated_content(original_key, implementation, files, location),
            AUTOMATION_FOOTER,
        )

        result.note(await self.stages.advance_stage(issue.key, Stage.IMPLEMENTED))
        result.action = Action.IMPLEMENTATION_GENERATED
        result.stage = Stage.IMPLEMENTED
        console.print(f"[green]Deliverable criteria processing complete for {issue.key}[/green]")

    # Testing evaluation

    async def process_testing_criteria(self, issue: Issue) -> ProcessingResult:
        console.print(f"[green]Processing testing criteria evaluation: {issue.key}[/green]")
        result = ProcessingResult(action=Action.SYSTEM_ERROR, criteria_issue=issue.key)

        try:
            await self._evaluate_implementation(issue, result)
        except Exception as e:
            console.print(f"[red]Failed to process testing criteria {issue.key}: {e}[/red]")
            result.action = Action.SYSTEM_ERROR
            result.error = str(e)
            result.error_type = getattr(e, 'error_type', 'system_failure')
            await self._comment(
                result,
                issue.key,
                'Testing Evaluation System Error',
                f"A system error occurred during testing evaluation:\n\n`{e}`\n\n"
                f"Please check the system logs and try again, or proceed with manual evaluation.",
                EVALUATION_ERROR_FOOTER,
            )

        return result

    async def _evaluate_implementation(self, issue: Issue, result: ProcessingResult) -> None:
        config = get_config()
        validate_criteria_issue(issue)
        original_key = extract_original_key(issue)
        result.original_issue = original_key
        location = self._location(original_key)

        stage = self.stages.current_stage(issue)
        result.stage = stage
        force = self.stages.has_override_label(issue, 'retest')

        if stage is Stage.TESTED and not force:
            console.print(f"[yellow]Skipping testing for {issue.key}: already completed[/yellow]")
            result.action = Action.SKIPPED
            result.reason = "Testing already completed"
            await self._comment(
                result,
                issue.key,
                'Testing Skipped',
                f"Testing was skipped because it has already been completed.\n\n"
                f"To force re-evaluation, add the label `{config.override_label('retest')}` and try again.",
                EVALUATION_SKIPPED_FOOTER,
            )
            return

        if force:
            result.note(await self.stages.clear_override_label(issue.key, 'retest'))

        try:
            implementation = load_implementation_result(self.store, original_key)
        except PersistenceError as e:
            console.print(f"[red]Failed to load implementation: {e}[/red]")
            result.action = Action.EVALUATION_FAILED
            result.error = str(e)
            result.error_type = 'implementation_not_found'
            await self._comment(
                result,
                issue.key,
                'Testing Evaluation - ERROR',
                f"Unable to load implementation artifacts for evaluation:\n\n`{e}`\n\n"
                f"Please ensure the implementation has been generated first by moving the issue to "
                f"\"{config.READY_STATUSES[0]}\".\n\n**Repository Location:** `{location}/`",
                EVALUATION_ERROR_FOOTER,
            )
            return

        try:
            evaluation = await self.evaluator.evaluate_implementation(issue, original_key, implementation)
        except Exception as e:
            console.print(f"[red]Evaluation failed: {e}[/red]")
            result.action = Action.EVALUATION_FAILED
            result.error = str(e)
            result.error_type = 'claude_evaluation_failure'
            await self._comment(
                result,
                issue.key,
                'Testing Evaluation - ERROR',
                f"An error occurred during automated testing evaluation:\n\n`{e}`\n\n"
                f"This may indicate:\n• Implementation artifacts are missing or corrupted\n"
                f"• Deliverable criteria format issues\n• Claude API communication problems\n\n"
                f"Please check the implementation artifacts and try again, or proceed with manual evaluation.\n\n"
                f"**Repository Location:** `{location}/`",
                EVALUATION_ERROR_FOOTER,
            )
            return

        result.details['evaluation'] = evaluation

        try:
            save_evaluation(self.store, evaluation)
            result.details['report'] = f"{location}/evaluation/{EVALUATION_SUMMARY_FILE}"
        except PersistenceError as e:
            warning = f"Failed to save evaluation results: {e}"
            console.print(f"[yellow]{warning}[/yellow]")
            result.warnings.append(warning)

        # Recorded whether or not the evaluation passed
        result.note(await self.stages.advance_stage(issue.key, Stage.TESTED))
        result.stage = Stage.TESTED

        if evaluation.final_score.meets_criteria:
            await self._report_pass(issue, evaluation, implementation.files, result)
        else:
            await self._report_fail(issue, evaluation, result)

    async def _report_pass(
        self,
        issue: Issue,
        evaluation: EvaluationResult,
        artifacts: Dict[str, str],
        result: ProcessingResult,
    ) -> None:
        console.print(f"[green]Implementation for {evaluation.original_issue} PASSED evaluation[/green]")
        usage = generate_usage_instructions(
            evaluation.implementation_type,
            artifacts,
            evaluation.evaluation.overall_assessment.ready_for_deployment,
        )
        await self._comment(
            result,
            issue.key,
            'Testing Evaluation - PASSED',
            evaluation_passed_content(evaluation, usage, self._location(evaluation.original_issue)),
            EVALUATION_FOOTER,
        )

        status = completion_status(evaluation.implementation_type)
        result.details['completion_method'] = await self.update_to_completion_status(issue.key, status, usage, result)
        result.details['next_status'] = status
        result.action = Action.EVALUATION_PASSED

    async def _report_fail(self, issue: Issue, evaluation: EvaluationResult, result: ProcessingResult) -> None:
        console.print(f"[yellow]Implementation for {evaluation.original_issue} FAILED evaluation[/yellow]")
        await self._comment(
            result,
            issue.key,
            'Testing Evaluation - FAILED',
            evaluation_failed_content(evaluation, self._location(evaluation.original_issue)),
            EVALUATION_FOOTER,
        )
        result.details['failure_reasons'] = [error.to_dict() for error in evaluation.recommendation.critical_issues]
        result.details['summary'] = evaluation.recommendation.summary
        result.action = Action.EVALUATION_FAILED

    async def update_to_completion_status(self, key: str, status: str, usage: str, result: ProcessingResult) -> str:
        """Move a passed criteria issue to its completion status.

        Falls back to rewriting the summary and description when no matching
        transition exists, and to a comment when Jira rejects both.

        Returns:
            ``transition``, ``summary`` or ``comment`` (the method that was used)
        """
        try:
            transitions = await self.jira.get_available_transitions(key)
            transition = next((t for t in transitions if t['name'] == status), None)
            if transition is not None:
                await self.jira.transition_issue(key, transition['id'])
                console.print(f"[green]Transitioned {key} to {status}[/green]")
                return 'transition'

            console.print(f"[blue]Completion status {status} not available, updating summary instead[/blue]")
            current = await self.jira.get_issue(key)
            await self.jira.update_issue(key, {
                'summary': f"✅ {status}: {current.summary}",
                'description': current.description + completion_note(status, usage),
            })
            return 'summary'
        except JiraApiError as e:
            console.print(f"[yellow]Failed to update completion status: {e}[/yellow]")
            await self._comment(
                result,
                key,
                f"Implementation Complete - {status}",
                f"Implementation has passed all testing criteria and is ready for use.\n\n{usage}",
                EVALUATION_FOOTER,
            )
            return 'comment'
