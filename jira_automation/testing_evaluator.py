"""
Testing Evaluator

Grades a stored implementation against its criteria issue with Claude and
turns the four category scores and the itemized error list into a verdict.
"""

from typing import Dict, Optional

from rich.console import Console

from .artifacts import IMPLEMENTATION_PHASE, ArtifactStore, primary_file_name
from .claude_automation import ClaudeSessionManager
from .config import get_config
from .criteria import BULLET, extract_effort_details, extract_requirements
from .errors import ResponseParseError
from .models import (
    SCORE_CATEGORIES,
    CriteriaRequirements,
    Evaluation,
    EvaluationResult,
    FinalScore,
    ImplementationResult,
    Issue,
    Recommendation,
    Severity,
)
from .prompts import ARTIFACT_BLOCK, EVALUATION_PROMPT, EVALUATION_SYSTEM_PROMPT

console = Console()


def _bullets(items) -> str:
    return "\n".join(f"{BULLET} {item}" for item in items)


EFFORT_FIELDS = [
    ("story_points", "Story Points"),
    ("complexity", "Complexity"),
    ("hours", "Hours"),
]


def format_effort(effort: Dict[str, Optional[str]]) -> str:
    parts = [f"{label}: {effort[name]}" for name, label in EFFORT_FIELDS if effort.get(name)]
    return ", ".join(parts) or "Not specified"


def calculate_final_score(evaluation: Evaluation) -> FinalScore:
    """Compute the pass/fail verdict.

    Passing needs all of: overall score at or above the passing score, no
    CRITICAL or HIGH errors, requirements coverage at or above its minimum,
    and Claude's own readiness flag.
    """
    config = get_config()
    breakdown = {
        name: max(0.0, min(float(config.MAX_CATEGORY_SCORE), evaluation.categories[name].score))
        for name in SCORE_CATEGORIES
    }
    overall_score = sum(breakdown.values())
    critical_errors = len(evaluation.errors_with(Severity.CRITICAL))
    high_errors = len(evaluation.errors_with(Severity.HIGH))
    core_requirements_met = breakdown['requirementsCoverage'] >= config.MIN_REQUIREMENTS_COVERAGE
    ready = evaluation.overall_assessment.ready_for_deployment

    meets_criteria = (
        overall_score >= config.PASSING_SCORE
        and critical_errors == 0
        and high_errors == 0
        and core_requirements_met
        and ready
    )

    return FinalScore(
        overall_score=overall_score,
        breakdown=breakdown,
        error_count=len(evaluation.errors),
        critical_errors=critical_errors,
        high_errors=high_errors,
        meets_criteria=meets_criteria,
        ready_for_deployment=ready,
        core_requirements_met=core_requirements_met,
        passing_score=config.PASSING_SCORE,
    )


def generate_recommendation(score: FinalScore, evaluation: Evaluation) -> Recommendation:
    if score.meets_criteria:
        return Recommendation(
            status='APPROVED',
            action='READY_FOR_DEPLOYMENT',
            summary=f"Implementation meets all criteria with score {score.overall_score:g}/100.",
            next_steps=[
                'Proceed to deployment/implementation',
                'Update stakeholders on completion',
                'Monitor post-deployment metrics',
            ],
        )

    issues = []
    if score.overall_score < score.passing_score:
        issues.append(f"Score {score.overall_score:g}/100 below required {score.passing_score}/100")
    if score.blocking_errors:
        issues.append(f"{score.error_count} errors found ({score.critical_errors} critical, {score.high_errors} high)")
    if not score.core_requirements_met:
        issues.append(f"Requirements coverage {score.breakdown['requirementsCoverage']:g}/25 below required minimum")
    if not score.ready_for_deployment:
        issues.append('Claude assessment indicates not ready for deployment')

    return Recommendation(
        status='NEEDS_WORK',
        action='RETURN_FOR_REVISION',
        summary=f"Implementation needs revision: {', '.join(issues)}",
        next_steps=[
            'Address identified errors and issues',
            'Improve implementation quality',
            'Re-submit for evaluation',
        ],
        critical_issues=evaluation.errors_with(Severity.CRITICAL),
        major_concerns=evaluation.overall_assessment.major_concerns,
    )


def generate_usage_instructions(implementation_type: str, artifacts: Dict[str, str], ready: bool) -> str:
    """Type specific instructions included in pass comments and completion notes."""
    if implementation_type == 'code':
        install = "```bash\nnpm install\n```" if 'package.json' in artifacts else 'No package.json found - install dependencies manually'
        test = "```bash\nnpm test\n# or\nnode tests.js\n```" if 'tests.js' in artifacts else 'No automated tests available'
        return f"""**Code Implementation Usage Instructions:**

1. **Installation:**
   {install}

2. **Running:**
   ```bash
   node {primary_file_name('code')}
   ```

3. **Testing:**
   {test}

4. **Deployment:** Ready for {'production' if ready else 'development/testing'} environment"""

    if implementation_type == 'documentation':
        return f"""**Documentation Usage Instructions:**

1. **Primary Document:** See {primary_file_name('documentation')} for main content
2. **Distribution:** Share with intended audience as specified in requirements
3. **Maintenance:** Update as needed based on feedback and changes
4. **Format:** Markdown format - can be converted to PDF, HTML, or other formats as needed
5. **Status:** {'Ready for publication' if ready else 'Needs revision before publication'}"""

    if implementation_type == 'analysis':
        return f"""**Analysis Usage Instructions:**

1. **Review:** Examine {primary_file_name('analysis')} for findings and recommendations
2. **Action Items:** Implement recommendations as prioritized
3. **Validation:** Verify findings with stakeholders
4. **Follow-up:** Schedule review of recommendations implementation
5. **Status:** {'Ready for stakeholder review' if ready else 'Needs additional work before presentation'}"""

    if implementation_type == 'process':
        return f"""**Process Implementation Usage Instructions:**

1. **Review:** Examine {primary_file_name('process')} for detailed procedures
2. **Pilot:** Consider pilot implementation before full rollout
3. **Training:** Train relevant stakeholders on new process
4. **Monitoring:** Establish metrics to measure process effectiveness
5. **Status:** {'Ready for implementation' if ready else 'Needs refinement before rollout'}"""

    return f"""**Implementation Usage Instructions:**

1. **Review:** Examine all generated artifacts
2. **Validation:** Verify implementation meets your specific needs
3. **Deployment:** Follow any specific instructions in README.md
4. **Support:** Refer to documentation for detailed guidance
5. **Status:** {'Ready for use' if ready else 'Needs additional work'}"""


class TestingEvaluator:
    """Evaluation adapter backed by Claude."""

    # Not a test class despite the name
    __test__ = False

    def __init__(self, claude: ClaudeSessionManager, store: ArtifactStore) -> None:
        self.claude = claude
        self.store = store

    def build_prompt(
        self,
        original_key: str,
        implementation_result: ImplementationResult,
        artifacts: Dict[str, str],
        criteria: CriteriaRequirements,
        effort: Optional[Dict[str, Optional[str]]] = None,
    ) -> str:
        preview_chars = get_config().ARTIFACT_PREVIEW_CHARS
        blocks = []
        for filename, content in artifacts.items():
            if len(content) > preview_chars:
                content = content[:preview_chars] + '...[truncated]'
            blocks.append(ARTIFACT_BLOCK.format(filename=filename, content=content))

        implementation = implementation_result.implementation
        return EVALUATION_PROMPT.format(
            original_key=original_key,
            implementation_type=implementation.type,
            title=implementation.title,
            functional_requirements=_bullets(criteria.functional_requirements),
            technical_requirements=_bullets(criteria.technical_requirements),
            acceptance_criteria=_bullets(criteria.acceptance_criteria),
            definition_of_done=_bullets(criteria.definition_of_done),
            estimated_effort=format_effort(effort or {}),
            artifacts="\n".join(blocks),
        )

    def parse_evaluation(self, response: str) -> Evaluation:
        try:
            data = self.claude.parse_json_response(response)
            return Evaluation.from_dict(data)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            console.print(f"[red]Failed to parse Claude evaluation response: {e}[/red]")
            raise ResponseParseError(f"Failed to parse Claude evaluation response: {e}") from e

    async def evaluate_implementation(
        self,
        criteria_issue: Issue,
        original_key: str,
        implementation_result: ImplementationResult,
    ) -> EvaluationResult:
        """Evaluate an implementation against its criteria issue.

        The raw artifact files are re-read from the store so the judgment is
        grounded in the stored content, not only in the loaded summary.

        Args:
            criteria_issue: Criteria issue whose sections form the rubric
            original_key: Key of the implemented issue
            implementation_result: Implementation loaded from the store

        Returns:
            EvaluationResult with final score and recommendation

        Raises:
            PersistenceError: If the stored artifacts cannot be read
            AdapterError: If the Claude request fails or its answer is malformed
        """
        console.print(f"[green]Evaluating implementation for {original_key} against deliverable criteria...[/green]")

        artifacts = self.store.read_files(original_key, IMPLEMENTATION_PHASE)
        criteria = extract_requirements(criteria_issue, bullets=(BULLET, '-'))

        effort = extract_effort_details(criteria_issue.description)

        prompt = self.build_prompt(original_key, implementation_result, artifacts, criteria, effort)
        response = await self.claude.ask(prompt, system_prompt=EVALUATION_SYSTEM_PROMPT)
        evaluation = self.parse_evaluation(response)

        final_score = calculate_final_score(evaluation)
        console.print(
            f"[blue]Final score: {final_score.overall_score:g}/100, errors: {final_score.error_count}, "
            f"meets criteria: {final_score.meets_criteria}[/blue]"
        )

        return EvaluationResult(
            original_issue=original_key,
            criteria_issue=criteria_issue.key,
            implementation_type=implementation_result.implementation.type,
            evaluation=evaluation,
            final_score=final_score,
            recommendation=generate_recommendation(final_score, evaluation),
        )
