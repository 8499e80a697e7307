"""
Requirements Analyzer

Asks Claude to turn a human-authored issue into structured delivery criteria.
A response that cannot be parsed is replaced by a generic template so the
pipeline keeps moving; a failed Claude call still raises.
"""

from rich.console import Console

from .claude_automation import ClaudeSessionManager
from .errors import ResponseParseError
from .models import (
    AnalysisResult,
    DeliveryCriteria,
    EstimatedEffort,
    Issue,
    TechnicalApproach,
    ValidationTests,
)
from .prompts import ANALYSIS_SYSTEM_PROMPT, REQUIREMENTS_ANALYSIS_PROMPT

console = Console()


def fallback_analysis(raw_analysis: str = "") -> AnalysisResult:
    """Generic analysis used when Claude's answer is unusable."""
    return AnalysisResult(
        delivery_criteria=DeliveryCriteria(
            functional_requirements=['Core functionality implemented as described'],
            technical_requirements=['Code follows project standards'],
            quality_requirements=['Unit tests with >80% coverage'],
            acceptance_criteria=['All functional requirements met'],
            definition_of_done=['Code reviewed and deployed'],
        ),
        validation_tests=ValidationTests(
            unit_tests=['Test core functionality'],
            integration_tests=['Test system integration'],
            edge_cases=['Test error handling'],
            performance_tests=['Validate performance requirements'],
        ),
        technical_approach=TechnicalApproach(
            architecture='Standard implementation approach',
            components=['Main component'],
            dependencies=['Standard project dependencies'],
            risks=['Implementation complexity'],
            mitigations=['Thorough testing and code review'],
        ),
        estimated_effort=EstimatedEffort(
            story_points=5,
            hours=16,
            complexity='Medium',
            confidence='Medium',
            assumptions=['Requirements are clear and complete'],
        ),
        raw_analysis=raw_analysis,
        is_fallback=True,
    )


class RequirementsAnalyzer:
    """Analysis adapter backed by Claude."""

    def __init__(self, claude: ClaudeSessionManager) -> None:
        self.claude = claude

    def build_prompt(self, issue: Issue) -> str:
        return REQUIREMENTS_ANALYSIS_PROMPT.format(
            key=issue.key,
            issue_type=issue.issue_type,
            summary=issue.summary,
            description=issue.description or 'No description provided',
            project_key=issue.project_key,
        )

    def parse_analysis(self, response: str) -> AnalysisResult:
        """Parse Claude's answer, substituting the fallback template on failure."""
        try:
            data = self.claude.parse_json_response(response)
            return AnalysisResult.from_dict(data, raw_analysis=response)
        except (ResponseParseError, KeyError, TypeError, AttributeError) as e:
            console.print(f"[yellow]Failed to parse Claude analysis, using fallback template: {e}[/yellow]")
            return fallback_analysis(raw_analysis=response)

    async def analyze_requirements(self, issue: Issue) -> AnalysisResult:
        """Analyze an issue into delivery criteria.

        Args:
            issue: Human-authored issue to analyze

        Returns:
            AnalysisResult (``is_fallback`` set when the template was used)

        Raises:
            AdapterError: If the Claude request itself fails
        """
        console.print(f"[green]Analyzing requirements for {issue.key} with Claude...[/green]")
        response = await self.claude.ask(self.build_prompt(issue), system_prompt=ANALYSIS_SYSTEM_PROMPT)
        analysis = self.parse_analysis(response)
        console.print(
            f"[green]Requirements analysis complete for {issue.key}: "
            f"{len(analysis.delivery_criteria.functional_requirements)} functional requirements[/green]"
        )
        return analysis
