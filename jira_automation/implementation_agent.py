"""
Implementation Agent

Generates a deliverable for approved delivery criteria with Claude, then asks
for a matching validation artifact (tests for code, checklists otherwise) and
documentation, and scores the result with local quality heuristics.
Unlike requirements analysis, an unparseable answer is a hard failure.
"""

import json
from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, Optional

from rich.console import Console

from .claude_automation import ClaudeSessionManager
from .config import get_config
from .errors import ResponseParseError
from .models import (
    CriteriaRequirements,
    Implementation,
    ImplementationResult,
    Issue,
    ValidationArtifact,
)
from .prompts import (
    DOCUMENTATION_NOTES_PROMPT,
    GENERIC_VALIDATION_PROMPT,
    IMPLEMENTATION_PROMPT,
    README_PROMPT,
    VALIDATION_PROMPTS,
)

console = Console()

VALIDATION_TYPES = {
    'code': 'Automated Testing',
    'documentation': 'Content Review',
    'analysis': 'Peer Review',
    'process': 'Process Validation',
    'other': 'Custom Validation',
}

PREVIEW_CHARS = 500


def _words(text: str) -> int:
    return len(text.split())


class ImplementationAgent:
    """Implementation adapter backed by Claude."""

    def __init__(self, claude: ClaudeSessionManager) -> None:
        self.claude = claude

    async def generate_implementation(
        self,
        criteria_issue: Issue,
        original_key: str,
        requirements: CriteriaRequirements,
    ) -> ImplementationResult:
        """Generate the deliverable plus its validation artifact and docs.

        Args:
            criteria_issue: Criteria issue holding the approved requirements
            original_key: Key of the issue being implemented
            requirements: Requirement lists extracted from the criteria issue

        Returns:
            ImplementationResult with heuristic validation results

        Raises:
            AdapterError: If any Claude request fails
            ResponseParseError: If the implementation JSON is malformed
        """
        console.print(f"[green]Generating implementation for {original_key} with Claude...[/green]")

        prompt = IMPLEMENTATION_PROMPT.format(
            original_key=original_key,
            criteria_key=criteria_issue.key,
            summary=criteria_issue.summary,
            description=criteria_issue.description or 'No description provided',
            requirements_json=json.dumps(requirements.to_dict(), indent=2),
        )
        response = await self.claude.ask(prompt)
        implementation = self.parse_implementation(response)
        console.print(f"[blue]Implementation type: {implementation.type}, title: {implementation.title}[/blue]")

        tests = await self.generate_validation(original_key, implementation)
        documentation = await self.generate_documentation(original_key, implementation)

        console.print(f"[green]Implementation generated for {original_key}[/green]")
        return ImplementationResult(
            implementation=implementation,
            tests=tests,
            documentation=documentation,
            validation_results=validate_implementation(implementation, tests),
            metadata={
                'generated_at': datetime.now().isoformat(),
                'original_issue': original_key,
                'criteria_issue': criteria_issue.key,
                'claude_model': self.claude.config.model or 'default',
                'implementation_type': implementation.type,
            },
        )

    def parse_implementation(self, response: str) -> Implementation:
        try:
            data = self.claude.parse_json_response(response)
            return Implementation.from_dict(data)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            console.print(f"[red]Failed to parse Claude implementation response: {e}[/red]")
            console.print(f"[dim]Raw response excerpt: {response[:500]}[/dim]")
            raise ResponseParseError(f"Failed to parse Claude implementation response: {e}") from e

    async def generate_validation(self, original_key: str, implementation: Implementation) -> ValidationArtifact:
        template = VALIDATION_PROMPTS.get(implementation.type, GENERIC_VALIDATION_PROMPT)
        prompt = template.format(
            original_key=original_key,
            implementation_type=implementation.type,
            title=implementation.title,
            content=implementation.primary_deliverable,
            preview=implementation.primary_deliverable[:PREVIEW_CHARS],
        )
        content = await self.claude.ask(prompt)
        return ValidationArtifact(
            type=implementation.type,
            content=content,
            validation_type=VALIDATION_TYPES.get(implementation.type, 'Manual Review'),
        )

    async def generate_documentation(self, original_key: str, implementation: Implementation) -> str:
        if implementation.type == 'documentation':
            prompt = DOCUMENTATION_NOTES_PROMPT.format(original_key=original_key, title=implementation.title)
        else:
            prompt = README_PROMPT.format(
                original_key=original_key,
                implementation_type=implementation.type,
                title=implementation.title,
                implementation_json=json.dumps(asdict(implementation), indent=2),
            )
        return await self.claude.ask(prompt)


# Quality heuristics

def analyze_content_quality(implementation: Implementation) -> Dict[str, Any]:
    length = len(implementation.primary_deliverable)
    has_description = len(implementation.description) > 10
    has_usage = len(implementation.usage_instructions) > 10
    has_validation = len(implementation.validation_criteria) > 0

    score = 5
    score += sum([length > 100, length > 1000, has_description, has_usage, has_validation])
    return {
        'score': min(score, 10),
        'content_length': length,
        'has_description': has_description,
        'has_usage_instructions': has_usage,
        'has_validation_criteria': has_validation,
    }


def analyze_completeness(implementation: Implementation) -> Dict[str, Any]:
    fields = {
        'type': implementation.type,
        'title': implementation.title,
        'description': implementation.description,
        'primaryDeliverable': implementation.primary_deliverable,
        'usageInstructions': implementation.usage_instructions,
    }
    present = [name for name, value in fields.items() if value]
    ratio = len(present) / len(fields)
    return {
        'score': round(ratio * 10),
        'required_fields': list(fields),
        'present_fields': present,
        'completeness_ratio': ratio,
    }


def analyze_usability(implementation: Implementation) -> Dict[str, Any]:
    has_usage = len(implementation.usage_instructions) > 20
    has_dependencies = len(implementation.dependencies) > 0
    has_configuration = len(implementation.configuration_options) > 0

    score = 5 + (2 if has_usage else 0) + (1 if has_dependencies else 0) + (2 if has_configuration else 0)
    return {
        'score': min(score, 10),
        'has_usage_instructions': has_usage,
        'has_dependencies': has_dependencies,
        'has_configuration': has_configuration,
    }


def analyze_test_quality(tests: Optional[ValidationArtifact]) -> Dict[str, Any]:
    if tests is None or not tests.content:
        return {'score': 0, 'has_tests': False}

    if tests.type == 'code':
        patterns = ['test(', 'it(', 'describe(', 'expect(', 'assert']
    else:
        patterns = ['validation', 'check', 'verify', 'review', 'criteria']

    found = [pattern for pattern in patterns if pattern in tests.content]
    return {
        'score': min(len(found) * 2, 10),
        'has_tests': True,
        'test_type': tests.type,
        'validation_type': tests.validation_type,
        'found_patterns': len(found),
    }


def type_specific_validation(implementation: Implementation) -> Dict[str, Any]:
    content = implementation.primary_deliverable
    lower = content.lower()

    if implementation.type == 'code':
        return {
            'has_error_handling': ('try' in content and 'catch' in content) or ('try' in content and 'except' in content),
            'has_async_handling': 'async' in content and 'await' in content,
            'has_modular_structure': any(token in content for token in ('class', 'function', 'def ', 'module.exports')),
            'has_comments': any(token in content for token in ('//', '/*', '#')),
            'lines_of_code': len(content.split('\n')),
        }
    if implementation.type == 'documentation':
        return {
            'has_structure': '#' in content,
            'has_examples': '```' in content or 'example' in lower,
            'has_references': 'http' in content or 'link' in lower,
            'word_count': _words(content),
            'has_toc': 'table of contents' in lower or '- [' in content,
        }
    if implementation.type == 'analysis':
        return {
            'has_methodology': 'method' in lower or 'approach' in lower,
            'has_findings': 'finding' in lower or 'result' in lower,
            'has_recommendations': 'recommend' in lower or 'suggest' in lower,
            'has_evidence': any(token in lower for token in ('data', 'evidence', 'source')),
            'word_count': _words(content),
        }
    if implementation.type == 'process':
        return {
            'has_steps': any(token in lower for token in ('step', 'phase', 'stage')),
            'has_roles': 'role' in lower or 'responsible' in lower,
            'has_controls': 'check' in lower or 'control' in lower,
            'has_measurement': 'measure' in lower or 'metric' in lower,
            'word_count': _words(content),
        }
    return {
        'has_structure': len(content) > 100,
        'has_detail': _words(content) > 50,
        'is_actionable': 'how' in lower or 'step' in lower,
        'content_type': implementation.type,
        'word_count': _words(content),
    }


def quality_rating(score: float) -> str:
    for threshold, rating in ((9, 'Excellent'), (8, 'Very Good'), (7, 'Good'), (6, 'Acceptable'), (5, 'Needs Improvement')):
        if score >= threshold:
            return rating
    return 'Poor'


def validate_implementation(implementation: Implementation, tests: Optional[ValidationArtifact]) -> Dict[str, Any]:
    """Score an implementation 0-10 from content, completeness, usability and tests.

    Returns:
        Dict with ``passed``, ``overall_score``, ``overall`` (rating),
        ``details`` and ``timestamp``
    """
    details = {
        'implementation_type': implementation.type,
        'content_quality': analyze_content_quality(implementation),
        'completeness': analyze_completeness(implementation),
        'usability': analyze_usability(implementation),
        'test_quality': analyze_test_quality(tests),
        'type_specific_validation': type_specific_validation(implementation),
    }
    scored = ('content_quality', 'completeness', 'usability', 'test_quality')
    overall_score = sum(details[name]['score'] for name in scored) / len(scored)

    return {
        'passed': overall_score >= get_config().IMPLEMENTATION_PASSING_QUALITY,
        'overall_score': overall_score,
        'overall': quality_rating(overall_score),
        'details': details,
        'timestamp': datetime.now().isoformat(),
    }
