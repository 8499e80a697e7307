"""
Markdown Reports

Rendering for the implementation summary, the generated configuration file,
the evaluation summary report, and the Jira comment bodies that report
each phase outcome.
"""

import json
from typing import Any, Dict, List

from .models import EvaluationResult, Implementation, ImplementationResult

AUTOMATION_FOOTER = "*Generated by Claude Automation System*"
ERROR_FOOTER = "*Error logged by Claude Automation System*"
SKIPPED_FOOTER = "*Skipped by Claude Automation System*"
EVALUATION_FOOTER = "*Generated by Claude Testing Evaluation System*"
EVALUATION_ERROR_FOOTER = "*Error logged by Claude Testing Evaluation System*"
EVALUATION_SKIPPED_FOOTER = "*Skipped by Claude Testing Evaluation System*"
EVALUATION_UPDATE_FOOTER = "*Updated by Claude Testing Evaluation System*"


def _yes_no(value: Any) -> str:
    return 'Yes' if value else 'No'


def _dash_list(items: List[str], empty: str) -> str:
    if not items:
        return empty
    return "\n".join(f"- {item}" for item in items)


def _type_specific_summary(implementation: Implementation, checks: Dict[str, Any]) -> str:
    word_count = checks.get('word_count', 'N/A')
    if implementation.type == 'code':
        return f"""### Code Implementation
- **Lines of Code:** {checks.get('lines_of_code', 'N/A')}
- **Has Error Handling:** {_yes_no(checks.get('has_error_handling'))}
- **Has Async Support:** {_yes_no(checks.get('has_async_handling'))}
- **Modular Structure:** {_yes_no(checks.get('has_modular_structure'))}
- **Has Comments:** {_yes_no(checks.get('has_comments'))}"""
    if implementation.type == 'documentation':
        return f"""### Documentation Implementation
- **Word Count:** {word_count}
- **Has Structure:** {_yes_no(checks.get('has_structure'))}
- **Has Examples:** {_yes_no(checks.get('has_examples'))}
- **Has References:** {_yes_no(checks.get('has_references'))}
- **Has Table of Contents:** {_yes_no(checks.get('has_toc'))}"""
    if implementation.type == 'analysis':
        return f"""### Analysis Implementation
- **Word Count:** {word_count}
- **Has Methodology:** {_yes_no(checks.get('has_methodology'))}
- **Has Findings:** {_yes_no(checks.get('has_findings'))}
- **Has Recommendations:** {_yes_no(checks.get('has_recommendations'))}
- **Has Evidence:** {_yes_no(checks.get('has_evidence'))}"""
    if implementation.type == 'process':
        return f"""### Process Implementation
- **Word Count:** {word_count}
- **Has Steps:** {_yes_no(checks.get('has_steps'))}
- **Has Roles:** {_yes_no(checks.get('has_roles'))}
- **Has Controls:** {_yes_no(checks.get('has_controls'))}
- **Has Measurement:** {_yes_no(checks.get('has_measurement'))}"""
    return f"""### {implementation.type} Implementation
- **Content Type:** {implementation.type}
- **Word Count:** {word_count}
- **Has Structure:** {_yes_no(checks.get('has_structure'))}
- **Is Actionable:** {_yes_no(checks.get('is_actionable'))}"""


def render_implementation_summary(
    original_key: str,
    result: ImplementationResult,
    timestamp: str,
    primary_file: str,
    validation_file: str,
) -> str:
    """Markdown summary stored as ``implementation-summary.md``."""
    implementation = result.implementation
    validation = result.validation_results
    details = validation.get('details', {})
    passed = validation.get('passed', False)
    is_code = implementation.type == 'code'

    options = "\n".join(
        f"- **{name}:** {description}" for name, description in implementation.configuration_options.items()
    ) or 'No configuration options'

    return f"""# Implementation Complete - {original_key}

**Implementation Date:** {timestamp}
**Implementation Type:** {implementation.type}
**Status:** {'PASSED' if passed else 'NEEDS REVIEW'}

## Implementation Details
- **Title:** {implementation.title}
- **Type:** {implementation.type}
- **Description:** {implementation.description or 'No description provided'}

## Generated Artifacts
- **Primary Deliverable:** {primary_file} ({len(implementation.primary_deliverable)} chars)
- **Supporting Files:** {len(implementation.supporting_files)} files
- **Validation:** {validation_file} ({len(result.tests.content) if result.tests else 0} chars)
- **Documentation:** README.md ({len(result.documentation)} chars)

## Quality Assessment
- **Overall Score:** {validation.get('overall_score', 0):.1f}/10
- **Quality Rating:** {validation.get('overall', 'N/A')}
- **Validation Status:** {'PASSED' if passed else 'FAILED'}
- **Content Quality:** {details.get('content_quality', {}).get('score', 'N/A')}/10
- **Completeness:** {details.get('completeness', {}).get('score', 'N/A')}/10
- **Usability:** {details.get('usability', {}).get('score', 'N/A')}/10

## Implementation Characteristics
{_type_specific_summary(implementation, details.get('type_specific_validation', {}))}

## Usage Instructions
{implementation.usage_instructions or 'See README.md for usage instructions'}

## Dependencies
{_dash_list(implementation.dependencies, 'No external dependencies')}

## Configuration Options
{options}

## Validation Criteria
{_dash_list(implementation.validation_criteria, 'See validation file for criteria')}

## Next Steps
1. Review the generated implementation
2. Run validation procedures: See {validation_file}
3. Validate against original requirements
4. {'Test in development environment' if is_code else 'Conduct peer review'}
5. {'Deploy to production' if is_code else 'Implement in target environment'}

## Workflow Status
- [x] Requirements analyzed
- [x] Delivery criteria created
- [x] Implementation generated by Claude
- [x] Quality validation completed
- [x] Implementation artifacts created
- [ ] Manual review
- [ ] {'Integration testing' if is_code else 'Stakeholder approval'}
- [ ] Production deployment/implementation

{AUTOMATION_FOOTER}"""


def render_config_file(original_key: str, implementation: Implementation, timestamp: str) -> str:
    """``package.json`` for code, ``process-config.json`` for processes."""
    if implementation.type == 'code':
        config: Dict[str, Any] = {
            "name": f"{original_key.lower()}-implementation",
            "version": "1.0.0",
            "description": implementation.description or f"Implementation for {original_key}",
            "main": "solution.js",
            "scripts": {
                "test": "node tests.js",
                "start": "node solution.js",
            },
            "dependencies": {dependency: "^1.0.0" for dependency in implementation.dependencies},
            "generated": {
                "by": "Claude Automation System",
                "at": timestamp,
                "originalIssue": original_key,
                "implementationType": implementation.type,
            },
        }
    else:
        config = {
            "processName": implementation.title,
            "version": "1.0.0",
            "description": implementation.description,
            "configuration": implementation.configuration_options,
            "dependencies": implementation.dependencies,
            "validationCriteria": implementation.validation_criteria,
            "metadata": {
                "generatedBy": "Claude Automation System",
                "generatedAt": timestamp,
                "originalIssue": original_key,
                "implementationType": implementation.type,
            },
        }
    return json.dumps(config, indent=2)


def score_breakdown(result: EvaluationResult) -> str:
    breakdown = result.final_score.breakdown
    return (
        f"- Requirements Coverage: {breakdown['requirementsCoverage']:g}/25\n"
        f"- Quality & Craftsmanship: {breakdown['qualityCraftsmanship']:g}/25\n"
        f"- Usability & Practicality: {breakdown['usabilityPracticality']:g}/25\n"
        f"- Completeness & Polish: {breakdown['completenessPolish']:g}/25"
    )


def render_evaluation_summary(result: EvaluationResult) -> str:
    """Markdown report stored as ``evaluation-summary.md``."""
    score = result.final_score
    evaluation = result.evaluation
    coverage = evaluation.categories['requirementsCoverage']
    overall = evaluation.overall_assessment

    if evaluation.errors:
        errors = "### Identified Errors\n" + "\n".join(
            f"\n**{error.severity.value} - {error.category.value}**\n"
            f"- Description: {error.description}\n"
            f"- Impact: {error.impact}\n"
            f"- Recommendation: {error.recommendation}"
            for error in evaluation.errors
        )
    else:
        errors = "**No errors identified**"

    return f"""# Testing Evaluation Report - {result.original_issue}

**Evaluation Date:** {result.evaluated_at}
**Implementation Type:** {result.implementation_type}
**Final Result:** {'✅ PASSED' if score.meets_criteria else '❌ FAILED'}

## Overall Score: {score.overall_score:g}/100

### Score Breakdown
{score_breakdown(result)}

### Error Analysis
- **Total Errors:** {score.error_count}
- **Critical Errors:** {score.critical_errors}
- **High Priority Errors:** {score.high_errors}

{errors}

## Detailed Analysis

### Requirements Coverage
{coverage.analysis}

**Covered Requirements:**
{_dash_list(coverage.details.get('coveredRequirements', []), '- None listed')}

**Missed Requirements:**
{_dash_list(coverage.details.get('missedRequirements', []), '- None listed')}

### Quality & Craftsmanship
{evaluation.categories['qualityCraftsmanship'].analysis}

### Usability & Practicality
{evaluation.categories['usabilityPracticality'].analysis}

### Completeness & Polish
{evaluation.categories['completenessPolish'].analysis}

## Overall Assessment
{overall.summary}

**Ready for Deployment:** {_yes_no(overall.ready_for_deployment)}

### Recommendations
{_dash_list(overall.recommendations, '- None')}

---
{EVALUATION_FOOTER}"""


# Jira comment bodies

def implementation_generated_content(original_key: str, result: ImplementationResult, files: List[str], location: str) -> str:
    implementation = result.implementation
    file_lines = "\n".join(f"• {name}" for name in files)
    return f"""Claude has successfully generated the implementation for {original_key}.

**Implementation Details:**
- Type: {implementation.type}
- Title: {implementation.title}

**Artifacts Created:**
{file_lines}

**Next Steps:**
1. Review generated implementation in repository
2. Move to "Testing Criteria" status to trigger automated evaluation
3. Or proceed with manual testing and review

**Repository Location:** `{location}`"""


def evaluation_passed_content(result: EvaluationResult, usage_instructions: str, location: str) -> str:
    score = result.final_score
    return f"""Claude has successfully evaluated the implementation and it **PASSES** all criteria.

**Final Score: {score.overall_score:g}/100** ✅
{score_breakdown(result)}

**Error Analysis: {score.error_count} errors found**

**Implementation Type:** {result.implementation_type}

{usage_instructions}

**Repository Location:** `{location}/`
**Evaluation Report:** `{location}/evaluation/evaluation-summary.md`"""


def evaluation_failed_content(result: EvaluationResult, location: str) -> str:
    score = result.final_score
    critical = "\n".join(
        f"• **{issue.category.value}:** {issue.description}" for issue in result.recommendation.critical_issues
    ) or 'No critical issues'
    return f"""Claude has evaluated the implementation and it **FAILS** to meet criteria.

**Final Score: {score.overall_score:g}/100** ❌ (Required: {score.passing_score}/100)
{score_breakdown(result)}

**Error Analysis: {score.error_count} errors found** ({score.critical_errors} critical, {score.high_errors} high)

**Critical Issues:**
{critical}

**Repository Location:** `{location}/`
**Detailed Report:** `{location}/evaluation/evaluation-summary.md`

Please address the identified issues and re-submit for evaluation."""


def completion_note(status: str, usage_instructions: str) -> str:
    """Block appended to a criteria issue description when it cannot transition."""
    return f"\n\n---\n**COMPLETED - {status}**\n{usage_instructions}\n\n{EVALUATION_UPDATE_FOOTER}"
