"""
Data Models for Jira Automation

Structures for webhook events, issue snapshots, stage markers and the
results exchanged with the Claude adapters. Claude speaks camelCase JSON; the
``from_dict`` / ``to_dict`` pairs translate at that boundary.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .config import Constants, get_config


class EventType(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    OTHER = "other"

    @classmethod
    def from_webhook_event(cls, name: Optional[str]) -> 'EventType':
        if name == "jira:issue_created":
            return cls.CREATED
        if name == "jira:issue_updated":
            return cls.UPDATED
        return cls.OTHER


class Classification(str, Enum):
    """Processing intent derived from one webhook event."""
    INITIAL_INQUIRY = "initial_inquiry"
    DELIVERABLE_CRITERIA = "deliverable_criteria"
    TESTING_CRITERIA = "testing_criteria"
    IGNORE = "ignore"


class Stage(str, Enum):
    """Furthest completed automation phase of a criteria issue."""
    NONE = "none"
    ANALYZED = "analyzed"
    IMPLEMENTED = "implemented"
    TESTED = "tested"

    @property
    def rank(self) -> int:
        return list(Stage).index(self)

    @property
    def label(self) -> Optional[str]:
        """Jira label encoding this stage (``None`` has no label)."""
        if self is Stage.NONE:
            return None
        return get_config().stage_label(self.value)

    @classmethod
    def labels(cls) -> List[str]:
        return [stage.label for stage in cls if stage.label]

    @classmethod
    def from_labels(cls, labels: List[str]) -> 'Stage':
        """Decode a label set, highest stage wins when several are present."""
        present = set(labels)
        for stage in sorted(cls, key=lambda s: s.rank, reverse=True):
            if stage.label and stage.label in present:
                return stage
        return cls.NONE


class Action(str, Enum):
    """Terminal outcome reported by the webhook processor."""
    IGNORED = "ignored"
    REQUIREMENTS_ANALYZED = "requirements_analyzed"
    SKIPPED = "skipped"
    IMPLEMENTATION_GENERATED = "implementation_generated"
    IMPLEMENTATION_FAILED = "implementation_failed"
    ARTIFACTS_FAILED = "artifacts_failed"
    EVALUATION_PASSED = "evaluation_passed"
    EVALUATION_FAILED = "evaluation_failed"
    SYSTEM_ERROR = "system_error"


def _adf_to_text(node: Any) -> str:
    """Flatten an Atlassian Document Format node to plain text."""
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        return "".join(_adf_to_text(child) for child in node)
    if not isinstance(node, dict):
        return ""

    if node.get("type") == "text":
        return node.get("text", "")
    if node.get("type") == "hardBreak":
        return "\n"

    text = _adf_to_text(node.get("content", []))
    if node.get("type") in ("paragraph", "heading", "listItem", "codeBlock"):
        text += "\n"
    return text


def _label_name(label: Any) -> str:
    if isinstance(label, dict):
        return label.get("name", "")
    return str(label)


@dataclass
class Issue:
    """Snapshot of a Jira issue as seen by one event."""
    key: str
    issue_type: str = ""
    status: str = ""
    summary: str = ""
    description: str = ""
    labels: List[str] = field(default_factory=list)
    project_key: str = ""

    def __post_init__(self):
        if not self.project_key and "-" in self.key:
            self.project_key = self.key.rsplit("-", 1)[0]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Issue':
        """Parse a Jira REST / webhook issue object.

        Args:
            data: Issue JSON with ``key`` and ``fields``

        Returns:
            Issue snapshot; missing sub-objects become empty values

        Raises:
            KeyError: If the issue has no key
        """
        if not data.get("key"):
            raise KeyError("Issue data has no 'key'")

        fields = data.get("fields") or {}
        description = fields.get("description")
        if isinstance(description, (dict, list)):
            description = _adf_to_text(description).strip()

        return cls(
            key=data["key"],
            issue_type=(fields.get("issuetype") or {}).get("name", ""),
            status=(fields.get("status") or {}).get("name", ""),
            summary=fields.get("summary") or "",
            description=description or "",
            labels=[_label_name(label) for label in fields.get("labels") or []],
            project_key=(fields.get("project") or {}).get("key", ""),
        )


@dataclass
class ChangelogItem:
    """One field change inside an ``issue_updated`` changelog."""
    field: str
    from_string: Optional[str] = None
    to_string: Optional[str] = None


@dataclass
class WebhookEvent:
    """Transient inbound event, consumed once by the processor."""
    event_type: EventType
    raw_event: Optional[str] = None
    issue: Optional[Issue] = None
    changelog: List[ChangelogItem] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> 'WebhookEvent':
        """Build an event from a raw Jira webhook body.

        Malformed pieces are dropped rather than raising, so that
        classification can treat them as non-actionable.
        """
        raw_event = payload.get("webhookEvent")

        issue = None
        issue_data = payload.get("issue")
        if isinstance(issue_data, dict) and issue_data.get("key"):
            issue = Issue.from_dict(issue_data)

        changelog = []
        changelog_data = payload.get("changelog") or {}
        for item in changelog_data.get("items") or []:
            if isinstance(item, dict) and item.get("field"):
                changelog.append(ChangelogItem(
                    field=item["field"],
                    from_string=item.get("fromString"),
                    to_string=item.get("toString"),
                ))

        return cls(
            event_type=EventType.from_webhook_event(raw_event),
            raw_event=raw_event,
            issue=issue,
            changelog=changelog,
        )

    def has_field_change(self, field_name: str) -> bool:
        return any(item.field == field_name for item in self.changelog)


@dataclass
class BestEffortResult:
    """Outcome of a side effect whose failure must not abort a phase."""
    ok: bool
    warning: Optional[str] = None

    @classmethod
    def success(cls) -> 'BestEffortResult':
        return cls(ok=True)

    @classmethod
    def failed(cls, warning: str) -> 'BestEffortResult':
        return cls(ok=False, warning=warning)


@dataclass
class ProcessingResult:
    """Result of processing one webhook event."""
    action: Action
    reason: Optional[str] = None
    criteria_issue: Optional[str] = None
    original_issue: Optional[str] = None
    stage: Optional[Stage] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def note(self, outcome: BestEffortResult) -> BestEffortResult:
        """Record a best-effort step's warning on this result."""
        if not outcome.ok and outcome.warning:
            self.warnings.append(outcome.warning)
        return outcome

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {key: value for key, value in data.items() if value not in (None, [], {})}


# Requirements analysis

@dataclass
class DeliveryCriteria:
    functional_requirements: List[str] = field(default_factory=list)
    technical_requirements: List[str] = field(default_factory=list)
    quality_requirements: List[str] = field(default_factory=list)
    acceptance_criteria: List[str] = field(default_factory=list)
    definition_of_done: List[str] = field(default_factory=list)


@dataclass
class ValidationTests:
    unit_tests: List[str] = field(default_factory=list)
    integration_tests: List[str] = field(default_factory=list)
    edge_cases: List[str] = field(default_factory=list)
    performance_tests: List[str] = field(default_factory=list)


@dataclass
class TechnicalApproach:
    architecture: str = ""
    components: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    risks: List[str] = field(default_factory=list)
    mitigations: List[str] = field(default_factory=list)


@dataclass
class EstimatedEffort:
    story_points: Optional[int] = None
    hours: Optional[int] = None
    complexity: str = ""
    confidence: str = ""
    assumptions: List[str] = field(default_factory=list)


def _str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"Expected a list, got {type(value).__name__}")
    return [str(item) for item in value]


@dataclass
class AnalysisResult:
    """Structured requirements analysis for an initial inquiry."""
    delivery_criteria: DeliveryCriteria
    validation_tests: ValidationTests
    technical_approach: TechnicalApproach
    estimated_effort: EstimatedEffort
    raw_analysis: str = ""
    is_fallback: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any], raw_analysis: str = "") -> 'AnalysisResult':
        """Parse Claude's analysis JSON.

        Raises:
            KeyError: If ``deliveryCriteria`` or ``validationTests`` is missing
            TypeError: If a list-valued field has the wrong shape
        """
        if not data.get('deliveryCriteria'):
            raise KeyError("Missing 'deliveryCriteria' section")
        if not data.get('validationTests'):
            raise KeyError("Missing 'validationTests' section")

        criteria = data['deliveryCriteria']
        tests = data['validationTests']
        approach = data.get('technicalApproach') or {}
        effort = data.get('estimatedEffort') or {}

        return cls(
            delivery_criteria=DeliveryCriteria(
                functional_requirements=_str_list(criteria.get('functionalRequirements')),
                technical_requirements=_str_list(criteria.get('technicalRequirements')),
                quality_requirements=_str_list(criteria.get('qualityRequirements')),
                acceptance_criteria=_str_list(criteria.get('acceptanceCriteria')),
                definition_of_done=_str_list(criteria.get('definitionOfDone')),
            ),
            validation_tests=ValidationTests(
                unit_tests=_str_list(tests.get('unitTests')),
                integration_tests=_str_list(tests.get('integrationTests')),
                edge_cases=_str_list(tests.get('edgeCases')),
                performance_tests=_str_list(tests.get('performanceTests')),
            ),
            technical_approach=TechnicalApproach(
                architecture=str(approach.get('architecture', '')),
                components=_str_list(approach.get('components')),
                dependencies=_str_list(approach.get('dependencies')),
                risks=_str_list(approach.get('risks')),
                mitigations=_str_list(approach.get('mitigations')),
            ),
            estimated_effort=EstimatedEffort(
                story_points=effort.get('storyPoints'),
                hours=effort.get('hours'),
                complexity=str(effort.get('complexity', '')),
                confidence=str(effort.get('confidence', '')),
                assumptions=_str_list(effort.get('assumptions')),
            ),
            raw_analysis=raw_analysis,
        )


@dataclass
class CriteriaRequirements:
    """Requirement lists recovered from a criteria issue description."""
    functional_requirements: List[str] = field(default_factory=list)
    technical_requirements: List[str] = field(default_factory=list)
    acceptance_criteria: List[str] = field(default_factory=list)
    validation_tests: List[str] = field(default_factory=list)
    definition_of_done: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            'functionalRequirements': self.functional_requirements,
            'technicalRequirements': self.technical_requirements,
            'acceptanceCriteria': self.acceptance_criteria,
            'validationTests': self.validation_tests,
            'definitionOfDone': self.definition_of_done,
        }


# Implementation generation

IMPLEMENTATION_TYPES = ['code', 'documentation', 'analysis', 'process', 'other']


@dataclass
class Implementation:
    """The deliverable Claude produced for a criteria issue."""
    type: str
    title: str
    primary_deliverable: str
    description: str = ""
    supporting_files: Dict[str, str] = field(default_factory=dict)
    implementation_notes: List[str] = field(default_factory=list)
    usage_instructions: str = ""
    dependencies: List[str] = field(default_factory=list)
    configuration_options: Dict[str, str] = field(default_factory=dict)
    validation_criteria: List[str] = field(default_factory=list)
    performance_considerations: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Implementation':
        """Parse Claude's implementation JSON.

        Raises:
            KeyError: If type, title or primaryDeliverable is missing
            ValueError: If type is not one of IMPLEMENTATION_TYPES
        """
        for required in ('type', 'primaryDeliverable', 'title'):
            if not data.get(required):
                raise KeyError(f"Implementation missing required field: {required}")

        if data['type'] not in IMPLEMENTATION_TYPES:
            raise ValueError(
                f"Invalid implementation type: {data['type']}. "
                f"Must be one of: {', '.join(IMPLEMENTATION_TYPES)}"
            )

        supporting = data.get('supportingFiles') or {}
        options = data.get('configurationOptions') or {}
        if not isinstance(supporting, dict) or not isinstance(options, dict):
            raise TypeError("supportingFiles and configurationOptions must be objects")

        return cls(
            type=data['type'],
            title=str(data['title']),
            primary_deliverable=str(data['primaryDeliverable']),
            description=str(data.get('description') or ''),
            supporting_files={str(k): str(v) for k, v in supporting.items()},
            implementation_notes=_str_list(data.get('implementationNotes')),
            usage_instructions=str(data.get('usageInstructions') or ''),
            dependencies=_str_list(data.get('dependencies')),
            configuration_options={str(k): str(v) for k, v in options.items()},
            validation_criteria=_str_list(data.get('validationCriteria')),
            performance_considerations=_str_list(data.get('performanceConsiderations')),
        )


@dataclass
class ValidationArtifact:
    """Generated tests (for code) or validation checklist (other types)."""
    type: str
    content: str
    validation_type: str


@dataclass
class ImplementationResult:
    """Everything the implementation phase produces for one original issue."""
    implementation: Implementation
    tests: Optional[ValidationArtifact] = None
    documentation: str = ""
    validation_results: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
    files: Dict[str, str] = field(default_factory=dict)


# Evaluation

class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class ErrorCategory(str, Enum):
    FUNCTIONAL = "FUNCTIONAL"
    TECHNICAL = "TECHNICAL"
    USABILITY = "USABILITY"
    DOCUMENTATION = "DOCUMENTATION"


SCORE_CATEGORIES = [
    'requirementsCoverage',
    'qualityCraftsmanship',
    'usabilityPracticality',
    'completenessPolish',
]


@dataclass
class EvaluationIssue:
    """One defect identified by the evaluator."""
    severity: Severity
    category: ErrorCategory
    description: str
    impact: str = ""
    recommendation: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvaluationIssue':
        category = data.get('type', data.get('category', ''))
        return cls(
            severity=Severity(str(data.get('severity', '')).upper()),
            category=ErrorCategory(str(category).upper()),
            description=str(data.get('description', '')),
            impact=str(data.get('impact', '')),
            recommendation=str(data.get('recommendation', '')),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            'severity': self.severity.value,
            'type': self.category.value,
            'description': self.description,
            'impact': self.impact,
            'recommendation': self.recommendation,
        }


@dataclass
class CategoryAssessment:
    """Score and narrative for one of the four evaluation dimensions."""
    score: float
    analysis: str = ""
    details: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CategoryAssessment':
        if 'score' not in data:
            raise KeyError("Category assessment missing 'score'")
        details = {
            key: _str_list(value)
            for key, value in data.items()
            if key not in ('score', 'analysis') and isinstance(value, list)
        }
        return cls(
            score=float(data['score']),
            analysis=str(data.get('analysis', '')),
            details=details,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'score': self.score, 'analysis': self.analysis, **self.details}


@dataclass
class OverallAssessment:
    summary: str = ""
    ready_for_deployment: bool = False
    major_concerns: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OverallAssessment':
        return cls(
            summary=str(data.get('summary', '')),
            ready_for_deployment=data.get('readyForDeployment') is True,
            major_concerns=_str_list(data.get('majorConcerns')),
            recommendations=_str_list(data.get('recommendations')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': self.summary,
            'readyForDeployment': self.ready_for_deployment,
            'majorConcerns': self.major_concerns,
            'recommendations': self.recommendations,
        }


@dataclass
class Evaluation:
    """Claude's raw judgment of an implementation."""
    categories: Dict[str, CategoryAssessment]
    errors: List[EvaluationIssue]
    overall_assessment: OverallAssessment

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Evaluation':
        """Parse Claude's evaluation JSON.

        Raises:
            KeyError: If a required section is missing
            ValueError: If an error carries an unknown severity or category
        """
        for section in SCORE_CATEGORIES + ['errors', 'overallAssessment']:
            if section not in data or data[section] is None:
                raise KeyError(f"Missing required evaluation section: {section}")
        if not isinstance(data['errors'], list):
            raise TypeError("'errors' must be a list")

        return cls(
            categories={name: CategoryAssessment.from_dict(data[name]) for name in SCORE_CATEGORIES},
            errors=[EvaluationIssue.from_dict(error) for error in data['errors']],
            overall_assessment=OverallAssessment.from_dict(data['overallAssessment']),
        )

    def errors_with(self, severity: Severity) -> List[EvaluationIssue]:
        return [error for error in self.errors if error.severity is severity]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {name: self.categories[name].to_dict() for name in SCORE_CATEGORIES}
        data['errors'] = [error.to_dict() for error in self.errors]
        data['overallAssessment'] = self.overall_assessment.to_dict()
        return data


@dataclass
class FinalScore:
    """Verdict computed from an Evaluation."""
    overall_score: float
    breakdown: Dict[str, float]
    error_count: int
    critical_errors: int
    high_errors: int
    meets_criteria: bool
    ready_for_deployment: bool
    core_requirements_met: bool
    passing_score: int = Constants.PASSING_SCORE
    max_score: int = 100

    @property
    def blocking_errors(self) -> int:
        return self.critical_errors + self.high_errors


@dataclass
class Recommendation:
    status: str
    action: str
    summary: str
    next_steps: List[str] = field(default_factory=list)
    critical_issues: List[EvaluationIssue] = field(default_factory=list)
    major_concerns: List[str] = field(default_factory=list)


@dataclass
class EvaluationResult:
    """Complete evaluation bundle for one original issue."""
    original_issue: str
    criteria_issue: str
    implementation_type: str
    evaluation: Evaluation
    final_score: FinalScore
    recommendation: Recommendation
    evaluated_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        score = self.final_score
        return {
            'originalIssue': self.original_issue,
            'criteriaIssue': self.criteria_issue,
            'implementationType': self.implementation_type,
            'evaluation': self.evaluation.to_dict(),
            'finalScore': {
                'overallScore': score.overall_score,
                'maxScore': score.max_score,
                'errorCount': score.error_count,
                'criticalErrors': score.critical_errors,
                'highErrors': score.high_errors,
                'blockingErrors': score.blocking_errors,
                'meetsCriteria': score.meets_criteria,
                'passingScore': score.passing_score,
                'readyForDeployment': score.ready_for_deployment,
                'coreRequirementsMet': score.core_requirements_met,
                'breakdown': score.breakdown,
            },
            'recommendation': {
                'status': self.recommendation.status,
                'action': self.recommendation.action,
                'summary': self.recommendation.summary,
                'nextSteps': self.recommendation.next_steps,
                'criticalIssues': [issue.to_dict() for issue in self.recommendation.critical_issues],
                'majorConcerns': self.recommendation.major_concerns,
            },
            'evaluatedAt': self.evaluated_at,
        }
