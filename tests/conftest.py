"""
Pytest configuration and fixtures for Jira Automation tests.

Provides an in-memory Jira stand-in, Claude session managers with stubbed
responses, sample webhook payloads and a ready-wired WebhookProcessor.
"""

import copy
import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional
from unittest.mock import AsyncMock

import pytest

import jira_automation.config as config_module
from jira_automation.artifacts import ArtifactStore
from jira_automation.claude_automation import ClaudeSessionManager
from jira_automation.errors import JiraApiError
from jira_automation.implementation_agent import ImplementationAgent
from jira_automation.jira_client import JiraClient
from jira_automation.models import Issue
from jira_automation.orchestrator import WebhookProcessor
from jira_automation.requirements_analyzer import RequirementsAnalyzer
from jira_automation.testing_evaluator import TestingEvaluator


CRITERIA_DESCRIPTION = """**Claude Generated Delivery Criteria**

**Original Issue:** PCP1-67 - Fix login bug
**Analysis Date:** 2026-01-05T10:00:00

## Functional Requirements
• Users can log in with valid credentials
• Invalid credentials show an error

## Technical Requirements
• Session cookie is HttpOnly

## Acceptance Criteria
• Login succeeds for valid users

## Validation Tests
**Unit Tests:**
• Test credential check

## Definition of Done
• Code reviewed

## Estimated Effort
**Story Points:** 3
**Complexity:** Low
**Hours:** 8

---
*Generated by Claude Automation System*
**Instructions:** Move this issue to "Ready for Implementation" to trigger automated development."""


@pytest.fixture(autouse=True)
def reset_config() -> Generator[None, None, None]:
    """Give every test a fresh configuration singleton."""
    config_module._config = None
    yield
    config_module._config = None


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for testing."""
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


class FakeJira:
    """In-memory Jira used in place of JiraClient.

    Issues live in ``issues``; every call is appended to ``calls`` as
    ``(method, args)``. Method names in ``failing`` raise JiraApiError.
    """

    def __init__(self, base_url: str = "https://jira.example.com") -> None:
        self.base_url = base_url
        self.issues: Dict[str, Issue] = {}
        self.comments: Dict[str, List[str]] = {}
        self.links: List[tuple] = []
        self.transitions: Dict[str, List[Dict[str, str]]] = {}
        self.calls: List[tuple] = []
        self.failing: set = set()
        self._next_id = 100

    def add(self, issue: Issue) -> Issue:
        self.issues[issue.key] = copy.deepcopy(issue)
        return issue

    def _call(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if method in self.failing:
            raise JiraApiError(f"Failed to {method}: 500 - simulated", status_code=500)

    def called(self, method: str) -> List[tuple]:
        return [args for name, args in self.calls if name == method]

    async def get_issue(self, key: str) -> Issue:
        self._call("get_issue", key)
        if key not in self.issues:
            raise JiraApiError(f"Failed to fetch issue {key}: 404 - not found", status_code=404)
        return copy.deepcopy(self.issues[key])

    async def create_issue(
        self,
        project_key: str,
        issue_type: str,
        summary: str,
        description: str,
        labels: Optional[List[str]] = None,
    ) -> Issue:
        self._call("create_issue", project_key, issue_type, summary, description, labels)
        self._next_id += 1
        issue = Issue(
            key=f"{project_key}-{self._next_id}",
            issue_type=issue_type,
            status="To Do",
            summary=summary,
            description=description,
            labels=list(labels or []),
            project_key=project_key,
        )
        return self.add(issue)

    async def update_issue(self, key: str, fields: Dict[str, Any]) -> None:
        self._call("update_issue", key, copy.deepcopy(fields))
        issue = self.issues[key]
        for name, value in fields.items():
            setattr(issue, name, copy.deepcopy(value))

    async def add_comment(self, key: str, text: str) -> Dict[str, Any]:
        self._call("add_comment", key, text)
        self.comments.setdefault(key, []).append(text)
        return {"id": str(len(self.comments[key]))}

    async def link_issues(self, inward_key: str, outward_key: str, link_type: str = "Relates") -> None:
        self._call("link_issues", inward_key, outward_key, link_type)
        self.links.append((inward_key, outward_key, link_type))

    async def get_available_transitions(self, key: str) -> List[Dict[str, str]]:
        self._call("get_available_transitions", key)
        return list(self.transitions.get(key, []))

    async def transition_issue(self, key: str, transition_id: str) -> None:
        self._call("transition_issue", key, transition_id)
        for transition in self.transitions.get(key, []):
            if transition["id"] == transition_id:
                self.issues[key].status = transition["name"]

    def get_issue_url(self, key: str) -> str:
        return f"{self.base_url}/browse/{key}"

    format_comment = staticmethod(JiraClient.format_comment)

    def comment_titles(self, key: str) -> List[str]:
        return [text.split("\n", 1)[0].strip("*") for text in self.comments.get(key, [])]


@pytest.fixture
def fake_jira() -> FakeJira:
    return FakeJira()


@pytest.fixture
def claude() -> ClaudeSessionManager:
    """ClaudeSessionManager whose ``ask`` is an AsyncMock (no SDK traffic)."""
    manager = ClaudeSessionManager()
    manager.ask = AsyncMock(return_value="{}")
    return manager


@pytest.fixture
def store(temp_dir: Path) -> ArtifactStore:
    return ArtifactStore(str(temp_dir / "work-items"))


@pytest.fixture
def processor(fake_jira: FakeJira, claude: ClaudeSessionManager, store: ArtifactStore) -> WebhookProcessor:
    """WebhookProcessor wired to the fake Jira, stubbed Claude and a temp store."""
    return WebhookProcessor(
        jira=fake_jira,
        analyzer=RequirementsAnalyzer(claude),
        implementer=ImplementationAgent(claude),
        evaluator=TestingEvaluator(claude, store),
        store=store,
    )


def issue_json(
    key: str,
    summary: str,
    description: str = "",
    status: str = "To Do",
    issue_type: str = "Story",
    labels: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Jira REST/webhook representation of an issue."""
    return {
        "key": key,
        "fields": {
            "summary": summary,
            "description": description,
            "status": {"name": status},
            "issuetype": {"name": issue_type},
            "labels": list(labels or []),
            "project": {"key": key.rsplit("-", 1)[0]},
        },
    }


def webhook(event: str, issue: Dict[str, Any], status_change: bool = True) -> Dict[str, Any]:
    """Jira webhook body wrapping ``issue``."""
    payload: Dict[str, Any] = {"webhookEvent": event, "issue": issue}
    if event == "jira:issue_updated":
        items = [{"field": "status", "fromString": "To Do", "toString": issue["fields"]["status"]["name"]}]
        payload["changelog"] = {"items": items if status_change else [{"field": "summary"}]}
    return payload


def criteria_issue(
    key: str = "PCP1-68",
    status: str = "Ready for Implementation",
    labels: Optional[List[str]] = None,
    summary: str = "Deliverable Criteria: PCP1-67 - Fix login bug",
    description: str = CRITERIA_DESCRIPTION,
) -> Issue:
    return Issue(
        key=key,
        issue_type="Task",
        status=status,
        summary=summary,
        description=description,
        labels=list(labels or []),
    )


def criteria_webhook(issue: Issue) -> Dict[str, Any]:
    return webhook(
        "jira:issue_updated",
        issue_json(issue.key, issue.summary, issue.description, issue.status, issue.issue_type, issue.labels),
    )


def analysis_json() -> Dict[str, Any]:
    return {
        "deliveryCriteria": {
            "functionalRequirements": ["Users can log in", "Errors are shown"],
            "technicalRequirements": ["Use HttpOnly cookies"],
            "qualityRequirements": ["90% coverage"],
            "acceptanceCriteria": ["Valid users log in"],
            "definitionOfDone": ["Merged"],
        },
        "validationTests": {
            "unitTests": ["credential check", "error message"],
            "integrationTests": ["login flow"],
            "edgeCases": ["empty password"],
            "performanceTests": [],
        },
        "technicalApproach": {
            "architecture": "Session based auth",
            "components": ["LoginForm", "AuthService"],
            "dependencies": ["bcrypt"],
            "risks": [],
            "mitigations": [],
        },
        "estimatedEffort": {
            "storyPoints": 3,
            "hours": 8,
            "complexity": "Low",
            "confidence": "High",
            "assumptions": [],
        },
    }


def implementation_json(implementation_type: str = "code") -> Dict[str, Any]:
    return {
        "type": implementation_type,
        "title": "Login fix",
        "description": "Fixes credential validation in the login flow",
        "primaryDeliverable": "async function login(user) {\n  try {\n    return await check(user);\n  } catch (e) {\n    // report\n    throw e;\n  }\n}\nmodule.exports = { login };\n",
        "supportingFiles": {"lib/helpers.js": "module.exports = {};"},
        "implementationNotes": ["Uses existing session store"],
        "usageInstructions": "Require solution.js and call login(user) with a user object.",
        "dependencies": ["bcrypt"],
        "configurationOptions": {"SESSION_TTL": "Session lifetime in seconds"},
        "validationCriteria": ["Valid users log in"],
        "performanceConsiderations": [],
    }


def evaluation_json(
    scores: tuple = (22, 20, 20, 20),
    errors: Optional[List[Dict[str, str]]] = None,
    ready: bool = True,
) -> Dict[str, Any]:
    coverage, quality, usability, completeness = scores
    return {
        "requirementsCoverage": {
            "score": coverage,
            "analysis": "Most requirements covered",
            "coveredRequirements": ["Users can log in"],
            "missedRequirements": [],
        },
        "qualityCraftsmanship": {"score": quality, "analysis": "Clean code", "strengths": ["error handling"], "weaknesses": []},
        "usabilityPracticality": {"score": usability, "analysis": "Easy to use", "practicalIssues": []},
        "completenessPolish": {"score": completeness, "analysis": "Complete", "missingElements": []},
        "errors": errors or [],
        "overallAssessment": {
            "summary": "Solid implementation",
            "readyForDeployment": ready,
            "majorConcerns": [],
            "recommendations": ["Add rate limiting"],
        },
    }


def as_response(data: Dict[str, Any]) -> str:
    """Wrap JSON the way Claude usually answers."""
    return f"Here is the result:\n```json\n{json.dumps(data, indent=2)}\n```"


# Pytest configuration


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as end-to-end webhook scenario"
    )
