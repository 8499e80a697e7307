"""
Jira Automation - Claude-driven Jira Workflow Orchestrator

Receives Jira webhook events and moves issues through requirements analysis,
implementation generation and testing evaluation, reporting every outcome
back to Jira as comments, labels and status changes.
"""

__version__ = "0.1.0"
__author__ = "Jira Automation Development Team"

from .orchestrator import WebhookProcessor
from .jira_client import JiraClient
from .claude_automation import ClaudeSessionManager
from .requirements_analyzer import RequirementsAnalyzer
from .implementation_agent import ImplementationAgent
from .testing_evaluator import TestingEvaluator
from .artifacts import ArtifactStore
from .stage_tracker import StageTracker

__all__ = [
    "WebhookProcessor",
    "JiraClient",
    "ClaudeSessionManager",
    "RequirementsAnalyzer",
    "ImplementationAgent",
    "TestingEvaluator",
    "ArtifactStore",
    "StageTracker",
]
