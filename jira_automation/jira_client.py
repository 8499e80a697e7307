"""
Jira Client

Async gateway for the Jira REST API (v2): issue reads and partial updates,
comments, issue creation and linking, and workflow transitions. Every failing
call raises JiraApiError; callers decide whether a failure is fatal.
"""

import base64
from typing import Any, Dict, List, Optional

import httpx
from rich.console import Console

from .config import Constants, JiraConfig
from .errors import JiraApiError
from .models import Issue

console = Console()


class JiraClient:
    """Thin async wrapper around the Jira REST endpoints used by the automation."""

    API_PREFIX = "/rest/api/2"

    def __init__(self, config: JiraConfig, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        """Initialize Jira client.

        Args:
            config: Base URL, credentials and timeout
            transport: Optional httpx transport (used to stub Jira in tests)
        """
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self._transport = transport

        auth_string = f"{config.email}:{config.api_token}"
        encoded_auth = base64.b64encode(auth_string.encode()).decode()
        self.auth_header = f"Basic {encoded_auth}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": self.auth_header,
                "Accept": "application/json",
                "Content-Type": "application/json",
            },
            timeout=self.config.timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        action: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Issue one request and decode the JSON body.

        Args:
            method: HTTP method
            path: Path below the REST API prefix
            action: Human readable description used in error messages
            json: Optional request body
            params: Optional query parameters

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            JiraApiError: On transport failure or a non-success status
        """
        try:
            async with self._client() as client:
                response = await client.request(
                    method, f"{self.API_PREFIX}{path}", json=json, params=params
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = e.response.text[:500]
            console.print(f"[red]Jira API error while trying to {action}: {e.response.status_code} {body}[/red]")
            raise JiraApiError(
                f"Failed to {action}: {e.response.status_code} - {body}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            console.print(f"[red]Jira request failed while trying to {action}: {e}[/red]")
            raise JiraApiError(f"Failed to {action}: {e}") from e

        if not response.content:
            return None
        return response.json()

    async def get_issue(self, key: str) -> Issue:
        data = await self._request("GET", f"/issue/{key}", f"fetch issue {key}")
        return Issue.from_dict(data)

    async def create_issue(
        self,
        project_key: str,
        issue_type: str,
        summary: str,
        description: str,
        labels: Optional[List[str]] = None,
    ) -> Issue:
        """Create an issue and return its snapshot.

        Args:
            project_key: Project to create the issue in
            issue_type: Issue type name, e.g. ``Task``
            summary: Issue summary
            description: Issue description (wiki markup)
            labels: Optional labels to set on creation

        Returns:
            Issue carrying the new key and the submitted fields
        """
        fields: Dict[str, Any] = {
            "project": {"key": project_key},
            "issuetype": {"name": issue_type},
            "summary": summary,
            "description": description,
        }
        if labels:
            fields["labels"] = list(labels)

        data = await self._request("POST", "/issue", "create issue", json={"fields": fields})
        console.print(f"[green]Created issue: {data['key']}[/green]")
        return Issue(
            key=data["key"],
            issue_type=issue_type,
            summary=summary,
            description=description,
            labels=list(labels or []),
            project_key=project_key,
        )

    async def update_issue(self, key: str, fields: Dict[str, Any]) -> None:
        await self._request("PUT", f"/issue/{key}", f"update issue {key}", json={"fields": fields})
        console.print(f"[green]Updated issue: {key}[/green]")

    async def add_comment(self, key: str, text: str) -> Dict[str, Any]:
        data = await self._request(
            "POST", f"/issue/{key}/comment", f"add comment to {key}", json={"body": text}
        )
        console.print(f"[green]Added comment to {key}[/green]")
        return data or {}

    async def link_issues(self, inward_key: str, outward_key: str, link_type: str = Constants.LINK_TYPE) -> None:
        payload = {
            "type": {"name": link_type},
            "inwardIssue": {"key": inward_key},
            "outwardIssue": {"key": outward_key},
        }
        await self._request("POST", "/issueLink", f"link {inward_key} to {outward_key}", json=payload)
        console.print(f"[green]Linked issues: {inward_key} -> {outward_key}[/green]")

    async def get_available_transitions(self, key: str) -> List[Dict[str, str]]:
        """List workflow transitions as ``{"id", "name"}`` dicts."""
        data = await self._request("GET", f"/issue/{key}/transitions", f"get transitions for {key}")
        return [
            {"id": str(t.get("id", "")), "name": t.get("name", "")}
            for t in (data or {}).get("transitions", [])
        ]

    async def transition_issue(self, key: str, transition_id: str) -> None:
        payload = {"transition": {"id": transition_id}}
        await self._request("POST", f"/issue/{key}/transitions", f"transition issue {key}", json=payload)
        console.print(f"[green]Transitioned issue: {key}[/green]")

    async def search_issues(self, jql: str, fields: Optional[List[str]] = None) -> List[Issue]:
        params = {
            "jql": jql,
            "fields": ",".join(fields or ["summary", "status", "issuetype", "labels"]),
            "maxResults": 100,
        }
        data = await self._request("GET", "/search", "search issues", params=params)
        return [Issue.from_dict(item) for item in (data or {}).get("issues", [])]

    async def get_current_user(self) -> Dict[str, Any]:
        return await self._request("GET", "/myself", "get current user")

    async def validate_connection(self) -> bool:
        """Check credentials against ``/myself``.

        Returns:
            True if Jira accepted the credentials, False otherwise
        """
        try:
            user = await self.get_current_user()
        except JiraApiError as e:
            console.print(f"[red]Jira connection failed: {e}[/red]")
            return False

        console.print(f"[green]Connected to Jira as: {user.get('displayName', 'unknown')}[/green]")
        return True

    def get_issue_url(self, key: str) -> str:
        return f"{self.base_url}/browse/{key}"

    @staticmethod
    def format_comment(title: str, content: str, footer: str = "") -> str:
        """Render a comment body with a bold title and optional footer."""
        comment = f"**{title}**\n\n{content}"
        if footer:
            comment += f"\n\n{footer}"
        return comment
