"""
Claude Automation

One-shot Claude queries through the official Claude Agent SDK, with response
text collection and JSON extraction shared by the analysis, implementation
and evaluation adapters.
"""

import json
import re
from typing import Any, Dict, List, Optional

from claude_agent_sdk import ClaudeAgentOptions, query
from claude_agent_sdk.types import (
    AssistantMessage,
    ResultMessage,
    SystemMessage,
    TextBlock,
    UserMessage,
)
from rich.console import Console

from .config import ClaudeConfig
from .errors import AdapterError, ResponseParseError

console = Console()


class ClaudeSessionManager:
    """Issues prompts to Claude and returns text or decoded JSON."""

    def __init__(self, config: Optional[ClaudeConfig] = None) -> None:
        self.config = config or ClaudeConfig()

    def _options(self, system_prompt: Optional[str] = None) -> ClaudeAgentOptions:
        return ClaudeAgentOptions(
            model=self.config.model,
            max_turns=self.config.max_turns,
            allowed_tools=[],
            cwd=self.config.cwd,
            system_prompt=system_prompt,
        )

    async def ask(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """Send one prompt and collect Claude's final text.

        Args:
            prompt: User prompt
            system_prompt: Optional system prompt

        Returns:
            The result text, or the joined assistant text blocks when the
            result message carries none

        Raises:
            AdapterError: If the SDK call fails or Claude returns nothing
        """
        response_parts: List[str] = []
        result_text: Optional[str] = None

        try:
            async for message in query(prompt=prompt, options=self._options(system_prompt)):
                if isinstance(message, AssistantMessage):
                    for block in message.content:
                        if isinstance(block, TextBlock):
                            response_parts.append(block.text)
                elif isinstance(message, ResultMessage):
                    if message.result:
                        result_text = message.result
                elif isinstance(message, (SystemMessage, UserMessage)):
                    # Informational / tool traffic
                    pass
                else:
                    console.print(f"[yellow]WARNING: Unexpected message type {type(message).__name__}[/yellow]")
        except Exception as e:
            console.print(f"[red]Error during Claude SDK communication: {e}[/red]")
            raise AdapterError(f"Claude request failed: {e}") from e

        final_response = result_text if result_text else "\n".join(response_parts)
        console.print(f"[dim]Collected {len(response_parts)} response parts, total {len(final_response)} chars[/dim]")

        if not final_response.strip():
            console.print("[red]ERROR: Empty response from Claude[/red]")
            raise AdapterError("Claude returned empty response")

        return final_response

    async def ask_json(self, prompt: str, system_prompt: Optional[str] = None) -> Dict[str, Any]:
        """Send one prompt and decode the JSON object in Claude's answer.

        Raises:
            AdapterError: If the SDK call fails
            ResponseParseError: If no JSON object can be decoded
        """
        response = await self.ask(prompt, system_prompt)
        return self.parse_json_response(response)

    def parse_json_response(self, response: str) -> Dict[str, Any]:
        json_text = self._extract_json_from_response(response)
        try:
            data = json.loads(json_text)
        except json.JSONDecodeError as e:
            console.print("[red]ERROR: Could not extract JSON from response[/red]")
            console.print(f"[yellow]Raw response:[/yellow]\n{response[:500]}")
            raise ResponseParseError(f"Could not parse JSON from Claude's response: {e}") from e

        if not isinstance(data, dict):
            raise ResponseParseError(f"Expected a JSON object, got {type(data).__name__}")
        return data

    def _extract_json_from_response(self, response: str) -> str:
        """Extract JSON from response that may contain markdown code blocks.

        Args:
            response: Full response text that may contain markdown

        Returns:
            Extracted JSON string, or original response if no JSON found
        """
        json_block_pattern = r'```(?:json)?\s*\n?(.*?)\n?```'
        matches = re.findall(json_block_pattern, response, re.DOTALL)

        if matches:
            return matches[0].strip()

        json_pattern = r'\{.*\}'
        match = re.search(json_pattern, response, re.DOTALL)

        if match:
            return match.group(0)

        console.print("[yellow]WARNING: No JSON found in response, returning as-is[/yellow]")
        return response
