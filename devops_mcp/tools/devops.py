"""
DevOps tools exposed over MCP.
"""

from __future__ import annotations

from typing import Any, Dict

from devops_mcp.mcp.errors import ToolArgumentError

DEVOPS_CAPABILITIES_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "state": {
            "type": "string",
            "minLength": 2,
            "maxLength": 2,
            "description": "Two-letter state code (e.g. CA, NY)",
        }
    },
    "required": [],
}

CAPABILITIES = (
    "Continuous integration and delivery pipelines",
    "Infrastructure as code provisioning",
    "Container orchestration and deployment",
    "Monitoring, alerting and incident response",
)


def text_result(text: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


def _state_code(arguments: Dict[str, Any]) -> str | None:
    state = arguments.get("state")
    if state is None:
        return None
    if not isinstance(state, str) or len(state.strip()) != 2 or not state.strip().isalpha():
        raise ToolArgumentError(f"Invalid state code {state!r}: expected a two-letter code such as CA")
    return state.strip().upper()


async def devops_capabilities(arguments: Dict[str, Any]) -> Dict[str, Any]:
    """Active alerts for a state, or the capability overview when no state is given."""
    state = _state_code(arguments)
    if state is None:
        bullet_list = "\n".join(f"- {item}" for item in CAPABILITIES)
        return text_result(f"DevOps capabilities:\n\n{bullet_list}")
    return text_result(f"Active alerts for {state}:\n\nSample DevOps data for {state}")
