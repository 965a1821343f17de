"""MCP server exposing the CRM assistant as a single tool.

Run standalone with ``crm-assistant-mcp`` (stdio transport).  Configuration
comes from the environment, see action_plan.config.Settings.
"""

import json
import logging
import os
from typing import List, Optional

from mcp.server.fastmcp import FastMCP
from pydantic import BaseModel, Field

from action_plan.config import Settings
from action_plan.runner import AssistantRunner

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "WARNING").upper(), logging.WARNING)
logging.basicConfig(level=_log_level)
logger = logging.getLogger("crm-assistant-mcp-server")

mcp = FastMCP("CRMAssistant")

_runner: Optional[AssistantRunner] = None


class HistoryTurn(BaseModel):
    role: str = Field(description="'user' for user turns; anything else is the assistant.")
    text: str = Field(default="", description="Text of the turn.")


def get_runner() -> AssistantRunner:
    """Build the runner from the environment on first use."""
    global _runner
    if _runner is None:
        from llm_backends import GatewayLLM

        _runner = AssistantRunner(llm=GatewayLLM(), settings=Settings.from_env())
    return _runner


@mcp.tool()
async def assistant_command(prompt: str, history: Optional[List[HistoryTurn]] = None) -> str:
    """Carry out a natural-language CRM instruction across modules.

    Returns a JSON object: {"type": "clarify"|"message", "message": ...} or
    {"type": "executed", "summary": ..., "steps": [...]}, plus "status".
    """
    try:
        runner = get_runner()
    except KeyError as e:
        logger.error(f"Missing environment variable {e}")
        return json.dumps({"type": "message", "message": f"Missing environment variable {e}", "status": 500})
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return json.dumps({"type": "message", "message": f"Invalid configuration: {e}", "status": 500})

    turns = [t.model_dump() for t in history or []]
    response = await runner.run(prompt, turns)
    return json.dumps({**response.body, "status": response.status})


def main() -> None:
    from dotenv import load_dotenv
    load_dotenv()
    mcp.run()


if __name__ == "__main__":
    main()
