"""LLM-based plan compilation for the CRM assistant.

The compiler turns a free-text instruction (plus prior exchange history) into
the raw text of a plan.  Parsing that text is the parser's job; this module
only builds the prompt and talks to the LLM backend.
"""

from __future__ import annotations

import logging
from typing import Optional

from llm_backends import LLMBackend

from .catalog import ModuleSpec, describe_modules

_log = logging.getLogger(__name__)

COMPILER_TEMPERATURE = 0.1

_SYSTEM_PROMPT = """\
You are the CRM AI Assistant, an orchestrator that decomposes complex \
multi-step requests into sequential API actions across the CRM modules.

AVAILABLE MODULES (each step calls one endpoint directly):

{modules}

YOUR TASK:
Parse the user's request into an ordered list of steps. Each step calls one module.

RESPOND WITH JSON ONLY:
{{
  "type": "plan",
  "summary": "Brief human-readable summary of the full workflow",
  "steps": [
    {{
      "step": 1,
      "module": "IMAGE_GEN",
      "endpoint": "nano-banana/generate",
      "method": "POST",
      "body": {{ "prompt": "A guy laughing at the camera, photorealistic", "provider": "nano-banana" }},
      "description": "Generate image of laughing man",
      "depends_on": null
    }},
    {{
      "step": 2,
      "module": "EMAIL",
      "endpoint": "email-command",
      "method": "POST",
      "body": {{ "prompt": "Send Warren Thompson an email with subject 'Thank You!' and include this image: {{{{step_1_result}}}}" }},
      "description": "Email Warren with the image",
      "depends_on": 1,
      "inject": {{ "prompt": "step_1.url" }}
    }}
  ]
}}

RULES:
- Order steps logically: a step that uses another step's result must come after it.
- "inject" maps a body field to "step_<N>.<path>" in step N's result. For the \
"prompt" field, the marker {{{{step_<N>_result}}}} inside the prompt is replaced \
with that value; any other field is replaced entirely.
- Prompts must be fully self-contained (recipient, subject, amounts, intent).
- If something is unclear, respond: {{ "type": "clarify", "message": "..." }}
- If no action is needed, respond: {{ "type": "message", "message": "..." }}
- Output ONLY valid JSON. No markdown, no commentary, no code fences.
"""


def build_system_prompt(modules: Optional[list[ModuleSpec]] = None) -> str:
    return _SYSTEM_PROMPT.format(modules=describe_modules(modules))


def build_messages(
    instruction: str,
    history: Optional[list[dict]] = None,
    modules: Optional[list[ModuleSpec]] = None,
) -> list[dict]:
    """Assemble the chat messages: system prompt, prior turns, then the instruction."""
    messages = [{"role": "system", "content": build_system_prompt(modules)}]
    for turn in history or []:
        messages.append({
            "role": "user" if turn.get("role") == "user" else "assistant",
            "content": str(turn.get("text", "")),
        })
    messages.append({"role": "user", "content": instruction})
    return messages


class PlanCompiler:
    """Compiles an instruction into raw plan text using an LLM."""

    def __init__(
        self,
        llm: LLMBackend,
        modules: Optional[list[ModuleSpec]] = None,
    ) -> None:
        self._llm = llm
        self._modules = modules

    def compile(self, instruction: str, history: Optional[list[dict]] = None) -> str:
        """Return the compiler's raw reply.

        Raises:
            CompilerError: the backend was unreachable or answered with an error.
            RateLimitedError: the backend rate-limited the call.
        """
        _log.info("Compiling instruction: %s", instruction[:200])
        raw = self._llm.chat(
            build_messages(instruction, history, self._modules),
            temperature=COMPILER_TEMPERATURE,
        )
        _log.info("Compiled plan: %s", raw[:500])
        return raw
