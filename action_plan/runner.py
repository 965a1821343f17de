"""Entry-point runner for one assistant request.

  instruction ─▶ PlanCompiler.compile ─▶ parse_plan ─▶ validate_plan
              ─▶ (clarify / message: reply as-is)
              ─▶ Executor.execute_plan ─▶ build_response
"""

from __future__ import annotations

import logging
from typing import Optional

from llm_backends import CompilerError, LLMBackend, RateLimitedError

from .aggregator import (
    EMPTY_PROMPT_MESSAGE,
    build_error_response,
    build_rate_limited_response,
    build_response,
)
from .compiler import PlanCompiler
from .config import Settings
from .executor import Executor
from .models import AssistantResponse
from .parser import parse_plan
from .validator import validate_plan

_log = logging.getLogger(__name__)


class AssistantRunner:
    """Runs an instruction through compile, parse, validate, execute and aggregate.

    Usage::

        from action_plan import AssistantRunner, Settings
        from llm_backends import GatewayLLM

        runner = AssistantRunner(llm=GatewayLLM(), settings=Settings.from_env())
        response = await runner.run("Generate a cat picture and email it to Warren")
        print(response.status, response.body)

    Args:
        llm: LLM backend used as the plan compiler.
        settings: Module endpoint location and credentials.
        executor: Override the step executor (e.g. with a custom transport).
    """

    def __init__(
        self,
        llm: LLMBackend,
        settings: Settings,
        executor: Optional[Executor] = None,
    ) -> None:
        self._compiler = PlanCompiler(llm)
        self._executor = executor or Executor(settings)

    async def run(
        self, instruction: str, history: Optional[list[dict]] = None
    ) -> AssistantResponse:
        """Handle one request.  Only compilation-tier failures give a non-2xx status."""
        if not instruction or not instruction.strip():
            return build_error_response(EMPTY_PROMPT_MESSAGE, status=200)

        # 1. Compile
        try:
            raw = self._compiler.compile(instruction, history)
        except RateLimitedError:
            _log.error("Plan compiler rate limited the request.")
            return build_rate_limited_response()
        except CompilerError as exc:
            _log.error("Plan compiler failed: %s", exc)
            return build_error_response(f"Error: {exc}", status=500)
        except Exception as exc:  # noqa: BLE001
            _log.exception("Unexpected plan compiler failure.")
            return build_error_response(f"Error: {exc}", status=500)

        # 2. Parse and validate
        plan = validate_plan(parse_plan(raw))
        if not plan.is_executable:
            return build_response(plan)

        # 3. Execute
        context = await self._executor.execute_plan(plan)

        # 4. Aggregate
        return build_response(plan, context)
