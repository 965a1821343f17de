"""Response building: turn a plan (and its execution report) into the reply body.

Step failures live inside ``steps``; the outer status only reports failures
that happened before a plan existed.
"""

from __future__ import annotations

from typing import Optional

from .models import AssistantResponse, ExecutionContext, Plan

EXECUTED = "executed"

EMPTY_PROMPT_MESSAGE = "Please provide a command."
RATE_LIMITED_MESSAGE = "Rate limited. Try again in a moment."


def build_response(plan: Plan, context: Optional[ExecutionContext] = None) -> AssistantResponse:
    if not plan.is_executable:
        return AssistantResponse(
            status=200, body={"type": plan.kind, "message": plan.message}, plan=plan
        )
    report = context.report if context is not None else []
    return AssistantResponse(
        status=200,
        body={
            "type": EXECUTED,
            "summary": plan.summary,
            "steps": [r.to_dict() for r in report],
        },
        plan=plan,
    )


def build_error_response(message: str, status: int = 500) -> AssistantResponse:
    return AssistantResponse(status=status, body={"type": "message", "message": message})


def build_rate_limited_response() -> AssistantResponse:
    return build_error_response(RATE_LIMITED_MESSAGE, status=429)
