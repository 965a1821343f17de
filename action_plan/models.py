"""Data models for the CRM assistant action-plan executor."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

CLARIFY = "clarify"
MESSAGE = "message"
PLAN = "plan"

PLAN_KINDS = (CLARIFY, MESSAGE, PLAN)


@dataclass
class PlanStep:
    """A single remote action in an execution plan."""

    index: Optional[int]
    endpoint: str
    description: str = ""
    module: str = ""
    method: str = "POST"
    body: dict = field(default_factory=dict)
    depends_on: Optional[int] = None
    inject: dict[str, str] = field(default_factory=dict)
    inject_from_step: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict) -> "PlanStep":
        """Build a step from the compiler's JSON field names.

        Unknown or mistyped fields are coerced to their defaults; whether the
        step is usable is decided by the validator.
        """
        index = raw.get("step", raw.get("index"))
        depends_on = raw.get("depends_on")
        body = raw.get("body")
        inject = raw.get("inject")
        inject_from_step = raw.get("inject_from_step")
        return cls(
            index=_as_int(index),
            endpoint=str(raw.get("endpoint") or raw.get("function") or "").strip(),
            description=str(raw.get("description") or "").strip(),
            module=str(raw.get("module") or ""),
            method=str(raw.get("method") or "POST").upper(),
            body=dict(body) if isinstance(body, dict) else {},
            depends_on=_as_int(depends_on),
            inject=(
                {str(k): v for k, v in inject.items()}
                if isinstance(inject, dict)
                else {}
            ),
            inject_from_step=(
                {str(k): v for k, v in inject_from_step.items()}
                if isinstance(inject_from_step, dict)
                else {}
            ),
        )

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "step": self.index,
            "module": self.module,
            "endpoint": self.endpoint,
            "method": self.method,
            "body": self.body,
            "description": self.description,
            "depends_on": self.depends_on,
        }
        if self.inject:
            out["inject"] = self.inject
        if self.inject_from_step:
            out["inject_from_step"] = self.inject_from_step
        return out


@dataclass
class Plan:
    """The compiled intent: a clarifying question, a message, or a step list."""

    kind: str
    message: str = ""
    summary: str = ""
    steps: list[PlanStep] = field(default_factory=list)
    raw: str = ""  # Raw compiler output, preserved for debugging

    @property
    def is_executable(self) -> bool:
        return self.kind == PLAN

    def get_step(self, index: int) -> Optional[PlanStep]:
        return next((s for s in self.steps if s.index == index), None)

    def to_dict(self) -> dict:
        if self.kind != PLAN:
            return {"type": self.kind, "message": self.message}
        return {
            "type": PLAN,
            "summary": self.summary,
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass(frozen=True)
class StepResult:
    """Outcome of dispatching a single plan step."""

    index: int
    module: str
    description: str
    success: bool
    data: Any = None
    error: Optional[str] = None
    status: Optional[int] = None

    def to_dict(self) -> dict:
        out: dict[str, Any] = {
            "step": self.index,
            "module": self.module,
            "success": self.success,
            "description": self.description,
        }
        if self.data is not None:
            out["data"] = self.data
        if not self.success:
            out["error"] = self.error
        return out


@dataclass
class ExecutionContext:
    """Per-request execution state; discarded once the response is built."""

    results_by_index: dict[int, Any] = field(default_factory=dict)
    report: list[StepResult] = field(default_factory=list)

    def record(self, result: StepResult, payload: Any) -> None:
        self.results_by_index[result.index] = payload
        self.report.append(result)


@dataclass
class AssistantResponse:
    """Final response of one assistant request: an HTTP-like status and a JSON body."""

    status: int
    body: dict
    plan: Optional[Plan] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None
