"""CRM assistant action-plan executor."""

from .config import Settings
from .executor import Executor
from .models import AssistantResponse, ExecutionContext, Plan, PlanStep, StepResult
from .parser import parse_plan
from .runner import AssistantRunner
from .validator import validate_plan

__all__ = [
    "AssistantResponse",
    "AssistantRunner",
    "ExecutionContext",
    "Executor",
    "Plan",
    "PlanStep",
    "Settings",
    "StepResult",
    "parse_plan",
    "validate_plan",
]
