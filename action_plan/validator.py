"""Plan validation: make sure the executor only ever sees well-formed plans."""

from __future__ import annotations

import logging

from .models import MESSAGE, PLAN, Plan, PlanStep

_log = logging.getLogger(__name__)

DISPLAY_FALLBACK = "I'm not sure how to help with that."
EMPTY_PLAN_FALLBACK = "The plan did not contain any executable steps."


def validate_plan(plan: Plan) -> Plan:
    """Return a plan that is safe to hand to the executor or the aggregator.

    Broken steps are dropped rather than failing the whole plan, so a plan
    with one bad step still runs the others.  Non-plan kinds only need a
    display string.
    """
    if plan.kind != PLAN:
        if isinstance(plan.message, str) and plan.message.strip():
            return plan
        return Plan(kind=plan.kind, message=DISPLAY_FALLBACK, raw=plan.raw)

    explicit = [
        s.index for s in plan.steps
        if isinstance(s, PlanStep) and s.endpoint and s.index is not None
    ]
    next_index = max(explicit, default=0) + 1

    accepted: list[PlanStep] = []
    for position, step in enumerate(plan.steps, start=1):
        if not isinstance(step, PlanStep):
            _log.warning("Dropping plan entry %d: not a step object (%r).", position, step)
            continue
        if not step.endpoint:
            _log.warning(
                "Dropping plan entry %d (%s): missing endpoint.",
                position, step.description or step.module or "no description",
            )
            continue
        if step.index is None:
            step.index = next_index
            next_index += 1
            _log.info("Plan entry %d has no step index; assigned %d.", position, step.index)
        if not step.description:
            step.description = f"{step.module or 'module'} step {step.index}"
        accepted.append(step)

    if not accepted:
        _log.warning("Plan has no executable steps; returning message instead.")
        return Plan(kind=MESSAGE, message=EMPTY_PLAN_FALLBACK, raw=plan.raw)

    lint_dependencies(accepted)
    return Plan(kind=PLAN, summary=plan.summary, steps=accepted, raw=plan.raw)


def lint_dependencies(steps: list[PlanStep]) -> list[str]:
    """Flag duplicate step indices and depends_on targets that run later or not at all.

    The executor runs steps strictly in array order and never consults
    ``depends_on``, so these findings are advisory: they are logged and
    returned, never enforced.
    """
    positions: dict[int, int] = {}
    warnings: list[str] = []
    for i, step in enumerate(steps):
        if step.index in positions:
            warnings.append(
                f"Step index {step.index} is used more than once; "
                f"references to step_{step.index} read the last one to run."
            )
        else:
            positions[step.index] = i
    for i, step in enumerate(steps):
        target = step.depends_on
        if target is None:
            continue
        if target not in positions:
            warnings.append(
                f"Step {step.index} depends on step {target}, which is not in the plan."
            )
        elif positions[target] >= i:
            warnings.append(
                f"Step {step.index} depends on step {target}, which runs after it."
            )
    for w in warnings:
        _log.warning(w)
    return warnings
