"""Sequential step executor for compiled action plans.

Steps run one at a time, in array order.  ``depends_on`` is never consulted:
the only coupling between steps is the reference injection performed right
before each dispatch, which reads results of steps that already finished.

A step failure never stops the plan.  Every step gets exactly one dispatch
attempt and exactly one StepResult, and whatever payload it produced (or an
``{"error": ...}`` stub) is stored so later references to it resolve to
"field missing" rather than "step missing".
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from .catalog import apply_endpoint_defaults, normalize_endpoint
from .config import Settings
from .injector import apply_injections, forward_artifacts
from .models import ExecutionContext, Plan, PlanStep, StepResult
from .transport import (
    DispatchPolicy,
    OutboundRequest,
    RequestsTransport,
    Transport,
    TransportResponse,
)

_log = logging.getLogger(__name__)


class Executor:
    """Dispatches plan steps to CRM module endpoints.

    Args:
        settings: Endpoint location, service credentials and reference mode.
        transport: How requests go out.  Defaults to RequestsTransport.
        policy: Per-dispatch strategy.  Defaults to ``settings.dispatch_policy()``
                (no timeout unless STEP_TIMEOUT is configured).
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[Transport] = None,
        policy: Optional[DispatchPolicy] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport or RequestsTransport()
        self._policy = policy or settings.dispatch_policy()

    async def execute_plan(self, plan: Plan) -> ExecutionContext:
        """Execute all plan steps in array order and return the filled context."""
        context = ExecutionContext()
        total = len(plan.steps)
        for n, step in enumerate(plan.steps, start=1):
            _log.info(
                "Step %d/%d [%s]: %s",
                n, total, step.module or "?", step.description,
            )
            result, payload = await self.execute_step(step, context)
            if result.success:
                _log.info("Step %s OK.", step.index)
            else:
                _log.warning("Step %s FAILED: %s", step.index, result.error)
            context.record(result, payload)
        return context

    async def execute_step(
        self, step: PlanStep, context: ExecutionContext
    ) -> tuple[StepResult, Any]:
        """Execute a single plan step.

        1. Build the request body from the step body and earlier results.
        2. Dispatch it through the policy.
        3. Decode and unwrap the response, then judge success by status.

        Returns the StepResult and the payload to store for later references.
        Never raises.
        """
        try:
            request = self.build_request(step, context)
            response = await self._policy.dispatch(self._transport, request)
            return self._interpret(step, response)
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or type(exc).__name__
            _log.error("Step %s error: %s", step.index, message)
            return _failed(step, message), {"error": message}

    def build_request(self, step: PlanStep, context: ExecutionContext) -> OutboundRequest:
        """Resolve references and defaults for *step* into an OutboundRequest."""
        results = context.results_by_index
        body = forward_artifacts(step, dict(step.body), results)
        body = apply_injections(
            step,
            body,
            results,
            continue_on_unresolved_reference=self._settings.continue_on_unresolved_reference,
        )
        endpoint = normalize_endpoint(step)
        body = apply_endpoint_defaults(endpoint, body)
        method = step.method if step.method in ("GET", "POST") else "POST"

        _log.info("Calling %s %s %s", method, endpoint, json.dumps(body)[:200])
        return OutboundRequest(
            method=method,
            url=self._settings.endpoint_url(endpoint),
            headers=self._settings.service_headers(),
            body=None if method == "GET" else body,
        )

    def _interpret(
        self, step: PlanStep, response: TransportResponse
    ) -> tuple[StepResult, Any]:
        _log.info("Step %s -> %d %s", step.index, response.status, response.text[:300])
        try:
            decoded = response.json()
        except ValueError as exc:
            message = f"Invalid JSON response (HTTP {response.status}): {exc}"
            return _failed(step, message, status=response.status), {"error": message}

        payload = unwrap_envelope(decoded)
        if response.ok:
            return (
                StepResult(
                    index=step.index,
                    module=step.module,
                    description=step.description,
                    success=True,
                    data=payload,
                    status=response.status,
                ),
                payload,
            )

        error = (
            _error_field(payload)
            or _error_field(decoded)
            or f"HTTP {response.status}"
        )
        stored = payload if payload is not None else {"error": error}
        return (
            StepResult(
                index=step.index,
                module=step.module,
                description=step.description,
                success=False,
                data=payload,
                error=error,
                status=response.status,
            ),
            stored,
        )


def unwrap_envelope(decoded: Any) -> Any:
    """Return ``decoded["data"]`` for ``{"data": ...}`` envelopes, else *decoded*.

    A falsy scalar ``data`` (null, false, 0, "") keeps the whole body, so a
    reference like ``step_1.count`` still sees the sibling fields.  Containers
    unwrap even when empty.
    """
    if not isinstance(decoded, dict) or "data" not in decoded:
        return decoded
    data = decoded["data"]
    if isinstance(data, (dict, list)) or data:
        return data
    return decoded


def _error_field(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        error = value.get("error")
        if error:
            return error if isinstance(error, str) else json.dumps(error)
    return None


def _failed(step: PlanStep, message: str, status: Optional[int] = None) -> StepResult:
    return StepResult(
        index=step.index,
        module=step.module,
        description=step.description,
        success=False,
        error=message,
        status=status,
    )
