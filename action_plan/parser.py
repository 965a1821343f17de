"""Tolerant parsing of compiler output into a Plan.

The compiler is a generative model, so its reply may be wrapped in markdown
fences, surrounded by prose, or carry trailing commas.  Parsing never raises:
anything that cannot be decoded is returned as a ``message`` plan holding the
raw text, so the caller always has something to show.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from .models import CLARIFY, MESSAGE, PLAN, Plan, PlanStep

_log = logging.getLogger(__name__)

MAX_FALLBACK_MESSAGE_CHARS = 1000
UNPARSEABLE_FALLBACK = "Could not parse the request."

_FENCE_OPEN_RE = re.compile(r"\A```(?:json)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"\n?```\s*\Z")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_CLOSING = {"{": "}", "[": "]"}


def parse_plan(raw: str) -> Plan:
    """Parse raw compiler text into a Plan, degrading to a message on failure."""
    try:
        decoded = _decode(raw)
    except ValueError as exc:
        _log.error("Plan JSON parse failed (%s), raw: %s", exc, raw[:500])
        return Plan(
            kind=MESSAGE,
            message=raw[:MAX_FALLBACK_MESSAGE_CHARS] or UNPARSEABLE_FALLBACK,
            raw=raw,
        )
    return classify(decoded, raw)


def classify(decoded: Any, raw: str = "") -> Plan:
    """Turn a decoded JSON value into a Plan using its type/kind discriminator."""
    kind = None
    if isinstance(decoded, dict):
        kind = decoded.get("type", decoded.get("kind"))

    if kind in (CLARIFY, MESSAGE):
        message = decoded.get("message")
        return Plan(
            kind=kind,
            message=message if isinstance(message, str) else "",
            raw=raw,
        )

    if kind == PLAN:
        raw_steps = decoded.get("steps")
        steps = raw_steps if isinstance(raw_steps, list) else []
        return Plan(
            kind=PLAN,
            summary=str(decoded.get("summary") or ""),
            steps=[
                PlanStep.from_dict(s) if isinstance(s, dict) else s
                for s in steps
            ],
            raw=raw,
        )

    _log.warning("Unrecognised plan discriminator %r; treating as message.", kind)
    return Plan(
        kind=MESSAGE,
        message=json.dumps(decoded, ensure_ascii=False)[:MAX_FALLBACK_MESSAGE_CHARS],
        raw=raw,
    )


def _decode(raw: str) -> Any:
    """Extract and decode the JSON payload embedded in *raw*.

    Only the fence wrapper and the prose around the bracket span are dropped;
    text inside the span, string values included, is decoded as-is.  The
    trailing-comma repair runs only when the span does not decode on its own.

    Raises ValueError (json.JSONDecodeError included) when nothing decodable
    is found.
    """
    cleaned = _FENCE_CLOSE_RE.sub("", _FENCE_OPEN_RE.sub("", raw.strip())).strip()
    match = re.search(r"[{\[]", cleaned)
    if match is None:
        raise ValueError("no JSON object or array in compiler output")
    start = match.start()
    end = cleaned.rfind(_CLOSING[cleaned[start]])
    if end < start:
        raise ValueError("unterminated JSON payload in compiler output")
    candidate = cleaned[start:end + 1]
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        return json.loads(_TRAILING_COMMA_RE.sub(r"\1", candidate))
