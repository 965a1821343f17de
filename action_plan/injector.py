"""Reference resolution: project earlier step results into a later step's body.

Two mechanisms couple steps together:

``inject``
    ``{field: "step_<N>.<dot.path>"}``.  The value found at *path* in step N's
    result overwrites *field*, except for a string ``prompt`` field, where the
    marker ``{{step_<N>_result}}`` is replaced in place so one prompt can
    absorb several upstream results.

``inject_from_step``
    ``{"<N>": "<field hint>"}``.  Forwards an artifact URL (image, preview)
    produced by step N into ``image_url``/``preview_url``/``edit_url`` and
    appends it to the prompt.

Both are permissive: a reference that does not resolve leaves the body as
it was, and the call is still attempted.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping

from .models import PlanStep

_log = logging.getLogger(__name__)

_REFERENCE_RE = re.compile(r"^step_(\d+)\.(.+)$")

_SPLICE_FIELD = "prompt"

_URL_KEYS = ("output_url", "url", "image_url", "preview_url")

_MISSING = object()


class UnresolvedReferenceError(LookupError):
    """An inject reference could not be resolved in strict mode."""

    def __init__(self, field_name: str, ref: Any) -> None:
        super().__init__(f"Unresolved reference {ref!r} for field '{field_name}'")
        self.field_name = field_name
        self.ref = ref


def parse_reference(ref: Any) -> tuple[int, str] | None:
    """Split ``step_<N>.<path>`` into ``(N, path)``; None when malformed."""
    if not isinstance(ref, str):
        return None
    m = _REFERENCE_RE.match(ref.strip())
    if m is None:
        return None
    return int(m.group(1)), m.group(2)


def get_value_at_path(obj: Any, path: str) -> Any:
    """Walk a dot-separated path; return ``_MISSING`` when a segment is absent.

    A JSON null found at the end of the path is a value, not a miss.
    """
    current = obj
    for key in path.split("."):
        if isinstance(current, Mapping):
            if key not in current:
                return _MISSING
            current = current[key]
        elif isinstance(current, list) and key.lstrip("-").isdigit():
            try:
                current = current[int(key)]
            except IndexError:
                return _MISSING
        else:
            return _MISSING
    return current


def resolve_reference(ref: Any, results_by_index: Mapping[int, Any]) -> tuple[int, Any] | None:
    """Resolve an inject reference to ``(step_index, value)``, or None."""
    parsed = parse_reference(ref)
    if parsed is None:
        return None
    index, path = parsed
    if index not in results_by_index:
        return None
    value = get_value_at_path(results_by_index[index], path)
    if value is _MISSING:
        return None
    return index, value


def apply_injections(
    step: PlanStep,
    body: dict,
    results_by_index: Mapping[int, Any],
    continue_on_unresolved_reference: bool = True,
) -> dict:
    """Return a copy of *body* with ``step.inject`` references applied.

    With ``continue_on_unresolved_reference`` (the default) unresolved
    references are skipped and the field keeps its original value.  With it
    off, the first unresolved reference raises UnresolvedReferenceError.
    """
    out = dict(body)
    for field_name, ref in step.inject.items():
        resolved = resolve_reference(ref, results_by_index)
        if resolved is None:
            if not continue_on_unresolved_reference:
                raise UnresolvedReferenceError(field_name, ref)
            _log.info(
                "Step %s: reference %r for '%s' did not resolve; keeping original value.",
                step.index, ref, field_name,
            )
            continue
        index, value = resolved
        current = out.get(field_name)
        if field_name == _SPLICE_FIELD and isinstance(current, str):
            out[field_name] = current.replace(
                f"{{{{step_{index}_result}}}}", _stringify(value)
            )
        else:
            out[field_name] = value
    return out


def forward_artifacts(step: PlanStep, body: dict, results_by_index: Mapping[int, Any]) -> dict:
    """Return a copy of *body* with artifact URLs from ``inject_from_step`` applied."""
    out = dict(body)
    for ref_step, hint in step.inject_from_step.items():
        try:
            index = int(ref_step)
        except (TypeError, ValueError):
            continue
        prev = results_by_index.get(index)
        if not isinstance(prev, Mapping) or not prev:
            continue

        hinted = get_value_at_path(prev, hint) if isinstance(hint, str) and hint else _MISSING
        url = hinted if isinstance(hinted, str) and hinted else extract_artifact_url(prev)

        if url and isinstance(out.get(_SPLICE_FIELD), str):
            out[_SPLICE_FIELD] = f"{out[_SPLICE_FIELD]}\n\nAttach/include this image: {url}"
        if url:
            out["image_url"] = url
        if prev.get("preview_url"):
            out["preview_url"] = prev["preview_url"]
        if prev.get("edit_url"):
            out["edit_url"] = prev["edit_url"]
    return out


def extract_artifact_url(result: Mapping[str, Any]) -> str | None:
    for key in _URL_KEYS:
        value = result.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)
