"""Module catalog: the CRM sub-services a plan step may target.

The catalog feeds the compiler prompt and normalises the endpoint names the
compiler proposes, including legacy routes that were since consolidated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .models import PlanStep


@dataclass(frozen=True)
class ModuleSpec:
    """One CRM module as advertised to the plan compiler."""

    name: str
    endpoint: str
    summary: str
    body: str
    notes: str = ""
    returns: str = ""
    defaults: dict = field(default_factory=dict)


MODULES: list[ModuleSpec] = [
    ModuleSpec(
        name="IMAGE_GEN",
        endpoint="nano-banana/generate",
        summary="Generate images via Nano Banana (Gemini)",
        body='{ prompt: "descriptive image prompt", provider: "nano-banana" }',
        returns='{ url: "...", content_asset_id: "..." }',
        notes="The prompt should describe what the image looks like.",
        defaults={"provider": "nano-banana"},
    ),
    ModuleSpec(
        name="EMAIL",
        endpoint="email-command",
        summary="Send AI-composed emails via Gmail",
        body='{ prompt: "natural language email instruction" }',
        notes=(
            "The prompt must be self-contained: recipient name, subject and "
            "message intent."
        ),
    ),
    ModuleSpec(
        name="INVOICE",
        endpoint="invoice-scheduler",
        summary="Create/send invoices",
        body='{ prompt: "natural language invoice instruction" }',
        notes="The prompt must include customer name, amount, and what it is for.",
    ),
    ModuleSpec(
        name="WEBSITE",
        endpoint="prompt-machine",
        summary="Generate websites via v0",
        body='{ prompt: "website description", auto_submit: true }',
        returns="{ preview_url, edit_url }",
    ),
    ModuleSpec(
        name="CUSTOMER",
        endpoint="customer-scheduler",
        summary="CRUD customers",
        body='{ prompt: "natural language customer instruction" }',
    ),
    ModuleSpec(
        name="CALENDAR",
        endpoint="clawd-bot/calendar-command",
        summary="Manage calendar events",
        body='{ prompt: "..." }',
    ),
    ModuleSpec(
        name="MEETING",
        endpoint="clawd-bot/meeting-command",
        summary="Create/manage meetings",
        body='{ prompt: "..." }',
    ),
    ModuleSpec(
        name="SMM",
        endpoint="smm-api",
        summary="Social media management",
        body='{ action: "create-post", message: "...", platforms: ["x"] }',
    ),
    ModuleSpec(
        name="CALENDLY",
        endpoint="clawd-bot/availability-command",
        summary="Availability management",
        body='{ prompt: "..." }',
    ),
]

ENDPOINT_ALIASES: dict[str, str] = {
    "clawd-bot/generate-content": "nano-banana/generate",
    "clawd-bot/invoice-command": "invoice-scheduler",
    "clawd-bot/email-command": "email-command",
    "image-generator": "nano-banana/generate",
    "nano-banana": "nano-banana/generate",
}

MODULE_FALLBACKS: dict[str, str] = {
    "image_gen": "nano-banana/generate",
    "image": "nano-banana/generate",
    "invoice": "invoice-scheduler",
    "email": "email-command",
}

_FUNCTIONS_PREFIX_RE = re.compile(r"^/*functions/v1/", re.IGNORECASE)


def normalize_endpoint(step: PlanStep) -> str:
    """Map the compiler's endpoint onto a routable relative path."""
    path = _FUNCTIONS_PREFIX_RE.sub("", step.endpoint.strip()).lstrip("/")
    key = path.lower().rstrip("/")
    if key in ENDPOINT_ALIASES:
        return ENDPOINT_ALIASES[key]
    if not key or key == "unknown":
        fallback = MODULE_FALLBACKS.get(step.module.strip().lower())
        if fallback:
            return fallback
    return path or "unknown"


def endpoint_defaults(endpoint: str) -> dict:
    for spec in MODULES:
        if spec.endpoint == endpoint:
            return dict(spec.defaults)
    return {}


def apply_endpoint_defaults(endpoint: str, body: dict) -> dict:
    """Fill missing (or empty) body fields with the endpoint's defaults."""
    out = dict(body)
    for key, value in endpoint_defaults(endpoint).items():
        if not out.get(key):
            out[key] = value
    return out


def describe_modules(modules: list[ModuleSpec] | None = None) -> str:
    """Render the catalog as the numbered module list used in the compiler prompt."""
    blocks = []
    for n, spec in enumerate(modules or MODULES, start=1):
        lines = [
            f"{n}. {spec.name} - {spec.summary}",
            f"   endpoint: {spec.endpoint}",
            f"   body: {spec.body}",
        ]
        if spec.returns:
            lines.append(f"   Returns: {spec.returns}")
        if spec.notes:
            lines.append(f"   {spec.notes}")
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)
