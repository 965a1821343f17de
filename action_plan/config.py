"""Environment-driven settings for the assistant executor."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .transport import DirectDispatch, DispatchPolicy, TimeoutDispatch

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    """Where module endpoints live and how the executor authenticates to them.

    Reads from environment variables:
        CRM_BASE_URL         : required
        CRM_SERVICE_KEY      : required (service-level bearer token)
        BOT_SECRET           : required (shared secret header)
        CRM_FUNCTIONS_PATH   : optional (defaults to /functions/v1)
        STEP_TIMEOUT         : optional, seconds per step dispatch
        STRICT_REFERENCES    : optional, fail steps whose inject refs don't resolve
    """

    base_url: str
    service_key: str
    bot_secret: str
    functions_path: str = "/functions/v1"
    step_timeout: Optional[float] = None
    continue_on_unresolved_reference: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        timeout = env.get("STEP_TIMEOUT", "").strip()
        return cls(
            base_url=env["CRM_BASE_URL"],
            service_key=env["CRM_SERVICE_KEY"],
            bot_secret=env["BOT_SECRET"],
            functions_path=env.get("CRM_FUNCTIONS_PATH", "/functions/v1"),
            step_timeout=float(timeout) if timeout else None,
            continue_on_unresolved_reference=(
                env.get("STRICT_REFERENCES", "").strip().lower() not in _TRUTHY
            ),
        )

    def endpoint_url(self, endpoint: str) -> str:
        prefix = "/" + self.functions_path.strip("/") if self.functions_path.strip("/") else ""
        return f"{self.base_url.rstrip('/')}{prefix}/{endpoint.lstrip('/')}"

    def service_headers(self) -> dict[str, str]:
        """Headers marking a call as orchestrator-issued rather than end-user."""
        return {
            "Content-Type": "application/json",
            "x-bot-secret": self.bot_secret,
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
        }

    def dispatch_policy(self) -> DispatchPolicy:
        if self.step_timeout:
            return TimeoutDispatch(self.step_timeout)
        return DirectDispatch()
