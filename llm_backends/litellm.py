"""LiteLLM backend via Anthropic Messages API endpoint."""

from __future__ import annotations

import os

from .base import CompilerError, LLMBackend, raise_for_compiler_status


class LiteLLMLLM(LLMBackend):
    """LiteLLM backend using the Anthropic Messages API endpoint.

    Reads credentials from environment variables:
        LITELLM_API_KEY    : required
        LITELLM_BASE_URL   : required (e.g. https://your-litellm-host.example.com)

    System messages are lifted into the top-level ``system`` field, which is
    where the Messages API expects them.

    Args:
        model_id: Model string passed to LiteLLM (e.g. "GCP/claude-4-sonnet").
    """

    def __init__(self, model_id: str = "GCP/claude-4-sonnet") -> None:
        self._api_key = os.environ["LITELLM_API_KEY"]
        base_url = os.environ["LITELLM_BASE_URL"]
        self._messages_url = base_url.rstrip("/") + "/v1/messages"
        self._model_id = model_id

    def chat(self, messages: list[dict], temperature: float = 0.0) -> str:
        import requests

        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        payload = {
            "model": self._model_id,
            "max_tokens": 2048,
            "temperature": temperature,
            "messages": [m for m in messages if m["role"] != "system"],
        }
        if system:
            payload["system"] = system
        try:
            resp = requests.post(
                self._messages_url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=120,
            )
        except requests.RequestException as exc:
            raise CompilerError(f"LiteLLM unreachable: {exc}") from exc
        raise_for_compiler_status(resp)
        return resp.json()["content"][0]["text"]
