"""OpenAI-compatible chat-completions gateway backend."""

from __future__ import annotations

import os

from .base import CompilerError, LLMBackend, raise_for_compiler_status


class GatewayLLM(LLMBackend):
    """Chat-completions backend for an OpenAI-compatible AI gateway.

    Reads credentials from environment variables:
        AI_GATEWAY_API_KEY   : required
        AI_GATEWAY_URL       : optional (defaults to the Lovable AI gateway)

    Args:
        model_id: Model string understood by the gateway
                  (e.g. "google/gemini-2.5-flash").
    """

    _DEFAULT_URL = "https://ai.gateway.lovable.dev"
    _COMPLETIONS_PATH = "/v1/chat/completions"

    def __init__(self, model_id: str = "google/gemini-2.5-flash") -> None:
        self._api_key = os.environ["AI_GATEWAY_API_KEY"]
        base_url = os.environ.get("AI_GATEWAY_URL", self._DEFAULT_URL)
        self._completions_url = base_url.rstrip("/") + self._COMPLETIONS_PATH
        self._model_id = model_id

    def chat(self, messages: list[dict], temperature: float = 0.0) -> str:
        import requests

        try:
            resp = requests.post(
                self._completions_url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": self._model_id,
                    "messages": messages,
                    "temperature": temperature,
                },
                timeout=120,
            )
        except requests.RequestException as exc:
            raise CompilerError(f"AI gateway unreachable: {exc}") from exc
        raise_for_compiler_status(resp)
        choices = resp.json().get("choices") or [{}]
        return (choices[0].get("message") or {}).get("content") or ""
