"""Abstract LLM backend interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CompilerError(RuntimeError):
    """The plan compiler could not be reached or answered with an error status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RateLimitedError(CompilerError):
    """The plan compiler refused the call because of rate limiting."""


class LLMBackend(ABC):
    """Abstract interface for LLM backends."""

    @abstractmethod
    def chat(self, messages: list[dict], temperature: float = 0.0) -> str:
        """Generate the assistant reply for a list of role/content messages."""
        ...

    def generate(self, prompt: str, temperature: float = 0.0) -> str:
        """Generate text given a single user prompt."""
        return self.chat([{"role": "user", "content": prompt}], temperature=temperature)


def raise_for_compiler_status(resp) -> None:
    """Translate a non-2xx compiler response into CompilerError / RateLimitedError."""
    if resp.status_code == 429:
        raise RateLimitedError("Rate limited by the plan compiler.", status=429)
    if not resp.ok:
        raise CompilerError(
            f"AI error ({resp.status_code}): {resp.text[:200]}",
            status=resp.status_code,
        )
