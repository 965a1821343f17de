"""LLM backends used to compile instructions into action plans."""

from .base import CompilerError, LLMBackend, RateLimitedError
from .gateway import GatewayLLM
from .litellm import LiteLLMLLM

__all__ = ["CompilerError", "GatewayLLM", "LLMBackend", "LiteLLMLLM", "RateLimitedError"]
