"""Model provider adapters."""

from smart_agent.adapters.openai_compat import OpenAICompatibleModel

__all__ = ["OpenAICompatibleModel"]
