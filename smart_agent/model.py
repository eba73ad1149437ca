"""Chat model contract.

A model takes a list of OpenAI-shaped message dicts and returns one
assistant message dict, optionally carrying ``tool_calls`` and ``usage``.
"""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any


class ChatModel(ABC):
    """Base class for chat models driven by the agent loop."""

    @property
    def model_name(self) -> str:
        return type(self).__name__

    def bind_tools(self, schemas: list[dict[str, Any]]) -> "ChatModel":
        """Return a model that may call the given tools.

        Models without native tool binding return themselves.
        """
        return self

    @abstractmethod
    async def invoke(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        """Send the messages and return the assistant response message."""


class FunctionChatModel(ChatModel):
    """Wraps a plain (a)sync callable ``fn(messages, tools) -> message``.

    Useful for tests and for plugging in clients that are not classes. A
    returned string is turned into an assistant message.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        name: str = "function-model",
        tools: list[dict[str, Any]] | None = None,
    ) -> None:
        self._fn = fn
        self._name = name
        self.tools = tools or []

    @property
    def model_name(self) -> str:
        return self._name

    def bind_tools(self, schemas: list[dict[str, Any]]) -> "FunctionChatModel":
        return FunctionChatModel(self._fn, name=self._name, tools=list(schemas))

    async def invoke(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        result = self._fn(messages, self.tools)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, str):
            return {"role": "assistant", "content": result}
        response = dict(result)
        response.setdefault("role", "assistant")
        response.setdefault("content", "")
        return response


def get_model_name(model: Any) -> str:
    """Best-effort model name used for usage accounting."""
    name = getattr(model, "model_name", None)
    if isinstance(name, str) and name:
        return name
    name = getattr(model, "model", None)
    if isinstance(name, str) and name:
        return name
    return type(model).__name__
