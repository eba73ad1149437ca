"""Pytest configuration for all smart-agent tests.

Ensures the project root is on sys.path and provides a scripted chat model.
"""

import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path
_root = Path(__file__).resolve().parents[1]
if _root not in [Path(p) for p in sys.path]:
    sys.path.insert(0, str(_root))

from smart_agent.messages import assistant, tool_call  # noqa: E402
from smart_agent.model import ChatModel  # noqa: E402


class ScriptedModel(ChatModel):
    """Returns queued responses in order and records every request.

    Each queued item is an assistant message dict, a string (plain answer),
    or a callable ``fn(messages) -> message``. Once the queue is empty the
    model answers ``default``.
    """

    def __init__(self, responses=None, name="scripted", default="done"):
        self.responses = list(responses or [])
        self.requests = []
        self.bound_tools = []
        self.default = default
        self._name = name

    @property
    def model_name(self):
        return self._name

    def bind_tools(self, schemas):
        self.bound_tools = [s["function"]["name"] for s in schemas]
        return self

    async def invoke(self, messages):
        self.requests.append(list(messages))
        item = self.responses.pop(0) if self.responses else self.default
        if callable(item):
            item = item(messages)
        if isinstance(item, str):
            return assistant(item)
        return dict(item)


def calls(*specs):
    """Assistant message requesting tools; specs are (name, args) pairs."""
    return assistant("", tool_calls=[tool_call(name, args) for name, args in specs])


@pytest.fixture
def make_model():
    def factory(responses=None, **kwargs):
        return ScriptedModel(responses, **kwargs)

    return factory


@pytest.fixture
def tool_calls_message():
    return calls
