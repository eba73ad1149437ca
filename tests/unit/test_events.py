"""Event emitter tests."""

import asyncio

import pytest

from smart_agent.events import (
    EventEmitter,
    FinalAnswerEvent,
    HandoffEvent,
    MetadataEvent,
    ToolCallEvent,
)


class TestEventEmitter:
    """EventEmitter class tests."""

    @pytest.mark.asyncio
    async def test_sync_callback(self):
        received = []
        emitter = EventEmitter(received.append)

        event = FinalAnswerEvent(content="hi")
        await emitter.emit(event)

        assert received == [event]
        assert emitter.history == [event]

    @pytest.mark.asyncio
    async def test_async_callback(self):
        received = []

        async def callback(event):
            await asyncio.sleep(0.01)
            received.append(event.type)

        emitter = EventEmitter(callback)
        await emitter.emit(HandoffEvent(from_agent="a", to_agent="b", tool_name="handoff_to_b"))

        assert received == ["handoff"]

    @pytest.mark.asyncio
    async def test_callback_failure_does_not_propagate(self):
        def callback(event):
            raise RuntimeError("boom")

        emitter = EventEmitter(callback)
        await emitter.emit(MetadataEvent(usage={}, tool_call_count=0))

        assert len(emitter.history) == 1

    @pytest.mark.asyncio
    async def test_without_callback_keeps_history(self):
        emitter = EventEmitter()
        await emitter.emit(ToolCallEvent(tool_name="search", tool_call_id="c1", phase="start"))
        await emitter.emit(FinalAnswerEvent(content="x"))

        assert [e.type for e in emitter.of_type("tool_call")] == ["tool_call"]
        assert len(emitter.of_type("final_answer")) == 1


class TestEventShapes:
    def test_tool_call_event_to_dict(self):
        event = ToolCallEvent(
            tool_name="search",
            tool_call_id="c1",
            phase="success",
            args={"q": "x"},
            execution_id="exec_1",
            duration_ms=12.5,
        )
        data = event.to_dict()

        assert data["type"] == "tool_call"
        assert data["phase"] == "success"
        assert data["args"] == {"q": "x"}
        assert data["duration_ms"] == 12.5
        assert data["from_cache"] is False

    def test_events_are_frozen(self):
        event = FinalAnswerEvent(content="x")
        with pytest.raises(AttributeError):
            event.content = "y"
