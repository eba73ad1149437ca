"""Resolves the active agent runtime at the start of an invocation."""

import logging
from typing import TYPE_CHECKING

from smart_agent.state import SessionState

if TYPE_CHECKING:
    from smart_agent.agent import AgentRuntime

logger = logging.getLogger(__name__)


def resolve_runtime(state: SessionState, default: "AgentRuntime") -> SessionState:
    """Keep a runtime carried by the state (a prior handoff), else use the default."""
    if state.agent is not None:
        logger.debug(f"Continuing with agent {state.agent.name}")
        return state
    return state.evolve(agent=default)
