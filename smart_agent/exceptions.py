"""Custom exception hierarchy for smart-agent.

This module defines the standard exception types used throughout the
smart_agent package, providing consistent error handling with session
tracking and structured context metadata.
"""

from typing import Any


class SmartAgentError(Exception):
    """Base exception for all smart-agent errors.

    Attributes:
        message: The error message.
        session_id: Optional session identifier for tracking errors within
            a specific agent invocation.
        context: Arbitrary keyword arguments providing additional error context.

    Example:
        >>> raise SmartAgentError("Tool missing", session_id="sess_123", tool="search")
    """

    def __init__(self, message: str, session_id: str | None = None, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.session_id = session_id
        self.context = context

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        parts = [f"message={self.message!r}"]

        if self.session_id:
            parts.append(f"session_id={self.session_id!r}")

        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            parts.append(f"context={{{ctx_str}}}")

        return f"{self.__class__.__name__}({', '.join(parts)})"


class SmartAgentConfigError(SmartAgentError):
    """Exception raised for configuration-related errors.

    Use this for:
    - Missing or unreadable configuration files
    - Invalid limit values
    - Unknown summary policy names
    - Missing model endpoint settings
    """


class SmartAgentToolError(SmartAgentError):
    """Exception raised for tool definition and execution failures.

    Use this for:
    - Tool not found
    - Invalid tool arguments
    - Duplicate tool names in one runtime

    The executor converts these into error tool results; they only escape
    to the caller from tool construction helpers.
    """


class SmartAgentModelError(SmartAgentError):
    """Exception raised for language model failures.

    Use this for:
    - Malformed model responses
    - Models that do not satisfy the chat model contract
    """
