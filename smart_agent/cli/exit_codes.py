"""
Exit code definitions for the smart-agent CLI.

Exit Codes:
    0   - SUCCESS: Run completed with a final answer
    1   - ERROR: General error (model failure, runtime error)
    2   - QUOTA_EXCEEDED: Iteration ceiling reached
    4   - CONFIG_ERROR: Invalid config, unreadable config file
    130 - INTERRUPTED: User pressed Ctrl+C (SIGINT)
"""


class ExitCode:
    """Exit code constants for the smart-agent CLI."""

    SUCCESS = 0
    """Run completed with a final answer."""

    ERROR = 1
    """General error: model failure, runtime error, etc."""

    QUOTA_EXCEEDED = 2
    """Iteration ceiling reached before a final answer."""

    CONFIG_ERROR = 4
    """Invalid config or unreadable config file."""

    INTERRUPTED = 130
    """User pressed Ctrl+C (128 + SIGINT=2)."""
