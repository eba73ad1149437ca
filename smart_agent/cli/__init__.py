"""Command line interface for smart-agent."""

from smart_agent.cli.main import main

__all__ = ["main"]
