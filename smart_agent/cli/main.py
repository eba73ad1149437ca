"""
Main CLI entry point for smart-agent.

Commands:
    smart-agent run [--config FILE] [--max-tool-calls N] [--log-level L] PROMPT
    smart-agent config [--config FILE]
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace

import yaml
from rich.console import Console

from smart_agent.adapters import OpenAICompatibleModel
from smart_agent.agent import create_smart_agent
from smart_agent.cli.exit_codes import ExitCode
from smart_agent.cli.logging_utils import setup_logging
from smart_agent.cli.output import EventPrinter
from smart_agent.config import AgentFileConfig, load_agent_config
from smart_agent.exceptions import SmartAgentConfigError, SmartAgentError
from smart_agent.state import ITERATION_LIMIT_REACHED

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="smart-agent",
        description="Run a tool-calling agent against an OpenAI-compatible endpoint.",
    )
    parser.add_argument("--log-level", default=None, help="Console log level (default: WARNING)")
    parser.add_argument("--log-file", default=None, help="Also write DEBUG logs to this file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Run the agent on a prompt")
    run.add_argument("prompt", nargs="?", help="Prompt (read from stdin when omitted)")
    run.add_argument("--config", "-c", default=None, help="YAML config file")
    run.add_argument("--max-tool-calls", type=int, default=None, help="Override max_tool_calls")
    run.add_argument("--usage", action="store_true", help="Print token usage at the end")

    config = subparsers.add_parser("config", help="Print the resolved configuration")
    config.add_argument("--config", "-c", default=None, help="YAML config file")

    return parser


def _read_prompt(prompt: str | None) -> str:
    if prompt:
        return prompt
    if not sys.stdin.isatty():
        return sys.stdin.read().strip()
    return ""


async def run_agent(config: AgentFileConfig, prompt: str, console: Console, show_usage: bool) -> int:
    model = OpenAICompatibleModel(config.model)
    agent = create_smart_agent(
        model,
        name=config.name,
        limits=config.limits,
        summarization=config.summarization,
        system_prompt=config.system_prompt,
        use_todo_list=config.use_todo_list,
        debug=config.debug,
    )
    try:
        result = await agent.invoke(prompt, on_event=EventPrinter(console, show_usage=show_usage))
    finally:
        await OpenAICompatibleModel.close_all_sessions()

    if result.state.ctx.get(ITERATION_LIMIT_REACHED):
        return ExitCode.QUOTA_EXCEEDED
    return ExitCode.SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)
    console = Console()

    try:
        config = load_agent_config(args.config)
        if args.command == "config":
            print(yaml.safe_dump(config.to_dict(), sort_keys=False, allow_unicode=True), end="")
            return ExitCode.SUCCESS

        if args.max_tool_calls is not None:
            config.limits = replace(config.limits, max_tool_calls=args.max_tool_calls)

        prompt = _read_prompt(args.prompt)
        if not prompt:
            console.print("[red]Error:[/red] a prompt is required")
            return ExitCode.ERROR
        if not config.model.api_key:
            logger.warning("No API key configured (set SMART_AGENT_API_KEY)")

        return asyncio.run(run_agent(config, prompt, console, args.usage))
    except SmartAgentConfigError as e:
        console.print(f"[red]Config error:[/red] {e}")
        return ExitCode.CONFIG_ERROR
    except SmartAgentError as e:
        logger.debug("Run failed", exc_info=True)
        console.print(f"[red]Error:[/red] {e}")
        return ExitCode.ERROR
    except KeyboardInterrupt:
        return ExitCode.INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
