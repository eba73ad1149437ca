"""
Event output for the smart-agent CLI.

Tool calls, plan updates, summarization and handoffs are printed as they
happen; the final answer is printed last.
"""

import json
import logging

from rich.console import Console
from rich.markdown import Markdown

from smart_agent.events import AgentEvent

logger = logging.getLogger(__name__)

PLAN_SYMBOLS = {"pending": "○", "in_progress": "◐", "completed": "●", "blocked": "✗"}


def _time_str(duration_ms: float | None) -> str:
    if duration_ms is None:
        return ""
    ms = int(duration_ms)
    return f"{ms}ms" if ms < 1000 else f"{ms / 1000:.1f}s"


def _brief_args(args: dict, max_len: int = 60) -> str:
    text = json.dumps(args, ensure_ascii=False, default=str)
    return text if len(text) <= max_len else text[: max_len - 3] + "..."


class EventPrinter:
    """Renders agent events to a rich console."""

    def __init__(self, console: Console | None = None, show_usage: bool = False) -> None:
        self.console = console or Console()
        self.show_usage = show_usage

    def __call__(self, event: AgentEvent) -> None:
        handler = getattr(self, f"_on_{event.type}", None)
        if handler is not None:
            handler(event)

    def _on_tool_call(self, event) -> None:
        if event.phase == "start":
            return
        if event.phase == "success":
            cached = " [dim](cached)[/dim]" if event.from_cache else ""
            self.console.print(
                f"  [green]✓[/green] {event.tool_name} {_brief_args(event.args)} "
                f"[dim]({_time_str(event.duration_ms)})[/dim]{cached}",
                highlight=False,
            )
        elif event.phase == "error":
            self.console.print(
                f"  [red]✗[/red] {event.tool_name}: {event.error}", highlight=False
            )
        elif event.phase == "skipped":
            self.console.print(
                f"  [yellow]·[/yellow] {event.tool_name} skipped ({event.reason})", highlight=False
            )

    def _on_plan(self, event) -> None:
        steps = (event.plan or {}).get("steps", [])
        self.console.print(f"  [cyan]Plan v{event.plan_version}[/cyan] ({len(steps)} steps)")
        for step in steps[:8]:
            symbol = PLAN_SYMBOLS.get(step.get("status"), "○")
            self.console.print(f"    {symbol} {step.get('title', '')[:60]}", highlight=False)

    def _on_summarization(self, event) -> None:
        self.console.print(
            f"  [magenta]Summarized[/magenta] {event.archived_count} tool result(s): "
            f"{event.tokens_before} → {event.tokens_after} tokens"
        )

    def _on_handoff(self, event) -> None:
        self.console.print(f"  [blue]Handoff[/blue] {event.from_agent} → {event.to_agent}")

    def _on_metadata(self, event) -> None:
        if event.iteration_limit_reached:
            self.console.print("[yellow]Iteration ceiling reached before a final answer.[/yellow]")
        if not self.show_usage:
            return
        for model_name, totals in (event.usage.get("totals") or {}).items():
            self.console.print(
                f"[dim]{model_name}: {totals.get('input', 0)} in / "
                f"{totals.get('output', 0)} out tokens[/dim]"
            )

    def _on_final_answer(self, event) -> None:
        self.console.print()
        if event.output is not None:
            self.console.print_json(json.dumps(event.output, ensure_ascii=False, default=str))
        else:
            self.console.print(Markdown(event.content or ""))
