"""Rich-powered terminal output."""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from claude_code_stream.cli.output import result_text, tool_detail
from claude_code_stream.core.query import StreamItem
from claude_code_stream.errors import CLIJSONDecodeError
from claude_code_stream.types.messages import (
    AssistantMessage,
    ResultMessage,
    SystemMessage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    UnknownBlock,
    UserMessage,
)

# ── Palette ──────────────────────────────────────────────────────────────────

TOOL_ICONS: dict[str, str] = {
    "Bash": "█",       # █  shell commands
    "Read": "▸",       # ▸  file access
    "Write": "▸",
    "Edit": "▸",
    "Glob": "○",       # ○  search
    "Grep": "○",
}
DEFAULT_ICON = "▸"

STYLE_TOOL_NAME = "bold #a78bfa"
STYLE_TOOL_DETAIL = "#7c7c8a"
STYLE_TOOL_BASH_CMD = "bold #e2e8f0"
STYLE_ERROR_LABEL = "bold #f87171"
STYLE_ERROR_BODY = "#f87171"
STYLE_RESULT_DIM = "dim #7c7c8a"
STYLE_RESULT_LABEL = "bold #94a3b8"
STYLE_RESULT_VALUE = "#e2e8f0"
STYLE_COST_VALUE = "#34d399"
STYLE_WARNING = "dim italic #fbbf24"


class RichPrinter:
    """Rich-based printer for query stream items.

    Assistant text goes to stdout; tool activity, warnings and the final
    summary go to stderr.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)
        self._stdout = Console()

    def print_message(self, item: StreamItem) -> None:
        match item:
            case AssistantMessage(content=blocks) | UserMessage(content=blocks):
                for block in blocks:
                    self._print_block(block)

            case ResultMessage() as r:
                self._print_result(r)

            case CLIJSONDecodeError(message=message):
                self._console.print(
                    Text(f"  ⚠ skipped malformed output: {message}", style=STYLE_WARNING),
                )

            case SystemMessage():
                pass

    def _print_block(self, block: Any) -> None:
        match block:
            case TextBlock(text=t):
                self._stdout.print(t, highlight=False, markup=False)
            case ToolUseBlock(name=name, input=args):
                self._print_tool_use(name, args)
            case ToolResultBlock(content=content, is_error=is_error):
                self._print_tool_result(result_text(content), bool(is_error))
            case UnknownBlock():
                pass

    # ── Tool Use ─────────────────────────────────────────────────────────────

    def _print_tool_use(self, name: str, args: dict[str, Any]) -> None:
        icon = TOOL_ICONS.get(name, DEFAULT_ICON)
        line = Text()
        line.append(f"  {icon} ", style=STYLE_TOOL_NAME)
        line.append(name, style=STYLE_TOOL_NAME)

        detail = tool_detail(name, args)
        if detail:
            if len(detail) > 120:
                detail = detail[:117] + "..."
            line.append("  ", style="default")
            line.append(detail, style=STYLE_TOOL_BASH_CMD if name == "Bash" else STYLE_TOOL_DETAIL)

        self._console.print(line)

    # ── Tool Result ──────────────────────────────────────────────────────────

    def _print_tool_result(self, content: str, is_error: bool) -> None:
        """Errors are prominent, success is quiet."""
        if is_error:
            label = Text("    ✗ ", style=STYLE_ERROR_LABEL)
            label.append(content[:300], style=STYLE_ERROR_BODY)
            self._console.print(label)
        elif len(content) > 300:
            self._console.print(Text(f"    {content[:300]}…", style=STYLE_RESULT_DIM))

    # ── Final Result ─────────────────────────────────────────────────────────

    def _print_result(self, result: ResultMessage) -> None:
        self._console.print()

        tbl = Table(
            show_header=False,
            show_edge=False,
            show_lines=False,
            padding=(0, 1),
            expand=False,
        )
        tbl.add_column(style=STYLE_RESULT_LABEL, justify="right", no_wrap=True)
        tbl.add_column(style=STYLE_RESULT_VALUE, no_wrap=True)

        if result.session_id:
            tbl.add_row("Session", Text(result.session_id))
        if result.exit_code is not None:
            tbl.add_row("Exit code", Text(str(result.exit_code)))
        tokens = (result.tokens_input or 0) + (result.tokens_output or 0)
        if tokens:
            tbl.add_row("Tokens", Text(f"{tokens:,}"))
        if result.cost_usd:
            tbl.add_row("Cost", Text(f"${result.cost_usd:.4f}", style=STYLE_COST_VALUE))
        if result.error:
            tbl.add_row("Error", Text(result.error, style=STYLE_ERROR_BODY))

        self._console.print(Panel(
            tbl,
            border_style="#3f3f50",
            expand=False,
            padding=(0, 1),
        ))
