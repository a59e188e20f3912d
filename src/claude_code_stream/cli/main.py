"""CLI entry point: run one query and print the stream."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable

import click

from claude_code_stream.cli.output import print_json, print_message
from claude_code_stream.core.config import resolve_options
from claude_code_stream.core.query import StreamItem, query
from claude_code_stream.errors import ClaudeSDKError, ProcessError
from claude_code_stream.types.config import ClaudeCodeOptions, PermissionMode


@click.command()
@click.argument("prompt", nargs=-1)
@click.option("--cwd", default=None, help="Working directory for the CLI")
@click.option(
    "--permission",
    type=click.Choice([m.value for m in PermissionMode]),
    default=None,
    help="Permission mode",
)
@click.option("--system", "system_prompt", default=None, help="System prompt")
@click.option("--max-turns", type=click.IntRange(min=1), default=None, help="Turn limit")
@click.option("--model", "-m", default=None, help="Model ID or alias")
@click.option("--tool", "tools", multiple=True, help="Allowed tool (repeatable)")
@click.option("--cli-path", default=None, help="Path to the Claude Code CLI")
@click.option("--json", "as_json", is_flag=True, help="Echo each message as a JSON line")
@click.option("--rich/--no-rich", default=None, help="Rich terminal output (default: auto)")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging to stderr")
def cli(
    prompt: tuple[str, ...],
    cwd: str | None,
    permission: str | None,
    system_prompt: str | None,
    max_turns: int | None,
    model: str | None,
    tools: tuple[str, ...],
    cli_path: str | None,
    as_json: bool,
    rich: bool | None,
    verbose: bool,
) -> None:
    """Send a prompt to Claude Code and stream the reply.

    \b
    Usage:
      claude-stream "What is 2 + 2?"
      claude-stream --permission accept_edits --tool Read --tool Edit "Fix the typo"
      echo "Summarize README.md" | claude-stream --json
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s %(message)s",
            stream=sys.stderr,
        )

    prompt_text = " ".join(prompt)
    if not prompt_text and not sys.stdin.isatty():
        # Piped input, one-shot mode
        prompt_text = sys.stdin.read().strip()
    if not prompt_text:
        click.echo("Error: empty prompt", err=True)
        sys.exit(1)

    try:
        options = resolve_options(
            ClaudeCodeOptions(
                cwd=cwd,
                allowed_tools=tools,
                permission_mode=permission or PermissionMode.DEFAULT,
                system_prompt=system_prompt,
                max_turns=max_turns,
                model=model,
                cli_path=cli_path,
            ),
            cwd=cwd,
        )
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if as_json:
        output_fn = print_json
    elif rich if rich is not None else sys.stderr.isatty():
        from claude_code_stream.ui.terminal import RichPrinter

        output_fn = RichPrinter().print_message
    else:
        output_fn = print_message

    try:
        asyncio.run(_run_query(prompt_text, options, output_fn))
    except ProcessError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(exc.exit_code if exc.exit_code > 0 else 1)
    except ClaudeSDKError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


async def _run_query(
    prompt: str,
    options: ClaudeCodeOptions,
    output_fn: Callable[[StreamItem], None],
) -> None:
    """Run the query and hand every item to *output_fn*."""
    async with await query(prompt, options) as stream:
        async for item in stream:
            output_fn(item)
