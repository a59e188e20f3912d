"""ProcessLauncher: locate the Claude Code CLI, build its argv, and spawn it."""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
from collections.abc import Sequence
from pathlib import Path

from claude_code_stream.errors import CLIConnectionError, CLINotFoundError
from claude_code_stream.types.config import ClaudeCodeOptions, PermissionMode

logger = logging.getLogger(__name__)

CLI_PATH_ENV = "CLAUDE_CODE_CLI_PATH"
ENTRYPOINT = "sdk-py"

# Searched in order when no explicit path is configured.
_CLI_CANDIDATES: tuple[str, ...] = (
    "claude-code",
    "/usr/local/bin/claude-code",
    "/opt/homebrew/bin/claude-code",
    "claude",
)

_PERMISSION_FLAGS: dict[PermissionMode, str] = {
    PermissionMode.ACCEPT_EDITS: "--accept-edits",
    PermissionMode.BYPASS_PERMISSIONS: "--bypass-permissions",
}


def find_cli_binary(cli_path: str | None = None) -> str:
    """Resolve the CLI executable.

    Order: explicit *cli_path*, then ``$CLAUDE_CODE_CLI_PATH``, then the
    well-known install names/locations on PATH.

    Raises:
        CLINotFoundError: Nothing executable was found.
    """
    explicit = cli_path or os.environ.get(CLI_PATH_ENV)
    if explicit:
        resolved = shutil.which(explicit)
        if resolved is None:
            raise CLINotFoundError(f"Configured CLI path is not executable: {explicit}")
        return resolved

    for candidate in _CLI_CANDIDATES:
        resolved = shutil.which(candidate)
        if resolved:
            return resolved

    raise CLINotFoundError()


def build_command(prompt: str, options: ClaudeCodeOptions) -> list[str]:
    """Translate *options* into CLI arguments (executable not included)."""
    args = ["--format", "json"]

    if options.system_prompt:
        args += ["--system", options.system_prompt]
    if options.max_turns is not None:
        args += ["--max-turns", str(options.max_turns)]

    flag = _PERMISSION_FLAGS.get(options.permission_mode)
    if flag:
        args.append(flag)

    for tool in options.allowed_tools:
        args += ["--tool", tool]

    if options.disable_safety_suggestions:
        args.append("--disable-safety-suggestions")
    if options.disable_telemetry:
        args.append("--disable-telemetry")
    if options.disable_stream:
        args.append("--disable-stream")
    if options.disable_vision:
        args.append("--disable-vision")
    if options.disable_search:
        args.append("--disable-search")
    if options.model:
        args += ["--model", options.model]

    # Prompt always goes last, after "--" so a leading dash is not read as a flag.
    args += ["--", prompt]
    return args


def build_env(options: ClaudeCodeOptions) -> dict[str, str]:
    """Child environment: inherited env plus SDK markers and overrides."""
    env = dict(os.environ)
    env["CLAUDE_CODE_ENTRYPOINT"] = ENTRYPOINT
    if options.api_key:
        env["ANTHROPIC_API_KEY"] = options.api_key
    env.update(options.env)
    return env


class ProcessHandle:
    """A spawned CLI process and its pipes.

    Exits exactly once; after that the pipes are closed. Owned by the
    transport that launched it.
    """

    def __init__(self, proc: asyncio.subprocess.Process, argv: Sequence[str]) -> None:
        self._proc = proc
        self.argv = list(argv)

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def stdout(self) -> asyncio.StreamReader:
        if self._proc.stdout is None:
            raise CLIConnectionError("CLI process has no stdout pipe")
        return self._proc.stdout

    @property
    def stderr(self) -> asyncio.StreamReader:
        if self._proc.stderr is None:
            raise CLIConnectionError("CLI process has no stderr pipe")
        return self._proc.stderr

    @property
    def returncode(self) -> int | None:
        """Exit code, or None while the process is still running."""
        return self._proc.returncode

    @property
    def is_running(self) -> bool:
        return self._proc.returncode is None

    async def wait(self) -> int:
        return await self._proc.wait()

    def terminate(self) -> None:
        """Forcefully kill the process if it is still running."""
        if self._proc.returncode is not None:
            return
        try:
            self._proc.kill()
        except ProcessLookupError:
            pass
        else:
            logger.warning("Killed CLI process pid=%d", self._proc.pid)


async def launch(
    command: str,
    args: Sequence[str],
    *,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
) -> ProcessHandle:
    """Start *command* with *args*; stdout/stderr piped, stdin closed.

    Raises:
        CLINotFoundError: *command* does not exist.
        CLIConnectionError: *cwd* is not a directory, or spawning failed.
    """
    if cwd is not None and not Path(cwd).is_dir():
        raise CLIConnectionError(f"Working directory does not exist: {cwd}")

    argv = [command, *args]
    logger.debug("Launching CLI: %s (cwd=%s)", argv, cwd)
    try:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
            env=env,
        )
    except FileNotFoundError as exc:
        raise CLINotFoundError(f"Executable not found: {command}") from exc
    except OSError as exc:
        raise CLIConnectionError(f"Failed to spawn CLI process: {exc}") from exc

    logger.debug("CLI started pid=%d", proc.pid)
    return ProcessHandle(proc, argv)
