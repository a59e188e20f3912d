"""Configuration loading (env vars, .env, config.toml defaults)."""

from __future__ import annotations

import dataclasses
import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from claude_code_stream.types.config import ClaudeCodeOptions

logger = logging.getLogger(__name__)

CONFIG_DIR = ".claude-code-stream"

# Environment variable -> ClaudeCodeOptions field.
ENV_MAP: dict[str, str] = {
    "CLAUDE_CODE_CLI_PATH": "cli_path",
    "CLAUDE_CODE_MODEL": "model",
    "CLAUDE_CODE_PERMISSION_MODE": "permission_mode",
    "CLAUDE_CODE_MAX_TURNS": "max_turns",
}

# Keys accepted in the [defaults] table of config.toml.
_TOML_KEYS = frozenset({
    "cli_path", "model", "permission_mode", "max_turns", "system_prompt", "allowed_tools",
})


def load_env_config() -> dict[str, Any]:
    """Load option defaults from the environment (and a .env file, if present).

    Existing environment variables are never overridden by .env.
    """
    load_dotenv()

    config: dict[str, Any] = {}
    for var, key in ENV_MAP.items():
        if value := os.environ.get(var):
            config[key] = value

    if "max_turns" in config:
        try:
            config["max_turns"] = int(config["max_turns"])
        except ValueError:
            logger.warning("Ignoring non-integer CLAUDE_CODE_MAX_TURNS=%r", config["max_turns"])
            del config["max_turns"]
    return config


def load_toml_config(cwd: str | None = None) -> dict[str, Any]:
    """Load the ``[defaults]`` table from the first config.toml found.

    Searched in order: ``<cwd>/.claude-code-stream/config.toml``,
    ``./.claude-code-stream/config.toml``, ``~/.claude-code-stream/config.toml``.
    """
    search_dirs = []
    if cwd:
        search_dirs.append(Path(cwd))
    search_dirs.append(Path.cwd())
    search_dirs.append(Path.home())

    for d in search_dirs:
        toml_path = d / CONFIG_DIR / "config.toml"
        if not toml_path.is_file():
            continue
        try:
            with open(toml_path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as exc:
            logger.debug("Ignoring unreadable config %s: %s", toml_path, exc)
            continue
        defaults = data.get("defaults", {})
        if not isinstance(defaults, dict):
            return {}
        return {k: v for k, v in defaults.items() if k in _TOML_KEYS}
    return {}


def resolve_options(
    options: ClaudeCodeOptions | None = None,
    cwd: str | None = None,
) -> ClaudeCodeOptions:
    """Fill unset fields of *options* from config.toml, then the environment.

    Precedence: explicit options > environment > config.toml.
    """
    options = options or ClaudeCodeOptions()
    search_cwd = cwd or options.cwd

    loaded = {**load_toml_config(search_cwd), **load_env_config()}
    defaults = ClaudeCodeOptions()
    updates: dict[str, Any] = {}
    for key, value in loaded.items():
        # Only fill fields the caller left at their default value.
        if getattr(options, key) == getattr(defaults, key):
            updates[key] = tuple(value) if key == "allowed_tools" else value

    if not updates:
        return options
    logger.debug("Applying configured defaults: %s", sorted(updates))
    return dataclasses.replace(options, **updates)
