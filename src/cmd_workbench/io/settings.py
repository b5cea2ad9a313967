"""Settings file I/O for cmd-workbench.

Manages a general-purpose JSON settings file at XDG_CONFIG_HOME/cmd-workbench/settings.json.
Named-args presets and the command catalog are consumers; other settings can
be added as top-level keys.

This module is a STABLE BOUNDARY.
Import as: import cmd_workbench.io.settings
"""

import json
import os
import tempfile
from pathlib import Path

from cmd_workbench.core.commands import DEFAULT_COMMANDS, CommandDef, command_defs_from_settings

DEFAULT_SERVER_URL = "ws://127.0.0.1:8099/wsoapi"


def get_config_path() -> Path:
    """Return path to settings file.

    Uses XDG_CONFIG_HOME (default ~/.config) / cmd-workbench / settings.json.
    """
    config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "cmd-workbench" / "settings.json"


def load_settings() -> dict:
    """Load settings from JSON file. Returns empty dict on missing/corrupt file."""
    path = get_config_path()
    # [LAW:dataflow-not-control-flow] Always attempt read; empty dict is the "no data" value.
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_settings(data: dict) -> None:
    """Atomic write of settings dict to JSON file.

    Creates parent directories if needed. Writes to temp file then renames
    to avoid partial writes on crash.
    """
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def load_setting(key: str, default=None):
    """Load a single setting by key. Returns default if absent."""
    return load_settings().get(key, default)


def save_setting(key: str, value) -> None:
    """Save a single setting by key (merge into existing settings)."""
    data = load_settings()
    data[key] = value
    save_settings(data)


def load_server_url() -> str:
    return str(load_setting("server_url", DEFAULT_SERVER_URL) or DEFAULT_SERVER_URL)


def load_commands() -> tuple[CommandDef, ...]:
    """User catalog from settings, or the built-in samples when unset/empty."""
    return command_defs_from_settings(load_setting("commands")) or DEFAULT_COMMANDS


def load_named_args(command_key: str) -> dict[str, str] | None:
    """Saved named-args presets for one command, or None if never saved."""
    all_args = load_setting("named_args", {})
    if not isinstance(all_args, dict):
        return None
    raw = all_args.get(command_key)
    if not isinstance(raw, dict):
        return None
    return {str(k): str(v) for k, v in raw.items()}


def save_named_args(command_key: str, named_args: dict[str, str]) -> None:
    """Merge one command's named-args presets into settings and save."""
    data = load_settings()
    all_args = data.get("named_args")
    if not isinstance(all_args, dict):
        all_args = {}
    all_args[command_key] = dict(named_args)
    data["named_args"] = all_args
    save_settings(data)
