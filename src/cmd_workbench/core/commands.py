"""Command definitions and named argument presets.

// [LAW:one-source-of-truth] DEFAULT_COMMANDS is the built-in catalog; a user
//   catalog from settings replaces it wholesale.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandDef:
    """What a panel runs: a server-side script (runjs) or extension (runext)."""

    key: str
    title: str
    command: str
    script: str
    args_enabled: bool = False

    @property
    def display_name(self) -> str:
        return f"{self.command} {self.script}"


DEFAULT_COMMANDS: tuple[CommandDef, ...] = (
    CommandDef(
        key="shellSampleView",
        title="Sample: [sh command]",
        command="runjs",
        script="/sample/sh-test.mjs",
        args_enabled=True,
    ),
    CommandDef(
        key="buildSampleView",
        title="Sample: [build script]",
        command="runjs",
        script="/sample/build-project-test.mjs",
    ),
    CommandDef(
        key="extensionSampleView",
        title="Sample: [extension command]",
        command="runext",
        script="sample.Command",
        args_enabled=True,
    ),
)


def command_defs_from_settings(raw: object) -> tuple[CommandDef, ...]:
    """Parse a user catalog (list of dicts). Invalid entries are skipped."""
    if not isinstance(raw, list):
        return ()
    defs: list[CommandDef] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        key = str(entry.get("key", "") or "").strip()
        command = str(entry.get("command", "") or "").strip()
        script = str(entry.get("script", "") or "").strip()
        if not key or not command or not script:
            logger.warning("skipping incomplete command definition: %r", entry)
            continue
        defs.append(
            CommandDef(
                key=key,
                title=str(entry.get("title", "") or key),
                command=command,
                script=script,
                args_enabled=bool(entry.get("args", False)),
            )
        )
    return tuple(defs)


def output_file_name(defn: CommandDef) -> str:
    """File name used when saving a panel's output."""
    return "output_" + f"{defn.command}_{defn.script}".replace("/", "_") + ".txt"


DEFAULT_NAMED_ARGS: dict[str, str] = {
    "help": "-h",
    "testfile": "-file=test-data.json",
    "cdata": '<![CDATA[ {"name":"HelloFunction", "args":["John Doe"]} ]]>',
}


class NamedArgs:
    """Named argument presets for one panel."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._args: dict[str, str] = dict(DEFAULT_NAMED_ARGS if initial is None else initial)

    def lookup(self, key: str) -> str | None:
        return self._args.get(key.strip())

    def save(self, key: str, value: str) -> bool:
        key = key.strip()
        if not key:
            return False
        self._args[key] = value.strip()
        return True

    def delete(self, key: str) -> bool:
        return self._args.pop(key.strip(), None) is not None

    def keys(self) -> list[str]:
        return list(self._args)

    def as_dict(self) -> dict[str, str]:
        return dict(self._args)
