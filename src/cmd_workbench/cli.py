"""CLI entry point for cmd-workbench."""

import argparse
import logging
import os

from rich.console import Console
from rich.table import Table
from rich.text import Text

import cmd_workbench.io.logging_setup
import cmd_workbench.io.settings
from cmd_workbench.pipeline.channel import BroadcastChannel
from cmd_workbench.pipeline.transport import WebSocketTransport
from cmd_workbench.tui.app import WorkbenchApp

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Workbench shell for remote commands over one websocket")
    parser.add_argument(
        "--url",
        type=str,
        default=None,
        help=(
            "Websocket endpoint of the command server "
            f"(default: settings server_url or {cmd_workbench.io.settings.DEFAULT_SERVER_URL}). "
            "Env: CMD_WORKBENCH_URL"
        ),
    )
    parser.add_argument(
        "--session",
        type=str,
        default="workbench",
        help="Session name used for the log file name (default: workbench)",
    )
    parser.add_argument(
        "--list-commands",
        action="store_true",
        default=False,
        help="Print the configured command catalog and exit.",
    )
    return parser


def print_commands(commands, console: Console | None = None) -> None:
    table = Table(title="Commands")
    table.add_column("Key")
    table.add_column("Command")
    table.add_column("Args")
    table.add_column("Title")
    for defn in commands:
        table.add_row(defn.key, defn.display_name, "yes" if defn.args_enabled else "no", Text(defn.title))
    (console or Console()).print(table)


def resolve_url(cli_url: str | None) -> str:
    # [LAW:one-source-of-truth] Precedence: flag > env > settings file > default.
    if cli_url:
        return cli_url
    env_url = os.environ.get("CMD_WORKBENCH_URL", "").strip()
    if env_url:
        return env_url
    return cmd_workbench.io.settings.load_server_url()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    commands = cmd_workbench.io.settings.load_commands()
    if args.list_commands:
        print_commands(commands)
        return 0

    log_runtime = cmd_workbench.io.logging_setup.configure(session_name=args.session)
    logger.info(
        "logging configured level=%s file=%s",
        log_runtime.level_name,
        log_runtime.file_path,
    )

    url = resolve_url(args.url)
    channel = BroadcastChannel()
    transport = WebSocketTransport(url, channel)

    app = WorkbenchApp(
        channel,
        commands,
        transport=transport,
        load_named_args=cmd_workbench.io.settings.load_named_args,
        save_named_args=cmd_workbench.io.settings.save_named_args,
    )
    logger.info("starting workbench url=%s commands=%d", url, len(commands))
    app.run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
