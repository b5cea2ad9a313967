"""Web server entry point using textual-serve.

Runs the workbench in the browser: every browser session launches an
independent cmd-workbench process, each with its own shared connection.
"""

import argparse
import shlex

from textual_serve.server import Server


def build_command(url: str | None) -> str:
    command = "cmd-workbench"
    if url:
        command += f" --url {shlex.quote(url)}"
    return command


def main(argv: list[str] | None = None) -> None:
    """Launch the cmd-workbench web server using textual-serve."""
    parser = argparse.ArgumentParser(description="Serve cmd-workbench to a browser")
    parser.add_argument("--host", type=str, default="localhost", help="Bind address (default: localhost)")
    parser.add_argument("--port", type=int, default=8000, help="Bind port (default: 8000)")
    parser.add_argument("--url", type=str, default=None, help="Websocket endpoint passed to each workbench")
    args = parser.parse_args(argv)

    server = Server(
        command=build_command(args.url),
        host=args.host,
        port=args.port,
        title="cmd-workbench",
    )

    print("cmd-workbench web server starting...")
    print(f"   Visit http://{args.host}:{args.port} to open the workbench in your browser")
    print()

    # Blocks until Ctrl+C
    server.serve()


if __name__ == "__main__":
    main()
