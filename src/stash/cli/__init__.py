"""Stash CLI — run the key-value service.

Entry point registered as ``stash`` in ``pyproject.toml``::

    [project.scripts]
    stash = "stash.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``stash`` command."""
    parser = argparse.ArgumentParser(
        prog="stash",
        description="Stash: a small HTTP key-value service.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- stash serve ------------------------------------------------------
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind host address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    serve_parser.add_argument(
        "--admin-token",
        default=None,
        help="Bearer token for /admin routes (default: $STASH_ADMIN_TOKEN)",
    )
    serve_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds (default: 5)",
    )
    serve_parser.add_argument(
        "--log-level",
        default=None,
        choices=["critical", "error", "warning", "info", "debug"],
        help="Logging level (default: info)",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from stash.cli._serve import serve

        serve(args)
