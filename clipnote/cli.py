"""Command-line interface for the clipnote comment service."""

import argparse
from pathlib import Path

from . import __version__
from .logging import setup_logging, get_logger

logger = get_logger(__name__)


def cmd_serve(args):
    """Run the reference comment service."""
    from .server import run_server

    run_server(
        host=args.host,
        port=args.port,
        db_path=Path(args.db).expanduser() if args.db else None,
    )


def cmd_init_db(args):
    """Create the database schema without starting the service."""
    from .config import get_db_path
    from .storage import CommentDatabase

    db = CommentDatabase(Path(args.db).expanduser() if args.db else get_db_path())
    logger.info("Database ready: %s", db.db_path)


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="clipnote",
        description="clipnote - timestamped video feedback service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  clipnote serve                         # Serve on 127.0.0.1:8765
  clipnote serve --port 9000 --db ./feedback.db
  clipnote init-db --db ./feedback.db

Environment:
  CLIPNOTE_DB_PATH     Database file (default: ~/.clipnote/clipnote.db)
        """,
    )
    parser.add_argument("--version", action="version", version=f"clipnote {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Show only errors")
    parser.add_argument("--log-file", metavar="FILE", help="Write logs to file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the comment service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve_parser.add_argument("--port", "-p", type=int, default=8765, help="Port (default: 8765)")
    serve_parser.add_argument("--db", help="SQLite database file")

    init_parser = subparsers.add_parser("init-db", help="Create the database schema")
    init_parser.add_argument("--db", help="SQLite database file")

    args = parser.parse_args(argv)

    setup_logging(
        verbose=getattr(args, "verbose", False),
        quiet=getattr(args, "quiet", False),
        log_file=getattr(args, "log_file", None),
    )

    if args.command is None:
        parser.print_help()
        return

    commands = {
        "serve": cmd_serve,
        "init-db": cmd_init_db,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
