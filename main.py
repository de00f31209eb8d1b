#!/usr/bin/env python3
"""
Storefront -- account registration and per-account product management API.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 9000
  python main.py serve --reload
  python main.py init-db

Environment variables (see core/config.py for the full list):
  SECRET_KEY     Token signing key, at least 32 characters. Required unless DEBUG=true.
  DATABASE_URL   SQLAlchemy URL. Defaults to a SQLite file next to this script.
  DEBUG          true enables debug logging and an auto-generated SECRET_KEY.
"""

import argparse
import logging
import sys

from core.config import get_settings
from core.database import create_db_engine, init_schema

logger = logging.getLogger("storefront.cli")


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "asgi:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level="debug" if settings.debug else "info",
    )
    return 0


def _init_db(args: argparse.Namespace) -> int:
    settings = get_settings()
    engine = create_db_engine(settings.database_url, timeout=settings.db_timeout_seconds)
    try:
        init_schema(engine)
    finally:
        engine.dispose()
    print("  Database schema is up to date.")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Storefront API server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn.")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting).")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: PORT setting).")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes (development only).")
    serve.set_defaults(func=_serve)

    init_db = sub.add_parser("init-db", help="Create database tables and exit.")
    init_db.set_defaults(func=_init_db)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s %(message)s")
    try:
        return args.func(args)
    except ValueError as exc:
        # Settings validation (e.g. missing SECRET_KEY) surfaces as ValueError.
        print(f"  [!] {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
