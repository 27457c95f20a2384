#!/usr/bin/env python3
"""
Credential Service -- signup, login and bearer-token verification over HTTP.

Usage:
  python main.py
  python main.py --port 8080
  python main.py --host 127.0.0.1 --reload

Environment variables (or .env):
  JWT_SECRET        Required unless DEBUG=true. At least 32 characters.
  STORAGE_BACKEND   "sql" (default) or "mongo".
  DATABASE_URL      SQLAlchemy URL for the sql backend.
  MONGO_URI         Connection string for the mongo backend.
  DB_NAME           Mongo database name (default: vixelry_db).
  PORT              Listening port (default: 4000).
  CORS_ORIGIN       Comma-separated allowed origins (default: *).
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="credential-service",
        description="Run the credential service HTTP API.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py
  PORT=8080 python main.py
  DEBUG=true python main.py --reload
        """,
    )
    parser.add_argument(
        "--host",
        default=settings.host,
        help=f"Interface to bind (default: {settings.host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.port,
        help=f"Port to listen on (default: {settings.port})",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change (development only)",
    )
    args = parser.parse_args()

    print(f"Credential service starting on port {args.port}")
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
