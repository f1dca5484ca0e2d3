#!/usr/bin/env python3
"""
Postgate -- token-authenticated CRUD backend for blog posts and users.

Usage:
  python main.py
  python main.py --host 127.0.0.1 --port 8080
  python main.py --reload

Environment variables:
  JWT_SECRET     Required signing secret (at least 32 characters).
                 With DEBUG=true a throwaway secret is generated instead.
  DATABASE_URL   SQLAlchemy URL. Defaults to a SQLite file beside the code.
  BCRYPT_ROUNDS  bcrypt cost factor (default 12).
  HOST / PORT    Listen address (default 0.0.0.0:3000).
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the Postgate API server.")
    parser.add_argument("--host", default=settings.host, help="Interface to bind (default: %(default)s)")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to bind (default: %(default)s)")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    print(f"  Listening on {args.host}:{args.port}")
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
