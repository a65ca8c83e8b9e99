#!/usr/bin/env python3
"""
loginapp -- user registration, login and session tokens over HTTP.

Usage:
  python main.py
  python main.py --host 0.0.0.0 --port 8080
  python main.py --reload

Environment variables (or .env):
  JWT_SECRET      Required unless DEBUG=true. At least 32 characters.
  JWT_EXPIRES_IN  Token lifetime in seconds. Default 604800 (7 days).
  DATABASE_URL    SQLAlchemy URL. Default sqlite:///loginapp.db
  HOST / PORT     Bind address. Default 127.0.0.1:8001
  FRONTEND_URL    Allowed CORS origin. Default http://localhost:5173
  DEBUG           true generates a throwaway JWT_SECRET for local use.
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="loginapp",
        description="Run the loginapp authentication API.",
    )
    parser.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Bind port (default: {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
