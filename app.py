#!/usr/bin/env python3
"""
Strategy Alert Engine - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
Runs the webhook/scores API, or one-off maintenance modes.

============================================================
USAGE
============================================================
Serve the API:
    python app.py --mode serve --port 8000

Create tables:
    python app.py --mode init-db

Print dashboard scores:
    python app.py --mode scores --window 240

With PM2:
    pm2 start app.py --interpreter python --name alert-engine -- --mode serve

============================================================
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

from core.env import env_int, env_str
from core.logging_setup import setup_logging


MODES = ("serve", "init-db", "scores")


# ============================================================
# CLI ARGUMENT PARSER
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="alert-engine",
        description="Strategy evaluation engine for charting alerts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Modes:
  serve    - Run the webhook and scores API (default)
  init-db  - Create database tables and exit
  scores   - Print the dashboard scores as JSON and exit

Examples:
  %(prog)s --mode serve --port 8000
  %(prog)s --mode scores --window 60
        """
    )

    parser.add_argument(
        "--mode", "-m",
        type=str,
        choices=MODES,
        default="serve",
        help="Runtime mode (default: serve)",
    )

    server_group = parser.add_argument_group("Server Options")
    server_group.add_argument(
        "--host",
        type=str,
        default=env_str("API_HOST", "0.0.0.0"),
        help="Bind address (default: API_HOST or 0.0.0.0)",
    )
    server_group.add_argument(
        "--port",
        type=int,
        default=env_int("API_PORT", 8000),
        help="Bind port (default: API_PORT or 8000)",
    )

    scores_group = parser.add_argument_group("Scores Options")
    scores_group.add_argument(
        "--window",
        type=int,
        default=None,
        help="Lookback in minutes (default: ENGINE_SCORE_WINDOW_MINUTES)",
    )

    logging_group = parser.add_argument_group("Logging Options")
    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.getenv("LOG_LEVEL", "INFO").upper(),
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["text", "json"],
        default=os.getenv("LOG_FORMAT", "text"),
        help="Log output format (default: text)",
    )

    return parser


def validate_args(args: argparse.Namespace) -> List[str]:
    """Validate parsed arguments. Returns a list of errors."""
    errors = []
    if not 0 < args.port < 65536:
        errors.append(f"Invalid port: {args.port}")
    if args.window is not None and args.window <= 0:
        errors.append("--window must be positive")
    return errors


# ============================================================
# MODES
# ============================================================

def run_server(args: argparse.Namespace) -> int:
    import uvicorn

    from dashboard.main import create_app

    uvicorn.run(
        create_app(),
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )
    return 0


async def run_init_db() -> int:
    from database.engine import dispose_engine, initialize_database

    try:
        await initialize_database()
    finally:
        await dispose_engine()
    return 0


async def run_scores(window: Optional[int]) -> int:
    from dashboard.services import build_services

    services = await build_services()
    try:
        rows = await services.orchestrator.score_all_strategies(window)
    finally:
        await services.close()

    print(json.dumps([row.to_dict() for row in rows], indent=2, ensure_ascii=False))
    return 0


# ============================================================
# MAIN
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)

    errors = validate_args(args)
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 2

    logger = setup_logging(level=args.log_level, log_format=args.log_format)
    logger.info(f"Starting alert engine in '{args.mode}' mode")

    if args.mode == "init-db":
        return asyncio.run(run_init_db())
    if args.mode == "scores":
        return asyncio.run(run_scores(args.window))
    return run_server(args)


if __name__ == "__main__":
    sys.exit(main())
