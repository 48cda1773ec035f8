#!/usr/bin/env python3
"""
Start the Foosrank API server.

    python scripts/run_server.py
    python scripts/run_server.py --port 9000 --reload
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add src to path so this script can be run directly
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import uvicorn

from foosrank.config import settings
from foosrank.logging_config import configure_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the Foosrank API server.")
    parser.add_argument("--host", default=settings.api_host, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.api_port, help="Port to listen on")
    parser.add_argument(
        "--reload",
        action="store_true",
        default=settings.api_reload,
        help="Auto-reload on code changes (development only)",
    )
    args = parser.parse_args()

    configure_logging()
    print(f"Starting HTTP server at http://{args.host}:{args.port}")
    uvicorn.run(
        "foosrank.web.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
