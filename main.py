#!/usr/bin/env python3
"""
Chart Buffet — launch the API server.

Usage:
    python main.py                          # http://localhost:8000/docs
    python main.py --port 9000              # http://localhost:9000/docs
    python main.py --host 127.0.0.1         # bind to localhost only
    python main.py --data /path/to/entities.json
    python main.py --reload                 # auto-reload on code changes
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Launch the Chart Buffet API.",
    )
    parser.add_argument(
        "--host", default="0.0.0.0",
        help="Bind address (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port", type=int, default=int(os.getenv("APP_PORT", "8000")),
        help="Port to listen on (default: 8000 or APP_PORT env var)",
    )
    parser.add_argument(
        "--data", type=Path, default=None,
        help="Entity JSON file (default: entities.json or APP_DATA_PATH env var)",
    )
    parser.add_argument(
        "--reload", action="store_true",
        help="Enable auto-reload on file changes (development mode)",
    )
    args = parser.parse_args()

    # Set data path env var if provided via CLI
    if args.data is not None:
        os.environ["APP_DATA_PATH"] = str(args.data)

    data_path = Path(os.getenv("APP_DATA_PATH", "entities.json"))
    if not data_path.exists():
        print(f"Warning: Entity data not found at {data_path}")
        print("  Pass --data /path/to/entities.json (an object keyed by entity type)")
        print()

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed.")
        print("  pip install uvicorn[standard]")
        sys.exit(1)

    url = f"http://{'localhost' if args.host == '0.0.0.0' else args.host}:{args.port}"
    print(f"Starting Chart Buffet API at {url}/docs")
    print(f"Entity data: {data_path}")
    print()

    uvicorn.run(
        "api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
