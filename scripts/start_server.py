#!/usr/bin/env python3
"""
Serve the IRV counting API.

Without --db only POST /api/count is usable; with it, GET /api/stored-count
counts the election written by process_data.py.
"""

import argparse
import sys
from pathlib import Path

import uvicorn

# Add src to path so we can import our modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from web.main import set_database_path  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="Serve the IRV counting API")
    parser.add_argument("--db", help="DuckDB file written by process_data.py")
    parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    parser.add_argument(
        "--reload", action="store_true", help="Restart when source files change"
    )
    args = parser.parse_args()

    if args.db:
        db_path = Path(args.db)
        if not db_path.exists():
            print(f"Error: election database not found: {db_path}")
            print("Store an election first: scripts/process_data.py BALLOTS.csv --db PATH")
            sys.exit(1)
        set_database_path(str(db_path.absolute()))

    print(f"Counting API on http://{args.host}:{args.port}/api/health")
    uvicorn.run("web.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
