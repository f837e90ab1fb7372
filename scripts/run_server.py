#!/usr/bin/env python3
"""
Launch script for the ChargeGuard API.

Usage:
    python scripts/run_server.py              # Serve on 0.0.0.0:8000
    python scripts/run_server.py --dev        # Hot reload
    python scripts/run_server.py --port 8080  # Custom port
"""

import argparse
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Ensure project root is on PYTHONPATH
sys.path.insert(0, str(PROJECT_ROOT))
os.chdir(PROJECT_ROOT)


def main():
    parser = argparse.ArgumentParser(description="ChargeGuard API server")
    parser.add_argument("--dev", action="store_true", help="Run with hot reload")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    args = parser.parse_args()

    print("Starting ChargeGuard API...")
    print(f"  URL: http://{args.host}:{args.port}")
    print()

    import uvicorn
    uvicorn.run(
        "chargeguard.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.dev,
        reload_dirs=["chargeguard"] if args.dev else None,
        log_level="info",
    )


if __name__ == "__main__":
    main()
