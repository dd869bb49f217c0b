#!/usr/bin/env python3
"""Helper to seed the dev database and run the gateway with auto-reload.

Usage:
    python scripts/start_dev.py [--seed]
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path

import uvicorn

ROOT = Path(__file__).resolve().parent.parent
DEFAULT_PORT = int(os.environ.get("HOA_BACKEND_PORT", "8000"))


def _seed(env: dict[str, str]) -> None:
    print("[launcher] seeding development data...")
    completed = subprocess.run(
        [sys.executable, str(ROOT / "scripts" / "seed_data.py")],
        cwd=str(ROOT),
        env=env,
        check=False,
    )
    if completed.returncode != 0:
        raise SystemExit(completed.returncode)


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the HOA portal gateway for local development.")
    parser.add_argument("--seed", action="store_true", help="Load sample users, dues and a project first")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args()

    env = os.environ.copy()
    env.setdefault("PYTHONPATH", str(ROOT))
    if args.seed:
        _seed(env)

    print(f"[launcher] gateway on http://127.0.0.1:{args.port}/exec")
    uvicorn.run(
        "hoa_portal.main:app",
        host="127.0.0.1",
        port=args.port,
        reload=True,
        reload_dirs=[str(ROOT / "hoa_portal")],
        log_level="info",
    )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n[launcher] interrupted by user.")
