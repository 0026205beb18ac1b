#!/usr/bin/env python3
"""
Verify the IntegraChain audit log and the record table derived from it.

Usage:
    python scripts/verify_chain.py [--database-url sqlite:///./integrachain.db]
"""
from __future__ import annotations

import argparse
import json
import os
import sys

from integrachain.app.infra.db import init_db, make_engine
from integrachain.app.services.ledger import ReplayError
from integrachain.app.services.registry import Registry


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify audit chain integrity.")
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", "sqlite:///./integrachain.db"),
        help="Database URL (SQLAlchemy compatible)",
    )
    parser.add_argument("--json", action="store_true", help="print the full report as JSON")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    engine = make_engine(args.database_url)
    init_db(engine, attempts=1)
    registry = Registry(engine=engine)

    chain = registry.verify_chain()
    try:
        consistency = registry.check_consistency()
    except ReplayError as exc:
        consistency = {"ok": False, "records": None, "mismatches": [], "error": str(exc)}

    if args.json:
        print(json.dumps({"chain": chain, "consistency": consistency}, indent=2))
    else:
        for problem in chain["problems"]:
            print(f"[WARN] {problem}", file=sys.stderr)
        for key in consistency["mismatches"]:
            print(f"[WARN] record {key} differs from replayed audit log", file=sys.stderr)
        if consistency.get("error"):
            print(f"[WARN] replay failed: {consistency['error']}", file=sys.stderr)
        if not chain["events"]:
            print("No events found for verification.")
        elif chain["ok"] and consistency["ok"]:
            print(f"Verified {chain['events']} events; chain intact; head {chain['head']}")

    return 0 if chain["ok"] and consistency["ok"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
