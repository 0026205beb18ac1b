#!/usr/bin/env python3
"""
Compute the registry key for one or more files and optionally look them up.

Usage:
    python scripts/hash_file.py report.pdf [more files...] [--check]
"""
from __future__ import annotations

import argparse
import json
import os

from integrachain.app.domain.hashing import hash_file
from integrachain.app.infra.db import init_db, make_engine
from integrachain.app.services.registry import Registry
from integrachain.app.services.verification import VerificationService


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Hash files for the integrity registry.")
    parser.add_argument("paths", nargs="+")
    parser.add_argument("--check", action="store_true", help="look each hash up in the registry")
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", "sqlite:///./integrachain.db"),
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    if not args.check:
        for path in args.paths:
            print(f"{hash_file(path)}  {path}")
        return 0

    engine = make_engine(args.database_url)
    init_db(engine, attempts=1)
    service = VerificationService(Registry(engine=engine))
    results = service.verify_many(args.paths)
    for result in results:
        print(
            json.dumps(
                {
                    "file": result.name,
                    "hash": result.hash,
                    "status": result.status.value,
                    "owner": result.record.owner if result.record.exists else None,
                    "timestamp": result.record.timestamp or None,
                    "note": result.record.note or None,
                }
            )
        )
    return 0 if all(result.ok for result in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
