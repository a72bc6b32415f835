#!/usr/bin/env python3
"""
Import products from a local CSV file, using the same rules as POST /api/products/import:
rows without a name are skipped, names already in the store are skipped as
duplicates, everything else is inserted. The file itself is left in place.

Usage:
    python scripts/import_products.py --file products.csv
"""
import argparse
import json
import logging
import os
import sys

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.config import settings
from app.db import SessionLocal, init_db
from app.exceptions import ImportParseError
from app.logging_setup import setup_logging
from app.services.import_service import ImportService


def import_from_file(path: str) -> dict:
    with open(path, "rb") as f:
        data = f.read()

    init_db()
    db = SessionLocal()
    try:
        summary = ImportService(db).import_bytes(data)
    finally:
        db.close()
    return summary.to_dict()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", required=True, help="Path to a CSV file with a header row")
    parser.add_argument("--verbose", "-v", action="store_true", help="Print the full per-row result")
    args = parser.parse_args()
    setup_logging(settings)
    if not os.path.exists(args.file):
        print("File not found:", args.file)
        sys.exit(1)
    try:
        result = import_from_file(args.file)
    except ImportParseError as e:
        logging.getLogger("import_products").error("%s: %s", e.message, e.details)
        sys.exit(2)
    if args.verbose:
        print(json.dumps(result, indent=2, default=str))
    else:
        print(f"Added: {result['addedCount']}  Skipped: {result['skippedCount']}")
