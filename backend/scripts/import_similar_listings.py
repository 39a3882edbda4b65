#!/usr/bin/env python3
"""
Import the compact similar-listings export (similar_listings.json) into the
SQLite listings DB used by POST /similar.

Usage:
    python backend/scripts/import_similar_listings.py --input similar_listings.json
"""

import argparse
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from storage.listings_db import DB_PATH, count_listings, ensure_db, import_listings


def main():
    parser = argparse.ArgumentParser(description="Import similar listings into SQLite")
    parser.add_argument("--input", required=True, help="similar_listings.json export")
    parser.add_argument("--db", default=os.getenv("LISTINGS_DB_PATH", DB_PATH))
    args = parser.parse_args()

    if not os.path.exists(args.input):
        print(f"Error: Input file not found: {args.input}")
        sys.exit(1)

    with open(args.input, "r", encoding="utf-8") as f:
        payload = json.load(f)
    if not isinstance(payload, dict):
        print("Error: expected a JSON object keyed by listing id")
        sys.exit(1)

    print(f"Read {len(payload)} listings from {args.input}")
    ensure_db(args.db)
    written = import_listings(args.db, payload)
    print(f"✓ Imported {written} listings; DB now holds {count_listings(args.db)} ({args.db})")


if __name__ == "__main__":
    main()
