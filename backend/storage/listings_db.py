"""
SQLite store of recent listings used for "similar properties".
Handles storage, retrieval, and import of the compact listings export.
"""
import sqlite3
import os
import json
import shutil
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

DB_PATH = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data", "listings.db")

def health_check_db(db_path: str) -> bool:
    """
    Check database integrity using PRAGMA integrity_check.
    Returns True if healthy, False if corrupted.
    """
    if not os.path.exists(db_path):
        return True  # Missing is not corrupted

    try:
        conn = sqlite3.connect(db_path)
        cursor = conn.cursor()
        cursor.execute("PRAGMA integrity_check")
        result = cursor.fetchone()
        conn.close()

        if result and result[0] == "ok":
            return True
        logger.warning(f"Listings DB integrity check failed: {result}")
        return False
    except sqlite3.DatabaseError as e:
        logger.warning(f"Listings DB integrity check raised DatabaseError: {e}")
        return False

def ensure_db(db_path: str = DB_PATH) -> bool:
    """
    Create database and table if they don't exist.
    A corrupted file is moved aside and a fresh DB is created.
    Returns True if DB was recreated (fresh/empty), False otherwise.
    """
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)

    db_recreated = False
    if os.path.exists(db_path) and not health_check_db(db_path):
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = f"{db_path}.corrupt.{timestamp}"
        shutil.move(db_path, backup_path)
        logger.warning(f"Listings DB corrupted → backed up to {backup_path} and recreated")
        db_recreated = True

    try:
        conn = sqlite3.connect(db_path)
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS listings (
                listing_id TEXT PRIMARY KEY,
                url TEXT,
                address TEXT,
                price_pcm REAL NOT NULL,
                bedrooms INTEGER,
                bathrooms INTEGER,
                postcode_district TEXT,
                size_sqft REAL,
                amenities TEXT,
                updated_at TEXT NOT NULL
            )
        """)
        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_listings_district ON listings(postcode_district)
        """)

        conn.commit()
        conn.close()
        logger.info(f"Listings database ensured at {db_path}")
        return db_recreated
    except sqlite3.DatabaseError as e:
        logger.error(f"Database error in ensure_db: {e}")
        return False

def upsert_listing(db_path: str, item: Dict[str, Any]) -> bool:
    """
    Insert or replace a listing by listing_id.
    Returns True if successful, False otherwise.
    """
    try:
        conn = sqlite3.connect(db_path)
        cursor = conn.cursor()
        cursor.execute("""
            INSERT OR REPLACE INTO listings (
                listing_id, url, address, price_pcm, bedrooms, bathrooms,
                postcode_district, size_sqft, amenities, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            str(item.get("listing_id")),
            item.get("url"),
            item.get("address"),
            item.get("price_pcm"),
            item.get("bedrooms"),
            item.get("bathrooms"),
            item.get("postcode_district"),
            item.get("size_sqft"),
            json.dumps(item.get("amenities") or []),
            item.get("updated_at") or datetime.now().isoformat(),
        ))
        conn.commit()
        conn.close()
        return True
    except sqlite3.DatabaseError as e:
        logger.warning(f"DB error in upsert_listing: {e}")
        return False

def _row_to_listing(row: sqlite3.Row) -> Dict[str, Any]:
    d = dict(row)
    try:
        d["amenities"] = json.loads(d.get("amenities") or "[]")
    except ValueError:
        d["amenities"] = []
    return d

def query_candidates(
    db_path: str,
    exclude_url: Optional[str] = None,
    limit: int = 5000
) -> List[Dict[str, Any]]:
    """
    All priced listings, optionally excluding the listing being evaluated.
    Scoring and filtering happen in services.similar.
    """
    try:
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        cursor = conn.cursor()

        cursor.execute("""
            SELECT * FROM listings
            WHERE price_pcm > 0
            ORDER BY updated_at DESC
            LIMIT ?
        """, (limit,))
        rows = cursor.fetchall()
        conn.close()

        result = []
        for row in rows:
            listing = _row_to_listing(row)
            # The evaluated page's URL contains the stored (relative) URL
            if exclude_url and listing.get("url") and listing["url"] in exclude_url:
                continue
            result.append(listing)
        return result
    except sqlite3.DatabaseError as e:
        logger.warning(f"DB error in query_candidates: {e}")
        return []

def count_listings(db_path: str) -> int:
    """Get count of listings in database."""
    try:
        conn = sqlite3.connect(db_path)
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM listings")
        count = cursor.fetchone()[0]
        conn.close()
        return count
    except sqlite3.DatabaseError as e:
        logger.warning(f"DB error in count_listings: {e}")
        return 0

def import_listings(db_path: str, payload: Dict[str, Dict[str, Any]]) -> int:
    """
    Import the compact similar-listings export:
    {id: {u: url, a: address, pr: price_pcm, b: beds, ba: baths, p: district, s: sqft, am: [amenities]}}
    Returns number of listings written.
    """
    written = 0
    now = datetime.now().isoformat()
    for listing_id, listing in payload.items():
        if not isinstance(listing, dict) or not listing.get("pr"):
            continue
        ok = upsert_listing(db_path, {
            "listing_id": listing_id,
            "url": listing.get("u"),
            "address": listing.get("a"),
            "price_pcm": listing.get("pr"),
            "bedrooms": listing.get("b"),
            "bathrooms": listing.get("ba"),
            "postcode_district": listing.get("p"),
            "size_sqft": listing.get("s"),
            "amenities": listing.get("am") or [],
            "updated_at": now,
        })
        if ok:
            written += 1
    logger.info(f"Imported {written} listings into {db_path}")
    return written
