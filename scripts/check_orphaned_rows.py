#!/usr/bin/env python3
"""
Report rows whose parent no longer exists (left behind by a cascade delete that
stopped part way). Read-only: nothing is deleted.

Usage:
    python scripts/check_orphaned_rows.py
"""
import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import httpx

from dutyhub.auth.security import build_providers
from dutyhub.config import settings


# (table, column, parent table)
REFERENCES = [
    ("schedules", "personnel_id", "personnel"),
    ("attendance", "schedule_id", "schedules"),
    ("attendance", "personnel_id", "personnel"),
    ("swap_requests", "schedule_id", "schedules"),
    ("swap_requests", "requester_id", "personnel"),
    ("swap_requests", "target_id", "personnel"),
]


async def _ids(store, table):
    rows, error = await store.select(table, columns="id")
    if error is not None:
        raise RuntimeError(f"Could not read {table}: {error.message}")
    return {row["id"] for row in rows}


async def find_orphans(store):
    parents = {}
    orphans = []
    for table, column, parent in REFERENCES:
        if parent not in parents:
            parents[parent] = await _ids(store, parent)
        rows, error = await store.select(table, columns=f"id,{column}")
        if error is not None:
            raise RuntimeError(f"Could not read {table}: {error.message}")
        for row in rows:
            if row.get(column) and row[column] not in parents[parent]:
                orphans.append((table, row["id"], column, row[column]))
    return orphans


async def main():
    print("=" * 80)
    print("CHECK ORPHANED ROWS")
    print("=" * 80)
    if not settings.is_configured:
        print("Backend is not configured (SUPABASE_URL / SUPABASE_ANON_KEY).")
        return 1

    async with httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout)) as client:
        store, _ = build_providers(client)
        try:
            orphans = await find_orphans(store)
        except RuntimeError as e:
            print(f"[ERROR] {e}")
            return 1

    if not orphans:
        print("\n[OK] No orphaned rows found.")
        return 0

    print(f"\nFound {len(orphans)} orphaned rows")
    for table, row_id, column, missing in orphans:
        print(f"  [ORPHANED] {table} ID: {row_id}, {column}: {missing} (not found)")
    print("\nNothing was deleted. Remove these rows by deleting their schedule or person again.")
    return 2


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
