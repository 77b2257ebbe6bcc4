#!/usr/bin/env python3
"""
Re-sanitize Changelog Descriptions Script

Runs every stored change log description through the HTML allowlist
sanitizer and writes back the rows whose markup changed. Use it after
tightening the allowlist, or to clean rows written before sanitizing on
write was in place.

Usage:
    python scripts/resanitize_changelogs.py [--doc-id DOC_ID] [--dry-run]
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import from app
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import settings
from app.core.logging import logger
from app.db.supabase_client import create_supabase_admin_client, create_supabase_client
from app.services.changelog_service import ChangelogService
from app.utils.html_sanitizer import sanitize_html
import argparse


def resanitize_changelogs(supabase, doc_id: str = None, dry_run: bool = False) -> dict:
    """
    Re-sanitize stored descriptions.

    Args:
        supabase: Supabase client with write access to the change log table
        doc_id: Optional document id to restrict the pass to
        dry_run: Report changes without writing them

    Returns:
        Statistics dict (total, changed, unchanged, errors)
    """
    table = ChangelogService.TABLE

    query = supabase.table(table).select("id, doc_id, description")
    if doc_id:
        query = query.eq("doc_id", doc_id)
        logger.info(f"Filtering by doc_id: {doc_id}")

    rows = query.execute().data or []
    logger.info(f"Found {len(rows)} change log entries")

    stats = {"total": len(rows), "changed": 0, "unchanged": 0, "errors": 0}

    for idx, row in enumerate(rows, 1):
        original = row.get("description") or ""
        cleaned = sanitize_html(original)

        if cleaned == original:
            stats["unchanged"] += 1
            continue

        logger.info(f"[{idx}/{len(rows)}] Entry {row['id']} needs cleaning")

        if dry_run:
            stats["changed"] += 1
            continue

        try:
            supabase.table(table)\
                .update({"description": cleaned})\
                .eq("id", row["id"])\
                .execute()
            stats["changed"] += 1
        except Exception as e:
            logger.error(f"Failed to update entry {row['id']}: {e}")
            stats["errors"] += 1

    logger.info(
        f"Re-sanitize summary: total={stats['total']} changed={stats['changed']} "
        f"unchanged={stats['unchanged']} errors={stats['errors']} dry_run={dry_run}"
    )
    return stats


def main():
    parser = argparse.ArgumentParser(
        description="Re-sanitize stored change log descriptions"
    )
    parser.add_argument(
        "--doc-id",
        type=str,
        help="Document ID to restrict the pass to (optional, processes all if not specified)",
        default=None
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report entries that would change without writing"
    )

    args = parser.parse_args()

    try:
        supabase = create_supabase_admin_client(settings) or create_supabase_client(settings)
        stats = resanitize_changelogs(supabase, doc_id=args.doc_id, dry_run=args.dry_run)
        sys.exit(1 if stats["errors"] else 0)
    except Exception as e:
        logger.error(f"Re-sanitize failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
