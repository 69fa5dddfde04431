"""
Delete refresh tokens that can never be used again (ops utility).

A row is purged when it was revoked, or expired, more than --days ago.
Live tokens are never touched.

Examples:
  python scripts/purge_refresh_tokens.py --dry-run
  python scripts/purge_refresh_tokens.py --days 30
"""

import logging
import os
import sys
from datetime import datetime, timedelta, timezone

_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30


def purge(db, days: int = DEFAULT_RETENTION_DAYS, dry_run: bool = False) -> int:
    """Returns the number of rows deleted (or that would be deleted)."""
    from sqlalchemy import or_
    from models import RefreshToken

    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    query = db.query(RefreshToken).filter(
        or_(RefreshToken.revoked_at < cutoff, RefreshToken.expires_at < cutoff)
    )

    if dry_run:
        return query.count()

    deleted = query.delete(synchronize_session=False)
    db.commit()
    logger.info(
        f"Purged {deleted} refresh tokens older than {days} days",
        extra={"extra_fields": {"event": "refresh_tokens_purged", "count": deleted}},
    )
    return deleted


def main() -> int:
    import argparse

    parser = argparse.ArgumentParser(description="Purge dead refresh tokens")
    parser.add_argument("--days", type=int, default=DEFAULT_RETENTION_DAYS,
                        help="Keep revoked/expired rows for this many days")
    parser.add_argument("--dry-run", action="store_true", help="Only count matching rows")
    args = parser.parse_args()

    if args.days < 0:
        print("ERROR: --days must be >= 0")
        return 2

    from core.database import get_db_sync

    db = get_db_sync()
    try:
        count = purge(db, args.days, args.dry_run)
    finally:
        db.close()

    verb = "Would delete" if args.dry_run else "Deleted"
    print(f"{verb} {count} refresh tokens")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
