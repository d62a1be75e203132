"""Convert legacy HTML posts to block JSON.

Usage:
    python -m scripts.migrate_posts [--dry-run] [--post-id N]

``DRY_RUN=true`` and ``POST_ID=N`` in the environment work as well.
Exits with status 1 when the batch cannot run at all; per-post failures
are reported in the summary and do not change the exit status.
"""
import argparse
import asyncio
import logging
import os
import sys

from app.config import configure_logging
from app.database import async_session, engine
from app.services.migration_service import migrate_posts

logger = logging.getLogger("scripts.migrate_posts")


def _env_post_id() -> int | None:
    raw = os.environ.get("POST_ID")
    return int(raw) if raw else None


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Convert legacy HTML posts to block JSON")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=os.environ.get("DRY_RUN", "").lower() == "true",
        help="Convert and log, but do not write anything",
    )
    parser.add_argument(
        "--post-id",
        type=int,
        default=_env_post_id(),
        help="Only migrate this post",
    )
    return parser.parse_args(argv)


async def run(dry_run: bool, post_id: int | None) -> None:
    logger.info("Starting post content migration%s", " (dry run)" if dry_run else "")
    try:
        async with async_session() as session:
            stats = await migrate_posts(session, post_id=post_id, dry_run=dry_run)
            if not dry_run:
                await session.commit()
    finally:
        await engine.dispose()
    stats.log_summary(logger)


def main(argv=None):
    configure_logging()
    args = parse_args(argv)
    try:
        asyncio.run(run(args.dry_run, args.post_id))
    except Exception:
        logger.exception("Migration failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
