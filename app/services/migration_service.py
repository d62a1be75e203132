"""
Migration service - batch conversion of legacy post content.

Each post is classified first (``detect_content_format``); only legacy
HTML is handed to the converter, so running the batch again over
already-converted posts is a no-op.  A failure while converting one post
is recorded in ``MigrationStats`` and the batch moves on to the next one.

Used by ``scripts/migrate_posts.py`` (async, through the ORM) and by the
alembic data revision (sync, through raw SQL), which is why the
per-item decision lives in the plain function ``prepare_conversion``.
"""
import logging
from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.content_format import ContentFormat, detect_content_format
from app.legacy_converter import convert_legacy_to_blocks
from app.models import Post

logger = logging.getLogger(__name__)

Converter = Callable[[str], str]


@dataclass
class MigrationStats:
    total: int = 0
    migrated: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: list[tuple[int, str]] = field(default_factory=list)

    def record_error(self, post_id: int, exc: Exception) -> None:
        self.errors += 1
        self.error_details.append((post_id, str(exc) or type(exc).__name__))

    def log_summary(self, log: logging.Logger = logger) -> None:
        log.info(
            "Migration summary: total=%d migrated=%d skipped=%d errors=%d",
            self.total, self.migrated, self.skipped, self.errors,
        )
        for post_id, message in self.error_details:
            log.error("  post #%s: %s", post_id, message)


def prepare_conversion(
    post_id: int,
    content: str | None,
    stats: MigrationStats,
    convert: Converter = convert_legacy_to_blocks,
) -> str | None:
    """
    Return the converted JSON for one post, or None when it must be left alone.

    Skips empty, already-structured and unrecognised content.  Converter
    exceptions are recorded in *stats* rather than raised.
    """
    if not content:
        logger.info("Post #%s: empty content, skipping", post_id)
        stats.skipped += 1
        return None

    content_format = detect_content_format(content)
    if content_format is ContentFormat.STRUCTURED:
        logger.info("Post #%s: already structured, skipping", post_id)
        stats.skipped += 1
        return None
    if content_format is not ContentFormat.LEGACY:
        logger.warning("Post #%s: unknown content format, skipping", post_id)
        stats.skipped += 1
        return None

    try:
        return convert(content)
    except Exception as exc:
        logger.error("Post #%s: conversion failed - %s", post_id, exc)
        stats.record_error(post_id, exc)
        return None


async def migrate_posts(
    db: AsyncSession,
    post_id: int | None = None,
    dry_run: bool = False,
    convert: Converter = convert_legacy_to_blocks,
) -> MigrationStats:
    """
    Convert every legacy post (or only *post_id*) to structured content.

    With *dry_run* every step runs except the final write.
    """
    q = select(Post.id, Post.content).order_by(Post.id)
    if post_id is not None:
        q = q.where(Post.id == post_id)
    rows = (await db.execute(q)).all()

    stats = MigrationStats(total=len(rows))
    logger.info("Found %d post(s) to process", stats.total)

    for row_id, content in rows:
        converted = prepare_conversion(row_id, content, stats, convert)
        if converted is None:
            continue

        if dry_run:
            logger.info(
                "[DRY RUN] Would update post #%s (%d -> %d chars): %s...",
                row_id, len(content), len(converted), converted[:100],
            )
            stats.migrated += 1
            continue

        # One savepoint per post: a failed write rolls back only that post and
        # leaves the surrounding transaction usable.
        try:
            async with db.begin_nested():
                await db.execute(
                    update(Post)
                    .where(Post.id == row_id)
                    .values(content=converted)
                    .execution_options(synchronize_session=False)
                )
        except Exception as exc:
            logger.error("Post #%s: update failed - %s", row_id, exc)
            stats.record_error(row_id, exc)
            continue

        logger.info("Post #%s: migrated", row_id)
        stats.migrated += 1

    return stats
