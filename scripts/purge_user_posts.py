"""Delete every post written by a plain ``user`` account.

Meant to run nightly from cron:
    0 0 * * * cd /srv/blog && python -m scripts.purge_user_posts
"""
import asyncio
import logging
import sys

from app.config import configure_logging
from app.database import async_session, engine
from app.services.post_service import delete_posts_by_user_role

logger = logging.getLogger("scripts.purge_user_posts")


async def run() -> int:
    try:
        async with async_session() as session:
            deleted = await delete_posts_by_user_role(session)
            await session.commit()
    finally:
        await engine.dispose()
    return deleted


def main():
    configure_logging()
    try:
        deleted = asyncio.run(run())
    except Exception:
        logger.exception("Purge failed")
        sys.exit(1)
    logger.info("Purged %d post(s) written by user accounts", deleted)


if __name__ == "__main__":
    main()
