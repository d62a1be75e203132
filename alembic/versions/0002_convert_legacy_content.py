"""convert legacy HTML post content to block JSON

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-05 09:40:00
"""
import logging

from alembic import op
import sqlalchemy as sa

from app.services.migration_service import MigrationStats, prepare_conversion

revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

logger = logging.getLogger("alembic.runtime.migration")

posts = sa.table(
    "posts",
    sa.column("id", sa.Integer),
    sa.column("content", sa.Text),
)


def upgrade() -> None:
    bind = op.get_bind()
    rows = bind.execute(sa.select(posts.c.id, posts.c.content).order_by(posts.c.id)).all()

    stats = MigrationStats(total=len(rows))
    for post_id, content in rows:
        converted = prepare_conversion(post_id, content, stats)
        if converted is None:
            continue
        bind.execute(
            posts.update().where(posts.c.id == post_id).values(content=converted)
        )
        stats.migrated += 1

    stats.log_summary(logger)


def downgrade() -> None:
    # Original HTML is not kept anywhere, so there is nothing to restore.
    logger.warning("0002 downgrade: converted posts stay in block JSON format")
