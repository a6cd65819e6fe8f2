"""add poll expiry and publication flag

Revision ID: a84e2b6c5d13
Revises: 3f1c9a2d7b40
Create Date: 2026-10-09 16:40:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a84e2b6c5d13"
down_revision = "3f1c9a2d7b40"
branch_labels = None
depends_on = None


def upgrade():
    op.add_column("polls", sa.Column("voting_expires_at", sa.DateTime(), nullable=True))
    op.add_column(
        "polls",
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.execute(
        sa.text(
            """
            UPDATE polls
            SET total_votes = (
                SELECT COUNT(*) FROM votes WHERE votes.poll_id = polls.id
            )
            """
        )
    )


def downgrade():
    op.drop_column("polls", "published")
    op.drop_column("polls", "voting_expires_at")
