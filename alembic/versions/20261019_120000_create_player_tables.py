"""Create players and player_images tables

Revision ID: 5a1f0c3e9b20
Revises:
Create Date: 2026-10-19 12:00:00.000000+00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers, used by Alembic.
revision: str = "5a1f0c3e9b20"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "players",
        sa.Column("itsf_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("json_data", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("itsf_id"),
    )
    op.create_table(
        "player_images",
        sa.Column("itsf_id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("image_data", sa.LargeBinary(), nullable=False),
        sa.Column("image_format", sa.String(length=10), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("itsf_id"),
    )


def downgrade() -> None:
    op.drop_table("player_images")
    op.drop_table("players")
