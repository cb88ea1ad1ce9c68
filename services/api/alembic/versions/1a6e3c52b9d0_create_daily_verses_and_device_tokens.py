"""create_daily_verses_and_device_tokens

Revision ID: 1a6e3c52b9d0
Revises:
Create Date: 2024-04-28
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "1a6e3c52b9d0"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "daily_verses",
        sa.Column("verse_key", sa.String(length=40), nullable=False),
        sa.Column("verse_date", sa.String(length=10), nullable=False),
        sa.Column("slot", sa.String(length=16), nullable=False),
        sa.Column("language", sa.String(length=5), nullable=False),
        sa.Column("reference", sa.Text(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("verse_key"),
    )
    op.create_index(op.f("ix_daily_verses_verse_date"), "daily_verses", ["verse_date"], unique=False)

    op.create_table(
        "device_tokens",
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column("language", sa.String(length=5), nullable=False),
        sa.Column("frequency", sa.SmallInteger(), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("token"),
        sa.CheckConstraint("frequency IN (1, 3)", name="ck_device_tokens_frequency"),
    )


def downgrade() -> None:
    op.drop_table("device_tokens")
    op.drop_index(op.f("ix_daily_verses_verse_date"), table_name="daily_verses")
    op.drop_table("daily_verses")
