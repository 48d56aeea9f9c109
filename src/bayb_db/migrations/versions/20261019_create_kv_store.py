"""Create the kv_store table.

One row per key; values are JSONB documents.  A text_pattern_ops index
backs the prefix scans used to list a user's keys.

Revision ID: 20261019_kv_store
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP

# revision identifiers, used by Alembic.
revision = "20261019_kv_store"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "kv_store",
        sa.Column("key", sa.Text(), primary_key=True),
        sa.Column("value", JSONB(), nullable=True),
        sa.Column(
            "updated_at",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )

    # --- Prefix scans: WHERE key LIKE 'user:123:%' ---
    op.create_index(
        "ix_kv_store_key_prefix",
        "kv_store",
        [sa.text("key text_pattern_ops")],
    )


def downgrade() -> None:
    op.drop_index("ix_kv_store_key_prefix", table_name="kv_store")
    op.drop_table("kv_store")
