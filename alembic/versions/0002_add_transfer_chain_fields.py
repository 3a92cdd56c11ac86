"""add slot and network fee to roundup records

Revision ID: 0002_add_transfer_chain_fields
Revises: 0001_initial_roundup_schema
Create Date: 2026-10-18 14:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002_add_transfer_chain_fields"
down_revision = "0001_initial_roundup_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    with op.batch_alter_table("roundup_records") as batch_op:
        batch_op.add_column(sa.Column("slot", sa.BigInteger(), nullable=True))
        batch_op.add_column(sa.Column("network_fee", sa.Numeric(20, 9), nullable=True, comment="SOL"))


def downgrade() -> None:
    with op.batch_alter_table("roundup_records") as batch_op:
        batch_op.drop_column("network_fee")
        batch_op.drop_column("slot")
