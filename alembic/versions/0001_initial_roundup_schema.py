"""initial round-up schema

Revision ID: 0001_initial_roundup_schema
Revises:
Create Date: 2026-10-18 10:00:00.000000

Creates:
1. wallet_tracking - one baseline row per wallet
2. roundup_records - append-only ledger, unique per transaction
3. tracking_runs - history of tracking invocations
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial_roundup_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "wallet_tracking",
        sa.Column("wallet_address", sa.String(64), nullable=False),
        sa.Column("last_tracked_tx", sa.String(128), nullable=True),
        sa.Column("last_tracked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("wallet_address"),
    )

    op.create_table(
        "roundup_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("wallet_address", sa.String(64), nullable=False),
        sa.Column("transaction_id", sa.String(128), nullable=False),
        sa.Column("transaction_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("token", sa.String(20), nullable=False),
        sa.Column("token_mint", sa.String(64), nullable=True, comment="NULL for native SOL"),
        sa.Column("token_amount", sa.Numeric(38, 12), nullable=False),
        sa.Column("usd_value", sa.Numeric(18, 2), nullable=False),
        sa.Column("round_up_value", sa.Numeric(18, 2), nullable=False),
        sa.Column("price_source", sa.String(32), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("transaction_id"),
    )
    op.create_index("ix_roundup_records_wallet_address", "roundup_records", ["wallet_address"])

    op.create_table(
        "tracking_runs",
        sa.Column("run_id", sa.Uuid(), nullable=False),
        sa.Column("wallet_address", sa.String(64), nullable=False),
        sa.Column("mode", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("processed", sa.Integer(), nullable=False),
        sa.Column("stored", sa.Integer(), nullable=False),
        sa.Column("skipped", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.String(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("run_id"),
    )
    op.create_index("ix_tracking_runs_wallet_address", "tracking_runs", ["wallet_address"])


def downgrade() -> None:
    op.drop_index("ix_tracking_runs_wallet_address", "tracking_runs")
    op.drop_table("tracking_runs")
    op.drop_index("ix_roundup_records_wallet_address", "roundup_records")
    op.drop_table("roundup_records")
    op.drop_table("wallet_tracking")
