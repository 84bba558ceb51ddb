"""Initial database schema

Revision ID: 000_initial_schema
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "000_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create catalog and ledger tables."""

    # Commission schemas (catalog)
    op.create_table(
        "commission_schemas",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("account_type", sa.String(50), nullable=False),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_to", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_commission_schemas_account_type", "commission_schemas", ["account_type"])

    # Commission policies (catalog)
    op.create_table(
        "commission_policies",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("commission_schema_id", sa.String(64), sa.ForeignKey("commission_schemas.id"), nullable=False),
        sa.Column("min_price", sa.Numeric(16, 2), nullable=False),
        sa.Column("max_price", sa.Numeric(16, 2), nullable=False),
        sa.Column("policy_type", sa.String(20), nullable=False, server_default="quarter"),
        sa.Column("commission", sa.Numeric(6, 3), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_commission_policies_commission_schema_id", "commission_policies", ["commission_schema_id"])

    # Deal transactions (ledger)
    op.create_table(
        "deals_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("agent_id", sa.String(64), nullable=False),
        sa.Column("deal_id", sa.String(64), nullable=False),
        sa.Column("unit_price", sa.Numeric(16, 2), nullable=False),
        sa.Column("commission_schema_id", sa.String(64), nullable=False),
        sa.Column("policy_id", sa.String(64), nullable=False),
        sa.Column("policy_percentage", sa.Numeric(6, 3), nullable=False),
        sa.Column("crm_percentage", sa.Numeric(6, 3), nullable=False),
        sa.Column("policy_amount", sa.Numeric(16, 2), nullable=False),
        sa.Column("account_type", sa.String(50), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("net_profit", sa.Numeric(16, 2), nullable=False),
        sa.Column("project_id", sa.String(64), nullable=False),
        sa.Column("developer_id", sa.String(64), nullable=False),
    )
    op.create_index("ix_deals_transactions_agent_id", "deals_transactions", ["agent_id"])
    op.create_index("ix_deals_transactions_deal_id", "deals_transactions", ["deal_id"])

    # Agent wallets (monthly aggregate)
    op.create_table(
        "agent_wallets",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("agent_id", sa.String(64), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("quarter_number", sa.Integer(), nullable=False),
        sa.Column("total", sa.Numeric(18, 2), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column("policy_id", sa.String(64), nullable=False),
        sa.Column("commission_schema_id", sa.String(64), nullable=False),
        sa.Column("unit_prices", sa.Numeric(18, 2), nullable=False),
        sa.Column("net_profit", sa.Numeric(18, 2), nullable=False),
        sa.Column("latest", sa.Boolean(), nullable=False),
        sa.Column("paid", sa.Numeric(18, 2), nullable=False),
        sa.Column("remaining", sa.Numeric(18, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("agent_id", "month", "year", name="uq_agent_wallets_agent_period"),
    )
    op.create_index("ix_agent_wallets_agent_id", "agent_wallets", ["agent_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("agent_wallets")
    op.drop_table("deals_transactions")
    op.drop_table("commission_policies")
    op.drop_table("commission_schemas")
