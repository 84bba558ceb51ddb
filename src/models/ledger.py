"""
Ledger models targeted by the generated commission statements.

Column order is part of the ledger contract: the insert statements list
columns in table order, so do not reorder these definitions.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base


class DealTransaction(Base):
    """
    One commission calculation for one agent on one deal.

    Rows start as `pending` with action `commission_calculated`.
    `deleted_at` is a soft-delete marker.
    """

    __tablename__ = "deals_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    agent_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    deal_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    commission_schema_id: Mapped[str] = mapped_column(String(64), nullable=False)
    policy_id: Mapped[str] = mapped_column(String(64), nullable=False)
    policy_percentage: Mapped[Decimal] = mapped_column(Numeric(6, 3), nullable=False)
    crm_percentage: Mapped[Decimal] = mapped_column(Numeric(6, 3), nullable=False)
    policy_amount: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    account_type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    net_profit: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    project_id: Mapped[str] = mapped_column(String(64), nullable=False)
    developer_id: Mapped[str] = mapped_column(String(64), nullable=False)

    def __repr__(self) -> str:
        return f"<DealTransaction(id={self.id}, deal_id='{self.deal_id}', agent_id='{self.agent_id}')>"


class AgentWallet(Base):
    """
    Running per-agent aggregate for one calendar month.

    Keyed on (agent_id, month, year) and additionally bucketed by quarter.
    `total` and `unit_prices` both accumulate the deal unit prices.
    """

    __tablename__ = "agent_wallets"
    __table_args__ = (
        UniqueConstraint("agent_id", "month", "year", name="uq_agent_wallets_agent_period"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    agent_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    quarter_number: Mapped[int] = mapped_column(Integer, nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    policy_id: Mapped[str] = mapped_column(String(64), nullable=False)
    commission_schema_id: Mapped[str] = mapped_column(String(64), nullable=False)
    unit_prices: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    net_profit: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    latest: Mapped[bool] = mapped_column(Boolean, nullable=False)
    paid: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    remaining: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<AgentWallet(agent_id='{self.agent_id}', period={self.year}-{self.month:02d})>"
