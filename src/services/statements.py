"""
Ledger statement generation.

Builds the two statements recorded for every matched agent:

- a `deals_transactions` insert describing the calculation
- an `agent_wallets` upsert adding the deal to the agent's monthly wallet

Statements are parameterized SQLAlchemy Core inserts compiled for
PostgreSQL. Values travel next to the SQL and are bound by the driver at
execution time; they are never spliced into the SQL text. Nothing here
executes anything.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy import column, insert, table
from sqlalchemy.dialects.postgresql import psycopg2
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.sql.dml import Insert
from sqlalchemy.sql.expression import TableClause

from src.models import AgentWallet, DealTransaction
from src.schemas.commission import AgentCalculation, DealInput
from src.utils.formatting import format_plain, format_with_underscores, to_money

TRANSACTION_STATUS = "pending"
TRANSACTION_ACTION = "commission_calculated"

WALLET_CONFLICT_KEY = ("agent_id", "month", "year")

# Columns whose values are accumulated on wallet conflict
WALLET_ACCUMULATED = ("total", "amount", "unit_prices", "net_profit")

# Price-like columns rendered with thousands grouping in previews
GROUPED_COLUMNS = frozenset({"unit_price", "total", "unit_prices"})

# Named driver: bind casts and placeholder style differ between PostgreSQL drivers
_dialect = psycopg2.dialect()
_PLACEHOLDER = re.compile(r"%\((\w+)\)s")


def ledger_table(model) -> TableClause:
    """Table clause over a ledger model's columns, without its surrogate key."""
    return table(
        model.__tablename__,
        *[
            column(c.name, c.type)
            for c in model.__table__.columns
            if not c.primary_key
        ],
    )


TRANSACTIONS = ledger_table(DealTransaction)
WALLETS = ledger_table(AgentWallet)


@dataclass(frozen=True)
class GeneratedStatement:
    """Compiled SQL text with its bound parameters."""

    sql: str
    params: Dict[str, Any] = field(default_factory=dict)

    def preview(self) -> str:
        return render_statement_preview(self.sql, self.params)


def _percentage(value: float) -> Decimal:
    # 10.0 -> 10, 2.5 -> 2.5
    return Decimal(format_plain(value))


def build_transaction_statement(
    calculation: AgentCalculation,
    deal: DealInput,
    now: datetime,
) -> Insert:
    """Insert recording one agent's commission on a deal as pending."""
    agent = calculation.agent_info
    return insert(TRANSACTIONS).values(
        agent_id=agent.id,
        deal_id=deal.deal_id,
        unit_price=to_money(deal.unit_price),
        commission_schema_id=calculation.matched_schema.id,
        policy_id=calculation.matched_policy.id,
        policy_percentage=_percentage(calculation.policy_percentage),
        crm_percentage=_percentage(calculation.crm_percentage),
        policy_amount=to_money(calculation.policy_amount),
        account_type=agent.account_type,
        status=TRANSACTION_STATUS,
        action=TRANSACTION_ACTION,
        created_at=now,
        updated_at=now,
        deleted_at=None,
        net_profit=to_money(calculation.net_profit),
        project_id=deal.project_id,
        developer_id=deal.developer_id,
    )


def build_wallet_statement(
    calculation: AgentCalculation,
    now: datetime,
    quarter: int,
) -> Insert:
    """
    Upsert adding a deal to the agent's wallet for the month of `now`.

    A new wallet row starts with the deal's figures, `latest` set and
    nothing paid or remaining. An existing row for the same agent, month and
    year has total, amount, unit_prices and net_profit increased by the new
    figures and updated_at refreshed.
    """
    unit_price = to_money(calculation.unit_price)

    stmt = pg_insert(WALLETS).values(
        agent_id=calculation.agent_info.id,
        month=now.month,
        year=now.year,
        quarter_number=quarter,
        total=unit_price,
        amount=to_money(calculation.policy_amount),
        policy_id=calculation.matched_policy.id,
        commission_schema_id=calculation.matched_schema.id,
        unit_prices=unit_price,
        net_profit=to_money(calculation.net_profit),
        latest=True,
        paid=Decimal("0"),
        remaining=Decimal("0"),
        created_at=now,
        updated_at=now,
        deleted_at=None,
    )

    increments = {
        name: WALLETS.c[name] + stmt.excluded[name]
        for name in WALLET_ACCUMULATED
    }
    return stmt.on_conflict_do_update(
        index_elements=list(WALLET_CONFLICT_KEY),
        set_={**increments, "updated_at": stmt.excluded.updated_at},
    )


def compile_statement(stmt: Insert) -> GeneratedStatement:
    """Compile for PostgreSQL (psycopg2 paramstyle), keeping values apart."""
    compiled = stmt.compile(dialect=_dialect)
    return GeneratedStatement(sql=str(compiled), params=dict(compiled.params))


def _render_literal(name: str, value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date)):
        return f"'{value.isoformat()}'"
    if isinstance(value, (int, float, Decimal)):
        if name in GROUPED_COLUMNS:
            return format_with_underscores(value)
        return str(value)
    text = str(value).replace("'", "''")
    return f"'{text}'"


def render_statement_preview(sql: str, params: Dict[str, Any]) -> str:
    """
    Render a statement with its values inlined, for display only.

    Prices are grouped with underscores (`300_000`), which PostgreSQL 16+
    also accepts. Use the parameterized form for execution.
    """
    return _PLACEHOLDER.sub(
        lambda match: _render_literal(match.group(1), params[match.group(1)]),
        sql,
    )
