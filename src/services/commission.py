"""
Commission calculation for agents on a deal.

Rules:
- Each agent is matched to the schema active for their account type today,
  then to the quarter policy whose price band contains the unit price
- policy_factor = policy % * agent % / 100
- factor = unit price / 1,000,000
- policy_amount = policy_factor * factor
- net_profit = unit price * agent % / 100
- Agents that cannot be matched are reported and skipped; the rest of the
  deal is still calculated
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from src.schemas.commission import (
    Agent,
    AgentCalculation,
    CalculationResult,
    DealInput,
)
from src.services.catalog import CommissionCatalog
from src.services.statements import (
    build_transaction_statement,
    build_wallet_statement,
    compile_statement,
    render_statement_preview,
)
from src.utils.clock import Clock, utc_now
from src.utils.formatting import format_plain

logger = logging.getLogger(__name__)

# Only quarter policies are matched
QUARTER_POLICY = "quarter"

# Unit price divisor for the policy scaling factor
PRICE_SCALE = 1_000_000


def quarter_of(month: int) -> int:
    """Calendar quarter (1-4) of a 1-indexed month."""
    return (month - 1) // 3 + 1


@dataclass(frozen=True)
class CommissionAmounts:
    """Figures derived for one agent. Floats, unrounded."""

    policy_factor: float
    factor: float
    policy_amount: float
    net_profit: float
    commission_percentage: float


def derive_amounts(
    unit_price: float,
    policy_commission: float,
    agent_commission: float,
    price_scale: int = PRICE_SCALE,
) -> CommissionAmounts:
    """
    Apply the commission formula.

    Args:
        unit_price: Deal unit price
        policy_commission: Matched policy rate, in percent
        agent_commission: Agent's own rate, in percent
        price_scale: Divisor turning the price into the scaling factor

    Returns:
        CommissionAmounts with policy_factor, factor, policy_amount,
        net_profit and commission_percentage
    """
    policy_factor = (policy_commission * agent_commission) / 100
    factor = unit_price / price_scale
    return CommissionAmounts(
        policy_factor=policy_factor,
        factor=factor,
        policy_amount=policy_factor * factor,
        net_profit=unit_price * (agent_commission / 100),
        commission_percentage=agent_commission / 100,
    )


def no_schema_message(agent: Agent) -> str:
    return (
        f"No active schema found for agent {agent.name} ({agent.id}) "
        f"with account type {agent.account_type}"
    )


def no_policy_message(agent: Agent, unit_price: float) -> str:
    return (
        f"No matching policy found for agent {agent.name} ({agent.id}) "
        f"with unit price {format_plain(unit_price)}"
    )


class CommissionEngine:
    """
    Calculates commissions for every agent of a deal against a catalog.

    The engine holds no state between calls. A run reads the clock once, so
    all agents of a deal share the same timestamps and wallet period.
    """

    def __init__(
        self,
        catalog: CommissionCatalog,
        clock: Clock = utc_now,
        policy_type: str = QUARTER_POLICY,
        price_scale: int = PRICE_SCALE,
    ):
        self.catalog = catalog
        self.clock = clock
        self.policy_type = policy_type
        self.price_scale = price_scale

    def calculate(self, deal: DealInput, preview: bool = False) -> CalculationResult:
        """
        Calculate commissions and ledger statements for a deal.

        Args:
            deal: Deal with its agents, in the order they should be reported
            preview: Also render the statements with values inlined

        Returns:
            CalculationResult with one AgentCalculation and two statements
            per matched agent, and one validation error per unmatched agent
        """
        now = self.clock()
        today = now.date()
        quarter = quarter_of(now.month)

        result = CalculationResult()

        for agent in deal.agents:
            calculation = self.calculate_agent(agent, deal, today, result)
            if calculation is None:
                continue

            for stmt in (
                build_transaction_statement(calculation, deal, now),
                build_wallet_statement(calculation, now, quarter),
            ):
                generated = compile_statement(stmt)
                result.sql_queries.append(generated.sql)
                result.sql_parameters.append(generated.params)

            result.agents.append(calculation)

        if preview:
            result.sql_previews = [
                render_statement_preview(sql, params)
                for sql, params in zip(result.sql_queries, result.sql_parameters)
            ]

        logger.info(
            f"Deal {deal.deal_id}: {len(result.agents)} of {len(deal.agents)} agents "
            f"calculated, {len(result.validation_errors)} skipped"
        )
        return result

    def calculate_agent(
        self,
        agent: Agent,
        deal: DealInput,
        today: date,
        result: CalculationResult,
    ) -> Optional[AgentCalculation]:
        """Match one agent and derive their figures; record a validation error on a miss."""
        schema = self.catalog.find_active_schema(agent.account_type, today)
        if schema is None:
            message = no_schema_message(agent)
            logger.info(f"Deal {deal.deal_id}: {message}")
            result.validation_errors.append(message)
            return None

        policy = self.catalog.find_policy(schema.id, self.policy_type, deal.unit_price)
        if policy is None:
            message = no_policy_message(agent, deal.unit_price)
            logger.info(f"Deal {deal.deal_id}: {message}")
            result.validation_errors.append(message)
            return None

        logger.debug(
            f"Deal {deal.deal_id}: agent {agent.id} matched schema {schema.id}, "
            f"policy {policy.id}"
        )

        amounts = derive_amounts(
            deal.unit_price,
            policy.commission,
            agent.commission,
            self.price_scale,
        )

        return AgentCalculation(
            agent_info=agent,
            matched_schema=schema,
            matched_policy=policy,
            policy_percentage=policy.commission,
            policy_amount=amounts.policy_amount,
            crm_percentage=agent.commission,
            net_profit=amounts.net_profit,
            unit_price=deal.unit_price,
            commission_percentage=amounts.commission_percentage,
            policy_factor=amounts.policy_factor,
            factor=amounts.factor,
        )


def calculate_commission(
    deal: DealInput,
    catalog: CommissionCatalog,
    now: Optional[datetime] = None,
) -> CalculationResult:
    """One-off calculation; `now` pins the clock when given."""
    clock = (lambda: now) if now is not None else utc_now
    return CommissionEngine(catalog, clock=clock).calculate(deal)
