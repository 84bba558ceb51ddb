"""
Tests for agent commission calculation.

Covers:
- derive_amounts formula and quarter bucketing
- Schema and policy matching per agent, in input order
- Validation errors for unmatched agents
- Statement pairing and shared run timestamps
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from src.services.catalog import CommissionCatalog
from src.services.commission import (
    PRICE_SCALE,
    CommissionEngine,
    calculate_commission,
    derive_amounts,
    quarter_of,
)
from src.utils.clock import FrozenClock

from factories import RUN_MOMENT, make_agent, make_deal, make_policy, make_schema


# ── derive_amounts ────────────────────────────────────────


class TestDeriveAmounts:
    def test_standard_example(self):
        amounts = derive_amounts(300_000, 2.5, 10)
        assert amounts.policy_factor == pytest.approx(0.25)
        assert amounts.factor == pytest.approx(0.3)
        assert amounts.policy_amount == pytest.approx(0.075)
        assert amounts.net_profit == pytest.approx(30_000.0)
        assert amounts.commission_percentage == pytest.approx(0.1)

    def test_enterprise_example(self):
        amounts = derive_amounts(1_500_000, 4.0, 5)
        assert amounts.policy_factor == pytest.approx(0.2)
        assert amounts.factor == pytest.approx(1.5)
        assert amounts.policy_amount == pytest.approx(0.3)
        assert amounts.net_profit == pytest.approx(75_000.0)

    def test_net_profit_ignores_policy_rate(self):
        low = derive_amounts(800_000, 1.0, 7)
        high = derive_amounts(800_000, 9.0, 7)
        assert low.net_profit == high.net_profit

    def test_fixed_price_scale(self):
        assert PRICE_SCALE == 1_000_000
        assert derive_amounts(1_000_000, 3.0, 10).factor == 1.0

    def test_custom_price_scale(self):
        amounts = derive_amounts(500_000, 2.0, 50, price_scale=100_000)
        assert amounts.factor == pytest.approx(5.0)
        assert amounts.policy_amount == pytest.approx(5.0)


class TestQuarterOf:
    @pytest.mark.parametrize(
        "month,quarter",
        [(1, 1), (3, 1), (4, 2), (6, 2), (7, 3), (9, 3), (10, 4), (12, 4)],
    )
    def test_month_to_quarter(self, month, quarter):
        assert quarter_of(month) == quarter


# ── Matching ──────────────────────────────────────────────


class TestMatching:
    def test_standard_agent_matched(self, engine):
        result = engine.calculate(make_deal())

        assert result.validation_errors == []
        assert len(result.agents) == 1
        calc = result.agents[0]
        assert calc.matched_schema.id == "schema1"
        assert calc.matched_policy.id == "policy1"
        assert calc.policy_percentage == 2.5
        assert calc.crm_percentage == 10
        assert calc.unit_price == 300_000
        assert calc.policy_factor == pytest.approx(0.25)
        assert calc.factor == pytest.approx(0.3)
        assert calc.policy_amount == pytest.approx(0.075)
        assert calc.net_profit == pytest.approx(30_000.0)
        assert calc.commission_percentage == pytest.approx(0.1)

    def test_enterprise_agent_above_standard_bands(self, engine):
        deal = make_deal(
            unit_price=1_500_000,
            agents=[make_agent(id="e1", name="Ent", account_type="enterprise", commission=5)],
        )
        result = engine.calculate(deal)

        assert result.validation_errors == []
        calc = result.agents[0]
        assert calc.matched_schema.id == "schema3"
        assert calc.matched_policy.id == "policy4"
        assert calc.policy_factor == pytest.approx(0.2)
        assert calc.factor == pytest.approx(1.5)
        assert calc.policy_amount == pytest.approx(0.3)
        assert calc.net_profit == pytest.approx(75_000.0)

    def test_second_band_selected(self, engine):
        result = engine.calculate(make_deal(unit_price=750_000))
        assert result.agents[0].matched_policy.id == "policy2"

    @pytest.mark.parametrize(
        "price,policy_id",
        [(500_000, "policy1"), (500_001, "policy2"), (1_000_000, "policy2")],
    )
    def test_band_bounds_inclusive(self, engine, price, policy_id):
        result = engine.calculate(make_deal(unit_price=price))
        assert result.agents[0].matched_policy.id == policy_id

    def test_agent_echoed_in_result(self, engine):
        agent = make_agent(name="Omar", commission=12.5)
        result = engine.calculate(make_deal(agents=[agent]))
        assert result.agents[0].agent_info == agent

    def test_only_quarter_policies_match(self, clock):
        catalog = CommissionCatalog(
            [make_schema()],
            [make_policy(policy_type="annual")],
        )
        result = CommissionEngine(catalog, clock=clock).calculate(make_deal())
        assert result.agents == []
        assert len(result.validation_errors) == 1

    def test_configured_policy_type(self, clock):
        catalog = CommissionCatalog(
            [make_schema()],
            [make_policy(policy_type="annual")],
        )
        engine = CommissionEngine(catalog, clock=clock, policy_type="annual")
        assert len(engine.calculate(make_deal()).agents) == 1

    def test_schema_matched_on_clock_date(self, reference_catalog):
        engine = CommissionEngine(
            reference_catalog,
            clock=FrozenClock(datetime(2024, 1, 1, tzinfo=timezone.utc)),
        )
        result = engine.calculate(make_deal())
        assert result.agents == []
        assert result.validation_errors[0].startswith("No active schema found")

    def test_last_effective_day_matches(self, reference_catalog):
        engine = CommissionEngine(
            reference_catalog,
            clock=FrozenClock(datetime(2023, 12, 31, 23, 59, 59, tzinfo=timezone.utc)),
        )
        assert len(engine.calculate(make_deal()).agents) == 1

    def test_first_schema_in_catalog_order_wins(self, clock):
        catalog = CommissionCatalog(
            [make_schema(id="first"), make_schema(id="second")],
            [
                make_policy(id="p-first", commission_schema_id="first", commission=1.0),
                make_policy(id="p-second", commission_schema_id="second", commission=9.0),
            ],
        )
        result = CommissionEngine(catalog, clock=clock).calculate(make_deal())
        assert result.agents[0].matched_schema.id == "first"
        assert result.agents[0].matched_policy.id == "p-first"


# ── Validation errors ─────────────────────────────────────


class TestValidationErrors:
    def test_unknown_account_type(self, engine):
        agent = make_agent(id="x9", name="Sam", account_type="platinum")
        result = engine.calculate(make_deal(agents=[agent]))

        assert result.agents == []
        assert result.sql_queries == []
        assert result.validation_errors == [
            "No active schema found for agent Sam (x9) with account type platinum"
        ]

    def test_price_outside_every_band(self, clock):
        catalog = CommissionCatalog([make_schema()], [make_policy()])
        result = CommissionEngine(catalog, clock=clock).calculate(
            make_deal(unit_price=600_000)
        )

        assert result.agents == []
        assert result.sql_queries == []
        assert result.validation_errors == [
            "No matching policy found for agent Jane Doe (a1) with unit price 600000"
        ]

    def test_fractional_price_in_message(self, clock):
        catalog = CommissionCatalog([make_schema()], [make_policy()])
        result = CommissionEngine(catalog, clock=clock).calculate(
            make_deal(unit_price=600_000.5)
        )
        assert result.validation_errors[0].endswith("with unit price 600000.5")

    def test_inactive_schema_skipped(self, clock):
        catalog = CommissionCatalog([make_schema(is_active=False)], [make_policy()])
        result = CommissionEngine(catalog, clock=clock).calculate(make_deal())
        assert result.validation_errors[0].startswith("No active schema found")

    def test_all_agents_unmatched_in_input_order(self, engine):
        agents = [
            make_agent(id="u1", name="One", account_type="gold"),
            make_agent(id="u2", name="Two", account_type="silver"),
            make_agent(id="u3", name="Three", account_type="bronze"),
        ]
        result = engine.calculate(make_deal(agents=agents))

        assert result.agents == []
        assert result.sql_queries == []
        assert [e.split("(")[1].split(")")[0] for e in result.validation_errors] == [
            "u1", "u2", "u3",
        ]

    def test_failure_does_not_abort_later_agents(self, engine):
        agents = [
            make_agent(id="a1"),
            make_agent(id="bad", name="Bad", account_type="unknown"),
            make_agent(id="a3", account_type="premium", commission=8),
        ]
        result = engine.calculate(make_deal(agents=agents))

        assert [c.agent_info.id for c in result.agents] == ["a1", "a3"]
        assert len(result.validation_errors) == 1
        assert "(bad)" in result.validation_errors[0]


# ── Statements and run snapshot ───────────────────────────


class TestRunOutput:
    def test_two_statements_per_matched_agent(self, engine):
        agents = [
            make_agent(id="a1"),
            make_agent(id="a2", account_type="premium"),
            make_agent(id="nope", account_type="none"),
            make_agent(id="a4", account_type="enterprise"),
        ]
        result = engine.calculate(make_deal(agents=agents))

        assert len(result.agents) == 3
        assert len(result.sql_queries) == 2 * len(result.agents)
        assert len(result.sql_parameters) == len(result.sql_queries)

    def test_statements_alternate_in_agent_order(self, engine):
        agents = [make_agent(id="a1"), make_agent(id="a2", account_type="premium")]
        result = engine.calculate(make_deal(agents=agents))

        tables = [sql.split()[2] for sql in result.sql_queries]
        assert tables == [
            "deals_transactions", "agent_wallets",
            "deals_transactions", "agent_wallets",
        ]
        owners = [params["agent_id"] for params in result.sql_parameters]
        assert owners == ["a1", "a1", "a2", "a2"]

    def test_agents_share_run_timestamp(self, engine):
        agents = [make_agent(id="a1"), make_agent(id="a2", account_type="premium")]
        result = engine.calculate(make_deal(agents=agents))

        stamps = {params["created_at"] for params in result.sql_parameters}
        stamps |= {params["updated_at"] for params in result.sql_parameters}
        assert stamps == {RUN_MOMENT}

    def test_clock_read_once_per_run(self, reference_catalog):
        calls = []

        def counting_clock():
            calls.append(1)
            return RUN_MOMENT

        engine = CommissionEngine(reference_catalog, clock=counting_clock)
        engine.calculate(make_deal(agents=[make_agent(id="a1"), make_agent(id="a2")]))
        assert len(calls) == 1

    def test_wallet_period_from_clock(self, engine):
        result = engine.calculate(make_deal())
        wallet = result.sql_parameters[1]
        assert (wallet["month"], wallet["year"], wallet["quarter_number"]) == (5, 2023, 2)

    def test_rounded_amounts_in_statements(self, engine):
        result = engine.calculate(make_deal())
        transaction = result.sql_parameters[0]
        assert transaction["policy_amount"] == Decimal("0.07")
        assert transaction["net_profit"] == Decimal("30000.00")
        assert transaction["unit_price"] == Decimal("300000.00")

    def test_repeat_run_is_identical(self, engine):
        deal = make_deal(agents=[make_agent(id="a1"), make_agent(id="a2", account_type="premium")])
        first = engine.calculate(deal)
        second = engine.calculate(deal)

        assert first.agents == second.agents
        assert first.sql_queries == second.sql_queries
        assert first.sql_parameters == second.sql_parameters

    def test_previews_only_on_request(self, engine):
        assert engine.calculate(make_deal()).sql_previews is None

        result = engine.calculate(make_deal(), preview=True)
        assert len(result.sql_previews) == len(result.sql_queries)
        assert "'a1'" in result.sql_previews[0]
        assert "300_000" in result.sql_previews[0]


class TestCalculateCommission:
    def test_pinned_now(self, reference_catalog):
        result = calculate_commission(make_deal(), reference_catalog, now=RUN_MOMENT)
        assert result.sql_parameters[0]["created_at"] == RUN_MOMENT
