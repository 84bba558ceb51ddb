"""
Commission calculation schemas.

Catalog entries (schemas, policies) are frozen: a catalog snapshot must not
change while a calculation is reading it.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class Agent(BaseModel):
    """An agent attached to a deal, with their individual commission rate."""

    id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    account_type: str = Field(..., min_length=1, max_length=50)
    commission: float = Field(
        ...,
        gt=0,
        le=100,
        description="Agent's own rate as a percentage",
    )


class CommissionSchema(BaseModel):
    """A dated ruleset for one account type."""

    id: str = Field(..., min_length=1, max_length=64)
    name: str
    account_type: str
    effective_from: date
    effective_to: date
    is_active: bool = True

    model_config = {"from_attributes": True, "frozen": True}

    @model_validator(mode="after")
    def check_interval(self) -> "CommissionSchema":
        if self.effective_from > self.effective_to:
            raise ValueError("effective_from must not be after effective_to")
        return self

    def covers(self, day: date) -> bool:
        """Both bounds inclusive, compared as calendar days."""
        return self.effective_from <= day <= self.effective_to


class CommissionPolicy(BaseModel):
    """A commission rate for an inclusive price band under a schema."""

    id: str = Field(..., min_length=1, max_length=64)
    commission_schema_id: str
    min_price: float = Field(..., ge=0)
    max_price: float = Field(..., ge=0)
    policy_type: str = "quarter"
    commission: float = Field(..., ge=0, description="Policy rate as a percentage")

    model_config = {"from_attributes": True, "frozen": True}

    @model_validator(mode="after")
    def check_band(self) -> "CommissionPolicy":
        if self.min_price > self.max_price:
            raise ValueError("min_price must not exceed max_price")
        return self

    def contains(self, price: float) -> bool:
        return self.min_price <= price <= self.max_price


class CatalogData(BaseModel):
    """Serialized catalog, as stored in a JSON seed file."""

    schemas: List[CommissionSchema] = Field(default_factory=list)
    policies: List[CommissionPolicy] = Field(default_factory=list)


class CatalogIssue(BaseModel):
    """An ambiguity in the catalog that first-match resolution hides."""

    kind: str  # "schema_overlap" | "policy_overlap" | "orphan_policy"
    ids: List[str]
    message: str


class DealInput(BaseModel):
    """A deal submitted for commission calculation."""

    deal_id: str = Field(..., min_length=1, max_length=64)
    unit_price: float = Field(..., gt=0)
    project_id: str = Field(..., min_length=1, max_length=64)
    developer_id: str = Field(..., min_length=1, max_length=64)
    agents: List[Agent] = Field(..., min_length=1)


class AgentCalculation(BaseModel):
    """Commission figures for one matched agent."""

    agent_info: Agent
    matched_schema: CommissionSchema
    matched_policy: CommissionPolicy
    policy_percentage: float
    policy_amount: float
    crm_percentage: float
    net_profit: float
    unit_price: float
    commission_percentage: float
    policy_factor: float
    factor: float


class CalculationResult(BaseModel):
    """
    Outcome of one calculation run.

    `sql_queries` alternates transaction and wallet statements per matched
    agent. `sql_parameters[i]` holds the values bound to `sql_queries[i]`.
    """

    agents: List[AgentCalculation] = Field(default_factory=list)
    sql_queries: List[str] = Field(default_factory=list)
    sql_parameters: List[Dict[str, Any]] = Field(default_factory=list)
    validation_errors: List[str] = Field(default_factory=list)

    # Filled only when a readable rendering is requested
    sql_previews: Optional[List[str]] = None
