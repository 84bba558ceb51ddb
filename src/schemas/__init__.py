"""Pydantic schemas for request/response validation."""

from src.schemas.commission import (
    Agent,
    AgentCalculation,
    CalculationResult,
    CatalogData,
    CatalogIssue,
    CommissionPolicy,
    CommissionSchema,
    DealInput,
)

__all__ = [
    # Input
    "Agent",
    "DealInput",
    # Catalog
    "CommissionSchema",
    "CommissionPolicy",
    "CatalogData",
    "CatalogIssue",
    # Result
    "AgentCalculation",
    "CalculationResult",
]
