"""Commission calculation API endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.db import get_db
from src.schemas.commission import (
    CalculationResult,
    CatalogIssue,
    CommissionPolicy,
    CommissionSchema,
    DealInput,
)
from src.services.catalog import CatalogError, CommissionCatalog, load_catalog
from src.services.commission import CommissionEngine
from src.utils.clock import Clock, utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/commissions", tags=["Commissions"])


async def get_catalog(db: AsyncSession = Depends(get_db)) -> CommissionCatalog:
    """
    Load a catalog snapshot for the current request.

    Raises:
        HTTPException: 409 if strict mode is on and the catalog is ambiguous
    """
    try:
        return await load_catalog(db, strict=settings.strict_catalog)
    except CatalogError as e:
        logger.error(f"Rejected ambiguous catalog: {e}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": "Commission catalog has overlapping entries",
                "issues": [issue.model_dump() for issue in e.issues],
            },
        )


def get_clock() -> Clock:
    """Clock used for calculations; overridden in tests."""
    return utc_now


@router.post("/calculate", response_model=CalculationResult)
async def calculate(
    deal: DealInput,
    preview: bool = Query(False, description="Include statements with values inlined"),
    catalog: CommissionCatalog = Depends(get_catalog),
    clock: Clock = Depends(get_clock),
):
    """
    Calculate commissions for every agent on a deal.

    Unmatched agents are reported in `validation_errors`; the statements are
    returned for the caller to execute, never run here.
    """
    engine = CommissionEngine(
        catalog,
        clock=clock,
        policy_type=settings.policy_type,
        price_scale=settings.price_scale,
    )
    return engine.calculate(deal, preview=preview)


@router.get("/schemas", response_model=List[CommissionSchema])
async def list_schemas(
    account_type: Optional[str] = Query(None),
    catalog: CommissionCatalog = Depends(get_catalog),
):
    """List schemas in catalog order."""
    return [
        schema for schema in catalog.schemas
        if account_type is None or schema.account_type == account_type
    ]


@router.get("/policies", response_model=List[CommissionPolicy])
async def list_policies(
    schema_id: Optional[str] = Query(None),
    catalog: CommissionCatalog = Depends(get_catalog),
):
    """List policies in catalog order."""
    return [
        policy for policy in catalog.policies
        if schema_id is None or policy.commission_schema_id == schema_id
    ]


@router.get("/catalog/issues", response_model=List[CatalogIssue])
async def catalog_issues(db: AsyncSession = Depends(get_db)):
    """Report overlapping schemas and price bands, even in strict mode."""
    catalog = await load_catalog(db, strict=False)
    return catalog.find_issues()
