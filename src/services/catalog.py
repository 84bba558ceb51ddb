"""
Commission catalog: the reference data the engine matches agents against.

The catalog answers two point queries, `find_active_schema` and
`find_policy`. Both return the first qualifying entry in catalog order.
Overlapping entries are not an error at query time; `find_issues` reports
them so they can be fixed (or rejected with `strict=True`) at load time.

A catalog is an immutable snapshot. Load a fresh one per request instead of
mutating one that calculations may be reading.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models import CommissionPolicyRecord, CommissionSchemaRecord
from src.schemas.commission import (
    CatalogData,
    CatalogIssue,
    CommissionPolicy,
    CommissionSchema,
)
from src.utils.clock import utc_now

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when a strict catalog contains ambiguous entries."""

    def __init__(self, issues: List[CatalogIssue]):
        self.issues = issues
        super().__init__(
            f"Catalog has {len(issues)} issue(s): "
            + "; ".join(issue.message for issue in issues)
        )


class CommissionCatalog:
    """Read-only, ordered collection of commission schemas and policies."""

    def __init__(
        self,
        schemas: Iterable[CommissionSchema] = (),
        policies: Iterable[CommissionPolicy] = (),
        strict: bool = False,
    ):
        self._schemas: Tuple[CommissionSchema, ...] = tuple(schemas)
        self._policies: Tuple[CommissionPolicy, ...] = tuple(policies)

        issues = self.find_issues()
        if issues:
            if strict:
                raise CatalogError(issues)
            for issue in issues:
                logger.warning(f"Catalog issue ({issue.kind}): {issue.message}")

    @property
    def schemas(self) -> Tuple[CommissionSchema, ...]:
        return self._schemas

    @property
    def policies(self) -> Tuple[CommissionPolicy, ...]:
        return self._policies

    def __len__(self) -> int:
        return len(self._schemas) + len(self._policies)

    def __repr__(self) -> str:
        return f"<CommissionCatalog(schemas={len(self._schemas)}, policies={len(self._policies)})>"

    def find_active_schema(
        self,
        account_type: str,
        as_of: Union[date, datetime],
    ) -> Optional[CommissionSchema]:
        """
        Find the schema in force for an account type on a given day.

        Args:
            account_type: Agent account type, compared exactly
            as_of: Day to check; datetimes are reduced to their date

        Returns:
            First active schema whose effective interval contains the day,
            or None
        """
        if isinstance(as_of, datetime):
            as_of = as_of.date()

        for schema in self._schemas:
            if (
                schema.account_type == account_type
                and schema.is_active
                and schema.covers(as_of)
            ):
                return schema
        return None

    def find_policy(
        self,
        schema_id: str,
        policy_type: str,
        price: float,
    ) -> Optional[CommissionPolicy]:
        """
        Find the policy whose inclusive price band contains the price.

        Returns:
            First matching policy under the schema, or None
        """
        for policy in self._policies:
            if (
                policy.commission_schema_id == schema_id
                and policy.policy_type == policy_type
                and policy.contains(price)
            ):
                return policy
        return None

    def find_issues(self) -> List[CatalogIssue]:
        """Report entries that first-match resolution would silently shadow."""
        return find_catalog_issues(self._schemas, self._policies)

    def to_data(self) -> CatalogData:
        return CatalogData(schemas=list(self._schemas), policies=list(self._policies))

    @classmethod
    def from_data(cls, data: CatalogData, strict: bool = False) -> "CommissionCatalog":
        return cls(data.schemas, data.policies, strict=strict)


def find_catalog_issues(
    schemas: Sequence[CommissionSchema],
    policies: Sequence[CommissionPolicy],
) -> List[CatalogIssue]:
    """
    Scan a catalog for ambiguities, in catalog order.

    Detects:
    - active schemas for the same account type with intersecting intervals
    - policies of the same schema and type with intersecting price bands
    - policies pointing at a schema that is not in the catalog
    """
    issues: List[CatalogIssue] = []

    for i, first in enumerate(schemas):
        if not first.is_active:
            continue
        for second in schemas[i + 1:]:
            if (
                second.is_active
                and second.account_type == first.account_type
                and first.effective_from <= second.effective_to
                and second.effective_from <= first.effective_to
            ):
                issues.append(CatalogIssue(
                    kind="schema_overlap",
                    ids=[first.id, second.id],
                    message=(
                        f"Schemas {first.id} and {second.id} are both active for "
                        f"account type {first.account_type} on overlapping dates; "
                        f"{first.id} wins"
                    ),
                ))

    for i, first in enumerate(policies):
        for second in policies[i + 1:]:
            if (
                second.commission_schema_id == first.commission_schema_id
                and second.policy_type == first.policy_type
                and first.min_price <= second.max_price
                and second.min_price <= first.max_price
            ):
                issues.append(CatalogIssue(
                    kind="policy_overlap",
                    ids=[first.id, second.id],
                    message=(
                        f"Policies {first.id} and {second.id} of schema "
                        f"{first.commission_schema_id} have overlapping "
                        f"{first.policy_type} price bands; {first.id} wins"
                    ),
                ))

    schema_ids = {schema.id for schema in schemas}
    for policy in policies:
        if policy.commission_schema_id not in schema_ids:
            issues.append(CatalogIssue(
                kind="orphan_policy",
                ids=[policy.id],
                message=(
                    f"Policy {policy.id} references unknown schema "
                    f"{policy.commission_schema_id}"
                ),
            ))

    return issues


# ── Built-in catalog ──────────────────────────────────────

# (id, name prefix, account type)
DEFAULT_SCHEMAS = [
    ("schema1", "Standard Schema", "standard"),
    ("schema2", "Premium Schema", "premium"),
    ("schema3", "Enterprise Schema", "enterprise"),
]

# (id, schema id, min price, max price, commission %)
DEFAULT_POLICIES = [
    ("policy1", "schema1", 0, 500_000, 2.5),
    ("policy2", "schema1", 500_001, 1_000_000, 3.0),
    ("policy3", "schema2", 0, 1_000_000, 3.5),
    ("policy4", "schema3", 0, 2_000_000, 4.0),
]


def default_catalog(year: Optional[int] = None) -> CommissionCatalog:
    """
    Build the built-in catalog with schemas effective for one calendar year.

    Args:
        year: Effective year, defaults to the current UTC year
    """
    if year is None:
        year = utc_now().year

    schemas = [
        CommissionSchema(
            id=schema_id,
            name=f"{name} {year}",
            account_type=account_type,
            effective_from=date(year, 1, 1),
            effective_to=date(year, 12, 31),
            is_active=True,
        )
        for schema_id, name, account_type in DEFAULT_SCHEMAS
    ]
    policies = [
        CommissionPolicy(
            id=policy_id,
            commission_schema_id=schema_id,
            min_price=min_price,
            max_price=max_price,
            policy_type="quarter",
            commission=commission,
        )
        for policy_id, schema_id, min_price, max_price, commission in DEFAULT_POLICIES
    ]
    return CommissionCatalog(schemas, policies)


def load_catalog_file(path: Union[str, Path], strict: bool = False) -> CommissionCatalog:
    """Load a catalog from a JSON file shaped like `CatalogData`."""
    text = Path(path).read_text(encoding="utf-8")
    data = CatalogData.model_validate_json(text)
    logger.info(
        f"Loaded catalog file {path}: {len(data.schemas)} schemas, "
        f"{len(data.policies)} policies"
    )
    return CommissionCatalog.from_data(data, strict=strict)


# ── Database backing ──────────────────────────────────────


def _policy_from_record(record: CommissionPolicyRecord) -> CommissionPolicy:
    return CommissionPolicy(
        id=record.id,
        commission_schema_id=record.commission_schema_id,
        min_price=float(record.min_price),
        max_price=float(record.max_price),
        policy_type=record.policy_type,
        commission=float(record.commission),
    )


async def load_catalog(db: AsyncSession, strict: bool = False) -> CommissionCatalog:
    """
    Snapshot the catalog tables into an in-memory catalog.

    Catalog order is `position`, then `id`.
    """
    schema_rows = await db.execute(
        select(CommissionSchemaRecord).order_by(
            CommissionSchemaRecord.position,
            CommissionSchemaRecord.id,
        )
    )
    policy_rows = await db.execute(
        select(CommissionPolicyRecord).order_by(
            CommissionPolicyRecord.position,
            CommissionPolicyRecord.id,
        )
    )

    schemas = [
        CommissionSchema.model_validate(record)
        for record in schema_rows.scalars().all()
    ]
    policies = [_policy_from_record(record) for record in policy_rows.scalars().all()]

    logger.debug(f"Catalog snapshot: {len(schemas)} schemas, {len(policies)} policies")
    return CommissionCatalog(schemas, policies, strict=strict)


async def seed_catalog(db: AsyncSession, catalog: CommissionCatalog) -> int:
    """
    Insert a catalog into empty catalog tables.

    Positions follow the catalog order. Does nothing if any schema exists.
    Commit should happen in the calling context.

    Returns:
        Number of rows added
    """
    existing = await db.scalar(select(func.count()).select_from(CommissionSchemaRecord))
    if existing:
        logger.debug(f"Catalog already has {existing} schemas, skipping seed")
        return 0

    for position, schema in enumerate(catalog.schemas):
        db.add(CommissionSchemaRecord(
            id=schema.id,
            name=schema.name,
            account_type=schema.account_type,
            effective_from=schema.effective_from,
            effective_to=schema.effective_to,
            is_active=schema.is_active,
            position=position,
        ))
    # Policies reference schemas
    await db.flush()

    for position, policy in enumerate(catalog.policies):
        db.add(CommissionPolicyRecord(
            id=policy.id,
            commission_schema_id=policy.commission_schema_id,
            min_price=Decimal(str(policy.min_price)),
            max_price=Decimal(str(policy.max_price)),
            policy_type=policy.policy_type,
            commission=Decimal(str(policy.commission)),
            position=position,
        ))
    await db.flush()

    added = len(catalog.schemas) + len(catalog.policies)
    logger.info(f"Seeded catalog with {len(catalog.schemas)} schemas and {len(catalog.policies)} policies")
    return added


async def refresh_default_catalog(db: AsyncSession, year: Optional[int] = None) -> int:
    """
    Move expired built-in schemas to the given year.

    Only rows still carrying a built-in id and name ("Standard Schema 2026")
    are touched; renamed or custom schemas are left alone. Commit should
    happen in the calling context.

    Args:
        year: Target year, defaults to the current UTC year

    Returns:
        Number of schemas moved
    """
    if year is None:
        year = utc_now().year
    starts = date(year, 1, 1)
    prefixes = {schema_id: name for schema_id, name, _ in DEFAULT_SCHEMAS}

    result = await db.execute(
        select(CommissionSchemaRecord).where(
            CommissionSchemaRecord.id.in_(list(prefixes)),
            CommissionSchemaRecord.effective_to < starts,
        )
    )

    refreshed = 0
    for record in result.scalars().all():
        prefix = prefixes[record.id]
        if not record.name.startswith(f"{prefix} "):
            continue
        record.name = f"{prefix} {year}"
        record.effective_from = starts
        record.effective_to = date(year, 12, 31)
        refreshed += 1

    if refreshed:
        await db.flush()
        logger.info(f"Moved {refreshed} built-in schemas to {year}")
    return refreshed


async def prepare_catalog(
    db: AsyncSession,
    catalog_file: Optional[Union[str, Path]] = None,
    seed_default: bool = True,
    strict: bool = False,
    year: Optional[int] = None,
) -> int:
    """
    Startup step: seed empty catalog tables and keep the built-in one current.

    A catalog file takes precedence over the built-in catalog. Without a
    file, built-in schemas whose year has ended are moved to `year`.

    Returns:
        Number of rows added or moved
    """
    if catalog_file:
        return await seed_catalog(db, load_catalog_file(catalog_file, strict=strict))
    if not seed_default:
        return 0

    added = await seed_catalog(db, default_catalog(year))
    return added + await refresh_default_catalog(db, year)
