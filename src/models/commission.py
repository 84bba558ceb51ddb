"""
Commission catalog models: schemas and their price-banded policies.
"""

from datetime import date
from decimal import Decimal
from typing import List

from sqlalchemy import Boolean, Date, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin


class CommissionSchemaRecord(Base, TimestampMixin):
    """
    A dated ruleset tying an account type to its commission policies.

    Catalog order is `position`, then `id`. When several active schemas
    cover the same account type and day, the first one in that order wins.
    """

    __tablename__ = "commission_schemas"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    account_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    position: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Catalog order, lower first",
    )

    # Relationships
    policies: Mapped[List["CommissionPolicyRecord"]] = relationship(
        "CommissionPolicyRecord",
        back_populates="schema",
        order_by="CommissionPolicyRecord.position",
    )

    def __repr__(self) -> str:
        return f"<CommissionSchemaRecord(id='{self.id}', account_type='{self.account_type}')>"


class CommissionPolicyRecord(Base, TimestampMixin):
    """
    Commission rate for a price band under a schema.

    Bands are inclusive on both ends.
    """

    __tablename__ = "commission_policies"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    commission_schema_id: Mapped[str] = mapped_column(
        ForeignKey("commission_schemas.id"),
        nullable=False,
        index=True,
    )
    min_price: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    max_price: Mapped[Decimal] = mapped_column(Numeric(16, 2), nullable=False)
    policy_type: Mapped[str] = mapped_column(
        String(20),
        default="quarter",
        nullable=False,
    )
    commission: Mapped[Decimal] = mapped_column(
        Numeric(6, 3),
        nullable=False,
        comment="Percentage, e.g. 2.5 = 2.5%",
    )
    position: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Catalog order, lower first",
    )

    schema: Mapped["CommissionSchemaRecord"] = relationship(
        "CommissionSchemaRecord",
        back_populates="policies",
    )

    def __repr__(self) -> str:
        return (
            f"<CommissionPolicyRecord(id='{self.id}', schema='{self.commission_schema_id}', "
            f"band={self.min_price}-{self.max_price})>"
        )
