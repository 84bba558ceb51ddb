"""
Database models for the commission service.

All models are exported here for convenient imports:
    from src.models import CommissionSchemaRecord, AgentWallet, etc.
"""

from src.models.base import Base, TimestampMixin
from src.models.commission import CommissionPolicyRecord, CommissionSchemaRecord
from src.models.ledger import AgentWallet, DealTransaction

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Catalog
    "CommissionSchemaRecord",
    "CommissionPolicyRecord",
    # Ledger
    "DealTransaction",
    "AgentWallet",
]
