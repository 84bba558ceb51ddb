"""Business logic services."""

from src.services.catalog import (
    CatalogError,
    CommissionCatalog,
    default_catalog,
    load_catalog,
    load_catalog_file,
    prepare_catalog,
    refresh_default_catalog,
    seed_catalog,
)
from src.services.commission import CommissionEngine, calculate_commission

__all__ = [
    "CatalogError",
    "CommissionCatalog",
    "CommissionEngine",
    "calculate_commission",
    "default_catalog",
    "load_catalog",
    "load_catalog_file",
    "prepare_catalog",
    "refresh_default_catalog",
    "seed_catalog",
]
