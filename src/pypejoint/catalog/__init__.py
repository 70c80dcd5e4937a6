"""
Joint Catalog Module

Loads joint-type hole geometry from YAML catalog files.
"""

from .catalog_loader import DEFAULT_CATALOG_PATH, JointCatalog, load_default_catalog
from .config_schema import (
    HoleConfig,
    JointCatalogConfig,
    JointCategoryConfig,
    JointTypeConfig,
    PipeColorConfig,
    PipeStockConfig,
)

__all__ = [
    "DEFAULT_CATALOG_PATH",
    "JointCatalog",
    "load_default_catalog",
    # Configuration schema
    "HoleConfig",
    "JointCatalogConfig",
    "JointCategoryConfig",
    "JointTypeConfig",
    "PipeColorConfig",
    "PipeStockConfig",
]
