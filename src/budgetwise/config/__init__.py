"""Configuration module for budgetwise."""

from budgetwise.config.column_mappings import (
    ColumnMapping,
    get_column_mapping,
    load_column_mappings,
)
from budgetwise.config.logging import configure_logging, get_logger
from budgetwise.config.settings import FlatSettings, get_settings

__all__ = [
    "ColumnMapping",
    "FlatSettings",
    "configure_logging",
    "get_column_mapping",
    "get_logger",
    "get_settings",
    "load_column_mappings",
]
