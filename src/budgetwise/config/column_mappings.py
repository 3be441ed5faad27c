"""Loading declared CSV column mappings from YAML."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]

from budgetwise.config.settings import get_settings
from budgetwise.errors import NotFoundError

LOGICAL_FIELDS = ("date", "description", "category", "account", "amount")
DEFAULT_MAPPINGS_PATH = Path(__file__).resolve().parent / "column_mappings.yaml"


@dataclass(frozen=True)
class ColumnMapping:
    """Maps logical transaction fields to the header names a CSV may use."""

    name: str
    columns: dict[str, tuple[str, ...]]
    required: tuple[str, ...]
    cost_headers: tuple[str, ...] = ()
    default_category: str = "Other"
    date_formats: tuple[str, ...] = ()
    description: str = ""

    def resolve(self, fieldnames: list[str] | None) -> tuple[dict[str, str], list[str]]:
        """Match logical fields to actual headers.

        Returns:
            ``(matched, missing)``: logical field to header name, and the
            required fields that no header satisfied.
        """
        by_folded = {
            name.lstrip("\ufeff").strip().casefold(): name for name in fieldnames or []
        }
        matched: dict[str, str] = {}
        for logical, aliases in self.columns.items():
            for alias in aliases:
                header = by_folded.get(alias.casefold())
                if header is not None:
                    matched[logical] = header
                    break
        missing = [f for f in self.required if f not in matched]
        return matched, missing

    def is_cost_header(self, header: str) -> bool:
        folded = header.lstrip("\ufeff").strip().casefold()
        return any(folded == h.casefold() for h in self.cost_headers)

    def required_headers(self) -> list[str]:
        """Display names for the required columns (first alias of each)."""
        return [" or ".join(self.columns[f]) for f in self.required]


def _string_tuple(value: Any, where: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{where} must be a string or a list of strings")
    return tuple(value)


def _parse_mapping(name: str, raw: Any, source: str) -> ColumnMapping:
    if not isinstance(raw, dict):
        raise ValueError(f"{source}: mapping {name!r} must be a mapping")

    raw_columns = raw.get("columns")
    if not isinstance(raw_columns, dict) or not raw_columns:
        raise ValueError(f"{source}: {name}.columns must be a non-empty mapping")

    columns: dict[str, tuple[str, ...]] = {}
    for logical, headers in raw_columns.items():
        if logical not in LOGICAL_FIELDS:
            raise ValueError(f"{source}: {name}.columns has unknown field {logical!r}")
        columns[logical] = _string_tuple(headers, f"{source}: {name}.columns.{logical}")

    required = _string_tuple(raw.get("required", list(columns)), f"{source}: {name}.required")
    for logical in required:
        if logical not in columns:
            raise ValueError(f"{source}: {name}.required names unmapped field {logical!r}")
    for logical in ("date", "amount"):
        if logical not in required:
            raise ValueError(f"{source}: {name} must require {logical!r}")

    return ColumnMapping(
        name=name,
        columns=columns,
        required=required,
        cost_headers=_string_tuple(raw.get("cost_headers", []), f"{source}: {name}.cost_headers"),
        default_category=str(raw.get("default_category", "Other")),
        date_formats=_string_tuple(raw.get("date_formats", []), f"{source}: {name}.date_formats"),
        description=str(raw.get("description", "")),
    )


def load_column_mappings_from(path: Path) -> dict[str, ColumnMapping]:
    """Parse every mapping in a YAML file."""
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: top level must be a mapping of mapping names")
    return {name: _parse_mapping(name, raw, path.name) for name, raw in data.items()}


@lru_cache
def load_column_mappings() -> dict[str, ColumnMapping]:
    """Load the bundled mappings, overlaid with ``CSV_MAPPINGS_PATH`` when set."""
    mappings = load_column_mappings_from(DEFAULT_MAPPINGS_PATH)
    override = get_settings().csv_mappings_path
    if override:
        mappings.update(load_column_mappings_from(Path(override)))
    return mappings


def get_column_mapping(name: str) -> ColumnMapping:
    mappings = load_column_mappings()
    if name not in mappings:
        raise NotFoundError("column mapping", name)
    return mappings[name]
