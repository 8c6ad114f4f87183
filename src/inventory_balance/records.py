"""
Typed records built from raw mapped rows.

Each source export arrives as loosely-typed rows (dicts or a DataFrame).
transform_records() turns them into MovementEntry / SaleEntry / StockEntry
using a ColumnMapping, defaulting anything missing instead of failing.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterable, Mapping
import pandas as pd

from .config import MovementMapping, SalesMapping, SourceKind, StockMapping
from .parsers import DateParser, normalize_key, to_number

UNNAMED_PRODUCT = "Unnamed product"

# Lowercase substrings that mark a movement as inbound ("entrada", "inbound")
DEFAULT_INBOUND_KEYWORDS = ("ent", "inbound")


class MovementDirection(Enum):
    INBOUND = "inbound"
    OUTBOUND = "outbound"


@dataclass
class MovementEntry:
    product_code: str
    product_name: str
    location: str
    movement_date: datetime | None  # None when the raw date did not parse
    direction: MovementDirection
    quantity: float


@dataclass
class SaleEntry:
    product_code: str
    product_name: str
    location: str
    sale_date: datetime | None
    quantity: float
    amount: float


@dataclass
class StockEntry:
    product_code: str
    product_name: str
    location: str
    quantity: float
    unit_value: float
    total_value: float


Entry = MovementEntry | SaleEntry | StockEntry


def _product_name(value: Any) -> str:
    if value is None:
        return UNNAMED_PRODUCT
    try:
        if pd.isna(value):
            return UNNAMED_PRODUCT
    except (TypeError, ValueError):
        pass
    text = str(value)
    return text if text else UNNAMED_PRODUCT


def parse_direction(
    value: Any, inbound_keywords: Iterable[str] = DEFAULT_INBOUND_KEYWORDS
) -> MovementDirection:
    """Classify a free-text movement type as inbound or outbound."""
    text = "" if value is None else str(value).lower()
    if any(keyword.lower() in text for keyword in inbound_keywords):
        return MovementDirection.INBOUND
    return MovementDirection.OUTBOUND


def iter_rows(rows: pd.DataFrame | Iterable[Mapping[str, Any]]) -> Iterable[Mapping[str, Any]]:
    """Yield raw rows as mappings whether given a DataFrame or a list of dicts."""
    if isinstance(rows, pd.DataFrame):
        return rows.to_dict(orient="records")
    return rows


class RecordTransformer:
    """
    Converts raw rows into typed entries using a per-source field mapping.

    Reusable: the mapping carries every export-specific column name, so the
    same transformer serves any spreadsheet layout.
    """

    def __init__(
        self,
        date_parser: DateParser | None = None,
        inbound_keywords: Iterable[str] = DEFAULT_INBOUND_KEYWORDS,
    ):
        self.date_parser = date_parser or DateParser()
        self.inbound_keywords = tuple(inbound_keywords)

    @staticmethod
    def _getter(row: Mapping[str, Any], mapping) -> Callable[[str], Any]:
        def get(field: str) -> Any:
            column = getattr(mapping, field)
            if column is None:
                return None
            return row.get(column)

        return get

    def movement(self, row: Mapping[str, Any], mapping: MovementMapping) -> MovementEntry:
        get = self._getter(row, mapping)
        return MovementEntry(
            product_code=normalize_key(get("code")),
            product_name=_product_name(get("name")),
            location=normalize_key(get("location")),
            movement_date=self.date_parser.parse(get("date")),
            direction=parse_direction(get("direction"), self.inbound_keywords),
            quantity=to_number(get("quantity")),
        )

    def sale(self, row: Mapping[str, Any], mapping: SalesMapping) -> SaleEntry:
        get = self._getter(row, mapping)
        return SaleEntry(
            product_code=normalize_key(get("code")),
            product_name=_product_name(get("name")),
            location=normalize_key(get("location")),
            sale_date=self.date_parser.parse(get("date")),
            quantity=to_number(get("quantity")),
            amount=to_number(get("amount")),
        )

    def stock(self, row: Mapping[str, Any], mapping: StockMapping) -> StockEntry:
        get = self._getter(row, mapping)
        return StockEntry(
            product_code=normalize_key(get("code")),
            product_name=_product_name(get("name")),
            location=normalize_key(get("location")),
            quantity=to_number(get("quantity")),
            unit_value=to_number(get("unit_value")),
            total_value=to_number(get("total_value")),
        )

    def transform(
        self,
        rows: pd.DataFrame | Iterable[Mapping[str, Any]],
        mapping: MovementMapping | SalesMapping | StockMapping,
        kind: SourceKind,
    ) -> list[Entry]:
        converters = {
            "movements": self.movement,
            "sales": self.sale,
            "stock": self.stock,
        }
        if kind not in converters:
            raise ValueError(f"Unknown source kind: {kind!r}")
        convert = converters[kind]
        return [convert(row, mapping) for row in iter_rows(rows)]


def transform_records(
    rows: pd.DataFrame | Iterable[Mapping[str, Any]],
    mapping: MovementMapping | SalesMapping | StockMapping,
    kind: SourceKind,
    transformer: RecordTransformer | None = None,
) -> list[Entry]:
    """Convert raw rows of one source kind into typed entries, in input order."""
    return (transformer or RecordTransformer()).transform(rows, mapping, kind)
