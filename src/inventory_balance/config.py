"""
Configuration models for a reconciliation run.

Column mappings say which raw column feeds each semantic field; the
analysis config carries the thresholds behind status and ideal stock.
"""

from typing import ClassVar, Literal
from pydantic import BaseModel, ConfigDict, Field

from . import settings
from .parsers import normalize_key

SourceKind = Literal["movements", "sales", "stock"]


class AnalysisConfig(BaseModel):
    """Thresholds used by the unification engine and status classifier."""

    model_config = ConfigDict(frozen=True)

    ideal_stock_factor: float = Field(
        default=3, gt=0, description="Months of average sales to keep on hand"
    )
    dead_stock_days: int = Field(
        default=90, ge=0, description="Days without a sale before stock is dead"
    )
    sales_window_days: int = Field(
        default=90, gt=0, description="Sales lookback; the 90-day bucket drives averages"
    )

    @classmethod
    def from_settings(cls) -> "AnalysisConfig":
        return cls(
            ideal_stock_factor=settings.IDEAL_STOCK_FACTOR,
            dead_stock_days=settings.DEAD_STOCK_DAYS,
            sales_window_days=settings.SALES_WINDOW_DAYS,
        )


class MovementMapping(BaseModel):
    """Raw column names for the stock-movement (kardex) export."""

    code: str | None = None
    name: str | None = None
    location: str | None = None
    date: str | None = None
    quantity: str | None = None
    direction: str | None = None

    REQUIRED: ClassVar[tuple[str, ...]] = ("code", "name", "date", "quantity")


class SalesMapping(BaseModel):
    """Raw column names for the sales export."""

    code: str | None = None
    name: str | None = None
    location: str | None = None
    date: str | None = None
    quantity: str | None = None
    amount: str | None = None

    REQUIRED: ClassVar[tuple[str, ...]] = ("code", "name", "date", "quantity")


class StockMapping(BaseModel):
    """Raw column names for the stock-on-hand export."""

    code: str | None = None
    name: str | None = None
    location: str | None = None
    quantity: str | None = None
    unit_value: str | None = None
    total_value: str | None = None

    REQUIRED: ClassVar[tuple[str, ...]] = ("code", "name", "quantity")


class ColumnMapping(BaseModel):
    """Field mappings for all three sources plus the location switch."""

    movements: MovementMapping = Field(default_factory=MovementMapping)
    sales: SalesMapping = Field(default_factory=SalesMapping)
    stock: StockMapping = Field(default_factory=StockMapping)
    ignore_location: bool = False

    def for_kind(self, kind: SourceKind) -> MovementMapping | SalesMapping | StockMapping:
        return getattr(self, kind)

    def required_fields(self, kind: SourceKind) -> list[str]:
        required = list(self.for_kind(kind).REQUIRED)
        if not self.ignore_location:
            required.append("location")
        return required


class LocationTypeRules(BaseModel):
    """
    Keyword lookup that decides whether a location is a warehouse or a store.

    A location whose normalized name contains any keyword is a warehouse;
    everything else is a point of sale. Swap the keywords to localize.
    """

    warehouse_keywords: tuple[str, ...] = (
        "DEPOSITO",
        "BODEGA",
        "CENTRAL",
        "ALMACEN",
        "WAREHOUSE",
        "DEPOT",
        "DC",
        "DISTRIBUTION",
    )

    def location_type(self, location: str | None) -> Literal["WAREHOUSE", "STORE"]:
        if not location:
            return "STORE"
        name = str(location).upper()
        for keyword in self.warehouse_keywords:
            if keyword.upper() in name:
                return "WAREHOUSE"
        return "STORE"


class BrandRules(BaseModel):
    """
    Code-prefix table used to attach a brand to each product.

    Prefixes go through the key normalizer, so "BR-" matches the
    normalized code "BR123".
    """

    prefixes: dict[str, str] = Field(default_factory=dict)
    unknown_brand: str = "Other"

    def resolve(self, product_code: str | None) -> str:
        if not product_code:
            return self.unknown_brand
        code = normalize_key(product_code)
        # Longest prefix first so "MIC" beats "M"
        for prefix in sorted(self.prefixes, key=len, reverse=True):
            if code.startswith(normalize_key(prefix)):
                return self.prefixes[prefix]
        return self.unknown_brand
