"""
Unification engine: joins stock, sales and movements into one report.

Stock is the base dataset. Every stock row seeds a report item under its
identity key; sales and movements only enrich items that already exist,
and the connection diagnostic counts how well the datasets line up.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Sequence
import logging
import math
import pandas as pd

from .config import AnalysisConfig, BrandRules
from .parsers import KeyNormalizer, naive_datetime
from .records import MovementEntry, SaleEntry, StockEntry

logger = logging.getLogger(__name__)

GLOBAL_LOCATION = "GLOBAL"
UNKNOWN_BRAND = "N/A"
NEVER_SOLD_DAYS = 999
SALES_BUCKETS = (30, 60, 90)

OVERSTOCK_RATIO = 1.5
LOW_STOCK_RATIO = 0.5


class StockStatus(Enum):
    """Health of one product at one location."""

    OK = "OK"
    LOW = "LOW"
    OVERSTOCK = "OVERSTOCK"
    DEAD = "DEAD"


@dataclass
class UnifiedReportItem:
    """One product at one location (or GLOBAL), enriched with sales and movements."""

    key: str
    product_code: str
    product_name: str
    brand: str
    location: str
    stock: float
    unit_value: float
    total_value: float
    sales_30d: float = 0
    sales_60d: float = 0
    sales_90d: float = 0
    avg_monthly_sales: float = 0
    last_sale_date: datetime | None = None
    days_since_last_sale: int = NEVER_SOLD_DAYS
    last_movement_date: datetime | None = None
    days_in_stock: int = 0
    ideal_stock: int = 1
    projected_consumption_3m: float = 0
    status: StockStatus = StockStatus.OK

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass
class ConnectionDiagnostic:
    """How well the stock and sales datasets join on identity keys."""

    both_present: int = 0
    stock_only: int = 0
    sales_only: int = 0
    undated_sales: int = 0
    undated_movements: int = 0

    @property
    def is_valid(self) -> bool:
        return self.both_present > 0

    @property
    def match_rate(self) -> float:
        total = self.both_present + self.stock_only
        if total == 0:
            return 0
        return self.both_present / total

    def summary(self) -> dict:
        return {
            "both_present": self.both_present,
            "stock_only": self.stock_only,
            "sales_only": self.sales_only,
            "undated_sales": self.undated_sales,
            "undated_movements": self.undated_movements,
            "match_rate": f"{self.match_rate:.1%}",
            "is_valid": self.is_valid,
        }


@dataclass
class ReconciliationResult:
    """Report items plus the diagnostic from one unification run."""

    items: list[UnifiedReportItem] = field(default_factory=list)
    diagnostics: ConnectionDiagnostic = field(default_factory=ConnectionDiagnostic)
    as_of: datetime | None = None

    def to_frame(self) -> pd.DataFrame:
        """Report items as a DataFrame for presentation/export layers."""
        return pd.DataFrame([item.to_dict() for item in self.items])

    def by_status(self, status: StockStatus) -> list[UnifiedReportItem]:
        return [i for i in self.items if i.status == status]


def days_between(earlier: datetime | None, later: datetime) -> int:
    """
    Whole days between two instants, rounded up, ignoring direction.

    An unparsed (None) date counts as 0 days, i.e. as if it happened at
    `later`. This can understate staleness; callers count such entries.
    """
    if earlier is None:
        return 0
    seconds = abs((later - earlier).total_seconds())
    return math.ceil(seconds / 86400)


def classify_status(
    days_since_last_sale: int,
    stock: float,
    ideal_stock: float,
    dead_stock_days: int,
) -> StockStatus:
    """
    Status of one item; the first matching rule wins.

    1. DEAD: no sale for more than `dead_stock_days` and stock on hand
    2. OVERSTOCK: stock above 1.5x ideal
    3. LOW: stock below 0.5x ideal
    4. OK
    """
    if days_since_last_sale > dead_stock_days and stock > 0:
        return StockStatus.DEAD
    if stock > ideal_stock * OVERSTOCK_RATIO:
        return StockStatus.OVERSTOCK
    if stock < ideal_stock * LOW_STOCK_RATIO:
        return StockStatus.LOW
    return StockStatus.OK


def classify_item(item: UnifiedReportItem, config: AnalysisConfig) -> StockStatus:
    return classify_status(
        item.days_since_last_sale, item.stock, item.ideal_stock, config.dead_stock_days
    )


def unify(
    movements: Sequence[MovementEntry],
    sales: Sequence[SaleEntry],
    stock: Sequence[StockEntry],
    config: AnalysisConfig | None = None,
    ignore_location: bool = False,
    as_of: datetime | None = None,
    brand_rules: BrandRules | None = None,
) -> ReconciliationResult:
    """
    Join the three datasets into per-(product, location) report items.

    Args:
        ignore_location: Key on product code alone; every item reports GLOBAL.
        as_of: The "now" used for every day computation in this run.
            Read from the clock once when omitted.
        brand_rules: Optional code-prefix table; brand is "N/A" without one.
    """
    config = config or AnalysisConfig()
    as_of = naive_datetime(as_of) if as_of is not None else datetime.now()
    keys = KeyNormalizer(ignore_location=ignore_location)

    stock_keys = {keys.key(s.product_code, s.location) for s in stock}
    sales_keys = {keys.key(v.product_code, v.location) for v in sales}

    # 1. Seed from stock; a repeated key overwrites the earlier row
    report: dict[str, UnifiedReportItem] = {}
    for s in stock:
        key = keys.key(s.product_code, s.location)
        report[key] = UnifiedReportItem(
            key=key,
            product_code=s.product_code,
            product_name=s.product_name,
            brand=brand_rules.resolve(s.product_code) if brand_rules else UNKNOWN_BRAND,
            location=GLOBAL_LOCATION if ignore_location else s.location,
            stock=s.quantity,
            unit_value=s.unit_value,
            total_value=s.total_value,
        )

    diagnostics = ConnectionDiagnostic(
        both_present=len(stock_keys & sales_keys),
        stock_only=len(stock_keys - sales_keys),
        sales_only=len(sales_keys - stock_keys),
    )

    # 2. Sales buckets and most recent sale; undated sales act as "today"
    latest_sale: dict[str, datetime] = {}
    for v in sales:
        item = report.get(keys.key(v.product_code, v.location))
        if item is None:
            continue
        if v.sale_date is None:
            diagnostics.undated_sales += 1
        days_ago = days_between(v.sale_date, as_of)
        for window in SALES_BUCKETS:
            if days_ago <= window:
                setattr(item, f"sales_{window}d", getattr(item, f"sales_{window}d") + v.quantity)

        effective = v.sale_date or as_of
        if item.key not in latest_sale or effective > latest_sale[item.key]:
            latest_sale[item.key] = effective
            item.last_sale_date = v.sale_date
            item.days_since_last_sale = days_ago

    # 3. Most recent movement
    latest_movement: dict[str, datetime] = {}
    for k in movements:
        item = report.get(keys.key(k.product_code, k.location))
        if item is None:
            continue
        if k.movement_date is None:
            diagnostics.undated_movements += 1
        effective = k.movement_date or as_of
        if item.key not in latest_movement or effective > latest_movement[item.key]:
            latest_movement[item.key] = effective
            item.last_movement_date = k.movement_date
            item.days_in_stock = days_between(k.movement_date, as_of)

    # 4. Derived figures and status
    for item in report.values():
        item.avg_monthly_sales = item.sales_90d / 3
        item.ideal_stock = max(1, math.ceil(item.avg_monthly_sales * config.ideal_stock_factor))
        item.projected_consumption_3m = item.avg_monthly_sales * 3
        item.status = classify_item(item, config)

    if diagnostics.undated_sales or diagnostics.undated_movements:
        logger.warning(
            "%d sales and %d movements had unparseable dates and were treated as dated today",
            diagnostics.undated_sales,
            diagnostics.undated_movements,
        )
    if stock and not diagnostics.is_valid:
        logger.warning("No identity key is present in both stock and sales")

    logger.info(
        "Unified %d stock rows into %d items (%s)",
        len(stock),
        len(report),
        diagnostics.summary()["match_rate"],
    )

    return ReconciliationResult(
        items=list(report.values()), diagnostics=diagnostics, as_of=as_of
    )
