"""
Cross-location inventory analysis.

Computes, from the unified report items:
- Per-product consolidation across locations with a procurement tier
- Planning figures (ideal vs current value, dead capital, turnover)
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Sequence
import logging
import numpy as np
import pandas as pd

from .config import AnalysisConfig, LocationTypeRules
from .reconciliation import StockStatus, UnifiedReportItem

logger = logging.getLogger(__name__)

URGENT_COVERAGE_MONTHS = 0.5
UPCOMING_COVERAGE_MONTHS = 1.5
ORDER_HORIZON_MONTHS = 3


class Tier(Enum):
    """Procurement priority of a consolidated product, most urgent first."""

    URGENT_IMPORT = "urgent_import"
    UPCOMING_REPLENISHMENT = "upcoming_replenishment"
    HEALTHY = "healthy"

    @property
    def rank(self) -> int:
        return list(Tier).index(self)


@dataclass
class LocationStock:
    """One location's contribution to a consolidated product."""

    name: str
    location_type: str  # "WAREHOUSE" or "STORE"
    stock: float
    status: str


@dataclass
class ConsolidatedProduct:
    """A product rolled up across every location that stocks it."""

    product_code: str
    product_name: str
    brand: str
    total_stock: float
    warehouse_stock: float
    store_stock: float
    avg_monthly_sales: float
    sales_3m: float
    sales_12m: float
    coverage_months: float
    immobilized_value: float
    avg_days_in_stock: float
    tier: Tier
    suggested_order_qty: int
    locations: list[LocationStock] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["tier"] = self.tier.value
        return data


def tier_for_coverage(coverage_months: float) -> Tier:
    if coverage_months < URGENT_COVERAGE_MONTHS:
        return Tier.URGENT_IMPORT
    if coverage_months < UPCOMING_COVERAGE_MONTHS:
        return Tier.UPCOMING_REPLENISHMENT
    return Tier.HEALTHY


def consolidate(
    items: Sequence[UnifiedReportItem],
    location_rules: LocationTypeRules | None = None,
) -> list[ConsolidatedProduct]:
    """
    Roll report items up per product code across all locations.

    Average monthly sales are summed across locations rather than
    re-derived from pooled sales. Coverage is 0 when there are no sales.

    Returns products sorted by tier (urgent first), then by immobilized
    value descending; ties keep the order products first appear in.
    """
    if not items:
        return []

    rules = location_rules or LocationTypeRules()

    df = pd.DataFrame(
        [
            {
                "product_code": item.product_code,
                "product_name": item.product_name,
                "brand": item.brand,
                "location_type": rules.location_type(item.location),
                "stock": item.stock,
                "avg_monthly_sales": item.avg_monthly_sales,
                "projected_consumption_3m": item.projected_consumption_3m,
                "total_value": item.total_value,
                "days_in_stock": item.days_in_stock,
            }
            for item in items
        ]
    )
    df["warehouse_stock"] = np.where(df["location_type"] == "WAREHOUSE", df["stock"], 0)
    df["store_stock"] = np.where(df["location_type"] == "STORE", df["stock"], 0)
    df["position"] = np.arange(len(df))

    grouped = (
        df.groupby("product_code", sort=False)
        .agg(
            product_name=("product_name", "first"),
            brand=("brand", "first"),
            total_stock=("stock", "sum"),
            warehouse_stock=("warehouse_stock", "sum"),
            store_stock=("store_stock", "sum"),
            avg_monthly_sales=("avg_monthly_sales", "sum"),
            sales_3m=("projected_consumption_3m", "sum"),
            immobilized_value=("total_value", "sum"),
            avg_days_in_stock=("days_in_stock", "mean"),
            first_seen=("position", "min"),
        )
        .reset_index()
    )

    # Avoid division by zero: products without sales get 0 coverage
    has_sales = grouped["avg_monthly_sales"] > 0
    grouped["coverage_months"] = (
        grouped["total_stock"] / grouped["avg_monthly_sales"].where(has_sales, 1)
    ).where(has_sales, 0.0)
    grouped["sales_12m"] = grouped["avg_monthly_sales"] * 12
    grouped["suggested_order_qty"] = np.maximum(
        0,
        np.ceil(grouped["avg_monthly_sales"] * ORDER_HORIZON_MONTHS - grouped["total_stock"]),
    )
    grouped["tier"] = grouped["coverage_months"].apply(tier_for_coverage)
    grouped["tier_rank"] = grouped["tier"].apply(lambda t: t.rank)

    grouped = grouped.sort_values(
        ["tier_rank", "immobilized_value", "first_seen"],
        ascending=[True, False, True],
    )

    locations: dict[str, list[LocationStock]] = {}
    for item in items:
        locations.setdefault(item.product_code, []).append(
            LocationStock(
                name=item.location,
                location_type=rules.location_type(item.location),
                stock=item.stock,
                status=item.status.value,
            )
        )

    consolidated = [
        ConsolidatedProduct(
            product_code=row.product_code,
            product_name=row.product_name,
            brand=row.brand,
            total_stock=float(row.total_stock),
            warehouse_stock=float(row.warehouse_stock),
            store_stock=float(row.store_stock),
            avg_monthly_sales=float(row.avg_monthly_sales),
            sales_3m=float(row.sales_3m),
            sales_12m=float(row.sales_12m),
            coverage_months=float(row.coverage_months),
            immobilized_value=float(row.immobilized_value),
            avg_days_in_stock=float(row.avg_days_in_stock),
            tier=row.tier,
            suggested_order_qty=int(row.suggested_order_qty),
            locations=locations[row.product_code],
        )
        for row in grouped.itertuples(index=False)
    ]

    logger.info(
        "Consolidated %d items into %d products (%d urgent)",
        len(items),
        len(consolidated),
        sum(1 for p in consolidated if p.tier == Tier.URGENT_IMPORT),
    )
    return consolidated


def filter_consolidated(
    products: Sequence[ConsolidatedProduct],
    search: str | None = None,
    tier: Tier | None = None,
) -> list[ConsolidatedProduct]:
    """Case-insensitive search over code, name and brand, plus an optional tier."""
    needle = (search or "").lower()

    def matches(p: ConsolidatedProduct) -> bool:
        if tier is not None and p.tier != tier:
            return False
        if not needle:
            return True
        return (
            needle in p.product_code.lower()
            or needle in p.product_name.lower()
            or needle in p.brand.lower()
        )

    return [p for p in products if matches(p)]


def consolidated_to_frame(products: Sequence[ConsolidatedProduct]) -> pd.DataFrame:
    """Flat table of consolidated products (locations omitted) for export layers."""
    rows = []
    for p in products:
        row = p.to_dict()
        row.pop("locations")
        row["location_count"] = len(p.locations)
        rows.append(row)
    return pd.DataFrame(rows)


@dataclass
class PlanningSummary:
    """Headline planning figures over all report items."""

    ideal_value: float
    current_value: float
    value_gap: float
    at_risk_count: int
    dead_stock_value: float
    avg_days_in_stock: float
    turnover_rate: float
    status_counts: dict[str, int]
    top_items: list[UnifiedReportItem]

    def summary(self) -> dict:
        data = asdict(self)
        data["top_items"] = [
            {"key": i.key, "product_name": i.product_name, "total_value": i.total_value}
            for i in self.top_items
        ]
        return data


def compute_planning_summary(
    items: Sequence[UnifiedReportItem],
    config: AnalysisConfig | None = None,
    top_n: int = 5,
) -> PlanningSummary:
    """
    Compute the planning view figures.

    - ideal_value: sum of ideal stock x unit value
    - at_risk_count: items whose stock will not cover 3 months of sales
    - dead_stock_value: value of items unsold beyond the dead-stock threshold
    - turnover_rate: monthly units sold per daily unit of stock value, in %;
      0 when there is no stock value
    """
    config = config or AnalysisConfig()

    ideal_value = sum(i.ideal_stock * i.unit_value for i in items)
    current_value = sum(i.total_value for i in items)
    monthly_sales = sum(i.avg_monthly_sales for i in items)

    turnover_rate = 0.0
    if items and current_value > 0:
        turnover_rate = monthly_sales / (current_value / 30) * 100

    return PlanningSummary(
        ideal_value=ideal_value,
        current_value=current_value,
        value_gap=current_value - ideal_value,
        at_risk_count=sum(1 for i in items if i.stock < i.projected_consumption_3m),
        dead_stock_value=sum(
            i.total_value for i in items if i.days_since_last_sale > config.dead_stock_days
        ),
        avg_days_in_stock=(
            sum(i.days_in_stock for i in items) / len(items) if items else 0
        ),
        turnover_rate=turnover_rate,
        status_counts={
            status.value: sum(1 for i in items if i.status == status) for status in StockStatus
        },
        top_items=sorted(items, key=lambda i: i.total_value, reverse=True)[:top_n],
    )
