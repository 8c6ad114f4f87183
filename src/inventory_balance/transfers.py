"""
Inter-location transfer recommendations.

Pairs an overstocked location with an understocked one for the same
product so surplus can be moved instead of buying more.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Sequence
import logging
import pandas as pd

from .reconciliation import StockStatus, UnifiedReportItem

logger = logging.getLogger(__name__)


class Urgency(Enum):
    CRITICAL = "critical"
    NECESSARY = "necessary"


@dataclass
class TransferRecommendation:
    """Move `quantity` units of a product from one location to another."""

    product_code: str
    product_name: str
    brand: str
    from_location: str
    to_location: str
    quantity: float
    urgency: Urgency
    reason: str
    days_available: int
    surplus: float
    deficit: float

    def to_dict(self) -> dict:
        data = asdict(self)
        data["urgency"] = self.urgency.value
        return data


def _is_short(item: UnifiedReportItem) -> bool:
    return item.status == StockStatus.LOW or item.stock == 0


def _build_recommendation(
    over: UnifiedReportItem, short: UnifiedReportItem, quantity: float, surplus: float, deficit: float
) -> TransferRecommendation:
    # days_in_stock of 0 on the receiver reads as an imminent stockout
    if short.days_in_stock == 0:
        urgency = Urgency.CRITICAL
        reason = (
            f"Imminent stockout: {short.location} is out of stock. "
            f"{over.location} has excess."
        )
    else:
        urgency = Urgency.NECESSARY
        reason = (
            f"Low stock at {short.location} ({short.days_in_stock} days available). "
            f"Surplus at {over.location}."
        )

    return TransferRecommendation(
        product_code=over.product_code,
        product_name=over.product_name,
        brand=over.brand,
        from_location=over.location,
        to_location=short.location,
        quantity=quantity,
        urgency=urgency,
        reason=reason,
        days_available=short.days_in_stock,
        surplus=surplus,
        deficit=deficit,
    )


def recommend_transfers(
    items: Sequence[UnifiedReportItem],
    min_quantity: float = 1,
    brand: str | None = None,
    urgent_only: bool = False,
) -> list[TransferRecommendation]:
    """
    Suggest at most one transfer per product.

    Within each product (in order of first appearance) the first OVERSTOCK
    location sends to the first location that is LOW or empty. The quantity
    is the smaller of the sender's surplus over ideal and the receiver's
    deficit under ideal, and is only suggested when positive and at least
    `min_quantity`.

    Args:
        brand: Only keep products of this brand (case-insensitive).
        urgent_only: Only keep CRITICAL recommendations.
    """
    grouped: dict[str, list[UnifiedReportItem]] = {}
    for item in items:
        grouped.setdefault(item.product_code, []).append(item)

    recommendations = []
    for members in grouped.values():
        over = next((i for i in members if i.status == StockStatus.OVERSTOCK), None)
        short = next((i for i in members if _is_short(i)), None)
        if over is None or short is None or over is short:
            continue

        surplus = over.stock - over.ideal_stock
        deficit = short.ideal_stock - short.stock
        quantity = min(surplus, deficit)
        if quantity <= 0 or quantity < min_quantity:
            continue

        recommendations.append(_build_recommendation(over, short, quantity, surplus, deficit))

    if brand is not None:
        recommendations = [r for r in recommendations if r.brand.lower() == brand.lower()]
    if urgent_only:
        recommendations = [r for r in recommendations if r.urgency == Urgency.CRITICAL]

    logger.info("Generated %d transfer recommendations", len(recommendations))
    return recommendations


def transfers_to_frame(recommendations: Sequence[TransferRecommendation]) -> pd.DataFrame:
    return pd.DataFrame([r.to_dict() for r in recommendations])
