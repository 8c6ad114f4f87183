"""
AI-assisted insight generation using structured outputs.

The numbers are computed here; the LLM only interprets a read-only summary
of the report and returns a Pydantic-validated set of recommendations.
"""

from dataclasses import dataclass, field
from typing import Literal, Sequence
import json
import logging
from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field

from . import settings
from .reconciliation import StockStatus, UnifiedReportItem

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 8
FALLBACK_MESSAGE = "Insights are not available right now."


@dataclass(frozen=True)
class InsightSummary:
    """Read-only figures handed to the insight collaborator."""

    total_items: int
    overstock_items: int
    low_stock_items: int
    dead_stock_items: int
    dead_stock_value: float
    problem_samples: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict:
        return {
            "total_items": self.total_items,
            "overstock_items": self.overstock_items,
            "low_stock_items": self.low_stock_items,
            "dead_stock_items": self.dead_stock_items,
            "dead_stock_value": self.dead_stock_value,
            "problem_samples": list(self.problem_samples),
        }


def build_insight_summary(items: Sequence[UnifiedReportItem]) -> InsightSummary:
    """Count statuses and sample the first problematic items."""
    dead = [i for i in items if i.status == StockStatus.DEAD]
    samples = tuple(
        f"{i.product_name} ({i.location}): status {i.status.value}, "
        f"stock {i.stock:g}, ideal {i.ideal_stock}"
        for i in items
        if i.status != StockStatus.OK
    )[:SAMPLE_SIZE]

    return InsightSummary(
        total_items=len(items),
        overstock_items=sum(1 for i in items if i.status == StockStatus.OVERSTOCK),
        low_stock_items=sum(1 for i in items if i.status == StockStatus.LOW),
        dead_stock_items=len(dead),
        dead_stock_value=sum(i.total_value for i in dead),
        problem_samples=samples,
    )


class Campaign(BaseModel):
    """A commercial action to move dead stock."""

    title: str
    target: str = Field(description="Products, brands or locations the campaign targets")
    action: str = Field(description="What to do, concretely")


class TransferOpportunity(BaseModel):
    """A location-balancing move suggested by the model."""

    product: str
    from_location: str
    to_location: str
    rationale: str


class InventoryInsightReport(BaseModel):
    """Complete AI-generated inventory commentary."""

    executive_summary: str = Field(
        description="2-3 sentence summary for a buyer who won't read details"
    )
    campaigns: list[Campaign] = Field(description="Up to 3 campaigns for dead stock")
    transfer_opportunities: list[TransferOpportunity]
    pricing_policy: str = Field(description="Discount or bundle policy if patterns exist")
    outlook: str = Field(description="Short forecast based on the imbalances")
    priority: Literal["critical", "high", "medium", "low"]


class InsightGenerator:
    """
    Generates insights using an LLM with structured output.

    What to trust vs verify:
    - TRUST: Pattern synthesis, natural language generation
    - VERIFY: Specific numbers (always taken from InsightSummary)
    """

    def __init__(self, model: str | None = None, client: OpenAI | None = None):
        self.client = client or OpenAI()
        self.model = model or settings.INSIGHTS_MODEL

    def generate_insights(self, summary: InsightSummary) -> InventoryInsightReport | str:
        """
        Generate a structured report from the summary.

        Returns FALLBACK_MESSAGE when the API call fails; the analysis
        itself never depends on this step.
        """
        try:
            response = self.client.beta.chat.completions.parse(
                model=self.model,
                messages=[
                    {
                        "role": "system",
                        "content": """You are a retail inventory analyst advising a multi-location business.

Your job is to:
1. Interpret the pre-computed figures
2. Propose specific, actionable campaigns and transfers
3. Write clearly for a non-technical audience

Use the exact numbers provided.""",
                    },
                    {"role": "user", "content": self._build_prompt(summary)},
                ],
                response_format=InventoryInsightReport,
            )
        except OpenAIError as e:
            logger.error("Insight generation failed: %s", e)
            return FALLBACK_MESSAGE

        return response.choices[0].message.parsed

    def _build_prompt(self, summary: InsightSummary) -> str:
        """Build the prompt with the pre-computed summary."""
        samples = "\n".join(f"- {s}" for s in summary.problem_samples) or "- none"
        return f"""Analyze this inventory summary.

## Key Figures (pre-computed, use these exact numbers)
{json.dumps({k: v for k, v in summary.to_dict().items() if k != "problem_samples"}, indent=2)}

## Examples of Problem Items
{samples}

Tasks:
1. Suggest 3 specific commercial campaigns to move dead stock.
2. Identify transfer opportunities between locations (one overstocked, another short).
3. Recommend a discount or bundle policy for specific brands if there are patterns.
4. Give a brief outlook based on these imbalances."""
