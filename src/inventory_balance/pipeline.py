"""
End-to-end analysis run over the three raw datasets.

Transform -> diagnose -> unify -> consolidate / recommend / plan, all
against a single as-of instant. Every call builds fresh results.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping
import logging
import pandas as pd

from . import settings
from .analysis import ConsolidatedProduct, PlanningSummary, compute_planning_summary, consolidate
from .config import AnalysisConfig, BrandRules, ColumnMapping, LocationTypeRules
from .quality import FileDiagnostic, diagnose_file
from .reconciliation import ConnectionDiagnostic, UnifiedReportItem, unify
from .records import RecordTransformer
from .transfers import TransferRecommendation, recommend_transfers

logger = logging.getLogger(__name__)

Rows = pd.DataFrame | Iterable[Mapping[str, Any]]


@dataclass
class AnalysisResult:
    """Everything one run produces, for presentation and export layers."""

    as_of: datetime
    file_diagnostics: dict[str, FileDiagnostic]
    items: list[UnifiedReportItem]
    diagnostics: ConnectionDiagnostic
    consolidated: list[ConsolidatedProduct] = field(default_factory=list)
    transfers: list[TransferRecommendation] = field(default_factory=list)
    planning: PlanningSummary | None = None

    @property
    def files_valid(self) -> bool:
        return all(d.is_valid for d in self.file_diagnostics.values())


def _materialize(rows: Rows) -> Rows:
    # Generators would be exhausted by the diagnostics pass
    return rows if isinstance(rows, pd.DataFrame) else list(rows)


def run_analysis(
    raw_movements: Rows,
    raw_sales: Rows,
    raw_stock: Rows,
    mapping: ColumnMapping,
    config: AnalysisConfig | None = None,
    as_of: datetime | None = None,
    min_transfer_quantity: float | None = None,
    location_rules: LocationTypeRules | None = None,
    brand_rules: BrandRules | None = None,
    transformer: RecordTransformer | None = None,
) -> AnalysisResult:
    """
    Run the full reconciliation over raw rows.

    Missing required columns are reported in file_diagnostics but do not
    stop the run; the connection diagnostic shows the effect on matching.
    """
    config = config or AnalysisConfig.from_settings()
    as_of = as_of or datetime.now()
    if min_transfer_quantity is None:
        min_transfer_quantity = settings.TRANSFER_MIN_QUANTITY
    transformer = transformer or RecordTransformer()

    raw = {
        "movements": _materialize(raw_movements),
        "sales": _materialize(raw_sales),
        "stock": _materialize(raw_stock),
    }

    file_diagnostics = {kind: diagnose_file(rows, mapping, kind) for kind, rows in raw.items()}
    for kind, diag in file_diagnostics.items():
        if not diag.is_valid:
            logger.warning("%s file is missing required fields: %s", diag.name, diag.missing_columns)

    entries = {
        kind: transformer.transform(rows, mapping.for_kind(kind), kind)
        for kind, rows in raw.items()
    }

    result = unify(
        entries["movements"],
        entries["sales"],
        entries["stock"],
        config=config,
        ignore_location=mapping.ignore_location,
        as_of=as_of,
        brand_rules=brand_rules,
    )

    return AnalysisResult(
        as_of=result.as_of,
        file_diagnostics=file_diagnostics,
        items=result.items,
        diagnostics=result.diagnostics,
        consolidated=consolidate(result.items, location_rules),
        transfers=recommend_transfers(result.items, min_quantity=min_transfer_quantity),
        planning=compute_planning_summary(result.items, config),
    )
