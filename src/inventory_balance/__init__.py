# Reconciliation and balancing of multi-location retail inventory
# Stock, sales and movement exports in; item status, rollups and transfers out

from .parsers import DateParser, KeyNormalizer, normalize_key
from .config import (
    AnalysisConfig,
    BrandRules,
    ColumnMapping,
    LocationTypeRules,
    MovementMapping,
    SalesMapping,
    StockMapping,
)
from .records import (
    MovementDirection,
    MovementEntry,
    RecordTransformer,
    SaleEntry,
    StockEntry,
    transform_records,
)
from .reconciliation import (
    ConnectionDiagnostic,
    ReconciliationResult,
    StockStatus,
    UnifiedReportItem,
    classify_item,
    classify_status,
    unify,
)
from .analysis import (
    ConsolidatedProduct,
    PlanningSummary,
    Tier,
    compute_planning_summary,
    consolidate,
    filter_consolidated,
)
from .transfers import TransferRecommendation, Urgency, recommend_transfers
from .quality import DataQualityChecker, FileDiagnostic, diagnose_file
from .insights import InsightGenerator, InventoryInsightReport, build_insight_summary
from .pipeline import AnalysisResult, run_analysis
from .logger import setup_logger

__all__ = [
    "DateParser",
    "KeyNormalizer",
    "normalize_key",
    "AnalysisConfig",
    "BrandRules",
    "ColumnMapping",
    "LocationTypeRules",
    "MovementMapping",
    "SalesMapping",
    "StockMapping",
    "MovementDirection",
    "MovementEntry",
    "RecordTransformer",
    "SaleEntry",
    "StockEntry",
    "transform_records",
    "ConnectionDiagnostic",
    "ReconciliationResult",
    "StockStatus",
    "UnifiedReportItem",
    "classify_item",
    "classify_status",
    "unify",
    "ConsolidatedProduct",
    "PlanningSummary",
    "Tier",
    "compute_planning_summary",
    "consolidate",
    "filter_consolidated",
    "TransferRecommendation",
    "Urgency",
    "recommend_transfers",
    "DataQualityChecker",
    "FileDiagnostic",
    "diagnose_file",
    "InsightGenerator",
    "InventoryInsightReport",
    "build_insight_summary",
    "AnalysisResult",
    "run_analysis",
    "setup_logger",
]
