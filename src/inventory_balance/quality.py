"""
Per-file data quality diagnostics.

Checks a raw export against its column mapping before unification:
required fields that are unmapped or absent, missing values, dates that
will not parse and quantities that are not numbers. Nothing here blocks a
run; the findings are reported next to the connection diagnostic.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping
import pandas as pd

from .config import ColumnMapping, SourceKind
from .parsers import DateParser

SOURCE_NAMES = {"movements": "Movements", "sales": "Sales", "stock": "Stock"}

DATE_FIELDS = ("date",)
NUMERIC_FIELDS = ("quantity", "amount", "unit_value", "total_value")


@dataclass
class DataQualityIssue:
    """A single data quality issue found in the data."""

    column: str
    issue_type: str  # "missing", "unparseable_date", "non_numeric"
    severity: str  # "critical", "warning", "info"
    count: int
    percentage: float
    sample_values: list[Any] = field(default_factory=list)
    description: str = ""


@dataclass
class FileDiagnostic:
    """Shape and quality of one source file under its mapping."""

    name: str
    row_count: int
    unique_products: int
    missing_columns: list[str] = field(default_factory=list)
    issues: list[DataQualityIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.missing_columns

    @property
    def critical_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "critical"]

    def summary(self) -> dict:
        return {
            "source": self.name,
            "rows": self.row_count,
            "unique_products": self.unique_products,
            "missing_columns": list(self.missing_columns),
            "critical": len(self.critical_issues),
            "warnings": len([i for i in self.issues if i.severity == "warning"]),
            "is_valid": self.is_valid,
        }


class DataQualityChecker:
    """
    Runs a list of checks over a DataFrame and collects their issues.

    Extend by adding custom checks via add_check().
    """

    def __init__(self, source_name: str):
        self.source_name = source_name
        self._checks: list[Callable[[pd.DataFrame], list[DataQualityIssue]]] = []

    def add_check(
        self, check_fn: Callable[[pd.DataFrame], list[DataQualityIssue]]
    ) -> "DataQualityChecker":
        """Add a custom check function. Returns self for chaining."""
        self._checks.append(check_fn)
        return self

    def check_missing_values(self, columns: Iterable[str]) -> "DataQualityChecker":
        """Flag empty cells in the given columns."""
        columns = list(columns)

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            issues = []
            for col in columns:
                if col not in df.columns:
                    continue
                values = df[col]
                missing = int((values.isna() | (values.astype(str).str.strip() == "")).sum())
                if missing > 0:
                    pct = (missing / len(df)) * 100
                    severity = "critical" if pct > 20 else "warning" if pct > 5 else "info"
                    issues.append(
                        DataQualityIssue(
                            column=col,
                            issue_type="missing",
                            severity=severity,
                            count=missing,
                            percentage=pct,
                            description=f"{missing:,} missing values ({pct:.1f}%)",
                        )
                    )
            return issues

        return self.add_check(check)

    def check_dates(self, column: str, parser: DateParser | None = None) -> "DataQualityChecker":
        """Flag present values that the date parser cannot read."""
        parser = parser or DateParser()

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column not in df.columns:
                return []
            present = df[column].dropna()
            unparsed = present[present.apply(parser.parse).isna()]
            count = len(unparsed)
            if count == 0:
                return []
            return [
                DataQualityIssue(
                    column=column,
                    issue_type="unparseable_date",
                    severity="warning",
                    count=count,
                    percentage=(count / len(df)) * 100,
                    sample_values=unparsed.head(5).tolist(),
                    description=f"{count:,} dates couldn't be parsed and count as today",
                )
            ]

        return self.add_check(check)

    def check_numeric(self, column: str) -> "DataQualityChecker":
        """Flag present values that are not numbers (they count as 0)."""

        def check(df: pd.DataFrame) -> list[DataQualityIssue]:
            if column not in df.columns:
                return []
            present = df[column].dropna()
            invalid = present[pd.to_numeric(present, errors="coerce").isna()]
            count = len(invalid)
            if count == 0:
                return []
            return [
                DataQualityIssue(
                    column=column,
                    issue_type="non_numeric",
                    severity="warning",
                    count=count,
                    percentage=(count / len(df)) * 100,
                    sample_values=invalid.head(5).tolist(),
                    description=f"{count:,} non-numeric values treated as 0",
                )
            ]

        return self.add_check(check)

    def run(self, df: pd.DataFrame) -> list[DataQualityIssue]:
        """Run all checks and return the issues found."""
        if len(df) == 0:
            return []
        all_issues = []
        for check_fn in self._checks:
            all_issues.extend(check_fn(df))
        return all_issues


def diagnose_file(
    rows: pd.DataFrame | Iterable[Mapping[str, Any]],
    mapping: ColumnMapping,
    kind: SourceKind,
) -> FileDiagnostic:
    """
    Diagnose one source file against its mapping.

    A required field is missing when it is unmapped, or when the file has
    rows and none of them carries the mapped column.
    """
    df = rows if isinstance(rows, pd.DataFrame) else pd.DataFrame(list(rows))
    fields = mapping.for_kind(kind)

    missing_columns = []
    for name in mapping.required_fields(kind):
        column = getattr(fields, name)
        if not column or (len(df) > 0 and column not in df.columns):
            missing_columns.append(name)

    code_col = fields.code
    unique_products = 0
    if code_col and code_col in df.columns:
        codes = df[code_col].dropna()
        unique_products = int(codes[codes.astype(str) != ""].nunique())

    checker = DataQualityChecker(SOURCE_NAMES[kind])
    mapped = {name: col for name, col in fields.model_dump().items() if col}
    checker.check_missing_values(mapped.values())
    for name in DATE_FIELDS:
        if name in mapped:
            checker.check_dates(mapped[name])
    for name in NUMERIC_FIELDS:
        if name in mapped:
            checker.check_numeric(mapped[name])

    return FileDiagnostic(
        name=SOURCE_NAMES[kind],
        row_count=len(df),
        unique_products=unique_products,
        missing_columns=missing_columns,
        issues=checker.run(df),
    )
