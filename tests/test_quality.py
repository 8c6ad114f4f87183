"""
Tests for per-file diagnostics.
"""

import pandas as pd

from inventory_balance.config import ColumnMapping, SalesMapping, StockMapping
from inventory_balance.quality import DataQualityChecker, DataQualityIssue, diagnose_file


def issue_types(diag):
    return {(i.column, i.issue_type) for i in diag.issues}


class TestDiagnoseFile:
    """Test suite for mapping completeness and data issues."""

    def test_valid_stock_file(self, mapping):
        rows = [
            {"SKU": "A1", "Desc": "Tire", "Local": "S1", "Stock": 3, "VU": 1, "VT": 3},
            {"SKU": "A1", "Desc": "Tire", "Local": "S2", "Stock": 4, "VU": 1, "VT": 4},
            {"SKU": "B2", "Desc": "Rim", "Local": "S1", "Stock": 1, "VU": 1, "VT": 1},
        ]

        diag = diagnose_file(rows, mapping, "stock")

        assert diag.name == "Stock"
        assert diag.row_count == 3
        assert diag.unique_products == 2
        assert diag.missing_columns == []
        assert diag.is_valid is True
        assert diag.issues == []

    def test_unmapped_required_fields(self):
        mapping = ColumnMapping(sales=SalesMapping(code="SKU", quantity="Cant"))

        diag = diagnose_file([{"SKU": "A", "Cant": 1}], mapping, "sales")

        assert diag.missing_columns == ["name", "date", "location"]
        assert diag.is_valid is False

    def test_location_not_required_when_ignored(self):
        mapping = ColumnMapping(
            stock=StockMapping(code="SKU", name="Desc", quantity="Stock"), ignore_location=True
        )
        diag = diagnose_file([{"SKU": "A", "Desc": "x", "Stock": 1}], mapping, "stock")
        assert diag.missing_columns == []

    def test_mapped_column_absent_from_rows(self, mapping):
        rows = [{"SKU": "A", "Desc": "x", "Stock": 1}]
        diag = diagnose_file(rows, mapping, "stock")
        assert diag.missing_columns == ["location"]

    def test_empty_file_only_checks_mapping(self, mapping):
        diag = diagnose_file([], mapping, "sales")
        assert diag.row_count == 0
        assert diag.unique_products == 0
        assert diag.missing_columns == []
        assert diag.issues == []

    def test_data_issues(self, mapping):
        rows = pd.DataFrame(
            {
                "SKU": ["A", None, "C", "D"],
                "Desc": ["a", "b", "c", "d"],
                "Local": ["S1", "S1", "S1", "S1"],
                "Fecha": ["2024-06-01", "someday", "2024-06-03", None],
                "Cant": [1, "two", 3, 4],
                "Valor": [1, 2, 3, 4],
            }
        )

        diag = diagnose_file(rows, mapping, "sales")

        assert issue_types(diag) == {
            ("SKU", "missing"),
            ("Fecha", "missing"),
            ("Fecha", "unparseable_date"),
            ("Cant", "non_numeric"),
        }
        [date_issue] = [i for i in diag.issues if i.issue_type == "unparseable_date"]
        assert date_issue.count == 1
        assert date_issue.sample_values == ["someday"]
        # 1 of 4 missing is 25%
        assert {i.severity for i in diag.issues if i.issue_type == "missing"} == {"critical"}
        assert diag.unique_products == 3

    def test_summary(self, mapping):
        summary = diagnose_file([], mapping, "movements").summary()
        assert summary["source"] == "Movements"
        assert summary["is_valid"] is True


class TestDataQualityChecker:
    """Test suite for custom checks."""

    def test_custom_check_is_chained(self):
        def negative_stock(df):
            count = int((df["q"] < 0).sum())
            if not count:
                return []
            return [DataQualityIssue("q", "negative", "warning", count, count / len(df) * 100)]

        checker = DataQualityChecker("Stock").add_check(negative_stock)

        issues = checker.run(pd.DataFrame({"q": [1, -2, -3]}))

        assert [(i.issue_type, i.count) for i in issues] == [("negative", 2)]
