"""
End-to-end tests for run_analysis over raw rows.
"""

import pandas as pd
import pytest

from inventory_balance.analysis import Tier
from inventory_balance.config import AnalysisConfig, BrandRules, ColumnMapping, StockMapping
from inventory_balance.pipeline import run_analysis
from inventory_balance.reconciliation import StockStatus
from inventory_balance.transfers import Urgency

from conftest import AS_OF


@pytest.fixture
def raw_stock():
    return [
        {"SKU": "ab-1", "Desc": "Tire A", "Local": "Bodega Central", "Stock": 200, "VU": 10, "VT": 2000},
        {"SKU": "AB1", "Desc": "Tire A", "Local": "Tienda Norte", "Stock": "0", "VU": 10, "VT": 0},
        {"SKU": "ZZ9", "Desc": "Tire Z", "Local": "Tienda Norte", "Stock": 5, "VU": 4, "VT": 20},
    ]


@pytest.fixture
def raw_sales():
    return [
        {"SKU": "AB-1", "Desc": "Tire A", "Local": "Bodega Central", "Fecha": "2024-06-20", "Cant": 30, "Valor": 300},
        {"SKU": "AB-1", "Desc": "Tire A", "Local": "bodega central", "Fecha": "2024-05-15", "Cant": 30, "Valor": 300},
        {"SKU": "ab1", "Desc": "Tire A", "Local": "tienda norte", "Fecha": "2024-06-25", "Cant": 60, "Valor": 600},
        {"SKU": "XX1", "Desc": "Other", "Local": "Tienda Norte", "Fecha": "2024-06-25", "Cant": 3, "Valor": 30},
    ]


@pytest.fixture
def raw_movements():
    return [
        {"SKU": "AB1", "Desc": "Tire A", "Local": "Tienda Norte", "Fecha": "2024-06-30", "Cant": 5, "Tipo": "Entrada"},
        {"SKU": "AB1", "Desc": "Tire A", "Local": "Bodega Central", "Fecha": "2024-06-20", "Cant": 5, "Tipo": "Salida"},
    ]


class TestRunAnalysis:
    """Test suite for the full run."""

    @pytest.fixture
    def result(self, raw_movements, raw_sales, raw_stock, mapping, config):
        return run_analysis(
            raw_movements, raw_sales, raw_stock, mapping, config=config, as_of=AS_OF, min_transfer_quantity=1
        )

    def test_items(self, result):
        by_key = {i.key: i for i in result.items}

        warehouse = by_key["AB1-BODEGA CENTRAL"]
        assert warehouse.sales_90d == 60
        assert warehouse.ideal_stock == 60
        assert warehouse.days_since_last_sale == 10
        assert warehouse.days_in_stock == 10
        assert warehouse.status == StockStatus.OVERSTOCK

        shop = by_key["AB1-TIENDA NORTE"]
        assert shop.stock == 0
        assert shop.days_in_stock == 0
        assert shop.status == StockStatus.LOW

        assert by_key["ZZ9-TIENDA NORTE"].status == StockStatus.DEAD

    def test_diagnostics(self, result):
        assert result.diagnostics.both_present == 2
        assert result.diagnostics.stock_only == 1
        assert result.diagnostics.sales_only == 1
        assert result.diagnostics.is_valid is True
        assert result.files_valid is True
        assert result.as_of == AS_OF

    def test_transfers(self, result):
        [rec] = result.transfers
        assert rec.product_code == "AB1"
        assert (rec.from_location, rec.to_location) == ("BODEGA CENTRAL", "TIENDA NORTE")
        assert rec.quantity == 60
        assert rec.urgency == Urgency.CRITICAL

    def test_consolidated(self, result):
        assert [p.product_code for p in result.consolidated] == ["ZZ9", "AB1"]
        ab1 = result.consolidated[1]
        assert ab1.tier == Tier.HEALTHY
        assert ab1.warehouse_stock == 200
        assert ab1.store_stock == 0
        assert ab1.suggested_order_qty == 0

    def test_planning(self, result):
        assert result.planning.status_counts == {"OK": 0, "LOW": 1, "OVERSTOCK": 1, "DEAD": 1}
        assert result.planning.current_value == 2020

    def test_accepts_dataframes(self, raw_movements, raw_sales, raw_stock, mapping, config):
        result = run_analysis(
            pd.DataFrame(raw_movements),
            pd.DataFrame(raw_sales),
            pd.DataFrame(raw_stock),
            mapping,
            config=config,
            as_of=AS_OF,
        )
        assert len(result.items) == 3
        assert len(result.transfers) == 1

    def test_generators_are_consumed_once(self, raw_movements, raw_sales, raw_stock, mapping, config):
        result = run_analysis(
            (r for r in raw_movements), (r for r in raw_sales), (r for r in raw_stock),
            mapping, config=config, as_of=AS_OF,
        )
        assert result.file_diagnostics["stock"].row_count == 3
        assert len(result.items) == 3

    def test_ignore_location(self, raw_movements, raw_sales, raw_stock, mapping, config):
        mapping = mapping.model_copy(update={"ignore_location": True})

        result = run_analysis(raw_movements, raw_sales, raw_stock, mapping, config=config, as_of=AS_OF)

        assert sorted(i.key for i in result.items) == ["AB1", "ZZ9"]
        assert {i.location for i in result.items} == {"GLOBAL"}
        assert result.transfers == []

    def test_brand_rules(self, raw_movements, raw_sales, raw_stock, mapping, config):
        rules = BrandRules(prefixes={"AB-": "Acme"})
        result = run_analysis(
            raw_movements, raw_sales, raw_stock, mapping, config=config, as_of=AS_OF, brand_rules=rules
        )
        assert result.transfers[0].brand == "Acme"

    def test_missing_columns_do_not_abort(self, raw_movements, raw_sales, raw_stock, config):
        mapping = ColumnMapping(stock=StockMapping(code="SKU", quantity="Stock"))

        result = run_analysis(raw_movements, raw_sales, raw_stock, mapping, config=config, as_of=AS_OF)

        assert result.files_valid is False
        assert result.file_diagnostics["sales"].missing_columns == ["code", "name", "date", "quantity", "location"]
        assert result.diagnostics.is_valid is False
        assert len(result.items) == 2

    def test_empty_inputs(self, mapping):
        result = run_analysis([], [], [], mapping, config=AnalysisConfig(), as_of=AS_OF)

        assert result.items == []
        assert result.consolidated == []
        assert result.transfers == []
        assert result.diagnostics.is_valid is False
