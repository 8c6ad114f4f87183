"""Shared fixtures and builders for the test suite."""

from datetime import datetime

import pytest

from inventory_balance.config import (
    AnalysisConfig,
    ColumnMapping,
    MovementMapping,
    SalesMapping,
    StockMapping,
)
from inventory_balance.reconciliation import StockStatus, UnifiedReportItem
from inventory_balance.records import MovementDirection, MovementEntry, SaleEntry, StockEntry

AS_OF = datetime(2024, 6, 30)


def stock(code, location="STORE1", quantity=0, unit_value=0, total_value=0, name="Product"):
    return StockEntry(code, name, location, quantity, unit_value, total_value)


def sale(code, location="STORE1", sale_date=None, quantity=0, amount=0, name="Product"):
    return SaleEntry(code, name, location, sale_date, quantity, amount)


def movement(code, location="STORE1", movement_date=None, quantity=0, name="Product"):
    return MovementEntry(code, name, location, movement_date, MovementDirection.INBOUND, quantity)


def item(
    code,
    location="STORE1",
    stock=0,
    avg=0,
    value=0,
    status=StockStatus.OK,
    ideal=1,
    days_in_stock=0,
    brand="N/A",
    name=None,
):
    return UnifiedReportItem(
        key=f"{code}-{location}",
        product_code=code,
        product_name=name or f"Product {code}",
        brand=brand,
        location=location,
        stock=stock,
        unit_value=0,
        total_value=value,
        avg_monthly_sales=avg,
        projected_consumption_3m=avg * 3,
        ideal_stock=ideal,
        days_in_stock=days_in_stock,
        status=status,
    )


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def config():
    return AnalysisConfig(ideal_stock_factor=3, dead_stock_days=90, sales_window_days=90)


@pytest.fixture
def mapping():
    return ColumnMapping(
        movements=MovementMapping(
            code="SKU", name="Desc", location="Local", date="Fecha", quantity="Cant", direction="Tipo"
        ),
        sales=SalesMapping(
            code="SKU", name="Desc", location="Local", date="Fecha", quantity="Cant", amount="Valor"
        ),
        stock=StockMapping(
            code="SKU",
            name="Desc",
            location="Local",
            quantity="Stock",
            unit_value="VU",
            total_value="VT",
        ),
    )
