"""Tests for the MCP tool layer."""

import asyncio

import pytest
from fastmcp import FastMCP

from inventory_analytics.analytics.context import StaticGroupContext
from inventory_analytics.analytics.engine import InventoryAnalyticsEngine
from inventory_analytics.server import create_server
from inventory_analytics.tools import ledger_tools, reporting_tools

from conftest import GROUP_ID, utc_ms


class FakeMCP:
    """Collects tool functions the way FastMCP's decorator would."""

    def __init__(self):
        self.tools = {}

    def tool(self):
        def decorator(fn):
            self.tools[fn.__name__] = fn
            return fn
        return decorator


@pytest.fixture
def tools(engine):
    mcp = FakeMCP()
    ledger_tools.register_tools(mcp, engine)
    reporting_tools.register_tools(mcp, engine)
    return mcp.tools


def call(tools, name, **kwargs):
    return asyncio.run(tools[name](ctx=None, **kwargs))


def record(tools, change_type, quantity, previous_quantity=0, cost=None):
    return call(
        tools, "record_inventory_change",
        change_type=change_type,
        product_id="milk",
        product_name="Milk",
        category="dairy",
        location="fridge",
        quantity=quantity,
        previous_quantity=previous_quantity,
        cost=cost,
        expiry_date=None,
    )


def test_all_tools_registered(tools):
    assert set(tools) == {
        "record_inventory_change",
        "list_transactions",
        "backfill_inventory",
        "get_monthly_report",
        "get_yearly_report",
        "get_trend_data",
        "get_category_analysis",
        "get_location_analysis",
    }


def test_record_and_list(tools, clock):
    added = record(tools, "add", 6, cost=2.0)
    clock.advance(days=1)
    consumed = record(tools, "consume", 2, previous_quantity=6)

    assert added["success"] is True
    assert added["transaction"]["transaction_type"] == "add"
    assert consumed["transaction"]["new_quantity"] == 4

    listed = call(
        tools, "list_transactions",
        start_date=None, end_date=None, categories=None, locations=None,
        transaction_types=["consume"], limit=50,
    )

    assert listed["success"] is True
    assert listed["count"] == 1
    assert listed["transactions"][0]["id"] == consumed["transaction"]["id"]


@pytest.mark.parametrize("change_type, quantity, previous, expected_new", [
    ("update", 3, 5, 3),
    ("remove", 2, 5, 3),
    ("expire", 4, 0, 0),
])
def test_other_change_types(tools, change_type, quantity, previous, expected_new):
    result = record(tools, change_type, quantity, previous_quantity=previous)

    assert result["success"] is True
    assert result["transaction"]["new_quantity"] == expected_new


def test_unknown_change_type(tools):
    result = record(tools, "restock", 1)

    assert result["success"] is False
    assert "Unknown change type" in result["error"]


def test_invariant_violation_is_an_error_envelope(tools):
    result = record(tools, "consume", 5, previous_quantity=2)

    assert result["success"] is False
    assert result["error_type"] == "ValidationError"


def test_unauthenticated_user_is_an_error_envelope(store, clock):
    engine = InventoryAnalyticsEngine(
        store, StaticGroupContext(user=None, group_id=GROUP_ID), clock_ms=clock)
    mcp = FakeMCP()
    ledger_tools.register_tools(mcp, engine)

    result = record(mcp.tools, "add", 1)

    assert result["success"] is False
    assert result["error_type"] == "AuthContextError"


def test_monthly_and_yearly_reports(tools):
    record(tools, "add", 10, cost=2.0)

    monthly = call(tools, "get_monthly_report", year=2024, month=3, group_id=None)
    yearly = call(tools, "get_yearly_report", year=2024, group_id=None)

    assert monthly["success"] is True
    assert monthly["report"]["total_value"] == 20.0
    assert yearly["success"] is True
    assert len(yearly["report"]["monthly_breakdown"]) == 12


def test_trend_data_tool(tools, clock):
    record(tools, "add", 1)
    clock.advance(days=2)
    record(tools, "add", 1)

    result = call(
        tools, "get_trend_data",
        start_date="2024-03-01", end_date="2024-03-31",
        bucket_size="day", group_id=None,
    )

    assert result["success"] is True
    assert [p["period"] for p in result["points"]] == ["2024-03-01", "2024-03-03"]


@pytest.mark.parametrize("start_date, bucket_size", [
    ("03/01/2024", "day"),
    ("2024-03-01", "fortnight"),
])
def test_trend_data_rejects_bad_input(tools, start_date, bucket_size):
    result = call(
        tools, "get_trend_data",
        start_date=start_date, end_date="2024-03-31",
        bucket_size=bucket_size, group_id=None,
    )

    assert result["success"] is False
    assert result["error_type"] == "ValidationError"


def test_category_and_location_analysis(tools):
    record(tools, "add", 4, cost=1.0)

    categories = call(
        tools, "get_category_analysis",
        start_date="2024-03-01", end_date=None, group_id=None)
    locations = call(
        tools, "get_location_analysis",
        start_date=None, end_date="2024-02-28", group_id=None)

    assert categories["categories"][0]["category"] == "dairy"
    assert locations["count"] == 0


def test_backfill_tool(tools):
    items = [{"id": "p-9", "name": "Oats", "category": "grains", "location": "pantry",
              "added_at": utc_ms(2024, 2, 1)}]

    first = call(tools, "backfill_inventory", items=items)
    second = call(tools, "backfill_inventory", items=items)

    assert first["ledger_was_empty"] is True
    assert first["products_migrated"] == 1
    assert second["ledger_was_empty"] is False
    assert second["skipped"] == 1


def test_create_server(engine):
    assert isinstance(create_server(engine), FastMCP)
