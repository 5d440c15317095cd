"""Tests for monthly and yearly report generation."""

from unittest.mock import Mock

import pytest

from inventory_analytics.analytics import reporting
from inventory_analytics.analytics.exceptions import ComputationError, ValidationError
from inventory_analytics.analytics.reporting import ReportBuilder, month_window

from conftest import DAY_MS, utc_ms


def test_month_window_bounds():
    start, end = month_window(2024, 2)

    assert start == utc_ms(2024, 2, 1, 0)
    assert end == utc_ms(2024, 3, 1, 0) - 1


def test_december_window_ends_at_new_year():
    _, end = month_window(2023, 12)

    assert end == utc_ms(2024, 1, 1, 0) - 1


@pytest.mark.parametrize("month", [0, 13])
def test_invalid_month_is_rejected(engine, month):
    with pytest.raises(ValidationError):
        engine.generate_monthly_report(2024, month)


# ========== Monthly ==========

def test_monthly_report_for_consumed_stock(engine, clock):
    engine.record_product_add("milk", "Milk", "dairy", "fridge", 10, cost=2.0)
    clock.advance(days=4)
    engine.record_product_consumption(
        "milk", "Milk", "dairy", "fridge", consumed_quantity=10, previous_quantity=10)

    report = engine.generate_monthly_report(2024, 3)

    assert report.period == "2024-03"
    assert report.total_transactions == 2
    assert report.total_items_added == 10
    assert report.total_items_consumed == 10
    assert report.total_items_expired == 0
    assert report.total_value == 20.0
    assert report.average_cost == 2.0
    [dairy] = report.category_breakdown
    assert dairy.expiration_rate == 0
    assert report.top_products[0].product_name == "Milk"


def test_monthly_report_flags_expiration(engine, clock):
    engine.record_product_add("milk", "Milk", "dairy", "fridge", 5)
    clock.advance(days=9)
    engine.record_product_expiration("milk", "Milk", "dairy", "fridge", expired_quantity=5)

    report = engine.generate_monthly_report(2024, 3)

    [dairy] = report.category_breakdown
    assert dairy.expiration_rate == 100.0
    assert "Expiration rate is high at 100% of added items." in report.insights
    assert any("reduce expired items" in r for r in report.recommendations)


def test_monthly_report_only_counts_its_own_month(engine, record_at):
    record_at("add", 7, utc_ms(2024, 2, 29, 23))
    record_at("add", 3, utc_ms(2024, 3, 1, 0))
    record_at("add", 1, utc_ms(2024, 4, 1, 0))

    report = engine.generate_monthly_report(2024, 3)

    assert report.total_items_added == 3


def test_month_over_month_trends(engine, record_at):
    record_at("add", 10, utc_ms(2024, 2, 10), cost=1.0)
    record_at("consume", 4, utc_ms(2024, 2, 12))
    record_at("add", 15, utc_ms(2024, 3, 10), cost=1.0)
    record_at("consume", 2, utc_ms(2024, 3, 12))
    record_at("expire", 1, utc_ms(2024, 3, 20))

    trends = engine.generate_monthly_report(2024, 3).trends

    assert trends.addition_trend == 50.0
    assert trends.consumption_trend == -50.0
    assert trends.cost_trend == 50.0
    # No expirations in February to compare against
    assert trends.expiration_trend == 0


def test_empty_month_report(engine):
    report = engine.generate_monthly_report(2024, 6)

    assert report.total_transactions == 0
    assert report.category_breakdown == []
    assert report.average_cost == 0
    assert "This was a quiet month for inventory activity." in report.insights
    assert report.recommendations


def test_monthly_report_is_cached_until_next_write(engine, record_at):
    record_at("add", 1, utc_ms(2024, 3, 2))
    spy = engine.ledger.store = Mock(wraps=engine.ledger.store)

    first = engine.generate_monthly_report(2024, 3)
    reads = spy.query.call_count
    second = engine.generate_monthly_report(2024, 3)

    assert second == first
    assert spy.query.call_count == reads

    record_at("add", 1, utc_ms(2024, 3, 3))
    third = engine.generate_monthly_report(2024, 3)

    assert spy.query.call_count > reads
    assert third.total_items_added == 2


def test_cached_monthly_report_is_not_shared_with_callers(engine, record_at):
    record_at("add", 1, utc_ms(2024, 3, 2))

    first = engine.generate_monthly_report(2024, 3)
    first.insights.append("edited by caller")
    first.category_breakdown.clear()
    second = engine.generate_monthly_report(2024, 3)

    assert second is not first
    assert "edited by caller" not in second.insights
    assert [c.category for c in second.category_breakdown] == ["dairy"]


def test_aggregation_failure_is_a_computation_error(engine, record_at, monkeypatch):
    record_at("add", 1, utc_ms(2024, 3, 2))

    def broken(transactions):
        raise ZeroDivisionError("division by zero")

    monkeypatch.setattr(reporting, "analyze_top_products", broken)

    with pytest.raises(ComputationError):
        engine.generate_monthly_report(2024, 3)


def test_report_serializes_to_dict(engine, record_at):
    record_at("add", 1, utc_ms(2024, 3, 2), cost=4.0)

    data = engine.generate_monthly_report(2024, 3).to_dict()

    assert data["period"] == "2024-03"
    assert data["category_breakdown"][0]["category"] == "dairy"
    assert data["trends"]["addition_trend"] == 0


# ========== Yearly ==========

def _steady_year(record_at, year=2024):
    for month in range(1, 13):
        record_at("add", 10, utc_ms(year, month, 15), cost=1.0)
        record_at("consume", 8, utc_ms(year, month, 20))


def test_steady_year_has_no_growth_or_seasonality(engine, record_at):
    _steady_year(record_at)

    report = engine.generate_yearly_report(2024)

    assert report.annual_trends.average_monthly_growth == pytest.approx(0)
    assert [c.seasonality for c in report.category_analysis] == [pytest.approx(0)]
    assert report.category_analysis[0].growth == pytest.approx(0)


def test_yearly_report_keeps_month_order(engine, record_at):
    _steady_year(record_at)

    report = engine.generate_yearly_report(2024)

    assert [r.month for r in report.monthly_breakdown] == list(range(1, 13))
    assert report.total_transactions == 24
    assert report.total_value == 120.0
    # Ties go to the earliest month
    assert report.annual_trends.peak_month == "January"
    assert report.annual_trends.lowest_month == "January"
    assert report.recommendations[-1] == (
        "Use this year's data to plan purchases and cut waste further next year.")


def test_yearly_peak_lowest_and_seasons(engine, record_at):
    record_at("add", 5, utc_ms(2024, 7, 4), product="Ice Cream", category="frozen", cost=4.0)
    record_at("add", 1, utc_ms(2024, 2, 4), product="Soup", category="pantry", cost=2.0)

    report = engine.generate_yearly_report(2024)

    assert report.annual_trends.peak_month == "July"
    # Empty months (value 0) are quieter than February
    assert report.annual_trends.lowest_month == "January"
    seasons = {p.season: p for p in report.annual_trends.seasonal_patterns}
    assert seasons["Summer"].dominant_categories == ["frozen"]
    assert seasons["Winter"].dominant_categories == ["pantry"]
    assert seasons["Spring"].average_activity == 0
    assert [c.category for c in report.category_analysis] == ["frozen", "pantry"]


def test_yearly_cost_analysis(engine, record_at):
    record_at("add", 10, utc_ms(2024, 5, 1), cost=10.0)
    record_at("expire", 5, utc_ms(2024, 5, 20))

    cost = engine.generate_yearly_report(2024).cost_analysis

    assert cost.total_spent == 100.0
    assert cost.average_monthly_spend == pytest.approx(100.0 / 12)
    assert cost.cost_efficiency == 0
    assert cost.waste_value == 50.0
    assert len(cost.savings_opportunities) == 3


def test_yearly_report_is_cached(engine, record_at):
    record_at("add", 1, utc_ms(2024, 3, 2))

    first = engine.generate_yearly_report(2024)
    spy = engine.ledger.store = Mock(wraps=engine.ledger.store)
    second = engine.generate_yearly_report(2024)

    assert second == first
    assert spy.query.call_count == 0


def test_yearly_report_does_not_share_monthly_reports(engine, record_at):
    record_at("add", 1, utc_ms(2024, 3, 2))

    yearly = engine.generate_yearly_report(2024)
    yearly.monthly_breakdown[2].insights.append("edited by caller")
    yearly.recommendations.clear()

    assert "edited by caller" not in engine.generate_monthly_report(2024, 3).insights
    assert engine.generate_yearly_report(2024).recommendations


def test_analyze_costs_without_activity():
    cost = ReportBuilder.analyze_costs([])

    assert cost.total_spent == 0
    assert cost.cost_efficiency == 0
    assert cost.savings_opportunities == []


def test_monthly_growth_only_sees_the_reported_month(engine, record_at, clock):
    clock.now = utc_ms(2024, 3, 31)
    record_at("add", 2, clock.now - 45 * DAY_MS)
    record_at("add", 4, clock.now - 5 * DAY_MS)

    [dairy] = engine.generate_monthly_report(2024, 3).category_breakdown

    # Only the March transaction is in the report, and it sits in the recent window
    assert dairy.monthly_growth == 0
