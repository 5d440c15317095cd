"""Tests for report insight and recommendation rules."""

from inventory_analytics.analytics.insights import (
    MAINTAIN_PRACTICES_MESSAGE,
    NEXT_YEAR_MESSAGE,
    generate_monthly_insights,
    generate_monthly_recommendations,
    generate_yearly_insights,
    generate_yearly_recommendations,
)
from inventory_analytics.analytics.models import CategoryAnalysis, CategoryStatistics


def _category(name, value=0.0, expiration_rate=0.0, trend="stable"):
    return CategoryStatistics(
        category=name,
        total_items=1,
        total_value=value,
        average_quantity=1,
        most_added_product=None,
        most_consumed_product=None,
        expiration_rate=expiration_rate,
        cost_per_item=0,
        trend=trend,
        monthly_growth=0,
    )


def _yearly(name, seasonality=0.0, growth=0.0):
    return CategoryAnalysis(
        category=name, yearly_total=1, yearly_value=1,
        seasonality=seasonality, growth=growth)


def test_busy_efficient_month():
    insights = generate_monthly_insights(
        transaction_count=60, items_added=100, items_consumed=90,
        items_expired=2, total_value=300)

    assert insights == [
        "This was an active month for inventory management.",
        "Very few items expired. Stock is being managed efficiently.",
        "Most purchased items were put to use.",
        "Purchases this month offered good value per item.",
    ]


def test_wasteful_expensive_month():
    insights = generate_monthly_insights(
        transaction_count=20, items_added=10, items_consumed=2,
        items_expired=4, total_value=6000)

    assert insights == [
        "Expiration rate is high at 40% of added items.",
        "Inventory turnover could improve.",
        "Relatively expensive items made up much of this month's stock.",
    ]


def test_middling_month_has_no_commentary():
    assert generate_monthly_insights(
        transaction_count=20, items_added=10, items_consumed=6,
        items_expired=1, total_value=2000) == []


def test_monthly_recommendations():
    breakdown = [
        _category("meat", value=80, expiration_rate=25),
        _category("produce", value=40, expiration_rate=30, trend="decreasing"),
        _category("dairy", value=10, expiration_rate=50),
    ]

    recommendations = generate_monthly_recommendations(breakdown)

    assert recommendations == [
        "Adjust how much meat you buy to reduce expired items.",
        "Adjust how much produce you buy to reduce expired items.",
        "Review spending on meat for cost savings.",
        "Consider restocking produce.",
    ]


def test_monthly_recommendations_fallback():
    assert generate_monthly_recommendations([]) == [MAINTAIN_PRACTICES_MESSAGE]
    assert generate_monthly_recommendations([_category("dairy")]) == [MAINTAIN_PRACTICES_MESSAGE]


def test_yearly_insights_growth_and_waste():
    growing = generate_yearly_insights("July", "February", 12.0, 100, 25)
    stable = generate_yearly_insights("July", "February", 1.0, 100, 5)
    shrinking = generate_yearly_insights("July", "February", -9.0, 100, 15)

    assert growing[:2] == [
        "July was the busiest month for inventory activity.",
        "February was the quietest month.",
    ]
    assert "Inventory activity grew steadily over the year." in growing
    assert any(i.startswith("Annual expiration rate reached 25%") for i in growing)
    assert "Inventory activity stayed stable throughout the year." in stable
    assert "Expired stock stayed low all year." in stable
    assert "Inventory activity declined over the year." in shrinking
    assert len(shrinking) == 3


def test_yearly_recommendations():
    analysis = [
        _yearly("frozen", seasonality=80, growth=30),
        _yearly("produce", seasonality=60),
        _yearly("bakery", seasonality=55),
        _yearly("dairy", growth=-40),
    ]

    recommendations = generate_yearly_recommendations(analysis)

    assert recommendations == [
        "frozen is highly seasonal. Plan purchases around peak months.",
        "produce is highly seasonal. Plan purchases around peak months.",
        "Demand for frozen is growing. Review how it is restocked.",
        "Demand for dairy is falling. Consider buying less.",
        NEXT_YEAR_MESSAGE,
    ]


def test_yearly_recommendations_always_look_ahead():
    assert generate_yearly_recommendations([]) == [NEXT_YEAR_MESSAGE]
