"""
Narrative insights and recommendations for monthly and yearly reports.

Rules are evaluated over metrics that have already been computed; nothing
here touches the ledger. Thresholds are module constants so they can be
tuned (and tested) one at a time.
"""

from typing import List

from .models import CategoryAnalysis, CategoryStatistics
from .trend_analysis import safe_ratio

# Monthly activity (transaction count)
ACTIVE_MONTH_TRANSACTIONS = 50
QUIET_MONTH_TRANSACTIONS = 10

# Monthly expiration rate (% of added quantity)
HIGH_EXPIRATION_RATE = 15.0
LOW_EXPIRATION_RATE = 5.0

# Monthly consumption rate (% of added quantity)
EFFICIENT_CONSUMPTION_RATE = 80.0
LOW_CONSUMPTION_RATE = 50.0

# Average cost per added item
HIGH_AVERAGE_COST = 500.0
LOW_AVERAGE_COST = 100.0

# Monthly recommendations
CATEGORY_EXPIRATION_ALERT_RATE = 20.0
MAX_EXPIRATION_RECOMMENDATIONS = 2

# Yearly growth (% month over month)
GROWING_ACTIVITY_RATE = 5.0
SHRINKING_ACTIVITY_RATE = -5.0

# Yearly expiration rate (% of added quantity)
EFFICIENT_ANNUAL_EXPIRATION_RATE = 10.0
HIGH_ANNUAL_EXPIRATION_RATE = 20.0

# Yearly category call-outs
HIGH_SEASONALITY = 50.0
GROWING_CATEGORY_RATE = 20.0
DECLINING_CATEGORY_RATE = -20.0
MAX_SEASONAL_RECOMMENDATIONS = 2
MAX_GROWTH_RECOMMENDATIONS = 2

MAINTAIN_PRACTICES_MESSAGE = (
    'Inventory management looks healthy. Maintain current practices.')
NEXT_YEAR_MESSAGE = (
    'Use this year\'s data to plan purchases and cut waste further next year.')


def generate_monthly_insights(
    transaction_count: int,
    items_added: float,
    items_consumed: float,
    items_expired: float,
    total_value: float
) -> List[str]:
    """
    Commentary on a month's activity.

    Returns:
        List of insight strings (possibly empty)
    """
    insights = []

    # Activity level
    if transaction_count > ACTIVE_MONTH_TRANSACTIONS:
        insights.append('This was an active month for inventory management.')
    elif transaction_count < QUIET_MONTH_TRANSACTIONS:
        insights.append('This was a quiet month for inventory activity.')

    # Expiration rate
    expiration_rate = safe_ratio(items_expired, items_added) * 100
    if expiration_rate > HIGH_EXPIRATION_RATE:
        insights.append(
            f'Expiration rate is high at {round(expiration_rate)}% of added items.')
    elif expiration_rate < LOW_EXPIRATION_RATE:
        insights.append('Very few items expired. Stock is being managed efficiently.')

    # Consumption rate
    consumption_rate = safe_ratio(items_consumed, items_added) * 100
    if consumption_rate > EFFICIENT_CONSUMPTION_RATE:
        insights.append('Most purchased items were put to use.')
    elif consumption_rate < LOW_CONSUMPTION_RATE:
        insights.append('Inventory turnover could improve.')

    # Average cost
    if total_value > 0 and items_added > 0:
        average_cost = total_value / items_added
        if average_cost > HIGH_AVERAGE_COST:
            insights.append('Relatively expensive items made up much of this month\'s stock.')
        elif average_cost < LOW_AVERAGE_COST:
            insights.append('Purchases this month offered good value per item.')

    return insights


def generate_monthly_recommendations(
    category_breakdown: List[CategoryStatistics]
) -> List[str]:
    """
    Actionable suggestions derived from the month's category statistics.

    Args:
        category_breakdown: Category statistics sorted by value

    Returns:
        At least one recommendation string
    """
    recommendations = []

    high_expiration = [
        c for c in category_breakdown
        if c.expiration_rate > CATEGORY_EXPIRATION_ALERT_RATE
    ]
    for category in high_expiration[:MAX_EXPIRATION_RECOMMENDATIONS]:
        recommendations.append(
            f'Adjust how much {category.category} you buy to reduce expired items.')

    valued = [c for c in category_breakdown if c.total_value > 0]
    if valued:
        top = max(valued, key=lambda c: c.total_value)
        recommendations.append(f'Review spending on {top.category} for cost savings.')

    decreasing = [c for c in category_breakdown if c.trend == 'decreasing']
    if decreasing:
        recommendations.append(f'Consider restocking {decreasing[0].category}.')

    if not recommendations:
        recommendations.append(MAINTAIN_PRACTICES_MESSAGE)

    return recommendations


def generate_yearly_insights(
    peak_month: str,
    lowest_month: str,
    average_monthly_growth: float,
    items_added: float,
    items_expired: float
) -> List[str]:
    """Commentary on a year's activity."""
    insights = [
        f'{peak_month} was the busiest month for inventory activity.',
        f'{lowest_month} was the quietest month.',
    ]

    if average_monthly_growth > GROWING_ACTIVITY_RATE:
        insights.append('Inventory activity grew steadily over the year.')
    elif average_monthly_growth < SHRINKING_ACTIVITY_RATE:
        insights.append('Inventory activity declined over the year.')
    else:
        insights.append('Inventory activity stayed stable throughout the year.')

    annual_expiration_rate = safe_ratio(items_expired, items_added) * 100
    if annual_expiration_rate < EFFICIENT_ANNUAL_EXPIRATION_RATE:
        insights.append('Expired stock stayed low all year.')
    elif annual_expiration_rate > HIGH_ANNUAL_EXPIRATION_RATE:
        insights.append(
            f'Annual expiration rate reached {round(annual_expiration_rate)}%. '
            'Reducing waste should be a priority next year.')

    return insights


def generate_yearly_recommendations(category_analysis: List[CategoryAnalysis]) -> List[str]:
    """Suggestions for next year based on category seasonality and growth."""
    recommendations = []

    seasonal = [c for c in category_analysis if c.seasonality > HIGH_SEASONALITY]
    for category in seasonal[:MAX_SEASONAL_RECOMMENDATIONS]:
        recommendations.append(
            f'{category.category} is highly seasonal. Plan purchases around peak months.')

    growing = [c for c in category_analysis if c.growth > GROWING_CATEGORY_RATE]
    for category in growing[:MAX_GROWTH_RECOMMENDATIONS]:
        recommendations.append(
            f'Demand for {category.category} is growing. Review how it is restocked.')

    declining = [c for c in category_analysis if c.growth < DECLINING_CATEGORY_RATE]
    if declining:
        recommendations.append(
            f'Demand for {declining[0].category} is falling. Consider buying less.')

    recommendations.append(NEXT_YEAR_MESSAGE)
    return recommendations
