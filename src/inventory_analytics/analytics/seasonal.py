"""
Seasonal and year-over-year category patterns.

Works on the twelve monthly reports of a year: groups months into fixed
seasons and measures how unevenly each category's value is spread across
the year.
"""

import statistics as stats
from typing import Dict, List, Tuple

from .models import CategoryAnalysis, MonthlyReport, SeasonalPattern
from .trend_analysis import percent_change

# Fixed 3-month seasons (northern hemisphere)
SEASONS: Tuple[Tuple[str, Tuple[int, int, int]], ...] = (
    ('Spring', (3, 4, 5)),
    ('Summer', (6, 7, 8)),
    ('Autumn', (9, 10, 11)),
    ('Winter', (12, 1, 2)),
)

DOMINANT_CATEGORY_COUNT = 3
MONTHS_PER_QUARTER = 3


def category_value_totals(reports: List[MonthlyReport]) -> Dict[str, float]:
    """Total value per category across several monthly reports."""
    totals: Dict[str, float] = {}
    for report in reports:
        for category in report.category_breakdown:
            totals[category.category] = (
                totals.get(category.category, 0) + category.total_value)
    return totals


def analyze_seasonal_patterns(monthly_reports: List[MonthlyReport]) -> List[SeasonalPattern]:
    """
    Summarize activity per season.

    Args:
        monthly_reports: Reports for the months of one year

    Returns:
        One SeasonalPattern per season with average transaction count and
        the top categories by value
    """
    patterns = []
    for name, months in SEASONS:
        season_reports = [r for r in monthly_reports if r.month in months]

        if season_reports:
            average_activity = (
                sum(r.total_transactions for r in season_reports) / len(season_reports))
        else:
            average_activity = 0.0

        totals = category_value_totals(season_reports)
        dominant = sorted(totals.items(), key=lambda item: item[1], reverse=True)

        patterns.append(SeasonalPattern(
            season=name,
            average_activity=average_activity,
            dominant_categories=[c for c, _ in dominant[:DOMINANT_CATEGORY_COUNT]],
        ))
    return patterns


def calculate_seasonality(monthly_values: List[float]) -> float:
    """
    Coefficient of variation of monthly values, as a percentage.

    A category bought evenly all year scores 0.
    """
    if not monthly_values:
        return 0.0
    mean = stats.fmean(monthly_values)
    if mean == 0:
        return 0.0
    return stats.pstdev(monthly_values) / mean * 100


def calculate_yearly_growth(monthly_values: List[float]) -> float:
    """First-quarter average versus last-quarter average, as a percentage."""
    first_quarter = stats.fmean(monthly_values[:MONTHS_PER_QUARTER])
    last_quarter = stats.fmean(monthly_values[-MONTHS_PER_QUARTER:])
    return percent_change(first_quarter, last_quarter)


def analyze_yearly_categories(monthly_reports: List[MonthlyReport]) -> List[CategoryAnalysis]:
    """
    Per-category yearly totals, seasonality and growth.

    Args:
        monthly_reports: Twelve monthly reports, January first

    Returns:
        CategoryAnalysis list sorted by yearly value, highest first
    """
    month_count = len(monthly_reports)
    monthly_values: Dict[str, List[float]] = {}
    yearly_totals: Dict[str, float] = {}

    for index, report in enumerate(monthly_reports):
        for category in report.category_breakdown:
            if category.category not in monthly_values:
                monthly_values[category.category] = [0.0] * month_count
                yearly_totals[category.category] = 0.0
            monthly_values[category.category][index] = category.total_value
            yearly_totals[category.category] += category.total_items

    analysis = [
        CategoryAnalysis(
            category=category,
            yearly_total=yearly_totals[category],
            yearly_value=sum(values),
            seasonality=calculate_seasonality(values),
            growth=calculate_yearly_growth(values),
        )
        for category, values in monthly_values.items()
    ]
    analysis.sort(key=lambda a: a.yearly_value, reverse=True)
    return analysis
