"""
Monthly and yearly report generation.

Reports are assembled from ledger reads and the pure aggregation modules,
then cached until the group records another transaction.
"""

import calendar
import copy
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from .cache import AnalyticsCache, make_cache_key
from .config import AnalyticsConfig
from .exceptions import ComputationError, ValidationError
from .insights import (
    generate_monthly_insights,
    generate_monthly_recommendations,
    generate_yearly_insights,
    generate_yearly_recommendations,
)
from .ledger import TransactionLedger
from .models import (
    AnalyticsQuery,
    AnnualTrends,
    CostAnalysis,
    MonthlyReport,
    MonthlyTrends,
    Transaction,
    TransactionType,
    YearlyReport,
)
from .seasonal import (
    analyze_seasonal_patterns,
    analyze_yearly_categories,
    category_value_totals,
)
from .statistics import (
    analyze_categories_by_period,
    analyze_locations_by_period,
    analyze_top_products,
)
from .trend_analysis import percent_change, safe_ratio, top_entry

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12

# Savings heuristics for the yearly cost analysis
WASTE_SHARE_ALERT = 0.10
COST_EFFICIENCY_TARGET = 80.0
CATEGORY_SPEND_SHARE_ALERT = 0.30


def month_window(year: int, month: int) -> Tuple[int, int]:
    """
    Inclusive [start, end] timestamps (ms, UTC) of a calendar month.
    """
    if not 1 <= month <= MONTHS_PER_YEAR:
        raise ValidationError(f"Month must be between 1 and 12, got {month}")
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == MONTHS_PER_YEAR:
        next_start = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        next_start = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return int(start.timestamp() * 1000), int(next_start.timestamp() * 1000) - 1


def previous_month(year: int, month: int) -> Tuple[int, int]:
    return (year - 1, MONTHS_PER_YEAR) if month == 1 else (year, month - 1)


def _sum_quantity(transactions: List[Transaction], tx_type: TransactionType) -> float:
    return sum(t.quantity for t in transactions if t.transaction_type == tx_type)


def _sum_value(transactions: List[Transaction]) -> float:
    return sum(t.value for t in transactions)


class ReportBuilder:
    """Builds (and caches) monthly and yearly reports for a group."""

    def __init__(
        self,
        ledger: TransactionLedger,
        cache: AnalyticsCache,
        config: AnalyticsConfig
    ):
        self.ledger = ledger
        self.cache = cache
        self.config = config

    def _resolve_group(self, group_id: Optional[str]) -> Optional[str]:
        return group_id or self.ledger.context.get_current_group_id()

    def _cached_report(self, key: str):
        """Private copy of a cached report, or None."""
        cached = self.cache.get(key)
        return copy.deepcopy(cached) if cached is not None else None

    def _cache_report(self, key: str, report, group_id: Optional[str], ttl: float) -> None:
        # Cache entries are never shared with callers
        try:
            self.cache.set(key, copy.deepcopy(report), group_id, ttl)
        except Exception as e:
            logger.warning("Skipping report cache write: %s", e)

    def _month_transactions(
        self,
        year: int,
        month: int,
        group_id: Optional[str]
    ) -> List[Transaction]:
        start, end = month_window(year, month)
        return self.ledger.get_transactions(
            AnalyticsQuery(start=start, end=end, group_id=group_id))

    def calculate_trends(
        self,
        year: int,
        month: int,
        group_id: Optional[str],
        current: Optional[List[Transaction]] = None
    ) -> MonthlyTrends:
        """
        Month-over-month percentage change of each headline metric.

        Args:
            year: Report year
            month: Report month (1-12)
            group_id: Group to analyze
            current: The month's transactions, if already fetched

        Returns:
            MonthlyTrends (0% for metrics with no prior-month activity)
        """
        if current is None:
            current = self._month_transactions(year, month, group_id)
        prev_year, prev_month = previous_month(year, month)
        previous = self._month_transactions(prev_year, prev_month, group_id)

        return MonthlyTrends(
            addition_trend=percent_change(
                _sum_quantity(previous, TransactionType.ADD),
                _sum_quantity(current, TransactionType.ADD)),
            consumption_trend=percent_change(
                _sum_quantity(previous, TransactionType.CONSUME),
                _sum_quantity(current, TransactionType.CONSUME)),
            cost_trend=percent_change(_sum_value(previous), _sum_value(current)),
            expiration_trend=percent_change(
                _sum_quantity(previous, TransactionType.EXPIRE),
                _sum_quantity(current, TransactionType.EXPIRE)),
        )

    def generate_monthly_report(
        self,
        year: int,
        month: int,
        group_id: Optional[str] = None
    ) -> MonthlyReport:
        """
        Generate the report for one calendar month.

        Args:
            year: Report year
            month: Report month (1-12)
            group_id: Group to report on (defaults to the current group)

        Returns:
            MonthlyReport
        """
        month_window(year, month)
        group_id = self._resolve_group(group_id)

        cache_key = make_cache_key('monthly', {'year': year, 'month': month, 'group_id': group_id})
        cached = self._cached_report(cache_key)
        if cached is not None:
            return cached

        transactions = self._month_transactions(year, month, group_id)
        trends = self.calculate_trends(year, month, group_id, current=transactions)

        try:
            report = self._build_monthly_report(year, month, group_id, transactions, trends)
        except (ArithmeticError, TypeError, ValueError) as e:
            raise ComputationError(
                f"Failed to aggregate {year}-{month:02d}: {e}") from e

        self._cache_report(cache_key, report, group_id,
                           self.config.monthly_report_cache_ttl_seconds)
        logger.info("Monthly report generated: %s (%d transactions)",
                    report.period, report.total_transactions)
        return report

    def _build_monthly_report(
        self,
        year: int,
        month: int,
        group_id: Optional[str],
        transactions: List[Transaction],
        trends: MonthlyTrends
    ) -> MonthlyReport:
        items_added = _sum_quantity(transactions, TransactionType.ADD)
        items_consumed = _sum_quantity(transactions, TransactionType.CONSUME)
        items_expired = _sum_quantity(transactions, TransactionType.EXPIRE)
        total_value = _sum_value(transactions)

        category_breakdown = analyze_categories_by_period(
            transactions, now_ms=self.ledger.now_ms())
        location_breakdown = analyze_locations_by_period(
            transactions, assumed_capacity=self.config.assumed_location_capacity)
        top_products = analyze_top_products(transactions)[:self.config.top_products_limit]

        return MonthlyReport(
            year=year,
            month=month,
            period=f"{year}-{month:02d}",
            group_id=group_id,
            total_transactions=len(transactions),
            total_items_added=items_added,
            total_items_consumed=items_consumed,
            total_items_expired=items_expired,
            total_value=total_value,
            average_cost=safe_ratio(total_value, items_added),
            category_breakdown=category_breakdown,
            location_breakdown=location_breakdown,
            top_products=top_products,
            trends=trends,
            insights=generate_monthly_insights(
                len(transactions), items_added, items_consumed,
                items_expired, total_value),
            recommendations=generate_monthly_recommendations(category_breakdown),
        )

    def generate_yearly_report(
        self,
        year: int,
        group_id: Optional[str] = None
    ) -> YearlyReport:
        """
        Generate the report for a calendar year.

        The twelve monthly reports are built concurrently; each reads only
        its own month (and the month before it).

        Args:
            year: Report year
            group_id: Group to report on (defaults to the current group)

        Returns:
            YearlyReport
        """
        group_id = self._resolve_group(group_id)

        cache_key = make_cache_key('yearly', {'year': year, 'group_id': group_id})
        cached = self._cached_report(cache_key)
        if cached is not None:
            return cached

        workers = max(1, min(self.config.max_report_workers, MONTHS_PER_YEAR))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(self.generate_monthly_report, year, month, group_id)
                for month in range(1, MONTHS_PER_YEAR + 1)
            ]
            monthly_reports = [future.result() for future in futures]

        try:
            report = self._build_yearly_report(year, group_id, monthly_reports)
        except (ArithmeticError, TypeError, ValueError) as e:
            raise ComputationError(f"Failed to aggregate {year}: {e}") from e

        self._cache_report(cache_key, report, group_id,
                           self.config.yearly_report_cache_ttl_seconds)
        logger.info("Yearly report generated: %d (%d transactions)",
                    year, report.total_transactions)
        return report

    def _build_yearly_report(
        self,
        year: int,
        group_id: Optional[str],
        monthly_reports: List[MonthlyReport]
    ) -> YearlyReport:
        values = [r.total_value for r in monthly_reports]

        # First month wins ties for both peak and lowest
        peak_index = max(range(len(values)), key=lambda i: (values[i], -i))
        lowest_index = min(range(len(values)), key=lambda i: (values[i], i))
        peak_month = calendar.month_name[monthly_reports[peak_index].month]
        lowest_month = calendar.month_name[monthly_reports[lowest_index].month]

        growth_rates = [
            percent_change(values[i - 1], values[i]) for i in range(1, len(values))
        ]
        average_growth = safe_ratio(sum(growth_rates), len(growth_rates))

        category_analysis = analyze_yearly_categories(monthly_reports)
        cost_analysis = self.analyze_costs(monthly_reports)

        items_added = sum(r.total_items_added for r in monthly_reports)
        items_expired = sum(r.total_items_expired for r in monthly_reports)

        return YearlyReport(
            year=year,
            group_id=group_id,
            total_transactions=sum(r.total_transactions for r in monthly_reports),
            total_value=sum(values),
            monthly_breakdown=monthly_reports,
            annual_trends=AnnualTrends(
                peak_month=peak_month,
                lowest_month=lowest_month,
                average_monthly_growth=average_growth,
                seasonal_patterns=analyze_seasonal_patterns(monthly_reports),
            ),
            category_analysis=category_analysis,
            cost_analysis=cost_analysis,
            insights=generate_yearly_insights(
                peak_month, lowest_month, average_growth, items_added, items_expired),
            recommendations=generate_yearly_recommendations(category_analysis),
        )

    @staticmethod
    def analyze_costs(monthly_reports: List[MonthlyReport]) -> CostAnalysis:
        """
        Spend, efficiency and waste over a set of monthly reports.

        Returns:
            CostAnalysis with savings opportunities
        """
        total_spent = sum(r.total_value for r in monthly_reports)
        total_added = sum(r.total_items_added for r in monthly_reports)
        total_consumed = sum(r.total_items_consumed for r in monthly_reports)
        total_expired = sum(r.total_items_expired for r in monthly_reports)

        cost_efficiency = safe_ratio(total_consumed, total_added) * 100
        waste_value = safe_ratio(total_expired, total_added) * total_spent

        opportunities = []
        if waste_value > total_spent * WASTE_SHARE_ALERT:
            opportunities.append(
                f'Reducing expired stock could save about {round(waste_value, 2)} per year.')
        if total_added > 0 and cost_efficiency < COST_EFFICIENCY_TARGET:
            opportunities.append(
                'Better purchase planning would improve how much stock gets used.')

        category_totals = category_value_totals(monthly_reports)
        top_category = top_entry(category_totals)
        if top_category and category_totals[top_category] > total_spent * CATEGORY_SPEND_SHARE_ALERT:
            opportunities.append(
                f'{top_category} accounts for a large share of spending. '
                'Reviewing those purchases could save significantly.')

        return CostAnalysis(
            total_spent=total_spent,
            average_monthly_spend=total_spent / MONTHS_PER_YEAR,
            cost_efficiency=cost_efficiency,
            waste_value=waste_value,
            savings_opportunities=opportunities,
        )
