"""
Composition root for the analytics engine.

The application builds one InventoryAnalyticsEngine with its store and
group context and passes it wherever analytics are needed.
"""

import logging
from typing import Callable, Dict, List, Optional, Union

from .cache import AnalyticsCache
from .config import AnalyticsConfig
from .context import GroupContextProvider
from .database import TransactionStore
from .exceptions import ValidationError
from .ledger import TransactionLedger
from .models import (
    AnalyticsQuery,
    BucketSize,
    CategoryStatistics,
    LocationStatistics,
    MonthlyReport,
    Transaction,
    TransactionInput,
    TrendDataPoint,
    YearlyReport,
)
from .reporting import ReportBuilder
from .statistics import analyze_categories_by_period, analyze_locations_by_period
from .trend_analysis import current_time_ms, generate_trend_data

logger = logging.getLogger(__name__)


class InventoryAnalyticsEngine:
    """Public entry point: mutation recording, ledger reads and reports."""

    def __init__(
        self,
        store: TransactionStore,
        context: GroupContextProvider,
        config: Optional[AnalyticsConfig] = None,
        clock_ms: Callable[[], int] = current_time_ms,
        cache: Optional[AnalyticsCache] = None
    ):
        self.config = config or AnalyticsConfig()
        self.cache = cache or AnalyticsCache()
        self.ledger = TransactionLedger(store, context, self.cache, self.config,
                                        clock_ms=clock_ms)
        self.reports = ReportBuilder(self.ledger, self.cache, self.config)

    @property
    def context(self) -> GroupContextProvider:
        return self.ledger.context

    # ========== Mutations ==========

    def record_transaction(self, tx: Union[TransactionInput, Dict]) -> Transaction:
        return self.ledger.record_transaction(tx)

    def record_product_add(self, *args, **kwargs) -> Transaction:
        return self.ledger.record_product_add(*args, **kwargs)

    def record_product_update(self, *args, **kwargs) -> Transaction:
        return self.ledger.record_product_update(*args, **kwargs)

    def record_product_consumption(self, *args, **kwargs) -> Transaction:
        return self.ledger.record_product_consumption(*args, **kwargs)

    def record_product_expiration(self, *args, **kwargs) -> Transaction:
        return self.ledger.record_product_expiration(*args, **kwargs)

    def record_product_removal(self, *args, **kwargs) -> Transaction:
        return self.ledger.record_product_removal(*args, **kwargs)

    # ========== Reads ==========

    def get_transactions(self, query: Optional[AnalyticsQuery] = None) -> List[Transaction]:
        return self.ledger.get_transactions(query)

    def generate_monthly_report(
        self,
        year: int,
        month: int,
        group_id: Optional[str] = None
    ) -> MonthlyReport:
        return self.reports.generate_monthly_report(year, month, group_id)

    def generate_yearly_report(self, year: int, group_id: Optional[str] = None) -> YearlyReport:
        return self.reports.generate_yearly_report(year, group_id)

    def generate_trend_data(
        self,
        start: int,
        end: int,
        bucket_size: Union[BucketSize, str] = BucketSize.DAY,
        group_id: Optional[str] = None
    ) -> List[TrendDataPoint]:
        """
        Sparse trend series for a time range.

        Args:
            start: Inclusive range start (ms)
            end: Inclusive range end (ms)
            bucket_size: 'day', 'week' or 'month'
            group_id: Group to analyze (defaults to the current group)

        Returns:
            Trend points for non-empty buckets, oldest first
        """
        try:
            bucket = BucketSize(bucket_size)
        except ValueError as e:
            raise ValidationError(f"Unknown bucket size: {bucket_size}") from e

        transactions = self.ledger.get_transactions(
            AnalyticsQuery(start=start, end=end, group_id=group_id))
        return generate_trend_data(transactions, bucket)

    def analyze_categories(
        self,
        group_id: Optional[str] = None,
        period: Optional[Dict[str, int]] = None
    ) -> List[CategoryStatistics]:
        """
        Category statistics for a group, optionally limited to a period.

        Args:
            group_id: Group to analyze (defaults to the current group)
            period: Optional {'start': ms, 'end': ms}
        """
        period = period or {}
        transactions = self.ledger.get_transactions(AnalyticsQuery(
            start=period.get('start'), end=period.get('end'), group_id=group_id))
        return analyze_categories_by_period(transactions, now_ms=self.ledger.now_ms())

    def analyze_locations(
        self,
        group_id: Optional[str] = None,
        period: Optional[Dict[str, int]] = None
    ) -> List[LocationStatistics]:
        """Location statistics for a group, optionally limited to a period."""
        period = period or {}
        transactions = self.ledger.get_transactions(AnalyticsQuery(
            start=period.get('start'), end=period.get('end'), group_id=group_id))
        return analyze_locations_by_period(
            transactions, assumed_capacity=self.config.assumed_location_capacity)

    # ========== Cache lifecycle ==========

    def invalidate_group(self, group_id: Optional[str]) -> int:
        """
        Drop cached reads and reports for a group.

        Called by the membership collaborator when a user joins or leaves.
        """
        removed = self.cache.invalidate_group(group_id)
        logger.info("Cache invalidated for group %s (%d entries)", group_id, removed)
        return removed

    def clear_cache(self) -> None:
        self.cache.clear()
