"""
Category, location and product statistics over a window of transactions.

These are pure aggregations: the caller supplies the transactions (usually a
ledger read for the report period) and gets fresh statistics back.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .models import (
    CategoryStatistics,
    LocationStatistics,
    ProductRanking,
    Transaction,
    TransactionType,
)
from .trend_analysis import (
    calculate_rolling_growth,
    current_time_ms,
    detect_trend,
    safe_ratio,
    top_entry,
)


DEFAULT_LOCATION_CAPACITY = 100

REMOVAL_TYPES = (TransactionType.CONSUME, TransactionType.EXPIRE, TransactionType.REMOVE)


@dataclass
class _GroupTotals:
    """Running totals for one category or location."""
    transactions: List[Transaction] = field(default_factory=list)
    total_items: float = 0.0
    total_value: float = 0.0
    added_items: float = 0.0
    consumed_items: float = 0.0
    expired_items: float = 0.0
    removed_items: float = 0.0
    products: Set[str] = field(default_factory=set)
    categories: Dict[str, float] = field(default_factory=dict)

    def add(self, t: Transaction) -> None:
        quantity = t.quantity
        self.transactions.append(t)
        self.total_items += quantity
        self.total_value += t.value
        self.products.add(t.product_name)
        self.categories[t.category] = self.categories.get(t.category, 0) + quantity

        if t.transaction_type == TransactionType.ADD:
            self.added_items += quantity
        elif t.transaction_type == TransactionType.CONSUME:
            self.consumed_items += quantity
        elif t.transaction_type == TransactionType.EXPIRE:
            self.expired_items += quantity

        if t.transaction_type in REMOVAL_TYPES:
            self.removed_items += quantity


def _group_by(transactions: List[Transaction], attribute: str) -> Dict[str, _GroupTotals]:
    groups: Dict[str, _GroupTotals] = {}
    for t in transactions:
        key = getattr(t, attribute)
        if key not in groups:
            groups[key] = _GroupTotals()
        groups[key].add(t)
    return groups


def _top_product(transactions: List[Transaction], tx_type: TransactionType) -> Optional[str]:
    totals: Dict[str, float] = {}
    for t in transactions:
        if t.transaction_type == tx_type:
            totals[t.product_name] = totals.get(t.product_name, 0) + t.quantity
    return top_entry(totals)


def analyze_categories_by_period(
    transactions: List[Transaction],
    now_ms: Optional[int] = None
) -> List[CategoryStatistics]:
    """
    Per-category statistics for a set of transactions.

    Args:
        transactions: Transactions in the analysis window
        now_ms: Reference time for the rolling monthly growth window

    Returns:
        CategoryStatistics sorted by total value, highest first
    """
    if now_ms is None:
        now_ms = current_time_ms()

    stats = []
    for category, data in _group_by(transactions, 'category').items():
        stats.append(CategoryStatistics(
            category=category,
            total_items=data.total_items,
            total_value=data.total_value,
            average_quantity=safe_ratio(data.total_items, len(data.products)),
            most_added_product=_top_product(data.transactions, TransactionType.ADD),
            most_consumed_product=_top_product(data.transactions, TransactionType.CONSUME),
            expiration_rate=safe_ratio(data.expired_items, data.added_items) * 100,
            cost_per_item=safe_ratio(data.total_value, data.total_items),
            trend=detect_trend(data.transactions),
            monthly_growth=calculate_rolling_growth(data.transactions, now_ms),
        ))

    stats.sort(key=lambda s: s.total_value, reverse=True)
    return stats


def analyze_locations_by_period(
    transactions: List[Transaction],
    assumed_capacity: int = DEFAULT_LOCATION_CAPACITY
) -> List[LocationStatistics]:
    """
    Per-location statistics for a set of transactions.

    Args:
        transactions: Transactions in the analysis window
        assumed_capacity: Item count treated as a full location

    Returns:
        LocationStatistics sorted by total value, highest first
    """
    stats = []
    for location, data in _group_by(transactions, 'location').items():
        timestamps = [t.timestamp for t in data.transactions]
        storage_days = (max(timestamps) - min(timestamps)) / (1000 * 60 * 60 * 24)

        stats.append(LocationStatistics(
            location=location,
            total_items=data.total_items,
            total_value=data.total_value,
            utilization_rate=safe_ratio(data.removed_items, data.added_items) * 100,
            expiration_rate=safe_ratio(data.expired_items, data.total_items) * 100,
            average_storage_duration=storage_days,
            most_stored_category=top_entry(data.categories),
            capacity_utilization=(
                min(safe_ratio(data.total_items, assumed_capacity), 1.0) * 100),
        ))

    stats.sort(key=lambda s: s.total_value, reverse=True)
    return stats


def analyze_top_products(transactions: List[Transaction]) -> List[ProductRanking]:
    """
    Rank products by total value.

    Returns:
        ProductRanking list, highest value first
    """
    products: Dict[str, ProductRanking] = {}

    for t in transactions:
        ranking = products.get(t.product_name)
        if ranking is None:
            ranking = ProductRanking(
                product_name=t.product_name,
                category=t.category,
                total_quantity=0.0,
                total_value=0.0,
                frequency=0,
            )
            products[t.product_name] = ranking
        ranking.total_quantity += t.quantity
        ranking.total_value += t.value
        ranking.frequency += 1

    return sorted(products.values(), key=lambda p: p.total_value, reverse=True)
