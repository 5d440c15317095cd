"""
Trend analysis utilities for inventory activity.

Provides time bucketing for trend series, half-split trend detection and
percentage-change helpers. Everything here is pure.
"""

import time
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from .models import BucketSize, Transaction, TransactionType, TrendDataPoint

DAY_MS = 24 * 60 * 60 * 1000

# Half-over-half change needed before a trend is reported
TREND_THRESHOLD_PERCENT = 10.0

# Fewer transactions than this are always 'stable'
MIN_TRANSACTIONS_FOR_TREND = 4

# Rolling window used for category monthly growth
GROWTH_WINDOW_DAYS = 30


def current_time_ms() -> int:
    return int(time.time() * 1000)


def safe_ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is 0."""
    return numerator / denominator if denominator else 0.0


def percent_change(previous: float, current: float) -> float:
    """
    Percentage change from previous to current.

    Returns 0 when there is no previous value to compare against.
    """
    if not previous:
        return 0.0
    return (current - previous) / previous * 100


def sum_quantity(transactions: Iterable[Transaction]) -> float:
    return sum(t.quantity for t in transactions)


def detect_trend(transactions: List[Transaction]) -> str:
    """
    Detect activity trend by comparing chronological halves.

    Args:
        transactions: Transactions in any order

    Returns:
        'increasing', 'decreasing', or 'stable'
    """
    if len(transactions) < MIN_TRANSACTIONS_FOR_TREND:
        return 'stable'

    ordered = sorted(transactions, key=lambda t: t.timestamp)
    midpoint = len(ordered) // 2
    first_half = sum_quantity(ordered[:midpoint])
    second_half = sum_quantity(ordered[midpoint:])

    if first_half == 0:
        return 'increasing' if second_half > 0 else 'stable'

    difference = (second_half - first_half) / first_half * 100
    if difference > TREND_THRESHOLD_PERCENT:
        return 'increasing'
    if difference < -TREND_THRESHOLD_PERCENT:
        return 'decreasing'
    return 'stable'


def calculate_rolling_growth(transactions: List[Transaction], now_ms: int) -> float:
    """
    Compare the last 30 days of activity with the 30 days before.

    The window rolls with 'now', not with any calendar month.

    Returns:
        Percentage growth, 0 when the earlier window is empty
    """
    window = GROWTH_WINDOW_DAYS * DAY_MS
    recent_start = now_ms - window
    prior_start = recent_start - window

    recent = sum_quantity(t for t in transactions if recent_start <= t.timestamp <= now_ms)
    prior = sum_quantity(t for t in transactions if prior_start <= t.timestamp < recent_start)

    return percent_change(prior, recent)


def _to_datetime(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


def _to_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def get_bucket(timestamp_ms: int, bucket_size: BucketSize) -> Tuple[str, int]:
    """
    Calendar bucket containing a timestamp (UTC).

    Weeks start on Monday and are labelled by the week start's month and its
    week-of-month, e.g. '2024-03-W2'.

    Returns:
        Tuple of (period label, bucket start in ms)
    """
    moment = _to_datetime(timestamp_ms)
    day_start = moment.replace(hour=0, minute=0, second=0, microsecond=0)

    if bucket_size == BucketSize.DAY:
        return day_start.strftime('%Y-%m-%d'), _to_ms(day_start)

    if bucket_size == BucketSize.WEEK:
        week_start = day_start - timedelta(days=day_start.weekday())
        week_of_month = (week_start.day - 1) // 7 + 1
        label = f"{week_start.year}-{week_start.month:02d}-W{week_of_month}"
        return label, _to_ms(week_start)

    if bucket_size == BucketSize.MONTH:
        month_start = day_start.replace(day=1)
        return month_start.strftime('%Y-%m'), _to_ms(month_start)

    raise ValueError(f"Unknown bucket size: {bucket_size}")


def generate_trend_data(
    transactions: List[Transaction],
    bucket_size: BucketSize = BucketSize.DAY
) -> List[TrendDataPoint]:
    """
    Bucket transactions into a sparse trend series.

    Args:
        transactions: Transactions in any order
        bucket_size: 'day', 'week' or 'month'

    Returns:
        One point per non-empty bucket, oldest first
    """
    bucket_size = BucketSize(bucket_size)
    buckets: Dict[str, TrendDataPoint] = {}

    for t in transactions:
        period, start = get_bucket(t.timestamp, bucket_size)
        point = buckets.get(period)
        if point is None:
            point = TrendDataPoint(period=period, timestamp=start)
            buckets[period] = point

        quantity = t.quantity
        point.total_items += quantity
        point.total_value += t.value

        if t.transaction_type == TransactionType.ADD:
            point.added_items += quantity
        elif t.transaction_type == TransactionType.CONSUME:
            point.consumed_items += quantity
        elif t.transaction_type == TransactionType.EXPIRE:
            point.expired_items += quantity

        point.category_distribution[t.category] = (
            point.category_distribution.get(t.category, 0) + quantity)
        point.location_distribution[t.location] = (
            point.location_distribution.get(t.location, 0) + quantity)

    for point in buckets.values():
        point.average_cost = safe_ratio(point.total_value, point.total_items)

    return sorted(buckets.values(), key=lambda p: p.timestamp)


def top_entry(totals: Dict[str, float]) -> Optional[str]:
    """Key with the largest total; ties go to the first inserted key."""
    best_key = None
    best_value = None
    for key, value in totals.items():
        if best_value is None or value > best_value:
            best_key, best_value = key, value
    return best_key
