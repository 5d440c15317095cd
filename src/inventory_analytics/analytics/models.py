"""
Data model for inventory transactions and the analytics derived from them.

Transactions are immutable pydantic models; everything derived from them
(statistics, trend points, reports) is a plain dataclass recomputed per query.
"""

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

QUANTITY_TOLERANCE = 1e-9


class TransactionType(str, Enum):
    """Kind of inventory change recorded by a transaction."""
    ADD = 'add'
    REMOVE = 'remove'
    UPDATE = 'update'
    EXPIRE = 'expire'
    CONSUME = 'consume'


# Types whose quantity_change must not be positive
DEPLETING_TYPES = frozenset({
    TransactionType.REMOVE,
    TransactionType.CONSUME,
    TransactionType.EXPIRE,
})


class BucketSize(str, Enum):
    """Time bucket used for trend series."""
    DAY = 'day'
    WEEK = 'week'
    MONTH = 'month'


def _check_quantities(model: Any) -> Any:
    """Shared quantity checks for transactions and transaction inputs."""
    if model.previous_quantity < 0:
        raise ValueError('previous_quantity must not be negative')
    if model.new_quantity < 0:
        raise ValueError('new_quantity must not be negative')

    expected = model.previous_quantity + model.quantity_change
    if not math.isclose(model.new_quantity, expected,
                        rel_tol=0.0, abs_tol=QUANTITY_TOLERANCE):
        raise ValueError(
            f'new_quantity ({model.new_quantity}) must equal previous_quantity '
            f'({model.previous_quantity}) + quantity_change '
            f'({model.quantity_change})'
        )

    tx_type = model.transaction_type
    if tx_type == TransactionType.ADD and model.quantity_change < 0:
        raise ValueError('add transactions must have a non-negative quantity_change')
    if tx_type in DEPLETING_TYPES and model.quantity_change > 0:
        raise ValueError(
            f'{tx_type.value} transactions must have a non-positive quantity_change')
    return model


class TransactionInput(BaseModel):
    """Caller-supplied transaction; the ledger fills id, timestamp and user."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    product_id: str = Field(min_length=1)
    product_name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    location: str = Field(min_length=1)
    transaction_type: TransactionType
    quantity_change: float
    previous_quantity: float
    new_quantity: float
    cost: Optional[float] = Field(default=None, ge=0)
    expiry_date: Optional[str] = None
    group_id: Optional[str] = None
    id: Optional[str] = None
    timestamp: Optional[int] = Field(default=None, ge=0)
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode='after')
    def _validate_quantities(self) -> 'TransactionInput':
        return _check_quantities(self)


class Transaction(BaseModel):
    """Immutable record of one inventory-quantity change."""

    model_config = ConfigDict(frozen=True)

    id: str
    product_id: str
    product_name: str
    category: str
    location: str
    transaction_type: TransactionType
    quantity_change: float
    previous_quantity: float
    new_quantity: float
    cost: Optional[float] = Field(default=None, ge=0)
    expiry_date: Optional[str] = None
    user_id: str
    user_name: str
    group_id: Optional[str] = None
    timestamp: int = Field(ge=0)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode='after')
    def _validate_quantities(self) -> 'Transaction':
        return _check_quantities(self)

    @property
    def quantity(self) -> float:
        """Absolute size of the change."""
        return abs(self.quantity_change)

    @property
    def value(self) -> float:
        """Cost-weighted size of the change (0 when no cost is known)."""
        return self.cost * self.quantity if self.cost else 0.0

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the store's document shape."""
        return self.model_dump(mode='json')


class AnalyticsQuery(BaseModel):
    """Filters for a ledger read. Every field is optional."""

    model_config = ConfigDict(frozen=True)

    start: Optional[int] = None
    end: Optional[int] = None
    categories: Optional[List[str]] = None
    locations: Optional[List[str]] = None
    products: Optional[List[str]] = None
    transaction_types: Optional[List[TransactionType]] = None
    user_id: Optional[str] = None
    group_id: Optional[str] = None
    limit: Optional[int] = Field(default=None, gt=0)

    def normalized(self) -> Dict[str, Any]:
        """Canonical form used for cache keys: unset fields dropped, lists sorted."""
        data = self.model_dump(mode='json', exclude_none=True)
        for key in ('categories', 'locations', 'products', 'transaction_types'):
            if key in data:
                data[key] = sorted(set(data[key]))
        return data


@dataclass
class CategoryStatistics:
    category: str
    total_items: float
    total_value: float
    average_quantity: float
    most_added_product: Optional[str]
    most_consumed_product: Optional[str]
    expiration_rate: float
    cost_per_item: float
    trend: str
    monthly_growth: float


@dataclass
class LocationStatistics:
    location: str
    total_items: float
    total_value: float
    utilization_rate: float
    expiration_rate: float
    average_storage_duration: float
    most_stored_category: Optional[str]
    capacity_utilization: float


@dataclass
class ProductRanking:
    product_name: str
    category: str
    total_quantity: float
    total_value: float
    frequency: int


@dataclass
class TrendDataPoint:
    """Aggregated activity inside one time bucket."""
    period: str
    timestamp: int
    total_items: float = 0.0
    total_value: float = 0.0
    added_items: float = 0.0
    consumed_items: float = 0.0
    expired_items: float = 0.0
    average_cost: float = 0.0
    category_distribution: Dict[str, float] = field(default_factory=dict)
    location_distribution: Dict[str, float] = field(default_factory=dict)


@dataclass
class MonthlyTrends:
    """Percentage change of each metric versus the previous month."""
    addition_trend: float = 0.0
    consumption_trend: float = 0.0
    cost_trend: float = 0.0
    expiration_trend: float = 0.0


@dataclass
class MonthlyReport:
    year: int
    month: int
    period: str
    group_id: Optional[str]
    total_transactions: int
    total_items_added: float
    total_items_consumed: float
    total_items_expired: float
    total_value: float
    average_cost: float
    category_breakdown: List[CategoryStatistics]
    location_breakdown: List[LocationStatistics]
    top_products: List[ProductRanking]
    trends: MonthlyTrends
    insights: List[str]
    recommendations: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SeasonalPattern:
    season: str
    average_activity: float
    dominant_categories: List[str]


@dataclass
class AnnualTrends:
    peak_month: str
    lowest_month: str
    average_monthly_growth: float
    seasonal_patterns: List[SeasonalPattern]


@dataclass
class CategoryAnalysis:
    category: str
    yearly_total: float
    yearly_value: float
    seasonality: float
    growth: float


@dataclass
class CostAnalysis:
    total_spent: float
    average_monthly_spend: float
    cost_efficiency: float
    waste_value: float
    savings_opportunities: List[str]


@dataclass
class YearlyReport:
    year: int
    group_id: Optional[str]
    total_transactions: int
    total_value: float
    monthly_breakdown: List[MonthlyReport]
    annual_trends: AnnualTrends
    category_analysis: List[CategoryAnalysis]
    cost_analysis: CostAnalysis
    insights: List[str]
    recommendations: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class UserIdentity:
    """Current user as reported by the group context provider."""
    user_id: str
    display_name: Optional[str] = None
