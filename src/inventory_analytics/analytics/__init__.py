"""
Analytics package for inventory transactions, statistics, and reports.

This package provides:
- An append-only, group-scoped transaction ledger (SQLite-backed)
- Category, location and product statistics over any period
- Sparse trend series in day, week or month buckets
- Monthly and yearly reports with seasonal patterns, insights and
  recommendations
- A TTL cache invalidated on every write to a group
"""

from .exceptions import (
    InventoryAnalyticsError,
    ValidationError,
    AuthContextError,
    StoreUnavailableError,
    ComputationError,
)
from .models import (
    TransactionType,
    BucketSize,
    TransactionInput,
    Transaction,
    AnalyticsQuery,
    CategoryStatistics,
    LocationStatistics,
    ProductRanking,
    TrendDataPoint,
    MonthlyTrends,
    MonthlyReport,
    SeasonalPattern,
    AnnualTrends,
    CategoryAnalysis,
    CostAnalysis,
    YearlyReport,
    UserIdentity,
)
from .database import (
    TransactionStore,
    SQLiteTransactionStore,
)
from .context import (
    GroupContextProvider,
    StaticGroupContext,
)
from .cache import (
    AnalyticsCache,
    make_cache_key,
)
from .statistics import (
    analyze_categories_by_period,
    analyze_locations_by_period,
    analyze_top_products,
)
from .trend_analysis import (
    detect_trend,
    calculate_rolling_growth,
    generate_trend_data,
)
from .seasonal import (
    analyze_seasonal_patterns,
    analyze_yearly_categories,
    calculate_seasonality,
)
from .config import (
    load_config,
    save_config,
    update_config,
    get_config_summary,
    AnalyticsConfig,
)
from .engine import InventoryAnalyticsEngine
from .migration import (
    needs_migration,
    migrate_catalog,
)

__all__ = [
    # Errors
    'InventoryAnalyticsError',
    'ValidationError',
    'AuthContextError',
    'StoreUnavailableError',
    'ComputationError',
    # Models
    'TransactionType',
    'BucketSize',
    'TransactionInput',
    'Transaction',
    'AnalyticsQuery',
    'CategoryStatistics',
    'LocationStatistics',
    'ProductRanking',
    'TrendDataPoint',
    'MonthlyTrends',
    'MonthlyReport',
    'SeasonalPattern',
    'AnnualTrends',
    'CategoryAnalysis',
    'CostAnalysis',
    'YearlyReport',
    'UserIdentity',
    # Store
    'TransactionStore',
    'SQLiteTransactionStore',
    # Group context
    'GroupContextProvider',
    'StaticGroupContext',
    # Cache
    'AnalyticsCache',
    'make_cache_key',
    # Statistics
    'analyze_categories_by_period',
    'analyze_locations_by_period',
    'analyze_top_products',
    # Trends
    'detect_trend',
    'calculate_rolling_growth',
    'generate_trend_data',
    # Seasonal
    'analyze_seasonal_patterns',
    'analyze_yearly_categories',
    'calculate_seasonality',
    # Config
    'load_config',
    'save_config',
    'update_config',
    'get_config_summary',
    'AnalyticsConfig',
    # Engine
    'InventoryAnalyticsEngine',
    # Migration
    'needs_migration',
    'migrate_catalog',
]
