"""
Centralized configuration for the analytics engine.

Provides cache lifetimes, store timeout, aggregation heuristics and the
category/location allow-lists, with persistence to a JSON settings file.
"""

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

# Config file location (working directory)
CONFIG_FILE = "inventory_analytics.json"

# Section of the settings file owned by the engine
CONFIG_SECTION = "analytics_config"


@dataclass
class AnalyticsConfig:
    """Configuration for caching, storage and aggregation parameters."""

    # Cache lifetimes
    transaction_cache_ttl_seconds: float = 300.0   # Raw ledger reads
    monthly_report_cache_ttl_seconds: float = 300.0
    yearly_report_cache_ttl_seconds: float = 600.0  # Yearly reports live longer

    # Store access
    store_timeout_seconds: float = 5.0

    # Aggregation heuristics
    assumed_location_capacity: int = 100
    top_products_limit: int = 10

    # Yearly report fan-out
    max_report_workers: int = 12

    # Allow-lists (None = any caller-defined key)
    allowed_categories: Optional[List[str]] = None
    allowed_locations: Optional[List[str]] = None

    def is_category_allowed(self, category: str) -> bool:
        """Check a category against the allow-list."""
        return self.allowed_categories is None or category in self.allowed_categories

    def is_location_allowed(self, location: str) -> bool:
        """Check a location against the allow-list."""
        return self.allowed_locations is None or location in self.allowed_locations


_FLOAT_FIELDS = {
    'transaction_cache_ttl_seconds',
    'monthly_report_cache_ttl_seconds',
    'yearly_report_cache_ttl_seconds',
    'store_timeout_seconds',
}
_INT_FIELDS = {
    'assumed_location_capacity',
    'top_products_limit',
    'max_report_workers',
}
_LIST_FIELDS = {'allowed_categories', 'allowed_locations'}


def _coerce(key: str, value: Any) -> Any:
    if key in _FLOAT_FIELDS:
        return float(value)
    if key in _INT_FIELDS:
        return int(value)
    if key in _LIST_FIELDS:
        return None if value is None else [str(v) for v in value]
    return value


def load_config(path: str = CONFIG_FILE) -> AnalyticsConfig:
    """
    Load configuration from file or return defaults.

    Args:
        path: Settings file to read

    Returns:
        AnalyticsConfig instance
    """
    config = AnalyticsConfig()

    if not os.path.exists(path):
        return config

    try:
        with open(path, 'r') as f:
            data = json.load(f)

        section = data.get(CONFIG_SECTION, {})
        for item in fields(AnalyticsConfig):
            if item.name in section:
                setattr(config, item.name, _coerce(item.name, section[item.name]))

    except (json.JSONDecodeError, IOError, AttributeError, TypeError, ValueError) as e:
        # On any error, use defaults
        logger.warning("Could not read analytics config from %s: %s", path, e)
        config = AnalyticsConfig()

    return config


def save_config(config: AnalyticsConfig, path: str = CONFIG_FILE) -> Dict[str, Any]:
    """
    Save configuration to file.

    Args:
        config: AnalyticsConfig to save
        path: Settings file to write

    Returns:
        Dict with success status
    """
    # Load existing settings to preserve other sections
    existing = {}
    if os.path.exists(path):
        try:
            with open(path, 'r') as f:
                existing = json.load(f)
        except (json.JSONDecodeError, IOError):
            existing = {}

    existing[CONFIG_SECTION] = asdict(config)

    try:
        with open(path, 'w') as f:
            json.dump(existing, f, indent=2)
        return {'success': True, 'config': asdict(config)}
    except IOError as e:
        return {'success': False, 'error': str(e)}


def update_config(path: str = CONFIG_FILE, **kwargs) -> Dict[str, Any]:
    """
    Update specific configuration values.

    Args:
        path: Settings file to update
        **kwargs: Configuration fields to update

    Returns:
        Dict with success status and updated config
    """
    config = load_config(path)
    valid_fields = {item.name for item in fields(AnalyticsConfig)}

    updated = []
    for key, value in kwargs.items():
        if key in valid_fields and value is not None:
            setattr(config, key, _coerce(key, value))
            updated.append(key)

    if updated:
        result = save_config(config, path)
        result['updated_fields'] = updated
        return result

    return {'success': True, 'message': 'No changes made', 'config': asdict(config)}


def get_config_summary(config: AnalyticsConfig) -> Dict[str, Any]:
    """
    Get configuration as a grouped summary.

    Returns:
        Dict with all config values
    """
    return {
        'cache': {
            'transactions_ttl_seconds': config.transaction_cache_ttl_seconds,
            'monthly_report_ttl_seconds': config.monthly_report_cache_ttl_seconds,
            'yearly_report_ttl_seconds': config.yearly_report_cache_ttl_seconds,
            'description': 'How long cached reads and reports stay valid'
        },
        'store': {
            'timeout_seconds': config.store_timeout_seconds,
            'description': 'Upper bound on a single store call'
        },
        'aggregation': {
            'assumed_location_capacity': config.assumed_location_capacity,
            'top_products_limit': config.top_products_limit,
            'max_report_workers': config.max_report_workers,
            'description': 'Heuristics used when building statistics and reports'
        },
        'allow_lists': {
            'categories': config.allowed_categories,
            'locations': config.allowed_locations,
            'description': 'Accepted category/location keys (null = any)'
        }
    }
