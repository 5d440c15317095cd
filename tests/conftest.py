"""Shared pytest fixtures for inventory analytics tests."""

from __future__ import annotations

from datetime import datetime, timezone
from itertools import count
from typing import Callable, Optional

import pytest

from inventory_analytics.analytics.config import AnalyticsConfig
from inventory_analytics.analytics.context import StaticGroupContext
from inventory_analytics.analytics.database import SQLiteTransactionStore
from inventory_analytics.analytics.engine import InventoryAnalyticsEngine
from inventory_analytics.analytics.models import (
    DEPLETING_TYPES,
    Transaction,
    TransactionType,
    UserIdentity,
)

GROUP_ID = "family-1"
OTHER_GROUP_ID = "family-2"
USER = UserIdentity("user-1", "Alex")

DAY_MS = 24 * 60 * 60 * 1000


def utc_ms(year: int, month: int, day: int, hour: int = 12) -> int:
    """Epoch milliseconds for a UTC wall-clock time."""
    return int(datetime(year, month, day, hour, tzinfo=timezone.utc).timestamp() * 1000)


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, now: int):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, days: float = 0, ms: int = 0) -> None:
        self.now += int(days * DAY_MS) + ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(utc_ms(2024, 3, 1, 9))


@pytest.fixture
def store(tmp_path) -> SQLiteTransactionStore:
    return SQLiteTransactionStore(str(tmp_path / "transactions.db"))


@pytest.fixture
def context() -> StaticGroupContext:
    return StaticGroupContext(user=USER, group_id=GROUP_ID)


@pytest.fixture
def config() -> AnalyticsConfig:
    return AnalyticsConfig()


@pytest.fixture
def engine(store, context, config, clock) -> InventoryAnalyticsEngine:
    return InventoryAnalyticsEngine(store, context, config=config, clock_ms=clock)


@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """Factory for valid transactions used by the pure aggregation tests."""
    ids = count(1)

    def _make(
        tx_type: TransactionType = TransactionType.ADD,
        quantity: float = 1.0,
        product: str = "Milk",
        category: str = "dairy",
        location: str = "fridge",
        cost: Optional[float] = None,
        timestamp: int = utc_ms(2024, 3, 1),
        group_id: Optional[str] = GROUP_ID,
    ) -> Transaction:
        if tx_type in DEPLETING_TYPES:
            change, previous, new = -quantity, quantity, 0.0
        else:
            change, previous, new = quantity, 0.0, quantity
        return Transaction(
            id=f"tx-{next(ids)}",
            product_id=product.lower(),
            product_name=product,
            category=category,
            location=location,
            transaction_type=tx_type,
            quantity_change=change,
            previous_quantity=previous,
            new_quantity=new,
            cost=cost,
            user_id=USER.user_id,
            user_name=USER.display_name,
            group_id=group_id,
            timestamp=timestamp,
        )

    return _make


@pytest.fixture
def record_at(engine) -> Callable[..., Transaction]:
    """Record a transaction into the engine at an explicit timestamp."""

    def _record(
        tx_type: str,
        quantity: float,
        timestamp: int,
        product: str = "Milk",
        category: str = "dairy",
        location: str = "fridge",
        cost: Optional[float] = None,
        group_id: Optional[str] = GROUP_ID,
    ) -> Transaction:
        depleting = TransactionType(tx_type) in DEPLETING_TYPES
        return engine.record_transaction({
            "product_id": product.lower(),
            "product_name": product,
            "category": category,
            "location": location,
            "transaction_type": tx_type,
            "quantity_change": -quantity if depleting else quantity,
            "previous_quantity": quantity if depleting else 0,
            "new_quantity": 0 if depleting else quantity,
            "cost": cost,
            "group_id": group_id,
            "timestamp": timestamp,
        })

    return _record
