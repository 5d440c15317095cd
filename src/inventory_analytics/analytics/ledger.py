"""
Transaction ledger - append-only write path and filtered, cached read path.
"""

import logging
import threading
import uuid
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .cache import AnalyticsCache, make_cache_key
from .config import AnalyticsConfig
from .context import GroupContextProvider
from .database import TransactionStore
from .exceptions import AuthContextError, StoreUnavailableError, ValidationError
from .trend_analysis import current_time_ms
from .models import (
    AnalyticsQuery,
    Transaction,
    TransactionInput,
    TransactionType,
    UserIdentity,
)

logger = logging.getLogger(__name__)


def _validation_message(error: PydanticValidationError) -> str:
    return '; '.join(
        f"{'.'.join(str(p) for p in e['loc']) or 'transaction'}: {e['msg']}"
        for e in error.errors()
    )


class TransactionLedger:
    """
    Group-scoped access to the transaction store.

    Writes are validated, stamped and appended, then the writer's group is
    dropped from the cache. Reads go through the cache.
    """

    def __init__(
        self,
        store: TransactionStore,
        context: GroupContextProvider,
        cache: AnalyticsCache,
        config: AnalyticsConfig,
        clock_ms: Callable[[], int] = current_time_ms
    ):
        self.store = store
        self.context = context
        self.cache = cache
        self.config = config
        self._clock_ms = clock_ms
        self._last_timestamp = 0
        self._timestamp_lock = threading.Lock()

    def now_ms(self) -> int:
        return self._clock_ms()

    # ========== Write path ==========

    def _next_timestamp(self) -> int:
        """Strictly increasing creation timestamp in ms."""
        with self._timestamp_lock:
            timestamp = max(self._clock_ms(), self._last_timestamp + 1)
            self._last_timestamp = timestamp
            return timestamp

    def _require_user(self) -> UserIdentity:
        user = self.context.get_current_user()
        if user is None:
            raise AuthContextError("User not authenticated")
        return user

    def _check_allow_lists(self, category: str, location: str) -> None:
        if not self.config.is_category_allowed(category):
            raise ValidationError(f"Unknown category: {category}")
        if not self.config.is_location_allowed(location):
            raise ValidationError(f"Unknown location: {location}")

    def record_transaction(
        self,
        tx: Union[TransactionInput, Dict[str, Any]]
    ) -> Transaction:
        """
        Validate, stamp and append a transaction.

        Args:
            tx: Transaction input (id, timestamp and user are filled if absent)

        Returns:
            The stored Transaction
        """
        try:
            if not isinstance(tx, TransactionInput):
                tx = TransactionInput.model_validate(tx)
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e

        self._check_allow_lists(tx.category, tx.location)

        user_id = tx.user_id
        user_name = tx.user_name
        if user_id is None:
            user = self._require_user()
            user_id = user.user_id
            user_name = user_name or user.display_name
        user_name = user_name or 'Unknown'

        try:
            transaction = Transaction(
                id=tx.id or f"{tx.transaction_type.value}_{tx.product_id}_{uuid.uuid4().hex}",
                product_id=tx.product_id,
                product_name=tx.product_name,
                category=tx.category,
                location=tx.location,
                transaction_type=tx.transaction_type,
                quantity_change=tx.quantity_change,
                previous_quantity=tx.previous_quantity,
                new_quantity=tx.new_quantity,
                cost=tx.cost,
                expiry_date=tx.expiry_date,
                user_id=user_id,
                user_name=user_name,
                group_id=tx.group_id,
                timestamp=tx.timestamp if tx.timestamp is not None else self._next_timestamp(),
                metadata=dict(tx.metadata),
            )
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e

        self.store.insert(transaction.to_document())

        # Readers after this point must miss the cache
        self.cache.invalidate_group(transaction.group_id)

        logger.info("Transaction recorded: %s - %s (%s)",
                    transaction.transaction_type.value,
                    transaction.product_name,
                    transaction.id)
        return transaction

    def _record(self, **fields) -> Transaction:
        """Build an input for the current user and group, then record it."""
        user = self._require_user()
        try:
            tx = TransactionInput(
                user_id=user.user_id,
                user_name=user.display_name or 'Unknown',
                group_id=self.context.get_current_group_id(),
                **fields
            )
        except PydanticValidationError as e:
            raise ValidationError(_validation_message(e)) from e
        return self.record_transaction(tx)

    def record_product_add(
        self,
        product_id: str,
        product_name: str,
        category: str,
        location: str,
        quantity: float,
        cost: Optional[float] = None,
        expiry_date: Optional[str] = None
    ) -> Transaction:
        """Record a product being added to inventory."""
        return self._record(
            product_id=product_id,
            product_name=product_name,
            category=category,
            location=location,
            transaction_type=TransactionType.ADD,
            quantity_change=quantity,
            previous_quantity=0,
            new_quantity=quantity,
            cost=cost,
            expiry_date=expiry_date,
        )

    def record_product_update(
        self,
        product_id: str,
        product_name: str,
        category: str,
        location: str,
        previous_quantity: float,
        new_quantity: float,
        cost: Optional[float] = None
    ) -> Transaction:
        """Record a manual quantity correction (either direction)."""
        return self._record(
            product_id=product_id,
            product_name=product_name,
            category=category,
            location=location,
            transaction_type=TransactionType.UPDATE,
            quantity_change=new_quantity - previous_quantity,
            previous_quantity=previous_quantity,
            new_quantity=new_quantity,
            cost=cost,
        )

    def record_product_consumption(
        self,
        product_id: str,
        product_name: str,
        category: str,
        location: str,
        consumed_quantity: float,
        previous_quantity: float
    ) -> Transaction:
        """Record part of a product being used up."""
        return self._record(
            product_id=product_id,
            product_name=product_name,
            category=category,
            location=location,
            transaction_type=TransactionType.CONSUME,
            quantity_change=-consumed_quantity,
            previous_quantity=previous_quantity,
            new_quantity=previous_quantity - consumed_quantity,
        )

    def record_product_removal(
        self,
        product_id: str,
        product_name: str,
        category: str,
        location: str,
        removed_quantity: float,
        previous_quantity: float
    ) -> Transaction:
        """Record a product leaving inventory without being consumed."""
        return self._record(
            product_id=product_id,
            product_name=product_name,
            category=category,
            location=location,
            transaction_type=TransactionType.REMOVE,
            quantity_change=-removed_quantity,
            previous_quantity=previous_quantity,
            new_quantity=previous_quantity - removed_quantity,
        )

    def record_product_expiration(
        self,
        product_id: str,
        product_name: str,
        category: str,
        location: str,
        expired_quantity: float,
        cost: Optional[float] = None
    ) -> Transaction:
        """Record a product expiring; the whole expired quantity is written off."""
        metadata = {}
        if cost is not None:
            metadata['waste_value'] = cost * expired_quantity
        return self._record(
            product_id=product_id,
            product_name=product_name,
            category=category,
            location=location,
            transaction_type=TransactionType.EXPIRE,
            quantity_change=-expired_quantity,
            previous_quantity=expired_quantity,
            new_quantity=0,
            cost=cost,
            metadata=metadata,
        )

    # ========== Read path ==========

    def get_transactions(self, query: Optional[AnalyticsQuery] = None) -> List[Transaction]:
        """
        Read transactions for a group, newest first.

        Args:
            query: Optional filters; group defaults to the caller's current group

        Returns:
            List of transactions (empty when no group can be resolved)
        """
        query = query or AnalyticsQuery()

        group_id = query.group_id or self.context.get_current_group_id()
        if not group_id:
            return []
        if query.group_id != group_id:
            query = query.model_copy(update={'group_id': group_id})

        cache_key = make_cache_key('transactions', query.normalized())
        cached = self.cache.get(cache_key)
        if cached is not None:
            return list(cached)

        documents = self.store.query(
            group_id,
            start=query.start,
            end=query.end,
            limit=query.limit
        )
        try:
            transactions = [Transaction.model_validate(doc) for doc in documents]
        except PydanticValidationError as e:
            raise StoreUnavailableError(
                f"Store returned a malformed transaction: {_validation_message(e)}") from e

        transactions = self._apply_filters(transactions, query)
        transactions.sort(key=lambda t: t.timestamp, reverse=True)

        try:
            self.cache.set(cache_key, tuple(transactions), group_id,
                           self.config.transaction_cache_ttl_seconds)
        except Exception as e:
            logger.warning("Skipping transaction cache write: %s", e)

        return transactions

    @staticmethod
    def _apply_filters(
        transactions: List[Transaction],
        query: AnalyticsQuery
    ) -> List[Transaction]:
        """Filters the store cannot apply server-side."""
        filtered = transactions

        if query.categories:
            filtered = [t for t in filtered if t.category in query.categories]
        if query.locations:
            filtered = [t for t in filtered if t.location in query.locations]
        if query.products:
            filtered = [t for t in filtered if t.product_name in query.products]
        if query.transaction_types:
            filtered = [t for t in filtered if t.transaction_type in query.transaction_types]
        if query.user_id:
            filtered = [t for t in filtered if t.user_id == query.user_id]

        return filtered
