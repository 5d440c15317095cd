"""
Backfill of the transaction ledger from an existing product catalog.

Inventory that existed before transaction tracking gets one 'add'
transaction per product, so the ledger is never empty for it.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from .engine import InventoryAnalyticsEngine
from .exceptions import AuthContextError, ValidationError
from .models import AnalyticsQuery, TransactionInput, TransactionType

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = 'other'
DEFAULT_LOCATION = 'other'


def _parse_added_at(value: Any) -> Optional[int]:
    """Catalog timestamps may be epoch ms or ISO strings."""
    if value is None or value == '':
        return None
    if isinstance(value, (int, float)):
        return int(value)
    try:
        moment = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except (ValueError, TypeError):
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def needs_migration(
    engine: InventoryAnalyticsEngine,
    group_id: Optional[str] = None
) -> bool:
    """
    Check if the group's ledger still needs a backfill.

    Returns:
        True when the group has no transactions at all
    """
    existing = engine.get_transactions(AnalyticsQuery(group_id=group_id, limit=1))
    return not existing


def migrate_catalog(
    engine: InventoryAnalyticsEngine,
    items: Iterable[Dict[str, Any]],
    group_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Record an initial 'add' transaction for each catalog item.

    Products that already appear in the ledger are skipped, so running the
    migration twice does not duplicate history.

    Args:
        engine: Engine to record into
        items: Catalog entries with id, name, category, location, quantity,
            cost, expiration_date and added_at
        group_id: Target group (defaults to the current group)

    Returns:
        Summary of migrated, skipped and rejected items
    """
    user = engine.context.get_current_user()
    if user is None:
        raise AuthContextError("User not authenticated")

    group_id = group_id or engine.context.get_current_group_id()

    # Read the store directly so personal scope (no group) is checked too
    existing = {doc["product_id"] for doc in engine.ledger.store.query(group_id)}

    migrated = 0
    skipped = 0
    failed = []

    for item in items:
        raw_id = item.get('id')
        product_id = str(raw_id) if raw_id not in (None, '') else None
        if product_id is None or product_id in existing:
            skipped += 1
            continue

        quantity = item.get('quantity') or 1
        try:
            engine.record_transaction(TransactionInput(
                id=f"migration_{product_id}_{uuid.uuid4().hex}",
                product_id=product_id,
                product_name=item.get('name') or product_id,
                category=item.get('category') or DEFAULT_CATEGORY,
                location=item.get('location') or DEFAULT_LOCATION,
                transaction_type=TransactionType.ADD,
                quantity_change=quantity,
                previous_quantity=0,
                new_quantity=quantity,
                cost=item.get('cost'),
                expiry_date=item.get('expiration_date'),
                user_id=user.user_id,
                user_name=user.display_name or 'Unknown',
                group_id=group_id,
                timestamp=_parse_added_at(item.get('added_at')),
                metadata={'migrated': True, 'original_id': raw_id},
            ))
        except (ValidationError, ValueError) as e:
            logger.warning("Could not migrate catalog item %s: %s", product_id, e)
            failed.append({'id': product_id, 'error': str(e)})
            continue

        existing.add(product_id)
        migrated += 1

    logger.info("Migrated %d existing products (%d skipped, %d failed)",
                migrated, skipped, len(failed))

    return {
        'success': not failed,
        'products_migrated': migrated,
        'skipped': skipped,
        'failed': failed
    }
