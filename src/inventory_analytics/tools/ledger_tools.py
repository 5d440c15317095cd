"""
Ledger tools for the inventory analytics MCP server.

Provides MCP tools for:
- Recording inventory changes (add, update, consume, remove, expire)
- Listing recorded transactions with filters
- Backfilling the ledger from an existing product catalog
"""

from typing import Any, Dict, List, Optional

from fastmcp import Context
from pydantic import Field

from ..analytics.engine import InventoryAnalyticsEngine
from ..analytics.exceptions import InventoryAnalyticsError, ValidationError
from ..analytics.migration import migrate_catalog, needs_migration
from ..analytics.models import AnalyticsQuery, TransactionType
from .reporting_tools import parse_date_ms


def register_tools(mcp, engine: InventoryAnalyticsEngine):
    """Register ledger tools with the FastMCP server."""

    # ========== Recording ==========

    @mcp.tool()
    async def record_inventory_change(
        change_type: str = Field(
            description="Change type: 'add', 'update', 'consume', 'remove', or 'expire'"
        ),
        product_id: str = Field(
            description="Product identifier"
        ),
        product_name: str = Field(
            description="Product display name"
        ),
        category: str = Field(
            description="Category key (e.g. 'dairy', 'produce')"
        ),
        location: str = Field(
            description="Storage location key (e.g. 'fridge', 'pantry')"
        ),
        quantity: float = Field(
            ge=0,
            description="Amount added, consumed, removed or expired; "
                        "for 'update' the new quantity"
        ),
        previous_quantity: float = Field(
            default=0, ge=0,
            description="Quantity on hand before the change (update/consume/remove)"
        ),
        cost: Optional[float] = Field(
            default=None, ge=0,
            description="Unit cost, if known"
        ),
        expiry_date: Optional[str] = Field(
            default=None,
            description="Expiry date for added stock (YYYY-MM-DD)"
        ),
        ctx: Context = None
    ) -> Dict[str, Any]:
        """
        Record a change to a product's quantity in the current group's inventory.

        The transaction is stamped with the current user and group, appended
        to the ledger, and cached reports for the group are refreshed on
        their next request.

        Args:
            change_type: What happened to the product
            product_id: Product ID
            product_name: Product name
            category: Product category
            location: Storage location
            quantity: Size of the change (or new quantity for updates)
            previous_quantity: Quantity before the change
            cost: Unit cost
            expiry_date: Expiry date for additions

        Returns:
            The recorded transaction
        """
        try:
            common = dict(
                product_id=product_id,
                product_name=product_name,
                category=category,
                location=location,
            )
            if change_type == TransactionType.ADD.value:
                tx = engine.record_product_add(
                    quantity=quantity, cost=cost, expiry_date=expiry_date, **common)
            elif change_type == TransactionType.UPDATE.value:
                tx = engine.record_product_update(
                    previous_quantity=previous_quantity, new_quantity=quantity,
                    cost=cost, **common)
            elif change_type == TransactionType.CONSUME.value:
                tx = engine.record_product_consumption(
                    consumed_quantity=quantity, previous_quantity=previous_quantity,
                    **common)
            elif change_type == TransactionType.REMOVE.value:
                tx = engine.record_product_removal(
                    removed_quantity=quantity, previous_quantity=previous_quantity,
                    **common)
            elif change_type == TransactionType.EXPIRE.value:
                tx = engine.record_product_expiration(
                    expired_quantity=quantity, cost=cost, **common)
            else:
                return {
                    "success": False,
                    "error": f"Unknown change type: {change_type}. "
                             "Use 'add', 'update', 'consume', 'remove', or 'expire'"
                }

            if ctx:
                await ctx.info(f"Recorded {change_type} of {quantity}x {product_name}")

            return {
                "success": True,
                "transaction": tx.to_document()
            }
        except InventoryAnalyticsError as e:
            if ctx:
                await ctx.error(f"Failed to record change: {str(e)}")
            return {
                "success": False,
                "error": f"Failed to record change: {str(e)}",
                "error_type": type(e).__name__
            }

    # ========== Reading ==========

    @mcp.tool()
    async def list_transactions(
        start_date: Optional[str] = Field(
            default=None,
            description="Only transactions on or after this date (YYYY-MM-DD, UTC)"
        ),
        end_date: Optional[str] = Field(
            default=None,
            description="Only transactions on or before this date (YYYY-MM-DD, UTC)"
        ),
        categories: Optional[List[str]] = Field(
            default=None,
            description="Only these categories"
        ),
        locations: Optional[List[str]] = Field(
            default=None,
            description="Only these storage locations"
        ),
        transaction_types: Optional[List[str]] = Field(
            default=None,
            description="Only these types ('add', 'update', 'consume', 'remove', 'expire')"
        ),
        limit: Optional[int] = Field(
            default=50, ge=1, le=1000,
            description="Maximum number of transactions to read"
        ),
        ctx: Context = None
    ) -> Dict[str, Any]:
        """
        List recorded transactions for the current group, newest first.

        The limit is applied when reading the ledger, before category,
        location and type filters.

        Args:
            start_date: Optional range start
            end_date: Optional range end
            categories: Category filter
            locations: Location filter
            transaction_types: Type filter
            limit: Read limit

        Returns:
            List of transactions
        """
        try:
            try:
                types = [TransactionType(t) for t in transaction_types] if transaction_types else None
            except ValueError as e:
                raise ValidationError(str(e)) from e

            query = AnalyticsQuery(
                start=parse_date_ms(start_date) if start_date else None,
                end=parse_date_ms(end_date, end_of_day=True) if end_date else None,
                categories=categories,
                locations=locations,
                transaction_types=types,
                limit=limit,
            )
            transactions = engine.get_transactions(query)
            return {
                "success": True,
                "count": len(transactions),
                "transactions": [t.to_document() for t in transactions]
            }
        except InventoryAnalyticsError as e:
            return {
                "success": False,
                "error": f"Failed to list transactions: {str(e)}",
                "error_type": type(e).__name__
            }

    # ========== Migration ==========

    @mcp.tool()
    async def backfill_inventory(
        items: List[Dict[str, Any]] = Field(
            description="Existing catalog items: id, name, category, location, "
                        "quantity, cost, expiration_date, added_at"
        ),
        ctx: Context = None
    ) -> Dict[str, Any]:
        """
        Seed the ledger with one 'add' transaction per existing product.

        Products that already have history are skipped, so this is safe to
        run more than once.

        Args:
            items: Catalog entries to backfill

        Returns:
            Migration summary
        """
        try:
            was_empty = needs_migration(engine)
            result = migrate_catalog(engine, items)
            result['ledger_was_empty'] = was_empty
            if ctx:
                await ctx.info(f"Backfilled {result['products_migrated']} products")
            return result
        except InventoryAnalyticsError as e:
            return {
                "success": False,
                "error": f"Failed to backfill inventory: {str(e)}",
                "error_type": type(e).__name__
            }
