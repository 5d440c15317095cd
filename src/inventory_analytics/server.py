"""
FastMCP server exposing the inventory analytics engine.

Environment:
    INVENTORY_ANALYTICS_DB       SQLite file (default: inventory_transactions.db)
    INVENTORY_ANALYTICS_CONFIG   Settings file (default: inventory_analytics.json)
    INVENTORY_ANALYTICS_USER     Current user id
    INVENTORY_ANALYTICS_USER_NAME  Display name for the current user
    INVENTORY_ANALYTICS_GROUP    Current household/group id
    LOG_LEVEL                    Logging level (default: INFO)
"""

import logging
import os

from fastmcp import FastMCP

from .analytics.config import CONFIG_FILE, load_config
from .analytics.context import StaticGroupContext
from .analytics.database import DB_FILE, SQLiteTransactionStore
from .analytics.engine import InventoryAnalyticsEngine
from .analytics.models import UserIdentity
from .tools import ledger_tools, reporting_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "inventory-analytics"


def create_server(engine: InventoryAnalyticsEngine) -> FastMCP:
    """Build a FastMCP server with every analytics tool registered."""
    mcp = FastMCP(
        name=SERVER_NAME,
        instructions=(
            "Inventory analytics for a shared household inventory. Record "
            "inventory changes, then ask for monthly or yearly reports, trend "
            "series, and category or location statistics."
        ),
    )
    ledger_tools.register_tools(mcp, engine)
    reporting_tools.register_tools(mcp, engine)
    return mcp


def build_engine() -> InventoryAnalyticsEngine:
    """Compose the engine from environment and settings file."""
    config = load_config(os.getenv("INVENTORY_ANALYTICS_CONFIG", CONFIG_FILE))
    store = SQLiteTransactionStore(
        os.getenv("INVENTORY_ANALYTICS_DB", DB_FILE),
        timeout=config.store_timeout_seconds,
    )

    user_id = os.getenv("INVENTORY_ANALYTICS_USER")
    user = None
    if user_id:
        user = UserIdentity(user_id, os.getenv("INVENTORY_ANALYTICS_USER_NAME"))
    context = StaticGroupContext(user=user, group_id=os.getenv("INVENTORY_ANALYTICS_GROUP"))

    if user is None:
        logger.warning("No INVENTORY_ANALYTICS_USER set; recording will be rejected")

    return InventoryAnalyticsEngine(store, context, config=config)


def main():
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    mcp = create_server(build_engine())
    logger.info("Starting %s server", SERVER_NAME)
    mcp.run()


if __name__ == "__main__":
    main()
