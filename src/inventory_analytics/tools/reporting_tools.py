"""
Reporting tools for the inventory analytics MCP server.

Provides MCP tools for:
- Monthly and yearly inventory reports
- Trend series in day, week or month buckets
- Category and location statistics
"""

from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastmcp import Context
from pydantic import Field

from ..analytics.engine import InventoryAnalyticsEngine
from ..analytics.exceptions import InventoryAnalyticsError, ValidationError


def parse_date_ms(value: str, end_of_day: bool = False) -> int:
    """
    Convert a YYYY-MM-DD date (UTC) to epoch milliseconds.

    Args:
        value: Date string
        end_of_day: Return the last millisecond of the day instead of the first
    """
    try:
        day = datetime.strptime(value, '%Y-%m-%d').replace(tzinfo=timezone.utc)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD") from e
    start = int(day.timestamp() * 1000)
    return start + 24 * 60 * 60 * 1000 - 1 if end_of_day else start


def _period(start_date: Optional[str], end_date: Optional[str]) -> Dict[str, int]:
    period = {}
    if start_date:
        period['start'] = parse_date_ms(start_date)
    if end_date:
        period['end'] = parse_date_ms(end_date, end_of_day=True)
    return period


def _error(message: str, e: InventoryAnalyticsError) -> Dict[str, Any]:
    return {
        "success": False,
        "error": f"{message}: {str(e)}",
        "error_type": type(e).__name__
    }


def register_tools(mcp, engine: InventoryAnalyticsEngine):
    """Register reporting tools with the FastMCP server."""

    # ========== Reports ==========

    @mcp.tool()
    async def get_monthly_report(
        year: int = Field(
            ge=1970, le=9999,
            description="Report year"
        ),
        month: int = Field(
            ge=1, le=12,
            description="Report month (1-12)"
        ),
        group_id: Optional[str] = Field(
            default=None,
            description="Group to report on (defaults to the current group)"
        ),
        ctx: Context = None
    ) -> Dict[str, Any]:
        """
        Generate the inventory report for one calendar month.

        Includes totals (added, consumed, expired, value), category and
        location breakdowns, the top products by value, the change versus
        the previous month, and narrative insights and recommendations.

        Args:
            year: Report year
            month: Report month
            group_id: Optional group override

        Returns:
            Monthly report data
        """
        try:
            report = engine.generate_monthly_report(year, month, group_id)
            return {
                "success": True,
                "generated_at": datetime.now().isoformat(),
                "report": report.to_dict()
            }
        except InventoryAnalyticsError as e:
            return _error("Failed to generate monthly report", e)

    @mcp.tool()
    async def get_yearly_report(
        year: int = Field(
            ge=1970, le=9999,
            description="Report year"
        ),
        group_id: Optional[str] = Field(
            default=None,
            description="Group to report on (defaults to the current group)"
        ),
        ctx: Context = None
    ) -> Dict[str, Any]:
        """
        Generate the inventory report for a calendar year.

        Contains all twelve monthly reports plus peak and quietest month,
        seasonal patterns, per-category seasonality and growth, a cost
        analysis with savings opportunities, and recommendations.

        Args:
            year: Report year
            group_id: Optional group override

        Returns:
            Yearly report data
        """
        try:
            if ctx:
                await ctx.info(f"Building yearly report for {year}")
            report = engine.generate_yearly_report(year, group_id)
            return {
                "success": True,
                "generated_at": datetime.now().isoformat(),
                "report": report.to_dict()
            }
        except InventoryAnalyticsError as e:
            if ctx:
                await ctx.error(f"Failed to generate yearly report: {str(e)}")
            return _error("Failed to generate yearly report", e)

    # ========== Trends & statistics ==========

    @mcp.tool()
    async def get_trend_data(
        start_date: str = Field(
            description="Range start date (YYYY-MM-DD, UTC)"
        ),
        end_date: str = Field(
            description="Range end date (YYYY-MM-DD, UTC, inclusive)"
        ),
        bucket_size: str = Field(
            default='day',
            description="Bucket size: 'day', 'week', or 'month'"
        ),
        group_id: Optional[str] = Field(
            default=None,
            description="Group to analyze (defaults to the current group)"
        ),
        ctx: Context = None
    ) -> Dict[str, Any]:
        """
        Get inventory activity aggregated into time buckets.

        Only buckets with activity are returned, oldest first. Week buckets
        start on Monday and are labelled like '2024-03-W2'.

        Args:
            start_date: First day of the range
            end_date: Last day of the range
            bucket_size: Bucket granularity
            group_id: Optional group override

        Returns:
            List of trend points
        """
        try:
            points = engine.generate_trend_data(
                parse_date_ms(start_date),
                parse_date_ms(end_date, end_of_day=True),
                bucket_size=bucket_size,
                group_id=group_id
            )
            return {
                "success": True,
                "bucket_size": bucket_size,
                "count": len(points),
                "points": [asdict(p) for p in points]
            }
        except InventoryAnalyticsError as e:
            return _error("Failed to get trend data", e)

    @mcp.tool()
    async def get_category_analysis(
        start_date: Optional[str] = Field(
            default=None,
            description="Optional period start (YYYY-MM-DD, UTC)"
        ),
        end_date: Optional[str] = Field(
            default=None,
            description="Optional period end (YYYY-MM-DD, UTC, inclusive)"
        ),
        group_id: Optional[str] = Field(
            default=None,
            description="Group to analyze (defaults to the current group)"
        ),
        ctx: Context = None
    ) -> Dict[str, Any]:
        """
        Get per-category statistics, highest value first.

        Each category reports totals, expiration rate, cost per item, the
        most added and most consumed product, trend direction, and growth
        over the last 30 days.

        Args:
            start_date: Optional period start
            end_date: Optional period end
            group_id: Optional group override

        Returns:
            Category statistics
        """
        try:
            categories = engine.analyze_categories(
                group_id=group_id, period=_period(start_date, end_date))
            return {
                "success": True,
                "count": len(categories),
                "categories": [asdict(c) for c in categories]
            }
        except InventoryAnalyticsError as e:
            return _error("Failed to analyze categories", e)

    @mcp.tool()
    async def get_location_analysis(
        start_date: Optional[str] = Field(
            default=None,
            description="Optional period start (YYYY-MM-DD, UTC)"
        ),
        end_date: Optional[str] = Field(
            default=None,
            description="Optional period end (YYYY-MM-DD, UTC, inclusive)"
        ),
        group_id: Optional[str] = Field(
            default=None,
            description="Group to analyze (defaults to the current group)"
        ),
        ctx: Context = None
    ) -> Dict[str, Any]:
        """
        Get per-location statistics (utilization, expiration, storage time).

        Args:
            start_date: Optional period start
            end_date: Optional period end
            group_id: Optional group override

        Returns:
            Location statistics
        """
        try:
            locations = engine.analyze_locations(
                group_id=group_id, period=_period(start_date, end_date))
            return {
                "success": True,
                "count": len(locations),
                "locations": [asdict(loc) for loc in locations]
            }
        except InventoryAnalyticsError as e:
            return _error("Failed to analyze locations", e)
