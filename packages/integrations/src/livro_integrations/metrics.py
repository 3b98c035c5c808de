"""Dashboard metrics over synchronized ERP data."""

from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, Field

from livro_core.formatting import parse_amount
from livro_integrations.interfaces.types import ERPData

TREND_WINDOW = timedelta(days=7)
HUNDREDTHS = Decimal("0.01")


class DashboardMetrics(BaseModel):
    """Totals shown on the company dashboard."""

    total_sales: Decimal = Decimal("0")
    total_purchases: Decimal = Decimal("0")
    total_products: int = Field(default=0, ge=0)
    total_customers: int = Field(default=0, ge=0)
    sales_trend_percent: Decimal = Field(
        default=Decimal("0"),
        description="Sales of the last 7 days vs older sales, in percent",
    )
    profit: Decimal = Decimal("0")
    profit_margin_percent: Decimal = Decimal("0")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _sum_values(records: list[dict[str, Any]]) -> Decimal:
    return sum((parse_amount(r.get("value")) or Decimal("0") for r in records), Decimal("0"))


def compute_dashboard_metrics(
    integration_data: Mapping[str, Union[ERPData, Mapping[str, Any]]],
    now: Optional[datetime] = None,
) -> DashboardMetrics:
    """
    Compute dashboard metrics across every synchronized provider.

    Customers are counted as distinct names per provider and summed over
    providers. The sales trend compares sales dated within the last 7 days
    with older sales across all providers; sales with an unparsable date
    count toward the totals but not the trend.

    Args:
        integration_data: ERPData by provider identifier
        now: Reference time for the trend window (default: UTC now)

    Returns:
        DashboardMetrics; percentages are rounded to two places
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    cutoff = now - TREND_WINDOW

    total_sales = Decimal("0")
    total_purchases = Decimal("0")
    total_products = 0
    total_customers = 0
    recent_total = Decimal("0")
    older_total = Decimal("0")

    for data in integration_data.values():
        if not isinstance(data, ERPData):
            data = ERPData.model_validate(data)

        total_sales += _sum_values(data.sales)
        total_purchases += _sum_values(data.purchases)
        total_products += len(data.inventory)
        total_customers += len({s.get("customer") for s in data.sales if s.get("customer")})

        for sale in data.sales:
            sold_at = _parse_timestamp(sale.get("date"))
            if sold_at is None:
                continue
            amount = parse_amount(sale.get("value")) or Decimal("0")
            if sold_at > cutoff:
                recent_total += amount
            else:
                older_total += amount

    trend = Decimal("0")
    if older_total > 0:
        trend = (recent_total - older_total) / older_total * 100

    profit = total_sales - total_purchases
    margin = profit / total_sales * 100 if total_sales > 0 else Decimal("0")

    return DashboardMetrics(
        total_sales=total_sales,
        total_purchases=total_purchases,
        total_products=total_products,
        total_customers=total_customers,
        sales_trend_percent=trend.quantize(HUNDREDTHS, rounding=ROUND_HALF_UP),
        profit=profit,
        profit_margin_percent=margin.quantize(HUNDREDTHS, rounding=ROUND_HALF_UP),
    )
