"""
Period reports over sales, stock levels and delivery punctuality.

Every report shares one continuous period axis: each day, ISO week, month or
year touching the requested range appears once, with zero values where
nothing happened.
"""

from typing import List, Dict, Any, Tuple, Optional
from bisect import bisect_right
from datetime import date, datetime, timedelta
from decimal import Decimal
from sqlalchemy.orm import Session
import logging

from domain.models import Product
from domain.enums import ReportPeriodType
from repositories import DeliveryRepository, StockHistoryRepository
from app.config import settings
from app.exceptions import ServiceValidationError

logger = logging.getLogger("tealogistics.reports")

# (label, start, end) with end exclusive
Period = Tuple[str, datetime, datetime]

# Ten years of daily periods
MAX_PERIODS = 3660


def _at_midnight(day: date) -> datetime:
    return datetime.combine(day, datetime.min.time())


def _week_label(day: date) -> str:
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def _next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


# period type -> (first day of the period containing a date, next period start, label)
PERIOD_RULES = {
    ReportPeriodType.DAILY: (
        lambda d: d,
        lambda d: d + timedelta(days=1),
        lambda d: d.isoformat(),
    ),
    ReportPeriodType.WEEKLY: (
        lambda d: d - timedelta(days=d.weekday()),
        lambda d: d + timedelta(days=7),
        _week_label,
    ),
    ReportPeriodType.MONTHLY: (
        lambda d: d.replace(day=1),
        _next_month,
        lambda d: d.strftime("%Y-%m"),
    ),
    ReportPeriodType.YEARLY: (
        lambda d: date(d.year, 1, 1),
        lambda d: date(d.year + 1, 1, 1),
        lambda d: f"{d.year:04d}",
    ),
}


def build_periods(
    period_type: ReportPeriodType, start_date: date, end_date: date
) -> List[Period]:
    """
    Periods covering [start_date, end_date], clipped to that range.

    Labels: YYYY-MM-DD (daily), YYYY-Www (ISO week), YYYY-MM, YYYY.
    """
    align, step, label = PERIOD_RULES[ReportPeriodType(period_type)]
    range_end = end_date + timedelta(days=1)
    periods: List[Period] = []

    cursor = align(start_date)
    while cursor < range_end:
        following = step(cursor)
        lower = max(cursor, start_date)
        upper = min(following, range_end)
        periods.append((label(cursor), _at_midnight(lower), _at_midnight(upper)))
        cursor = following
    return periods


def count_periods(
    period_type: ReportPeriodType, start_date: date, end_date: date
) -> int:
    """Number of periods ``build_periods`` returns, without building them"""
    period_type = ReportPeriodType(period_type)
    align = PERIOD_RULES[period_type][0]
    first, last = align(start_date), align(end_date)
    if period_type == ReportPeriodType.DAILY:
        return (last - first).days + 1
    if period_type == ReportPeriodType.WEEKLY:
        return (last - first).days // 7 + 1
    if period_type == ReportPeriodType.MONTHLY:
        return (last.year - first.year) * 12 + last.month - first.month + 1
    return last.year - first.year + 1


def _bucket(periods: List[Period], starts: List[datetime], moment: datetime) -> int:
    """
    Index of the period containing ``moment`` or -1.

    ``starts`` holds the start of each period, in order.
    """
    index = bisect_right(starts, moment) - 1
    if index >= 0 and moment < periods[index][2]:
        return index
    return -1


class ReportService:
    @staticmethod
    def validate_range(
        start_date: date,
        end_date: date,
        period_type: Optional[ReportPeriodType] = None,
    ) -> None:
        """
        Raises:
            ServiceValidationError: reversed range, a range reaching the last
                representable year, or more than ``MAX_PERIODS`` periods
        """
        details = {
            "start_date": start_date.isoformat(),
            "end_date": end_date.isoformat(),
        }
        if start_date > end_date:
            raise ServiceValidationError(
                "start_date must not be after end_date", details=details
            )
        if end_date.year >= date.max.year:
            raise ServiceValidationError(
                f"end_date must be before {date.max.year}", details=details
            )
        if period_type is None:
            return
        count = count_periods(period_type, start_date, end_date)
        if count > MAX_PERIODS:
            raise ServiceValidationError(
                f"Range covers {count} {ReportPeriodType(period_type).value} periods; "
                f"at most {MAX_PERIODS} are allowed",
                details={**details, "periods": count, "max_periods": MAX_PERIODS},
            )

    @staticmethod
    def sales_report(db: Session, periods: List[Period]) -> List[Dict[str, Any]]:
        totals = [Decimal("0")] * len(periods)
        counts = [0] * len(periods)
        if periods:
            deliveries = DeliveryRepository(db).delivered_between(
                periods[0][1], periods[-1][2]
            )
            starts = [start for _, start, _ in periods]
            for delivery in deliveries:
                index = _bucket(periods, starts, delivery.actual_delivery_date)
                if index < 0:
                    continue
                counts[index] += 1
                if delivery.product is not None:
                    totals[index] += Decimal(delivery.quantity or 0) * Decimal(
                        delivery.product.price
                    )
        return [
            {
                "period": label,
                "total_sales": float(round(totals[i], 2)),
                "order_count": counts[i],
            }
            for i, (label, _, _) in enumerate(periods)
        ]

    @staticmethod
    def inventory_report(
        db: Session, periods: List[Period], threshold: int
    ) -> List[Dict[str, Any]]:
        """
        Stock at the end of each period, rebuilt from current stock by
        undoing every later stock-history change.
        """
        if not periods:
            return []
        products = db.query(Product.id, Product.stock, Product.created_at).all()
        changes = StockHistoryRepository(db).changes_since(periods[0][2])

        series = []
        for label, _, end in periods:
            later: Dict[int, int] = {}
            for change in changes:
                if change.created_at >= end:
                    later[change.product_id] = (
                        later.get(change.product_id, 0) + change.change_amount
                    )
            total = 0
            low = 0
            for product_id, stock, created_at in products:
                if created_at is not None and created_at >= end:
                    continue
                level = max((stock or 0) - later.get(product_id, 0), 0)
                total += level
                if level < threshold:
                    low += 1
            series.append(
                {"period": label, "stock_quantity": total, "low_stock_items": low}
            )
        return series

    @staticmethod
    def delivery_report(db: Session, periods: List[Period]) -> List[Dict[str, Any]]:
        delivered = [0] * len(periods)
        on_time = [0] * len(periods)
        if periods:
            deliveries = DeliveryRepository(db).delivered_between(
                periods[0][1], periods[-1][2]
            )
            starts = [start for _, start, _ in periods]
            for delivery in deliveries:
                index = _bucket(periods, starts, delivery.actual_delivery_date)
                if index < 0:
                    continue
                delivered[index] += 1
                estimate = delivery.estimated_delivery_date
                if estimate is None or delivery.actual_delivery_date <= estimate:
                    on_time[index] += 1
        return [
            {
                "period": label,
                "on_time_delivery_rate": (
                    round(on_time[i] * 100.0 / delivered[i], 1) if delivered[i] else 0.0
                ),
                "delivered_count": delivered[i],
            }
            for i, (label, _, _) in enumerate(periods)
        ]

    @staticmethod
    def generate(
        db: Session,
        period_type: ReportPeriodType,
        start_date: date,
        end_date: date,
        threshold: int = None,
    ) -> Dict[str, Any]:
        """All three series over one period axis"""
        period_type = ReportPeriodType(period_type)
        ReportService.validate_range(start_date, end_date, period_type)
        periods = build_periods(period_type, start_date, end_date)
        if threshold is None:
            threshold = settings.low_stock_threshold
        logger.debug(
            "Building %s report %s..%s (%d periods)",
            period_type.value,
            start_date,
            end_date,
            len(periods),
        )
        return {
            "period_type": period_type,
            "start_date": start_date,
            "end_date": end_date,
            "sales_report": ReportService.sales_report(db, periods),
            "inventory_report": ReportService.inventory_report(db, periods, threshold),
            "delivery_report": ReportService.delivery_report(db, periods),
        }
