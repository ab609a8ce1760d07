"""Small helpers shared by the service layer"""

from typing import Optional, Tuple
from datetime import date, datetime, timedelta


def day_bounds(
    start_date: Optional[date], end_date: Optional[date]
) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Inclusive date range -> [start, end) datetimes"""
    start = datetime.combine(start_date, datetime.min.time()) if start_date else None
    end = (
        datetime.combine(end_date + timedelta(days=1), datetime.min.time())
        if end_date
        else None
    )
    return start, end
