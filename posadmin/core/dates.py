"""Date helpers for query filters (YYYY-MM-DD)"""
from datetime import datetime, timedelta
from typing import Optional, Tuple

from fastapi import HTTPException


def parse_day(value: Optional[str], field: str = "date") -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {field}, expected YYYY-MM-DD")


def day_range(start_date: Optional[str], end_date: Optional[str]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """[start 00:00, day after end 00:00)"""
    start = parse_day(start_date, "start_date")
    end = parse_day(end_date, "end_date")
    if end is not None:
        end = end + timedelta(days=1)
    return start, end


def start_of_day(moment: Optional[datetime] = None) -> datetime:
    moment = moment or datetime.utcnow()
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_month(moment: Optional[datetime] = None) -> datetime:
    return start_of_day(moment).replace(day=1)
