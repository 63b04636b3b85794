from __future__ import annotations
import calendar
from datetime import datetime, timedelta
from typing import Optional, List

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from core.clock import Clock, utcnow
from thanks.models import Thanks, ThanksStatus
from .schema import RankingPeriod, RankingEntry

# ---------- windows ----------

_MONTHS_BACK = {
    RankingPeriod.month: 1,
    RankingPeriod.quarter: 3,
    RankingPeriod.year: 12,
}


def subtract_months(dt: datetime, months: int) -> datetime:
    """Same day-of-month `months` earlier, clamped to the target month's length."""
    total = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def cutoff_for(period: RankingPeriod, now: datetime) -> datetime:
    period = RankingPeriod(period)
    if period == RankingPeriod.week:
        return now - timedelta(days=7)
    return subtract_months(now, _MONTHS_BACK[period])


# ---------- aggregation ----------

def get_rankings(
    db: Session,
    period: RankingPeriod,
    *,
    clock: Clock = utcnow,
    limit: Optional[int] = None,
) -> List[RankingEntry]:
    """
    Points per recipient from approved thanks decided inside the window.
    Highest first; equal totals are ordered by user id so reruns agree.
    """
    cutoff = cutoff_for(period, clock())
    total = func.sum(Thanks.points).label("points")

    stmt = (
        select(Thanks.to_id, total)
        .where(
            Thanks.status == ThanksStatus.approved,
            Thanks.approved_at >= cutoff,
        )
        .group_by(Thanks.to_id)
        .order_by(total.desc(), Thanks.to_id.asc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)

    return [RankingEntry(user_id=user_id, points=points) for user_id, points in db.execute(stmt)]
