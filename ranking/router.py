from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.clock import Clock, get_clock
from core.database import get_db
from auth.services.auth_service import get_current_active_user

from .schema import RankingPeriod, RankingEntry
from . import service

ranking_router = APIRouter(prefix="/rankings", tags=["Rankings"])

# Leaderboard for a rolling window
@ranking_router.get("/{period}", response_model=list[RankingEntry])
def rankings(
    period: RankingPeriod,
    limit: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    _user = Depends(get_current_active_user),
    clock: Clock = Depends(get_clock),
):
    return service.get_rankings(db, period, clock=clock, limit=limit)
