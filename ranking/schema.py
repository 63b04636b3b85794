from enum import Enum
from pydantic import BaseModel, ConfigDict


class RankingPeriod(str, Enum):
    week = "week"
    month = "month"
    quarter = "quarter"
    year = "year"


class RankingEntry(BaseModel):
    user_id: int
    points: int
    model_config = ConfigDict(from_attributes=True)
