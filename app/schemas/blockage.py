from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict


class BlockageCreate(BaseModel):
    # Both days inclusive; a single-day block has start_date == end_date
    start_date: date
    end_date: date
    room_ids: Optional[list[str]] = None
    reason: str = ""


class BlockedDateOut(BaseModel):
    blockage_id: str
    room_id: Optional[str] = None
    blocked_date: date
    reason: str

    model_config = ConfigDict(from_attributes=True)
