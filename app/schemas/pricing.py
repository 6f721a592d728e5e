from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.booking import GuestBreakdownIn, RoomStayIn


class PerRoomQuoteRequest(BaseModel):
    rooms: list[RoomStayIn] = Field(min_length=1)


class BulkQuoteRequest(BaseModel):
    start_date: date
    end_date: date
    guests: GuestBreakdownIn = GuestBreakdownIn()
    room_ids: Optional[list[str]] = None


class QuoteOut(BaseModel):
    total: int
    # Empty for bulk quotes, the bulk price is not split across rooms
    rooms: dict[str, int] = {}
