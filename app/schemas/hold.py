from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.booking import GuestBreakdownIn


class HoldCreate(BaseModel):
    session_id: str = Field(min_length=1)
    start_date: date
    end_date: date
    room_ids: list[str] = Field(min_length=1)
    guests: GuestBreakdownIn = GuestBreakdownIn()
    # Provisional price as shown to the visitor
    price: int = Field(0, ge=0)


class HoldOut(BaseModel):
    proposal_id: str
    session_id: str
    start_date: date
    end_date: date
    room_ids: list[str]
    guests: GuestBreakdownIn
    total_price: int
    created_at: datetime
    expires_at: datetime

    model_config = ConfigDict(from_attributes=True)
