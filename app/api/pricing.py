from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.domain.pricing import BulkBooking, PerRoomBooking
from app.schemas.pricing import BulkQuoteRequest, PerRoomQuoteRequest, QuoteOut
from app.services.booking_service import booking_service
from app.services.room_service import RoomService

router = APIRouter(prefix="/api/price", tags=["pricing"])


@router.post("/rooms", response_model=QuoteOut)
async def price_rooms(payload: PerRoomQuoteRequest, db: AsyncSession = Depends(get_db)):
    request = PerRoomBooking(tuple(stay.to_domain() for stay in payload.rooms))
    return await booking_service.quote(db, request)


@router.post("/bulk", response_model=QuoteOut)
async def price_bulk(payload: BulkQuoteRequest, db: AsyncSession = Depends(get_db)):
    room_ids = payload.room_ids
    if room_ids is None:
        room_ids = await RoomService.get_room_ids(db)
    request = BulkBooking(
        tuple(room_ids), payload.start_date, payload.end_date, payload.guests.to_domain()
    )
    return await booking_service.quote(db, request)
