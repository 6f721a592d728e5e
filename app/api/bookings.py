from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.rate_limiter import limiter
from app.database import get_db
from app.schemas.booking import BookingCreate, BookingCreated, BookingOut, BookingUpdate
from app.services.booking_service import booking_service
from app.services.room_service import RoomService

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


@router.post("", response_model=BookingCreated, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_booking)
async def create_booking(
    request: Request,
    payload: BookingCreate,
    db: AsyncSession = Depends(get_db),
):
    """
    Submit a booking. Rate limited per client IP (RATE_LIMIT_BOOKING).
    Holds of payload.session_id are released once the booking is stored.
    """
    reservation = payload.reservation.to_domain(await RoomService.get_room_ids(db))
    return await booking_service.create_booking(
        db,
        reservation,
        payload.contact.model_dump(),
        payload.session_id,
        payload.access_code,
    )


@router.get("/{booking_id}", response_model=BookingOut)
async def get_booking(
    booking_id: str,
    x_edit_token: str = Header(),
    db: AsyncSession = Depends(get_db),
):
    return await booking_service.get_booking(db, booking_id, x_edit_token)


@router.put("/{booking_id}", response_model=BookingOut)
async def update_booking(
    booking_id: str,
    payload: BookingUpdate,
    x_edit_token: str = Header(),
    db: AsyncSession = Depends(get_db),
):
    reservation = payload.reservation.to_domain(await RoomService.get_room_ids(db))
    contact = payload.contact.model_dump() if payload.contact else None
    return await booking_service.update_booking(
        db,
        booking_id,
        x_edit_token,
        reservation,
        contact,
        payload.session_id,
        payload.access_code,
    )


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_booking(
    booking_id: str,
    x_edit_token: str = Header(),
    db: AsyncSession = Depends(get_db),
):
    await booking_service.cancel_booking(db, booking_id, x_edit_token)
