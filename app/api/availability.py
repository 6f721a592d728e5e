from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.messages import messages
from app.api.deps import get_lang
from app.database import get_db
from app.domain.errors import ConflictError, InvalidRangeError
from app.schemas.availability import (
    AvailabilityOut,
    CalendarDay,
    CalendarOut,
    ConflictOut,
    ValidateRequest,
    ValidateResponse,
)
from app.services.availability_service import availability_service
from app.services.booking_validator import booking_validator
from app.services.room_service import RoomService

router = APIRouter(prefix="/api/availability", tags=["availability"])


@router.get("", response_model=AvailabilityOut)
async def resolve_availability(
    room_id: str,
    day: date,
    session_id: Optional[str] = None,
    lang: str = Depends(get_lang),
    db: AsyncSession = Depends(get_db),
):
    if await RoomService.get_room(db, room_id) is None:
        raise InvalidRangeError(f"Unknown room {room_id}", room_id=room_id, message_key="unknown_room")

    result = await availability_service.resolve(db, day, room_id, session_id)
    return AvailabilityOut(
        room_id=room_id,
        date=day,
        status=result.status,
        label=messages.status_label(result.status.value, lang),
        detail=result.detail,
    )


@router.get("/calendar", response_model=CalendarOut)
async def month_calendar(
    year: int = Query(ge=2000, le=2100),
    month: int = Query(ge=1, le=12),
    session_id: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    grid = await availability_service.month_grid(db, year, month, session_id)
    return CalendarOut(
        year=year,
        month=month,
        rooms={
            room_id: [
                CalendarDay(date=day, status=result.status, detail=result.detail)
                for day, result in days
            ]
            for room_id, days in grid.items()
        },
    )


@router.post("/validate", response_model=ValidateResponse)
async def validate_booking(
    payload: ValidateRequest,
    lang: str = Depends(get_lang),
    db: AsyncSession = Depends(get_db),
):
    result = await booking_validator.validate(
        db,
        payload.start_date,
        payload.end_date,
        payload.room_ids,
        exclude_booking_id=payload.exclude_booking_id,
        exclude_session_id=payload.session_id,
    )
    if result.ok:
        return ValidateResponse(ok=True)

    conflict = result.conflict
    error = ConflictError(conflict.room_id, conflict.day, conflict.reason.value)
    return ValidateResponse(
        ok=False,
        conflict=ConflictOut(
            room_id=conflict.room_id,
            date=conflict.day,
            reason=conflict.reason,
            message=messages.for_error(error, lang),
        ),
    )
