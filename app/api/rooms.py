from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.room import RoomOut
from app.schemas.settings import ChristmasPeriod
from app.services.room_service import RoomService
from app.services.settings_service import SettingsService
from app.utils.ids import new_session_id

router = APIRouter(prefix="/api", tags=["rooms"])


@router.get("/rooms", response_model=list[RoomOut])
async def list_rooms(db: AsyncSession = Depends(get_db)):
    return await RoomService.get_all_rooms(db)


@router.post("/sessions")
async def create_session():
    """A browsing session id; the client keeps it for the tab's lifetime."""
    return {"session_id": new_session_id()}


@router.get("/christmas-periods", response_model=list[ChristmasPeriod])
async def list_christmas_periods(db: AsyncSession = Depends(get_db)):
    """Periods only; access codes never leave the admin API."""
    christmas = await SettingsService.get_christmas_settings(db)
    return christmas.periods
