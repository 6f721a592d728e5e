from datetime import date

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin_key
from app.database import get_db
from app.schemas.blockage import BlockageCreate, BlockedDateOut
from app.schemas.settings import ChristmasSettings
from app.services.blockage_service import BlockageService
from app.services.settings_service import SettingsService

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin_key)],
)


@router.post("/blockages", status_code=status.HTTP_201_CREATED)
async def create_blockage(payload: BlockageCreate, db: AsyncSession = Depends(get_db)):
    blockage_id = await BlockageService.create_blockage(
        db, payload.start_date, payload.end_date, payload.room_ids, payload.reason
    )
    return {"blockage_id": blockage_id}


@router.get("/blockages", response_model=list[BlockedDateOut])
async def list_blocked_dates(
    start_date: date, end_date: date, db: AsyncSession = Depends(get_db)
):
    return await BlockageService.list_blocked_dates(db, start_date, end_date)


@router.delete("/blockages/{blockage_id}")
async def delete_blockage(blockage_id: str, db: AsyncSession = Depends(get_db)):
    removed = await BlockageService.delete_blockage(db, blockage_id)
    return {"removed": removed}


@router.get("/christmas", response_model=ChristmasSettings)
async def get_christmas_settings(db: AsyncSession = Depends(get_db)):
    return await SettingsService.get_christmas_settings(db)


@router.put("/christmas", response_model=ChristmasSettings)
async def update_christmas_settings(
    payload: ChristmasSettings, db: AsyncSession = Depends(get_db)
):
    await SettingsService.set_christmas_settings(db, payload)
    return payload
