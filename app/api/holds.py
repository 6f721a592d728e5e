from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.hold import HoldCreate, HoldOut
from app.services.hold_service import hold_service

router = APIRouter(prefix="/api/holds", tags=["holds"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_hold(payload: HoldCreate, db: AsyncSession = Depends(get_db)):
    proposal_id = await hold_service.create_hold(
        db,
        payload.session_id,
        payload.start_date,
        payload.end_date,
        payload.room_ids,
        payload.guests.to_domain(),
        payload.price,
    )
    return {"proposal_id": proposal_id}


@router.get("", response_model=list[HoldOut])
async def list_holds(session_id: str, db: AsyncSession = Depends(get_db)):
    return await hold_service.list_active_holds(db, session_id)


@router.delete("/{proposal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_hold(proposal_id: str, session_id: str, db: AsyncSession = Depends(get_db)):
    await hold_service.delete_hold(db, proposal_id, session_id)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session_holds(session_id: str, db: AsyncSession = Depends(get_db)):
    await hold_service.delete_session_holds(db, session_id)


@router.post("/reap")
async def reap_expired(db: AsyncSession = Depends(get_db)):
    return {"removed": await hold_service.reap_expired(db)}
