from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.models import Room


class RoomService:
    @staticmethod
    async def get_all_rooms(db: AsyncSession) -> List[Room]:
        result = await db.execute(select(Room).order_by(Room.id))
        return list(result.scalars().all())

    @staticmethod
    async def get_room(db: AsyncSession, room_id: str) -> Optional[Room]:
        result = await db.execute(select(Room).where(Room.id == room_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_room_ids(db: AsyncSession) -> List[str]:
        result = await db.execute(select(Room.id).order_by(Room.id))
        return list(result.scalars().all())
