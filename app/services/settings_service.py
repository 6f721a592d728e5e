import json
import logging
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.errors import BookingError, MissingRateError
from app.models import GlobalSetting, Room
from app.schemas.settings import ChristmasSettings, PricingSettings, RoomConfig

logger = logging.getLogger(__name__)


class SettingsService:
    @staticmethod
    async def get_json_setting(db: AsyncSession, key: str) -> Optional[Any]:
        setting = await db.get(GlobalSetting, key)
        if setting is None or setting.value is None:
            return None
        return json.loads(setting.value)

    @staticmethod
    async def set_json_setting(
        db: AsyncSession, key: str, value: Any, description: Optional[str] = None
    ) -> None:
        setting = await db.get(GlobalSetting, key)
        if setting is None:
            setting = GlobalSetting(key=key, description=description)
            db.add(setting)
        setting.value = json.dumps(value)
        await db.commit()

    @staticmethod
    async def get_pricing_settings(db: AsyncSession) -> PricingSettings:
        """
        Rooms from the rooms table plus the tariff documents stored in
        global_settings ("prices", "bulk_prices").

        Malformed tariffs are a configuration fault: they are logged in full
        here and surface to callers only as MissingRateError.
        """
        result = await db.execute(select(Room).order_by(Room.id))
        rooms = [RoomConfig.model_validate(room) for room in result.scalars().all()]

        try:
            prices = await SettingsService.get_json_setting(db, "prices") or {}
            bulk_prices = await SettingsService.get_json_setting(db, "bulk_prices")
            return PricingSettings(rooms=rooms, prices=prices, bulk_prices=bulk_prices)
        except (ValueError, ValidationError) as e:
            logger.error(f"Invalid pricing settings: {e}")
            raise MissingRateError("settings") from e

    @staticmethod
    async def get_christmas_settings(db: AsyncSession) -> ChristmasSettings:
        """Christmas periods and access codes ("christmas" document)."""
        try:
            data = await SettingsService.get_json_setting(db, "christmas") or {}
            return ChristmasSettings.model_validate(data)
        except (ValueError, ValidationError) as e:
            logger.error(f"Invalid christmas settings: {e}")
            raise BookingError("Invalid christmas settings") from e

    @staticmethod
    async def set_christmas_settings(db: AsyncSession, christmas: ChristmasSettings) -> None:
        await SettingsService.set_json_setting(
            db,
            "christmas",
            christmas.model_dump(mode="json"),
            description="Christmas periods and access codes",
        )
        logger.info(
            f"Christmas settings updated: {len(christmas.periods)} periods, "
            f"{len(christmas.access_codes)} access codes"
        )
