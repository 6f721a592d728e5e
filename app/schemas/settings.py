from datetime import date
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from app.domain.errors import InvalidRangeError


class GuestTier(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


class RoomSize(str, Enum):
    SMALL = "small"
    LARGE = "large"


class RoomConfig(BaseModel):
    id: str
    name: str
    beds: int = Field(ge=1)
    size: RoomSize = RoomSize.SMALL

    model_config = ConfigDict(from_attributes=True)


class RateCard(BaseModel):
    # "base" is the key older settings documents use for the empty-room rate
    empty: int = Field(ge=0, validation_alias=AliasChoices("empty", "base"))
    adult: int = Field(ge=0)
    child: int = Field(ge=0)


class BulkRates(BaseModel):
    base_price: int = Field(ge=0, validation_alias=AliasChoices("base_price", "basePrice"))
    internal_adult: int = Field(ge=0, validation_alias=AliasChoices("internal_adult", "internalAdult"))
    internal_child: int = Field(ge=0, validation_alias=AliasChoices("internal_child", "internalChild"))
    external_adult: int = Field(ge=0, validation_alias=AliasChoices("external_adult", "externalAdult"))
    external_child: int = Field(ge=0, validation_alias=AliasChoices("external_child", "externalChild"))


class PricingSettings(BaseModel):
    """Rooms and tariffs as produced by the settings collaborator.

    ``prices`` is keyed by tier then size class. Absent combinations are kept
    absent: the calculator reports them instead of substituting defaults.
    """

    rooms: list[RoomConfig] = []
    prices: dict[GuestTier, dict[RoomSize, RateCard]] = {}
    bulk_prices: Optional[BulkRates] = Field(
        default=None, validation_alias=AliasChoices("bulk_prices", "bulkPrices")
    )

    @property
    def room_ids(self) -> list[str]:
        return [room.id for room in self.rooms]

    def room(self, room_id: str) -> RoomConfig:
        for room in self.rooms:
            if room.id == room_id:
                return room
        raise InvalidRangeError(
            f"Unknown room {room_id}", room_id=room_id, message_key="unknown_room"
        )


class ChristmasPeriod(BaseModel):
    name: str = ""
    start: date
    # Last night of the period, inclusive
    end: date

    @model_validator(mode="after")
    def check_order(self) -> "ChristmasPeriod":
        if self.end < self.start:
            raise ValueError("Christmas period ends before it starts")
        return self


class ChristmasSettings(BaseModel):
    """Christmas periods and the access codes valid for them.

    Stored as one JSON document in global_settings under "christmas".
    No periods means no Christmas restrictions at all.
    """

    periods: list[ChristmasPeriod] = Field(
        default=[], validation_alias=AliasChoices("periods", "christmasPeriods")
    )
    access_codes: list[str] = Field(
        default=[], validation_alias=AliasChoices("access_codes", "christmasAccessCodes")
    )
