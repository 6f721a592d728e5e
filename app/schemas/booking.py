from datetime import date, datetime
from typing import Annotated, Literal, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.domain.pricing import BulkBooking, GuestBreakdown, PerRoomBooking, RoomStay
from app.models import BookingKind
from app.utils.validators import format_phone, validate_email, validate_phone


class GuestBreakdownIn(BaseModel):
    internal_adults: int = Field(0, ge=0)
    external_adults: int = Field(0, ge=0)
    internal_children: int = Field(0, ge=0)
    external_children: int = Field(0, ge=0)
    toddlers: int = Field(0, ge=0)

    model_config = ConfigDict(from_attributes=True)

    def to_domain(self) -> GuestBreakdown:
        return GuestBreakdown(**self.model_dump())


class RoomStayIn(BaseModel):
    room_id: str
    start_date: date
    end_date: date
    guests: GuestBreakdownIn = GuestBreakdownIn()

    def to_domain(self) -> RoomStay:
        return RoomStay(self.room_id, self.start_date, self.end_date, self.guests.to_domain())


class PerRoomReservationIn(BaseModel):
    kind: Literal["per_room"] = "per_room"
    rooms: list[RoomStayIn] = Field(min_length=1)

    def to_domain(self, all_room_ids: Sequence[str] = ()) -> PerRoomBooking:
        return PerRoomBooking(tuple(stay.to_domain() for stay in self.rooms))


class BulkReservationIn(BaseModel):
    kind: Literal["bulk"]
    start_date: date
    end_date: date
    guests: GuestBreakdownIn = GuestBreakdownIn()
    # Defaults to every room of the property
    room_ids: Optional[list[str]] = None

    def to_domain(self, all_room_ids: Sequence[str] = ()) -> BulkBooking:
        room_ids = self.room_ids if self.room_ids is not None else all_room_ids
        return BulkBooking(
            tuple(room_ids), self.start_date, self.end_date, self.guests.to_domain()
        )


ReservationIn = Annotated[
    Union[PerRoomReservationIn, BulkReservationIn], Field(discriminator="kind")
]


class ContactIn(BaseModel):
    name: str = Field(min_length=1)
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if not validate_email(value):
            raise ValueError("invalid email address")
        return value.strip()

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        if not validate_phone(value):
            raise ValueError("phone must be +420 or +421 followed by 9 digits")
        return format_phone(value)


class BookingCreate(BaseModel):
    reservation: ReservationIn
    contact: ContactIn
    session_id: Optional[str] = None
    access_code: Optional[str] = None


class BookingUpdate(BaseModel):
    reservation: ReservationIn
    contact: Optional[ContactIn] = None
    session_id: Optional[str] = None
    access_code: Optional[str] = None


class BookingRoomOut(BaseModel):
    room_id: str
    start_date: date
    end_date: date
    price: int
    guests: GuestBreakdownIn

    model_config = ConfigDict(from_attributes=True)


class BookingOut(BaseModel):
    id: str
    kind: BookingKind
    start_date: date
    end_date: date
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    total_price: int
    guests: GuestBreakdownIn
    rooms: list[BookingRoomOut]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingCreated(BookingOut):
    # Returned once, at creation; needed for every later edit
    edit_token: str
