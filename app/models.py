from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    String,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    Text,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.domain.pricing import GuestBreakdown
from app.schemas.settings import RoomSize
from app.utils.clock import utcnow


class BookingKind(str, Enum):
    PER_ROOM = "per_room"
    BULK = "bulk"


class GuestCountsMixin:
    internal_adults: Mapped[int] = mapped_column(Integer, default=0)
    external_adults: Mapped[int] = mapped_column(Integer, default=0)
    internal_children: Mapped[int] = mapped_column(Integer, default=0)
    external_children: Mapped[int] = mapped_column(Integer, default=0)
    toddlers: Mapped[int] = mapped_column(Integer, default=0)

    @property
    def guests(self) -> GuestBreakdown:
        return GuestBreakdown(
            internal_adults=self.internal_adults or 0,
            external_adults=self.external_adults or 0,
            internal_children=self.internal_children or 0,
            external_children=self.external_children or 0,
            toddlers=self.toddlers or 0,
        )

    def set_guests(self, guests: GuestBreakdown) -> None:
        self.internal_adults = guests.internal_adults
        self.external_adults = guests.external_adults
        self.internal_children = guests.internal_children
        self.external_children = guests.external_children
        self.toddlers = guests.toddlers


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String)
    beds: Mapped[int] = mapped_column(Integer, default=2)
    size: Mapped[RoomSize] = mapped_column(SQLEnum(RoomSize), default=RoomSize.SMALL)


class Booking(GuestCountsMixin, Base):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    edit_token: Mapped[str] = mapped_column(String, index=True)
    kind: Mapped[BookingKind] = mapped_column(
        SQLEnum(BookingKind), default=BookingKind.PER_ROOM
    )

    # Envelope of all per-room ranges, [start_date, end_date)
    start_date: Mapped[date] = mapped_column(Date, index=True)
    end_date: Mapped[date] = mapped_column(Date, index=True)

    # Contact data, opaque to the reservation core
    name: Mapped[str] = mapped_column(String)
    email: Mapped[str] = mapped_column(String)
    phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    company: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    total_price: Mapped[int] = mapped_column(Integer, default=0)
    # JSON dump of the PricingSettings the price was computed with
    rate_snapshot: Mapped[str] = mapped_column(Text)

    session_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )

    rooms: Mapped[list["BookingRoom"]] = relationship(
        back_populates="booking",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="BookingRoom.room_id",
    )

    @property
    def room_ids(self) -> list[str]:
        return [room.room_id for room in self.rooms]


class BookingRoom(GuestCountsMixin, Base):
    __tablename__ = "booking_rooms"

    id: Mapped[int] = mapped_column(primary_key=True)
    booking_id: Mapped[str] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), index=True
    )
    room_id: Mapped[str] = mapped_column(ForeignKey("rooms.id"), index=True)
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    price: Mapped[int] = mapped_column(Integer, default=0)

    booking: Mapped["Booking"] = relationship(back_populates="rooms")

    __table_args__ = (
        UniqueConstraint("booking_id", "room_id", name="uniq_booking_room"),
    )


class BlockedDate(Base):
    __tablename__ = "blocked_dates"

    id: Mapped[int] = mapped_column(primary_key=True)
    blockage_id: Mapped[str] = mapped_column(String, index=True)
    # NULL means every room
    room_id: Mapped[Optional[str]] = mapped_column(String, nullable=True, index=True)
    blocked_date: Mapped[date] = mapped_column(Date, index=True)
    reason: Mapped[str] = mapped_column(String, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Hold(GuestCountsMixin, Base):
    __tablename__ = "holds"

    proposal_id: Mapped[str] = mapped_column(String, primary_key=True)
    session_id: Mapped[str] = mapped_column(String, index=True)
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)
    total_price: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime)
    expires_at: Mapped[datetime] = mapped_column(DateTime, index=True)

    rooms: Mapped[list["HoldRoom"]] = relationship(
        back_populates="hold",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="HoldRoom.room_id",
    )

    @property
    def room_ids(self) -> list[str]:
        return [room.room_id for room in self.rooms]


class HoldRoom(Base):
    __tablename__ = "hold_rooms"

    proposal_id: Mapped[str] = mapped_column(
        ForeignKey("holds.proposal_id", ondelete="CASCADE"), primary_key=True
    )
    room_id: Mapped[str] = mapped_column(String, primary_key=True, index=True)

    hold: Mapped["Hold"] = relationship(back_populates="rooms")


class RoomNightClaim(Base):
    """
    One row per occupied (room, night). The primary key is the storage-level
    guarantee that two writers never both own a night; see
    app.services.claim_service for the take-over rules.
    """

    __tablename__ = "room_night_claims"

    room_id: Mapped[str] = mapped_column(String, primary_key=True)
    night: Mapped[date] = mapped_column(Date, primary_key=True)

    booking_id: Mapped[Optional[str]] = mapped_column(String, nullable=True, index=True)
    proposal_id: Mapped[Optional[str]] = mapped_column(String, nullable=True, index=True)
    session_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    # NULL for booking claims, which never expire
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class GlobalSetting(Base):
    __tablename__ = "global_settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
