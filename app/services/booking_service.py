import logging
import secrets
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.domain.christmas import check_christmas
from app.domain.errors import InvalidTokenError, NotFoundError
from app.domain.pricing import (
    BulkBooking,
    PerRoomBooking,
    ReservationRequest,
    RoomStay,
    calculate_price,
    check_request,
    per_room_prices,
)
from app.models import Booking, BookingKind, BookingRoom
from app.schemas.settings import PricingSettings
from app.services import claim_service
from app.services.availability_service import AvailabilityService
from app.services.booking_validator import BookingValidator
from app.services.claim_service import ClaimOwner
from app.services.hold_service import HoldService
from app.services.settings_service import SettingsService
from app.utils.clock import utcnow
from app.utils.ids import new_booking_id, new_edit_token
from app.utils.validators import validate_booking_dates

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ("name", "email", "phone", "company", "address", "notes")


class BookingService:
    """Booking lifecycle: quote, create, edit, cancel."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock
        self.validator = BookingValidator(AvailabilityService(clock))
        self.holds = HoldService(clock=clock)

    async def quote(self, db: AsyncSession, request: ReservationRequest) -> dict:
        """Price a request with the current tariffs without writing anything."""
        pricing = await SettingsService.get_pricing_settings(db)
        check_request(request, pricing)
        return self._price(request, pricing)

    async def create_booking(
        self,
        db: AsyncSession,
        request: ReservationRequest,
        contact: dict,
        session_id: Optional[str] = None,
        access_code: Optional[str] = None,
    ) -> Booking:
        """
        Store a new booking.

        The session's own holds do not block it, and once the booking is
        stored every hold of that session is deleted in the same transaction.
        Stays inside a Christmas period are subject to check_christmas.
        """
        pricing = await SettingsService.get_pricing_settings(db)
        check_request(request, pricing)
        now = self.clock()
        for stay in request.stays:
            validate_booking_dates(
                stay.start_date, stay.end_date, now.date(), settings.booking_horizon_days
            )
        christmas = await SettingsService.get_christmas_settings(db)
        check_christmas(request, christmas, now.date(), access_code)

        try:
            result = await self.validator.validate_stays(
                db, request.stays, exclude_session_id=session_id
            )
            result.raise_for_conflict()
            price = self._price(request, pricing)

            booking = Booking(
                id=new_booking_id(),
                edit_token=new_edit_token(),
                kind=self._kind(request),
                start_date=request.start_date,
                end_date=request.end_date,
                total_price=price["total"],
                rate_snapshot=pricing.model_dump_json(),
                session_id=session_id,
                created_at=now,
                updated_at=now,
            )
            self._apply_contact(booking, contact)
            booking.set_guests(request.guests)
            booking.rooms = self._schedule(request, price["rooms"], {})
            db.add(booking)
            await db.flush()

            await claim_service.claim_nights(
                db, request.stays, ClaimOwner.for_booking(booking.id, session_id), now
            )
            if session_id:
                await self.holds.delete_session_holds(db, session_id, commit=False)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            f"Booking {booking.id} created: rooms {booking.room_ids}, "
            f"{booking.start_date} - {booking.end_date}, total {booking.total_price}"
        )
        return booking

    async def update_booking(
        self,
        db: AsyncSession,
        booking_id: str,
        edit_token: str,
        request: ReservationRequest,
        contact: Optional[dict] = None,
        session_id: Optional[str] = None,
        access_code: Optional[str] = None,
    ) -> Booking:
        """
        Replace the schedule and guests of an existing booking.

        The price is recomputed from the rates stored with the booking, so an
        edit never picks up tariff changes made after the booking was placed.
        Moving into a Christmas period the booking did not touch before needs
        an access code like a new booking.
        """
        booking = await self.get_booking(db, booking_id, edit_token)
        locked = PricingSettings.model_validate_json(booking.rate_snapshot)
        check_request(request, locked)
        now = self.clock()
        for stay in request.stays:
            # Past nights of a running stay stay editable, the horizon still applies
            validate_booking_dates(
                stay.start_date,
                stay.end_date,
                now.date(),
                settings.booking_horizon_days,
                allow_past=True,
            )
        christmas = await SettingsService.get_christmas_settings(db)
        previous = [
            RoomStay(room.room_id, room.start_date, room.end_date) for room in booking.rooms
        ]
        check_christmas(request, christmas, now.date(), access_code, previous)

        try:
            result = await self.validator.validate_stays(
                db,
                request.stays,
                exclude_booking_id=booking_id,
                exclude_session_id=session_id,
            )
            result.raise_for_conflict()
            price = self._price(request, locked)

            await claim_service.release_booking(db, booking_id)
            await claim_service.claim_nights(
                db, request.stays, ClaimOwner.for_booking(booking_id, session_id), now
            )

            existing = {room.room_id: room for room in booking.rooms}
            booking.rooms = self._schedule(request, price["rooms"], existing)
            booking.kind = self._kind(request)
            booking.start_date = request.start_date
            booking.end_date = request.end_date
            booking.total_price = price["total"]
            booking.set_guests(request.guests)
            if contact:
                self._apply_contact(booking, contact)
            booking.updated_at = now
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            f"Booking {booking_id} updated: rooms {booking.room_ids}, "
            f"{booking.start_date} - {booking.end_date}, total {booking.total_price}"
        )
        return booking

    async def cancel_booking(self, db: AsyncSession, booking_id: str, edit_token: str) -> None:
        """Delete the booking, its rooms and its night claims."""
        booking = await self.get_booking(db, booking_id, edit_token)
        await claim_service.release_booking(db, booking_id)
        await db.delete(booking)
        await db.commit()
        logger.info(f"Booking {booking_id} cancelled")

    async def get_booking(
        self, db: AsyncSession, booking_id: str, edit_token: Optional[str] = None
    ) -> Booking:
        """Load a booking, checking the edit token when one is given.

        Raises NotFoundError or InvalidTokenError.
        """
        booking = await db.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        if edit_token is not None and not secrets.compare_digest(
            booking.edit_token, edit_token
        ):
            logger.warning(f"Invalid edit token for booking {booking_id}")
            raise InvalidTokenError()
        return booking

    @staticmethod
    def _kind(request: ReservationRequest) -> BookingKind:
        return BookingKind.BULK if isinstance(request, BulkBooking) else BookingKind.PER_ROOM

    @staticmethod
    def _price(request: ReservationRequest, pricing: PricingSettings) -> dict:
        if isinstance(request, PerRoomBooking):
            rooms = per_room_prices(request, pricing)
            return {"total": sum(rooms.values()), "rooms": rooms}
        # A bulk price is not split across rooms
        return {"total": calculate_price(request, pricing), "rooms": {}}

    @staticmethod
    def _schedule(
        request: ReservationRequest,
        room_prices: dict[str, int],
        existing: dict[str, BookingRoom],
    ) -> list[BookingRoom]:
        rooms = []
        for stay in request.stays:
            room = existing.get(stay.room_id) or BookingRoom(room_id=stay.room_id)
            room.start_date = stay.start_date
            room.end_date = stay.end_date
            room.price = room_prices.get(stay.room_id, 0)
            room.set_guests(stay.guests)
            rooms.append(room)
        return rooms

    @staticmethod
    def _apply_contact(booking: Booking, contact: dict) -> None:
        for key in CONTACT_FIELDS:
            if key in contact:
                setattr(booking, key, contact[key])


booking_service = BookingService()
