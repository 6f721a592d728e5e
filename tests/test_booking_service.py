"""
Booking creation, edit with price lock, and cancellation
"""
from datetime import date

import pytest
import pytest_asyncio
from sqlalchemy import select

from app.domain.availability import AvailabilityStatus, contact_key
from app.domain.errors import (
    CapacityError,
    ChristmasAccessError,
    ConflictError,
    InvalidRangeError,
    InvalidTokenError,
    NotFoundError,
)
from app.domain.pricing import BulkBooking, GuestBreakdown, PerRoomBooking, RoomStay
from app.models import Booking, BookingKind, Hold, RoomNightClaim
from app.schemas.settings import ChristmasPeriod, ChristmasSettings
from app.services import claim_service
from app.services.availability_service import AvailabilityService
from app.services.booking_service import BookingService
from app.services.hold_service import HoldService
from app.services.room_service import RoomService
from app.services.settings_service import SettingsService

JUNE_10 = date(2025, 6, 10)
JUNE_12 = date(2025, 6, 12)
JUNE_13 = date(2025, 6, 13)


@pytest.fixture
def bookings(clock):
    return BookingService(clock)


def per_room(*stays):
    return PerRoomBooking(tuple(stays))


@pytest.mark.asyncio
async def test_create_per_room_booking(db, bookings, contact):
    request = per_room(
        RoomStay("12", JUNE_10, JUNE_12, GuestBreakdown(internal_adults=1, external_adults=1)),
        RoomStay("14", JUNE_10, JUNE_13, GuestBreakdown(external_adults=2, toddlers=1)),
    )
    booking = await bookings.create_booking(db, request, contact)

    assert booking.id.startswith("BK") and len(booking.id) == 15
    assert len(booking.edit_token) == 30
    assert booking.kind == BookingKind.PER_ROOM
    assert booking.start_date == JUNE_10
    assert booking.end_date == JUNE_13
    # small, internal empty rate: 250*2 + 50*2 + 100*2
    # large, external only: 500*3 + 2*120*3
    assert {room.room_id: room.price for room in booking.rooms} == {"12": 800, "14": 2220}
    assert booking.total_price == 3020
    assert booking.guests == GuestBreakdown(internal_adults=1, external_adults=3, toddlers=1)
    assert booking.phone == "+420 601 234 567"

    nights = await claim_service.claims_for_booking(db, booking.id)
    assert [(claim.room_id, claim.night) for claim in nights] == [
        ("12", date(2025, 6, 10)),
        ("12", date(2025, 6, 11)),
        ("14", date(2025, 6, 10)),
        ("14", date(2025, 6, 11)),
        ("14", date(2025, 6, 12)),
    ]


@pytest.mark.asyncio
async def test_create_bulk_booking(db, bookings, contact):
    room_ids = await RoomService.get_room_ids(db)
    request = BulkBooking(tuple(room_ids), JUNE_10, JUNE_12, GuestBreakdown(internal_adults=10, external_children=4))

    booking = await bookings.create_booking(db, request, contact)

    assert booking.kind == BookingKind.BULK
    # 2000*2 + 10*100*2 + 4*50*2
    assert booking.total_price == 6400
    assert sorted(booking.room_ids) == sorted(room_ids)
    assert all(room.price == 0 for room in booking.rooms)


@pytest.mark.asyncio
async def test_double_booking_is_rejected(db, bookings, contact):
    await bookings.create_booking(db, per_room(RoomStay("12", JUNE_10, JUNE_12)), contact)

    with pytest.raises(ConflictError) as exc_info:
        await bookings.create_booking(db, per_room(RoomStay("12", date(2025, 6, 11), JUNE_13)), contact)
    assert exc_info.value.day == date(2025, 6, 11)
    assert exc_info.value.reason == "booked"

    # Back-to-back is fine
    await bookings.create_booking(db, per_room(RoomStay("12", JUNE_12, JUNE_13)), contact)


@pytest.mark.asyncio
async def test_booking_absorbs_own_holds_and_releases_them(db, bookings, clock, contact):
    holds = HoldService(clock=clock)
    await holds.create_hold(db, "SESSA", JUNE_10, JUNE_12, ["12"])
    await holds.create_hold(db, "SESSA", JUNE_10, JUNE_12, ["13"])
    other = await holds.create_hold(db, "SESSB", JUNE_10, JUNE_12, ["14"])

    booking = await bookings.create_booking(
        db, per_room(RoomStay("12", JUNE_10, JUNE_12, GuestBreakdown(internal_adults=1))), contact, "SESSA"
    )

    assert (await db.execute(select(Hold.proposal_id))).scalars().all() == [other]
    claim = await db.get(RoomNightClaim, ("12", JUNE_10))
    assert claim.booking_id == booking.id
    # The abandoned room 13 hold no longer claims anything
    assert await db.get(RoomNightClaim, ("13", JUNE_10)) is None


@pytest.mark.asyncio
async def test_booking_blocked_by_other_sessions_hold(db, bookings, clock, contact):
    await HoldService(clock=clock).create_hold(db, "SESSB", JUNE_10, JUNE_12, ["12"])

    with pytest.raises(ConflictError) as exc_info:
        await bookings.create_booking(db, per_room(RoomStay("12", JUNE_10, JUNE_12)), contact, "SESSA")
    assert exc_info.value.reason == "proposed"
    assert (await db.execute(select(Booking))).scalars().all() == []


@pytest.mark.asyncio
async def test_rejects_past_far_future_and_overfull_rooms(db, bookings, contact):
    with pytest.raises(InvalidRangeError) as exc_info:
        await bookings.create_booking(db, per_room(RoomStay("12", date(2025, 4, 1), date(2025, 4, 3))), contact)
    assert exc_info.value.message_key == "past_start"

    with pytest.raises(InvalidRangeError) as exc_info:
        await bookings.create_booking(db, per_room(RoomStay("12", date(2027, 6, 1), date(2027, 6, 3))), contact)
    assert exc_info.value.message_key == "beyond_horizon"

    with pytest.raises(CapacityError):
        await bookings.create_booking(
            db, per_room(RoomStay("12", JUNE_10, JUNE_12, GuestBreakdown(external_adults=3))), contact
        )


@pytest.mark.asyncio
async def test_update_keeps_locked_prices(db, bookings, contact):
    booking = await bookings.create_booking(
        db, per_room(RoomStay("12", JUNE_10, JUNE_12, GuestBreakdown(internal_adults=1))), contact
    )
    assert booking.total_price == 250 * 2 + 50 * 2

    # Tariffs change after the booking was placed
    prices = await SettingsService.get_json_setting(db, "prices")
    prices["internal"]["small"] = {"empty": 999, "adult": 999, "child": 999}
    await SettingsService.set_json_setting(db, "prices", prices)

    updated = await bookings.update_booking(
        db,
        booking.id,
        booking.edit_token,
        per_room(RoomStay("12", JUNE_10, JUNE_13, GuestBreakdown(internal_adults=2))),
    )

    assert updated.total_price == 250 * 3 + 2 * 50 * 3
    assert updated.end_date == JUNE_13
    nights = await claim_service.claims_for_booking(db, booking.id)
    assert [claim.night for claim in nights] == [date(2025, 6, 10), date(2025, 6, 11), date(2025, 6, 12)]


@pytest.mark.asyncio
async def test_update_can_move_to_other_room(db, bookings, contact):
    booking = await bookings.create_booking(db, per_room(RoomStay("12", JUNE_10, JUNE_12)), contact)

    updated = await bookings.update_booking(
        db, booking.id, booking.edit_token, per_room(RoomStay("22", JUNE_10, JUNE_12))
    )

    assert updated.room_ids == ["22"]
    assert {claim.room_id for claim in await claim_service.claims_for_booking(db, booking.id)} == {"22"}
    # Room 12 is free again
    await bookings.create_booking(db, per_room(RoomStay("12", JUNE_10, JUNE_12)), contact)


@pytest.mark.asyncio
async def test_update_conflicting_with_other_booking_changes_nothing(
    db, bookings, contact, session_factory
):
    first = await bookings.create_booking(db, per_room(RoomStay("12", JUNE_10, JUNE_12)), contact)
    booking_id, edit_token = first.id, first.edit_token
    await bookings.create_booking(db, per_room(RoomStay("13", JUNE_10, JUNE_12)), contact)

    with pytest.raises(ConflictError):
        await bookings.update_booking(db, booking_id, edit_token, per_room(RoomStay("13", JUNE_10, JUNE_12)))

    # The rollback expired everything loaded in db, read back through a fresh session
    async with session_factory() as session:
        reloaded = await bookings.get_booking(session, booking_id, edit_token)
        assert reloaded.room_ids == ["12"]
        assert reloaded.end_date == JUNE_12
        claims = await claim_service.claims_for_booking(session, booking_id)
        assert [(claim.room_id, claim.night) for claim in claims] == [
            ("12", JUNE_10),
            ("12", date(2025, 6, 11)),
        ]


@pytest.mark.asyncio
async def test_edit_token_is_required(db, bookings, contact):
    booking = await bookings.create_booking(db, per_room(RoomStay("12", JUNE_10, JUNE_12)), contact)

    with pytest.raises(InvalidTokenError):
        await bookings.get_booking(db, booking.id, "wrong")
    with pytest.raises(InvalidTokenError):
        await bookings.cancel_booking(db, booking.id, "wrong")
    with pytest.raises(NotFoundError):
        await bookings.get_booking(db, "BKNOTEXISTING00", booking.edit_token)


@pytest.mark.asyncio
async def test_cancel_frees_the_rooms(db, bookings, contact):
    booking = await bookings.create_booking(db, per_room(RoomStay("12", JUNE_10, JUNE_12)), contact)

    await bookings.cancel_booking(db, booking.id, booking.edit_token)

    assert await claim_service.claims_for_booking(db, booking.id) == []
    with pytest.raises(NotFoundError):
        await bookings.get_booking(db, booking.id)
    await bookings.create_booking(db, per_room(RoomStay("12", JUNE_10, JUNE_12)), contact)


@pytest.mark.asyncio
async def test_booked_day_does_not_expose_guest_email(db, bookings, contact, clock):
    booking = await bookings.create_booking(db, per_room(RoomStay("12", JUNE_10, JUNE_12)), contact)

    result = await AvailabilityService(clock).resolve(db, JUNE_10, "12")

    assert result.status == AvailabilityStatus.BOOKED
    assert result.detail == {"booking_id": booking.id, "contact_key": contact_key(contact["email"])}
    assert contact["email"] not in str(result.detail)


@pytest_asyncio.fixture
async def christmas(db):
    await SettingsService.set_christmas_settings(
        db,
        ChristmasSettings(
            periods=[ChristmasPeriod(start=date(2025, 12, 23), end=date(2026, 1, 2))],
            access_codes=["XMAS2025"],
        ),
    )


@pytest.mark.asyncio
async def test_christmas_booking_needs_access_code(db, bookings, contact, christmas):
    request = per_room(RoomStay("12", date(2025, 12, 24), date(2025, 12, 26)))

    with pytest.raises(ChristmasAccessError):
        await bookings.create_booking(db, request, contact)
    assert (await db.execute(select(Booking))).scalars().all() == []

    booking = await bookings.create_booking(db, request, contact, access_code="XMAS2025")
    assert booking.start_date == date(2025, 12, 24)


@pytest.mark.asyncio
async def test_moving_a_booking_into_christmas_needs_access_code(db, bookings, contact, christmas):
    booking = await bookings.create_booking(
        db, per_room(RoomStay("12", date(2025, 12, 10), date(2025, 12, 12))), contact
    )
    moved = per_room(RoomStay("12", date(2025, 12, 22), date(2025, 12, 24)))

    with pytest.raises(ChristmasAccessError):
        await bookings.update_booking(db, booking.id, booking.edit_token, moved)

    updated = await bookings.update_booking(
        db, booking.id, booking.edit_token, moved, access_code="XMAS2025"
    )
    # Already inside the period: a further change needs no code
    updated = await bookings.update_booking(
        db, updated.id, updated.edit_token, per_room(RoomStay("12", date(2025, 12, 22), date(2025, 12, 25)))
    )
    assert updated.end_date == date(2025, 12, 25)
