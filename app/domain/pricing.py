"""
Mixed-rate pricing.

Two tariff models exist and they are never mixed:

* per-room: every room is priced on its own from the tier/size rate cards and
  the room prices are summed;
* bulk: the whole property is priced as one unit from a flat nightly base plus
  per-guest surcharges.

All amounts are non-negative integers in the smallest whole currency unit.
Nothing here rounds; integer inputs give integer outputs.
"""
import dataclasses
from dataclasses import dataclass
from datetime import date
from typing import Union

from app.domain.calendar import nights as count_nights
from app.domain.errors import CapacityError, InvalidRangeError, MissingRateError
from app.schemas.settings import GuestTier, PricingSettings, RateCard, RoomSize


@dataclass(frozen=True)
class GuestBreakdown:
    internal_adults: int = 0
    external_adults: int = 0
    internal_children: int = 0
    external_children: int = 0
    # Toddlers are free and do not need a bed
    toddlers: int = 0

    def __post_init__(self):
        for field in dataclasses.fields(self):
            if getattr(self, field.name) < 0:
                raise ValueError(f"{field.name} must not be negative")

    @property
    def adults(self) -> int:
        return self.internal_adults + self.external_adults

    @property
    def children(self) -> int:
        return self.internal_children + self.external_children

    @property
    def bed_guests(self) -> int:
        return self.adults + self.children

    @property
    def has_internal_guest(self) -> bool:
        return self.internal_adults + self.internal_children > 0

    @property
    def has_external_guest(self) -> bool:
        return self.external_adults + self.external_children > 0

    @property
    def empty_rate_tier(self) -> GuestTier:
        # Any internal occupant subsidizes the whole room
        return GuestTier.INTERNAL if self.has_internal_guest else GuestTier.EXTERNAL

    def __add__(self, other: "GuestBreakdown") -> "GuestBreakdown":
        return GuestBreakdown(
            internal_adults=self.internal_adults + other.internal_adults,
            external_adults=self.external_adults + other.external_adults,
            internal_children=self.internal_children + other.internal_children,
            external_children=self.external_children + other.external_children,
            toddlers=self.toddlers + other.toddlers,
        )

    def replace(self, **changes) -> "GuestBreakdown":
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class RoomStay:
    room_id: str
    start_date: date
    end_date: date
    guests: GuestBreakdown = GuestBreakdown()

    @property
    def nights(self) -> int:
        return count_nights(self.start_date, self.end_date)


@dataclass(frozen=True)
class PerRoomBooking:
    stays: tuple[RoomStay, ...]

    @property
    def room_ids(self) -> list[str]:
        return [stay.room_id for stay in self.stays]

    @property
    def start_date(self) -> date:
        return min(stay.start_date for stay in self.stays)

    @property
    def end_date(self) -> date:
        return max(stay.end_date for stay in self.stays)

    @property
    def guests(self) -> GuestBreakdown:
        total = GuestBreakdown()
        for stay in self.stays:
            total = total + stay.guests
        return total


@dataclass(frozen=True)
class BulkBooking:
    room_ids: tuple[str, ...]
    start_date: date
    end_date: date
    guests: GuestBreakdown = GuestBreakdown()

    @property
    def nights(self) -> int:
        return count_nights(self.start_date, self.end_date)

    @property
    def stays(self) -> tuple[RoomStay, ...]:
        # Guests of a bulk booking are not assigned to rooms
        return tuple(
            RoomStay(room_id, self.start_date, self.end_date) for room_id in self.room_ids
        )


ReservationRequest = Union[PerRoomBooking, BulkBooking]


def rate_card(settings: PricingSettings, tier: GuestTier, size: RoomSize) -> RateCard:
    card = settings.prices.get(tier, {}).get(size)
    if card is None:
        raise MissingRateError(tier.value, size.value)
    return card


def room_price(
    guests: GuestBreakdown, size: RoomSize, nights: int, settings: PricingSettings
) -> int:
    empty_rate = rate_card(settings, guests.empty_rate_tier, size).empty
    total = empty_rate * nights

    if guests.has_internal_guest:
        internal = rate_card(settings, GuestTier.INTERNAL, size)
        total += guests.internal_adults * internal.adult * nights
        total += guests.internal_children * internal.child * nights

    if guests.has_external_guest:
        external = rate_card(settings, GuestTier.EXTERNAL, size)
        total += guests.external_adults * external.adult * nights
        total += guests.external_children * external.child * nights

    return total


def per_room_prices(booking: PerRoomBooking, settings: PricingSettings) -> dict[str, int]:
    prices = {}
    for stay in booking.stays:
        room = settings.room(stay.room_id)
        prices[stay.room_id] = room_price(stay.guests, room.size, stay.nights, settings)
    return prices


def calculate_per_room_price(booking: PerRoomBooking, settings: PricingSettings) -> int:
    return sum(per_room_prices(booking, settings).values())


def calculate_bulk_price(
    guests: GuestBreakdown, nights: int, settings: PricingSettings
) -> int:
    bulk = settings.bulk_prices
    if bulk is None:
        raise MissingRateError("bulk")

    # The base covers the whole property, it is not multiplied by room count
    total = bulk.base_price * nights
    total += guests.internal_adults * bulk.internal_adult * nights
    total += guests.external_adults * bulk.external_adult * nights
    total += guests.internal_children * bulk.internal_child * nights
    total += guests.external_children * bulk.external_child * nights
    return total


def calculate_price(booking: ReservationRequest, settings: PricingSettings) -> int:
    if isinstance(booking, BulkBooking):
        return calculate_bulk_price(booking.guests, booking.nights, settings)
    return calculate_per_room_price(booking, settings)


def check_request(booking: ReservationRequest, settings: PricingSettings) -> None:
    """Structural checks shared by holds, bookings and edits.

    Raises InvalidRangeError for empty/inverted ranges, unknown or repeated
    rooms and incomplete bulk requests; CapacityError when a room gets more
    bed-needing guests than it has beds.
    """
    if not booking.stays:
        raise InvalidRangeError("No rooms selected")

    seen = set()
    for stay in booking.stays:
        if stay.start_date >= stay.end_date:
            raise InvalidRangeError(
                "End date must be after start date",
                start=stay.start_date,
                end=stay.end_date,
            )
        if stay.room_id in seen:
            raise InvalidRangeError(f"Room {stay.room_id} selected twice", room_id=stay.room_id)
        seen.add(stay.room_id)

        room = settings.room(stay.room_id)
        if stay.guests.bed_guests > room.beds:
            raise CapacityError(room.id, room.beds, stay.guests.bed_guests)

    if isinstance(booking, BulkBooking):
        missing = set(settings.room_ids) - seen
        if missing:
            raise InvalidRangeError(
                f"Bulk booking must include every room, missing {sorted(missing)}"
            )
        total_beds = sum(room.beds for room in settings.rooms)
        if booking.guests.bed_guests > total_beds:
            raise CapacityError("*", total_beds, booking.guests.bed_guests)
