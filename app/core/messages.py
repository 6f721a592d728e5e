from app.core.config import settings
from app.domain.errors import BookingError

STATUS_LABELS = {
    "cs": {
        "available": "volno",
        "booked": "obsazeno",
        "blocked": "blokováno",
        "proposed": "navrženo jiným uživatelem",
    },
    "en": {
        "available": "available",
        "booked": "booked",
        "blocked": "blocked",
        "proposed": "proposed by another visitor",
    },
}

TEMPLATES = {
    "cs": {
        "generic_error": "Došlo k chybě, zkuste to prosím znovu.",
        "invalid_range": "Neplatné období: {start_date} – {end_date}.",
        "unknown_room": "Pokoj {room_id} neexistuje.",
        "conflict": "Pokoj {room_id} není {date} k dispozici ({reason}).",
        "pricing_unavailable": "Cenu nyní nelze spočítat. Kontaktujte prosím správce.",
        "capacity_exceeded": "Pokoj {room_id} má {beds} lůžek, zadáno hostů: {guests}.",
        "not_found": "Záznam nebyl nalezen.",
        "hold_not_owned": "Tento návrh rezervace patří jiné relaci.",
        "invalid_token": "Neplatný odkaz pro úpravu rezervace.",
        "past_start": "Nelze rezervovat v minulosti.",
        "beyond_horizon": "Rezervaci nelze vytvořit více než {days} dní dopředu.",
        "christmas_code_required": "Rezervace v období {period_start} – {period_end} vyžaduje přístupový kód.",
        "christmas_bulk_closed": "Celou chatu nelze v období {period_start} – {period_end} rezervovat.",
        "christmas_room_limit": "Do 30. září lze v období {period_start} – {period_end} rezervovat nejvýše {max_rooms} pokoje.",
    },
    "en": {
        "generic_error": "Something went wrong, please try again.",
        "invalid_range": "Invalid period: {start_date} – {end_date}.",
        "unknown_room": "Room {room_id} does not exist.",
        "conflict": "Room {room_id} is not available on {date} ({reason}).",
        "pricing_unavailable": "The price cannot be calculated right now. Please contact the administrator.",
        "capacity_exceeded": "Room {room_id} has {beds} beds but {guests} guests were entered.",
        "not_found": "The record was not found.",
        "hold_not_owned": "This proposed booking belongs to another session.",
        "invalid_token": "Invalid booking edit link.",
        "past_start": "Bookings cannot start in the past.",
        "beyond_horizon": "Bookings cannot be made more than {days} days ahead.",
        "christmas_code_required": "Bookings for {period_start} – {period_end} require an access code.",
        "christmas_bulk_closed": "The whole chalet cannot be booked for {period_start} – {period_end}.",
        "christmas_room_limit": "Until 30 September at most {max_rooms} rooms can be booked for {period_start} – {period_end}.",
    },
}


class Messages:
    """
    Centralized store for user-facing messages.
    Error texts are keyed by BookingError.message_key and filled from the
    error's details; missing details fall back to the generic text.
    """

    def language(self, lang: str | None) -> str:
        lang = (lang or settings.default_language).lower()
        return lang if lang in TEMPLATES else "en"

    def status_label(self, status: str, lang: str | None = None) -> str:
        return STATUS_LABELS[self.language(lang)].get(status, status)

    def for_error(self, error: BookingError, lang: str | None = None) -> str:
        lang = self.language(lang)
        details = dict(error.details())
        if "reason" in details:
            details["reason"] = self.status_label(details["reason"], lang)
        if "days" not in details:
            details["days"] = settings.booking_horizon_days

        template = TEMPLATES[lang].get(error.message_key, TEMPLATES[lang]["generic_error"])
        try:
            return template.format(**details)
        except KeyError:
            return TEMPLATES[lang]["generic_error"]


messages = Messages()
