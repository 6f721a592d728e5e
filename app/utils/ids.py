"""
Identifier and token generation.

Formats are part of the public surface (booking ids appear in e-mails and
edit links), so keep prefixes and lengths stable.
"""

import secrets
import string

UPPER_ALNUM = string.ascii_uppercase + string.digits
LOWER_ALNUM = string.ascii_lowercase + string.digits


def _random(alphabet: str, length: int) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def new_booking_id() -> str:
    """BK + 13 uppercase alphanumerics, e.g. BK1A2B3C4D5E6F7"""
    return "BK" + _random(UPPER_ALNUM, 13)


def new_edit_token() -> str:
    """30 lowercase alphanumerics, used in the booking edit link"""
    return _random(LOWER_ALNUM, 30)


def new_proposal_id() -> str:
    return "PROP" + _random(UPPER_ALNUM, 9)


def new_session_id() -> str:
    return "SESS" + _random(UPPER_ALNUM, 16)


def new_blockage_id() -> str:
    return "BLK" + _random(UPPER_ALNUM, 9)
