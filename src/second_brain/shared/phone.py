"""
Phone number normalization to E.164-style international format.
"""

import re

NATIONAL_NUMBER_LENGTH = 10

_NON_DIGITS = re.compile(r"\D")


def normalize_phone_number(phone_number: str, default_country_code: str = "1") -> str:
    """Normalize a user-supplied phone number to ``+<country><number>``.

    Best effort only: the result is never rejected here even when it is not
    a plausible number; the verification provider fails on it instead.

    - Already prefixed with ``+``: returned unchanged.
    - 10 digits: national number, the default country code is prepended.
    - Anything else, including a number already carrying the country code:
      digits only, with ``+`` prepended.
    """
    candidate = phone_number.strip()
    if candidate.startswith("+"):
        return candidate

    digits = _NON_DIGITS.sub("", candidate)

    if len(digits) == NATIONAL_NUMBER_LENGTH:
        return f"+{default_country_code}{digits}"

    return f"+{digits}"
