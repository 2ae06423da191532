"""Nigerian phone number normalisation.

Accepted inputs (spaces, dashes and brackets are ignored):
    0XXXXXXXXXX       -> +234XXXXXXXXXX
    234XXXXXXXXXX     -> +234XXXXXXXXXX
    +234XXXXXXXXXX    -> unchanged
"""

import re
from typing import Optional

_STRIP = re.compile(r"[\s\-()]")
_E164_NG = re.compile(r"^\+234\d{10}$")


def normalize_phone(raw: Optional[str]) -> Optional[str]:
    """Return the ``+234`` form of ``raw`` or ``None`` if it is not a Nigerian number."""
    if not raw:
        return None
    phone = _STRIP.sub("", raw)

    if phone.startswith("0") and len(phone) == 11:
        phone = "+234" + phone[1:]
    elif phone.startswith("234") and len(phone) == 13:
        phone = "+" + phone

    return phone if _E164_NG.match(phone) else None


def is_valid_phone(raw: Optional[str]) -> bool:
    return normalize_phone(raw) is not None
