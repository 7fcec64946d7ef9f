import re
from typing import Optional

from .config import settings

# E.164: "+" followed by 7 to 15 digits, no leading zero in the country code
PHONE_PATTERN = re.compile(r"^\+[1-9]\d{6,14}$")


def normalize_phone(raw: Optional[str], default_country_code: Optional[str] = None) -> Optional[str]:
    """Strip formatting and add the international prefix.

    Local numbers with a trunk "0" get the default country code, so
    ``08012345678`` becomes ``+2348012345678`` with the default of ``234``.
    Returns None when nothing usable is left.
    """
    if raw is None:
        return None
    country = default_country_code if default_country_code is not None else settings.DEFAULT_COUNTRY_CODE
    digits = re.sub(r"[^\d+]", "", str(raw).strip())
    if digits.startswith("00"):
        digits = "+" + digits[2:]
    if not digits.startswith("+"):
        if digits.startswith("0") and country:
            digits = "+" + country + digits[1:]
        else:
            digits = "+" + digits
    if digits == "+":
        return None
    return digits


def is_valid_phone(phone: Optional[str]) -> bool:
    return bool(phone) and PHONE_PATTERN.match(phone) is not None
