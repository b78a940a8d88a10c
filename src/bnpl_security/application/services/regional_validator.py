"""Norwegian regional header validation.

Requests to regional endpoints may carry a phone number, postal code and
organization number. Present values must be well formed.
"""

import re
from typing import Mapping

from ...config.settings import SecuritySettings
from ...core.exceptions import RegionalFormatError

PHONE_PATTERN = re.compile(r"^\+47\d{8}$")
POSTAL_CODE_PATTERN = re.compile(r"^\d{4}$")
ORG_NUMBER_PATTERN = re.compile(r"^\d{9}$")
ORG_NUMBER_WEIGHTS = (3, 2, 7, 6, 5, 4, 3, 2)


def is_valid_phone_number(value: str) -> bool:
    return bool(PHONE_PATTERN.match(value))


def is_valid_postal_code(value: str) -> bool:
    return bool(POSTAL_CODE_PATTERN.match(value))


def is_valid_org_number(value: str) -> bool:
    """Nine digits with a MOD-11 check digit."""
    if not ORG_NUMBER_PATTERN.match(value):
        return False
    digits = [int(c) for c in value]
    remainder = sum(d * w for d, w in zip(digits, ORG_NUMBER_WEIGHTS)) % 11
    check_digit = 0 if remainder == 0 else 11 - remainder
    # A computed check digit of 10 has no valid representation.
    return check_digit < 10 and check_digit == digits[8]


class RegionalHeaderValidator:
    """Validates regional headers on regional endpoints."""

    HEADER_CHECKS = (
        ("X-Phone-Number", is_valid_phone_number, "Invalid Norwegian phone number format"),
        ("X-Postal-Code", is_valid_postal_code, "Invalid Norwegian postal code format"),
        ("X-Org-Number", is_valid_org_number, "Invalid Norwegian organization number"),
    )

    def __init__(self, settings: SecuritySettings):
        self._markers = [m.lower() for m in settings.regional_path_markers]

    def applies_to(self, path: str) -> bool:
        lowered = path.lower()
        return any(marker in lowered for marker in self._markers)

    def validate(self, headers: Mapping[str, str]) -> None:
        for header, check, message in self.HEADER_CHECKS:
            value = headers.get(header)
            if value is not None and not check(value.strip()):
                raise RegionalFormatError(message, details={"header": header})
