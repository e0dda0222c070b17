# gst_compliance/domain/services/gstin_pan_validation.py
"""
GSTIN / PAN / LUT-number format validation and state-code lookups.

Format validation only. ``validate_gstin`` does NOT verify the GSTIN check
character; every result carries ``checksum_verified=False``. Callers that
need the real weighted modulo-36 check use ``verify_gstin_checksum``
explicitly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

PAN_REGEX = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
GSTIN_REGEX = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")
LUT_NUMBER_REGEX = re.compile(r"^[A-Z0-9/\-]{10,50}$")

GST_STATE_CODES: dict[str, str] = {
    "01": "Jammu and Kashmir",
    "02": "Himachal Pradesh",
    "03": "Punjab",
    "04": "Chandigarh",
    "05": "Uttarakhand",
    "06": "Haryana",
    "07": "Delhi",
    "08": "Rajasthan",
    "09": "Uttar Pradesh",
    "10": "Bihar",
    "11": "Sikkim",
    "12": "Arunachal Pradesh",
    "13": "Nagaland",
    "14": "Manipur",
    "15": "Mizoram",
    "16": "Tripura",
    "17": "Meghalaya",
    "18": "Assam",
    "19": "West Bengal",
    "20": "Jharkhand",
    "21": "Odisha",
    "22": "Chhattisgarh",
    "23": "Madhya Pradesh",
    "24": "Gujarat",
    "26": "Dadra and Nagar Haveli and Daman and Diu",
    "27": "Maharashtra",
    "28": "Andhra Pradesh",
    "29": "Karnataka",
    "30": "Goa",
    "31": "Lakshadweep",
    "32": "Kerala",
    "33": "Tamil Nadu",
    "34": "Puducherry",
    "35": "Andaman and Nicobar Islands",
    "36": "Telangana",
    "37": "Andhra Pradesh (New)",
    "38": "Ladakh",
    "97": "Other Territory",
    "99": "Centre Jurisdiction",
}

# 4th character of a PAN identifies the holder's status
PAN_ENTITY_TYPES: dict[str, str] = {
    "P": "INDIVIDUAL",
    "C": "COMPANY",
    "H": "HUF",
    "F": "FIRM",
    "T": "TRUST",
    "G": "GOVERNMENT",
    "A": "AOP",
    "B": "BOI",
    "L": "LOCAL_AUTHORITY",
    "J": "ARTIFICIAL_JURIDICAL_PERSON",
}
DEFAULT_PAN_ENTITY_TYPE = "INDIVIDUAL"

_CHECKSUM_CHARS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass(frozen=True)
class GstinValidation:
    valid: bool
    gstin: str = ""
    state_code: str | None = None
    pan: str | None = None
    error: str | None = None
    checksum_verified: bool = False


@dataclass(frozen=True)
class PanValidation:
    valid: bool
    entity_type: str | None = None
    error: str | None = None


def _normalize(value: str | None) -> str:
    if not value:
        return ""
    return re.sub(r"\s", "", value).upper()


def state_name(state_code: str | None) -> str | None:
    """Name of the state/UT for a 2-digit GST state code, or None if unknown."""
    if not state_code:
        return None
    return GST_STATE_CODES.get(state_code)


def validate_pan(pan: str | None) -> PanValidation:
    pan = _normalize(pan)
    if not pan:
        return PanValidation(valid=False, error="PAN is required")
    if not PAN_REGEX.match(pan):
        return PanValidation(valid=False, error="Invalid PAN format")
    entity_type = PAN_ENTITY_TYPES.get(pan[3], DEFAULT_PAN_ENTITY_TYPE)
    return PanValidation(valid=True, entity_type=entity_type)


def is_valid_pan(pan: str | None) -> bool:
    return validate_pan(pan).valid


def validate_gstin(gstin: str | None) -> GstinValidation:
    gstin = _normalize(gstin)
    if not gstin:
        return GstinValidation(valid=False, error="GSTIN is required")
    if len(gstin) != 15:
        return GstinValidation(valid=False, gstin=gstin, error="GSTIN must be 15 characters long")

    state_code = gstin[:2]
    if state_code not in GST_STATE_CODES:
        return GstinValidation(valid=False, gstin=gstin, error="Invalid state code in GSTIN")

    pan_part = gstin[2:12]  # chars 3–12
    if not PAN_REGEX.match(pan_part):
        return GstinValidation(valid=False, gstin=gstin, error="Invalid PAN in GSTIN")

    if gstin[13] != "Z":
        return GstinValidation(
            valid=False, gstin=gstin, error="Invalid default character in GSTIN (should be Z)"
        )

    if not GSTIN_REGEX.match(gstin):
        return GstinValidation(valid=False, gstin=gstin, error="Invalid GSTIN format")

    return GstinValidation(valid=True, gstin=gstin, state_code=state_code, pan=pan_part)


def is_valid_gstin(gstin: str | None) -> bool:
    return validate_gstin(gstin).valid


def state_code_from_gstin(gstin: str | None) -> str | None:
    return validate_gstin(gstin).state_code


def pan_matches_gstin(pan: str | None, gstin: str | None) -> bool:
    extracted = validate_gstin(gstin).pan
    return extracted is not None and extracted == _normalize(pan)


def is_valid_lut_number(lut_number: str | None) -> bool:
    """LUT/ARN references, e.g. ``AD290320241234567`` or ``LUT/GST/2024-25/12345``."""
    return bool(LUT_NUMBER_REGEX.match(_normalize(lut_number)))


# ---------------------------------------------------------------------------
# Check character (opt-in)
# ---------------------------------------------------------------------------

def gstin_checksum_char(first14: str) -> str:
    """Weighted modulo-36 check character for the first 14 GSTIN characters."""
    first14 = _normalize(first14)
    if len(first14) != 14:
        raise ValueError("Checksum needs exactly the first 14 GSTIN characters")

    mod = len(_CHECKSUM_CHARS)
    total = 0
    for i, ch in enumerate(first14):
        idx = _CHECKSUM_CHARS.find(ch)
        if idx < 0:
            raise ValueError(f"Invalid character '{ch}' in GSTIN")
        product = idx * (2 if i % 2 else 1)
        total += product // mod + product % mod
    return _CHECKSUM_CHARS[(mod - total % mod) % mod]


def verify_gstin_checksum(gstin: str | None) -> bool:
    result = validate_gstin(gstin)
    if not result.valid:
        return False
    return gstin_checksum_char(result.gstin[:14]) == result.gstin[14]
