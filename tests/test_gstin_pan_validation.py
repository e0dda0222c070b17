# tests/test_gstin_pan_validation.py
"""Tests for GSTIN / PAN / LUT-number validation."""

import pytest

from gst_compliance.domain.services.gstin_pan_validation import (
    gstin_checksum_char,
    is_valid_gstin,
    is_valid_lut_number,
    is_valid_pan,
    pan_matches_gstin,
    state_code_from_gstin,
    state_name,
    validate_gstin,
    validate_pan,
    verify_gstin_checksum,
)

VALID_GSTIN = "27AAPFU0939F1ZV"


class TestValidateGstin:
    def test_valid(self):
        result = validate_gstin(VALID_GSTIN)
        assert result.valid is True
        assert result.state_code == "27"
        assert result.pan == "AAPFU0939F"
        assert result.error is None

    def test_checksum_never_claimed_by_format_check(self):
        assert validate_gstin(VALID_GSTIN).checksum_verified is False

    def test_normalises_case_and_spaces(self):
        result = validate_gstin(" 27aapfu 0939f1zv ")
        assert result.valid is True
        assert result.gstin == VALID_GSTIN

    def test_empty(self):
        assert validate_gstin("").error == "GSTIN is required"
        assert validate_gstin(None).error == "GSTIN is required"

    def test_wrong_length(self):
        assert validate_gstin("27AAPFU0939F1Z").error == "GSTIN must be 15 characters long"

    def test_unknown_state_code(self):
        result = validate_gstin("25AAPFU0939F1ZV")
        assert result.valid is False
        assert result.error == "Invalid state code in GSTIN"

    def test_embedded_pan_malformed(self):
        assert validate_gstin("2712345U939F1ZV").error == "Invalid PAN in GSTIN"

    def test_default_character_must_be_z(self):
        assert validate_gstin("27AAPFU0939F1YV").error == "Invalid default character in GSTIN (should be Z)"

    def test_entity_code_zero_rejected(self):
        assert validate_gstin("27AAPFU0939F0ZV").error == "Invalid GSTIN format"

    def test_results_are_immutable(self):
        result = validate_gstin(VALID_GSTIN)
        with pytest.raises(Exception):
            result.valid = False


class TestGstinHelpers:
    def test_is_valid_gstin(self):
        assert is_valid_gstin(VALID_GSTIN)
        assert not is_valid_gstin("INVALID")

    def test_state_code_and_name(self):
        assert state_code_from_gstin(VALID_GSTIN) == "27"
        assert state_name("27") == "Maharashtra"
        assert state_name("97") == "Other Territory"
        assert state_name("25") is None

    def test_pan_matches_gstin(self):
        assert pan_matches_gstin("aapfu0939f", VALID_GSTIN)
        assert not pan_matches_gstin("AAPFU0939G", VALID_GSTIN)
        assert not pan_matches_gstin("AAPFU0939F", "bad")


class TestChecksum:
    def test_check_character(self):
        assert gstin_checksum_char(VALID_GSTIN[:14]) == "V"

    def test_verify(self):
        assert verify_gstin_checksum(VALID_GSTIN) is True
        assert verify_gstin_checksum("27AAPFU0939F1ZA") is False

    def test_requires_fourteen_characters(self):
        with pytest.raises(ValueError):
            gstin_checksum_char("27AAPF")


class TestPan:
    def test_valid_firm(self):
        result = validate_pan("AAPFU0939F")
        assert result.valid
        assert result.entity_type == "FIRM"

    def test_company(self):
        assert validate_pan("AABCU9603R").entity_type == "COMPANY"

    def test_unknown_status_defaults_to_individual(self):
        assert validate_pan("AAAXA1234A").entity_type == "INDIVIDUAL"

    def test_invalid(self):
        assert validate_pan("").error == "PAN is required"
        assert validate_pan("1234567890").error == "Invalid PAN format"
        assert not is_valid_pan("ABCDE12345")


class TestLutNumber:
    @pytest.mark.parametrize("number", ["AD2704240012345", "LUT/GST/2024-25/12345"])
    def test_valid(self, number):
        assert is_valid_lut_number(number)

    @pytest.mark.parametrize("number", ["SHORT", "AD27#0424001", "X" * 51, ""])
    def test_invalid(self, number):
        assert not is_valid_lut_number(number)
