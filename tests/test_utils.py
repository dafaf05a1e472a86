"""
Tests for the text normalization and validation helpers.
"""

from datetime import date
from decimal import Decimal

import pytest

from ampet_core.utils.validation import (
    normalize_email,
    normalize_key,
    sanitize_string,
    strip_accents,
    validate_birth_date,
    validate_email,
    validate_phone,
    validate_weight,
)


class TestTextNormalization:
    """Test cases for string normalization."""

    def test_sanitize_string_collapses_whitespace(self):
        assert sanitize_string("  Maria \t  da   Silva ") == "Maria da Silva"

    def test_sanitize_string_max_length(self):
        assert sanitize_string("Thor do Vale", max_length=4) == "Thor"

    def test_strip_accents(self):
        assert strip_accents("Espécie Raça Pássaro") == "Especie Raca Passaro"

    def test_normalize_key(self):
        assert normalize_key("  TELEFONE  Celular ") == "telefone celular"
        assert normalize_key("Cão") == "cao"

    def test_normalize_email(self):
        assert normalize_email("  Maria.Silva@Example.COM ") == "maria.silva@example.com"


class TestValidateEmail:
    """Test cases for validate_email."""

    def test_valid_email(self):
        result = validate_email(" Ana@Example.com ")

        assert result.is_valid
        assert result.value == "ana@example.com"

    @pytest.mark.parametrize("email", ["", "ana", "ana@", "ana@example"])
    def test_invalid_email(self, email):
        result = validate_email(email)

        assert not result.is_valid
        assert result.value is None


class TestValidatePhone:
    """Test cases for validate_phone."""

    @pytest.mark.parametrize(
        "phone,expected",
        [
            ("(11) 98765-4321", "11987654321"),
            ("+55 11 98765-4321", "+5511987654321"),
            ("3333.4444", "33334444"),
        ],
    )
    def test_valid_phone(self, phone, expected):
        result = validate_phone(phone)

        assert result.is_valid
        assert result.value == expected

    def test_letters_are_rejected(self):
        result = validate_phone("ligar depois")

        assert not result.is_valid
        assert result.errors[0].code == "invalid_format"

    def test_too_few_digits(self):
        result = validate_phone("12-34")

        assert result.errors[0].code == "invalid_length"

    def test_blank_phone(self):
        assert validate_phone("   ").errors[0].code == "required"


class TestValidateBirthDate:
    """Test cases for validate_birth_date."""

    @pytest.mark.parametrize(
        "text", ["31/01/2021", "31-01-2021", "31.01.2021", "2021-01-31", "31/01/21"]
    )
    def test_accepted_formats(self, text):
        result = validate_birth_date(text, today=date(2024, 6, 1))

        assert result.is_valid
        assert result.value == date(2021, 1, 31)

    def test_impossible_date(self):
        assert validate_birth_date("30/02/2021").errors[0].code == "invalid_format"

    def test_future_date(self):
        result = validate_birth_date("02/06/2024", today=date(2024, 6, 1))

        assert result.errors[0].code == "future"

    def test_today_is_accepted(self):
        assert validate_birth_date("01/06/2024", today=date(2024, 6, 1)).is_valid

    def test_blank_date(self):
        assert validate_birth_date("").errors[0].code == "required"


class TestValidateWeight:
    """Test cases for validate_weight."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("12", Decimal("12.00")),
            ("12,5", Decimal("12.50")),
            ("0.755 kg", Decimal("0.76")),
            (" 30KG ", Decimal("30.00")),
        ],
    )
    def test_valid_weight(self, text, expected):
        result = validate_weight(text)

        assert result.is_valid
        assert result.value == expected

    @pytest.mark.parametrize("text", ["0", "-1", "1000", "nan", "inf"])
    def test_out_of_range(self, text):
        assert validate_weight(text).errors[0].code == "out_of_range"

    def test_not_a_number(self):
        assert validate_weight("gordinho").errors[0].code == "invalid_format"

    def test_blank_weight(self):
        assert validate_weight("  ").errors[0].code == "required"
