"""Tests for checkout input validators."""

import pytest

from apps.checkout.exceptions import AddressValidationError
from apps.checkout.services.validators import (
    ValidationCode,
    is_valid_cpf,
    normalize_cpf,
    normalize_zip_code,
    sanitize_text,
    validate_address_input,
)
from apps.checkout.tests.factories import AddressInputFactory


class TestCPF:
    """Tests for CPF validation."""

    @pytest.mark.parametrize(
        "cpf", ["52998224725", "529.982.247-25", "11144477735", "111.444.777-35"]
    )
    def test_valid(self, cpf):
        """Test CPFs with correct check digits."""
        assert is_valid_cpf(cpf) is True

    @pytest.mark.parametrize(
        "cpf", ["52998224724", "11144477736", "1234567890", "123456789012", "", None]
    )
    def test_invalid(self, cpf):
        """Test wrong check digits and wrong lengths."""
        assert is_valid_cpf(cpf) is False

    @pytest.mark.parametrize("digit", "0123456789")
    def test_repeated_digits_rejected(self, digit):
        """Test all-equal sequences are rejected."""
        assert is_valid_cpf(digit * 11) is False

    def test_normalize(self):
        """Test punctuation is stripped."""
        assert normalize_cpf("529.982.247-25") == "52998224725"
        assert normalize_cpf(None) == ""


class TestZipCode:
    """Tests for postal code normalization."""

    def test_strips_mask(self):
        """Test the hyphen is removed."""
        assert normalize_zip_code("13010-000") == "13010000"

    def test_empty(self):
        """Test missing values normalize to empty."""
        assert normalize_zip_code(None) == ""


class TestSanitizeText:
    """Tests for sanitize_text."""

    def test_strips_markup_and_controls(self):
        """Test unsafe characters are dropped."""
        assert sanitize_text("  <Rua\x00 'A' & \"B\">\n", 200) == "Rua A  B"

    def test_truncates(self):
        """Test values are cut to the limit."""
        assert sanitize_text("x" * 30, 20) == "x" * 20

    def test_empty(self):
        """Test None becomes an empty string."""
        assert sanitize_text(None, 10) == ""


class TestValidateAddressInput:
    """Tests for validate_address_input."""

    def test_valid_input_is_cleaned(self):
        """Test postal code, state and text fields are normalized."""
        cleaned = validate_address_input(
            AddressInputFactory(street="  Rua Barão de Jaguara  ", complement="")
        )

        assert cleaned.zip_code == "13010000"
        assert cleaned.state == "SP"
        assert cleaned.street == "Rua Barão de Jaguara"
        assert cleaned.complement is None

    def test_no_number_uses_sentinel(self):
        """Test the 'no number' flag replaces the house number."""
        cleaned = validate_address_input(AddressInputFactory(number="", no_number=True))

        assert cleaned.number is None
        assert cleaned.to_payload()["number"] == "S/N"

    def test_number_required(self):
        """Test a missing number without the flag is rejected."""
        with pytest.raises(AddressValidationError) as exc_info:
            validate_address_input(AddressInputFactory(number="  "))

        assert exc_info.value.code == ValidationCode.NUMBER_REQUIRED
        assert exc_info.value.field == "number"

    @pytest.mark.parametrize("zip_code", ["1301000", "130100001", "", "abcdefgh"])
    def test_invalid_zip_code(self, zip_code):
        """Test postal codes without exactly 8 digits."""
        with pytest.raises(AddressValidationError) as exc_info:
            validate_address_input(AddressInputFactory(zip_code=zip_code))

        assert exc_info.value.code == ValidationCode.INVALID_ZIP_CODE

    def test_missing_state(self):
        """Test the state is required."""
        with pytest.raises(AddressValidationError) as exc_info:
            validate_address_input(AddressInputFactory(state=" "))

        assert exc_info.value.code == ValidationCode.REQUIRED_FIELD
        assert exc_info.value.field == "state"

    def test_unknown_state(self):
        """Test the state must be a Brazilian UF."""
        with pytest.raises(AddressValidationError) as exc_info:
            validate_address_input(AddressInputFactory(state="XX"))

        assert exc_info.value.code == ValidationCode.INVALID_STATE

    @pytest.mark.parametrize("field", ["city", "street", "neighborhood"])
    def test_required_text_fields(self, field):
        """Test city, street and neighborhood must not be blank."""
        with pytest.raises(AddressValidationError) as exc_info:
            validate_address_input(AddressInputFactory(**{field: "<>"}))

        assert exc_info.value.code == ValidationCode.REQUIRED_FIELD
        assert exc_info.value.field == field
