"""Money, Address and PatientInfo."""

from decimal import Decimal

import pytest

from app.domain.errors import CurrencyMismatchError, ValidationError
from app.domain.schemas import MoneyResponse
from app.domain.value_objects import Address, Currency, Money, PatientInfo


class TestMoney:
    def test_create_defaults_to_configured_currency(self):
        assert Money.create(5).currency == Currency.BHD

    def test_amount_is_decimal(self):
        money = Money.create("10.125", "BHD")
        assert money.amount == Decimal("10.125")

    def test_float_input_keeps_decimal_value(self):
        assert Money.create(0.1, "USD").amount == Decimal("0.1")

    def test_currency_is_case_insensitive(self):
        assert Money.create(1, "usd").currency == Currency.USD

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            Money.create(-1, "USD")

    def test_unsupported_currency_rejected(self):
        with pytest.raises(ValidationError):
            Money.create(1, "EUR")

    def test_add_same_currency(self):
        assert Money.create(10, "USD") + Money.create(5, "USD") == Money.create(15, "USD")

    def test_add_different_currency_raises(self):
        with pytest.raises(CurrencyMismatchError):
            Money.create(10, "USD").add(Money.create(5, "BHD"))

    def test_subtract_below_zero_raises(self):
        with pytest.raises(ValidationError):
            Money.create(5, "USD").subtract(Money.create(10, "USD"))

    def test_multiply(self):
        assert Money.create("2.50", "USD").multiply(3) == Money.create("7.50", "USD")

    def test_multiply_negative_factor_raises(self):
        with pytest.raises(ValidationError):
            Money.create(1, "USD").multiply(-2)

    def test_zero(self):
        assert Money.zero("USD").is_zero()

    def test_str(self):
        assert str(Money.create("100.5", "BHD")) == "100.50 BHD"

    def test_rounded_uses_currency_minor_unit(self):
        assert str(Money.create("1.2", "BHD").rounded()) == "1.200"
        assert str(Money.create("7.005", "USD").rounded()) == "7.01"


class TestMoneyResponse:
    def test_amount_serializes_as_exact_string(self):
        response = MoneyResponse.from_money(Money.create("0.1", "USD").add(Money.create("0.2", "USD")))
        assert response.model_dump(mode="json")["amount"] == "0.30"


class TestAddress:
    def test_optional_parts_default_to_empty(self):
        address = Address.create("12 Road", "Manama", None, None, "Bahrain")
        assert address.state == ""
        assert address.postal_code == ""

    @pytest.mark.parametrize("street,city,country", [("", "Manama", "Bahrain"), ("12 Road", " ", "Bahrain"), ("12 Road", "Manama", None)])
    def test_required_parts(self, street, city, country):
        with pytest.raises(ValidationError):
            Address.create(street, city, "", "", country)

    def test_str_skips_blank_parts(self):
        address = Address.create("12 Road", "Manama", "", "317", "Bahrain")
        assert str(address) == "12 Road, Manama, 317, Bahrain"


class TestPatientInfo:
    def test_name_required(self):
        with pytest.raises(ValidationError):
            PatientInfo.create("  ", 7)

    @pytest.mark.parametrize("age", [-1, 151])
    def test_age_bounds(self, age):
        with pytest.raises(ValidationError):
            PatientInfo.create("Sara", age)

    def test_strips_free_text(self):
        info = PatientInfo.create(" Sara ", 7, current_concerns="  speech delay ")
        assert info.patient_name == "Sara"
        assert info.current_concerns == "speech delay"
