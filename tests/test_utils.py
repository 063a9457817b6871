"""Tests for input parsing and validation helpers."""

import pytest

from bikestock.errors import InvalidInputError
from bikestock.models import CustomerFields
from bikestock.utils import (
    BikeRow,
    clean_customer_fields,
    normalize_chassis,
    parse_bike_rows,
    parse_price,
    validate_month,
    validate_registration_duration,
)


class TestParsePrice:
    def test_integral_values_stay_integers(self):
        assert parse_price(480000) == 480000
        assert isinstance(parse_price("480000"), int)
        assert isinstance(parse_price(480000.0), int)

    def test_fractional_values(self):
        assert parse_price("1250.50") == 1250.5

    @pytest.mark.parametrize("value", [0, -1, "x", None, True, float("nan"), float("inf")])
    def test_rejected(self, value):
        with pytest.raises(InvalidInputError):
            parse_price(value)

    def test_zero_allowed_for_buying_price(self):
        assert parse_price(0, field="buying_price", allow_zero=True) == 0


class TestRegistrationDuration:
    @pytest.mark.parametrize("value", ["2 years", "10 years"])
    def test_allowed(self, value):
        assert validate_registration_duration(value) == value

    @pytest.mark.parametrize("value", ["2 Years", "5 years", "", "10"])
    def test_rejected(self, value):
        with pytest.raises(InvalidInputError):
            validate_registration_duration(value)


class TestCustomerFields:
    def test_strips_whitespace(self):
        cleaned = clean_customer_fields(
            CustomerFields(name="  Rahim ", phone=" 017 ", nid=" N1 ", dob="1990-05-17")
        )
        assert (cleaned.name, cleaned.phone, cleaned.nid) == ("Rahim", "017", "N1")

    def test_dob_optional(self):
        assert clean_customer_fields(CustomerFields(name="R", phone="017", nid="N1")).dob == ""

    def test_bad_dob(self):
        with pytest.raises(InvalidInputError) as exc:
            clean_customer_fields(CustomerFields(name="R", phone="017", nid="N1", dob="1990-13-01"))
        assert exc.value.field == "dob"


class TestChassis:
    def test_trims(self):
        assert normalize_chassis(" CHAS001\t") == "CHAS001"

    def test_blank(self):
        with pytest.raises(InvalidInputError):
            normalize_chassis("  ")


class TestParseBikeRows:
    def test_comma_and_tab_rows(self):
        rows = parse_bike_rows(
            "Suzuki Gixxer,CHAS001,ENG001,Red,400000\n"
            "Yamaha FZ\tCHAS002\tENG002\tBlue\n"
        )
        assert rows == [
            BikeRow("Suzuki Gixxer", "CHAS001", "ENG001", "Red", 400000),
            BikeRow("Yamaha FZ", "CHAS002", "ENG002", "Blue", None),
        ]

    def test_skips_blank_and_incomplete_rows(self):
        rows = parse_bike_rows("\nSuzuki Gixxer,CHAS001\n  \nHonda CB, CHAS003 , ENG003 , Black\n")
        assert [r.chassis for r in rows] == ["CHAS003"]

    def test_bad_price_names_the_line(self):
        with pytest.raises(InvalidInputError) as exc:
            parse_bike_rows("Suzuki Gixxer,CHAS001,ENG001,Red,400000\nYamaha FZ,CHAS002,ENG002,Blue,lots\n")
        assert "line 2" in str(exc.value)


class TestMonth:
    def test_valid(self):
        assert validate_month("2024-02") == "2024-02"

    @pytest.mark.parametrize("value", ["2024-13", "2024-2", "Feb 2024", "2024-02-01"])
    def test_invalid(self, value):
        with pytest.raises(InvalidInputError):
            validate_month(value)
