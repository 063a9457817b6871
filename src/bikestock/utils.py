"""Utility functions for bikestock."""

import math
import re
from dataclasses import dataclass, replace
from datetime import date

from .errors import InvalidInputError
from .models import REGISTRATION_DURATIONS, CustomerFields

# Bulk rows are "model,chassis,engine,color[,buying_price]", comma or tab separated
_ROW_SPLIT = re.compile(r"[,\t]")


@dataclass(frozen=True)
class BikeRow:
    """One motorcycle parsed from an import batch."""

    model: str
    chassis: str
    engine: str
    color: str
    buying_price: float | None = None
    exporter_name: str | None = None


def normalize_chassis(chassis: str) -> str:
    """
    Normalize a chassis number for lookup.

    Raises:
        InvalidInputError: If the chassis number is blank.
    """
    value = (chassis or "").strip()
    if not value:
        raise InvalidInputError("chassis", "chassis number is required")
    return value


def parse_price(value: object, field: str = "sale_price", allow_zero: bool = False) -> float:
    """
    Validate a price.

    Sale prices must be positive; buying prices may be zero.

    Raises:
        InvalidInputError: If the value isn't a finite number in range.
    """
    if isinstance(value, bool):
        raise InvalidInputError(field, f"expected a number, got {value!r}")
    try:
        price = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        raise InvalidInputError(field, f"expected a number, got {value!r}")

    if not math.isfinite(price):
        raise InvalidInputError(field, "must be a finite number")
    if price < 0 or (price == 0 and not allow_zero):
        raise InvalidInputError(field, "must be a positive number")

    if isinstance(value, int) or price.is_integer():
        return int(price)
    return price


def validate_registration_duration(value: str) -> str:
    """
    Check a registration duration against the two allowed terms.

    Raises:
        InvalidInputError: If the value isn't "2 years" or "10 years".
    """
    if value not in REGISTRATION_DURATIONS:
        allowed = ", ".join(f"'{d}'" for d in REGISTRATION_DURATIONS)
        raise InvalidInputError("registration_duration", f"{value!r} (expected one of {allowed})")
    return value


def clean_customer_fields(fields: CustomerFields) -> CustomerFields:
    """
    Strip whitespace and check required customer particulars.

    Name, phone and nid are required. dob, when given, must be an ISO date
    (YYYY-MM-DD).

    Raises:
        InvalidInputError: If a required field is blank or dob is malformed.
    """
    cleaned = replace(
        fields,
        name=(fields.name or "").strip(),
        phone=(fields.phone or "").strip(),
        nid=(fields.nid or "").strip(),
        father_name=(fields.father_name or "").strip(),
        mother_name=(fields.mother_name or "").strip(),
        dob=(fields.dob or "").strip(),
        address=(fields.address or "").strip(),
        notes=fields.notes or "",
    )

    for name in ("name", "phone", "nid"):
        if not getattr(cleaned, name):
            raise InvalidInputError(name, "field is required")

    if cleaned.dob:
        try:
            date.fromisoformat(cleaned.dob)
        except ValueError:
            raise InvalidInputError("dob", f"expected YYYY-MM-DD, got {cleaned.dob!r}")

    return cleaned


def parse_bike_rows(text: str) -> list[BikeRow]:
    """
    Parse pasted bulk-import text into bike rows.

    Each non-blank line is ``model,chassis,engine,color[,buying_price]``
    (commas or tabs). Lines missing any of the first four fields are skipped.

    Raises:
        InvalidInputError: If a buying price isn't a number.
    """
    rows: list[BikeRow] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue

        parts = [p.strip() for p in _ROW_SPLIT.split(line)]
        parts += [""] * (5 - len(parts))
        model, chassis, engine, color, price = parts[:5]
        if not (model and chassis and engine and color):
            continue

        buying_price = None
        if price:
            try:
                buying_price = parse_price(price, field="buying_price", allow_zero=True)
            except InvalidInputError as e:
                raise InvalidInputError("buying_price", f"line {lineno}: {e.reason}")

        rows.append(
            BikeRow(
                model=model,
                chassis=chassis,
                engine=engine,
                color=color,
                buying_price=buying_price,
            )
        )
    return rows


def validate_month(month: str) -> str:
    """
    Check a "YYYY-MM" month filter.

    Raises:
        InvalidInputError: If the value isn't a valid month.
    """
    match = re.fullmatch(r"(\d{4})-(\d{2})", month)
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise InvalidInputError("month", f"expected YYYY-MM, got {month!r}")
    return month
