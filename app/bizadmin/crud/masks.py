from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any

_NON_DIGITS = re.compile(r"\D")
_GROUPED_THOUSANDS = re.compile(r"-?\d{1,3}(\.\d{3})+")


def digits_only(value: Any, limit: int | None = None) -> str:
    digits = _NON_DIGITS.sub("", "" if value is None else str(value))
    return digits[:limit] if limit else digits


def format_cpf(value: Any) -> str:
    """Format a CPF as 000.000.000-00; partial input is returned as digits."""
    d = digits_only(value, 11)
    if len(d) != 11:
        return d
    return f"{d[:3]}.{d[3:6]}.{d[6:9]}-{d[9:]}"


def format_phone(value: Any) -> str:
    """(00) 0000-0000 for landlines, (00) 00000-0000 for mobiles."""
    d = digits_only(value, 11)
    if len(d) == 10:
        return f"({d[:2]}) {d[2:6]}-{d[6:]}"
    if len(d) == 11:
        return f"({d[:2]}) {d[2:7]}-{d[7:]}"
    return d


def parse_currency(value: Any) -> Decimal | None:
    """
    Parse user-typed money. Accepts "1.234,56", "1234.56", "R$ 10" and plain
    numbers; returns None for empty input. Dots followed by exact groups of
    three digits ("1.234", "1.234.567") are thousands separators.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return Decimal(str(value)).quantize(Decimal("0.01"))
    raw = re.sub(r"[^\d,.\-]", "", str(value))
    if not raw:
        return None
    if "," in raw:
        raw = raw.replace(".", "").replace(",", ".")
    elif _GROUPED_THOUSANDS.fullmatch(raw):
        # "1.234" -> 1234
        raw = raw.replace(".", "")
    try:
        return Decimal(raw).quantize(Decimal("0.01"))
    except InvalidOperation:
        return None
