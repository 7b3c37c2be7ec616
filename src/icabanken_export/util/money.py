from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation


# The bank appends this to the amount cell of automatic debits (autogiro).
DIRECT_DEBIT_MARKER = "*"

_STRIP_RE = re.compile(r"[^\d.\-]")
_THOUSANDS_RE = re.compile(r"[.\s]")


def parse_amount(value: str) -> Decimal:
    """
    Parse Swedish-formatted amounts like:
    - "-234,50*"
    - "-1.234,50"
    - "1 000,00 kr"
    - "1000.00"
    """
    if value is None:
        raise ValueError("parse_amount: value is None")

    s = value.strip().replace("−", "-")
    if "," in s:
        # Decimal comma present: periods and spaces are thousands separators.
        s = _THOUSANDS_RE.sub("", s).replace(",", ".", 1)
    s = _STRIP_RE.sub("", s)
    if not s or s in {"-", "."}:
        raise ValueError(f"parse_amount: no number in {value!r}")

    try:
        return Decimal(s)
    except InvalidOperation:
        raise ValueError(f"parse_amount: cannot parse {value!r}") from None


def has_direct_debit_marker(value: str) -> bool:
    return DIRECT_DEBIT_MARKER in (value or "")
