from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


_MONTH_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})\s*$")
_DEFAULT_A = datetime(1900, 1, 1)
_DEFAULT_B = datetime(2000, 2, 2)


def parse_statement_date(value: str) -> date:
    """
    Parse the date column of a statement row, e.g.:
    - "2010-01-05"
    - "2010-01-05 " (trailing whitespace from the table cell)
    """
    if value is None:
        raise ValueError("parse_statement_date: value is None")
    s = value.strip()
    if not s:
        raise ValueError("parse_statement_date: empty string")
    # Missing parts would be filled in from the default; parsing against two that share no
    # field exposes a partial date like "5" or "2010-01".
    first = date_parser.parse(s, yearfirst=True, dayfirst=False, default=_DEFAULT_A)
    second = date_parser.parse(s, yearfirst=True, dayfirst=False, default=_DEFAULT_B)
    if first.date() != second.date():
        raise ValueError(f"parse_statement_date: incomplete date {s!r}")
    return first.date()


def month_range(selector: object = "0", *, today: Optional[date] = None) -> tuple[date, date]:
    """
    Resolve a month selector to its first and last day.

    Accepts an absolute month ("2010-01") or an integer offset counted back from the current month
    ("0" is this month, "-1" last month). The offset sign is ignored, so "1" also means last month.
    """
    today = today or date.today()
    raw = str(selector if selector is not None else "0").strip() or "0"

    m = _MONTH_RE.match(raw)
    if m:
        year, month = int(m.group(1)), int(m.group(2))
        if not 1 <= month <= 12:
            raise ValueError(f"Invalid month: {raw!r}")
    else:
        try:
            offset = abs(int(raw))
        except ValueError:
            raise ValueError(f"Month must look like YYYY-MM or an integer offset (got {raw!r})") from None
        in_month = today - relativedelta(months=offset)
        year, month = in_month.year, in_month.month

    first = date(year, month, 1)
    last = first + relativedelta(months=1, days=-1)
    return first, last
