from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


_NON_DIGITS_RE = re.compile(r"\D")


def digits_only(value: str) -> str:
    return _NON_DIGITS_RE.sub("", value or "")


@dataclass(frozen=True)
class Credentials:
    pnr: str
    pin: str = field(repr=False)


class Account(BaseModel):
    """
    One account discovered on the post-login page.

    `id` is the bank's opaque AccountId and is only meaningful inside the browser session that found it.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    number: str
    name: str

    def numbered(self, number: str) -> bool:
        wanted = digits_only(number)
        # A query without digits (e.g. an account name) must never match on number.
        return bool(wanted) and digits_only(self.number) == wanted

    def named(self, name: str) -> bool:
        return self.name == name

    def __str__(self) -> str:
        return f"{self.number} ({self.name})"


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: date
    amount: Decimal
    details: str
    direct_debit: bool = False

    @property
    def outgoing(self) -> bool:
        return self.amount < 0
