from __future__ import annotations

import logging
from datetime import date
from typing import Optional
from urllib.parse import urlencode

from ..models import Account, Transaction
from ..util.dates import parse_statement_date
from ..util.money import has_direct_debit_marker, parse_amount
from .agent import Document, SessionAgent
from .errors import StatementParseError, StatementUnavailable
from .selectors import PortalSelectors


logger = logging.getLogger(__name__)


class StatementParser:
    """
    Fetches an account statement for a date range and parses its table.

    Each row has five cells: date, e-giro reference (unused), details, amount, balance (unused).
    """

    def __init__(
        self,
        agent: SessionAgent,
        *,
        base_url: str = "https://www.icabanken.se",
        selectors: Optional[PortalSelectors] = None,
    ) -> None:
        self.agent = agent
        self.base_url = base_url.rstrip("/")
        self.selectors = selectors or PortalSelectors()

    def statement_url(self, account: Account, from_date: date, to_date: date) -> str:
        params = {
            self.selectors.account_id_param: account.id,
            "SortKey": self.selectors.statement_sort_ascending,
            "lTrnPage": "0",
            "ABselRangeDt": to_date.strftime("%Y%m"),
            "ABselFromRangeDt": from_date.strftime("%Y%m"),
            "FromDay": from_date.strftime("%d"),
            "ToDay": to_date.strftime("%d"),
        }
        return f"{self.base_url}{self.selectors.statement_path}?{urlencode(params)}"

    def fetch(self, account: Account, from_date: date, to_date: date) -> list[Transaction]:
        if from_date > to_date:
            raise ValueError(f"from_date {from_date.isoformat()} is after to_date {to_date.isoformat()}")

        url = self.statement_url(account, from_date, to_date)
        logger.info("Fetching statement for %s (%s..%s)", account.number, from_date, to_date)
        doc = self.agent.get(url)
        if doc.at(self.selectors.statement_rows_container) is None:
            raise StatementUnavailable(account.id, from_date, to_date, url=doc.url or url)

        transactions = self.parse(doc)
        logger.info("Parsed %d transactions", len(transactions))
        return transactions

    def parse(self, doc: Document) -> list[Transaction]:
        body = doc.at(self.selectors.statement_rows_container)
        if body is None:
            return []

        out: list[Transaction] = []
        for idx, tr in enumerate(body.find_all("tr", recursive=False)):
            cells = tr.find_all("td", recursive=False)
            if len(cells) < 5:
                logger.debug("Skipping statement row %d with %d cells", idx, len(cells))
                continue
            date_cell, _egiro, details_cell, amount_cell, _balance = cells[:5]
            out.append(self._parse_row(idx, date_cell.get_text(), details_cell.get_text(), amount_cell.get_text()))
        return out

    def _parse_row(self, idx: int, date_text: str, details: str, raw_amount: str) -> Transaction:
        try:
            when = parse_statement_date(date_text)
            amount = parse_amount(raw_amount)
        except (ValueError, OverflowError) as e:
            raise StatementParseError(
                f"Statement row {idx}: cannot parse date={date_text.strip()!r} amount={raw_amount.strip()!r} ({e})"
            ) from e

        return Transaction(
            date=when,
            amount=amount,
            details=details,
            direct_debit=has_direct_debit_marker(raw_amount),
        )
