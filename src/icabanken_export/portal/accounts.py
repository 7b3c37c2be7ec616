from __future__ import annotations

import logging
import re
from typing import Iterator, Optional, Sequence

from ..models import Account
from .agent import Document
from .selectors import PortalSelectors


logger = logging.getLogger(__name__)


class AccountNotFound(LookupError):
    def __init__(self, selector: str, available: Sequence[Account]) -> None:
        self.selector = selector
        listing = ", ".join(str(a) for a in available) or "none"
        super().__init__(f"No account matches {selector!r} (available: {listing})")


class AccountDirectory:
    """
    Accounts listed on the post-login overview page, in page order.
    """

    def __init__(self, accounts: Sequence[Account]) -> None:
        self._accounts = list(accounts)

    @classmethod
    def from_document(cls, doc: Document, selectors: Optional[PortalSelectors] = None) -> "AccountDirectory":
        sel = selectors or PortalSelectors()
        param = re.escape(sel.account_id_param)
        id_re = re.compile(rf"[?&;]{param}=([^&#]+)")

        accounts: list[Account] = []
        for link in doc.search(f'a[href*="{sel.account_id_param}="]'):
            m = id_re.search(link.get("href", ""))
            if not m:
                continue
            number = link.get_text().strip()

            # The account name is the second cell of the row holding the link.
            row = link.find_parent("tr")
            cells = row.find_all("td") if row is not None else []
            name = cells[1].get_text().strip() if len(cells) > 1 else ""
            if not name:
                logger.debug("Account link %s has no name cell in its row.", number)

            accounts.append(Account(id=m.group(1), number=number, name=name))

        logger.info("Discovered %d accounts", len(accounts))
        return cls(accounts)

    def list(self) -> list[Account]:
        return list(self._accounts)

    def __iter__(self) -> Iterator[Account]:
        return iter(self._accounts)

    def __len__(self) -> int:
        return len(self._accounts)

    def find(self, selector: str) -> Optional[Account]:
        """
        First account whose number matches `selector` ignoring formatting, or whose name equals it exactly.
        """
        for account in self._accounts:
            if account.numbered(selector) or account.named(selector):
                return account
        return None

    def select(self, selector: Optional[str] = None) -> Account:
        if not self._accounts:
            raise AccountNotFound(selector or "", [])
        if not selector:
            return self._accounts[0]
        account = self.find(selector)
        if account is None:
            raise AccountNotFound(selector, self._accounts)
        return account
