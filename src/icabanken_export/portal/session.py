from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Optional
from urllib.parse import urlencode

from ..models import Credentials
from .accounts import AccountDirectory
from .agent import Document, SessionAgent
from .errors import LoginFailure, LoginFormNotFoundError
from .selectors import PortalSelectors


logger = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"^\s*(-?\d+)")


class SessionState(str, Enum):
    NEW = "new"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class AuthenticationSession:
    """
    Login protocol for the internet bank.

    1. GET the login page for the customer's personnummer.
    2. Read the hidden error-code field. Code 4 means another session is open; we restart from step 1
       once, and fail with DOUBLE_SESSION_EXHAUSTED on a second occurrence. Any other non-zero code is
       a rejection carrying the page title as the reason.
    3. Submit the login form with the PIN and the JS-enabled flag.
    4. Collect the accounts linked from the resulting overview page.

    Not safe for concurrent use: every step mutates the agent's cookies and `page`.
    """

    def __init__(
        self,
        agent: SessionAgent,
        creds: Credentials,
        *,
        base_url: str = "https://www.icabanken.se",
        selectors: Optional[PortalSelectors] = None,
    ) -> None:
        self.agent = agent
        self.creds = creds
        self.base_url = base_url.rstrip("/")
        self.selectors = selectors or PortalSelectors()

        self.has_retried: bool = False
        self.state: SessionState = SessionState.NEW
        self.page: Optional[Document] = None
        self.accounts: Optional[AccountDirectory] = None

    @property
    def login_url(self) -> str:
        sel = self.selectors
        query = urlencode({sel.js_enabled_field: sel.js_enabled_value, sel.pnr_param: self.creds.pnr})
        return f"{self.base_url}{sel.login_path}?{query}"

    def login(self) -> AccountDirectory:
        try:
            directory = self._run_login()
        except Exception:
            self.state = SessionState.FAILED
            raise
        self.accounts = directory
        self.state = SessionState.AUTHENTICATED
        return directory

    def _run_login(self) -> AccountDirectory:
        while True:
            logger.info("Fetching login page%s", " (retry after double session)" if self.has_retried else "")
            self.page = self.agent.get(self.login_url)
            if self._double_session_needs_restart():
                continue

            self._submit_login_form()
            if self._double_session_needs_restart():
                continue

            directory = AccountDirectory.from_document(self.page, self.selectors)
            if not len(directory):
                raise LoginFailure.no_accounts_found()
            logger.info("Logged in (accounts=%d)", len(directory))
            return directory

    def _double_session_needs_restart(self) -> bool:
        """
        Check the current page for a bank error code.

        Returns True when the caller should restart from the login page (first double-session conflict).
        Raises LoginFailure for every other error code.
        """
        code = self.error_code()
        if not code:
            return False

        if code == self.selectors.double_session_code:
            if self.has_retried:
                raise LoginFailure.double_session_exhausted(code)
            self.has_retried = True
            logger.warning("Bank reports another active session (code %d); retrying login once.", code)
            return True

        reason = self.page.title if self.page is not None else ""
        raise LoginFailure.rejected(code, reason)

    def error_code(self) -> int:
        """
        Numeric value of the hidden error-code field on the current page; 0 when absent or not a number.
        """
        if self.page is None:
            return 0
        field = self.page.at(self.selectors.error_code_field)
        if field is None:
            return 0
        m = _LEADING_INT_RE.match(str(field.get("value") or ""))
        return int(m.group(1)) if m else 0

    def _submit_login_form(self) -> None:
        sel = self.selectors
        if self.page is None or self.page.at(sel.login_form) is None:
            raise LoginFormNotFoundError(f"Login form {sel.login_form!r} not found on the login page.")

        self.page = self.agent.post_form(
            sel.login_form,
            {sel.js_enabled_field: sel.js_enabled_value, sel.pin_field: self.creds.pin},
        )
