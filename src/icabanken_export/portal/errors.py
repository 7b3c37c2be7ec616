from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Optional


class LoginFailureKind(str, Enum):
    DOUBLE_SESSION_EXHAUSTED = "double_session_exhausted"
    REJECTED = "rejected"
    NO_ACCOUNTS_FOUND = "no_accounts_found"


class LoginFailure(RuntimeError):
    """
    Terminal login outcome. `kind` is a closed set; `code`/`reason` are only set for REJECTED
    (and `code` for DOUBLE_SESSION_EXHAUSTED).
    """

    def __init__(self, kind: LoginFailureKind, *, code: Optional[int] = None, reason: Optional[str] = None) -> None:
        self.kind = kind
        self.code = code
        self.reason = reason
        super().__init__(self._message())

    @classmethod
    def double_session_exhausted(cls, code: int) -> "LoginFailure":
        return cls(LoginFailureKind.DOUBLE_SESSION_EXHAUSTED, code=code)

    @classmethod
    def rejected(cls, code: int, reason: str) -> "LoginFailure":
        return cls(LoginFailureKind.REJECTED, code=code, reason=reason)

    @classmethod
    def no_accounts_found(cls) -> "LoginFailure":
        return cls(LoginFailureKind.NO_ACCOUNTS_FOUND)

    def _message(self) -> str:
        if self.kind is LoginFailureKind.DOUBLE_SESSION_EXHAUSTED:
            return (
                f"Error code {self.code}: the bank still reports another active session after one retry. "
                "Log out elsewhere (or wait for that session to expire) and try again."
            )
        if self.kind is LoginFailureKind.REJECTED:
            return f"Error code {self.code}: {self.reason or ''}".rstrip()
        return (
            "Login looked successful but no accounts were found on the overview page. "
            "Either the customer has no accounts or the page markup has changed."
        )


class LoginFormNotFoundError(RuntimeError):
    """
    Raised when the login page does not contain the expected login form.
    """


class StatementUnavailable(RuntimeError):
    def __init__(self, account_id: str, from_date: date, to_date: date, *, url: str = "") -> None:
        self.account_id = account_id
        self.from_date = from_date
        self.to_date = to_date
        self.url = url
        super().__init__(
            f"No statement table for account {account_id} ({from_date.isoformat()}..{to_date.isoformat()}). "
            "The session may have expired or the account id is not valid in this session."
        )


class StatementParseError(ValueError):
    """
    Raised when a statement row has the expected shape but its date or amount cannot be parsed.
    """
