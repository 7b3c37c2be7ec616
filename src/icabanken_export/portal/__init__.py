from .accounts import AccountDirectory, AccountNotFound
from .agent import Document, PlaywrightAgent, SessionAgent
from .errors import LoginFailure, LoginFailureKind, LoginFormNotFoundError, StatementParseError, StatementUnavailable
from .selectors import PortalSelectors
from .session import AuthenticationSession, SessionState
from .statement import StatementParser

__all__ = [
    "AccountDirectory",
    "AccountNotFound",
    "AuthenticationSession",
    "Document",
    "LoginFailure",
    "LoginFailureKind",
    "LoginFormNotFoundError",
    "PlaywrightAgent",
    "PortalSelectors",
    "SessionAgent",
    "SessionState",
    "StatementParseError",
    "StatementParser",
    "StatementUnavailable",
]
