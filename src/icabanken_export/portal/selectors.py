from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PortalSelectors:
    """
    The internet bank is a server-rendered ASP.NET site; markup and field names may change over time.
    Keep all selectors, form-field names and paths here for easy maintenance.
    """

    # Paths (joined to portal.base_url)
    login_path: str = "/Secure/Login/LoginPw.aspx"
    statement_path: str = "/Secure/MyEconomy/Accounts/AccountStatement.aspx"

    # Login page
    error_code_field: str = "#lastErrCode"
    # Reported when the customer already has a session open elsewhere.
    double_session_code: int = 4
    login_form: str = ".login-simple"
    pin_field: str = "Password"
    js_enabled_field: str = "JSEnabled"
    js_enabled_value: str = "1"
    pnr_param: str = "Pnr"

    # Account overview (post-login)
    account_id_param: str = "AccountId"

    # Statement
    statement_rows_container: str = "table.account-details tbody"
    statement_sort_ascending: str = "date_Asc"
