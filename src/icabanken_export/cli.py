from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

from dotenv import load_dotenv

from .classifier import render_report
from .config import AppConfig, load_config, resolve_credentials
from .export import read_export, write_export
from .logging_config import configure_logging
from .models import Account, Credentials, Transaction
from .portal import (
    AccountDirectory,
    AccountNotFound,
    AuthenticationSession,
    LoginFailure,
    LoginFormNotFoundError,
    PlaywrightAgent,
    StatementParseError,
    StatementParser,
    StatementUnavailable,
)
from .util.dates import month_range
from .util.debug_bundle import create_debug_bundle


logger = logging.getLogger("icabanken_export")

T = TypeVar("T")

# Failures we report as a readable message (exit 1) instead of a traceback.
_REPORTED_ERRORS = (
    LoginFailure,
    LoginFormNotFoundError,
    StatementUnavailable,
    StatementParseError,
    AccountNotFound,
)


def _add_session_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--credentials", default=None, help="Credentials file path (default: ~/.ica_credentials)")
    p.add_argument("--pnr", default=None, help="Personnummer")
    p.add_argument("--pin", default=None, help="PIN")
    p.add_argument("--headful", action="store_true", help="Show the browser window (debug)")
    p.add_argument("--debug-dir", default=None, help="Where failing pages are saved (default: data/debug)")


def _add_month_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--month",
        default="0",
        help="Month, e.g. 2010-01, or 0 for this month, -1 for last month etc. (default: 0)",
    )
    p.add_argument("--account", default=None, help="Optional account number or name (default: first account)")


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="icabanken-export")
    p.add_argument(
        "--env-file",
        default=".env",
        help="Path to a dotenv file (default: .env). If missing, env vars must already be set.",
    )
    p.add_argument("--config", default="config.yaml", help="Optional YAML config (default: config.yaml)")
    p.add_argument(
        "--debug-bundle",
        action="store_true",
        help="On failure, zip the saved failure pages and the log file under data/.",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    export = sub.add_parser("export", help="Export one month of outgoing transactions for an account as JSON")
    _add_session_args(export)
    _add_month_args(export)
    export.add_argument("--output", default=None, help="Output directory (default: ~/Documents/icpenses/data)")

    accounts = sub.add_parser("accounts", help="Log in and list the customer's accounts")
    _add_session_args(accounts)

    report = sub.add_parser("report", help="Summarize outgoing transactions by cluster, recipient and date")
    _add_session_args(report)
    _add_month_args(report)
    report.add_argument("--from-file", default=None, help="Summarize an exported JSON file instead of logging in")

    return p


def _require_credentials(args: argparse.Namespace, cfg: AppConfig) -> Credentials:
    creds = resolve_credentials(
        pnr=args.pnr,
        pin=args.pin,
        credentials_file=args.credentials,
        cfg=cfg.credentials,
    )
    if creds is None:
        raise SystemExit("Personnummer and PIN must be provided.")
    return creds


def _with_session(
    cfg: AppConfig,
    creds: Credentials,
    *,
    headful: bool,
    work: Callable[[AuthenticationSession, AccountDirectory, PlaywrightAgent], T],
) -> T:
    portal = cfg.portal
    with PlaywrightAgent(
        headless=portal.headless and not headful,
        timeout_ms=portal.timeout_ms,
        slow_mo_ms=portal.slow_mo_ms,
    ) as agent:
        session = AuthenticationSession(agent, creds, base_url=portal.base_url)
        try:
            directory = session.login()
            return work(session, directory, agent)
        except Exception:
            agent.save_debug(debug_dir=portal.debug_dir, name_prefix=f"failure_{time.strftime('%Y%m%d_%H%M%S')}")
            raise


def _month(args: argparse.Namespace) -> tuple[date, date]:
    try:
        return month_range(args.month)
    except ValueError as e:
        raise SystemExit(str(e)) from e


def _fetch_month(
    cfg: AppConfig, args: argparse.Namespace, from_date: date, to_date: date
) -> tuple[Account, list[Transaction]]:
    creds = _require_credentials(args, cfg)

    def work(session: AuthenticationSession, directory: AccountDirectory, agent: PlaywrightAgent):
        account = directory.select(args.account)
        logger.info("Using account %s", account)
        parser = StatementParser(agent, base_url=cfg.portal.base_url)
        return account, parser.fetch(account, from_date, to_date)

    return _with_session(cfg, creds, headful=args.headful, work=work)


def _cmd_export(cfg: AppConfig, args: argparse.Namespace) -> int:
    from_date, to_date = _month(args)
    account, transactions = _fetch_month(cfg, args, from_date, to_date)
    path = write_export(args.output or cfg.export.output_dir, account, from_date, to_date, transactions)
    print(path)
    return 0


def _cmd_accounts(cfg: AppConfig, args: argparse.Namespace) -> int:
    creds = _require_credentials(args, cfg)
    accounts = _with_session(cfg, creds, headful=args.headful, work=lambda s, d, a: d.list())
    for account in accounts:
        print(f"{account.number}\t{account.name}")
    return 0


def _cmd_report(cfg: AppConfig, args: argparse.Namespace) -> int:
    if args.from_file:
        account_info, from_date, to_date, transactions = read_export(args.from_file)
        label = f"{account_info.get('number', '')} ({account_info.get('name', '')})"
    else:
        from_date, to_date = _month(args)
        account, transactions = _fetch_month(cfg, args, from_date, to_date)
        label = str(account)

    print(f"Account {label}, {from_date.isoformat()}..{to_date.isoformat()}")
    print()
    print(render_report(transactions, cfg.report.rules(), cfg.report.default_label))
    return 0


_COMMANDS = {
    "export": _cmd_export,
    "accounts": _cmd_accounts,
    "report": _cmd_report,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    env_path = Path(args.env_file)
    if env_path.exists():
        load_dotenv(env_path)

    # Default logging: can be overridden once config is loaded.
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))

    cfg = load_config(args.config)
    if args.debug_dir:
        cfg = cfg.model_copy(update={"portal": cfg.portal.model_copy(update={"debug_dir": args.debug_dir})})
    configure_logging(level=cfg.logging.level, file_path=cfg.logging.file_path or None)

    t0 = time.time()
    try:
        rc = _COMMANDS[args.cmd](cfg, args)
    except SystemExit as e:
        if isinstance(e.code, str):
            print(e.code, file=sys.stderr)
            return 1
        raise
    except _REPORTED_ERRORS as e:
        logger.error("%s", e)
        if args.debug_bundle:
            bundle = create_debug_bundle(debug_dir=cfg.portal.debug_dir, log_file=cfg.logging.file_path or None)
            logger.info("Debug bundle written to %s", bundle)
        return 1

    logger.info("Finished %s (seconds=%.2f)", args.cmd, time.time() - t0)
    return rc


if __name__ == "__main__":
    raise SystemExit(main())
