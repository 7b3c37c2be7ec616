#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path


def _ensure_src_on_path() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src = repo_root / "src"
    if str(src) not in sys.path:
        sys.path.insert(0, str(src))


def _read_text(path: str) -> str:
    p = Path(path)
    if not p.exists():
        raise SystemExit(f"File not found: {p}")
    return p.read_text(encoding="utf-8", errors="replace")


def _emit(payload: object, out: str) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if out:
        Path(out).write_text(text + "\n", encoding="utf-8")
    else:
        print(text)


def main(argv: list[str] | None = None) -> int:
    _ensure_src_on_path()

    from icabanken_export.portal import AccountDirectory, Document, StatementParser

    p = argparse.ArgumentParser(
        prog="parse_html_snapshot",
        description=(
            "Parse saved internet bank pages (from data/debug/*.html) into structured JSON.\n"
            "This is intended for debugging parsing regressions offline (no browser, no credentials)."
        ),
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    accounts = sub.add_parser("accounts", help="Parse an account overview page into Account[]")
    accounts.add_argument("--file", required=True, help="Path to a saved overview .html file")
    accounts.add_argument("--out", default="", help="Optional output JSON path (otherwise prints to stdout)")

    statement = sub.add_parser("statement", help="Parse a statement page into Transaction[]")
    statement.add_argument("--file", required=True, help="Path to a saved statement .html file")
    statement.add_argument("--out", default="", help="Optional output JSON path (otherwise prints to stdout)")

    args = p.parse_args(argv)
    doc = Document(_read_text(args.file))

    if args.cmd == "accounts":
        directory = AccountDirectory.from_document(doc)
        _emit([a.model_dump() for a in directory], args.out)
        return 0

    # StatementParser.parse never touches the agent.
    transactions = StatementParser(agent=None).parse(doc)  # type: ignore[arg-type]
    _emit([t.model_dump(mode="json") for t in transactions], args.out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
