from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterable, Union

from .models import Account, Transaction
from .util.files import ensure_private_dir, open_private


logger = logging.getLogger(__name__)


def export_filename(from_date: date, account: Account) -> str:
    return f"{from_date.strftime('%Y-%m')}_{account.number.replace(' ', '_')}.json"


def build_payload(account: Account, from_date: date, to_date: date, transactions: Iterable[Transaction]) -> dict:
    return {
        "account": {"number": account.number, "name": account.name},
        "from": from_date.isoformat(),
        "to": to_date.isoformat(),
        "transactions": [
            {
                "date": t.date.isoformat(),
                "amount": float(t.amount),
                "details": t.details,
                "direct_debit": t.direct_debit,
            }
            for t in transactions
        ],
    }


def ensure_output_dir(path: Union[str, Path]) -> Path:
    existed = Path(path).expanduser().is_dir()
    out = ensure_private_dir(path)
    if not existed:
        logger.info("Created output directory %s", out)
    return out


def write_export(
    output_dir: Union[str, Path],
    account: Account,
    from_date: date,
    to_date: date,
    transactions: Iterable[Transaction],
) -> Path:
    """
    Write the outgoing transactions of one account/month as JSON, readable by the owner only.
    """
    out_dir = ensure_output_dir(output_dir)
    outgoing = [t for t in transactions if t.outgoing]
    path = out_dir / export_filename(from_date, account)

    payload = build_payload(account, from_date, to_date, outgoing)
    with open_private(path, "w") as f:
        json.dump(payload, f, ensure_ascii=False)

    logger.info("Wrote %d outgoing transactions to %s", len(outgoing), path)
    return path


def read_export(path: Union[str, Path]) -> tuple[dict, date, date, list[Transaction]]:
    data = json.loads(Path(path).expanduser().read_text(encoding="utf-8"), parse_float=Decimal)
    transactions = [
        Transaction(
            date=date.fromisoformat(t["date"]),
            amount=Decimal(t["amount"]),
            details=t["details"],
            direct_debit=bool(t.get("direct_debit", False)),
        )
        for t in data.get("transactions", [])
    ]
    return data.get("account", {}), date.fromisoformat(data["from"]), date.fromisoformat(data["to"]), transactions
