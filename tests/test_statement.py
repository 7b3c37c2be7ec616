from __future__ import annotations

from datetime import date
from decimal import Decimal
from urllib.parse import parse_qs, urlparse

import pytest

from icabanken_export.models import Account, Transaction
from icabanken_export.portal import Document, StatementParseError, StatementParser, StatementUnavailable

from portal_fakes import FakeAgent, statement_page


ACCOUNT = Account(id="1001", number="9270 12 34567", name="ICA KONTO")


def _parser(statement: str) -> tuple[StatementParser, FakeAgent]:
    agent = FakeAgent(statement=statement)
    return StatementParser(agent, base_url="https://bank.example"), agent


def test_statement_url_encodes_range_in_bank_format() -> None:
    parser, _ = _parser(statement_page([]))
    url = parser.statement_url(ACCOUNT, date(2010, 1, 5), date(2010, 2, 28))
    parsed = urlparse(url)

    assert parsed.path == "/Secure/MyEconomy/Accounts/AccountStatement.aspx"
    assert parse_qs(parsed.query) == {
        "AccountId": ["1001"],
        "SortKey": ["date_Asc"],
        "lTrnPage": ["0"],
        "ABselRangeDt": ["201002"],
        "ABselFromRangeDt": ["201001"],
        "FromDay": ["05"],
        "ToDay": ["28"],
    }


def test_fetch_parses_direct_debit_row() -> None:
    parser, _ = _parser(statement_page([("2010-01-05", "", "ICA SUPERMARKET", "-234,50*", "1000.00")]))

    transactions = parser.fetch(ACCOUNT, date(2010, 1, 1), date(2010, 1, 31))

    assert transactions == [
        Transaction(date=date(2010, 1, 5), amount=Decimal("-234.50"), details="ICA SUPERMARKET", direct_debit=True)
    ]
    assert transactions[0].outgoing is True


def test_fetch_preserves_bank_order_and_details_text() -> None:
    rows = [
        ("2010-01-07", "", "Lön", "25.000,00", "26.000,00"),
        ("2010-01-03", "123", "Restaurang  Dalastugan", "-1.234,50", "1.000,00"),
        ("2010-01-04", "", "I-tunes", "-9,00", "991,00"),
    ]
    parser, _ = _parser(statement_page(rows))

    transactions = parser.fetch(ACCOUNT, date(2010, 1, 1), date(2010, 1, 31))

    assert [t.date.day for t in transactions] == [7, 3, 4]
    assert [t.amount for t in transactions] == [Decimal("25000.00"), Decimal("-1234.50"), Decimal("-9.00")]
    assert transactions[1].details == "Restaurang  Dalastugan"
    assert not any(t.direct_debit for t in transactions)
    assert transactions[0].outgoing is False


def test_same_day_range_is_accepted() -> None:
    parser, agent = _parser(statement_page([]))

    assert parser.fetch(ACCOUNT, date(2010, 1, 5), date(2010, 1, 5)) == []
    query = parse_qs(urlparse(agent.gets[0]).query)
    assert query["FromDay"] == query["ToDay"] == ["05"]


def test_inverted_range_is_rejected_before_any_request() -> None:
    parser, agent = _parser(statement_page([]))
    with pytest.raises(ValueError):
        parser.fetch(ACCOUNT, date(2010, 2, 1), date(2010, 1, 1))
    assert agent.gets == []


def test_missing_statement_table_is_unavailable() -> None:
    parser, _ = _parser("<html><head><title>Logga in</title></head><body>Sessionen har gått ut</body></html>")

    with pytest.raises(StatementUnavailable) as excinfo:
        parser.fetch(ACCOUNT, date(2010, 1, 1), date(2010, 1, 31))

    assert excinfo.value.account_id == "1001"
    assert excinfo.value.from_date == date(2010, 1, 1)


def test_rows_with_too_few_cells_are_skipped() -> None:
    html = statement_page([("2010-01-05", "", "ICA", "-10,00", "0,00")]).replace(
        "<tbody>", '<tbody><tr><td colspan="5">Inga fler transaktioner</td></tr>'
    )
    parser, _ = _parser(html)
    assert len(parser.parse(Document(html))) == 1


def test_markup_inside_details_cell_does_not_shift_cells() -> None:
    nested = "<table><tr><td>1999-12-31</td><td></td><td>x</td><td>a</td><td>b</td></tr></table>"
    parser, _ = _parser(statement_page([("2010-01-05", "", f"ICA MAXI{nested}", "-99,00", "0,00")]))

    [t] = parser.fetch(ACCOUNT, date(2010, 1, 1), date(2010, 1, 31))

    assert t.date == date(2010, 1, 5)
    assert t.amount == Decimal("-99.00")
    assert t.details.startswith("ICA MAXI")


def test_unparseable_amount_names_the_row() -> None:
    parser, _ = _parser(statement_page([("2010-01-05", "", "ICA", "n/a", "0,00")]))
    with pytest.raises(StatementParseError, match="row 0"):
        parser.fetch(ACCOUNT, date(2010, 1, 1), date(2010, 1, 31))
