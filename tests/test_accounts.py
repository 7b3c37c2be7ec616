from __future__ import annotations

import pytest

from icabanken_export.models import Account
from icabanken_export.portal import AccountDirectory, AccountNotFound, Document

from portal_fakes import OVERVIEW


def _directory() -> AccountDirectory:
    return AccountDirectory.from_document(Document(OVERVIEW))


def test_from_document_reads_id_number_and_name_in_page_order() -> None:
    accounts = _directory().list()
    assert accounts == [
        Account(id="1001", number="9270 12 34567", name="ICA KONTO"),
        Account(id="1002", number="1234 56 789", name="Sparkonto"),
    ]


def test_from_document_ignores_links_without_account_id() -> None:
    assert len(_directory()) == 2


def test_link_outside_a_table_row_gets_empty_name() -> None:
    doc = Document('<p><a href="/x.aspx?AccountId=77">5555 66</a></p>')
    (account,) = AccountDirectory.from_document(doc).list()
    assert account.id == "77"
    assert account.name == ""


@pytest.mark.parametrize("query", ["1234 56 789", "1234567 89", "123456789", "1234-56-789"])
def test_find_by_number_ignores_formatting(query: str) -> None:
    found = _directory().find(query)
    assert found is not None
    assert found.id == "1002"


def test_find_by_exact_name() -> None:
    found = _directory().find("ICA KONTO")
    assert found is not None
    assert found.id == "1001"


def test_find_name_match_is_exact() -> None:
    assert _directory().find("ica konto") is None


def test_find_returns_none_for_unknown() -> None:
    assert _directory().find("0000") is None


def test_find_first_match_wins() -> None:
    d = AccountDirectory(
        [
            Account(id="1", number="111", name="222"),
            Account(id="2", number="222", name="Other"),
        ]
    )
    found = d.find("222")
    assert found is not None
    assert found.id == "1"


def test_select_defaults_to_first_account() -> None:
    assert _directory().select(None).id == "1001"


def test_select_unknown_raises_with_available_accounts() -> None:
    with pytest.raises(AccountNotFound) as excinfo:
        _directory().select("Semesterkonto")
    assert "Sparkonto" in str(excinfo.value)


def test_select_on_empty_directory_raises() -> None:
    with pytest.raises(AccountNotFound):
        AccountDirectory([]).select()
