from datetime import datetime
from decimal import Decimal

import pytest

from pokerledger.domain import Denomination, InvalidGroupOperationError, LedgerValidationError, UnbalancedSettlementError
from pokerledger.service import LedgerAccessError, LedgerNotFoundError, LedgerService
from pokerledger.services.csv_ingest import CsvFormatError
from pokerledger.storage.repository import LedgerRepository


def test_start_reconciliation_groups_uploaded_nicknames(ledger_service: LedgerService, session_csv: bytes) -> None:
    pending = ledger_service.start_reconciliation(session_csv, file_name="ledger.csv")

    assert pending.file_name == "ledger.csv"
    assert [group.members for group in pending.state.groups] == [("alice", "alice2"), ("bob",), ("carol",)]
    assert ledger_service.get_reconciliation(pending.id) is pending


def test_reconciliation_ids_are_distinct(ledger_service: LedgerService, session_csv: bytes) -> None:
    first = ledger_service.start_reconciliation(session_csv)
    second = ledger_service.start_reconciliation(session_csv)

    assert first.id != second.id


def test_bad_upload_is_rejected(ledger_service: LedgerService) -> None:
    with pytest.raises(CsvFormatError):
        ledger_service.start_reconciliation(b"nickname\nbob\n")


def test_group_edits_are_kept_between_calls(ledger_service: LedgerService, session_csv: bytes) -> None:
    pending = ledger_service.start_reconciliation(session_csv)

    ledger_service.split_group(pending.id, 0, "alice2")
    ledger_service.merge_group(pending.id, 1, 3)
    edited = ledger_service.rename_group(pending.id, 1, "Bobby")

    assert ledger_service.get_reconciliation(pending.id) == edited
    assert [(group.canonical_name, group.members) for group in edited.state.groups] == [
        ("alice", ("alice",)),
        ("Bobby", ("bob", "alice2")),
        ("carol", ("carol",)),
    ]


def test_invalid_group_edit_leaves_state_untouched(ledger_service: LedgerService, session_csv: bytes) -> None:
    pending = ledger_service.start_reconciliation(session_csv)

    with pytest.raises(InvalidGroupOperationError):
        ledger_service.merge_group(pending.id, 0, 7)

    assert ledger_service.get_reconciliation(pending.id) is pending


def test_unknown_reconciliation(ledger_service: LedgerService) -> None:
    with pytest.raises(LedgerNotFoundError):
        ledger_service.rename_group(404, 0, "x")


def test_preview_settlement(ledger_service: LedgerService, session_csv: bytes) -> None:
    pending = ledger_service.start_reconciliation(session_csv)

    preview = ledger_service.preview_settlement(pending.id, Denomination.CENTS)

    assert [(p.name, p.net) for p in preview.positions] == [
        ("alice", Decimal("20")),
        ("bob", Decimal("-15")),
        ("carol", Decimal("-5")),
    ]
    assert [t.to_dict() for t in preview.transactions] == [
        {"from": "bob", "to": "alice", "amount": "15.00"},
        {"from": "carol", "to": "alice", "amount": "5.00"},
    ]
    assert preview.imbalance == 0


def test_strict_service_refuses_unbalanced_preview(repo: LedgerRepository) -> None:
    service = LedgerService(repo, strict_balance=True)
    pending = service.start_reconciliation(b"player_nickname,buy_in,buy_out\nann,100,300\nzed,100,0\n")

    with pytest.raises(UnbalancedSettlementError):
        service.preview_settlement(pending.id, Denomination.DOLLARS)


def test_confirm_persists_ledger_and_discards_pending(ledger_service: LedgerService, session_csv: bytes) -> None:
    pending = ledger_service.start_reconciliation(session_csv, file_name="friday.csv")

    ledger = ledger_service.confirm(
        pending.id,
        owner_id="user-1",
        session_name="Friday game",
        session_date=datetime(2025, 3, 1, 20, 0),
    )

    assert ledger.owner_id == "user-1"
    assert ledger.session_name == "Friday game"
    assert ledger.session_date == datetime(2025, 3, 1, 20, 0)
    assert ledger.denomination is Denomination.CENTS
    assert ledger.original_file_name == "friday.csv"
    assert [(p.name, p.aliases, p.buy_in, p.cash_out) for p in ledger.players] == [
        ("alice", ("alice", "alice2"), Decimal("3000"), Decimal("5000")),
        ("bob", ("bob",), Decimal("2000"), Decimal("500")),
        ("carol", ("carol",), Decimal("2000"), Decimal("1500")),
    ]
    assert [t.to_dict() for t in ledger.transactions] == [
        {"from": "bob", "to": "alice", "amount": "15.00"},
        {"from": "carol", "to": "alice", "amount": "5.00"},
    ]
    assert ledger_service.get_ledger(ledger.id) == ledger
    with pytest.raises(LedgerNotFoundError):
        ledger_service.get_reconciliation(pending.id)


def test_confirm_requires_something_to_settle(ledger_service: LedgerService) -> None:
    pending = ledger_service.start_reconciliation(b"player_nickname,buy_in,buy_out\nann,100,100\n")

    with pytest.raises(LedgerValidationError):
        ledger_service.confirm(pending.id, owner_id="user-1")

    assert ledger_service.get_reconciliation(pending.id) is pending


def test_ledgers_are_listed_newest_first_per_owner(ledger_service: LedgerService, session_csv: bytes) -> None:
    for owner, day in [("user-1", 1), ("user-1", 8), ("user-2", 3)]:
        pending = ledger_service.start_reconciliation(session_csv)
        ledger_service.confirm(pending.id, owner_id=owner, session_date=datetime(2025, 3, day))

    dates = [ledger.session_date.day for ledger in ledger_service.list_ledgers("user-1")]

    assert dates == [8, 1]
    assert ledger_service.list_ledgers("nobody") == []


def test_rename_and_delete_require_owner(ledger_service: LedgerService, session_csv: bytes) -> None:
    pending = ledger_service.start_reconciliation(session_csv)
    ledger = ledger_service.confirm(pending.id, owner_id="user-1")

    with pytest.raises(LedgerAccessError):
        ledger_service.rename_ledger(ledger.id, "user-2", "Mine now")
    with pytest.raises(LedgerValidationError):
        ledger_service.rename_ledger(ledger.id, "user-1", "   ")

    renamed = ledger_service.rename_ledger(ledger.id, "user-1", " Saturday ")
    assert renamed.session_name == "Saturday"

    with pytest.raises(LedgerAccessError):
        ledger_service.delete_ledger(ledger.id, "user-2")
    ledger_service.delete_ledger(ledger.id, "user-1")
    with pytest.raises(LedgerNotFoundError):
        ledger_service.get_ledger(ledger.id)
