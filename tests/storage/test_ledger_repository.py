from datetime import datetime
from decimal import Decimal

from pokerledger.domain import ConfirmedPlayer, Denomination, LedgerRecord, Transaction
from pokerledger.storage.models import quantize_money
from pokerledger.storage.repository import LedgerRepository


def test_quantize_money_rounds_half_up_to_eight_places() -> None:
    assert quantize_money(Decimal("0.123456785")) == Decimal("0.12345679")
    assert quantize_money(Decimal("12.5")) == Decimal("12.50000000")


def test_ledger_amounts_with_many_decimals_round_trip(repo: LedgerRepository) -> None:
    record = LedgerRecord(
        session_name="Fractional chips",
        denomination=Denomination.DOLLARS,
        players=(
            ConfirmedPlayer("ann", ("ann",), buy_in=Decimal("1000.123456"), cash_out=Decimal("1010.654321")),
            ConfirmedPlayer("bob", ("bob",), buy_in=Decimal("20.5"), cash_out=Decimal("9.969135")),
        ),
        transactions=(Transaction(from_player="bob", to_player="ann", amount="10.53"),),
        session_date=datetime(2025, 3, 1, 20, 0),
    )

    ledger = repo.get_ledger(repo.save_ledger("user-1", record))

    assert ledger is not None
    assert [(p.buy_in, p.cash_out) for p in ledger.players] == [
        (Decimal("1000.123456"), Decimal("1010.654321")),
        (Decimal("20.5"), Decimal("9.969135")),
    ]


def test_performance_amounts_are_quantized_before_storage(repo: LedgerRepository) -> None:
    entry_id = repo.add_performance(
        owner_id="user-1",
        player_name="ann",
        session_name="Home game",
        session_date=datetime(2025, 2, 1),
        buy_in=Decimal("12.345678"),
        cash_out=Decimal("0.123456789"),
        denomination=Denomination.DOLLARS,
    )

    entry = repo.get_performance(entry_id)

    assert entry is not None
    assert entry.buy_in == Decimal("12.345678")
    assert entry.cash_out == Decimal("0.12345679")
    assert entry.profit == Decimal("-12.22222121")

    updated = repo.update_performance(
        entry_id,
        player_name="ann",
        session_name=None,
        session_date=None,
        buy_in=Decimal("1.000000004"),
        cash_out=Decimal("3.25"),
        denomination=Denomination.DOLLARS,
    )

    assert updated.buy_in == Decimal("1")
    assert updated.profit == Decimal("2.25")
