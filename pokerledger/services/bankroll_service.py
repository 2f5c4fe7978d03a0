from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from pokerledger.domain import Denomination, LedgerValidationError
from pokerledger.domain.rows import ZERO
from pokerledger.service import LedgerAccessError, LedgerNotFoundError, LedgerService
from pokerledger.storage.repository import LedgerRepository, PerformanceRow

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BankrollSummary:
    sessions: int
    winning_sessions: int
    total_buy_in: Decimal
    total_cash_out: Decimal
    total_profit: Decimal

    @property
    def win_rate(self) -> float:
        return self.winning_sessions / self.sessions if self.sessions else 0.0

    @property
    def average_profit(self) -> Decimal:
        return self.total_profit / self.sessions if self.sessions else ZERO


def summarize_performance(entries: Iterable[PerformanceRow]) -> BankrollSummary:
    """Totals across sessions, each entry scaled to major units by its own denomination."""
    sessions = 0
    winning = 0
    buy_in = ZERO
    cash_out = ZERO
    for entry in entries:
        sessions += 1
        entry_buy_in = entry.denomination.to_display(entry.buy_in)
        entry_cash_out = entry.denomination.to_display(entry.cash_out)
        buy_in += entry_buy_in
        cash_out += entry_cash_out
        if entry_cash_out > entry_buy_in:
            winning += 1

    return BankrollSummary(
        sessions=sessions,
        winning_sessions=winning,
        total_buy_in=buy_in,
        total_cash_out=cash_out,
        total_profit=cash_out - buy_in,
    )


class BankrollService:
    def __init__(self, repo: LedgerRepository, ledgers: LedgerService) -> None:
        self.repo = repo
        self.ledgers = ledgers

    def track_from_ledger(self, owner_id: str, ledger_id: int, player_name: str) -> PerformanceRow:
        ledger = self.ledgers.get_ledger(ledger_id)
        player = next((p for p in ledger.players if p.name == player_name), None)
        if player is None:
            raise LedgerValidationError(f"player {player_name!r} is not part of ledger {ledger_id}")

        entry_id = self.repo.add_performance(
            owner_id=owner_id,
            ledger_id=ledger_id,
            player_name=player.name,
            session_name=ledger.session_name,
            session_date=ledger.session_date,
            buy_in=player.buy_in,
            cash_out=player.cash_out,
            denomination=ledger.denomination,
        )
        logger.info("Tracked %s from ledger %s for %s", player.name, ledger_id, owner_id)
        return self.get_entry(entry_id)

    def add_manual_entry(
        self,
        *,
        owner_id: str,
        player_name: str,
        session_name: str,
        session_date: datetime,
        buy_in: Decimal,
        cash_out: Decimal,
        denomination: Denomination = Denomination.DOLLARS,
    ) -> PerformanceRow:
        entry_id = self.repo.add_performance(
            owner_id=owner_id,
            player_name=_required(player_name, "player name"),
            session_name=_required(session_name, "session name"),
            session_date=session_date,
            buy_in=buy_in,
            cash_out=cash_out,
            denomination=denomination,
            is_manual_entry=True,
        )
        return self.get_entry(entry_id)

    def get_entry(self, entry_id: int) -> PerformanceRow:
        entry = self.repo.get_performance(entry_id)
        if entry is None:
            raise LedgerNotFoundError(f"performance entry {entry_id} not found")
        return entry

    def list_entries(self, owner_id: str) -> list[PerformanceRow]:
        return self.repo.list_performance(owner_id)

    def update_entry(
        self,
        entry_id: int,
        *,
        owner_id: str,
        player_name: str,
        buy_in: Decimal,
        cash_out: Decimal,
        denomination: Denomination,
        session_name: str | None = None,
        session_date: datetime | None = None,
    ) -> PerformanceRow:
        self._owned_entry(entry_id, owner_id)
        return self.repo.update_performance(
            entry_id,
            player_name=_required(player_name, "player name"),
            session_name=session_name,
            session_date=session_date,
            buy_in=buy_in,
            cash_out=cash_out,
            denomination=denomination,
        )

    def delete_entry(self, entry_id: int, owner_id: str) -> None:
        self._owned_entry(entry_id, owner_id)
        self.repo.delete_performance(entry_id)

    def summary(self, owner_id: str) -> BankrollSummary:
        return summarize_performance(self.repo.list_performance(owner_id))

    def _owned_entry(self, entry_id: int, owner_id: str) -> PerformanceRow:
        entry = self.get_entry(entry_id)
        if entry.owner_id != owner_id:
            raise LedgerAccessError(f"performance entry {entry_id} belongs to another user")
        return entry


def _required(value: str, label: str) -> str:
    stripped = value.strip()
    if not stripped:
        raise LedgerValidationError(f"{label} must be non-empty")
    return stripped
