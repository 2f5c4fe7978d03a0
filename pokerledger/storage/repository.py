from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session, selectinload, sessionmaker

from pokerledger.domain import ConfirmedPlayer, Denomination, LedgerRecord, Transaction
from pokerledger.storage.models import (
    Ledger,
    LedgerPlayer,
    LedgerTransaction,
    PerformanceEntry,
    quantize_money,
)


@dataclass(slots=True)
class LedgerRow:
    id: int
    owner_id: str
    session_name: str
    session_date: datetime
    denomination: Denomination
    original_file_name: str | None
    players: list[ConfirmedPlayer]
    transactions: list[Transaction]


@dataclass(slots=True)
class PerformanceRow:
    id: int
    owner_id: str
    ledger_id: int | None
    player_name: str
    session_name: str
    session_date: datetime
    buy_in: Decimal
    cash_out: Decimal
    profit: Decimal
    denomination: Denomination
    is_manual_entry: bool


class LedgerRepository:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def save_ledger(self, owner_id: str, record: LedgerRecord) -> int:
        with self._session_factory() as db:
            ledger = Ledger(
                owner_id=owner_id,
                session_name=record.session_name,
                session_date=record.session_date,
                denomination=record.denomination.value,
                original_file_name=record.original_file_name,
            )
            ledger.players = [
                LedgerPlayer(
                    position=position,
                    name=player.name,
                    aliases=list(player.aliases),
                    buy_in=quantize_money(player.buy_in),
                    cash_out=quantize_money(player.cash_out),
                )
                for position, player in enumerate(record.players)
            ]
            ledger.transactions = [
                LedgerTransaction(
                    position=position,
                    from_player=transaction.from_player,
                    to_player=transaction.to_player,
                    amount=transaction.amount,
                )
                for position, transaction in enumerate(record.transactions)
            ]
            db.add(ledger)
            db.commit()
            return ledger.id

    def get_ledger(self, ledger_id: int) -> LedgerRow | None:
        with self._session_factory() as db:
            ledger = db.scalars(
                select(Ledger)
                .where(Ledger.id == ledger_id)
                .options(selectinload(Ledger.players), selectinload(Ledger.transactions))
            ).one_or_none()
            if ledger is None:
                return None
            return _ledger_row(ledger)

    def list_ledgers(self, owner_id: str) -> list[LedgerRow]:
        with self._session_factory() as db:
            ledgers = db.scalars(
                select(Ledger)
                .where(Ledger.owner_id == owner_id)
                .options(selectinload(Ledger.players), selectinload(Ledger.transactions))
                .order_by(Ledger.session_date.desc(), Ledger.id.desc())
            ).all()
            return [_ledger_row(ledger) for ledger in ledgers]

    def rename_ledger(self, ledger_id: int, session_name: str) -> None:
        with self._session_factory() as db:
            ledger = db.get(Ledger, ledger_id)
            if ledger is None:
                raise ValueError("ledger not found")
            ledger.session_name = session_name
            db.commit()

    def delete_ledger(self, ledger_id: int) -> None:
        with self._session_factory() as db:
            ledger = db.get(Ledger, ledger_id)
            if ledger is None:
                raise ValueError("ledger not found")
            db.execute(
                update(PerformanceEntry).where(PerformanceEntry.ledger_id == ledger_id).values(ledger_id=None)
            )
            db.delete(ledger)
            db.commit()

    def add_performance(
        self,
        *,
        owner_id: str,
        player_name: str,
        session_name: str,
        session_date: datetime,
        buy_in: Decimal,
        cash_out: Decimal,
        denomination: Denomination,
        ledger_id: int | None = None,
        is_manual_entry: bool = False,
    ) -> int:
        with self._session_factory() as db:
            buy_in = quantize_money(buy_in)
            cash_out = quantize_money(cash_out)
            entry = PerformanceEntry(
                owner_id=owner_id,
                ledger_id=ledger_id,
                player_name=player_name,
                session_name=session_name,
                session_date=session_date,
                buy_in=buy_in,
                cash_out=cash_out,
                profit=cash_out - buy_in,
                denomination=denomination.value,
                is_manual_entry=is_manual_entry,
            )
            db.add(entry)
            db.commit()
            return entry.id

    def get_performance(self, entry_id: int) -> PerformanceRow | None:
        with self._session_factory() as db:
            entry = db.get(PerformanceEntry, entry_id)
            return _performance_row(entry) if entry is not None else None

    def list_performance(self, owner_id: str) -> list[PerformanceRow]:
        with self._session_factory() as db:
            entries = db.scalars(
                select(PerformanceEntry)
                .where(PerformanceEntry.owner_id == owner_id)
                .order_by(PerformanceEntry.session_date.desc(), PerformanceEntry.id.desc())
            ).all()
            return [_performance_row(entry) for entry in entries]

    def update_performance(
        self,
        entry_id: int,
        *,
        player_name: str,
        session_name: str | None,
        session_date: datetime | None,
        buy_in: Decimal,
        cash_out: Decimal,
        denomination: Denomination,
    ) -> PerformanceRow:
        with self._session_factory() as db:
            entry = db.get(PerformanceEntry, entry_id)
            if entry is None:
                raise ValueError("performance entry not found")
            entry.player_name = player_name
            buy_in = quantize_money(buy_in)
            cash_out = quantize_money(cash_out)
            if session_name:
                entry.session_name = session_name
            if session_date is not None:
                entry.session_date = session_date
            entry.buy_in = buy_in
            entry.cash_out = cash_out
            entry.profit = cash_out - buy_in
            entry.denomination = denomination.value
            db.commit()
            return _performance_row(entry)

    def delete_performance(self, entry_id: int) -> None:
        with self._session_factory() as db:
            entry = db.get(PerformanceEntry, entry_id)
            if entry is None:
                raise ValueError("performance entry not found")
            db.delete(entry)
            db.commit()


def _ledger_row(ledger: Ledger) -> LedgerRow:
    return LedgerRow(
        id=ledger.id,
        owner_id=ledger.owner_id,
        session_name=ledger.session_name,
        session_date=ledger.session_date,
        denomination=Denomination(ledger.denomination),
        original_file_name=ledger.original_file_name,
        players=[
            ConfirmedPlayer(
                name=player.name,
                aliases=tuple(player.aliases or ()),
                buy_in=Decimal(player.buy_in),
                cash_out=Decimal(player.cash_out),
            )
            for player in ledger.players
        ],
        transactions=[
            Transaction(from_player=row.from_player, to_player=row.to_player, amount=row.amount)
            for row in ledger.transactions
        ],
    )


def _performance_row(entry: PerformanceEntry) -> PerformanceRow:
    return PerformanceRow(
        id=entry.id,
        owner_id=entry.owner_id,
        ledger_id=entry.ledger_id,
        player_name=entry.player_name,
        session_name=entry.session_name,
        session_date=entry.session_date,
        buy_in=Decimal(entry.buy_in),
        cash_out=Decimal(entry.cash_out),
        profit=Decimal(entry.profit),
        denomination=Denomination(entry.denomination),
        is_manual_entry=entry.is_manual_entry,
    )
