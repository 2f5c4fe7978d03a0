from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from .aliases import AliasGroup, Reconciliation
from .rows import ZERO, Denomination
from .settlement import DEFAULT_TOLERANCE, NetPosition, Transaction, settle

DEFAULT_SESSION_NAME = "Poker Session"


@dataclass(frozen=True, slots=True)
class ConfirmedPlayer:
    name: str
    aliases: tuple[str, ...]
    buy_in: Decimal = ZERO
    cash_out: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.cash_out - self.buy_in

    def to_document(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "aliases": list(self.aliases),
            "buyIn": self.buy_in,
            "cashOut": self.cash_out,
        }


@dataclass(frozen=True, slots=True)
class LedgerRecord:
    session_name: str
    denomination: Denomination
    players: tuple[ConfirmedPlayer, ...]
    transactions: tuple[Transaction, ...]
    original_file_name: str | None = None
    session_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_document(self) -> dict[str, Any]:
        return {
            "sessionName": self.session_name,
            "sessionDate": self.session_date.isoformat(),
            "denomination": self.denomination.value,
            "originalFileName": self.original_file_name,
            "players": [player.to_document() for player in self.players],
            "transactions": [transaction.to_dict() for transaction in self.transactions],
        }


def confirm_players(groups: Iterable[AliasGroup]) -> list[ConfirmedPlayer]:
    """Fold groups into players; groups renamed to the same canonical name become one player."""
    aliases: dict[str, list[str]] = {}
    buy_ins: dict[str, Decimal] = {}
    cash_outs: dict[str, Decimal] = {}

    for group in groups:
        name = group.canonical_name
        known = aliases.setdefault(name, [])
        known.extend(member for member in group.members if member not in known)
        buy_ins[name] = buy_ins.get(name, ZERO) + group.totals.buy_in
        cash_outs[name] = cash_outs.get(name, ZERO) + group.totals.combined

    return [
        ConfirmedPlayer(name=name, aliases=tuple(members), buy_in=buy_ins[name], cash_out=cash_outs[name])
        for name, members in aliases.items()
    ]


def net_positions(players: Iterable[ConfirmedPlayer], denomination: Denomination) -> list[NetPosition]:
    return [NetPosition(name=player.name, net=denomination.to_display(player.net)) for player in players]


def build_ledger(
    state: Reconciliation,
    *,
    session_name: str = DEFAULT_SESSION_NAME,
    denomination: Denomination = Denomination.CENTS,
    original_file_name: str | None = None,
    session_date: datetime | None = None,
    strict: bool = False,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> LedgerRecord:
    players = confirm_players(state.groups)
    transactions = settle(net_positions(players, denomination), strict=strict, tolerance=tolerance)
    return LedgerRecord(
        session_name=session_name.strip() or DEFAULT_SESSION_NAME,
        denomination=denomination,
        players=tuple(players),
        transactions=tuple(transactions),
        original_file_name=original_file_name,
        session_date=session_date or datetime.now(timezone.utc),
    )
