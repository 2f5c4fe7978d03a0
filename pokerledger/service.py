from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from itertools import count

from pokerledger.domain import (
    DEFAULT_SESSION_NAME,
    ConfirmedPlayer,
    Denomination,
    LedgerValidationError,
    NetPosition,
    Reconciliation,
    Transaction,
    build_ledger,
    confirm_players,
    merge_groups,
    net_imbalance,
    net_positions,
    reconcile,
    rename_canonical,
    settle,
    split_member,
)
from pokerledger.domain.aliases import DEFAULT_SIMILARITY_THRESHOLD
from pokerledger.services.csv_ingest import parse_ledger_csv
from pokerledger.storage.repository import LedgerRepository, LedgerRow

logger = logging.getLogger(__name__)

DEFAULT_MAX_PENDING = 256
DEFAULT_PENDING_TTL_SECONDS = 6 * 60 * 60


class LedgerNotFoundError(LookupError):
    """Raised when a reconciliation or ledger id is unknown."""


class LedgerAccessError(PermissionError):
    """Raised when a ledger is modified by someone other than its owner."""


@dataclass(frozen=True, slots=True)
class PendingReconciliation:
    id: int
    file_name: str | None
    state: Reconciliation
    created_at: float = 0.0


@dataclass(slots=True)
class SettlementPreview:
    players: list[ConfirmedPlayer]
    positions: list[NetPosition]
    transactions: list[Transaction]
    imbalance: Decimal


class LedgerService:
    def __init__(
        self,
        repo: LedgerRepository,
        *,
        strict_balance: bool = False,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
        max_pending: int = DEFAULT_MAX_PENDING,
        pending_ttl: float | None = DEFAULT_PENDING_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_pending < 1:
            raise ValueError("max_pending must be at least 1")
        self.repo = repo
        self.strict_balance = strict_balance
        self.similarity_threshold = similarity_threshold
        self.max_pending = max_pending
        self.pending_ttl = pending_ttl
        self._clock = clock
        self._pending: dict[int, PendingReconciliation] = {}
        self._ids = count(1)
        self._lock = threading.Lock()

    def start_reconciliation(self, data: bytes, file_name: str | None = None) -> PendingReconciliation:
        rows = parse_ledger_csv(data)
        state = reconcile(rows, threshold=self.similarity_threshold)
        with self._lock:
            now = self._clock()
            self._evict(now)
            pending = PendingReconciliation(
                id=next(self._ids),
                file_name=file_name,
                state=state,
                created_at=now,
            )
            self._pending[pending.id] = pending
        logger.info(
            "Reconciliation %s started from %s: %d rows, %d nicknames, %d groups",
            pending.id,
            file_name or "upload",
            len(rows),
            len(state.summaries),
            len(state.groups),
        )
        return pending

    def get_reconciliation(self, reconciliation_id: int) -> PendingReconciliation:
        with self._lock:
            return self._lookup(reconciliation_id)

    def rename_group(self, reconciliation_id: int, index: int, name: str) -> PendingReconciliation:
        return self._edit(reconciliation_id, lambda state: rename_canonical(state, index, name))

    def split_group(self, reconciliation_id: int, index: int, nickname: str) -> PendingReconciliation:
        return self._edit(reconciliation_id, lambda state: split_member(state, index, nickname))

    def merge_group(self, reconciliation_id: int, index: int, source_index: int) -> PendingReconciliation:
        return self._edit(reconciliation_id, lambda state: merge_groups(state, index, source_index))

    def preview_settlement(self, reconciliation_id: int, denomination: Denomination) -> SettlementPreview:
        pending = self.get_reconciliation(reconciliation_id)
        players = confirm_players(pending.state.groups)
        positions = net_positions(players, denomination)
        return SettlementPreview(
            players=players,
            positions=positions,
            transactions=settle(positions, strict=self.strict_balance),
            imbalance=net_imbalance(positions),
        )

    def confirm(
        self,
        reconciliation_id: int,
        *,
        owner_id: str,
        session_name: str = DEFAULT_SESSION_NAME,
        denomination: Denomination = Denomination.CENTS,
        session_date: datetime | None = None,
    ) -> LedgerRow:
        # claimed before saving so a repeated confirm cannot store a second ledger
        with self._lock:
            pending = self._pending.pop(reconciliation_id, None)
            if pending is None or self._expired(pending, self._clock()):
                raise LedgerNotFoundError(f"reconciliation {reconciliation_id} not found")

        try:
            record = build_ledger(
                pending.state,
                session_name=session_name,
                denomination=denomination,
                original_file_name=pending.file_name,
                session_date=session_date,
                strict=self.strict_balance,
            )
            if not record.transactions:
                raise LedgerValidationError("nothing to settle: every player is even")
            ledger_id = self.repo.save_ledger(owner_id, record)
        except Exception:
            with self._lock:
                self._pending.setdefault(pending.id, pending)
            raise

        logger.info(
            "Ledger %s saved for %s with %d players and %d transactions",
            ledger_id,
            owner_id,
            len(record.players),
            len(record.transactions),
        )
        return self.get_ledger(ledger_id)

    def get_ledger(self, ledger_id: int) -> LedgerRow:
        ledger = self.repo.get_ledger(ledger_id)
        if ledger is None:
            raise LedgerNotFoundError(f"ledger {ledger_id} not found")
        return ledger

    def list_ledgers(self, owner_id: str) -> list[LedgerRow]:
        return self.repo.list_ledgers(owner_id)

    def rename_ledger(self, ledger_id: int, owner_id: str, session_name: str) -> LedgerRow:
        self._owned_ledger(ledger_id, owner_id)
        name = session_name.strip()
        if not name:
            raise LedgerValidationError("session name must be non-empty")
        self.repo.rename_ledger(ledger_id, name)
        return self.get_ledger(ledger_id)

    def delete_ledger(self, ledger_id: int, owner_id: str) -> None:
        self._owned_ledger(ledger_id, owner_id)
        self.repo.delete_ledger(ledger_id)
        logger.info("Ledger %s deleted by %s", ledger_id, owner_id)

    def _owned_ledger(self, ledger_id: int, owner_id: str) -> LedgerRow:
        ledger = self.get_ledger(ledger_id)
        if ledger.owner_id != owner_id:
            raise LedgerAccessError(f"ledger {ledger_id} belongs to another user")
        return ledger

    def _edit(
        self,
        reconciliation_id: int,
        operation: Callable[[Reconciliation], Reconciliation],
    ) -> PendingReconciliation:
        with self._lock:
            pending = self._lookup(reconciliation_id)
            updated = replace(pending, state=operation(pending.state))
            self._pending[updated.id] = updated
            return updated

    def _lookup(self, reconciliation_id: int) -> PendingReconciliation:
        """Caller must hold ``self._lock``."""
        pending = self._pending.get(reconciliation_id)
        if pending is not None and self._expired(pending, self._clock()):
            del self._pending[reconciliation_id]
            pending = None
        if pending is None:
            raise LedgerNotFoundError(f"reconciliation {reconciliation_id} not found")
        return pending

    def _expired(self, pending: PendingReconciliation, now: float) -> bool:
        return self.pending_ttl is not None and now - pending.created_at > self.pending_ttl

    def _evict(self, now: float) -> None:
        """Drop expired uploads, then the oldest ones, to make room for one more. Caller holds the lock."""
        for stale in [p for p in self._pending.values() if self._expired(p, now)]:
            del self._pending[stale.id]
            logger.info("Reconciliation %s expired without confirmation", stale.id)
        while len(self._pending) >= self.max_pending:
            oldest = min(self._pending.values(), key=lambda p: (p.created_at, p.id))
            del self._pending[oldest.id]
            logger.warning("Reconciliation %s evicted, %d uploads pending", oldest.id, self.max_pending)
