from __future__ import annotations

import os

from pokerledger.domain.aliases import DEFAULT_SIMILARITY_THRESHOLD
from pokerledger.service import DEFAULT_MAX_PENDING, DEFAULT_PENDING_TTL_SECONDS, LedgerService
from pokerledger.services.bankroll_service import BankrollService
from pokerledger.storage.database import SessionLocal
from pokerledger.storage.repository import LedgerRepository


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


repo = LedgerRepository(SessionLocal)
ledger_service = LedgerService(
    repo,
    strict_balance=_env_flag("LEDGER_STRICT_BALANCE"),
    similarity_threshold=float(os.getenv("ALIAS_SIMILARITY_THRESHOLD", DEFAULT_SIMILARITY_THRESHOLD)),
    max_pending=int(os.getenv("LEDGER_MAX_PENDING", DEFAULT_MAX_PENDING)),
    pending_ttl=float(os.getenv("LEDGER_PENDING_TTL_SECONDS", DEFAULT_PENDING_TTL_SECONDS)),
)
bankroll_service = BankrollService(repo, ledger_service)


def get_ledger_service() -> LedgerService:
    return ledger_service


def get_bankroll_service() -> BankrollService:
    return bankroll_service
