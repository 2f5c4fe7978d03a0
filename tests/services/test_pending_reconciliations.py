import threading

import pytest
from sqlalchemy.orm import Session, sessionmaker

from pokerledger.domain import LedgerRecord
from pokerledger.service import LedgerNotFoundError, LedgerService
from pokerledger.storage.repository import LedgerRepository


class BlockingRepository(LedgerRepository):
    """Holds ``save_ledger`` open until the test releases it."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        super().__init__(session_factory)
        self.entered = threading.Event()
        self.release = threading.Event()

    def save_ledger(self, owner_id: str, record: LedgerRecord) -> int:
        self.entered.set()
        assert self.release.wait(timeout=5)
        return super().save_ledger(owner_id, record)


class FailingRepository(LedgerRepository):
    def save_ledger(self, owner_id: str, record: LedgerRecord) -> int:
        raise RuntimeError("database unavailable")


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_second_confirm_while_first_is_saving_is_rejected(
    session_factory: sessionmaker[Session], session_csv: bytes
) -> None:
    repo = BlockingRepository(session_factory)
    service = LedgerService(repo)
    pending = service.start_reconciliation(session_csv)
    saved = []

    worker = threading.Thread(target=lambda: saved.append(service.confirm(pending.id, owner_id="user-1")))
    worker.start()
    try:
        assert repo.entered.wait(timeout=5)
        with pytest.raises(LedgerNotFoundError):
            service.confirm(pending.id, owner_id="user-1")
    finally:
        repo.release.set()
        worker.join(timeout=5)

    assert len(saved) == 1
    assert [ledger.id for ledger in service.list_ledgers("user-1")] == [saved[0].id]


def test_failed_save_keeps_reconciliation_for_retry(session_factory: sessionmaker[Session], session_csv: bytes) -> None:
    service = LedgerService(FailingRepository(session_factory))
    pending = service.start_reconciliation(session_csv)

    with pytest.raises(RuntimeError):
        service.confirm(pending.id, owner_id="user-1")

    assert service.get_reconciliation(pending.id) is pending


def test_parallel_renames_are_all_kept(ledger_service: LedgerService) -> None:
    names = ["ann", "bob", "cyd", "dee", "eve", "fay", "gus", "hal"]
    csv = "player_nickname,buy_in,buy_out\n" + "".join(f"{name},100,100\n" for name in names)
    pending = ledger_service.start_reconciliation(csv.encode())
    barrier = threading.Barrier(len(names))

    def rename(index: int) -> None:
        barrier.wait(timeout=5)
        ledger_service.rename_group(pending.id, index, names[index].upper())

    workers = [threading.Thread(target=rename, args=(index,)) for index in range(len(names))]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join(timeout=5)

    groups = ledger_service.get_reconciliation(pending.id).state.groups
    assert [group.canonical_name for group in groups] == [name.upper() for name in names]


def test_oldest_upload_is_evicted_when_store_is_full(repo: LedgerRepository, session_csv: bytes) -> None:
    clock = FakeClock()
    service = LedgerService(repo, max_pending=2, clock=clock)

    first = service.start_reconciliation(session_csv)
    clock.now = 1
    second = service.start_reconciliation(session_csv)
    clock.now = 2
    third = service.start_reconciliation(session_csv)

    with pytest.raises(LedgerNotFoundError):
        service.get_reconciliation(first.id)
    assert service.get_reconciliation(second.id) is second
    assert service.get_reconciliation(third.id) is third


def test_expired_upload_is_forgotten(repo: LedgerRepository, session_csv: bytes) -> None:
    clock = FakeClock()
    service = LedgerService(repo, pending_ttl=60, clock=clock)
    pending = service.start_reconciliation(session_csv)

    clock.now = 60
    assert service.get_reconciliation(pending.id) is pending

    clock.now = 61
    with pytest.raises(LedgerNotFoundError):
        service.get_reconciliation(pending.id)
    with pytest.raises(LedgerNotFoundError):
        service.confirm(pending.id, owner_id="user-1")


def test_store_size_must_be_positive(repo: LedgerRepository) -> None:
    with pytest.raises(ValueError):
        LedgerService(repo, max_pending=0)
