from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from pokerledger.main import app
from pokerledger.runtime import get_bankroll_service, get_ledger_service
from pokerledger.service import LedgerService
from pokerledger.services.bankroll_service import BankrollService
from pokerledger.storage.database import create_ledger_engine, create_schema, make_session_factory
from pokerledger.storage.repository import LedgerRepository

SESSION_CSV = (
    "player_nickname,player_id,buy_in,buy_out,stack,net\n"
    "alice,p1,2000,5000,0,3000\n"
    "alice2,p2,1000,0,0,-1000\n"
    "bob,p3,2000,500,0,-1500\n"
    "carol,p4,2000,0,1500,-500\n"
).encode()


def memory_session_factory() -> sessionmaker[Session]:
    engine = create_ledger_engine("sqlite+pysqlite:///:memory:")
    create_schema(engine)
    return make_session_factory(engine)


@pytest.fixture
def session_factory() -> sessionmaker[Session]:
    return memory_session_factory()


@pytest.fixture
def repo(session_factory: sessionmaker[Session]) -> LedgerRepository:
    return LedgerRepository(session_factory)


@pytest.fixture
def ledger_service(repo: LedgerRepository) -> LedgerService:
    return LedgerService(repo)


@pytest.fixture
def bankroll_service(repo: LedgerRepository, ledger_service: LedgerService) -> BankrollService:
    return BankrollService(repo, ledger_service)


@pytest.fixture
def client(ledger_service: LedgerService, bankroll_service: BankrollService) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_ledger_service] = lambda: ledger_service
    app.dependency_overrides[get_bankroll_service] = lambda: bankroll_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def session_csv() -> bytes:
    return SESSION_CSV
