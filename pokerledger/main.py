from __future__ import annotations

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pokerledger.api.bankroll import router as bankroll_router
from pokerledger.api.ledgers import router as ledgers_router
from pokerledger.api.reconciliations import router as reconciliations_router
from pokerledger.storage.database import init_db

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("pokerledger")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    init_db()
    logger.info("Database schema ready")
    yield


app = FastAPI(title="Poker Ledger API", lifespan=lifespan)
app.include_router(reconciliations_router)
app.include_router(ledgers_router)
app.include_router(bankroll_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
