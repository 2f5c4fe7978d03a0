from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from pokerledger.api.errors import ERROR_RESPONSES, KNOWN_ERRORS, translate_error
from pokerledger.api.schemas import (
    LedgerResponse,
    PlayerSchema,
    PublicLedgerResponse,
    PublicPlayerSchema,
    RenameLedgerRequest,
    TransactionSchema,
)
from pokerledger.runtime import get_ledger_service
from pokerledger.service import LedgerService
from pokerledger.storage.repository import LedgerRow

router = APIRouter(prefix="/ledgers", tags=["ledgers"], responses=ERROR_RESPONSES)


def ledger_response(ledger: LedgerRow) -> LedgerResponse:
    return LedgerResponse(
        id=ledger.id,
        owner_id=ledger.owner_id,
        session_name=ledger.session_name,
        session_date=ledger.session_date,
        denomination=ledger.denomination,
        original_file_name=ledger.original_file_name,
        players=[PlayerSchema.model_validate(player) for player in ledger.players],
        transactions=[TransactionSchema.model_validate(t.to_dict()) for t in ledger.transactions],
    )


@router.get("", response_model=list[LedgerResponse], summary="List an owner's ledgers, newest first")
def list_ledgers(
    owner_id: str = Query(..., min_length=1),
    service: LedgerService = Depends(get_ledger_service),
) -> list[LedgerResponse]:
    return [ledger_response(ledger) for ledger in service.list_ledgers(owner_id)]


@router.get("/{ledger_id}", response_model=LedgerResponse)
def get_ledger(ledger_id: int, service: LedgerService = Depends(get_ledger_service)) -> LedgerResponse:
    try:
        ledger = service.get_ledger(ledger_id)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return ledger_response(ledger)


@router.get(
    "/{ledger_id}/public",
    response_model=PublicLedgerResponse,
    summary="Shareable view without aliases or owner",
)
def get_public_ledger(
    ledger_id: int,
    service: LedgerService = Depends(get_ledger_service),
) -> PublicLedgerResponse:
    try:
        ledger = service.get_ledger(ledger_id)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return PublicLedgerResponse(
        id=ledger.id,
        session_name=ledger.session_name,
        session_date=ledger.session_date,
        players=[
            PublicPlayerSchema(name=player.name, buy_in=player.buy_in, cash_out=player.cash_out)
            for player in ledger.players
        ],
        transactions=[TransactionSchema.model_validate(t.to_dict()) for t in ledger.transactions],
    )


@router.patch("/{ledger_id}", response_model=LedgerResponse, summary="Rename a ledger")
def rename_ledger(
    ledger_id: int,
    payload: RenameLedgerRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> LedgerResponse:
    try:
        ledger = service.rename_ledger(ledger_id, payload.owner_id, payload.session_name)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return ledger_response(ledger)


@router.delete("/{ledger_id}")
def delete_ledger(
    ledger_id: int,
    owner_id: str = Query(..., min_length=1),
    service: LedgerService = Depends(get_ledger_service),
) -> dict[str, object]:
    try:
        service.delete_ledger(ledger_id, owner_id)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return {"status": "ok", "deleted_id": ledger_id}
