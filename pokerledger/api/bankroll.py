from fastapi import APIRouter, Depends, Query, status

from pokerledger.api.errors import ERROR_RESPONSES, KNOWN_ERRORS, translate_error
from pokerledger.api.schemas import (
    BankrollSummaryResponse,
    PerformanceCreateRequest,
    PerformanceResponse,
    PerformanceUpdateRequest,
    TrackFromLedgerRequest,
)
from pokerledger.runtime import get_bankroll_service
from pokerledger.services.bankroll_service import BankrollService

router = APIRouter(prefix="/bankroll", tags=["bankroll"], responses=ERROR_RESPONSES)


@router.post("/entries", response_model=PerformanceResponse, status_code=status.HTTP_201_CREATED)
def add_entry(
    payload: PerformanceCreateRequest,
    service: BankrollService = Depends(get_bankroll_service),
) -> PerformanceResponse:
    try:
        entry = service.add_manual_entry(
            owner_id=payload.owner_id,
            player_name=payload.player_name,
            session_name=payload.session_name,
            session_date=payload.session_date,
            buy_in=payload.buy_in,
            cash_out=payload.cash_out,
            denomination=payload.denomination,
        )
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return PerformanceResponse.model_validate(entry)


@router.post("/entries/from-ledger", response_model=PerformanceResponse, status_code=status.HTTP_201_CREATED)
def track_from_ledger(
    payload: TrackFromLedgerRequest,
    service: BankrollService = Depends(get_bankroll_service),
) -> PerformanceResponse:
    try:
        entry = service.track_from_ledger(payload.owner_id, payload.ledger_id, payload.player_name)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return PerformanceResponse.model_validate(entry)


@router.get("/entries", response_model=list[PerformanceResponse])
def list_entries(
    owner_id: str = Query(..., min_length=1),
    service: BankrollService = Depends(get_bankroll_service),
) -> list[PerformanceResponse]:
    return [PerformanceResponse.model_validate(entry) for entry in service.list_entries(owner_id)]


@router.put("/entries/{entry_id}", response_model=PerformanceResponse)
def update_entry(
    entry_id: int,
    payload: PerformanceUpdateRequest,
    service: BankrollService = Depends(get_bankroll_service),
) -> PerformanceResponse:
    try:
        entry = service.update_entry(
            entry_id,
            owner_id=payload.owner_id,
            player_name=payload.player_name,
            session_name=payload.session_name,
            session_date=payload.session_date,
            buy_in=payload.buy_in,
            cash_out=payload.cash_out,
            denomination=payload.denomination,
        )
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return PerformanceResponse.model_validate(entry)


@router.delete("/entries/{entry_id}")
def delete_entry(
    entry_id: int,
    owner_id: str = Query(..., min_length=1),
    service: BankrollService = Depends(get_bankroll_service),
) -> dict[str, object]:
    try:
        service.delete_entry(entry_id, owner_id)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return {"status": "ok", "deleted_id": entry_id}


@router.get("/summary", response_model=BankrollSummaryResponse)
def bankroll_summary(
    owner_id: str = Query(..., min_length=1),
    service: BankrollService = Depends(get_bankroll_service),
) -> BankrollSummaryResponse:
    return BankrollSummaryResponse.model_validate(service.summary(owner_id))
