from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile, status

from pokerledger.api.errors import ERROR_RESPONSES, KNOWN_ERRORS, api_error, translate_error
from pokerledger.api.ledgers import ledger_response
from pokerledger.api.schemas import (
    ConfirmLedgerRequest,
    LedgerResponse,
    MergeGroupsRequest,
    NetPlayerSchema,
    ReconciliationResponse,
    RenameGroupRequest,
    SettlementRequest,
    SettlementResponse,
    SplitMemberRequest,
    TransactionSchema,
)
from pokerledger.runtime import get_ledger_service
from pokerledger.service import LedgerService

router = APIRouter(prefix="/reconciliations", tags=["reconciliations"], responses=ERROR_RESPONSES)

SUPPORTED_MIME_TYPES = {
    "text/csv",
    "application/csv",
    "application/vnd.ms-excel",
    "text/plain",
    "application/octet-stream",
}


@router.post(
    "",
    response_model=ReconciliationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a session CSV and group similar nicknames",
)
async def upload_ledger_csv(
    file: UploadFile = File(...),
    service: LedgerService = Depends(get_ledger_service),
) -> ReconciliationResponse:
    if file.content_type and file.content_type not in SUPPORTED_MIME_TYPES:
        raise api_error(
            code="unsupported_media_type",
            message=f"Unsupported MIME type: {file.content_type}",
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        )

    data = await file.read()
    try:
        pending = service.start_reconciliation(data, file_name=file.filename)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return ReconciliationResponse.from_pending(pending)


@router.get("/{reconciliation_id}", response_model=ReconciliationResponse)
def get_reconciliation(
    reconciliation_id: int,
    service: LedgerService = Depends(get_ledger_service),
) -> ReconciliationResponse:
    try:
        pending = service.get_reconciliation(reconciliation_id)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return ReconciliationResponse.from_pending(pending)


@router.patch(
    "/{reconciliation_id}/groups/{index}",
    response_model=ReconciliationResponse,
    summary="Rename the canonical player of a group",
)
def rename_group(
    reconciliation_id: int,
    index: int,
    payload: RenameGroupRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> ReconciliationResponse:
    try:
        pending = service.rename_group(reconciliation_id, index, payload.canonical_name)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return ReconciliationResponse.from_pending(pending)


@router.post(
    "/{reconciliation_id}/groups/{index}/split",
    response_model=ReconciliationResponse,
    summary="Move one nickname out of a group into its own group",
)
def split_group(
    reconciliation_id: int,
    index: int,
    payload: SplitMemberRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> ReconciliationResponse:
    try:
        pending = service.split_group(reconciliation_id, index, payload.nickname)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return ReconciliationResponse.from_pending(pending)


@router.post(
    "/{reconciliation_id}/groups/{index}/merge",
    response_model=ReconciliationResponse,
    summary="Merge another group into this one",
)
def merge_group(
    reconciliation_id: int,
    index: int,
    payload: MergeGroupsRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> ReconciliationResponse:
    try:
        pending = service.merge_group(reconciliation_id, index, payload.source_index)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return ReconciliationResponse.from_pending(pending)


@router.post(
    "/{reconciliation_id}/settlement",
    response_model=SettlementResponse,
    summary="Preview settlement payments for the current grouping",
)
def preview_settlement(
    reconciliation_id: int,
    payload: SettlementRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> SettlementResponse:
    try:
        preview = service.preview_settlement(reconciliation_id, payload.denomination)
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc

    nets = {position.name: position.net for position in preview.positions}
    return SettlementResponse(
        players=[
            NetPlayerSchema(
                name=player.name,
                aliases=list(player.aliases),
                buy_in=player.buy_in,
                cash_out=player.cash_out,
                net=nets[player.name],
            )
            for player in preview.players
        ],
        transactions=[TransactionSchema.model_validate(t.to_dict()) for t in preview.transactions],
        imbalance=preview.imbalance,
    )


@router.post(
    "/{reconciliation_id}/confirm",
    response_model=LedgerResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Settle and save the ledger",
)
def confirm_ledger(
    reconciliation_id: int,
    payload: ConfirmLedgerRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> LedgerResponse:
    try:
        ledger = service.confirm(
            reconciliation_id,
            owner_id=payload.owner_id,
            session_name=payload.session_name,
            denomination=payload.denomination,
            session_date=payload.session_date,
        )
    except KNOWN_ERRORS as exc:
        raise translate_error(exc) from exc
    return ledger_response(ledger)
