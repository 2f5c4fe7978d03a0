from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from pokerledger.api.schemas import ErrorEnvelope
from pokerledger.domain import InvalidGroupOperationError, LedgerValidationError, UnbalancedSettlementError
from pokerledger.service import LedgerAccessError, LedgerNotFoundError
from pokerledger.services.csv_ingest import CsvFormatError


def api_error(
    *,
    code: str,
    message: str,
    details: Any | None = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "code": code,
            "message": message,
            "details": details,
        },
    )


KNOWN_ERRORS = (LedgerNotFoundError, LedgerAccessError, LedgerValidationError, CsvFormatError)

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorEnvelope, "description": "Invalid upload or ledger rule violation"},
    status.HTTP_403_FORBIDDEN: {"model": ErrorEnvelope, "description": "Owned by another user"},
    status.HTTP_404_NOT_FOUND: {"model": ErrorEnvelope, "description": "Unknown reconciliation, ledger or entry"},
    status.HTTP_409_CONFLICT: {"model": ErrorEnvelope, "description": "Net positions do not balance"},
    status.HTTP_415_UNSUPPORTED_MEDIA_TYPE: {"model": ErrorEnvelope, "description": "Upload is not a CSV file"},
}


def translate_error(exc: Exception) -> HTTPException:
    """Map service and domain failures onto the structured error body."""
    if isinstance(exc, LedgerNotFoundError):
        return api_error(code="not_found", message=str(exc), status_code=status.HTTP_404_NOT_FOUND)
    if isinstance(exc, LedgerAccessError):
        return api_error(code="forbidden", message=str(exc), status_code=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, UnbalancedSettlementError):
        return api_error(
            code="unbalanced_settlement",
            message=str(exc),
            details={"imbalance": str(exc.imbalance)},
            status_code=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, InvalidGroupOperationError):
        return api_error(code="invalid_group_operation", message=str(exc))
    if isinstance(exc, CsvFormatError):
        return api_error(code="invalid_csv", message=str(exc))
    return api_error(code="validation_error", message=str(exc))
