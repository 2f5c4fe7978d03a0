from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pokerledger.domain import DEFAULT_SESSION_NAME, AliasSummary, Denomination, Reconciliation
from pokerledger.service import PendingReconciliation


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: Any | None = None


class ErrorEnvelope(BaseModel):
    detail: ErrorResponse


class TotalsSchema(BaseModel):
    buy_in: Decimal
    buy_out: Decimal
    stack: Decimal
    combined: Decimal

    @classmethod
    def from_summary(cls, summary: AliasSummary) -> "TotalsSchema":
        return cls(
            buy_in=summary.buy_in,
            buy_out=summary.buy_out,
            stack=summary.stack,
            combined=summary.combined,
        )


class AliasGroupSchema(BaseModel):
    index: int
    members: list[str]
    canonical_name: str
    totals: TotalsSchema


class ReconciliationResponse(BaseModel):
    id: int
    file_name: str | None = None
    aliases: dict[str, TotalsSchema]
    groups: list[AliasGroupSchema]

    @classmethod
    def from_pending(cls, pending: PendingReconciliation) -> "ReconciliationResponse":
        state: Reconciliation = pending.state
        return cls(
            id=pending.id,
            file_name=pending.file_name,
            aliases={name: TotalsSchema.from_summary(summary) for name, summary in state.summaries.items()},
            groups=[
                AliasGroupSchema(
                    index=index,
                    members=list(group.members),
                    canonical_name=group.canonical_name,
                    totals=TotalsSchema.from_summary(group.totals),
                )
                for index, group in enumerate(state.groups)
            ],
        )


class RenameGroupRequest(BaseModel):
    canonical_name: str = Field(..., min_length=1, examples=["Mike"])


class SplitMemberRequest(BaseModel):
    nickname: str = Field(..., min_length=1, examples=["mike_x"])


class MergeGroupsRequest(BaseModel):
    source_index: int = Field(..., ge=0, description="Group merged into the group addressed in the path")


class SettlementRequest(BaseModel):
    denomination: Denomination = Denomination.CENTS


class TransactionSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_player: str = Field(..., alias="from")
    to_player: str = Field(..., alias="to")
    amount: str = Field(..., examples=["20.00"])


class PlayerSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    aliases: list[str]
    buy_in: Decimal
    cash_out: Decimal


class NetPlayerSchema(PlayerSchema):
    net: Decimal


class SettlementResponse(BaseModel):
    players: list[NetPlayerSchema]
    transactions: list[TransactionSchema]
    imbalance: Decimal


class ConfirmLedgerRequest(BaseModel):
    owner_id: str = Field(..., min_length=1)
    session_name: str = Field(DEFAULT_SESSION_NAME, max_length=256)
    denomination: Denomination = Denomination.CENTS
    session_date: datetime | None = None


class LedgerResponse(BaseModel):
    id: int
    owner_id: str
    session_name: str
    session_date: datetime
    denomination: Denomination
    original_file_name: str | None = None
    players: list[PlayerSchema]
    transactions: list[TransactionSchema]


class PublicPlayerSchema(BaseModel):
    name: str
    buy_in: Decimal
    cash_out: Decimal


class PublicLedgerResponse(BaseModel):
    id: int
    session_name: str
    session_date: datetime
    players: list[PublicPlayerSchema]
    transactions: list[TransactionSchema]


class RenameLedgerRequest(BaseModel):
    owner_id: str = Field(..., min_length=1)
    session_name: str = Field(..., min_length=1, max_length=256)


class TrackFromLedgerRequest(BaseModel):
    owner_id: str = Field(..., min_length=1)
    ledger_id: int
    player_name: str = Field(..., min_length=1)


class PerformanceCreateRequest(BaseModel):
    owner_id: str = Field(..., min_length=1)
    player_name: str = Field(..., min_length=1)
    session_name: str = Field(..., min_length=1)
    session_date: datetime
    buy_in: Decimal = Decimal("0")
    cash_out: Decimal = Decimal("0")
    denomination: Denomination = Denomination.DOLLARS


class PerformanceUpdateRequest(BaseModel):
    owner_id: str = Field(..., min_length=1)
    player_name: str = Field(..., min_length=1)
    session_name: str | None = None
    session_date: datetime | None = None
    buy_in: Decimal = Decimal("0")
    cash_out: Decimal = Decimal("0")
    denomination: Denomination = Denomination.DOLLARS


class PerformanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: str
    ledger_id: int | None = None
    player_name: str
    session_name: str
    session_date: datetime
    buy_in: Decimal
    cash_out: Decimal
    profit: Decimal
    denomination: Denomination
    is_manual_entry: bool


class BankrollSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sessions: int
    winning_sessions: int
    win_rate: float
    total_buy_in: Decimal
    total_cash_out: Decimal
    total_profit: Decimal
    average_profit: Decimal
