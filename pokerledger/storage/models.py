from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pokerledger.storage.database import Base

MONEY_PLACES = 8
Money = Numeric(28, MONEY_PLACES, asdecimal=True)
_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_PLACES)


def quantize_money(value: Decimal) -> Decimal:
    """Round to the stored scale so a saved amount reads back unchanged."""
    return Decimal(value).quantize(_MONEY_QUANTUM, rounding=ROUND_HALF_UP)


class Ledger(Base):
    __tablename__ = "ledgers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    session_name: Mapped[str] = mapped_column(String(256), nullable=False, default="Poker Session")
    session_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    denomination: Mapped[str] = mapped_column(String(16), nullable=False, default="cents")
    original_file_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    players: Mapped[list["LedgerPlayer"]] = relationship(
        back_populates="ledger", cascade="all, delete-orphan", order_by="LedgerPlayer.position"
    )
    transactions: Mapped[list["LedgerTransaction"]] = relationship(
        back_populates="ledger", cascade="all, delete-orphan", order_by="LedgerTransaction.position"
    )


class LedgerPlayer(Base):
    __tablename__ = "ledger_players"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    ledger_id: Mapped[int] = mapped_column(ForeignKey("ledgers.id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    aliases: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    buy_in: Mapped[Decimal] = mapped_column(Money, nullable=False, default=0)
    cash_out: Mapped[Decimal] = mapped_column(Money, nullable=False, default=0)

    ledger: Mapped[Ledger] = relationship(back_populates="players")


class LedgerTransaction(Base):
    __tablename__ = "ledger_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    ledger_id: Mapped[int] = mapped_column(ForeignKey("ledgers.id"), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    from_player: Mapped[str] = mapped_column(String(128), nullable=False)
    to_player: Mapped[str] = mapped_column(String(128), nullable=False)
    amount: Mapped[str] = mapped_column(String(32), nullable=False)

    ledger: Mapped[Ledger] = relationship(back_populates="transactions")


class PerformanceEntry(Base):
    __tablename__ = "performance_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    ledger_id: Mapped[int | None] = mapped_column(
        ForeignKey("ledgers.id", ondelete="SET NULL"), nullable=True, index=True
    )
    player_name: Mapped[str] = mapped_column(String(128), nullable=False)
    session_name: Mapped[str] = mapped_column(String(256), nullable=False)
    session_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    buy_in: Mapped[Decimal] = mapped_column(Money, nullable=False, default=0)
    cash_out: Mapped[Decimal] = mapped_column(Money, nullable=False, default=0)
    profit: Mapped[Decimal] = mapped_column(Money, nullable=False, default=0)
    denomination: Mapped[str] = mapped_column(String(16), nullable=False, default="cents")
    is_manual_entry: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
