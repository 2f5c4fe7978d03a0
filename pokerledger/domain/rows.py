from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from .errors import LedgerValidationError

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class Denomination(str, Enum):
    CENTS = "cents"
    DOLLARS = "dollars"

    def to_display(self, amount: Decimal) -> Decimal:
        """Scale a raw session amount to major currency units."""
        if self is Denomination.CENTS:
            return amount / HUNDRED
        return amount


def parse_amount(value: Any) -> Decimal:
    """Parse a CSV money cell; anything missing or unparseable is zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)

    text = str(value).replace("$", "").replace(",", "").strip()
    if not text:
        return ZERO
    try:
        amount = Decimal(text)
    except InvalidOperation:
        return ZERO
    return amount if amount.is_finite() else ZERO


def normalize_nickname(name: str) -> str:
    value = name.strip()
    if not value:
        raise LedgerValidationError("player nickname must be non-empty")
    return value


@dataclass(frozen=True, slots=True)
class RawRow:
    player_nickname: str
    buy_in: Decimal = ZERO
    buy_out: Decimal = ZERO
    stack: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "player_nickname", normalize_nickname(self.player_nickname))

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "RawRow":
        return cls(
            player_nickname=str(record.get("player_nickname") or ""),
            buy_in=parse_amount(record.get("buy_in")),
            buy_out=parse_amount(record.get("buy_out")),
            stack=parse_amount(record.get("stack")),
        )
