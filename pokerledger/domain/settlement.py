"""Domain logic for turning net positions into a minimal list of settlement transfers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from .errors import UnbalancedSettlementError
from .rows import HUNDRED, ZERO

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class NetPosition:
    name: str
    net: Decimal


@dataclass(frozen=True, slots=True)
class Transaction:
    from_player: str
    to_player: str
    amount: str

    def to_dict(self) -> dict[str, str]:
        return {"from": self.from_player, "to": self.to_player, "amount": self.amount}


def as_decimal(value: Decimal | int | float) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def to_hundredths(value: Decimal | int | float) -> int:
    """Exact integer hundredths of a display-unit amount, rounded half-up."""
    return int((as_decimal(value) * HUNDRED).to_integral_value(rounding=ROUND_HALF_UP))


def format_hundredths(amount: int) -> str:
    return str((Decimal(amount) / HUNDRED).quantize(Decimal("0.01")))


def net_imbalance(positions: Iterable[NetPosition]) -> Decimal:
    total = ZERO
    for position in positions:
        total += as_decimal(position.net)
    return total


def settle(
    positions: Sequence[NetPosition],
    *,
    strict: bool = False,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> list[Transaction]:
    imbalance = net_imbalance(positions)
    if abs(imbalance) > tolerance:
        if strict:
            raise UnbalancedSettlementError(imbalance)
        logger.warning("Settling unbalanced positions, residual %s will stay unmatched", imbalance)

    hundredths = [(position.name, to_hundredths(position.net)) for position in positions]
    creditors = sorted(
        ([name, amount] for name, amount in hundredths if amount > 0),
        key=lambda item: -item[1],
    )
    debtors = sorted(
        ([name, amount] for name, amount in hundredths if amount < 0),
        key=lambda item: item[1],
    )

    transactions: list[Transaction] = []
    creditor_idx = 0
    debtor_idx = 0
    while creditor_idx < len(creditors) and debtor_idx < len(debtors):
        creditor = creditors[creditor_idx]
        debtor = debtors[debtor_idx]

        amount = min(creditor[1], -debtor[1])
        transactions.append(
            Transaction(from_player=debtor[0], to_player=creditor[0], amount=format_hundredths(amount))
        )

        creditor[1] -= amount
        debtor[1] += amount
        if creditor[1] == 0:
            creditor_idx += 1
        if debtor[1] == 0:
            debtor_idx += 1

    return transactions

