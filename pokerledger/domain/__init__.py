from .aliases import (
    AliasGroup,
    AliasSummary,
    Reconciliation,
    aggregate,
    base_name,
    cluster_nicknames,
    dice_coefficient,
    group_nicknames,
    is_similar,
    merge_groups,
    reconcile,
    rename_canonical,
    split_member,
)
from .errors import InvalidGroupOperationError, LedgerValidationError, UnbalancedSettlementError
from .ledger import (
    DEFAULT_SESSION_NAME,
    ConfirmedPlayer,
    LedgerRecord,
    build_ledger,
    confirm_players,
    net_positions,
)
from .rows import Denomination, RawRow, parse_amount
from .settlement import NetPosition, Transaction, net_imbalance, settle

__all__ = [
    "DEFAULT_SESSION_NAME",
    "AliasGroup",
    "AliasSummary",
    "ConfirmedPlayer",
    "Denomination",
    "InvalidGroupOperationError",
    "LedgerRecord",
    "LedgerValidationError",
    "NetPosition",
    "RawRow",
    "Reconciliation",
    "Transaction",
    "UnbalancedSettlementError",
    "aggregate",
    "base_name",
    "build_ledger",
    "cluster_nicknames",
    "confirm_players",
    "dice_coefficient",
    "group_nicknames",
    "is_similar",
    "merge_groups",
    "net_imbalance",
    "net_positions",
    "parse_amount",
    "reconcile",
    "rename_canonical",
    "settle",
    "split_member",
]
