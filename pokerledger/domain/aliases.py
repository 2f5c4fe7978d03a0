"""Alias resolution: aggregate raw rows per nickname and cluster near-duplicate nicknames."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal
from types import MappingProxyType

from .errors import InvalidGroupOperationError
from .rows import ZERO, RawRow

DEFAULT_SIMILARITY_THRESHOLD = 0.70
SHORT_NAME_LENGTH = 3

_BASE_NAME_RE = re.compile(r"[a-z]+", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class AliasSummary:
    buy_in: Decimal = ZERO
    buy_out: Decimal = ZERO
    stack: Decimal = ZERO

    @property
    def combined(self) -> Decimal:
        return self.buy_out + self.stack

    def __add__(self, other: "AliasSummary") -> "AliasSummary":
        return AliasSummary(
            buy_in=self.buy_in + other.buy_in,
            buy_out=self.buy_out + other.buy_out,
            stack=self.stack + other.stack,
        )


EMPTY_SUMMARY = AliasSummary()


@dataclass(frozen=True, slots=True)
class AliasGroup:
    members: tuple[str, ...]
    canonical_name: str
    totals: AliasSummary = EMPTY_SUMMARY


@dataclass(frozen=True)
class Reconciliation:
    """Working state of one upload: per-nickname summaries and their grouping."""

    summaries: Mapping[str, AliasSummary] = field(default_factory=dict)
    groups: tuple[AliasGroup, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "summaries", MappingProxyType(dict(self.summaries)))
        object.__setattr__(self, "groups", tuple(self.groups))

    def nicknames(self) -> list[str]:
        return [member for group in self.groups for member in group.members]


def aggregate(rows: Iterable[RawRow]) -> dict[str, AliasSummary]:
    summary: dict[str, AliasSummary] = {}
    for row in rows:
        name = row.player_nickname.strip()
        current = summary.get(name, EMPTY_SUMMARY)
        summary[name] = current + AliasSummary(buy_in=row.buy_in, buy_out=row.buy_out, stack=row.stack)
    return summary


def base_name(nickname: str) -> str:
    matched = _BASE_NAME_RE.search(nickname)
    return matched.group(0).lower() if matched else ""


def dice_coefficient(first: str, second: str) -> float:
    """Bigram Dice similarity, compatible with string-similarity's compareTwoStrings."""
    first = _WHITESPACE_RE.sub("", first)
    second = _WHITESPACE_RE.sub("", second)

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = Counter(first[i : i + 2] for i in range(len(first) - 1))
    intersection = 0
    for i in range(len(second) - 1):
        bigram = second[i : i + 2]
        if first_bigrams[bigram] > 0:
            first_bigrams[bigram] -= 1
            intersection += 1

    return (2.0 * intersection) / (len(first) + len(second) - 2)


def is_similar(first: str, second: str, threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> bool:
    first_base = base_name(first)
    if first_base and first_base == base_name(second):
        return True
    # short names only match exactly, fuzzy scores on them are noise
    if len(first) <= SHORT_NAME_LENGTH and len(second) <= SHORT_NAME_LENGTH:
        return first.lower() == second.lower()
    return dice_coefficient(first.lower(), second.lower()) >= threshold


def cluster_nicknames(
    nicknames: Iterable[str],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> list[list[str]]:
    """Seed-based clustering: each candidate is compared to the cluster seed only, never transitively."""
    ordered = sorted(set(nicknames), key=lambda name: (name.lower(), name))
    assigned: set[str] = set()
    clusters: list[list[str]] = []

    for seed in ordered:
        if seed in assigned:
            continue
        cluster = [seed]
        assigned.add(seed)
        for candidate in ordered:
            if candidate not in assigned and is_similar(seed, candidate, threshold):
                cluster.append(candidate)
                assigned.add(candidate)
        clusters.append(cluster)

    return clusters


def sum_summaries(members: Iterable[str], summaries: Mapping[str, AliasSummary]) -> AliasSummary:
    total = EMPTY_SUMMARY
    for member in members:
        total = total + summaries.get(member, EMPTY_SUMMARY)
    return total


def group_nicknames(
    nicknames: Iterable[str],
    summaries: Mapping[str, AliasSummary] | None = None,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> list[AliasGroup]:
    summaries = summaries or {}
    return [
        AliasGroup(
            members=tuple(cluster),
            canonical_name=cluster[0],
            totals=sum_summaries(cluster, summaries),
        )
        for cluster in cluster_nicknames(nicknames, threshold)
    ]


def reconcile(rows: Iterable[RawRow], threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> Reconciliation:
    summaries = aggregate(rows)
    return Reconciliation(summaries=summaries, groups=tuple(group_nicknames(summaries, summaries, threshold)))


def rename_canonical(state: Reconciliation, index: int, new_name: str) -> Reconciliation:
    group = _group_at(state.groups, index)
    name = new_name.strip()
    if not name:
        raise InvalidGroupOperationError("canonical name must be non-empty")
    return _replace_group(state, index, replace(group, canonical_name=name))


def split_member(state: Reconciliation, index: int, nickname: str) -> Reconciliation:
    group = _group_at(state.groups, index)
    if nickname not in group.members:
        raise InvalidGroupOperationError(f"{nickname!r} is not a member of group {index}")
    if len(group.members) == 1:
        raise InvalidGroupOperationError(f"group {index} has a single member and cannot be split")

    remaining = tuple(member for member in group.members if member != nickname)
    canonical_name = group.canonical_name
    if len(remaining) == 1 or canonical_name == nickname:
        canonical_name = remaining[0]

    source = AliasGroup(
        members=remaining,
        canonical_name=canonical_name,
        totals=sum_summaries(remaining, state.summaries),
    )
    detached = AliasGroup(
        members=(nickname,),
        canonical_name=nickname,
        totals=sum_summaries((nickname,), state.summaries),
    )
    groups = list(state.groups)
    groups[index] = source
    groups.append(detached)
    return replace(state, groups=tuple(groups))


def merge_groups(state: Reconciliation, index_a: int, index_b: int) -> Reconciliation:
    """Merge group ``index_b`` into ``index_a``; the destination keeps its canonical name."""
    destination = _group_at(state.groups, index_a)
    source = _group_at(state.groups, index_b)
    if index_a == index_b:
        return state

    merged = AliasGroup(
        members=destination.members + source.members,
        canonical_name=destination.canonical_name,
        totals=destination.totals + source.totals,
    )
    groups = [
        merged if position == index_a else group
        for position, group in enumerate(state.groups)
        if position != index_b
    ]
    return replace(state, groups=tuple(groups))


def _group_at(groups: Sequence[AliasGroup], index: int) -> AliasGroup:
    if not 0 <= index < len(groups):
        raise InvalidGroupOperationError(f"group index out of range: {index}")
    return groups[index]


def _replace_group(state: Reconciliation, index: int, group: AliasGroup) -> Reconciliation:
    groups = list(state.groups)
    groups[index] = group
    return replace(state, groups=tuple(groups))
