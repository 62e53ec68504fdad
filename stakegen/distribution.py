"""Flattening, merging and validation of stake distributions."""

from __future__ import annotations

import math
from functools import reduce
from typing import Dict, Iterable, List

from .errors import DuplicateAddress, InvalidDistribution
from .types import (
    Address,
    Coin,
    ExplicitStakes,
    GenesisFragment,
    RemainderPolicy,
    RichPoor,
    StakeEntry,
    sum_coins,
)

EMPTY_FRAGMENT = GenesisFragment()


def _split_pool(pool: int, count: int, remainder: RemainderPolicy) -> List[int]:
    if count == 0:
        return []
    share, rest = divmod(pool, count)
    stakes = [share] * count
    stakes[0 if remainder is RemainderPolicy.FIRST else -1] += rest
    return stakes


def rich_poor_stakes(distribution: RichPoor) -> List[Coin]:
    """Return per-stakeholder stakes, richmen first, summing to ``total``.

    The poor pool is ``floor(total * (1 - richmen_share))`` and the richmen
    pool takes the rest.  When one class is empty the other receives the
    whole total.  Inside each class every stakeholder gets the floor share
    and the remainder goes to the first (or last) one.
    """
    total = distribution.total.value
    if distribution.poors == 0:
        poor_pool = 0
    elif distribution.richmen == 0:
        poor_pool = total
    else:
        poor_pool = math.floor(total * (1 - distribution.richmen_share))
    richmen_pool = total - poor_pool

    stakes = _split_pool(richmen_pool, distribution.richmen, distribution.remainder)
    stakes += _split_pool(poor_pool, distribution.poors, distribution.remainder)
    return [Coin(value) for value in stakes]


def flatten(fragment: GenesisFragment) -> Dict[Address, StakeEntry]:
    """Return the explicit per-address mapping of ``fragment``."""
    distribution = fragment.distribution
    if isinstance(distribution, ExplicitStakes):
        return dict(distribution.stakes)
    if isinstance(distribution, RichPoor):
        if len(fragment.addresses) != distribution.stakeholders:
            raise InvalidDistribution(
                f"distribution expects {distribution.stakeholders} addresses, "
                f"fragment has {len(fragment.addresses)}"
            )
        coins = rich_poor_stakes(distribution)
        return {addr: StakeEntry(coin) for addr, coin in zip(fragment.addresses, coins)}
    raise TypeError(f"unknown stake distribution: {distribution!r}")


def total_stake(fragment: GenesisFragment) -> Coin:
    """Return the checked sum of all stakes in ``fragment``."""
    return sum_coins(entry.coin for entry in flatten(fragment).values())


def validate_fragment(fragment: GenesisFragment) -> None:
    """Raise if ``fragment`` is internally inconsistent.

    Addresses must be unique, the flattened stakes must cover exactly the
    fragment's addresses, certificates may only name those addresses, and a
    richmen/poor split must add up to its declared total.
    """
    seen = set()
    for addr in fragment.addresses:
        if addr in seen:
            raise DuplicateAddress(addr)
        seen.add(addr)

    stakes = flatten(fragment)
    if set(stakes) != seen:
        missing = len(seen - set(stakes))
        extra = len(set(stakes) - seen)
        raise InvalidDistribution(
            f"stake mapping does not match addresses ({missing} without stake, "
            f"{extra} unlisted)"
        )

    strangers = [addr for addr in fragment.vss_certificates if addr not in seen]
    if strangers:
        raise InvalidDistribution(f"VSS certificate for unknown address {strangers[0]}")

    total = sum_coins(entry.coin for entry in stakes.values())
    distribution = fragment.distribution
    if isinstance(distribution, RichPoor) and total != distribution.total:
        raise InvalidDistribution(
            f"richmen/poor stakes sum to {total.value}, expected {distribution.total.value}"
        )


def merge(a: GenesisFragment, b: GenesisFragment) -> GenesisFragment:
    """Combine two fragments whose addresses are disjoint.

    ``a``'s addresses come first.  Shared addresses raise
    :class:`DuplicateAddress`; stakes are never added together.  Merging with
    :data:`EMPTY_FRAGMENT` returns the other fragment unchanged, otherwise
    both distributions are flattened to :class:`ExplicitStakes`.
    """
    if b.is_empty():
        return a
    if a.is_empty():
        return b

    known = set(a.addresses)
    for addr in b.addresses:
        if addr in known:
            raise DuplicateAddress(addr)

    stakes = flatten(a)
    for addr, entry in flatten(b).items():
        if addr in stakes:
            raise DuplicateAddress(addr)
        stakes[addr] = entry

    certificates = dict(a.vss_certificates)
    for addr, cert in b.vss_certificates.items():
        if addr in certificates:
            raise DuplicateAddress(addr)
        certificates[addr] = cert

    return GenesisFragment(
        addresses=a.addresses + b.addresses,
        distribution=ExplicitStakes(stakes),
        vss_certificates=certificates,
    )


def merge_all(fragments: Iterable[GenesisFragment]) -> GenesisFragment:
    """Fold ``fragments`` left to right with :func:`merge`."""
    return reduce(merge, fragments, EMPTY_FRAGMENT)


__all__ = [
    "EMPTY_FRAGMENT",
    "rich_poor_stakes",
    "flatten",
    "total_stake",
    "validate_fragment",
    "merge",
    "merge_all",
]
