"""Value types shared by every stake source."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from fractions import Fraction
from typing import Dict, Iterable, NamedTuple, Tuple, Union

from . import crypto
from .config import MAX_COIN
from .crypto import VssCertificate
from .errors import StakeOverflow


@dataclass(frozen=True, order=True)
class Coin:
    """Stake amount in ``[0, MAX_COIN]``; addition never wraps."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"coin value must be an int, got {self.value!r}")
        if self.value < 0:
            raise ValueError(f"coin value must be non-negative, got {self.value}")
        if self.value > MAX_COIN:
            raise StakeOverflow(f"coin value {self.value} exceeds MAX_COIN")

    def __add__(self, other: Coin) -> Coin:
        if not isinstance(other, Coin):
            return NotImplemented
        return Coin(self.value + other.value)

    def __str__(self) -> str:
        return f"{self.value} coin(s)"


ZERO_COIN = Coin(0)


def sum_coins(coins: Iterable[Coin]) -> Coin:
    """Return the checked sum of ``coins``."""
    total = ZERO_COIN
    for coin in coins:
        total = total + coin
    return total


class AddressKind(IntEnum):
    PUBKEY = 0
    REDEEM = 2


@dataclass(frozen=True, order=True)
class Address:
    """Stakeholder address: an address kind and a 28-byte root hash."""

    kind: AddressKind
    root: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", AddressKind(self.kind))
        if len(self.root) != crypto.ADDRESS_HASH_SIZE:
            raise ValueError(
                f"address root must be {crypto.ADDRESS_HASH_SIZE} bytes, got {len(self.root)}"
            )

    def to_bytes(self) -> bytes:
        return bytes([self.kind]) + self.root

    def __str__(self) -> str:
        return base64.urlsafe_b64encode(self.to_bytes()).decode("ascii")

    def detailed(self) -> str:
        return f"{self} ({self.kind.name.lower()}, {self.root.hex()})"


def make_pubkey_address(public_key: bytes) -> Address:
    return Address(AddressKind.PUBKEY, crypto.address_hash(public_key))


def make_redeem_address(redeem_key: bytes) -> Address:
    return Address(AddressKind.REDEEM, crypto.redeem_hash(redeem_key))


class StakeEntry(NamedTuple):
    """Allocation of one address.

    ``holders`` carries opaque stakeholder ids tied to the allocation, such
    as the AVVM redemption countersigner.
    """

    coin: Coin
    holders: Tuple[bytes, ...] = ()


@dataclass(frozen=True)
class ExplicitStakes:
    stakes: Dict[Address, StakeEntry] = field(default_factory=dict)


class RemainderPolicy(Enum):
    """Which stakeholder of a class absorbs the floor-division remainder."""

    FIRST = "first"
    LAST = "last"


@dataclass(frozen=True)
class RichPoor:
    """Testnet allocation for ``richmen`` richmen followed by ``poors`` poor.

    ``richmen_share`` is the exact fraction of ``total`` reserved for the
    richmen pool; see :func:`stakegen.distribution.rich_poor_stakes`.
    """

    total: Coin
    richmen: int
    poors: int
    richmen_share: Fraction
    remainder: RemainderPolicy = RemainderPolicy.FIRST

    def __post_init__(self) -> None:
        object.__setattr__(self, "richmen_share", Fraction(self.richmen_share))
        if self.richmen < 0 or self.poors < 0:
            raise ValueError("stakeholder counts must be non-negative")
        if self.richmen + self.poors == 0:
            raise ValueError("at least one stakeholder is required")
        if not 0 <= self.richmen_share <= 1:
            raise ValueError(f"richmen share must be within [0, 1], got {self.richmen_share}")

    @property
    def stakeholders(self) -> int:
        return self.richmen + self.poors


StakeDistribution = Union[ExplicitStakes, RichPoor]


@dataclass(frozen=True)
class GenesisFragment:
    """Addresses, stakes and VSS certificates produced by one stake source."""

    addresses: Tuple[Address, ...] = ()
    distribution: StakeDistribution = field(default_factory=ExplicitStakes)
    vss_certificates: Dict[Address, VssCertificate] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "addresses", tuple(self.addresses))

    def is_empty(self) -> bool:
        return (
            not self.addresses
            and isinstance(self.distribution, ExplicitStakes)
            and not self.distribution.stakes
            and not self.vss_certificates
        )


@dataclass(frozen=True)
class GenesisData(GenesisFragment):
    """Merged, validated genesis state.  Built once and never mutated."""

    @classmethod
    def from_fragment(cls, fragment: GenesisFragment) -> GenesisData:
        return cls(
            addresses=fragment.addresses,
            distribution=fragment.distribution,
            vss_certificates=dict(fragment.vss_certificates),
        )


__all__ = [
    "Coin",
    "ZERO_COIN",
    "sum_coins",
    "AddressKind",
    "Address",
    "make_pubkey_address",
    "make_redeem_address",
    "StakeEntry",
    "ExplicitStakes",
    "RemainderPolicy",
    "RichPoor",
    "StakeDistribution",
    "VssCertificate",
    "GenesisFragment",
    "GenesisData",
]
