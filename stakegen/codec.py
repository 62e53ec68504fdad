"""Binary encoder for :class:`~stakegen.types.GenesisData`.

Layout (all integers big-endian)::

    magic "SGEN" | version u8
    addresses    u32 count, then each address
    distribution u8 tag (0 explicit, 1 richmen/poor), then its body
    vss certs    u32 count, then (address, certificate) pairs

An address is ``kind u8 | length u8 | root``.  Explicit stakes and VSS
certificates are written sorted by address so that equal values always
produce identical bytes regardless of dictionary insertion order.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Dict, List, Tuple

from .config import GENESIS_FORMAT_VERSION, GENESIS_MAGIC
from .crypto import VssCertificate
from .errors import DecodeError
from .types import (
    Address,
    Coin,
    ExplicitStakes,
    GenesisData,
    RemainderPolicy,
    RichPoor,
    StakeEntry,
)

TAG_EXPLICIT = 0
TAG_RICH_POOR = 1

_POLICY_CODES = {RemainderPolicy.FIRST: 0, RemainderPolicy.LAST: 1}
_POLICIES = {code: policy for policy, code in _POLICY_CODES.items()}


def _uint(value: int, size: int) -> bytes:
    if value < 0 or value.bit_length() > size * 8:
        raise ValueError(f"value {value} does not fit in {size} bytes")
    return value.to_bytes(size, "big")


def _blob(data: bytes) -> bytes:
    """Return ``data`` prefixed with its u16 length."""
    return _uint(len(data), 2) + data


def _bigint(value: int) -> bytes:
    return _blob(value.to_bytes((value.bit_length() + 7) // 8 or 1, "big"))


def _address(addr: Address) -> bytes:
    return _uint(int(addr.kind), 1) + _uint(len(addr.root), 1) + addr.root


def _certificate(cert: VssCertificate) -> bytes:
    return (
        _blob(cert.vss_key)
        + _uint(cert.expiry_epoch, 8)
        + _blob(cert.signature)
        + _blob(cert.signing_key)
    )


def _distribution(distribution) -> bytes:
    if isinstance(distribution, ExplicitStakes):
        parts = [_uint(TAG_EXPLICIT, 1), _uint(len(distribution.stakes), 4)]
        for addr in sorted(distribution.stakes):
            entry = distribution.stakes[addr]
            parts.append(_address(addr))
            parts.append(_uint(entry.coin.value, 8))
            parts.append(_uint(len(entry.holders), 2))
            parts.extend(_blob(holder) for holder in entry.holders)
        return b"".join(parts)
    if isinstance(distribution, RichPoor):
        share = distribution.richmen_share
        return b"".join(
            [
                _uint(TAG_RICH_POOR, 1),
                _uint(distribution.total.value, 8),
                _uint(distribution.richmen, 4),
                _uint(distribution.poors, 4),
                _bigint(share.numerator),
                _bigint(share.denominator),
                _uint(_POLICY_CODES[distribution.remainder], 1),
            ]
        )
    raise TypeError(f"unknown stake distribution: {distribution!r}")


def encode_genesis(genesis: GenesisData) -> bytes:
    """Encode ``genesis`` into its persistent binary form."""
    parts: List[bytes] = [GENESIS_MAGIC, _uint(GENESIS_FORMAT_VERSION, 1)]

    parts.append(_uint(len(genesis.addresses), 4))
    parts.extend(_address(addr) for addr in genesis.addresses)

    parts.append(_distribution(genesis.distribution))

    certs = genesis.vss_certificates
    parts.append(_uint(len(certs), 4))
    for addr in sorted(certs):
        parts.append(_address(addr))
        parts.append(_certificate(certs[addr]))
    return b"".join(parts)


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    def take(self, n: int) -> bytes:
        end = self.offset + n
        if end > len(self.data):
            raise DecodeError(
                f"truncated genesis: need {n} bytes at offset {self.offset}, "
                f"have {len(self.data) - self.offset}"
            )
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def uint(self, size: int) -> int:
        return int.from_bytes(self.take(size), "big")

    def blob(self) -> bytes:
        return self.take(self.uint(2))

    def bigint(self) -> int:
        return int.from_bytes(self.blob(), "big")

    def address(self) -> Address:
        kind = self.uint(1)
        root = self.take(self.uint(1))
        return Address(kind, root)

    def certificate(self) -> VssCertificate:
        vss_key = self.blob()
        expiry = self.uint(8)
        signature = self.blob()
        signing_key = self.blob()
        return VssCertificate(vss_key, expiry, signature, signing_key)


def _read_distribution(reader: _Reader):
    tag = reader.uint(1)
    if tag == TAG_EXPLICIT:
        stakes: Dict[Address, StakeEntry] = {}
        for _ in range(reader.uint(4)):
            addr = reader.address()
            coin = Coin(reader.uint(8))
            holders: Tuple[bytes, ...] = tuple(reader.blob() for _ in range(reader.uint(2)))
            if addr in stakes:
                raise DecodeError(f"address {addr} listed twice in stakes")
            stakes[addr] = StakeEntry(coin, holders)
        return ExplicitStakes(stakes)
    if tag == TAG_RICH_POOR:
        total = Coin(reader.uint(8))
        richmen = reader.uint(4)
        poors = reader.uint(4)
        numerator = reader.bigint()
        denominator = reader.bigint()
        code = reader.uint(1)
        if code not in _POLICIES:
            raise DecodeError(f"unknown remainder policy code {code}")
        return RichPoor(
            total=total,
            richmen=richmen,
            poors=poors,
            richmen_share=Fraction(numerator, denominator),
            remainder=_POLICIES[code],
        )
    raise DecodeError(f"unknown distribution tag {tag}")


def decode_genesis(data: bytes) -> GenesisData:
    """Decode bytes produced by :func:`encode_genesis`.

    Raises :class:`DecodeError` for anything that is not exactly one valid
    encoded genesis.
    """
    reader = _Reader(bytes(data))
    try:
        if reader.take(len(GENESIS_MAGIC)) != GENESIS_MAGIC:
            raise DecodeError("not a genesis artifact (bad magic)")
        version = reader.uint(1)
        if version != GENESIS_FORMAT_VERSION:
            raise DecodeError(f"unsupported genesis format version {version}")

        addresses = tuple(reader.address() for _ in range(reader.uint(4)))
        distribution = _read_distribution(reader)

        certificates: Dict[Address, VssCertificate] = {}
        for _ in range(reader.uint(4)):
            addr = reader.address()
            if addr in certificates:
                raise DecodeError(f"address {addr} has two VSS certificates")
            certificates[addr] = reader.certificate()
    except DecodeError:
        raise
    except (ValueError, OverflowError, ZeroDivisionError) as exc:
        raise DecodeError(f"invalid genesis field: {exc}") from exc

    if reader.offset != len(reader.data):
        raise DecodeError(f"{len(reader.data) - reader.offset} trailing bytes after genesis")

    return GenesisData(
        addresses=addresses,
        distribution=distribution,
        vss_certificates=certificates,
    )


__all__ = ["encode_genesis", "decode_genesis"]
