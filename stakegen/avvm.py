"""AVVM stake source: legacy voucher dump converted to redeem addresses."""

from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import crypto
from .config import MAX_COIN
from .errors import IoError, ParseError
from .keyfile import read_holder_id
from .options import AvvmOptions
from .types import (
    Address,
    Coin,
    ExplicitStakes,
    GenesisFragment,
    StakeEntry,
    make_redeem_address,
    sum_coins,
)

logger = logging.getLogger(__name__)

REDEEM_KEY_SIZE = 32


def decode_redeem_key(text: str) -> bytes:
    """Decode an AVVM redemption key in base64url or standard base64, padding optional."""
    padded = text + "=" * (-len(text) % 4)
    try:
        key = base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError(f"redemption key is not base64url: {exc}") from exc
    if len(key) != REDEEM_KEY_SIZE:
        raise ValueError(f"redemption key must be {REDEEM_KEY_SIZE} bytes, got {len(key)}")
    return key


def encode_redeem_key(key: bytes) -> str:
    return base64.urlsafe_b64encode(key).decode("ascii")


class AvvmEntry(BaseModel):
    """One voucher: the holder's redemption key and its coin amount."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    address: str
    coin: int = Field(ge=0, le=MAX_COIN)

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        decode_redeem_key(value)
        return value

    @property
    def redeem_key(self) -> bytes:
        return decode_redeem_key(self.address)


class AvvmData(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    utxo: List[AvvmEntry]


def parse_avvm(content: str | bytes) -> AvvmData:
    """Validate an AVVM JSON document; any deviation raises :class:`ParseError`."""
    try:
        return AvvmData.model_validate_json(content)
    except ValidationError as exc:
        raise ParseError(f"malformed AVVM document: {exc}") from exc


def load_avvm(path: Path) -> AvvmData:
    try:
        content = Path(path).read_bytes()
    except OSError as exc:
        raise IoError(f"cannot read AVVM dump {path}: {exc}") from exc
    return parse_avvm(content)


def parse_blacklist(lines: Iterable[str]) -> FrozenSet[bytes]:
    """Return the redemption keys listed one per line.

    Blank lines and ``#`` comments are skipped.  Keys are decoded so that
    any spelling of a key matches the same voucher.
    """
    keys = set()
    for number, line in enumerate(lines, 1):
        entry = line.split("#", 1)[0].strip()
        if not entry:
            continue
        try:
            keys.add(decode_redeem_key(entry))
        except ValueError as exc:
            raise ParseError(f"malformed blacklist line {number}: {exc}") from exc
    return frozenset(keys)


def load_blacklist(path: Path) -> FrozenSet[bytes]:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return parse_blacklist(fh)
    except OSError as exc:
        raise IoError(f"cannot read blacklist {path}: {exc}") from exc


def apply_blacklist(avvm: AvvmData, blacklist: FrozenSet[bytes]) -> AvvmData:
    """Return ``avvm`` without the entries whose redemption key is blacklisted."""
    kept = [entry for entry in avvm.utxo if entry.redeem_key not in blacklist]
    removed = len(avvm.utxo) - len(kept)
    if removed:
        logger.info("Blacklist removed %d AVVM entries", removed)
    return AvvmData(utxo=kept)


def avvm_total(avvm: AvvmData) -> Coin:
    return sum_coins(Coin(entry.coin) for entry in avvm.utxo)


def avvm_fragment(avvm: AvvmData, holder: bytes, randcerts: bool = False) -> GenesisFragment:
    """Build the redeem-address fragment for already filtered ``avvm`` data.

    Vouchers repeating the same key are folded into one address with the
    summed coin.  ``holder`` is recorded against every allocation.  With
    ``randcerts`` every redeem address gets a freshly generated VSS
    certificate.
    """
    stakes: Dict[Address, StakeEntry] = {}
    for entry in avvm.utxo:
        addr = make_redeem_address(entry.redeem_key)
        coin = Coin(entry.coin)
        if addr in stakes:
            logger.warning("AVVM key %s appears more than once, summing its coins", entry.address)
            coin = stakes[addr].coin + coin
        stakes[addr] = StakeEntry(coin, (holder,))

    addresses = tuple(stakes)
    certificates = {}
    if randcerts:
        certificates = {addr: crypto.random_vss_certificate() for addr in addresses}

    return GenesisFragment(
        addresses=addresses,
        distribution=ExplicitStakes(stakes),
        vss_certificates=certificates,
    )


def build_avvm_fragment(options: AvvmOptions) -> GenesisFragment:
    """Load, filter and convert the AVVM dump described by ``options``."""
    avvm = load_avvm(options.json_path)
    holder = read_holder_id(options.holder_keyfile)

    blacklist: FrozenSet[bytes] = frozenset()
    if options.blacklist_path is not None:
        blacklist = load_blacklist(options.blacklist_path)
    filtered = apply_blacklist(avvm, blacklist)

    logger.info("Total avvm stake after applying blacklist: %d", avvm_total(filtered).value)
    return avvm_fragment(filtered, holder, options.randcerts)


__all__ = [
    "AvvmEntry",
    "AvvmData",
    "decode_redeem_key",
    "encode_redeem_key",
    "parse_avvm",
    "load_avvm",
    "parse_blacklist",
    "load_blacklist",
    "apply_blacklist",
    "avvm_total",
    "avvm_fragment",
    "build_avvm_fragment",
]
