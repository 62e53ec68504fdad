from fractions import Fraction

import pytest

from conftest import make_address, make_fragment
from stakegen import crypto
from stakegen.codec import decode_genesis, encode_genesis
from stakegen.config import GENESIS_MAGIC, MAX_COIN
from stakegen.errors import DecodeError
from stakegen.types import (
    Coin,
    ExplicitStakes,
    GenesisData,
    RemainderPolicy,
    RichPoor,
    StakeEntry,
)


def _explicit_genesis():
    fragment = make_fragment({1: 10, 2: 0, 3: MAX_COIN - 10}, certs=[1, 3], holders=[b"holder"])
    return GenesisData.from_fragment(fragment)


def _rich_poor_genesis():
    return GenesisData(
        addresses=tuple(make_address(i) for i in range(1, 6)),
        distribution=RichPoor(Coin(101), 3, 2, Fraction(3, 5), RemainderPolicy.LAST),
        vss_certificates={make_address(1): crypto.random_vss_certificate()},
    )


def test_round_trip_explicit():
    genesis = _explicit_genesis()
    assert decode_genesis(encode_genesis(genesis)) == genesis


def test_round_trip_rich_poor():
    genesis = _rich_poor_genesis()
    decoded = decode_genesis(encode_genesis(genesis))
    assert decoded == genesis
    assert isinstance(decoded.distribution, RichPoor)


def test_encoding_ignores_insertion_order():
    a, b = make_address(1), make_address(2)
    first = GenesisData(
        addresses=(a, b),
        distribution=ExplicitStakes({a: StakeEntry(Coin(1)), b: StakeEntry(Coin(2))}),
    )
    second = GenesisData(
        addresses=(a, b),
        distribution=ExplicitStakes({b: StakeEntry(Coin(2)), a: StakeEntry(Coin(1))}),
    )
    assert encode_genesis(first) == encode_genesis(second)


def test_address_order_is_preserved():
    a, b = make_address(1), make_address(2)
    genesis = GenesisData(
        addresses=(b, a),
        distribution=ExplicitStakes({a: StakeEntry(Coin(1)), b: StakeEntry(Coin(2))}),
    )
    assert decode_genesis(encode_genesis(genesis)).addresses == (b, a)


def test_truncated_input():
    blob = encode_genesis(_explicit_genesis())
    for cut in (0, 3, len(blob) // 2, len(blob) - 1):
        with pytest.raises(DecodeError):
            decode_genesis(blob[:cut])


def test_trailing_bytes():
    blob = encode_genesis(_explicit_genesis())
    with pytest.raises(DecodeError):
        decode_genesis(blob + b"\x00")


def test_bad_header():
    blob = encode_genesis(_explicit_genesis())
    with pytest.raises(DecodeError):
        decode_genesis(b"XXXX" + blob[4:])
    with pytest.raises(DecodeError):
        decode_genesis(blob[:4] + b"\x09" + blob[5:])


def _raw(distribution: bytes) -> bytes:
    return GENESIS_MAGIC + b"\x01" + (0).to_bytes(4, "big") + distribution + (0).to_bytes(4, "big")


def test_unknown_distribution_tag():
    with pytest.raises(DecodeError):
        decode_genesis(_raw(b"\x07"))


def test_coin_above_max_is_rejected():
    addr = make_address(1)
    body = (
        b"\x00"
        + (1).to_bytes(4, "big")
        + bytes([addr.kind, len(addr.root)])
        + addr.root
        + (MAX_COIN + 1).to_bytes(8, "big")
        + (0).to_bytes(2, "big")
    )
    with pytest.raises(DecodeError):
        decode_genesis(_raw(body))


def test_empty_explicit_body_decodes():
    genesis = decode_genesis(_raw(b"\x00" + (0).to_bytes(4, "big")))
    assert genesis.addresses == ()
    assert genesis.distribution == ExplicitStakes()
