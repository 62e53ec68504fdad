import base64
import dataclasses
from fractions import Fraction

import pytest

from stakegen import crypto
from stakegen.config import MAX_COIN
from stakegen.errors import StakeOverflow
from stakegen.types import (
    Address,
    AddressKind,
    Coin,
    GenesisFragment,
    RichPoor,
    make_pubkey_address,
    make_redeem_address,
    sum_coins,
)


def test_coin_addition_is_checked():
    assert Coin(2) + Coin(3) == Coin(5)
    with pytest.raises(StakeOverflow):
        Coin(MAX_COIN) + Coin(1)


def test_coin_range():
    assert Coin(0).value == 0
    assert Coin(MAX_COIN).value == MAX_COIN
    with pytest.raises(ValueError):
        Coin(-1)
    with pytest.raises(StakeOverflow):
        Coin(MAX_COIN + 1)
    with pytest.raises(TypeError):
        Coin(True)
    with pytest.raises(TypeError):
        Coin(1.0)


def test_sum_coins():
    assert sum_coins([]) == Coin(0)
    assert sum_coins([Coin(1), Coin(2), Coin(3)]) == Coin(6)
    with pytest.raises(StakeOverflow):
        sum_coins([Coin(MAX_COIN // 2 + 1), Coin(MAX_COIN // 2 + 1)])


def test_address_derivation():
    public_key, _ = crypto.generate_keypair()
    pub = make_pubkey_address(public_key)
    redeem = make_redeem_address(public_key)

    assert pub.kind is AddressKind.PUBKEY
    assert redeem.kind is AddressKind.REDEEM
    assert len(pub.root) == crypto.ADDRESS_HASH_SIZE
    assert pub.root != redeem.root
    assert make_pubkey_address(public_key) == pub


def test_address_text_form():
    addr = Address(AddressKind.REDEEM, b"\x07" * crypto.ADDRESS_HASH_SIZE)
    assert base64.urlsafe_b64decode(str(addr)) == addr.to_bytes()
    assert addr.to_bytes()[0] == 2
    assert "redeem" in addr.detailed()


def test_address_rejects_bad_root():
    with pytest.raises(ValueError):
        Address(AddressKind.PUBKEY, b"short")
    with pytest.raises(ValueError):
        Address(7, b"\x00" * crypto.ADDRESS_HASH_SIZE)


def test_rich_poor_validation():
    with pytest.raises(ValueError):
        RichPoor(Coin(10), 0, 0, Fraction(1, 2))
    with pytest.raises(ValueError):
        RichPoor(Coin(10), 1, 1, Fraction(3, 2))
    with pytest.raises(ValueError):
        RichPoor(Coin(10), -1, 2, Fraction(1, 2))
    assert RichPoor(Coin(10), 2, 3, Fraction(1, 2)).stakeholders == 5


def test_empty_fragment():
    assert GenesisFragment().is_empty()
    rich_poor = GenesisFragment(distribution=RichPoor(Coin(0), 1, 0, Fraction(1)))
    assert not rich_poor.is_empty()


def test_vss_certificate_signature():
    cert = crypto.random_vss_certificate()
    assert crypto.verify_vss_certificate(cert)

    forged = dataclasses.replace(cert, expiry_epoch=cert.expiry_epoch + 1)
    assert not crypto.verify_vss_certificate(forged)


def test_keypair_from_seed_is_deterministic():
    seed = crypto.random_seed()
    assert crypto.keypair_from_seed(seed) == crypto.keypair_from_seed(seed)
    with pytest.raises(ValueError):
        crypto.keypair_from_seed(b"\x00" * 31)
