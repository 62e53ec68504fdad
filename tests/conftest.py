import importlib.util

import pytest

if importlib.util.find_spec("nacl") is None:
    raise pytest.UsageError(
        "PyNaCl is required for the test suite. Install dependencies with 'pip install -e .[test]'."
    )

from stakegen import crypto, keyfile
from stakegen.avvm import encode_redeem_key
from stakegen.crypto import VssCertificate
from stakegen.types import (
    Address,
    AddressKind,
    Coin,
    ExplicitStakes,
    GenesisFragment,
    StakeEntry,
)


def pytest_collection_modifyitems(config, items):
    """Add a timeout to tests that generate keyfiles on a worker pool."""
    keywords = {"testnet", "fake_avvm", "keyfile", "cli", "generate"}
    for item in items:
        path = str(item.fspath)
        name = item.name
        if any(k in path for k in keywords) or any(k in name for k in keywords):
            item.add_marker(pytest.mark.timeout(30))


def make_address(n: int, kind: AddressKind = AddressKind.PUBKEY) -> Address:
    """Return a fixed address whose root is ``n`` repeated."""
    return Address(kind, bytes([n]) * crypto.ADDRESS_HASH_SIZE)


FIXED_CERT = VssCertificate(
    vss_key=b"v" * 32,
    expiry_epoch=5,
    signature=b"s" * 64,
    signing_key=b"k" * 32,
)


def make_fragment(stakes: dict, certs=(), holders=()) -> GenesisFragment:
    """Build an explicit fragment from ``{n: coin}`` using :func:`make_address`."""
    addresses = tuple(make_address(n) for n in stakes)
    return GenesisFragment(
        addresses=addresses,
        distribution=ExplicitStakes(
            {make_address(n): StakeEntry(Coin(c), tuple(holders)) for n, c in stakes.items()}
        ),
        vss_certificates={make_address(n): FIXED_CERT for n in certs},
    )


@pytest.fixture
def holder_keyfile(tmp_path):
    """Primary keyfile of an AVVM redemption holder."""
    path = tmp_path / "holder" / "holder.sk"
    generated = keyfile.generate_keyfile(True, path)
    return path, generated


@pytest.fixture
def voucher_key():
    """Return a factory of fresh base64url AVVM redemption keys."""
    return lambda: encode_redeem_key(crypto.random_seed())
