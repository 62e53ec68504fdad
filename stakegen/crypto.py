"""Key generation, hashing and VSS certificates built on Ed25519 (PyNaCl)."""

from __future__ import annotations

import base64
import hashlib
from dataclasses import dataclass
from typing import Tuple

from nacl import encoding, exceptions, hash as nacl_hash, public, signing, utils

from .config import VSS_CERT_EXPIRY_EPOCH

ADDRESS_HASH_SIZE = 28
SEED_SIZE = 32

# Domain tags keep public-key and redemption-key hashes apart.
PUBKEY_TAG = b"\x00"
REDEEM_TAG = b"\x02"


@dataclass(frozen=True)
class VssCertificate:
    """VSS public key signed by the stakeholder that owns it."""

    vss_key: bytes
    expiry_epoch: int
    signature: bytes
    signing_key: bytes


def generate_keypair() -> Tuple[bytes, bytes]:
    """Generate a new Ed25519 keypair.

    Returns ``(public_key, secret_key)`` as raw bytes; the secret key is the
    32-byte seed accepted by :class:`nacl.signing.SigningKey`.
    """
    secret = signing.SigningKey.generate()
    return secret.verify_key.encode(), secret.encode()


def keypair_from_seed(seed: bytes) -> Tuple[bytes, bytes]:
    """Return the keypair deterministically derived from a 32-byte ``seed``."""
    if len(seed) != SEED_SIZE:
        raise ValueError(f"seed must be {SEED_SIZE} bytes, got {len(seed)}")
    secret = signing.SigningKey(seed)
    return secret.verify_key.encode(), secret.encode()


def public_key_of(secret_key: bytes) -> bytes:
    return signing.SigningKey(secret_key).verify_key.encode()


def random_seed() -> bytes:
    return utils.random(SEED_SIZE)


def sign_data(data: bytes, secret_key: bytes) -> bytes:
    """Return the detached Ed25519 signature of ``data``."""
    return signing.SigningKey(secret_key).sign(data).signature


def verify_signature(data: bytes, signature: bytes, public_key: bytes) -> bool:
    """Verify that ``signature`` matches ``data`` for ``public_key``."""
    try:
        signing.VerifyKey(public_key).verify(data, signature)
        return True
    except (exceptions.BadSignatureError, ValueError, TypeError):
        return False


def _blake2b_224(data: bytes) -> bytes:
    return nacl_hash.blake2b(
        data, digest_size=ADDRESS_HASH_SIZE, encoder=encoding.RawEncoder
    )


def address_hash(public_key: bytes) -> bytes:
    """Return the 28-byte stakeholder hash of an Ed25519 public key."""
    return _blake2b_224(hashlib.sha3_256(PUBKEY_TAG + public_key).digest())


def redeem_hash(redeem_key: bytes) -> bytes:
    """Return the 28-byte hash of an AVVM redemption key."""
    return _blake2b_224(hashlib.sha3_256(REDEEM_TAG + redeem_key).digest())


def generate_vss_keypair() -> Tuple[bytes, bytes]:
    """Return ``(vss_public, vss_secret)`` for the shared-seed ceremony."""
    secret = public.PrivateKey.generate()
    return secret.public_key.encode(), secret.encode()


def vss_certificate_payload(vss_key: bytes, expiry_epoch: int) -> bytes:
    return vss_key + expiry_epoch.to_bytes(8, "big")


def make_vss_certificate(
    secret_key: bytes,
    vss_key: bytes,
    expiry_epoch: int = VSS_CERT_EXPIRY_EPOCH,
) -> VssCertificate:
    """Sign ``vss_key`` with ``secret_key`` and return a certificate."""
    payload = vss_certificate_payload(vss_key, expiry_epoch)
    return VssCertificate(
        vss_key=vss_key,
        expiry_epoch=expiry_epoch,
        signature=sign_data(payload, secret_key),
        signing_key=public_key_of(secret_key),
    )


def random_vss_certificate() -> VssCertificate:
    """Return a certificate for a fresh VSS key signed by a fresh key."""
    _, secret = generate_keypair()
    vss_public, _ = generate_vss_keypair()
    return make_vss_certificate(secret, vss_public)


def verify_vss_certificate(cert: VssCertificate) -> bool:
    payload = vss_certificate_payload(cert.vss_key, cert.expiry_epoch)
    return verify_signature(payload, cert.signature, cert.signing_key)


def b64encode(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def b64decode(text: str) -> bytes:
    return base64.b64decode(text, validate=True)


__all__ = [
    "ADDRESS_HASH_SIZE",
    "SEED_SIZE",
    "VssCertificate",
    "generate_keypair",
    "keypair_from_seed",
    "public_key_of",
    "random_seed",
    "sign_data",
    "verify_signature",
    "address_hash",
    "redeem_hash",
    "generate_vss_keypair",
    "make_vss_certificate",
    "random_vss_certificate",
    "verify_vss_certificate",
    "b64encode",
    "b64decode",
]
