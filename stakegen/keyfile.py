"""Keyfile generation and maintenance.

A keyfile is a small JSON document holding a stakeholder's secret key
material, base64 encoded::

    {"primary": "<seed>" | null, "keys": ["<seed>", ...], "vss": "<secret>"}

This is the only module that writes private keys to disk.
"""

from __future__ import annotations

import binascii
import glob
import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from . import crypto
from .config import DEFAULT_WORKERS
from .crypto import VssCertificate
from .errors import IoError, ParseError

logger = logging.getLogger(__name__)

KEYFILE_MODE = 0o600


@dataclass
class UserSecret:
    """Secret key material stored in one keyfile."""

    primary: Optional[bytes] = None
    keys: List[bytes] = field(default_factory=list)
    vss: Optional[bytes] = None

    def signing_key(self) -> Optional[bytes]:
        if self.primary is not None:
            return self.primary
        return self.keys[0] if self.keys else None


class GeneratedKey(NamedTuple):
    public_key: bytes
    address_hash: bytes
    vss_certificate: VssCertificate


def _write_private(path: Path, text: str) -> None:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KEYFILE_MODE)
        # Files that already existed keep their old mode until fchmod.
        try:
            os.fchmod(fd, KEYFILE_MODE)
        except OSError:
            os.close(fd)
            raise
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
    except OSError as exc:
        raise IoError(f"cannot write {path}: {exc}") from exc


def _read_text(path: Path) -> str:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except OSError as exc:
        raise IoError(f"cannot read {path}: {exc}") from exc


def write_keyfile(path: Path, secret: UserSecret) -> None:
    """Persist ``secret`` to ``path``, creating parent directories."""
    data = {
        "primary": crypto.b64encode(secret.primary) if secret.primary is not None else None,
        "keys": [crypto.b64encode(key) for key in secret.keys],
        "vss": crypto.b64encode(secret.vss) if secret.vss is not None else None,
    }
    _write_private(path, json.dumps(data, indent=2) + "\n")


def read_keyfile(path: Path) -> UserSecret:
    """Load a keyfile written by :func:`write_keyfile`."""
    content = _read_text(path)
    try:
        data = json.loads(content)
        if not isinstance(data, dict):
            raise ValueError("keyfile must contain a JSON object")
        primary = data.get("primary")
        vss = data.get("vss")
        keys = data.get("keys", [])
        if not isinstance(keys, list):
            raise ValueError("'keys' must be a list")
        return UserSecret(
            primary=crypto.b64decode(primary) if primary is not None else None,
            keys=[crypto.b64decode(key) for key in keys],
            vss=crypto.b64decode(vss) if vss is not None else None,
        )
    except (ValueError, TypeError, binascii.Error) as exc:
        raise ParseError(f"malformed keyfile {path}: {exc}") from exc


def generate_keyfile(is_primary: bool, path: Path) -> GeneratedKey:
    """Generate a keypair and VSS key and write them to ``path``.

    With ``is_primary`` the signing key is stored as the stakeholder's
    primary key, otherwise it is added to the secondary key list.  Returns
    the public key, its address hash and a VSS certificate signed by the new
    key.
    """
    public_key, secret_key = crypto.generate_keypair()
    vss_public, vss_secret = crypto.generate_vss_keypair()

    secret = UserSecret(vss=vss_secret)
    if is_primary:
        secret.primary = secret_key
    else:
        secret.keys.append(secret_key)
    write_keyfile(path, secret)

    return GeneratedKey(
        public_key=public_key,
        address_hash=crypto.address_hash(public_key),
        vss_certificate=crypto.make_vss_certificate(secret_key, vss_public),
    )


def generate_fake_avvm(path: Path) -> bytes:
    """Write a fresh AVVM redemption seed to ``path`` and return its public key."""
    seed = crypto.random_seed()
    _write_private(path, crypto.b64encode(seed) + "\n")
    public_key, _ = crypto.keypair_from_seed(seed)
    return public_key


def read_fake_avvm(path: Path) -> bytes:
    """Return the redemption public key stored in a fake AVVM seed file."""
    text = _read_text(path).strip()
    try:
        seed = crypto.b64decode(text)
        public_key, _ = crypto.keypair_from_seed(seed)
    except (ValueError, binascii.Error) as exc:
        raise ParseError(f"malformed AVVM seed file {path}: {exc}") from exc
    return public_key


def rearrange_keyfile(path: Path) -> bool:
    """Copy the primary key of ``path`` into its secondary key list.

    Returns ``True`` when the file was rewritten.
    """
    secret = read_keyfile(path)
    if secret.primary is None or secret.primary in secret.keys:
        return False
    secret.keys.append(secret.primary)
    write_keyfile(path, secret)
    return True


def rearrange_keyfiles(mask: str) -> List[Path]:
    """Apply :func:`rearrange_keyfile` to every file matching ``mask``."""
    changed = []
    for name in sorted(glob.glob(mask)):
        if rearrange_keyfile(Path(name)):
            logger.info("Rearranged keyfile %s", name)
            changed.append(Path(name))
    return changed


def read_holder_id(path: Path) -> bytes:
    """Return the stakeholder id of the holder keyfile at ``path``."""
    secret = read_keyfile(path)
    key = secret.signing_key()
    if key is None:
        raise ParseError(f"keyfile {path} holds no signing key")
    return crypto.address_hash(crypto.public_key_of(key))


def run_pool(
    func: Callable[..., Any],
    jobs: Iterable[Tuple[Any, ...]],
    workers: int | None = None,
) -> List[Any]:
    """Run ``func(*job)`` for every job on a bounded thread pool.

    Results come back in job order once every job has finished.  The first
    failure cancels the jobs that have not started and is re-raised.
    """
    jobs = list(jobs)
    if not jobs:
        return []
    worker_count = max(1, min(workers or DEFAULT_WORKERS, len(jobs)))
    with ThreadPoolExecutor(max_workers=worker_count) as executor:
        futures = [executor.submit(func, *job) for job in jobs]
        try:
            return [fut.result() for fut in futures]
        except BaseException:
            for fut in futures:
                fut.cancel()
            raise


def generate_keyfiles(
    jobs: Sequence[Tuple[bool, Path]], workers: int | None = None
) -> List[GeneratedKey]:
    """Generate one keyfile per ``(is_primary, path)`` job, in job order."""
    return run_pool(generate_keyfile, jobs, workers)


__all__ = [
    "UserSecret",
    "GeneratedKey",
    "write_keyfile",
    "read_keyfile",
    "generate_keyfile",
    "generate_fake_avvm",
    "read_fake_avvm",
    "rearrange_keyfile",
    "rearrange_keyfiles",
    "read_holder_id",
    "run_pool",
    "generate_keyfiles",
]
