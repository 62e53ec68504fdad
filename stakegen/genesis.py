"""Genesis assembly: merge stake sources, self-check the encoding, persist."""

from __future__ import annotations

import hashlib
import logging
import os
import pprint
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional

from . import crypto
from .avvm import build_avvm_fragment
from .codec import decode_genesis, encode_genesis
from .config import ADDRESS_PREVIEW, DUMP_THRESHOLD
from .distribution import merge_all, total_stake, validate_fragment
from .errors import DecodeError, IoError, NoStakeSourceConfigured, SerializationMismatch
from .fake_avvm import build_fake_avvm_fragment
from .options import KeygenOptions
from .pattern import check_unique_paths
from .testnet import build_testnet_fragment
from .types import GenesisData, GenesisFragment, RichPoor

logger = logging.getLogger(__name__)


def _report_mismatch(genesis: GenesisData, blob: Optional[bytes], reason: str) -> None:
    logger.error("Generated genesis can't be read: %s", reason)
    dump = pprint.pformat(genesis)
    # Without an encoding the dump itself is measured.
    size = len(blob) if blob is not None else len(dump)
    if size < DUMP_THRESHOLD:
        logger.error("Printing GenesisData:\n\n%s", dump)
    else:
        logger.error("Genesis is bigger than 10k, won't print it")


def check_round_trip(genesis: GenesisData) -> bytes:
    """Encode ``genesis`` and prove the bytes decode back to the same value.

    Returns the encoded bytes.  Raises :class:`SerializationMismatch` when the
    encoder fails, the decoder rejects its output or the decoded value
    differs from ``genesis``.
    """
    try:
        blob = encode_genesis(genesis)
    except (ValueError, TypeError) as exc:
        _report_mismatch(genesis, None, f"cannot encode genesis: {exc}")
        raise SerializationMismatch(f"cannot encode genesis: {exc}") from exc

    try:
        decoded = decode_genesis(blob)
    except DecodeError as exc:
        _report_mismatch(genesis, blob, str(exc))
        raise SerializationMismatch(f"encoded genesis does not decode: {exc}") from exc

    if decoded != genesis:
        _report_mismatch(genesis, blob, "decoded genesis differs from the encoded one")
        raise SerializationMismatch("decoded genesis differs from the encoded one")
    return blob


def write_artifact(blob: bytes, path: Path) -> None:
    """Atomically write ``blob`` to ``path``."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(blob)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as exc:
        raise IoError(f"cannot write genesis to {path}: {exc}") from exc


def build_genesis(
    fragments: Iterable[GenesisFragment], output: Optional[Path] = None
) -> GenesisData:
    """Merge ``fragments`` in order into a validated :class:`GenesisData`.

    The result is encoded and decoded again before anything is written; it
    is persisted to ``output`` only when the round trip reproduces it.
    """
    fragments = list(fragments)
    if all(fragment.is_empty() for fragment in fragments):
        raise NoStakeSourceConfigured(
            "at least one of AVVM stake, testnet stake or fake AVVM stake should be provided"
        )

    for fragment in fragments:
        validate_fragment(fragment)
    merged = merge_all(fragments)
    validate_fragment(merged)
    total = total_stake(merged)

    genesis = GenesisData.from_fragment(merged)
    blob = check_round_trip(genesis)
    logger.info(
        "Genesis has %d addresses, total stake %d, encoded size %d bytes",
        len(genesis.addresses),
        total.value,
        len(blob),
    )

    if output is not None:
        write_artifact(blob, output)
        logger.info("%s generated successfully", Path(output).name)
    return genesis


def load_genesis(path: Path) -> GenesisData:
    """Read and decode a genesis artifact."""
    try:
        blob = Path(path).read_bytes()
    except OSError as exc:
        raise IoError(f"cannot read genesis {path}: {exc}") from exc
    return decode_genesis(blob)


def _preview(items: List[str]) -> str:
    shown = ", ".join(items[:ADDRESS_PREVIEW])
    if len(items) > ADDRESS_PREVIEW:
        shown += f", ... ({len(items) - ADDRESS_PREVIEW} more)"
    return f"[{shown}]"


def describe_genesis(genesis: GenesisData, artifact: Optional[bytes] = None) -> List[str]:
    """Return the summary lines a node reports when it loads ``genesis``."""
    lines = [
        f"Genesis stakeholders ({len(genesis.addresses)} addresses): "
        + _preview([str(addr) for addr in genesis.addresses]),
        f"Total genesis stake: {total_stake(genesis).value}",
    ]

    distribution = genesis.distribution
    if isinstance(distribution, RichPoor):
        lines.append(
            f"Distribution: {distribution.richmen} richmen, {distribution.poors} poor, "
            f"richmen share {distribution.richmen_share}, "
            f"remainder to {distribution.remainder.value}"
        )
    else:
        lines.append(f"Distribution: explicit stakes for {len(distribution.stakes)} addresses")

    pairs = [
        f"{addr} -> {crypto.address_hash(cert.signing_key).hex()}"
        for addr, cert in sorted(genesis.vss_certificates.items())
    ]
    lines.append(f"VSS certificates ({len(pairs)}): " + _preview(pairs))

    if artifact is not None:
        lines.append(f"Genesis artifact hash: {hashlib.sha256(artifact).hexdigest()}")
    return lines


def generate_genesis(options: KeygenOptions) -> GenesisData:
    """Run every configured stake source and build the genesis artifact.

    Output paths are checked for collisions before any key is generated.
    Fragments are merged in the order testnet, AVVM, fake AVVM.
    """
    paths = options.output_paths()
    if options.avvm is not None:
        paths += [options.avvm.json_path, options.avvm.holder_keyfile]
        if options.avvm.blacklist_path is not None:
            paths.append(options.avvm.blacklist_path)
    check_unique_paths(paths)

    avvm = testnet = fake_avvm = None
    if options.avvm is not None:
        avvm = build_avvm_fragment(options.avvm)
    if options.testnet is not None:
        testnet = build_testnet_fragment(options.testnet, workers=options.workers)
        logger.info(
            "testnet genesis created successfully. First %d addresses: %s distr: %s",
            ADDRESS_PREVIEW,
            [addr.detailed() for addr in testnet.addresses[:ADDRESS_PREVIEW]],
            testnet.distribution,
        )
    if options.fake_avvm is not None:
        fake_avvm = build_fake_avvm_fragment(options.fake_avvm, workers=options.workers)

    fragments = [f for f in (testnet, avvm, fake_avvm) if f is not None]
    return build_genesis(fragments, options.genesis_file)


__all__ = [
    "check_round_trip",
    "write_artifact",
    "build_genesis",
    "load_genesis",
    "describe_genesis",
    "generate_genesis",
]
