"""Command line interface: ``stakegen generate | rearrange | inspect``."""

from __future__ import annotations

import argparse
import logging
from fractions import Fraction
from pathlib import Path

from .config import DEFAULT_GENESIS_FILE
from .errors import GenesisError, IoError
from .genesis import describe_genesis, generate_genesis, load_genesis
from .keyfile import rearrange_keyfiles
from .options import AvvmOptions, FakeAvvmOptions, KeygenOptions, TestnetOptions
from .types import RemainderPolicy

_TESTNET_FLAGS = ("richmen", "poors", "keys_pattern", "total_stake")
_FAKE_AVVM_FLAGS = ("fake_avvm_count", "fake_avvm_seed_pattern", "fake_avvm_stake")


def _given(args: argparse.Namespace, names) -> list[str]:
    return [name for name in names if getattr(args, name) is not None]


def _keygen_options(args: argparse.Namespace, parser: argparse.ArgumentParser) -> KeygenOptions:
    testnet = None
    given = _given(args, _TESTNET_FLAGS)
    if given:
        if len(given) != len(_TESTNET_FLAGS):
            missing = sorted(set(_TESTNET_FLAGS) - set(given))
            parser.error("testnet stake needs " + ", ".join(f"--{m.replace('_', '-')}" for m in missing))
        testnet = TestnetOptions(
            richmen=args.richmen,
            poors=args.poors,
            pattern=args.keys_pattern,
            total_stake=args.total_stake,
            richmen_share=args.richmen_share,
            remainder=RemainderPolicy(args.remainder),
        )

    avvm = None
    if args.avvm_json is not None:
        if args.holder_keyfile is None:
            parser.error("--avvm-json needs --holder-keyfile")
        avvm = AvvmOptions(
            json_path=args.avvm_json,
            holder_keyfile=args.holder_keyfile,
            blacklist_path=args.blacklist,
            randcerts=args.randcerts,
        )

    fake_avvm = None
    given = _given(args, _FAKE_AVVM_FLAGS)
    if given:
        if len(given) != len(_FAKE_AVVM_FLAGS):
            parser.error("fake AVVM stake needs --fake-avvm-count, --fake-avvm-seed-pattern and --fake-avvm-stake")
        fake_avvm = FakeAvvmOptions(
            count=args.fake_avvm_count,
            seed_pattern=args.fake_avvm_seed_pattern,
            one_stake=args.fake_avvm_stake,
        )

    return KeygenOptions(
        genesis_file=args.genesis_file,
        testnet=testnet,
        avvm=avvm,
        fake_avvm=fake_avvm,
        workers=args.workers,
    )


def _read_artifact(path: Path) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise IoError(f"cannot read genesis {path}: {exc}") from exc


def cmd_generate(args: argparse.Namespace) -> None:
    """Generate keyfiles and the genesis artifact."""
    try:
        options = _keygen_options(args, args.parser)
    except ValueError as exc:
        args.parser.error(str(exc))
    genesis = generate_genesis(options)
    for line in describe_genesis(genesis, _read_artifact(options.genesis_file)):
        print(line)


def cmd_rearrange(args: argparse.Namespace) -> None:
    """Move primary keys into the secondary key list of matching keyfiles."""
    changed = rearrange_keyfiles(args.mask)
    print(f"Rearranged {len(changed)} keyfile(s)")


def cmd_inspect(args: argparse.Namespace) -> None:
    """Print the summary of an existing genesis artifact."""
    path = Path(args.genesis_file)
    genesis = load_genesis(path)
    for line in describe_genesis(genesis, _read_artifact(path)):
        print(line)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stakegen", description="Genesis ledger generator")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_gen = sub.add_parser("generate", help="Generate keyfiles and genesis.bin")
    p_gen.add_argument("--genesis-file", type=Path, default=Path(DEFAULT_GENESIS_FILE), help="Output artifact")
    p_gen.add_argument("--workers", type=int, default=None, help="Keyfile generation threads")

    g_test = p_gen.add_argument_group("testnet stake")
    g_test.add_argument("--richmen", type=int, help="Number of richmen")
    g_test.add_argument("--poors", type=int, help="Number of poor stakeholders")
    g_test.add_argument("--keys-pattern", help="Keyfile pattern, '{}' is replaced by the index")
    g_test.add_argument("--total-stake", type=int, help="Total testnet stake")
    g_test.add_argument(
        "--richmen-share", type=Fraction, default=Fraction(1, 2), help="Share of the stake given to richmen"
    )
    g_test.add_argument(
        "--remainder",
        choices=[policy.value for policy in RemainderPolicy],
        default=RemainderPolicy.FIRST.value,
        help="Stakeholder that absorbs rounding remainders",
    )

    g_avvm = p_gen.add_argument_group("AVVM stake")
    g_avvm.add_argument("--avvm-json", type=Path, help="AVVM voucher dump")
    g_avvm.add_argument("--blacklist", type=Path, help="File of blacklisted redemption keys")
    g_avvm.add_argument("--holder-keyfile", type=Path, help="Keyfile of the redemption holder")
    g_avvm.add_argument("--randcerts", action="store_true", help="Attach random VSS certificates")

    g_fake = p_gen.add_argument_group("fake AVVM stake")
    g_fake.add_argument("--fake-avvm-count", type=int, help="Number of fake vouchers")
    g_fake.add_argument("--fake-avvm-seed-pattern", help="Seed file pattern, '{}' is replaced by the index")
    g_fake.add_argument("--fake-avvm-stake", type=int, help="Stake of every fake voucher")
    p_gen.set_defaults(func=cmd_generate, parser=p_gen)

    p_rearr = sub.add_parser("rearrange", help="Rearrange keyfiles matching a glob mask")
    p_rearr.add_argument("mask", help="Glob mask, e.g. 'keys/*.primary'")
    p_rearr.set_defaults(func=cmd_rearrange)

    p_insp = sub.add_parser("inspect", help="Summarize a genesis artifact")
    p_insp.add_argument("genesis_file", help="Path to genesis.bin")
    p_insp.set_defaults(func=cmd_inspect)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(message)s")
    try:
        args.func(args)
    except GenesisError as exc:
        raise SystemExit(f"error: {exc}")


if __name__ == "__main__":
    main()


__all__ = ["main", "build_parser", "cmd_generate", "cmd_rearrange", "cmd_inspect"]
