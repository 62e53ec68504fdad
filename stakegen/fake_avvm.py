"""Fake AVVM stake source for test networks."""

from __future__ import annotations

import logging

from .keyfile import generate_fake_avvm, run_pool
from .options import FakeAvvmOptions
from .types import Coin, ExplicitStakes, GenesisFragment, StakeEntry, make_redeem_address

logger = logging.getLogger(__name__)


def build_fake_avvm_fragment(options: FakeAvvmOptions, *, workers: int | None = None) -> GenesisFragment:
    """Generate ``options.count`` voucher seeds, each holding ``one_stake``."""
    stake = Coin(options.one_stake)
    public_keys = run_pool(generate_fake_avvm, [(path,) for path in options.output_paths()], workers)
    logger.info("%d fake avvm seeds are generated", len(public_keys))

    addresses = tuple(make_redeem_address(key) for key in public_keys)
    return GenesisFragment(
        addresses=addresses,
        distribution=ExplicitStakes({addr: StakeEntry(stake) for addr in addresses}),
    )


__all__ = ["build_fake_avvm_fragment"]
