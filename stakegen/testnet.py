"""Testnet stake source: generated richmen and poor stakeholders."""

from __future__ import annotations

import logging

from .distribution import total_stake
from .keyfile import generate_keyfiles
from .options import TestnetOptions
from .types import Coin, GenesisFragment, RichPoor, make_pubkey_address

logger = logging.getLogger(__name__)


def richmen_poor_distribution(options: TestnetOptions) -> RichPoor:
    return RichPoor(
        total=Coin(options.total_stake),
        richmen=options.richmen,
        poors=options.poors,
        richmen_share=options.richmen_share,
        remainder=options.remainder,
    )


def build_testnet_fragment(options: TestnetOptions, *, workers: int | None = None) -> GenesisFragment:
    """Generate testnet keyfiles and return their genesis fragment.

    Richmen come first and are the only stakeholders that receive a VSS
    certificate.
    """
    distribution = richmen_poor_distribution(options)
    jobs = [(True, path) for path in options.richmen_paths()]
    jobs += [(False, path) for path in options.poor_paths()]

    generated = generate_keyfiles(jobs, workers)
    logger.info("%d keyfiles are generated", len(generated))

    addresses = tuple(make_pubkey_address(key.public_key) for key in generated)
    richmen = options.richmen
    certificates = {
        addr: key.vss_certificate
        for addr, key in zip(addresses[:richmen], generated[:richmen])
    }

    fragment = GenesisFragment(
        addresses=addresses,
        distribution=distribution,
        vss_certificates=certificates,
    )
    logger.info("Total testnet genesis stake: %s", total_stake(fragment))
    return fragment


__all__ = ["richmen_poor_distribution", "build_testnet_fragment"]
