"""Options for each stake source and for a whole genesis build."""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import List, Optional

from .config import DEFAULT_GENESIS_FILE, PRIMARY_SUFFIX
from .pattern import render_range
from .types import RemainderPolicy


@dataclass(frozen=True)
class TestnetOptions:
    """Richmen/poor testnet stakeholders with generated keyfiles."""

    __test__ = False

    richmen: int
    poors: int
    pattern: str
    total_stake: int
    richmen_share: Fraction = Fraction(1, 2)
    remainder: RemainderPolicy = RemainderPolicy.FIRST

    def __post_init__(self) -> None:
        object.__setattr__(self, "richmen_share", Fraction(self.richmen_share))
        if self.richmen < 0 or self.poors < 0:
            raise ValueError("richmen and poors must be non-negative")
        if self.richmen + self.poors == 0:
            raise ValueError("testnet stake needs at least one stakeholder")
        if self.total_stake < 0:
            raise ValueError("total stake must be non-negative")
        if not 0 <= self.richmen_share <= 1:
            raise ValueError("richmen share must be within [0, 1]")

    def richmen_paths(self) -> List[Path]:
        return render_range(self.pattern, self.richmen, suffix=PRIMARY_SUFFIX)

    def poor_paths(self) -> List[Path]:
        return render_range(self.pattern, self.poors)

    def output_paths(self) -> List[Path]:
        return self.richmen_paths() + self.poor_paths()


@dataclass(frozen=True)
class AvvmOptions:
    """Stake imported from a legacy AVVM voucher dump."""

    json_path: Path
    holder_keyfile: Path
    blacklist_path: Optional[Path] = None
    randcerts: bool = False


@dataclass(frozen=True)
class FakeAvvmOptions:
    """Synthetic AVVM vouchers with a uniform stake."""

    count: int
    seed_pattern: str
    one_stake: int

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError("fake AVVM count must be non-negative")
        if self.one_stake < 0:
            raise ValueError("fake AVVM stake must be non-negative")

    def output_paths(self) -> List[Path]:
        return render_range(self.seed_pattern, self.count)


@dataclass(frozen=True)
class KeygenOptions:
    genesis_file: Path = Path(DEFAULT_GENESIS_FILE)
    testnet: Optional[TestnetOptions] = None
    avvm: Optional[AvvmOptions] = None
    fake_avvm: Optional[FakeAvvmOptions] = None
    workers: Optional[int] = None

    def output_paths(self) -> List[Path]:
        """Every file the build will write, the genesis artifact included."""
        paths = [Path(self.genesis_file)]
        if self.testnet is not None:
            paths += self.testnet.output_paths()
        if self.fake_avvm is not None:
            paths += self.fake_avvm.output_paths()
        return paths


__all__ = ["TestnetOptions", "AvvmOptions", "FakeAvvmOptions", "KeygenOptions"]
