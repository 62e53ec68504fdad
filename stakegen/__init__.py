from .codec import decode_genesis, encode_genesis
from .distribution import EMPTY_FRAGMENT, flatten, merge, merge_all, total_stake
from .genesis import build_genesis, describe_genesis, generate_genesis, load_genesis
from .types import Address, Coin, ExplicitStakes, GenesisData, GenesisFragment, RichPoor

__all__ = [
    "encode_genesis",
    "decode_genesis",
    "EMPTY_FRAGMENT",
    "flatten",
    "merge",
    "merge_all",
    "total_stake",
    "build_genesis",
    "describe_genesis",
    "generate_genesis",
    "load_genesis",
    "Address",
    "Coin",
    "ExplicitStakes",
    "GenesisData",
    "GenesisFragment",
    "RichPoor",
]
