from pathlib import Path

import pytest

from stakegen.errors import PatternCollision
from stakegen.options import FakeAvvmOptions, KeygenOptions, TestnetOptions
from stakegen.pattern import check_unique_paths, render, render_range


def test_render_replaces_every_placeholder():
    assert render("keys/{}/key{}.sk", 7) == Path("keys/7/key7.sk")
    assert render("keys/key.sk", 7) == Path("keys/key.sk")


def test_render_range_is_one_based():
    assert render_range("k{}.sk", 3) == [Path("k1.sk"), Path("k2.sk"), Path("k3.sk")]
    assert render_range("k{}.sk", 2, suffix=".primary") == [
        Path("k1.sk.primary"),
        Path("k2.sk.primary"),
    ]
    assert render_range("k{}.sk", 0) == []


def test_check_unique_paths(tmp_path):
    check_unique_paths([tmp_path / "a", tmp_path / "b"])
    with pytest.raises(PatternCollision) as exc_info:
        check_unique_paths([tmp_path / "a", tmp_path / "b", tmp_path / "a"])
    assert exc_info.value.path == tmp_path / "a"


def test_richmen_and_poor_paths_do_not_collide():
    options = TestnetOptions(richmen=3, poors=2, pattern="keys/key{}.sk", total_stake=100)
    assert options.richmen_paths()[0] == Path("keys/key1.sk.primary")
    assert options.poor_paths()[0] == Path("keys/key1.sk")
    check_unique_paths(options.output_paths())


def test_pattern_without_placeholder_collides():
    options = TestnetOptions(richmen=0, poors=2, pattern="keys/key.sk", total_stake=10)
    with pytest.raises(PatternCollision):
        check_unique_paths(options.output_paths())


def test_keygen_output_paths_include_genesis(tmp_path):
    options = KeygenOptions(
        genesis_file=tmp_path / "genesis.bin",
        fake_avvm=FakeAvvmOptions(count=2, seed_pattern=str(tmp_path / "avvm{}.seed"), one_stake=1),
    )
    assert options.output_paths() == [
        tmp_path / "genesis.bin",
        tmp_path / "avvm1.seed",
        tmp_path / "avvm2.seed",
    ]


def test_testnet_options_validation():
    with pytest.raises(ValueError):
        TestnetOptions(richmen=0, poors=0, pattern="k{}", total_stake=1)
    with pytest.raises(ValueError):
        TestnetOptions(richmen=1, poors=1, pattern="k{}", total_stake=-1)
    with pytest.raises(ValueError):
        TestnetOptions(richmen=1, poors=1, pattern="k{}", total_stake=1, richmen_share=2)
