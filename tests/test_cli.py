import json

import pytest

from stakegen import cli, keyfile
from stakegen.genesis import load_genesis


def _generate_args(tmp_path):
    return [
        "generate",
        "--genesis-file",
        str(tmp_path / "genesis.bin"),
        "--workers",
        "2",
        "--richmen",
        "3",
        "--poors",
        "2",
        "--keys-pattern",
        str(tmp_path / "keys" / "key{}.sk"),
        "--total-stake",
        "101",
        "--richmen-share",
        "3/5",
        "--fake-avvm-count",
        "2",
        "--fake-avvm-seed-pattern",
        str(tmp_path / "avvm" / "seed{}"),
        "--fake-avvm-stake",
        "50",
    ]


def test_generate_and_inspect(tmp_path, capsys):
    cli.main(_generate_args(tmp_path))
    out = capsys.readouterr().out

    assert "Genesis stakeholders (7 addresses)" in out
    assert "Total genesis stake: 201" in out
    assert "VSS certificates (3)" in out
    genesis = load_genesis(tmp_path / "genesis.bin")
    assert len(genesis.addresses) == 7
    assert (tmp_path / "keys" / "key1.sk.primary").exists()
    assert (tmp_path / "avvm" / "seed2").exists()

    cli.main(["inspect", str(tmp_path / "genesis.bin")])
    inspected = capsys.readouterr().out
    assert inspected == out


def test_generate_with_avvm(tmp_path, capsys, holder_keyfile, voucher_key):
    holder_path, _ = holder_keyfile
    kept, dropped = voucher_key(), voucher_key()
    dump = tmp_path / "avvm.json"
    dump.write_text(json.dumps({"utxo": [{"address": kept, "coin": 10}, {"address": dropped, "coin": 20}]}))
    blacklist = tmp_path / "blacklist"
    blacklist.write_text(dropped + "\n")

    cli.main(
        [
            "generate",
            "--genesis-file",
            str(tmp_path / "genesis.bin"),
            "--avvm-json",
            str(dump),
            "--holder-keyfile",
            str(holder_path),
            "--blacklist",
            str(blacklist),
        ]
    )
    out = capsys.readouterr().out
    assert "Genesis stakeholders (1 addresses)" in out
    assert "Total genesis stake: 10" in out


def test_incomplete_testnet_flags(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["generate", "--genesis-file", str(tmp_path / "g.bin"), "--richmen", "1"])
    assert exc_info.value.code == 2
    assert "--poors" in capsys.readouterr().err


def test_avvm_needs_holder(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["generate", "--avvm-json", str(tmp_path / "avvm.json")])
    assert exc_info.value.code == 2


def test_invalid_option_values(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(
            [
                "generate",
                "--genesis-file",
                str(tmp_path / "g.bin"),
                "--fake-avvm-count",
                "-1",
                "--fake-avvm-seed-pattern",
                str(tmp_path / "s{}"),
                "--fake-avvm-stake",
                "1",
            ]
        )
    assert exc_info.value.code == 2


def test_no_stake_source(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["generate", "--genesis-file", str(tmp_path / "genesis.bin")])
    assert str(exc_info.value.code).startswith("error: at least one of")
    assert not (tmp_path / "genesis.bin").exists()


def test_rearrange(tmp_path, capsys):
    keyfile.generate_keyfile(True, tmp_path / "key1.sk.primary")
    keyfile.generate_keyfile(False, tmp_path / "key1.sk")

    cli.main(["rearrange", str(tmp_path / "*.primary")])
    assert capsys.readouterr().out.strip() == "Rearranged 1 keyfile(s)"


def test_inspect_missing_file(tmp_path):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["inspect", str(tmp_path / "missing.bin")])
    assert str(exc_info.value.code).startswith("error: cannot read genesis")
