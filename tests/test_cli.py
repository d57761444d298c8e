"""End-to-end runs of the command line driver."""

import json

import main
from frost.curve import G, xonly_bytes

SCALAR_ONE_HEX = "00" * 31 + "01"
GENERATOR_X = xonly_bytes(G).hex()


def output_value(out, label):
    for line in out.splitlines():
        if line.startswith(label):
            return line.split(": ", 1)[1]
    raise AssertionError(f"{label!r} not in output:\n{out}")


def test_generate_writes_store(clean_env, capsys):
    assert main.main(["generate"]) == 0
    out = capsys.readouterr().out

    address = output_value(out, "Address (mainnet)")
    assert address.startswith("bc1p")
    assert len(output_value(out, "Group verifying key")) == 64

    data = json.loads((clean_env / "my_map.json").read_text())
    assert len(data["key_packages"]) == 5
    assert data["public_key_package"]["min_signers"] == 3


def test_generate_then_load(clean_env, capsys):
    assert main.main(["generate"]) == 0
    generated = capsys.readouterr().out

    assert main.main(["load"]) == 0
    loaded = capsys.readouterr().out

    assert "Key packages: 5 (threshold 3 of 5)" in loaded
    assert output_value(loaded, "Address (mainnet)") == output_value(
        generated, "Address (mainnet)"
    )


def test_two_generate_runs_differ(clean_env, capsys):
    main.main(["generate"])
    first = output_value(capsys.readouterr().out, "Address (mainnet)")
    main.main(["generate"])
    second = output_value(capsys.readouterr().out, "Address (mainnet)")
    assert first != second


def test_load_missing_store(clean_env, capsys):
    assert main.main(["load"]) == 1
    err = capsys.readouterr().err
    assert "error: Key store not found" in err


def test_load_corrupt_store(clean_env, capsys):
    (clean_env / "my_map.json").write_text("{}")
    assert main.main(["load"]) == 1
    assert "error:" in capsys.readouterr().err


def test_store_path_from_environment(clean_env, monkeypatch, capsys):
    monkeypatch.setenv("FROST_STORE_PATH", str(clean_env / "group.json"))
    assert main.main(["generate"]) == 0
    assert (clean_env / "group.json").exists()
    assert not (clean_env / "my_map.json").exists()


def test_test_command_is_deterministic(clean_env, monkeypatch, capsys):
    monkeypatch.setenv("PRIVATE_KEY", SCALAR_ONE_HEX)

    assert main.main(["test"]) == 0
    first = capsys.readouterr().out
    assert main.main(["test"]) == 0
    second = capsys.readouterr().out

    assert output_value(first, "Group verifying key") == GENERATOR_X
    assert output_value(first, "Address (mainnet)") == output_value(
        second, "Address (mainnet)"
    )


def test_test_command_without_private_key(clean_env, capsys):
    assert main.main(["test"]) == 1
    assert "error: PRIVATE_KEY is not set" in capsys.readouterr().err


def test_test_command_with_zero_key(clean_env, monkeypatch, capsys):
    monkeypatch.setenv("PRIVATE_KEY", "00" * 32)
    assert main.main(["test"]) == 1
    err = capsys.readouterr().err
    assert "error:" in err
    assert "00" * 32 not in err


def test_verify_command(clean_env, monkeypatch, capsys):
    monkeypatch.setenv("PRIVATE_KEY", SCALAR_ONE_HEX)

    assert main.main(["verify"]) == 0
    out = capsys.readouterr().out

    assert output_value(out, "Signing key") == GENERATOR_X
    assert len(output_value(out, "Signature")) == 128
    assert output_value(out, "Verified") == "true"


def test_verify_key_path(clean_env, monkeypatch, capsys):
    monkeypatch.setenv("PRIVATE_KEY", SCALAR_ONE_HEX)

    assert main.main(["verify", "--key-path"]) == 0
    out = capsys.readouterr().out

    assert output_value(out, "Signing key") != GENERATOR_X
    assert output_value(out, "Verified") == "true"


def test_verify_on_testnet(clean_env, monkeypatch, capsys):
    monkeypatch.setenv("PRIVATE_KEY", SCALAR_ONE_HEX)
    monkeypatch.setenv("BITCOIN_NETWORK", "testnet")

    assert main.main(["test"]) == 0
    assert output_value(capsys.readouterr().out, "Address (testnet)").startswith("tb1p")


def test_invalid_configuration(clean_env, monkeypatch, capsys):
    monkeypatch.setenv("FROST_MIN_SIGNERS", "6")
    assert main.main(["generate"]) == 1
    assert "error: min_signers (6) cannot exceed max_signers (5)" in capsys.readouterr().err


def test_config_file(clean_env, monkeypatch, capsys):
    config_path = clean_env / "frost.toml"
    config_path.write_text('min_signers = 2\nmax_signers = 3\nstore_path = "small.json"\n')

    assert main.main(["--config", str(config_path), "generate"]) == 0
    assert "Key packages: 3 (threshold 2 of 3)" in capsys.readouterr().out
    assert (clean_env / "small.json").exists()


def test_no_command_prints_help(clean_env, capsys):
    assert main.main([]) == 0
    assert "generate" in capsys.readouterr().out


def test_name_with_command(clean_env, capsys):
    assert main.main(["alice", "generate"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines()[0] == "Value for name: alice"
    assert "Address (mainnet)" in out


def test_debug_flag_enables_debug_logging(clean_env, capsys):
    assert main.main(["-dd", "generate"]) == 0
    assert " - DEBUG - " in capsys.readouterr().err


def test_log_file(clean_env, monkeypatch, capsys):
    log_path = clean_env / "frost.log"
    monkeypatch.setenv("FROST_LOG_FILE", str(log_path))
    assert main.main(["generate"]) == 0
    assert "Saved 5 key packages" in log_path.read_text()


def test_unknown_command_exits_with_error(clean_env, capsys):
    assert main.main(["alice", "sign"]) == 1
    assert "invalid choice" in capsys.readouterr().err


def test_unknown_option_exits_with_error(clean_env, capsys):
    assert main.main(["verify", "--bogus"]) == 1
    assert "unrecognized arguments" in capsys.readouterr().err


def test_help_exits_cleanly(clean_env, capsys):
    assert main.main(["--help"]) == 0
    assert "frost-taproot" in capsys.readouterr().out
