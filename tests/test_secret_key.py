"""Loading the externally supplied signing key."""

import pytest

from core.errors import InvalidSecretError
from frost.curve import G, ORDER, point_to_bytes
from secret_key import load_secret_key


def test_load_scalar_one():
    secret_key = load_secret_key("00" * 31 + "01")
    assert secret_key.scalar == 1
    assert secret_key.verifying_key_bytes() == point_to_bytes(G)


def test_accepts_0x_prefix_and_whitespace():
    secret_key = load_secret_key("  0x" + "00" * 31 + "2a\n")
    assert secret_key.scalar == 42


@pytest.mark.parametrize(
    "value",
    [
        None,
        "",
        "   ",
        "zz" * 32,
        "00" * 32,
        "01" * 31,
        "01" * 33,
        format(ORDER, "064x"),
    ],
)
def test_invalid_keys(value):
    with pytest.raises(InvalidSecretError):
        load_secret_key(value)


def test_wipe_on_context_exit():
    with load_secret_key("00" * 31 + "07") as secret_key:
        assert secret_key.scalar == 7
    with pytest.raises(InvalidSecretError):
        secret_key.scalar


def test_repr_is_redacted():
    secret_key = load_secret_key("ab" * 32)
    assert "ab" * 4 not in repr(secret_key)
    assert "redacted" in repr(secret_key)
