import hashlib

import pytest

from coinflip.commit_reveal.derive import (canonical_message, derive,
                                           derived_value_from_digest,
                                           outcome_from_value)
from coinflip.constants import EMPTY_SHA256_HEX
from coinflip.types.core import Outcome
from coinflip.utils.hash import consteq, from_hex, sha256_bytes, sha256_hex


def test_empty_input_known_answer():
    assert sha256_hex("") == EMPTY_SHA256_HEX
    assert sha256_hex(b"") == EMPTY_SHA256_HEX
    assert EMPTY_SHA256_HEX == (
        "e3b0c442" "98fc1c14" "9afbf4c8" "996fb924" "27ae41e4" "649b934c" "a495991b" "7852b855"
    )


def test_text_is_hashed_as_utf8():
    assert sha256_bytes("héllo") == hashlib.sha256("héllo".encode("utf-8")).digest()
    with pytest.raises(TypeError):
        sha256_hex(123)  # type: ignore[arg-type]


def test_canonical_message_vector():
    assert canonical_message("", "abc", 1) == ":abc:1"
    assert canonical_message("ff00", "seed", 0) == "ff00:seed:0"
    assert canonical_message("s", "c", 1234567) == "s:c:1234567"


@pytest.mark.parametrize("bad", [-1, -100])
def test_negative_nonce_rejected(bad):
    with pytest.raises(ValueError):
        canonical_message("s", "c", bad)


@pytest.mark.parametrize("bad", [True, 1.0, "1", None])
def test_non_int_nonce_rejected(bad):
    with pytest.raises(TypeError):
        canonical_message("s", "c", bad)


def test_derive_matches_independent_hashlib():
    d = derive("", "abc", 1)
    raw = hashlib.sha256(b":abc:1").digest()
    assert d.message == ":abc:1"
    assert d.digest == raw.hex()
    assert d.derived_value == int.from_bytes(raw[:4], "big")
    assert int(d.outcome) == d.derived_value % 2


def test_derive_is_deterministic():
    a = derive("", "abc", 1)
    b = derive("", "abc", 1)
    assert a == b
    for i in range(50):
        secret = sha256_hex(f"secret-{i}")
        assert derive(secret, "seed", i) == derive(secret, "seed", i)


def test_each_input_changes_the_digest():
    base = derive("aa", "bb", 1)
    assert derive("ab", "bb", 1).digest != base.digest
    assert derive("aa", "bc", 1).digest != base.digest
    assert derive("aa", "bb", 2).digest != base.digest


def test_derived_value_is_big_endian():
    assert derived_value_from_digest(bytes([0x01, 0x02, 0x03, 0x04]) + b"\x00" * 28) == 0x01020304
    assert derived_value_from_digest(b"\xff" * 32) == 0xFFFFFFFF
    with pytest.raises(ValueError):
        derived_value_from_digest(b"\x00\x01")


def test_outcome_parity_and_labels():
    assert outcome_from_value(0) is Outcome.HEADS
    assert outcome_from_value(7) is Outcome.TAILS
    assert Outcome.HEADS.label == "HEADS"
    assert Outcome.TAILS.label == "TAILS"


def test_outcome_split_is_close_to_even():
    n = 10_000
    heads = 0
    for i in range(n):
        secret = sha256_hex(f"uniformity-{i}")
        if derive(secret, "fixed-client-seed", i + 1).outcome is Outcome.HEADS:
            heads += 1
    assert 0.47 <= heads / n <= 0.53


def test_hex_helpers():
    assert from_hex("0x0aff") == b"\x0a\xff"
    assert from_hex("0AFF") == b"\x0a\xff"
    with pytest.raises(ValueError):
        from_hex("abc")
    with pytest.raises(ValueError):
        from_hex("zz")
    assert consteq("abc", "abc")
    assert not consteq("abc", "abd")
    assert not consteq("é", "e")
