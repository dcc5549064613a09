import dataclasses
import json

import pytest

from coinflip.commit_reveal.derive import derive
from coinflip.commit_reveal.verify import verify, verify_dict
from coinflip.errors import RecordFormatError
from coinflip.types.core import FlipRecord, Outcome, VerificationStatus
from coinflip.types.wire import FlipRecordModel, parse_record, parse_record_json
from coinflip.utils.hash import sha256_hex


def mk_record(secret: str = "", client_seed: str = "abc", nonce: int = 1) -> FlipRecord:
    d = derive(secret, client_seed, nonce)
    return FlipRecord(
        nonce=nonce,
        secret=secret,
        public_hash=sha256_hex(secret),
        client_seed=client_seed,
        message=d.message,
        digest=d.digest,
        derived_value=d.derived_value,
        outcome=d.outcome,
    )


def flipped(o: Outcome) -> Outcome:
    return Outcome.TAILS if o is Outcome.HEADS else Outcome.HEADS


def test_missing_record_is_not_success():
    res = verify(None)
    assert res.status is VerificationStatus.NOTHING_TO_VERIFY
    assert not res.ok
    assert not res.commit_valid and not res.result_valid
    assert verify_dict(None).status is VerificationStatus.NOTHING_TO_VERIFY


def test_empty_secret_vector_verifies_and_tamper_is_caught():
    rec = mk_record("", "abc", 1)
    assert rec.message == ":abc:1"
    assert rec.public_hash.startswith("e3b0c442")
    assert mk_record("", "abc", 1) == rec  # determinism across runs

    ok = verify(rec)
    assert ok.ok and ok.commit_valid and ok.result_valid
    assert ok.mismatches == ()
    assert ok.nonce == 1

    bad = verify(dataclasses.replace(rec, outcome=flipped(rec.outcome)))
    assert bad.status is VerificationStatus.FAILED
    assert bad.commit_valid and not bad.result_valid
    assert bad.mismatches == ("outcome",)


def test_untouched_random_records_verify():
    for i in range(25):
        assert verify(mk_record(sha256_hex(f"s{i}"), f"seed-{i}", i + 1)).ok


@pytest.mark.parametrize(
    "field,value_fn,commit_ok,result_ok",
    [
        ("secret", lambda r: r.secret + "00", False, False),
        ("client_seed", lambda r: r.client_seed + "x", True, False),
        ("nonce", lambda r: r.nonce + 1, True, False),
        ("public_hash", lambda r: sha256_hex("other"), False, True),
        ("digest", lambda r: sha256_hex("other"), True, False),
        ("derived_value", lambda r: (r.derived_value + 2) % (1 << 32), True, False),
        ("outcome", lambda r: flipped(r.outcome), True, False),
        ("message", lambda r: r.message + "0", True, False),
    ],
)
def test_each_mutation_fails_the_right_check(field, value_fn, commit_ok, result_ok):
    rec = mk_record(sha256_hex("mutation"), "client", 7)
    bad = dataclasses.replace(rec, **{field: value_fn(rec)})
    res = verify(bad)
    assert res.status is VerificationStatus.FAILED
    assert res.commit_valid is commit_ok
    assert res.result_valid is result_ok


def test_negative_nonce_reported_not_raised():
    rec = dataclasses.replace(mk_record(), nonce=-1)
    res = verify(rec)
    assert res.status is VerificationStatus.FAILED
    assert "nonce" in res.mismatches


@pytest.mark.parametrize(
    "field, value",
    [
        ("client_seed", None),
        ("secret", b"raw"),
        ("digest", None),
        ("nonce", True),
    ],
)
def test_wrongly_typed_field_is_named_in_mismatches(field, value):
    rec = dataclasses.replace(mk_record(), **{field: value})
    res = verify(rec)
    assert res.status is VerificationStatus.FAILED
    assert res.mismatches == (field,)
    assert not res.commit_valid and not res.result_valid


def test_verify_dict_round_trip():
    rec = mk_record(sha256_hex("json"), "seed", 3)
    data = json.loads(json.dumps(rec.to_dict()))
    assert set(data) == {
        "nonce", "secret", "publicHash", "clientSeed",
        "message", "digest", "derivedValue", "outcome",
    }
    assert verify_dict(data).ok
    data["outcome"] = 1 - data["outcome"]
    assert verify_dict(data).status is VerificationStatus.FAILED


def test_wire_model_parses_and_converts_back():
    rec = mk_record(sha256_hex("wire"), "seed", 9)
    model = FlipRecordModel.from_record(rec)
    assert model.to_record() == rec
    assert parse_record_json(json.dumps(rec.to_dict())) == rec
    assert parse_record(rec.to_dict()).outcome is rec.outcome


@pytest.mark.parametrize(
    "patch",
    [
        {"outcome": 2},
        {"digest": "not-hex"},
        {"publicHash": "abcd"},
        {"publicHash": mk_record().public_hash.upper()},
        {"digest": "0x" + mk_record().digest},
        {"digest": mk_record().digest + "00"},
        {"nonce": -5},
        {"derivedValue": 1 << 32},
    ],
)
def test_malformed_records_raise_format_error(patch):
    data = mk_record().to_dict()
    data.update(patch)
    with pytest.raises(RecordFormatError):
        verify_dict(data)


def test_missing_key_raises_format_error():
    data = mk_record().to_dict()
    del data["clientSeed"]
    with pytest.raises(RecordFormatError):
        parse_record(data)
    with pytest.raises(RecordFormatError):
        parse_record_json("not json")
