import dataclasses

import pytest
from prometheus_client import CollectorRegistry

from coinflip.commit_reveal.commit import CommitmentManager
from coinflip.commit_reveal.derive import derive
from coinflip.config import FlipConfig
from coinflip.errors import (EMPTY_CLIENT_SEED, FLIP_IN_FLIGHT, NOT_STARTED,
                             EntropyFailure, ValidationError)
from coinflip.metrics import Metrics
from coinflip.session.events import (CommitmentReady, FlipResolved,
                                     ValidationRejected)
from coinflip.session.flip_session import FlipSession, SessionState
from coinflip.types.core import VerificationStatus
from coinflip.utils.hash import sha256_hex


def mk_session(**kw) -> tuple[FlipSession, list, CollectorRegistry]:
    registry = CollectorRegistry()
    kw.setdefault("client_seed", "player-seed")
    s = FlipSession(metrics=Metrics(registry=registry), **kw)
    events: list = []
    s.subscribe(events.append)
    return s, events, registry


def test_start_publishes_first_commitment():
    s, events, _ = mk_session()
    assert s.state is SessionState.IDLE
    assert s.public_hash is None
    s.start()
    assert s.state is SessionState.COMMITTED
    assert events == [CommitmentReady(s.public_hash, 0)]
    s.start()  # no-op once started
    assert len(events) == 1


def test_flip_before_start_is_rejected():
    s, events, _ = mk_session()
    res = s.flip()
    assert not res.accepted
    assert res.rejection.code == NOT_STARTED
    assert isinstance(events[-1], ValidationRejected)
    assert s.nonce == 0


def test_flip_resolves_reveals_and_recommits():
    s, events, _ = mk_session()
    s.start()
    committed_hash = s.public_hash
    res = s.flip()
    assert res.accepted and res.rejection is None
    rec = res.record
    assert rec.nonce == 1
    assert rec.public_hash == committed_hash
    assert sha256_hex(rec.secret) == committed_hash
    assert rec.client_seed == "player-seed"
    d = derive(rec.secret, rec.client_seed, rec.nonce)
    assert (rec.message, rec.digest, rec.derived_value, rec.outcome) == (
        d.message, d.digest, d.derived_value, d.outcome,
    )
    assert res.outcome is rec.outcome

    # a brand new, unrelated commitment is current again
    assert s.state is SessionState.COMMITTED
    assert s.public_hash != committed_hash
    assert s.last_record is rec
    assert s.history == [rec]

    assert events[1:] == [FlipResolved(rec), CommitmentReady(s.public_hash, 1)]


def test_record_is_immutable():
    s, _, _ = mk_session()
    s.start()
    rec = s.flip().record
    with pytest.raises(dataclasses.FrozenInstanceError):
        rec.outcome = 1  # type: ignore[misc]


def test_empty_client_seed_rejected_without_state_change():
    s, events, _ = mk_session()
    s.start()
    h = s.public_hash
    for seed in ("", "   ", "\t\n"):
        res = s.flip(seed)
        assert not res.accepted
        assert res.rejection.code == EMPTY_CLIENT_SEED
        with pytest.raises(ValidationError):
            res.raise_for_rejection()
    assert s.nonce == 0
    assert s.public_hash == h
    assert s.history == []
    assert s.state is SessionState.COMMITTED
    assert [type(e) for e in events[1:]] == [ValidationRejected] * 3


def test_client_seed_is_trimmed_and_adopted():
    s, _, _ = mk_session()
    s.start()
    rec = s.flip("  lucky  ").record
    assert rec.client_seed == "lucky"
    assert s.client_seed == "lucky"
    assert rec.message.split(":")[1] == "lucky"


def test_nonce_increases_by_one_per_accepted_flip():
    s, _, _ = mk_session(config=FlipConfig(nonce_start=100))
    s.start()
    nonces = []
    for i in range(10):
        if i % 3 == 0:
            s.flip("")  # rejected, must not consume a nonce
        nonces.append(s.flip().record.nonce)
    assert nonces == list(range(101, 111))


def test_every_flip_uses_a_fresh_secret():
    s, _, _ = mk_session()
    s.start()
    recs = [s.flip().record for _ in range(30)]
    assert len({r.secret for r in recs}) == 30
    assert len({r.public_hash for r in recs}) == 30


def test_second_flip_while_resolving_is_rejected():
    holder = {}

    def reentrant_deriver(secret, client_seed, nonce):
        sess = holder["s"]
        assert sess.state is SessionState.RESOLVING
        holder["busy"] = sess.busy
        holder["inner"] = sess.flip()
        holder["nonce_seen"] = sess.nonce
        return derive(secret, client_seed, nonce)

    s, events, _ = mk_session(deriver=reentrant_deriver)
    holder["s"] = s
    s.start()
    assert not s.busy
    outer = s.flip()

    assert holder["busy"] is True
    assert not s.busy
    inner = holder["inner"]
    assert not inner.accepted
    assert inner.rejection.code == FLIP_IN_FLIGHT
    assert holder["nonce_seen"] == 1
    assert outer.accepted and outer.record.nonce == 1
    assert s.nonce == 1
    assert len(s.history) == 1
    assert ValidationRejected(FLIP_IN_FLIGHT, inner.rejection.reason) in events


def test_flip_from_listener_is_rejected_until_announced():
    s, _, _ = mk_session()
    inner_results = []

    def on_event(ev):
        if isinstance(ev, FlipResolved):
            inner_results.append(s.flip())

    s.subscribe(on_event)
    s.start()
    s.flip()
    assert inner_results[0].rejection.code == FLIP_IN_FLIGHT
    assert s.nonce == 1
    # once the call returns the next flip is accepted
    assert s.flip().record.nonce == 2


def test_seed_changes_refused_while_in_flight():
    holder = {}

    def deriver(secret, client_seed, nonce):
        with pytest.raises(ValidationError) as ei:
            holder["s"].set_client_seed("changed")
        assert ei.value.code == FLIP_IN_FLIGHT
        with pytest.raises(ValidationError):
            holder["s"].randomize_client_seed()
        return derive(secret, client_seed, nonce)

    s, _, _ = mk_session(deriver=deriver)
    holder["s"] = s
    s.start()
    rec = s.flip().record
    assert rec.client_seed == "player-seed"
    assert s.client_seed == "player-seed"


def test_randomize_and_set_client_seed():
    s, _, _ = mk_session(config=FlipConfig(client_seed_bytes=8))
    seed = s.randomize_client_seed()
    assert len(seed) == 16 and s.client_seed == seed
    s.set_client_seed("  mine ")
    assert s.client_seed == "mine"


def test_default_client_seed_is_random_hex():
    s = FlipSession(metrics=Metrics(registry=CollectorRegistry()))
    assert len(s.client_seed) == 32
    int(s.client_seed, 16)


def test_history_is_bounded():
    s, _, _ = mk_session()
    s.start()
    recs = [s.flip().record for _ in range(20)]
    assert [r.nonce for r in s.history] == [r.nonce for r in reversed(recs[-12:])]


def test_custom_history_size():
    s, _, _ = mk_session(config=FlipConfig(history_size=3))
    s.start()
    for _ in range(5):
        s.flip()
    assert [r.nonce for r in s.history] == [5, 4, 3]


def test_verify_last():
    s, _, registry = mk_session()
    assert s.verify_last().status is VerificationStatus.NOTHING_TO_VERIFY
    s.start()
    s.flip()
    assert s.verify_last().ok
    assert registry.get_sample_value(
        "coinflip_core_verifications_total", {"status": "verified"}
    ) == 1.0
    assert registry.get_sample_value(
        "coinflip_core_verifications_total", {"status": "nothing_to_verify"}
    ) == 1.0


def test_reset_clears_history_and_nonce():
    s, events, _ = mk_session()
    s.start()
    for _ in range(3):
        s.flip()
    before = s.public_hash
    s.reset()
    assert s.nonce == 0
    assert s.history == []
    assert s.last_record is None
    assert s.public_hash != before
    assert s.state is SessionState.COMMITTED
    assert events[-1] == CommitmentReady(s.public_hash, 0)
    assert s.flip().record.nonce == 1


def test_entropy_failure_refuses_to_start():
    def broken(n):
        raise NotImplementedError

    s, events, _ = mk_session(commitments=CommitmentManager(entropy=broken))
    with pytest.raises(EntropyFailure):
        s.start()
    assert s.state is SessionState.IDLE
    assert events == []
    assert s.flip().rejection.code == NOT_STARTED


def test_entropy_failure_after_flip_still_announces_record():
    calls = {"n": 0}

    def flaky(n):
        calls["n"] += 1
        if calls["n"] > 1:
            raise OSError("gone")
        return b"\x07" * n

    s, events, _ = mk_session(commitments=CommitmentManager(entropy=flaky))
    s.start()
    with pytest.raises(EntropyFailure):
        s.flip()
    assert isinstance(events[-1], FlipResolved)
    assert s.last_record.nonce == 1
    assert s.verify_last().ok
    assert s.state is SessionState.RESOLVED
    assert s.flip().rejection.code == NOT_STARTED


def test_listener_errors_do_not_break_the_session(caplog):
    s, events, _ = mk_session()

    def boom(ev):
        raise RuntimeError("display crashed")

    s.subscribe(boom)
    s.start()
    res = s.flip()
    assert res.accepted
    assert isinstance(events[-1], CommitmentReady)
    assert "session listener failed" in caplog.text
    s.unsubscribe(boom)


def test_metrics_recorded():
    s, _, registry = mk_session()
    s.start()
    rec = s.flip().record
    s.flip("")
    label = rec.label.lower()
    assert registry.get_sample_value("coinflip_core_flips_total", {"outcome": label}) == 1.0
    assert registry.get_sample_value(
        "coinflip_core_rejections_total", {"code": EMPTY_CLIENT_SEED}
    ) == 1.0
    assert registry.get_sample_value("coinflip_core_commitments_total") == 2.0


def test_invalid_config_rejected_at_construction():
    with pytest.raises(ValueError):
        FlipSession(FlipConfig(history_size=0), client_seed="x")
