"""Tests for the login attempt tracker state machine."""

import threading

import pytest

from loginguard.auth.login_tracker import (
    EMAIL_LOCKOUT_REASON,
    IP_LOCKOUT_REASON,
    LOGIN_SUCCESS_MESSAGE,
    LoginAttemptTracker,
    TrackerConfig,
    hash_identifier,
)
from loginguard.core.errors import ValidationError

FIFTEEN_MINUTES = 15 * 60


def _fail(tracker, times, email="a@x.com", ip="1.2.3.4"):
    status = None
    for _ in range(times):
        status = tracker.record(email, ip, False)
    return status


def test_hash_identifier_matches_signed_32bit_string_hash():
    assert hash_identifier("") == "id_0"
    assert hash_identifier("a") == "id_61"
    assert hash_identifier("ab") == "id_c21"
    assert hash_identifier("hello world") == "id_6aefe2c4"
    assert hash_identifier("the quick brown fox") == f"id_{_reference_hash('the quick brown fox'):x}"


def _reference_hash(text):
    value = 0
    for char in text:
        value = (value * 31 + ord(char)) % (1 << 32)
    return value - (1 << 32) if value >= (1 << 31) else value


def test_fresh_identifier_has_full_allowance(tracker):
    status = tracker.check("a@x.com", "1.2.3.4")
    assert status.locked is False
    assert status.remaining_attempts == 5


def test_check_without_email_uses_ip_allowance(tracker):
    _fail(tracker, 3, email="one@x.com", ip="1.2.3.4")
    status = tracker.check(None, "1.2.3.4")
    assert status.locked is False
    assert status.remaining_attempts == 5  # min(5 - 0, 10 - 3)

    _fail(tracker, 3, email="two@x.com", ip="1.2.3.4")
    assert tracker.check(None, "1.2.3.4").remaining_attempts == 4


def test_failures_below_threshold_stay_unlocked(tracker):
    for expected in (4, 3, 2, 1):
        status = tracker.record("a@x.com", "1.2.3.4", False)
        assert status.locked is False
        assert status.remaining_attempts == expected
    assert tracker.check("a@x.com", "1.2.3.4").locked is False


def test_email_lockout_after_max_failures(tracker, clock):
    status = _fail(tracker, 5)
    assert status.locked is True
    assert status.reason == EMAIL_LOCKOUT_REASON
    assert status.lockout_until == pytest.approx(clock.now + FIFTEEN_MINUTES)

    clock.advance(1)
    status = tracker.check("a@x.com", "1.2.3.4")
    assert status.locked is True
    assert status.reason == "Too many failed attempts for this email"
    assert status.remaining_attempts is None


def test_email_lockout_follows_email_across_ips(tracker):
    for i in range(5):
        tracker.record("a@x.com", f"10.0.0.{i}", False)
    status = tracker.check("A@X.com ", "192.168.1.1")
    assert status.locked is True
    assert status.reason == EMAIL_LOCKOUT_REASON


def test_ip_lockout_across_many_emails(tracker):
    statuses = [
        tracker.record(f"user{i}@x.com", "9.9.9.9", False) for i in range(10)
    ]
    assert all(not s.locked for s in statuses[:9])
    assert statuses[-1].locked is True
    assert statuses[-1].reason == IP_LOCKOUT_REASON

    status = tracker.check("someone-else@x.com", "9.9.9.9")
    assert status.locked is True
    assert status.reason == IP_LOCKOUT_REASON


def test_email_reason_takes_precedence_and_latest_expiry_wins(tracker, clock):
    for i in range(9):
        tracker.record(f"user{i}@x.com", "9.9.9.9", False)
    clock.advance(60)
    # Tenth failure from the IP also locks the IP.
    tracker.record("late@x.com", "9.9.9.9", False)
    clock.advance(60)
    _fail(tracker, 5, email="victim@x.com", ip="5.5.5.5")

    status = tracker.check("victim@x.com", "9.9.9.9")
    assert status.locked is True
    assert status.reason == EMAIL_LOCKOUT_REASON
    assert status.lockout_until == pytest.approx(clock.now + FIFTEEN_MINUTES)


def test_email_threshold_checked_before_ip(tracker):
    for i in range(9):
        tracker.record(f"user{i}@x.com", "9.9.9.9", False)
    _fail(tracker, 4, email="a@x.com", ip="8.8.8.8")

    # Fifth failure for the email is also the tenth for 9.9.9.9.
    status = tracker.record("a@x.com", "9.9.9.9", False)
    assert status.reason == EMAIL_LOCKOUT_REASON
    # The IP itself was not locked by that call.
    assert tracker.check("fresh@x.com", "9.9.9.9").locked is False


def test_success_clears_both_identifiers(tracker):
    _fail(tracker, 4, email="b@x.com", ip="5.5.5.5")
    status = tracker.record("b@x.com", "5.5.5.5", True)
    assert status.locked is False
    assert status.message == LOGIN_SUCCESS_MESSAGE

    status = tracker.check("b@x.com", "5.5.5.5")
    assert status.locked is False
    assert status.remaining_attempts == 5


def test_success_lifts_existing_lockout(tracker):
    _fail(tracker, 5)
    tracker.record("a@x.com", "1.2.3.4", True)
    assert tracker.check("a@x.com", "1.2.3.4").locked is False


def test_attempts_outside_window_are_not_counted(tracker, clock):
    _fail(tracker, 5)
    clock.advance(16 * 60)
    status = tracker.check("a@x.com", "1.2.3.4")
    assert status.locked is False
    assert status.remaining_attempts == 5


def test_window_slides_over_old_failures(tracker, clock):
    _fail(tracker, 3)
    clock.advance(10 * 60)
    _fail(tracker, 1)
    clock.advance(6 * 60)
    # The first three are now older than the window.
    status = tracker.record("a@x.com", "1.2.3.4", False)
    assert status.locked is False
    assert status.remaining_attempts == 3


def test_lockout_expires_lazily(registry, clock):
    tracker = LoginAttemptTracker(
        TrackerConfig(lockout_seconds=60, attempt_window_seconds=600),
        clock=clock,
        registry=registry,
    )
    _fail(tracker, 5)
    clock.advance(59)
    assert tracker.check("a@x.com", "1.2.3.4").locked is True
    clock.advance(1)
    status = tracker.check("a@x.com", "1.2.3.4")
    assert status.locked is False
    # Failures are still inside the window, so no allowance is left.
    assert status.remaining_attempts == 0
    assert tracker.stats()["email"]["active_lockouts"] == 0


def test_failure_while_locked_extends_lockout(tracker, clock):
    _fail(tracker, 5)
    clock.advance(5 * 60)
    status = tracker.record("a@x.com", "1.2.3.4", False)
    assert status.locked is True
    assert status.lockout_until == pytest.approx(clock.now + FIFTEEN_MINUTES)


def test_clear_unlocks_immediately(tracker):
    _fail(tracker, 5)
    tracker.clear("a@x.com", "1.2.3.4")
    status = tracker.check("a@x.com", "1.2.3.4")
    assert status.locked is False
    assert status.remaining_attempts == 5


def test_clear_without_email_only_resets_ip(tracker):
    _fail(tracker, 4)
    tracker.clear(None, "1.2.3.4")
    assert tracker.check("a@x.com", "9.9.9.9").remaining_attempts == 1


def test_clear_is_idempotent(tracker):
    tracker.clear("nobody@x.com", "7.7.7.7")
    tracker.clear("nobody@x.com", "7.7.7.7")
    assert tracker.stats() == {
        "email": {"tracked_identifiers": 0, "active_lockouts": 0},
        "ip": {"tracked_identifiers": 0, "active_lockouts": 0},
    }


@pytest.mark.parametrize("email", [None, "", "   "])
def test_record_requires_email_and_leaves_state_untouched(tracker, registry, email):
    with pytest.raises(ValidationError) as excinfo:
        tracker.record(email, "1.2.3.4", False)
    assert excinfo.value.status_code == 400
    assert tracker.stats()["ip"]["tracked_identifiers"] == 0
    assert registry.snapshot()["counters"]["attempts_recorded_total"] == 0


def test_cleanup_prunes_expired_state(tracker, clock):
    _fail(tracker, 5)
    _fail(tracker, 2, email="b@x.com", ip="2.2.2.2")
    assert tracker.stats()["email"] == {"tracked_identifiers": 2, "active_lockouts": 1}

    clock.advance(FIFTEEN_MINUTES)
    # 7 attempts in each dimension plus one email lockout.
    assert tracker.cleanup() == 15
    assert tracker.stats()["email"] == {"tracked_identifiers": 0, "active_lockouts": 0}
    assert tracker.cleanup() == 0


def test_metrics_follow_transitions(tracker, registry):
    _fail(tracker, 5)
    tracker.check("a@x.com", "1.2.3.4")
    tracker.clear("a@x.com", "1.2.3.4")

    snapshot = registry.snapshot()
    assert snapshot["counters"]["attempts_recorded_total"] == 5
    assert snapshot["counters"]["failed_attempts_total"] == 5
    assert snapshot["counters"]["lockouts_total"] == 1
    assert snapshot["counters"]["blocked_checks_total"] == 1
    assert snapshot["counters"]["lockouts_cleared_total"] == 1
    assert snapshot["gauges"]["active_lockouts"] == 0


def test_concurrent_records_are_not_lost(clock, registry):
    tracker = LoginAttemptTracker(
        TrackerConfig(max_attempts_per_email=1000, max_attempts_per_ip=1000),
        clock=clock,
        registry=registry,
    )

    def worker():
        for _ in range(50):
            tracker.record("a@x.com", "1.2.3.4", False)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert tracker.check("a@x.com", "1.2.3.4").remaining_attempts == 1000 - 400
