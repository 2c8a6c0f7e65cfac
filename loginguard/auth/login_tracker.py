"""Login brute-force protection.

Tracks login attempts per email and per client IP in two independent
in-memory sliding windows. Once the failures inside the window reach the
configured maximum for a dimension, that identifier is locked out for a
fixed duration. A successful login resets both identifiers.

State is process-local: a restart forgets every counter and lockout, and
each instance of a horizontally scaled deployment keeps its own view.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Optional

from loginguard.core.errors import ValidationError
from loginguard.core.logging import get_logger
from loginguard.core.metrics import MetricsRegistry, metrics

logger = get_logger(__name__)

EMAIL_LOCKOUT_REASON = "Too many failed attempts for this email"
IP_LOCKOUT_REASON = "Too many failed attempts from this IP"
LOGIN_SUCCESS_MESSAGE = "Login successful, attempts cleared"


def hash_identifier(identifier: str) -> str:
    """Map a raw identifier to a storage key without keeping the raw value.

    31-multiplier string hash over UTF-16 code units, wrapped to a signed
    32-bit integer. Not collision resistant; keys only need to be stable.
    """
    value = 0
    for unit in _utf16_units(identifier):
        value = ((value << 5) - value + unit) & 0xFFFFFFFF
    if value & 0x80000000:
        value -= 1 << 32
    return f"id_{value:x}"


def _utf16_units(text: str):
    for char in text:
        code_point = ord(char)
        if code_point > 0xFFFF:
            code_point -= 0x10000
            yield 0xD800 + (code_point >> 10)
            yield 0xDC00 + (code_point & 0x3FF)
        else:
            yield code_point


def normalize_email(email: str) -> str:
    return email.strip().lower()


@dataclass(frozen=True)
class TrackerConfig:
    """Lockout policy for both dimensions."""

    max_attempts_per_email: int = 5
    max_attempts_per_ip: int = 10
    lockout_seconds: int = 15 * 60
    attempt_window_seconds: int = 15 * 60
    # Period of the background sweep; requests also sweep on access.
    cleanup_interval_seconds: int = 60 * 60


@dataclass(frozen=True)
class LoginAttempt:
    email: str
    ip: str
    timestamp: float
    success: bool
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class LockoutStatus:
    """Outcome of a tracker operation.

    ``lockout_until`` is an epoch timestamp in seconds and is only set when
    ``locked`` is true. ``message`` replaces ``remaining_attempts`` after a
    successful login.
    """

    locked: bool
    lockout_until: Optional[float] = None
    remaining_attempts: Optional[int] = None
    reason: Optional[str] = None
    message: Optional[str] = None


class _Dimension:
    """Attempt buckets and lockouts for one kind of identifier."""

    def __init__(self, name: str, max_attempts: int, reason: str):
        self.name = name
        self.max_attempts = max_attempts
        self.reason = reason
        # key -> chronological attempts
        self.buckets: dict[str, deque[LoginAttempt]] = {}
        # key -> lockout-until timestamp
        self.lockouts: dict[str, float] = {}

    def _prune(self, key: str, cutoff: float) -> int:
        bucket = self.buckets.get(key)
        if bucket is None:
            return 0
        pruned = 0
        while bucket and bucket[0].timestamp <= cutoff:
            bucket.popleft()
            pruned += 1
        if not bucket:
            del self.buckets[key]
        return pruned

    def failures(self, key: str, now: float, window: float) -> int:
        self._prune(key, now - window)
        bucket = self.buckets.get(key, ())
        return sum(1 for attempt in bucket if not attempt.success)

    def append(self, key: str, attempt: LoginAttempt, now: float, window: float) -> int:
        """Add an attempt and return the failures now inside the window."""
        self._prune(key, now - window)
        self.buckets.setdefault(key, deque()).append(attempt)
        return self.failures(key, now, window)

    def locked_until(self, key: str, now: float) -> Optional[float]:
        lockout_until = self.lockouts.get(key)
        if lockout_until is not None and now < lockout_until:
            return lockout_until
        # Clear expired lockout
        if lockout_until is not None:
            self.lockouts.pop(key, None)
        return None

    def lock(self, key: str, until: float) -> None:
        self.lockouts[key] = until

    def reset(self, key: str) -> bool:
        """Forget a key. Returns True if it was locked."""
        self.buckets.pop(key, None)
        return self.lockouts.pop(key, None) is not None

    def sweep(self, now: float, window: float) -> int:
        cutoff = now - window
        pruned = 0
        for key in list(self.buckets):
            pruned += self._prune(key, cutoff)
        for key, lockout_until in list(self.lockouts.items()):
            if now >= lockout_until:
                del self.lockouts[key]
                pruned += 1
        return pruned


class LoginAttemptTracker:
    """In-memory login attempt tracker with temporary lockout.

    All state changes happen under a single lock, so one instance can be
    shared by every request handler of the process.
    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        clock: Callable[[], float] = time.time,
        registry: MetricsRegistry | None = None,
    ):
        self.config = config or TrackerConfig()
        self._clock = clock
        self.metrics = registry or metrics
        self._lock = threading.Lock()
        self._by_email = _Dimension(
            "email", self.config.max_attempts_per_email, EMAIL_LOCKOUT_REASON
        )
        self._by_ip = _Dimension("ip", self.config.max_attempts_per_ip, IP_LOCKOUT_REASON)

    @property
    def _window(self) -> float:
        return float(self.config.attempt_window_seconds)

    def _remaining(self, email_failures: int, ip_failures: int) -> int:
        return max(
            0,
            min(
                self._by_email.max_attempts - email_failures,
                self._by_ip.max_attempts - ip_failures,
            ),
        )

    def check(self, email: Optional[str], ip: str) -> LockoutStatus:
        """Report whether a login from this email/IP pair should be blocked."""
        email_key = hash_identifier(normalize_email(email)) if email else None
        ip_key = hash_identifier(ip)

        with self._lock:
            now = self._clock()
            self._sweep(now)

            email_until = self._by_email.locked_until(email_key, now) if email_key else None
            ip_until = self._by_ip.locked_until(ip_key, now)

            if email_until is not None or ip_until is not None:
                self.metrics.increment("blocked_checks_total")
                return LockoutStatus(
                    locked=True,
                    lockout_until=max(email_until or 0.0, ip_until or 0.0),
                    reason=self._by_email.reason if email_until is not None else self._by_ip.reason,
                )

            email_failures = (
                self._by_email.failures(email_key, now, self._window) if email_key else 0
            )
            ip_failures = self._by_ip.failures(ip_key, now, self._window)
            return LockoutStatus(
                locked=False,
                remaining_attempts=self._remaining(email_failures, ip_failures),
            )

    def record(
        self,
        email: Optional[str],
        ip: str,
        success: bool,
        user_agent: Optional[str] = None,
    ) -> LockoutStatus:
        """Record one login attempt under both the email and the IP."""
        if not email or not email.strip():
            raise ValidationError("Email is required")

        email = normalize_email(email)
        email_key = hash_identifier(email)
        ip_key = hash_identifier(ip)

        with self._lock:
            now = self._clock()
            self._sweep(now)

            attempt = LoginAttempt(
                email=email, ip=ip, timestamp=now, success=success, user_agent=user_agent
            )
            email_failures = self._by_email.append(email_key, attempt, now, self._window)
            ip_failures = self._by_ip.append(ip_key, attempt, now, self._window)
            self.metrics.increment("attempts_recorded_total")

            if success:
                self._reset(email_key, ip_key)
                logger.info(
                    "Login succeeded, attempts cleared",
                    data={"email_id": email_key, "ip_id": ip_key},
                )
                self._refresh_gauges()
                return LockoutStatus(locked=False, message=LOGIN_SUCCESS_MESSAGE)

            self.metrics.increment("failed_attempts_total")

            # The email threshold wins; the IP is not evaluated in the same call.
            for dimension, key, failures in (
                (self._by_email, email_key, email_failures),
                (self._by_ip, ip_key, ip_failures),
            ):
                if failures >= dimension.max_attempts:
                    lockout_until = now + self.config.lockout_seconds
                    dimension.lock(key, lockout_until)
                    self.metrics.increment("lockouts_total")
                    logger.warning(
                        "Login lockout triggered",
                        data={
                            "dimension": dimension.name,
                            "identifier": key,
                            "failures": failures,
                            "lockout_seconds": self.config.lockout_seconds,
                        },
                    )
                    self._refresh_gauges()
                    return LockoutStatus(
                        locked=True,
                        lockout_until=lockout_until,
                        reason=dimension.reason,
                    )

            self._refresh_gauges()
            return LockoutStatus(
                locked=False,
                remaining_attempts=self._remaining(email_failures, ip_failures),
            )

    def clear(self, email: Optional[str], ip: str) -> None:
        """Forget attempts and lockouts for the email (if given) and the IP."""
        email_key = hash_identifier(normalize_email(email)) if email else None
        ip_key = hash_identifier(ip)

        with self._lock:
            self._reset(email_key, ip_key)
            self._refresh_gauges()
        logger.info("Lockout cleared", data={"email_id": email_key, "ip_id": ip_key})

    def cleanup(self) -> int:
        """Drop attempts outside the window and expired lockouts."""
        with self._lock:
            return self._sweep(self._clock())

    def stats(self) -> dict[str, dict[str, int]]:
        """Counts of tracked identifiers and active lockouts per dimension."""
        with self._lock:
            return {
                dimension.name: {
                    "tracked_identifiers": len(dimension.buckets),
                    "active_lockouts": len(dimension.lockouts),
                }
                for dimension in (self._by_email, self._by_ip)
            }

    def _reset(self, email_key: Optional[str], ip_key: str) -> None:
        cleared = 0
        if email_key:
            cleared += self._by_email.reset(email_key)
        cleared += self._by_ip.reset(ip_key)
        if cleared:
            self.metrics.increment("lockouts_cleared_total", cleared)

    def _sweep(self, now: float) -> int:
        pruned = self._by_email.sweep(now, self._window) + self._by_ip.sweep(now, self._window)
        if pruned:
            self.metrics.increment("cleanup_pruned_total", pruned)
            self._refresh_gauges()
        return pruned

    def _refresh_gauges(self) -> None:
        dimensions = (self._by_email, self._by_ip)
        self.metrics.set_gauge(
            "tracked_identifiers", sum(len(d.buckets) for d in dimensions)
        )
        self.metrics.set_gauge("active_lockouts", sum(len(d.lockouts) for d in dimensions))
