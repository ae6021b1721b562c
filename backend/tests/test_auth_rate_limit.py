import pytest

from app.application.auth_rate_limit import (
    LOGIN_RATE_LIMIT_MAX_ATTEMPTS,
    SoftRateLimiter,
    check_login_rate_limit,
    login_key,
    record_login_failure,
    reset_login_limit,
)
from app.errors import TooManyRequestsError


def test_limiter_counts_failures_inside_window() -> None:
    limiter = SoftRateLimiter(max_attempts=2, window_seconds=60)

    limiter.record_failure("k", now=100.0)
    assert not limiter.is_limited("k", now=100.0)
    limiter.record_failure("k", now=110.0)
    assert limiter.is_limited("k", now=120.0)
    # The first failure has left the window
    assert not limiter.is_limited("k", now=161.0)


def test_limiter_reset_forgets_key() -> None:
    limiter = SoftRateLimiter(max_attempts=1, window_seconds=60)
    limiter.record_failure("k", now=100.0)

    limiter.reset("k")

    assert not limiter.is_limited("k", now=100.0)


def test_login_key_is_case_insensitive_and_hides_email() -> None:
    key = login_key("Grace@Example.com", "10.0.0.1")

    assert key == login_key("grace@example.com", "10.0.0.1")
    assert "grace" not in key
    assert key.startswith("login:10.0.0.1:")
    assert login_key("grace@example.com", None).startswith("login:unknown-ip-")
    with pytest.raises(ValueError):
        login_key("", "10.0.0.1")


def test_login_limit_blocks_after_max_failures() -> None:
    key = check_login_rate_limit("grace@example.com", "10.0.0.1")
    for _ in range(LOGIN_RATE_LIMIT_MAX_ATTEMPTS):
        record_login_failure(key)

    with pytest.raises(TooManyRequestsError):
        check_login_rate_limit("grace@example.com", "10.0.0.1")
    # Other clients are unaffected
    check_login_rate_limit("grace@example.com", "10.0.0.2")

    reset_login_limit(key)
    check_login_rate_limit("grace@example.com", "10.0.0.1")
