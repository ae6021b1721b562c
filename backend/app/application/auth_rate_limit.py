"""In-process throttle for failed login attempts, keyed by client IP and email."""
import hashlib
import logging
import time
from collections import defaultdict
from typing import DefaultDict, List

from ..errors import TooManyRequestsError

LOGIN_RATE_LIMIT_MAX_ATTEMPTS = 5
LOGIN_RATE_LIMIT_WINDOW_SECONDS = 60
RATE_LIMIT_MESSAGE = "Too many login attempts, try again later"
IDENTIFIER_HASH_LENGTH = 64
IP_FALLBACK_LENGTH = 8

logger = logging.getLogger("rbac.auth.rate_limit")


class SoftRateLimiter:
    def __init__(self, max_attempts: int, window_seconds: int) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self._failures: DefaultDict[str, List[float]] = defaultdict(list)

    def _recent(self, key: str, now: float) -> List[float]:
        cutoff = now - self.window_seconds
        recent = [ts for ts in self._failures.get(key, []) if ts >= cutoff]
        if recent:
            self._failures[key] = recent
        else:
            self._failures.pop(key, None)
        return recent

    def is_limited(self, key: str, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return len(self._recent(key, current)) >= self.max_attempts

    def record_failure(self, key: str, now: float | None = None) -> None:
        current = time.time() if now is None else now
        recent = self._recent(key, current)
        recent.append(current)
        self._failures[key] = recent

    def reset(self, key: str) -> None:
        self._failures.pop(key, None)

    def clear(self) -> None:
        self._failures.clear()


def login_key(email: str, client_ip: str | None) -> str:
    if not email:
        raise ValueError("email is required for rate limiting")
    email_hash = hashlib.sha256(email.lower().encode()).hexdigest()
    ip_component = client_ip or f"unknown-ip-{email_hash[:IP_FALLBACK_LENGTH]}"
    return f"login:{ip_component}:{email_hash[:IDENTIFIER_HASH_LENGTH]}"


login_rate_limiter = SoftRateLimiter(
    max_attempts=LOGIN_RATE_LIMIT_MAX_ATTEMPTS,
    window_seconds=LOGIN_RATE_LIMIT_WINDOW_SECONDS,
)


def check_login_rate_limit(email: str, client_ip: str | None = None) -> str:
    key = login_key(email, client_ip)
    if login_rate_limiter.is_limited(key):
        logger.warning("login_rate_limited client_ip=%s", client_ip)
        raise TooManyRequestsError(RATE_LIMIT_MESSAGE)
    return key


def record_login_failure(key: str) -> None:
    login_rate_limiter.record_failure(key)


def reset_login_limit(key: str) -> None:
    login_rate_limiter.reset(key)
