import hashlib
import hmac
import secrets

from ..config import settings

RESET_TOKEN_BYTES = 32


def generate_reset_token() -> str:
    return secrets.token_hex(RESET_TOKEN_BYTES)


def digest_reset_token(token: str, secret_key: str | None = None) -> str:
    """Keyed digest stored in place of the emailed token."""
    key = (secret_key or settings.secret_key).encode("utf-8")
    return hmac.new(key, token.encode("utf-8"), hashlib.sha256).hexdigest()
