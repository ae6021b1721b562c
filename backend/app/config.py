import json
import os
import threading
from urllib.parse import urlparse

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off"}
LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _parse_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, str(default)).strip().lower()
    if raw in TRUE_VALUES:
        return True
    if raw in FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean value")


def _parse_int(name: str, default: int, *, minimum: int) -> int:
    raw = os.getenv(name, str(default)).strip()
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < minimum:
        raise ValueError(f"{name} must be greater than or equal to {minimum}")
    return value


def _parse_origins(raw: str) -> list[str]:
    # Accept both CSV and JSON array formats
    if raw.startswith("["):
        try:
            parsed_list = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"ALLOWED_ORIGINS JSON is malformed: {exc}") from exc
        if not isinstance(parsed_list, list):
            raise ValueError("ALLOWED_ORIGINS JSON must be an array")
        origins = [
            origin.strip()
            for origin in parsed_list
            if isinstance(origin, str) and origin.strip()
        ]
    else:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]

    if not origins:
        raise ValueError("ALLOWED_ORIGINS must contain at least one origin")
    if "*" in origins:
        raise ValueError(
            "ALLOWED_ORIGINS cannot contain '*' when credentialed requests are used"
        )
    for origin in origins:
        parsed = urlparse(origin)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError(
                "ALLOWED_ORIGINS must contain valid http/https origins with host"
            )
    return origins


class Settings(BaseModel):
    app_name: str = Field(default="RBAC Backend")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    database_url: str = Field(default="")
    allowed_origins: list[str] = Field(default_factory=list)
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_pool_recycle: int = Field(default=1800)
    db_pool_pre_ping: bool = Field(default=True)
    secret_key: str | None = Field(default=None)
    algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=1440)
    reset_token_expire_minutes: int = Field(default=30)
    auth_cookie_name: str = Field(default="token")
    cookie_secure: bool = Field(default=False)
    frontend_url: str = Field(default="http://localhost:3000")
    smtp_host: str | None = Field(default=None)
    smtp_port: int = Field(default=587)
    smtp_username: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    sender_address: str = Field(default="no-reply@localhost")
    cloudinary_cloud_name: str | None = Field(default=None)
    cloudinary_api_key: str | None = Field(default=None)
    cloudinary_api_secret: str | None = Field(default=None)
    avatar_folder: str = Field(default="avatars")

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls.model_fields

        secret_key = os.getenv("SECRET_KEY", "").strip()
        if not secret_key:
            raise ValueError("SECRET_KEY environment variable must be set")

        raw_allowed_origins = os.getenv("ALLOWED_ORIGINS", "").strip()
        if not raw_allowed_origins:
            raise ValueError("ALLOWED_ORIGINS environment variable must be set")
        allowed_origins = _parse_origins(raw_allowed_origins)

        database_url = os.getenv("DATABASE_URL", "").strip()
        if not database_url:
            raise ValueError("DATABASE_URL environment variable must be set")
        parsed_db = urlparse(database_url)
        if parsed_db.scheme != "postgresql+asyncpg":
            raise ValueError("DATABASE_URL must start with 'postgresql+asyncpg://'")
        if not parsed_db.hostname:
            raise ValueError("DATABASE_URL must include hostname")

        log_level = os.getenv("LOG_LEVEL", defaults["log_level"].default).strip().upper()
        if log_level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(sorted(LOG_LEVELS))}")

        frontend_url = os.getenv("FRONTEND_URL", defaults["frontend_url"].default).strip()
        parsed_frontend = urlparse(frontend_url)
        if parsed_frontend.scheme not in {"http", "https"} or not parsed_frontend.netloc:
            raise ValueError("FRONTEND_URL must be a valid http/https URL")

        return cls(
            app_name=os.getenv("APP_NAME", defaults["app_name"].default),
            debug=_parse_bool("DEBUG", False),
            log_level=log_level,
            database_url=database_url,
            allowed_origins=allowed_origins,
            db_pool_size=_parse_int("DB_POOL_SIZE", defaults["db_pool_size"].default, minimum=1),
            db_max_overflow=_parse_int(
                "DB_MAX_OVERFLOW", defaults["db_max_overflow"].default, minimum=0
            ),
            db_pool_recycle=_parse_int(
                "DB_POOL_RECYCLE", defaults["db_pool_recycle"].default, minimum=1
            ),
            db_pool_pre_ping=_parse_bool(
                "DB_POOL_PRE_PING", defaults["db_pool_pre_ping"].default
            ),
            secret_key=secret_key,
            algorithm=os.getenv("ALGORITHM", defaults["algorithm"].default),
            access_token_expire_minutes=_parse_int(
                "ACCESS_TOKEN_EXPIRE_MINUTES",
                defaults["access_token_expire_minutes"].default,
                minimum=1,
            ),
            reset_token_expire_minutes=_parse_int(
                "RESET_TOKEN_EXPIRE_MINUTES",
                defaults["reset_token_expire_minutes"].default,
                minimum=1,
            ),
            auth_cookie_name=os.getenv(
                "AUTH_COOKIE_NAME", defaults["auth_cookie_name"].default
            ).strip(),
            cookie_secure=_parse_bool("COOKIE_SECURE", defaults["cookie_secure"].default),
            frontend_url=frontend_url.rstrip("/"),
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=_parse_int("SMTP_PORT", defaults["smtp_port"].default, minimum=1),
            smtp_username=os.getenv("SMTP_USERNAME") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            sender_address=os.getenv(
                "SENDER_ADDRESS", defaults["sender_address"].default
            ).strip(),
            cloudinary_cloud_name=os.getenv("CLOUDINARY_CLOUD_NAME") or None,
            cloudinary_api_key=os.getenv("CLOUDINARY_API_KEY") or None,
            cloudinary_api_secret=os.getenv("CLOUDINARY_API_SECRET") or None,
            avatar_folder=os.getenv("AVATAR_FOLDER", defaults["avatar_folder"].default).strip(),
        )


# Settings are built on first access so importing this module never validates env
_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Return the process-wide settings, building them on first access.

    Raises:
        ValueError: If required environment variables are missing or invalid
    """
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    with _settings_lock:
        if _settings_instance is None:
            _settings_instance = Settings.from_env()

    return _settings_instance


class _SettingsProxy:
    """Proxy to defer settings creation until first attribute access."""

    def __getattr__(self, name: str):
        return getattr(get_settings(), name)


settings = _SettingsProxy()  # type: ignore[assignment]
