"""Runtime settings for the delivery domain, read from the environment.

Protean's own configuration (databases, brokers, processing mode) lives in
``domain.toml``; this module covers everything the delivery workflow needs
on top of it.
"""

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


@dataclass(frozen=True)
class DeliverySettings:
    """Immutable settings snapshot handed to the workflow and its collaborators."""

    site_url: str = "https://tradutema.com"
    token_param: str = "token"
    admin_email: str = "pedidos@tradutema.com"
    bcc_address: str = "copias@tradutema.com"
    mail_from: str = "Tradutema <pedidos@tradutema.com>"
    dashboard_url: str = "https://tradutema.com/wp-admin/admin.php?page=tradutema-crm"
    max_upload_bytes: int = 64 * 1024 * 1024
    drive_timeout: int = 30
    claim_timeout: int = 900
    drive_access_token: str | None = None
    mail_transport: str | None = None
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True

    @classmethod
    def from_env(cls) -> "DeliverySettings":
        defaults = cls()
        return cls(
            site_url=os.getenv("SITE_URL", defaults.site_url).rstrip("/"),
            token_param=os.getenv("DELIVERY_TOKEN_PARAM", defaults.token_param),
            admin_email=os.getenv("DELIVERY_ADMIN_EMAIL", defaults.admin_email),
            bcc_address=os.getenv("MAIL_BCC_ADDRESS", defaults.bcc_address),
            mail_from=os.getenv("MAIL_FROM", defaults.mail_from),
            dashboard_url=os.getenv("DELIVERY_DASHBOARD_URL", defaults.dashboard_url),
            max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", defaults.max_upload_bytes),
            drive_timeout=_env_int("DRIVE_API_TIMEOUT", defaults.drive_timeout),
            claim_timeout=_env_int("TOKEN_CLAIM_TIMEOUT", defaults.claim_timeout),
            drive_access_token=os.getenv("DRIVE_ACCESS_TOKEN") or None,
            mail_transport=os.getenv("MAIL_TRANSPORT") or None,
            smtp_host=os.getenv("SMTP_HOST") or None,
            smtp_port=_env_int("SMTP_PORT", defaults.smtp_port),
            smtp_username=os.getenv("SMTP_USERNAME") or None,
            smtp_password=os.getenv("SMTP_PASSWORD") or None,
            smtp_use_tls=_env_bool("SMTP_USE_TLS", defaults.smtp_use_tls),
        )


_current_settings: DeliverySettings | None = None


def get_settings() -> DeliverySettings:
    """Return the active settings, loading them from the environment once."""
    global _current_settings
    if _current_settings is None:
        _current_settings = DeliverySettings.from_env()
    return _current_settings


def set_settings(settings: DeliverySettings) -> None:
    """Override the active settings (useful for tests)."""
    global _current_settings
    _current_settings = settings


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global _current_settings
    _current_settings = None
