"""Mail transport factory.

Provides get_transport() / set_transport() to swap implementations:
- FakeMailTransport for development and testing
- SmtpMailTransport when ``MAIL_TRANSPORT=smtp`` or ``SMTP_HOST`` is set
"""

from delivery.config import get_settings
from delivery.mail.fake_transport import FakeMailTransport
from delivery.mail.port import MailMessage, MailTransport
from delivery.mail.smtp_transport import SmtpMailTransport

_current_transport: MailTransport | None = None


def _build_transport() -> MailTransport:
    settings = get_settings()
    choice = (settings.mail_transport or ("smtp" if settings.smtp_host else "fake")).lower()

    if choice == "smtp":
        if not settings.smtp_host:
            raise ValueError("MAIL_TRANSPORT=smtp requires SMTP_HOST")
        return SmtpMailTransport(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            sender=settings.mail_from,
        )
    if choice == "fake":
        return FakeMailTransport()
    raise ValueError(f"Unknown mail transport: {choice}")


def get_transport() -> MailTransport:
    """Return the current mail transport."""
    global _current_transport
    if _current_transport is None:
        _current_transport = _build_transport()
    return _current_transport


def set_transport(transport: MailTransport) -> None:
    """Override the active mail transport (useful for tests)."""
    global _current_transport
    _current_transport = transport


def reset_transport() -> None:
    """Reset to default transport."""
    global _current_transport
    _current_transport = None


__all__ = ["MailMessage", "MailTransport", "get_transport", "set_transport", "reset_transport"]
