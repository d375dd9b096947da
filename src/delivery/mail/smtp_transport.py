"""SMTP mail transport.

``Bcc`` is never written into the message headers: its addresses are added
to the SMTP envelope only, so other recipients cannot see them.
"""

import mimetypes
import os
import smtplib
from email.message import EmailMessage
from email.utils import getaddresses

import structlog

from delivery.errors import MailDeliveryFailed
from delivery.mail.port import MailMessage, MailTransport

logger = structlog.get_logger(__name__)


class SmtpMailTransport(MailTransport):
    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        sender: str = "",
        timeout: int = 30,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    def build(self, message: MailMessage) -> tuple[EmailMessage, list[str]]:
        """MIME message plus the full envelope recipient list."""
        email = EmailMessage()
        email["Subject"] = message.subject
        email["From"] = message.headers.get("From") or self.sender
        email["To"] = ", ".join(message.recipients)

        hidden = []
        for name, value in message.headers.items():
            if name.lower() == "from":
                continue
            if name.lower() == "bcc":
                hidden.extend(address for _, address in getaddresses([value]) if address)
                continue
            email[name] = value

        email.set_content("Este mensaje requiere un cliente de correo compatible con HTML.")
        email.add_alternative(message.html_body, subtype="html")

        for path in message.attachments:
            mime_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
            maintype, subtype = mime_type.split("/", 1)
            with open(path, "rb") as handle:
                email.add_attachment(
                    handle.read(),
                    maintype=maintype,
                    subtype=subtype,
                    filename=os.path.basename(path),
                )

        envelope = [address for _, address in getaddresses(message.recipients) if address]
        envelope.extend(address for address in hidden if address not in envelope)
        return email, envelope

    def send(self, message: MailMessage) -> bool:
        try:
            email, envelope = self.build(message)
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                refused = smtp.send_message(email, to_addrs=envelope)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("SMTP delivery failed", host=self.host, subject=message.subject, error=str(exc))
            raise MailDeliveryFailed(str(exc)) from exc

        if refused:
            logger.warning("SMTP refused some recipients", refused=sorted(refused))
        return len(refused) < len(envelope)
