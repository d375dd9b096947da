"""Mail transport port — abstract interface for email dispatch."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class MailMessage:
    recipients: list[str]
    subject: str
    html_body: str
    headers: dict[str, str] = field(default_factory=dict)
    attachments: list[str] = field(default_factory=list)  # local file paths


class MailTransport(ABC):
    """Abstract interface for mail transports."""

    @abstractmethod
    def send(self, message: MailMessage) -> bool:
        """Hand a message over for delivery.

        Returns:
            True only when the transport accepted the message. Anything else,
            including a raised exception, is a failed delivery.
        """
        ...
