"""Fake mail transport — records sent messages for testing."""

from delivery.mail.port import MailMessage, MailTransport


class FakeMailTransport(MailTransport):
    """Mail transport that records messages in memory for test assertions."""

    def __init__(self):
        self.sent: list[MailMessage] = []
        self.attempts: list[MailMessage] = []
        self.should_succeed = True
        self.failure_reason: str | None = None

    def configure(self, should_succeed: bool = True, failure_reason: str | None = None):
        """Configure the fake behavior. With a ``failure_reason`` a failing send raises instead of returning False."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def send(self, message: MailMessage) -> bool:
        self.attempts.append(message)
        if not self.should_succeed:
            if self.failure_reason:
                raise RuntimeError(self.failure_reason)
            return False

        self.sent.append(message)
        return True

    def sent_to(self, address: str) -> list[MailMessage]:
        return [message for message in self.sent if address in message.recipients]

    def reset(self):
        """Clear sent messages (useful between tests)."""
        self.sent.clear()
        self.attempts.clear()
        self.should_succeed = True
        self.failure_reason = None
