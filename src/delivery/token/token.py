"""UploadToken aggregate — a single-use credential for one delivery.

A token binds an opaque url-safe string to one order. It is redeemed at
most once: after ``used`` is set it can never be claimed again.

Lifecycle:
    issued (used=False) → claimed (claimed_at set) → used
    claimed → released (claimed_at cleared) → claimed ...

A claim marks a redemption in flight so that a duplicate submission is
rejected while files are still being uploaded. Claims older than the
configured timeout are considered abandoned.
"""

import json
from datetime import UTC, datetime, timedelta

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text

from delivery.domain import delivery


@delivery.aggregate
class UploadToken:
    token = String(identifier=True, max_length=128)
    order_id = Identifier(required=True)
    created_at = DateTime(required=True)
    used = Boolean(default=False)
    used_at = DateTime()
    files = Text()  # JSON list of uploaded file names
    claimed_at = DateTime()

    @classmethod
    def issue(cls, token: str, order_id) -> "UploadToken":
        return cls(
            token=token,
            order_id=str(order_id),
            created_at=datetime.now(UTC),
            used=False,
        )

    @property
    def file_names(self) -> list[str]:
        return json.loads(self.files) if self.files else []

    def is_claimed(self, now: datetime, timeout_seconds: int) -> bool:
        if self.claimed_at is None:
            return False
        claimed_at = self.claimed_at
        if claimed_at.tzinfo is None:
            claimed_at = claimed_at.replace(tzinfo=UTC)
        return now - claimed_at < timedelta(seconds=timeout_seconds)

    def claim(self, now: datetime, timeout_seconds: int) -> None:
        if self.used:
            raise ValidationError({"used": ["Token already used"]})
        if self.is_claimed(now, timeout_seconds):
            raise ValidationError({"claimed_at": ["Token redemption already in progress"]})
        self.claimed_at = now

    def release(self) -> None:
        self.claimed_at = None

    def mark_used(self, file_names: list[str]) -> None:
        """Consume the token. Marking an already-used token again keeps the first record."""
        if self.used:
            return
        self.used = True
        self.used_at = datetime.now(UTC)
        self.files = json.dumps(list(file_names))
        self.claimed_at = None
