"""EmailTemplate aggregate — staff-maintained emails bound to a status.

A template whose ``operational_status`` is set is sent automatically every
time an order enters that status. Subject, recipients and body may all use
placeholders.
"""

import re
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, String, Text
from protean.utils.globals import current_domain

from delivery.domain import delivery
from delivery.status.status import OperationalStatus, normalize


@delivery.aggregate
class EmailTemplate:
    name = String(required=True, max_length=190)
    subject = String(required=True, max_length=255)
    recipients = Text()  # comma or semicolon separated
    body_html = Text(required=True)
    active = Boolean(default=True)
    operational_status = String(max_length=50, choices=OperationalStatus)
    created_at = DateTime()

    @classmethod
    def create(cls, name, subject, body_html, recipients="", operational_status=None, active=True):
        return cls(
            name=name,
            subject=subject,
            body_html=body_html,
            recipients=recipients,
            operational_status=normalize(operational_status).value if operational_status else None,
            active=active,
            created_at=datetime.now(UTC),
        )


def split_recipients(raw) -> list[str]:
    """Addresses from a comma/semicolon separated string or a list, blanks dropped."""
    if not raw:
        return []
    parts = raw if isinstance(raw, (list, tuple)) else re.split(r"[;,]", str(raw))
    return [part.strip() for part in parts if part and part.strip()]


def templates_for_status(status) -> list[EmailTemplate]:
    """Active templates triggered by ``status``, in creation order."""
    key = normalize(status).value
    templates = (
        current_domain.repository_for(EmailTemplate)
        ._dao.query.filter(operational_status=key, active=True)
        .all()
        .items
    )
    return sorted(templates, key=lambda template: template.created_at or datetime.min.replace(tzinfo=UTC))
