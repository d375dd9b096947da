"""Audit log — append-only record of what happened to each order.

Entries are written once and never updated or deleted. The admin dashboard
renders them from ``payload`` (JSON), so payload shapes are stable:

    estado_operacional            {"previous", "current", "previous_label", "current_label"}
    order_update                  {"changes": [FieldChange...]}
    files_upload                  {"files", "file_ids", "folder_id", "token"}
    internal_provider_completion  {"provider_id", "token"}
    email                         {"recipients", "subject", "sent"}
"""

import json
from datetime import UTC, datetime
from enum import Enum

import structlog
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from delivery.domain import delivery

logger = structlog.get_logger(__name__)

SYSTEM_ACTOR = "system"


class AuditEventType(Enum):
    EMAIL = "email"
    OPERATIONAL_STATUS = "estado_operacional"
    ORDER_UPDATE = "order_update"
    FILES_UPLOAD = "files_upload"
    INTERNAL_PROVIDER_COMPLETION = "internal_provider_completion"


@delivery.aggregate
class AuditEvent:
    order_id = Identifier(required=True)
    event_type = String(required=True, max_length=50, choices=AuditEventType)
    detail = String(max_length=255)
    payload = Text()  # JSON
    actor = String(max_length=100, default=SYSTEM_ACTOR)
    created_at = DateTime(required=True)

    @property
    def data(self) -> dict:
        return json.loads(self.payload) if self.payload else {}


class AuditLog:
    """Writes and reads audit entries. Safe for concurrent writers: entries are independent rows."""

    def record(
        self,
        order_id,
        event_type: AuditEventType,
        detail: str,
        payload: dict | None = None,
        actor: str | None = None,
    ) -> AuditEvent:
        entry = AuditEvent(
            order_id=str(order_id),
            event_type=event_type.value,
            detail=detail[:255] if detail else detail,
            payload=json.dumps(payload, default=str) if payload is not None else None,
            actor=actor or SYSTEM_ACTOR,
            created_at=datetime.now(UTC),
        )
        current_domain.repository_for(AuditEvent).add(entry)

        logger.info(
            "Audit event recorded",
            order_id=str(order_id),
            event_type=event_type.value,
            detail=entry.detail,
        )
        return entry

    def for_order(self, order_id, event_type: AuditEventType | None = None) -> list[AuditEvent]:
        """Entries of one order, oldest first, optionally filtered by type."""
        filters = {"order_id": str(order_id)}
        if event_type is not None:
            filters["event_type"] = event_type.value
        entries = current_domain.repository_for(AuditEvent)._dao.query.filter(**filters).all().items
        return sorted(entries, key=lambda entry: entry.created_at)

    def record_transition(self, order_id, change, actor: str | None = None) -> AuditEvent:
        """Audit a ``StatusTransition`` as an ``estado_operacional`` entry."""
        payload = change.as_payload()
        return self.record(
            order_id,
            AuditEventType.OPERATIONAL_STATUS,
            f"Estado operacional: {payload['previous_label']} → {payload['current_label']}",
            payload,
            actor=actor,
        )
