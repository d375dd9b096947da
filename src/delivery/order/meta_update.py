"""Staff edits of the order meta bag — command and handler.

Each edit is audited twice over: an ``order_update`` entry listing every
tracked field that changed, and an ``estado_operacional`` entry when the
operational status moved. Entering a status fires the email templates
bound to it.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text

from delivery.audit.audit import AuditEventType, AuditLog
from delivery.domain import delivery
from delivery.notification import new_dispatcher
from delivery.order import meta
from delivery.order.order import Order
from delivery.order.store import OrderStore
from delivery.provider.store import ProviderStore
from delivery.status.changes import describe_changes
from delivery.status.status import transition

logger = structlog.get_logger(__name__)


@delivery.command(part_of="Order")
class UpdateOrderMeta:
    order_id = Identifier(required=True)
    changes = Text(required=True)  # JSON: {meta key: value}
    actor = String(max_length=100)


@delivery.command_handler(part_of=Order)
class UpdateOrderMetaHandler:
    @handle(UpdateOrderMeta)
    def update_order_meta(self, command):
        changes = json.loads(command.changes)
        unknown = sorted(set(changes) - set(meta.EDITABLE_KEYS))
        if unknown:
            raise ValidationError({"changes": [f"Unknown meta keys: {', '.join(unknown)}"]})
        origin = changes.get(meta.ORIGIN)
        if origin and origin not in meta.ORIGINS:
            raise ValidationError({meta.ORIGIN: [f"Unknown order origin: {origin}"]})

        orders = OrderStore()
        providers = ProviderStore()
        audit = AuditLog()

        before, after = orders.update_meta(command.order_id, changes)

        field_changes = describe_changes(before, after, providers.name_of)
        if field_changes:
            audit.record(
                command.order_id,
                AuditEventType.ORDER_UPDATE,
                "Pedido actualizado: " + ", ".join(change.label for change in field_changes),
                {"changes": [change.as_payload() for change in field_changes]},
                actor=command.actor,
            )

        status_change = transition(before.get(meta.STATUS), after.get(meta.STATUS))
        if status_change is not None:
            audit.record_transition(command.order_id, status_change, actor=command.actor)
            order = orders.get(command.order_id)
            new_dispatcher().send_status_templates(order, status_change.current, actor=command.actor)

        logger.info(
            "Order meta updated",
            order_id=str(command.order_id),
            changed=[change.field for change in field_changes],
        )
        return [change.as_payload() for change in field_changes]
