import json

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from delivery.audit.audit import AuditEventType, AuditLog
from delivery.notification.template import EmailTemplate
from delivery.order import meta
from delivery.order.meta_update import UpdateOrderMeta
from delivery.status.status import OperationalStatus


def _update(order, actor="staff-1", **changes):
    command = UpdateOrderMeta(order_id=order.id, changes=json.dumps(changes), actor=actor)
    return current_domain.process(command, asynchronous=False)


class TestUpdateOrderMeta:
    def test_comment_change_is_audited(self, make_order, reload_order):
        order = make_order(**{meta.INTERNAL_COMMENT: "Urgente"})

        changes = _update(order, **{meta.INTERNAL_COMMENT: "Muy urgente"})

        assert [change["field"] for change in changes] == [meta.INTERNAL_COMMENT]
        assert reload_order(order).meta_values[meta.INTERNAL_COMMENT] == "Muy urgente"

        (entry,) = AuditLog().for_order(order.id, AuditEventType.ORDER_UPDATE)
        assert entry.actor == "staff-1"
        assert entry.data["changes"][0]["previous"] == "Urgente"
        assert AuditLog().for_order(order.id, AuditEventType.OPERATIONAL_STATUS) == []

    def test_status_change(self, make_order, reload_order):
        order = make_order()

        _update(order, **{meta.STATUS: "Translated"})

        assert reload_order(order).operational_status == OperationalStatus.TRANSLATED
        (entry,) = AuditLog().for_order(order.id, AuditEventType.OPERATIONAL_STATUS)
        assert entry.data == {
            "previous": "asignado_en_curso",
            "current": "traducido",
            "previous_label": "03-Asignado y en curso.",
            "current_label": "04-Traducido.",
        }

    def test_provider_names_in_audit(self, make_order, make_provider):
        provider = make_provider(name="Lingua Sur")
        order = make_order()

        (change,) = _update(order, **{meta.PROVIDER_ID: str(provider.id)})

        assert change["previous"] == "—"
        assert change["current"] == "Lingua Sur"

    def test_no_op_update_is_not_audited(self, make_order):
        order = make_order(**{meta.REFERENCE: "R-1"})
        assert _update(order, **{meta.REFERENCE: "R-1"}) == []
        assert AuditLog().for_order(order.id) == []

    def test_status_templates_fire(self, make_order, mailer):
        template = EmailTemplate.create(
            name="Traducido",
            subject="Pedido #{{order_id}} traducido",
            body_html="<p>Listo</p>",
            recipients="revision@tradutema.test",
            operational_status="traducido",
        )
        current_domain.repository_for(EmailTemplate).add(template)
        order = make_order()

        _update(order, **{meta.STATUS: "traducido"})

        (message,) = mailer.sent
        assert message.recipients == ["revision@tradutema.test"]
        (email_event,) = AuditLog().for_order(order.id, AuditEventType.EMAIL)
        assert email_event.actor == "staff-1"

    def test_unknown_keys_are_rejected(self, make_order):
        with pytest.raises(ValidationError):
            _update(make_order(), color="azul")

    def test_known_origin_is_accepted(self, make_order, reload_order):
        order = make_order()

        _update(order, **{meta.ORIGIN: "cotizacion"})

        assert reload_order(order).meta_values[meta.ORIGIN] == "cotizacion"

    def test_unknown_origin_is_rejected(self, make_order, reload_order):
        order = make_order(**{meta.ORIGIN: "woocommerce"})

        with pytest.raises(ValidationError) as exc:
            _update(order, **{meta.ORIGIN: "otro"})

        assert meta.ORIGIN in exc.value.messages
        assert reload_order(order).meta_values[meta.ORIGIN] == "woocommerce"
        assert AuditLog().for_order(order.id) == []
