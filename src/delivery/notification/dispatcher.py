"""Notification Dispatcher — renders and sends the delivery emails.

Every message gets a blind copy to the operations mailbox. Sending is best
effort: a transport that raises or returns anything but ``True`` counts as
a failure, is logged and audited, and is never retried here. Callers must
not let a failed email undo work that is already committed.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from html import escape

import structlog

from delivery.audit.audit import AuditEventType, AuditLog
from delivery.config import DeliverySettings, get_settings
from delivery.mail.port import MailMessage, MailTransport
from delivery.notification.envelope import wrap
from delivery.notification.messages import MessageTemplate
from delivery.notification.placeholders import referenced_keys, replace_placeholders
from delivery.notification.template import split_recipients, templates_for_status
from delivery.order import meta
from delivery.order.attributes import language_pair, page_count, requires_paper_delivery
from delivery.order.order import Order
from delivery.provider.provider import Provider
from delivery.provider.store import ProviderStore
from delivery.status.changes import format_date, format_datetime, format_time
from delivery.status.status import label, normalize
from delivery.storage.folders import SubfolderKey
from delivery.storage.gateway import DocumentStorageGateway
from delivery.token.issuance import upload_link
from delivery.token.store import UploadTokenStore

logger = structlog.get_logger(__name__)

SHIPPING_PAPER = "Envío en papel"
SHIPPING_DIGITAL = "Solo digital (PDF)"

_DRIVE_LINK_KEYS = {
    "drive_source_link": SubfolderKey.SOURCE,
    "drive_work_link": SubfolderKey.WORK,
    "drive_translation_link": SubfolderKey.TRANSLATION,
    "drive_to_client_link": SubfolderKey.TO_CLIENT,
}


@dataclass
class RenderedMessage:
    subject: str
    html_body: str
    values: dict = field(default_factory=dict)


class NotificationDispatcher:
    def __init__(
        self,
        transport: MailTransport,
        gateway: DocumentStorageGateway | None = None,
        tokens: UploadTokenStore | None = None,
        providers: ProviderStore | None = None,
        audit: AuditLog | None = None,
        settings: DeliverySettings | None = None,
    ):
        self.transport = transport
        self.gateway = gateway
        self.tokens = tokens
        self.providers = providers or ProviderStore()
        self.audit = audit or AuditLog()
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------
    def send(
        self,
        recipients,
        subject: str,
        html_body: str,
        headers: dict | None = None,
        attachments: list[str] | None = None,
        order_id=None,
        actor: str | None = None,
    ) -> bool:
        """Send one message. Returns True only if the transport confirmed it."""
        addresses = split_recipients(recipients)
        if not addresses:
            logger.warning("Email skipped, no recipients", order_id=order_id, subject=subject)
            return False

        all_headers = {"From": self.settings.mail_from}
        all_headers.update(headers or {})
        bcc = split_recipients(all_headers.get("Bcc"))
        if self.settings.bcc_address and self.settings.bcc_address not in bcc:
            bcc.append(self.settings.bcc_address)
        if bcc:
            all_headers["Bcc"] = ", ".join(bcc)

        message = MailMessage(
            recipients=addresses,
            subject=subject,
            html_body=html_body,
            headers=all_headers,
            attachments=list(attachments or []),
        )

        try:
            result = self.transport.send(message)
        except Exception as exc:
            logger.error("Email transport raised", order_id=order_id, subject=subject, error=str(exc))
            result = False

        sent = result is True
        if sent:
            logger.info("Email sent", order_id=order_id, recipients=addresses, subject=subject)
        else:
            logger.warning("Email not sent", order_id=order_id, recipients=addresses, subject=subject)

        if order_id is not None:
            self.audit.record(
                order_id,
                AuditEventType.EMAIL,
                f"{'Email enviado' if sent else 'Error al enviar email'}: {subject}",
                {"recipients": addresses, "subject": subject, "sent": sent},
                actor=actor,
            )
        return sent

    # -------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------
    def render(
        self,
        subject: str,
        body: str,
        order: Order,
        provider: Provider | None = None,
        extra: dict | None = None,
    ) -> RenderedMessage:
        """Substitute placeholders into subject and body and wrap the body in the envelope.

        Only the placeholders actually referenced are resolved, so a message
        without Drive links never talks to Drive and an upload link is only
        issued when a template asks for one.
        """
        values = self.placeholder_values(order, provider, referenced_keys(subject, body), extra)
        rendered_subject = replace_placeholders(subject, values)
        escaped = {key: "" if value is None else escape(str(value)) for key, value in values.items()}
        rendered_body = replace_placeholders(body, escaped)

        return RenderedMessage(
            subject=rendered_subject,
            html_body=wrap(rendered_body, rendered_subject, self.settings.site_url, self.settings.admin_email),
            values=values,
        )

    def placeholder_values(
        self,
        order: Order,
        provider: Provider | None,
        keys: set[str],
        extra: dict | None = None,
    ) -> dict:
        extra = dict(extra or {})
        if provider is None:
            provider = self.providers.get(order.meta_values.get(meta.PROVIDER_ID))

        resolvers = self._resolvers(order, provider)
        values = {}
        for key in keys:
            if key in extra:
                values[key] = extra[key]
            elif key in resolvers:
                values[key] = resolvers[key]()
        return values

    def _resolvers(self, order: Order, provider: Provider | None) -> dict[str, Callable[[], object]]:
        values = order.meta_values
        source, target = language_pair(order)

        resolvers: dict[str, Callable[[], object]] = {
            "order_id": lambda: order.id,
            "customer_name": lambda: order.customer_name,
            "customer_email": lambda: order.billing_email or "",
            "order_total": lambda: f"{order.total or 0:.2f} {order.currency or ''}".strip(),
            "customer_note": lambda: order.customer_note or "",
            "reference": lambda: values.get(meta.REFERENCE, ""),
            "internal_comment": lambda: values.get(meta.INTERNAL_COMMENT, ""),
            "linguistic_comment": lambda: values.get(meta.LINGUISTIC_COMMENT, ""),
            "status": lambda: label(order.operational_status),
            "expected_delivery_date": lambda: " ".join(
                part
                for part in (
                    format_date(values.get(meta.SCHEDULED_DATE)),
                    format_time(values.get(meta.SCHEDULED_TIME)),
                )
                if part
            ),
            "real_delivery_date": lambda: format_datetime(values.get(meta.REAL_DELIVERY)),
            "shipping_type": lambda: SHIPPING_PAPER if requires_paper_delivery(order) else SHIPPING_DIGITAL,
            "source_language": lambda: source or "",
            "target_language": lambda: target or "",
            "language_pair": lambda: " → ".join(part for part in (source, target) if part),
            "page_count": lambda: page_count(order) or "",
            "provider_name": lambda: provider.name if provider else "",
            "provider_email": lambda: provider.email if provider else "",
            "provider_phone": lambda: provider.phone if provider else "",
            "provider_pickup_address": lambda: provider.pickup_address if provider else "",
            "upload_link": lambda: self._fresh_upload_link(order),
            "paper_shipping_address": lambda: order.shipping_address,
            "admin_panel_link": lambda: self.admin_panel_link(order.id),
        }
        for key, subfolder in _DRIVE_LINK_KEYS.items():
            resolvers[key] = lambda subfolder=subfolder: self._drive_link(order, subfolder)
        return resolvers

    def _drive_link(self, order: Order, key: SubfolderKey) -> str:
        if self.gateway is None:
            return ""
        return self.gateway.folder_link(order.id, key)

    def _fresh_upload_link(self, order: Order) -> str:
        if self.tokens is None:
            return ""
        return upload_link(self.tokens.issue(order.id), self.settings)

    def admin_panel_link(self, order_id) -> str:
        separator = "&" if "?" in self.settings.dashboard_url else "?"
        return f"{self.settings.dashboard_url}{separator}order_id={order_id}"

    # -------------------------------------------------------------------
    # Composed sends
    # -------------------------------------------------------------------
    def notify(
        self,
        template: MessageTemplate,
        recipients,
        order: Order,
        provider: Provider | None = None,
        extra: dict | None = None,
        actor: str | None = None,
    ) -> bool:
        rendered = self.render(template.subject, template.body_html, order, provider, extra)
        return self.send(recipients, rendered.subject, rendered.html_body, order_id=order.id, actor=actor)

    def send_status_templates(self, order: Order, status, provider: Provider | None = None, actor=None) -> int:
        """Send every active stored template bound to ``status``. Returns how many went out."""
        sent = 0
        for template in templates_for_status(status):
            rendered = self.render(template.subject, template.body_html, order, provider)
            recipients = replace_placeholders(
                template.recipients,
                self.placeholder_values(order, provider, referenced_keys(template.recipients)),
            )
            recipients = split_recipients(recipients) or [self.settings.admin_email]

            logger.info(
                "Status template triggered",
                order_id=order.id,
                template=template.name,
                status=normalize(status).value,
            )
            if self.send(recipients, rendered.subject, rendered.html_body, order_id=order.id, actor=actor):
                sent += 1
        return sent
