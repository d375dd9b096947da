"""Delivery Workflow — redemption of a single-use upload link.

A provider opens the link sent to them and either confirms completion
(internal providers) or uploads the finished translation (external
providers). Redemption runs in this order:

    resolve token → load order → load provider
    internal: claim → status "traducido" → admin email → mark used → audit
    external: validate files → claim → upload to 04-ToClient → mark used
              → audit → status "entregado" or "en_espera_validacion_cliente"
              → client and admin emails with a share link

The claim is taken before the first side effect and released if anything
fails before the token is marked used, so the provider can simply retry.
Emails are sent after the state they describe is committed and never undo it.
"""

import os
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from delivery.audit.audit import AuditEventType, AuditLog
from delivery.config import DeliverySettings
from delivery.errors import MissingFolder, TokenAlreadyUsed, UploadValidation
from delivery.notification.dispatcher import NotificationDispatcher
from delivery.notification.messages import (
    ADMIN_DELIVERY,
    ADMIN_INTERNAL_COMPLETION,
    CLIENT_DELIVERY,
    CLIENT_DELIVERY_PAPER,
)
from delivery.order import meta
from delivery.order.attributes import requires_paper_delivery
from delivery.order.order import Order
from delivery.order.store import OrderStore
from delivery.provider.provider import Provider
from delivery.provider.store import ProviderStore
from delivery.status.status import OperationalStatus, StatusTransition
from delivery.storage.folders import SubfolderKey
from delivery.storage.gateway import DocumentStorageGateway
from delivery.token.store import UploadTokenStore
from delivery.token.token import UploadToken
from delivery.utils.logging import mask_token

logger = structlog.get_logger(__name__)


@dataclass
class IncomingFile:
    """A file received by the HTTP layer and spooled to local disk."""

    name: str
    path: str | None
    size: int
    content_type: str | None = None
    error: str | None = None  # an UploadValidation code detected while receiving


@dataclass
class RedemptionContext:
    token: UploadToken
    order: Order
    provider: Provider | None

    @property
    def is_internal(self) -> bool:
        return bool(self.provider and self.provider.is_internal)


@dataclass
class RedemptionOutcome:
    order_id: str
    internal: bool
    status: OperationalStatus
    transition: StatusTransition | None = None
    files: list[str] = field(default_factory=list)
    share_link: str = ""
    paper_delivery: bool = False


class DeliveryWorkflow:
    def __init__(
        self,
        orders: OrderStore,
        providers: ProviderStore,
        tokens: UploadTokenStore,
        gateway: DocumentStorageGateway,
        dispatcher: NotificationDispatcher,
        audit: AuditLog,
        settings: DeliverySettings,
    ):
        self.orders = orders
        self.providers = providers
        self.tokens = tokens
        self.gateway = gateway
        self.dispatcher = dispatcher
        self.audit = audit
        self.settings = settings

    # -------------------------------------------------------------------
    # GET
    # -------------------------------------------------------------------
    def inspect(self, token: str | None) -> RedemptionContext:
        """Load what the upload page needs. Never changes anything."""
        record = self.tokens.resolve(token)
        if record.used:
            raise TokenAlreadyUsed("Token already used")
        order = self.orders.get(record.order_id)
        provider = self.providers.get(order.meta_values.get(meta.PROVIDER_ID))
        return RedemptionContext(token=record, order=order, provider=provider)

    # -------------------------------------------------------------------
    # POST
    # -------------------------------------------------------------------
    def redeem(self, token: str | None, files: list[IncomingFile] | None = None) -> RedemptionOutcome:
        context = self.inspect(token)
        log = logger.bind(order_id=str(context.order.id), token=mask_token(token))

        if context.is_internal:
            log.info("Internal provider completion requested", provider_id=str(context.provider.id))
            return self._complete_internal(token, context)

        log.info("External delivery requested", files=len(files or []))
        return self._deliver_external(token, context, files or [])

    def _complete_internal(self, token: str, context: RedemptionContext) -> RedemptionOutcome:
        order, provider = context.order, context.provider

        self.tokens.claim(token)
        try:
            change = self._apply_status(order, OperationalStatus.TRANSLATED)
        except Exception:
            self.tokens.release(token)
            raise

        self.dispatcher.notify(ADMIN_INTERNAL_COMPLETION, self.settings.admin_email, order, provider)
        self.tokens.mark_used(token, [])
        self.audit.record(
            order.id,
            AuditEventType.INTERNAL_PROVIDER_COMPLETION,
            f"Traducción finalizada por proveedor interno {provider.name}",
            {"provider_id": str(provider.id), "token": mask_token(token)},
        )
        self._after_transition(order, change, provider)

        return RedemptionOutcome(
            order_id=str(order.id),
            internal=True,
            status=order.operational_status,
            transition=change,
        )

    def _deliver_external(
        self, token: str, context: RedemptionContext, files: list[IncomingFile]
    ) -> RedemptionOutcome:
        order, provider = context.order, context.provider

        # An empty file input still posts one nameless part
        files = [incoming for incoming in files if incoming.name]
        if not files:
            raise UploadValidation(UploadValidation.NO_FILES)
        for incoming in files:
            self._validate(incoming)

        self.tokens.claim(token)
        try:
            folder = self.gateway.resolve_subfolder(order.id, SubfolderKey.TO_CLIENT)
            if not folder.id:
                raise MissingFolder(f"Order {order.id} has no {SubfolderKey.TO_CLIENT.folder_name} folder")
            uploaded = [
                self.gateway.upload_file(folder.id, incoming.path, incoming.name, incoming.content_type)
                for incoming in files
            ]
        except Exception:
            self.tokens.release(token)
            raise

        names = [incoming.name for incoming in files]
        self.tokens.mark_used(token, names)
        self.audit.record(
            order.id,
            AuditEventType.FILES_UPLOAD,
            f"Archivos entregados por {provider.name if provider else 'el proveedor'}: {', '.join(names)}",
            {
                "files": names,
                "file_ids": [item.id for item in uploaded],
                "folder_id": folder.id,
                "token": mask_token(token),
            },
        )

        paper = requires_paper_delivery(order)
        target = OperationalStatus.AWAITING_CLIENT_VALIDATION if paper else OperationalStatus.DELIVERED
        delivered_at = datetime.now(UTC).isoformat(timespec="minutes")
        change = self._apply_status(order, target, {meta.REAL_DELIVERY: delivered_at})

        self.gateway.ensure_public_readable(folder.id)
        link = self.gateway.share_link(folder.id, folder.url)
        extra = {"drive_to_client_link": link, "delivered_files": ", ".join(names)}

        self.dispatcher.notify(
            CLIENT_DELIVERY_PAPER if paper else CLIENT_DELIVERY,
            order.billing_email,
            order,
            provider,
            extra,
        )
        self.dispatcher.notify(ADMIN_DELIVERY, self.settings.admin_email, order, provider, extra)
        self._after_transition(order, change, provider)

        return RedemptionOutcome(
            order_id=str(order.id),
            internal=False,
            status=order.operational_status,
            transition=change,
            files=names,
            share_link=link,
            paper_delivery=paper,
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _validate(self, incoming: IncomingFile) -> None:
        if incoming.error:
            raise UploadValidation(incoming.error, incoming.name)
        if incoming.size > self.settings.max_upload_bytes:
            raise UploadValidation(UploadValidation.SIZE_EXCEEDED, incoming.name)
        if incoming.size <= 0:
            raise UploadValidation(UploadValidation.EMPTY, incoming.name)
        if not incoming.path or not os.path.isfile(incoming.path):
            raise UploadValidation(UploadValidation.FAILED, incoming.name)
        if os.path.getsize(incoming.path) != incoming.size:
            raise UploadValidation(UploadValidation.PARTIAL, incoming.name)

    def _apply_status(
        self, order: Order, target: OperationalStatus, stamp: dict | None = None
    ) -> StatusTransition | None:
        """Persist ``target`` (and any extra meta) and audit the transition if there was one."""
        if stamp:
            order.update_meta(stamp)
        change = order.change_operational_status(target)
        if stamp or change:
            self.orders.save(order)
        if change:
            self.audit.record_transition(order.id, change)
        return change

    def _after_transition(self, order: Order, change: StatusTransition | None, provider: Provider | None) -> None:
        if change is None:
            return
        self.dispatcher.send_status_templates(order, change.current, provider)
