"""Delivery workflow wiring — one workflow, with its own gateway caches, per request."""

from delivery.audit.audit import AuditLog
from delivery.config import get_settings
from delivery.notification import new_dispatcher
from delivery.order.store import OrderStore
from delivery.provider.store import ProviderStore
from delivery.redemption.workflow import (
    DeliveryWorkflow,
    IncomingFile,
    RedemptionContext,
    RedemptionOutcome,
)
from delivery.storage import new_gateway
from delivery.token.store import UploadTokenStore


def build_workflow() -> DeliveryWorkflow:
    settings = get_settings()
    gateway = new_gateway()
    return DeliveryWorkflow(
        orders=OrderStore(),
        providers=ProviderStore(),
        tokens=UploadTokenStore(claim_timeout=settings.claim_timeout),
        gateway=gateway,
        dispatcher=new_dispatcher(gateway),
        audit=AuditLog(),
        settings=settings,
    )


__all__ = ["DeliveryWorkflow", "IncomingFile", "RedemptionContext", "RedemptionOutcome", "build_workflow"]
