"""Notification dispatcher wiring.

A dispatcher holds a storage gateway whose caches belong to one unit of
work, so ``new_dispatcher()`` builds a fresh one for every request or
command instead of sharing a singleton.
"""

from delivery.config import get_settings
from delivery.mail import get_transport
from delivery.notification.dispatcher import NotificationDispatcher, RenderedMessage
from delivery.storage import new_gateway
from delivery.storage.gateway import DocumentStorageGateway
from delivery.token.store import UploadTokenStore


def new_dispatcher(gateway: DocumentStorageGateway | None = None) -> NotificationDispatcher:
    settings = get_settings()
    return NotificationDispatcher(
        transport=get_transport(),
        gateway=gateway or new_gateway(),
        tokens=UploadTokenStore(claim_timeout=settings.claim_timeout),
        settings=settings,
    )


__all__ = ["NotificationDispatcher", "RenderedMessage", "new_dispatcher"]
