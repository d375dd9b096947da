"""Upload token issuance — command, handler and link builder."""

from urllib.parse import urlencode

from protean import handle
from protean.fields import Identifier

from delivery.config import DeliverySettings, get_settings
from delivery.domain import delivery
from delivery.order.store import OrderStore
from delivery.token.store import UploadTokenStore
from delivery.token.token import UploadToken


def upload_link(token: str, settings: DeliverySettings | None = None) -> str:
    """Public URL a provider opens to deliver an order."""
    settings = settings or get_settings()
    return f"{settings.site_url}/?{urlencode({settings.token_param: token})}"


@delivery.command(part_of="UploadToken")
class IssueUploadToken:
    """Issue a new single-use delivery link for an order."""

    order_id = Identifier(required=True)


@delivery.command_handler(part_of=UploadToken)
class IssueUploadTokenHandler:
    @handle(IssueUploadToken)
    def issue_upload_token(self, command):
        # Fails with OrderNotFound before anything is written
        OrderStore().get(command.order_id)
        settings = get_settings()
        return UploadTokenStore(claim_timeout=settings.claim_timeout).issue(command.order_id)
