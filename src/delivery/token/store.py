"""Upload Token Store — issue, resolve, claim and consume single-use tokens.

``claim`` is the only way into a redemption. It writes ``claimed_at`` with a
guarded update (``WHERE used = false AND claimed_at is empty or stale``)
through Protean's claim contract, so two near-identical submissions cannot
both win, even from different workers. The upload itself runs outside the
claim, protected by the persisted ``claimed_at``. ``release`` and
``mark_used`` only ever touch a token their caller has claimed.
"""

import re
import secrets
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain
from protean.utils.query import Q

from delivery.errors import TokenAlreadyUsed, TokenInvalid, TokenIssuanceFailed
from delivery.token.token import UploadToken
from delivery.utils.logging import mask_token

logger = structlog.get_logger(__name__)

MAX_ISSUE_ATTEMPTS = 5
DEFAULT_CLAIM_TIMEOUT = 900

TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]{32,128}$")

_claim_guard = threading.Lock()


def generate_token() -> str:
    """43 url-safe characters from 32 random bytes."""
    return secrets.token_urlsafe(32)


class UploadTokenStore:
    def __init__(
        self,
        generator: Callable[[], str] = generate_token,
        claim_timeout: int = DEFAULT_CLAIM_TIMEOUT,
    ):
        self.generator = generator
        self.claim_timeout = claim_timeout

    @property
    def _repo(self):
        return current_domain.repository_for(UploadToken)

    def _exists(self, token: str) -> bool:
        try:
            self._repo.get(token)
        except ObjectNotFoundError:
            return False
        return True

    # -------------------------------------------------------------------
    # Issuance
    # -------------------------------------------------------------------
    def issue(self, order_id) -> str:
        """Create and persist a fresh token for ``order_id``."""
        for attempt in range(1, MAX_ISSUE_ATTEMPTS + 1):
            token = self.generator()
            if not TOKEN_PATTERN.match(token or ""):
                raise TokenIssuanceFailed("Generated token does not match the token format")
            if self._exists(token):
                logger.warning("Upload token collision", order_id=str(order_id), attempt=attempt)
                continue

            try:
                self._repo.add(UploadToken.issue(token, order_id))
            except Exception as exc:
                logger.error("Upload token could not be stored", order_id=str(order_id), error=str(exc))
                raise TokenIssuanceFailed(f"Token store write failed: {exc}") from exc

            logger.info("Upload token issued", order_id=str(order_id), token=mask_token(token))
            return token

        raise TokenIssuanceFailed(f"No unique token after {MAX_ISSUE_ATTEMPTS} attempts")

    # -------------------------------------------------------------------
    # Redemption
    # -------------------------------------------------------------------
    def resolve(self, token: str | None) -> UploadToken:
        if not token or not TOKEN_PATTERN.match(token):
            raise TokenInvalid("Token empty or malformed")
        try:
            return self._repo.get(token)
        except ObjectNotFoundError as exc:
            raise TokenInvalid("Token unknown") from exc

    def claim(self, token: str) -> UploadToken:
        """Reserve an unused token for one redemption.

        The write is conditional on the row still being unused and unclaimed
        (or holding a stale claim), so concurrent claimers in different
        workers cannot both win.
        """
        record = self.resolve(token)
        now = datetime.now(UTC)
        try:
            record.claim(now, self.claim_timeout)
        except ValidationError as exc:
            raise TokenAlreadyUsed(f"Token not claimable: {exc.messages}") from exc

        stale = now - timedelta(seconds=self.claim_timeout)
        claimable = Q(token=token, used=False) & (Q(claimed_at__isnull=True) | Q(claimed_at__lt=stale))
        claimed = self._repo._dao._claim(claimable, {"claimed_at": now}, limit=1)
        if not claimed:
            raise TokenAlreadyUsed("Token redemption already in progress")
        record = claimed[0]

        logger.info("Upload token claimed", order_id=str(record.order_id), token=mask_token(token))
        return record

    def release(self, token: str) -> None:
        """Give up a claim after a failed redemption so the token can be retried."""
        with _claim_guard:
            record = self.resolve(token)
            if record.used:
                return
            record.release()
            self._repo.add(record)

        logger.info("Upload token claim released", order_id=str(record.order_id), token=mask_token(token))

    def mark_used(self, token: str, file_names: list[str] | None = None) -> UploadToken:
        with _claim_guard:
            record = self.resolve(token)
            record.mark_used(file_names or [])
            self._repo.add(record)

        logger.info(
            "Upload token used",
            order_id=str(record.order_id),
            token=mask_token(token),
            files=record.file_names,
        )
        return record

    def history(self, order_id) -> list[UploadToken]:
        """All tokens issued for an order, newest first."""
        tokens = self._repo._dao.query.filter(order_id=str(order_id)).all().items
        return sorted(tokens, key=lambda record: record.created_at, reverse=True)
