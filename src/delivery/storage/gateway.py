"""Document Storage Gateway — what the delivery workflow asks of Google Drive.

One gateway instance serves one workflow run. Its permission and share-link
caches are plain instance fields, so repeated calls within a run hit the
remote API at most once per folder and nothing leaks into the next request.
"""

import json
import mimetypes
import os
import secrets
from dataclasses import dataclass
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import structlog

from delivery.errors import (
    DeliveryError,
    InvalidResponse,
    MissingFolder,
    MissingToken,
    ReadError,
)
from delivery.order import meta
from delivery.order.store import OrderStore
from delivery.storage.credentials import CredentialProvider
from delivery.storage.folders import EMPTY_FOLDER, FolderRef, SubfolderKey, subfolder_from_map
from delivery.storage.port import DriveApi

logger = structlog.get_logger(__name__)

SHARE_MARKER = ("usp", "share_link")
FOLDER_URL = "https://drive.google.com/drive/folders/{id}"
PUBLIC_PERMISSION = {"type": "anyone", "role": "reader", "allowFileDiscovery": False}
VISIBILITY_PATCH = {"copyRequiresWriterPermission": False, "writersCanShare": True}
LINK_FIELDS = "id,webViewLink,webContentLink"


@dataclass(frozen=True)
class UploadedFile:
    id: str
    name: str
    web_view_link: str = ""


def with_share_marker(url: str) -> str:
    """Set ``usp=share_link`` on a Drive URL, keeping its other parameters.

    ``resourcekey`` in particular must survive: older shared folders are not
    reachable without it.
    """
    parsed = urlparse(url)
    key, value = SHARE_MARKER
    params = [(name, current) for name, current in parse_qsl(parsed.query, keep_blank_values=True) if name != key]
    query = urlencode([(key, value), *params])
    return urlunparse(parsed._replace(query=query, fragment=""))


class DocumentStorageGateway:
    def __init__(self, api: DriveApi, credentials: CredentialProvider, orders: OrderStore | None = None) -> None:
        self.api = api
        self.credentials = credentials
        self.orders = orders or OrderStore()
        self._public_folders: set[str] = set()
        self._share_links: dict[str, str] = {}
        self._access_token: str | None = None

    def _token(self) -> str | None:
        if self._access_token is None:
            self._access_token = self.credentials.get_access_token() or None
        return self._access_token

    # -------------------------------------------------------------------
    # Folder resolution
    # -------------------------------------------------------------------
    def resolve_subfolder(self, order_id, key: SubfolderKey) -> FolderRef:
        """The order's subfolder for ``key``; an empty ref means the feature is unavailable."""
        order = self.orders.find(order_id)
        if order is None:
            return EMPTY_FOLDER
        return subfolder_from_map(order.meta_values.get(meta.DRIVE_SUBFOLDERS), key)

    # -------------------------------------------------------------------
    # Sharing
    # -------------------------------------------------------------------
    def ensure_public_readable(self, folder_id: str) -> None:
        """Best effort: grant anyone-with-the-link read access, once per folder."""
        if not folder_id or folder_id in self._public_folders:
            return
        self._public_folders.add(folder_id)

        access_token = self._token()
        if not access_token:
            logger.warning("No Drive access token, folder left as is", folder_id=folder_id)
            return

        try:
            self.api.create_permission(folder_id, dict(PUBLIC_PERMISSION), access_token)
            self.api.update_file(folder_id, dict(VISIBILITY_PATCH), access_token)
        except DeliveryError as exc:
            # The folder may already be shared; share_link copes either way
            logger.warning("Could not make folder public", folder_id=folder_id, error=str(exc))

    def share_link(self, folder_id: str, fallback_url: str = "") -> str:
        """Public link to a folder, normalized to ``?usp=share_link``."""
        cache_key = folder_id or fallback_url
        if not cache_key:
            return ""
        if cache_key in self._share_links:
            return self._share_links[cache_key]

        link = self._remote_share_link(folder_id) if folder_id else None
        if not link and fallback_url and (not folder_id or folder_id in fallback_url):
            link = with_share_marker(fallback_url)
        if not link:
            link = with_share_marker(FOLDER_URL.format(id=folder_id))

        self._share_links[cache_key] = link
        return link

    def _remote_share_link(self, folder_id: str) -> str | None:
        access_token = self._token()
        if not access_token:
            return None
        try:
            data = self.api.get_file(folder_id, LINK_FIELDS, access_token)
        except DeliveryError as exc:
            logger.warning("Share link lookup failed", folder_id=folder_id, error=str(exc))
            return None

        for field in ("webViewLink", "webContentLink", "alternateLink"):
            if data.get(field):
                return with_share_marker(data[field])
        return None

    def folder_link(self, order_id, key: SubfolderKey) -> str:
        folder = self.resolve_subfolder(order_id, key)
        if not folder:
            return ""
        return self.share_link(folder.id, folder.url)

    # -------------------------------------------------------------------
    # Upload
    # -------------------------------------------------------------------
    def upload_file(
        self,
        folder_id: str,
        local_path: str,
        file_name: str,
        mime_type: str | None = None,
    ) -> UploadedFile:
        """Upload one local file into ``folder_id`` with a single multipart request."""
        if not folder_id:
            raise MissingFolder("No destination folder for upload")

        access_token = self._token()
        if not access_token:
            raise MissingToken("No Drive access token available")

        try:
            with open(local_path, "rb") as handle:
                content = handle.read()
        except OSError as exc:
            raise ReadError(f"Cannot read {os.path.basename(local_path)}: {exc}") from exc

        mime_type = mime_type or mimetypes.guess_type(file_name)[0] or "application/octet-stream"
        boundary, body = build_multipart_body(
            {"name": file_name, "parents": [folder_id], "mimeType": mime_type},
            content,
            mime_type,
        )

        data = self.api.upload_multipart(body, boundary, access_token)
        if not data.get("id"):
            raise InvalidResponse(f"Upload of {file_name} returned no file id")

        logger.info("File uploaded to Drive", folder_id=folder_id, file_name=file_name, file_id=data["id"])
        return UploadedFile(
            id=data["id"],
            name=data.get("name") or file_name,
            web_view_link=data.get("webViewLink", ""),
        )


def build_multipart_body(metadata: dict, content: bytes, mime_type: str) -> tuple[str, bytes]:
    """multipart/related body: JSON metadata part followed by the binary part."""
    boundary = f"tradutema_{secrets.token_hex(16)}"
    body = b"".join(
        [
            f"--{boundary}\r\n".encode(),
            b"Content-Type: application/json; charset=UTF-8\r\n\r\n",
            json.dumps(metadata).encode("utf-8"),
            b"\r\n",
            f"--{boundary}\r\n".encode(),
            f"Content-Type: {mime_type}\r\n\r\n".encode(),
            content,
            b"\r\n",
            f"--{boundary}--\r\n".encode(),
        ]
    )
    return boundary, body
