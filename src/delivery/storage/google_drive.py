"""Google Drive v3 adapter for the DriveApi port.

Plain REST over ``requests`` with a bearer token supplied per call. OAuth is
not handled here; see ``delivery.storage.credentials``.
"""

import requests
import structlog

from delivery.errors import APIError, InvalidResponse, TransportError
from delivery.storage.port import DriveApi

logger = structlog.get_logger(__name__)

API_BASE = "https://www.googleapis.com/drive/v3"
UPLOAD_BASE = "https://www.googleapis.com/upload/drive/v3"
DEFAULT_TIMEOUT = 30


class GoogleDriveApi(DriveApi):
    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: int = DEFAULT_TIMEOUT,
        api_base: str = API_BASE,
        upload_base: str = UPLOAD_BASE,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout
        self.api_base = api_base.rstrip("/")
        self.upload_base = upload_base.rstrip("/")

    def get_file(self, file_id: str, fields: str, access_token: str) -> dict:
        return self._request(
            "GET",
            f"{self.api_base}/files/{file_id}",
            access_token,
            params={"fields": fields, "supportsAllDrives": "true"},
        )

    def update_file(self, file_id: str, body: dict, access_token: str) -> dict:
        return self._request(
            "PATCH",
            f"{self.api_base}/files/{file_id}",
            access_token,
            params={"supportsAllDrives": "true"},
            json=body,
        )

    def create_permission(self, file_id: str, permission: dict, access_token: str) -> dict:
        return self._request(
            "POST",
            f"{self.api_base}/files/{file_id}/permissions",
            access_token,
            params={"supportsAllDrives": "true"},
            json=permission,
        )

    def upload_multipart(self, body: bytes, boundary: str, access_token: str) -> dict:
        return self._request(
            "POST",
            f"{self.upload_base}/files",
            access_token,
            params={
                "uploadType": "multipart",
                "supportsAllDrives": "true",
                "fields": "id,name,webViewLink",
            },
            data=body,
            headers={"Content-Type": f"multipart/related; boundary={boundary}"},
        )

    def _request(self, method: str, url: str, access_token: str, headers: dict | None = None, **kwargs) -> dict:
        all_headers = {"Authorization": f"Bearer {access_token}"}
        all_headers.update(headers or {})

        try:
            response = self.session.request(method, url, headers=all_headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("Drive request failed", method=method, url=url, error=str(exc))
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = None

        if not 200 <= response.status_code < 300:
            message = _error_message(data) or f"HTTP {response.status_code}"
            logger.warning("Drive API error", method=method, url=url, status=response.status_code, error=message)
            raise APIError(message, status_code=response.status_code)

        if not isinstance(data, dict):
            raise InvalidResponse(f"{method} {url} returned a non-JSON body")
        return data


def _error_message(data) -> str | None:
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict):
        return error.get("message")
    if isinstance(error, str):
        return data.get("error_description") or error
    return None
