"""Configurable fake Drive API for development and testing.

Keeps folders and uploaded files in memory and records every call so tests
can assert on what would have reached Google.
"""

import json
from uuid import uuid4

from delivery.errors import APIError
from delivery.storage.port import DriveApi


class FakeDriveApi(DriveApi):
    """In-memory Drive API."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.uploads: list[dict] = []
        self.permissions: dict[str, list[dict]] = {}
        self.links: dict[str, str] = {}
        self.should_succeed: bool = True
        self.failure_reason: str = "Drive unavailable"
        self.fail_uploads_after: int | None = None

    def configure(
        self,
        should_succeed: bool = True,
        failure_reason: str = "Drive unavailable",
        fail_uploads_after: int | None = None,
    ) -> None:
        """Configure the fake behavior. ``fail_uploads_after=n`` lets n uploads through, then fails."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.fail_uploads_after = fail_uploads_after

    def add_folder(self, folder_id: str, web_view_link: str | None = None) -> None:
        self.links[folder_id] = web_view_link or f"https://drive.google.com/drive/folders/{folder_id}?usp=drive_link"

    def calls_to(self, method: str) -> list[dict]:
        return [call for call in self.calls if call["method"] == method]

    def _check(self) -> None:
        if not self.should_succeed:
            raise APIError(self.failure_reason, status_code=503)

    def get_file(self, file_id: str, fields: str, access_token: str) -> dict:
        self.calls.append({"method": "get_file", "file_id": file_id, "fields": fields})
        self._check()
        if file_id not in self.links:
            raise APIError(f"File not found: {file_id}.", status_code=404)
        return {"id": file_id, "webViewLink": self.links[file_id]}

    def update_file(self, file_id: str, body: dict, access_token: str) -> dict:
        self.calls.append({"method": "update_file", "file_id": file_id, "body": body})
        self._check()
        return {"id": file_id}

    def create_permission(self, file_id: str, permission: dict, access_token: str) -> dict:
        self.calls.append({"method": "create_permission", "file_id": file_id, "permission": permission})
        self._check()
        self.permissions.setdefault(file_id, []).append(permission)
        return {"id": f"perm_{uuid4().hex[:8]}", **permission}

    def upload_multipart(self, body: bytes, boundary: str, access_token: str) -> dict:
        self.calls.append({"method": "upload_multipart", "boundary": boundary, "size": len(body)})
        self._check()
        if self.fail_uploads_after is not None and len(self.uploads) >= self.fail_uploads_after:
            raise APIError(self.failure_reason, status_code=500)

        metadata = _metadata_part(body, boundary)
        file_id = f"file_{uuid4().hex[:12]}"
        record = {
            "id": file_id,
            "name": metadata.get("name"),
            "parents": metadata.get("parents", []),
            "mimeType": metadata.get("mimeType"),
            "size": len(body),
        }
        self.uploads.append(record)
        return {"id": file_id, "name": record["name"], "webViewLink": f"https://drive.google.com/file/d/{file_id}/view"}

    def reset(self) -> None:
        self.__init__()


def _metadata_part(body: bytes, boundary: str) -> dict:
    """Decode the JSON metadata part of a multipart/related body."""
    first_part = body.split(f"--{boundary}".encode())[1]
    _, _, payload = first_part.partition(b"\r\n\r\n")
    return json.loads(payload.strip().decode("utf-8"))
