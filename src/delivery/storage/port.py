"""Remote document storage port (abstract interface).

Mirrors the four Drive REST calls the delivery workflow needs. Adapters
return the decoded JSON body and raise ``StorageUnavailable`` subclasses
for transport failures, non-2xx answers and unparseable bodies.
"""

from abc import ABC, abstractmethod


class DriveApi(ABC):
    """Abstract interface for the remote storage API."""

    @abstractmethod
    def get_file(self, file_id: str, fields: str, access_token: str) -> dict:
        """Fetch file or folder metadata, limited to ``fields``."""
        ...

    @abstractmethod
    def update_file(self, file_id: str, body: dict, access_token: str) -> dict:
        """Patch file or folder metadata."""
        ...

    @abstractmethod
    def create_permission(self, file_id: str, permission: dict, access_token: str) -> dict:
        """Grant a permission on a file or folder."""
        ...

    @abstractmethod
    def upload_multipart(self, body: bytes, boundary: str, access_token: str) -> dict:
        """Send a prebuilt multipart/related upload (metadata part + media part)."""
        ...
