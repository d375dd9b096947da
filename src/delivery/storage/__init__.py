"""Remote storage factory.

Provides get_drive_api() / set_drive_api() and get_credentials() /
set_credentials() to swap implementations:
- FakeDriveApi / FakeCredentialProvider for development and testing
- GoogleDriveApi / StaticCredentialProvider when DRIVE_ACCESS_TOKEN is set

Gateways themselves are never shared: build one per request with
``new_gateway()``.
"""

from delivery.config import get_settings
from delivery.storage.credentials import (
    CredentialProvider,
    FakeCredentialProvider,
    StaticCredentialProvider,
)
from delivery.storage.fake_adapter import FakeDriveApi
from delivery.storage.gateway import DocumentStorageGateway
from delivery.storage.google_drive import GoogleDriveApi
from delivery.storage.port import DriveApi

_current_api: DriveApi | None = None
_current_credentials: CredentialProvider | None = None


def get_drive_api() -> DriveApi:
    """Return the current Drive API. Google when a token is configured, else the fake."""
    global _current_api
    if _current_api is None:
        settings = get_settings()
        if settings.drive_access_token:
            _current_api = GoogleDriveApi(timeout=settings.drive_timeout)
        else:
            _current_api = FakeDriveApi()
    return _current_api


def set_drive_api(api: DriveApi) -> None:
    """Override the active Drive API (useful for tests)."""
    global _current_api
    _current_api = api


def get_credentials() -> CredentialProvider:
    global _current_credentials
    if _current_credentials is None:
        token = get_settings().drive_access_token
        _current_credentials = StaticCredentialProvider(token) if token else FakeCredentialProvider()
    return _current_credentials


def set_credentials(credentials: CredentialProvider) -> None:
    global _current_credentials
    _current_credentials = credentials


def reset_storage() -> None:
    """Reset to default adapters."""
    global _current_api, _current_credentials
    _current_api = None
    _current_credentials = None


def new_gateway() -> DocumentStorageGateway:
    """A fresh gateway with empty caches over the active adapters."""
    return DocumentStorageGateway(get_drive_api(), get_credentials())
