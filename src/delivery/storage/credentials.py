"""Credential provider port for the remote storage API.

The delivery workflow never runs an OAuth flow itself: an external process
(the CRM's Google connection) keeps a valid access token available and a
credential provider hands it over on demand.
"""

from abc import ABC, abstractmethod


class CredentialProvider(ABC):
    @abstractmethod
    def get_access_token(self) -> str | None:
        """Bearer token for the storage API, or None when none is obtainable."""
        ...


class StaticCredentialProvider(CredentialProvider):
    """Serves a token configured up front (``DRIVE_ACCESS_TOKEN``)."""

    def __init__(self, token: str | None) -> None:
        self.token = token

    def get_access_token(self) -> str | None:
        return self.token or None


class FakeCredentialProvider(CredentialProvider):
    """Test double that counts how often a token was requested."""

    def __init__(self, token: str | None = "fake-access-token") -> None:
        self.token = token
        self.requests = 0

    def get_access_token(self) -> str | None:
        self.requests += 1
        return self.token
