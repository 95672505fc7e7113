"""Credential strategies a transport can authenticate with.

Exactly one of these is selected per transport stack. They are immutable
and safe to share across concurrent requests; anything that changes over
time (rotation counters, cached installation tokens) lives in the accessors
built from them.
"""

from dataclasses import dataclass

import httpx


@dataclass(frozen=True)
class StaticTokenSet:
    """One or more personal access tokens, used in round-robin order.

    Attributes:
        tokens: Tokens in the order they were configured.
    """

    tokens: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.tokens:
            raise ValueError("StaticTokenSet requires at least one token")

    def __repr__(self) -> str:
        """Return masked representation to prevent credential leakage in logs."""
        return f"StaticTokenSet(tokens=<{len(self.tokens)} masked>)"


@dataclass(frozen=True)
class AppInstallation:
    """GitHub App identity exchanged for short-lived installation tokens.

    Attributes:
        app_id: The GitHub App ID.
        installation_id: The installation the tokens are scoped to.
        key_path: Path to the App's PEM-encoded private key.
    """

    app_id: int
    installation_id: int
    key_path: str

    def __post_init__(self) -> None:
        if self.app_id <= 0:
            raise ValueError(f"app_id must be a positive integer, got {self.app_id}")
        if self.installation_id <= 0:
            raise ValueError(f"installation_id must be a positive integer, got {self.installation_id}")
        if not self.key_path:
            raise ValueError("key_path must not be empty")


@dataclass(frozen=True)
class RemoteSecretServer:
    """Remote service that hands out a valid token per request.

    Attributes:
        endpoint: Base URL of the secret server. A bare ``host:port`` is
            treated as ``http://host:port``.
    """

    endpoint: str

    def __post_init__(self) -> None:
        if not self.endpoint:
            raise ValueError("endpoint must not be empty")

    @property
    def url(self) -> httpx.URL:
        endpoint = self.endpoint if "://" in self.endpoint else f"http://{self.endpoint}"
        return httpx.URL(endpoint)


CredentialSource = StaticTokenSet | AppInstallation | RemoteSecretServer
