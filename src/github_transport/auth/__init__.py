"""Authentication components for GitHub API clients.

This module provides:
- Credential strategy resolution (static tokens → GitHub App → secret server)
- Token accessors that produce the credential for each request
- The exceptions raised when no usable credential is configured

Example:
    ```python
    from github_transport.auth import CredentialResolver
    from github_transport.config import TransportConfig

    source = CredentialResolver().resolve(TransportConfig.from_env())
    ```
"""

from github_transport.auth.accessors import (
    InstallationTokenAccessor,
    RoundRobinAccessor,
    SecretServerAccessor,
    TokenAccessor,
    make_accessor,
)
from github_transport.auth.credentials import CredentialResolver
from github_transport.auth.exceptions import (
    CollaboratorError,
    CredentialError,
    CredentialFileError,
    CredentialNotFoundError,
    FatalConfigurationError,
)
from github_transport.auth.sources import AppInstallation, CredentialSource, RemoteSecretServer, StaticTokenSet

__all__ = [
    "AppInstallation",
    "CollaboratorError",
    "CredentialError",
    "CredentialFileError",
    "CredentialNotFoundError",
    "CredentialResolver",
    "CredentialSource",
    "FatalConfigurationError",
    "InstallationTokenAccessor",
    "RemoteSecretServer",
    "RoundRobinAccessor",
    "SecretServerAccessor",
    "StaticTokenSet",
    "TokenAccessor",
    "make_accessor",
]
