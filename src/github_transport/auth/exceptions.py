"""Custom exceptions for credential resolution and authentication.

This module defines exceptions used throughout the authentication system,
from strategy resolution at startup to the collaborators that mint tokens.

Example:
    ```python
    from github_transport.auth.exceptions import FatalConfigurationError

    try:
        transport = create_transport_stack()
    except FatalConfigurationError as e:
        sys.exit(f"{e} (see {e.docs_url})")
    ```
"""

AUTH_DOCS_URL = "https://docs.github.com/en/rest/authentication/authenticating-to-the-rest-api"


class CredentialError(Exception):
    """Base exception for credential-related errors.

    All credential-specific exceptions inherit from this class,
    making it easy to catch any credential-related error.
    """

    pass


class FatalConfigurationError(CredentialError):
    """Raised when the credential configuration cannot be used.

    Covers a missing strategy as well as a strategy whose required fields
    are malformed. Callers are expected to stop rather than continue with
    a half-configured credential.

    Attributes:
        env_var_name: The environment variable at fault (if any).
        docs_url: Where to read about authentication setup.
    """

    def __init__(self, message: str, env_var_name: str | None = None, docs_url: str = AUTH_DOCS_URL):
        """Initialize FatalConfigurationError.

        Args:
            message: Error message describing the configuration problem.
            env_var_name: Optional environment variable name for reference.
            docs_url: Authentication setup documentation link.
        """
        super().__init__(message)
        self.env_var_name = env_var_name
        self.docs_url = docs_url


class CredentialNotFoundError(FatalConfigurationError):
    """Raised when no credential strategy is configured at all.

    Example:
        ```python
        try:
            source = resolver.resolve(config)
        except CredentialNotFoundError as e:
            print(f"Set up authentication: {e.docs_url}")
        ```
    """

    pass


class CredentialFileError(FatalConfigurationError):
    """Raised when the app signing key file cannot be read or used.

    Example:
        ```python
        try:
            accessor = make_accessor(AppInstallation(1, 2, "/missing.pem"))
        except CredentialFileError as e:
            print(f"Cannot read signing key: {e}")
        ```
    """

    pass


class CollaboratorError(CredentialError):
    """Raised when a token collaborator answers without usable credential material.

    Network failures are not wrapped; they surface as the httpx exception
    that caused them.
    """

    pass
