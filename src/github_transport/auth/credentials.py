"""Credential strategy resolution for GitHub API transports.

This module selects exactly one credential strategy from a configuration
snapshot, with strict priority ordering and no merging of strategies.

Resolution order (highest to lowest priority):
1. Static token(s) from the first non-empty token variable
2. GitHub App installation (key path + app ID + installation ID)
3. Remote secret server
4. Nothing configured: ``CredentialNotFoundError``

Example:
    ```python
    from github_transport.auth import CredentialResolver
    from github_transport.config import TransportConfig

    resolver = CredentialResolver()
    source = resolver.resolve(TransportConfig.from_env())
    ```

Security Considerations:
    - Credentials are never logged in full (masked with ***)
    - Only source information is logged (env var name, key path, etc.)
"""

import logging

from github_transport.auth.exceptions import AUTH_DOCS_URL, CredentialNotFoundError, FatalConfigurationError
from github_transport.auth.sources import AppInstallation, CredentialSource, RemoteSecretServer, StaticTokenSet
from github_transport.config import GITHUB_APP_ID, GITHUB_APP_INSTALLATION_ID, GITHUB_APP_KEY_PATH, TransportConfig

logger = logging.getLogger(__name__)


class CredentialResolver:
    """Resolve the credential strategy for a transport stack.

    The resolver holds no state of its own; it is a class so that callers
    can substitute their own resolution rules.

    Example:
        ```python
        resolver = CredentialResolver()

        source = resolver.resolve(TransportConfig.from_env({"GITHUB_TOKEN": "ghp_abc"}))
        assert isinstance(source, StaticTokenSet)
        ```
    """

    def _mask_credential(self, value: str | None) -> str:
        """Mask a credential value for safe logging.

        Args:
            value: The credential value to mask.

        Returns:
            Masked string ("***") if value exists, "None" otherwise.
        """
        if value is None:
            return "None"
        return "***"

    def resolve(self, config: TransportConfig) -> CredentialSource:
        """Pick the credential strategy described by ``config``.

        Args:
            config: Environment snapshot taken by the caller.

        Returns:
            The first configured strategy in priority order.

        Raises:
            FatalConfigurationError: If the App strategy is selected but its
                IDs are missing or not positive integers.
            CredentialNotFoundError: If no strategy is configured.
        """
        for env_var_name, value in config.tokens:
            if value:
                tokens = tuple(value.split(","))
                logger.debug(
                    f"Resolved {len(tokens)} static token(s) from environment variable "
                    f"'{env_var_name}': {self._mask_credential(value)}"
                )
                if "" in tokens:
                    logger.warning(f"Environment variable '{env_var_name}' contains an empty token entry")
                return StaticTokenSet(tokens=tokens)

        if config.app_key_path:
            app_id = self._parse_id(config.app_id, GITHUB_APP_ID)
            installation_id = self._parse_id(config.app_installation_id, GITHUB_APP_INSTALLATION_ID)
            logger.debug(
                f"Resolved GitHub App credential from '{GITHUB_APP_KEY_PATH}' "
                f"(app {app_id}, installation {installation_id})"
            )
            return AppInstallation(app_id=app_id, installation_id=installation_id, key_path=config.app_key_path)

        if config.secret_server:
            logger.debug(f"Resolved remote secret server at {config.secret_server}")
            return RemoteSecretServer(endpoint=config.secret_server)

        raise CredentialNotFoundError(
            "GitHub token env var is not set. Set one of GITHUB_AUTH_TOKEN, GITHUB_TOKEN, GH_TOKEN, "
            "GH_AUTH_TOKEN, configure a GitHub App (GITHUB_APP_KEY_PATH, GITHUB_APP_ID, "
            "GITHUB_APP_INSTALLATION_ID) or point GITHUB_SECRET_SERVER at a secret server. "
            f"Please read {AUTH_DOCS_URL}"
        )

    def _parse_id(self, value: str, env_var_name: str) -> int:
        """Parse a GitHub App identifier.

        Raises:
            FatalConfigurationError: If ``value`` is not a positive base-10 integer.
        """
        if not (value.isascii() and value.isdigit()) or int(value) <= 0:
            raise FatalConfigurationError(
                f"Environment variable '{env_var_name}' must be a positive integer, got {value!r}",
                env_var_name=env_var_name,
            )
        return int(value)
