"""Environment snapshot used to pick a credential strategy.

The process environment is read exactly once, by the caller, into an
immutable ``TransportConfig``. Nothing downstream looks at ``os.environ``
again, so resolution can be exercised with an injected mapping.

Variables (first match wins, see ``CredentialResolver``):

| Variable | Role |
|----------|------|
| ``GITHUB_AUTH_TOKEN``, ``GITHUB_TOKEN``, ``GH_TOKEN``, ``GH_AUTH_TOKEN`` | comma-separated token(s) |
| ``GITHUB_APP_KEY_PATH`` | path to the GitHub App private key |
| ``GITHUB_APP_ID`` | GitHub App ID |
| ``GITHUB_APP_INSTALLATION_ID`` | installation ID |
| ``GITHUB_SECRET_SERVER`` | address of the remote secret server |
| ``GITHUB_API_URL`` | API root used for installation-token exchange |

Example:
    ```python
    from github_transport.config import TransportConfig

    config = TransportConfig.from_env()
    config = TransportConfig.from_env({"GITHUB_AUTH_TOKEN": "tok1,tok2"})
    ```
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from threading import Lock

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

GITHUB_AUTH_TOKENS: tuple[str, ...] = ("GITHUB_AUTH_TOKEN", "GITHUB_TOKEN", "GH_TOKEN", "GH_AUTH_TOKEN")
GITHUB_APP_KEY_PATH = "GITHUB_APP_KEY_PATH"
GITHUB_APP_ID = "GITHUB_APP_ID"
GITHUB_APP_INSTALLATION_ID = "GITHUB_APP_INSTALLATION_ID"
GITHUB_SECRET_SERVER = "GITHUB_SECRET_SERVER"
GITHUB_API_URL = "GITHUB_API_URL"

DEFAULT_API_URL = "https://api.github.com"

_dotenv_loaded = False
_dotenv_lock = Lock()


def _ensure_dotenv_loaded(dotenv_path: str | None = None) -> None:
    """Load the .env file into the process environment once (thread-safe).

    Existing environment variables are never overridden.
    """
    global _dotenv_loaded

    if _dotenv_loaded:
        return

    with _dotenv_lock:
        # Double-check pattern for thread safety
        if _dotenv_loaded:
            return

        try:
            load_dotenv(dotenv_path=dotenv_path)
            logger.debug("Loaded .env file for credential resolution")
        except Exception as e:
            logger.warning(f"Failed to load .env file: {e}")
        _dotenv_loaded = True


@dataclass(frozen=True)
class TransportConfig:
    """Read-only snapshot of the credential-related environment.

    Values are kept as raw strings; parsing and validation belong to
    ``CredentialResolver`` so that malformed values fail at resolution time.

    Attributes:
        tokens: ``(variable name, value)`` for each token variable, in
            precedence order. Unset variables carry an empty value.
        app_key_path: Value of ``GITHUB_APP_KEY_PATH``.
        app_id: Value of ``GITHUB_APP_ID``.
        app_installation_id: Value of ``GITHUB_APP_INSTALLATION_ID``.
        secret_server: Value of ``GITHUB_SECRET_SERVER``.
        api_url: Value of ``GITHUB_API_URL`` or the public API root.
    """

    tokens: tuple[tuple[str, str], ...] = ()
    app_key_path: str = ""
    app_id: str = ""
    app_installation_id: str = ""
    secret_server: str = ""
    api_url: str = DEFAULT_API_URL

    def __repr__(self) -> str:
        set_tokens = [name for name, value in self.tokens if value]
        return (
            f"TransportConfig(tokens={set_tokens!r}, app_key_path={self.app_key_path!r}, "
            f"app_id={self.app_id!r}, app_installation_id={self.app_installation_id!r}, "
            f"secret_server={self.secret_server!r}, api_url={self.api_url!r})"
        )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        dotenv_path: str | None = None,
        load_dotenv: bool = True,
    ) -> "TransportConfig":
        """Take a snapshot of the environment.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``; when a
                mapping is given, no .env file is loaded.
            dotenv_path: Path to .env file. If None, python-dotenv searches
                parent directories.
            load_dotenv: Whether to load a .env file before reading
                ``os.environ``.

        Returns:
            An immutable configuration snapshot.
        """
        if environ is None:
            if load_dotenv:
                _ensure_dotenv_loaded(dotenv_path)
            environ = os.environ

        return cls(
            tokens=tuple((name, environ.get(name, "")) for name in GITHUB_AUTH_TOKENS),
            app_key_path=environ.get(GITHUB_APP_KEY_PATH, ""),
            app_id=environ.get(GITHUB_APP_ID, ""),
            app_installation_id=environ.get(GITHUB_APP_INSTALLATION_ID, ""),
            secret_server=environ.get(GITHUB_SECRET_SERVER, ""),
            api_url=environ.get(GITHUB_API_URL) or DEFAULT_API_URL,
        )
