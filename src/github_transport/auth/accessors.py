"""Token accessors: turn a credential strategy into per-request tokens.

An accessor is built once per transport stack from a ``CredentialSource``
and asked for a token on every outbound request. Each call returns a
``(lease_id, token)`` pair; the lease is handed back through ``release()``
once the request has completed.

| Strategy | Accessor | Caching |
|----------|----------|---------|
| ``StaticTokenSet`` | ``RoundRobinAccessor`` | n/a, tokens rotate by request count |
| ``AppInstallation`` | ``InstallationTokenAccessor`` | installation token reused until shortly before expiry |
| ``RemoteSecretServer`` | ``SecretServerAccessor`` | none, the server is asked every time |

Construction is where misconfiguration surfaces: an unreadable or invalid
signing key and an unusable or unreachable secret server raise
``FatalConfigurationError`` before any request is sent.
"""

import asyncio
import itertools
import logging
import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta
from pathlib import Path
from threading import Lock

import httpx
import jwt

from github_transport.auth.exceptions import CollaboratorError, CredentialFileError, FatalConfigurationError
from github_transport.auth.sources import AppInstallation, CredentialSource, RemoteSecretServer, StaticTokenSet
from github_transport.config import DEFAULT_API_URL, GITHUB_APP_KEY_PATH, GITHUB_SECRET_SERVER
from github_transport.errors import APIError, raise_for_status

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(30.0)


class TokenAccessor(ABC):
    """Source of the token attached to each outbound request."""

    @abstractmethod
    async def acquire(self, request: httpx.Request) -> tuple[int | None, str]:
        """Return ``(lease_id, token)`` for ``request``."""

    async def release(self, lease_id: int | None) -> None:
        """Hand a lease back once its request has completed."""

    async def aclose(self) -> None:
        """Release resources held by the accessor."""


class RoundRobinAccessor(TokenAccessor):
    """Rotate through a fixed set of tokens, one per request.

    The counter is advanced under a lock and always reduced modulo the
    number of tokens, so concurrent callers can at worst share a token,
    never index past the end of the set.

    Example:
        ```python
        accessor = RoundRobinAccessor(("tok1", "tok2"))
        await accessor.acquire(request)  # (0, "tok1")
        await accessor.acquire(request)  # (1, "tok2")
        ```
    """

    def __init__(self, tokens: tuple[str, ...]):
        if not tokens:
            raise ValueError("RoundRobinAccessor requires at least one token")
        self._tokens = tokens
        self._counter = itertools.count()
        self._lock = Lock()

    def _next_index(self) -> int:
        with self._lock:
            return next(self._counter) % len(self._tokens)

    async def acquire(self, request: httpx.Request) -> tuple[int | None, str]:
        index = self._next_index()
        return index, self._tokens[index]


class InstallationTokenAccessor(TokenAccessor):
    """Mint GitHub App installation tokens and reuse them until they expire.

    A short-lived RS256 JWT identifying the App is exchanged at
    ``POST /app/installations/{installation_id}/access_tokens``. The
    resulting installation token is cached and refreshed once it is within
    ``refresh_margin`` of its ``expires_at``; concurrent refreshes are
    serialised so only one exchange is in flight.

    Args:
        source: App identity and key location.
        api_url: GitHub API root the exchange is sent to.
        transport: Transport for the exchange requests (default: a new
            ``httpx.AsyncHTTPTransport``).
        timeout: Timeout for the exchange requests.
        refresh_margin: How long before expiry a token is replaced.

    Raises:
        CredentialFileError: If the key file cannot be read or is not a
            usable RSA private key.
    """

    JWT_ALGORITHM = "RS256"
    # GitHub rejects App JWTs expiring more than ten minutes ahead
    JWT_LIFETIME = 600
    JWT_CLOCK_DRIFT = 60
    DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)

    def __init__(
        self,
        source: AppInstallation,
        *,
        api_url: str = DEFAULT_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        refresh_margin: timedelta = timedelta(minutes=1),
    ):
        self._source = source
        self._signing_key = self._load_signing_key(source.key_path)
        # Fail at construction rather than on the first request
        self.create_app_jwt()

        self._refresh_margin = refresh_margin
        self._client = httpx.AsyncClient(
            base_url=api_url,
            transport=transport or httpx.AsyncHTTPTransport(),
            timeout=timeout,
            headers={"Accept": "application/vnd.github+json"},
        )
        self._token: str | None = None
        self._expires_at: datetime | None = None
        self._lock = asyncio.Lock()

    def _load_signing_key(self, key_path: str) -> str:
        path_obj = Path(key_path).expanduser()
        try:
            content = path_obj.read_text()
            logger.debug(f"Loaded GitHub App signing key from file: {path_obj} (***)")
            return content
        except FileNotFoundError:
            raise CredentialFileError(
                f"GitHub App key file not found: {path_obj}", env_var_name=GITHUB_APP_KEY_PATH
            ) from None
        except PermissionError:
            raise CredentialFileError(
                f"Permission denied reading GitHub App key file: {path_obj}", env_var_name=GITHUB_APP_KEY_PATH
            ) from None
        except Exception as e:
            raise CredentialFileError(
                f"Error reading GitHub App key file {path_obj}: {e}", env_var_name=GITHUB_APP_KEY_PATH
            ) from e

    def create_app_jwt(self, now: float | None = None) -> str:
        """Sign a JWT identifying the App.

        Args:
            now: Issue time as a Unix timestamp (default: current time).

        Raises:
            CredentialFileError: If the signing key is not a valid RSA key.
        """
        issued_at = int(now if now is not None else time.time())
        payload = {
            "iat": issued_at - self.JWT_CLOCK_DRIFT,
            "exp": issued_at + self.JWT_LIFETIME,
            "iss": str(self._source.app_id),
        }
        try:
            return jwt.encode(payload, self._signing_key, algorithm=self.JWT_ALGORITHM)
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            raise CredentialFileError(
                f"GitHub App key at {self._source.key_path} is not a valid RSA private key: {e}",
                env_var_name=GITHUB_APP_KEY_PATH,
            ) from e

    def _token_is_fresh(self) -> bool:
        if self._token is None or self._expires_at is None:
            return False
        return datetime.now(UTC) < self._expires_at - self._refresh_margin

    async def acquire(self, request: httpx.Request) -> tuple[int | None, str]:
        if not self._token_is_fresh():
            async with self._lock:
                # Another task may have refreshed while we waited
                if not self._token_is_fresh():
                    await self._refresh()
        return None, self._token

    async def _refresh(self) -> None:
        installation_id = self._source.installation_id
        logger.debug(f"Requesting installation token for installation {installation_id}")

        response = await self._client.post(
            f"/app/installations/{installation_id}/access_tokens",
            headers={"Authorization": f"Bearer {self.create_app_jwt()}"},
        )
        raise_for_status(response)

        data = response.json()
        token = data.get("token")
        if not token:
            raise CollaboratorError(f"No token in installation token response for installation {installation_id}")

        self._expires_at = self._parse_expires_at(data.get("expires_at"))
        self._token = token

        logger.debug(f"Installation token obtained, expires at {self._expires_at}")

    def _parse_expires_at(self, value: object) -> datetime:
        if isinstance(value, str) and value:
            try:
                expires_at = datetime.fromisoformat(value)
            except ValueError:
                logger.warning(f"Ignoring unparseable installation token expiry: {value!r}")
            else:
                # Naive timestamps from the API are UTC
                if expires_at.tzinfo is None:
                    expires_at = expires_at.replace(tzinfo=UTC)
                return expires_at
        return datetime.now(UTC) + self.DEFAULT_TOKEN_LIFETIME

    async def aclose(self) -> None:
        await self._client.aclose()


class SecretServerAccessor(TokenAccessor):
    """Ask a remote secret server for a token on every request.

    Protocol (JSON over HTTP):

    - ``POST {endpoint}/fetch`` with ``{"url": <request url>}`` answers
      ``{"token": <token>, "id": <lease id, optional>}``.
    - ``POST {endpoint}/release`` with ``{"id": <lease id>}`` hands the
      token back; only sent when ``fetch`` returned an ``id``.

    Nothing is cached here; the server decides which token is current.

    The server is contacted once at construction with a blocking request;
    any HTTP reply counts as reachable. An injected ``transport`` skips that
    check unless a synchronous ``probe_transport`` is given alongside it.

    Raises:
        FatalConfigurationError: If the endpoint is not a usable HTTP(S) URL
            or the server cannot be reached.
    """

    PROBE_TIMEOUT = httpx.Timeout(5.0)

    def __init__(
        self,
        source: RemoteSecretServer,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: httpx.Timeout = DEFAULT_TIMEOUT,
        probe_transport: httpx.BaseTransport | None = None,
    ):
        try:
            url = source.url
        except httpx.InvalidURL as e:
            raise FatalConfigurationError(
                f"Invalid secret server address {source.endpoint!r}: {e}", env_var_name=GITHUB_SECRET_SERVER
            ) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise FatalConfigurationError(
                f"Invalid secret server address {source.endpoint!r}", env_var_name=GITHUB_SECRET_SERVER
            )
        if transport is None or probe_transport is not None:
            self._check_reachable(url, probe_transport)

        self._client = httpx.AsyncClient(
            base_url=url,
            transport=transport or httpx.AsyncHTTPTransport(),
            timeout=timeout,
        )

    def _check_reachable(self, url: httpx.URL, probe_transport: httpx.BaseTransport | None) -> None:
        try:
            with httpx.Client(transport=probe_transport, timeout=self.PROBE_TIMEOUT) as client:
                client.head(url)
        except httpx.TransportError as e:
            raise FatalConfigurationError(
                f"Secret server at {url} is unreachable: {e}", env_var_name=GITHUB_SECRET_SERVER
            ) from e
        logger.debug(f"Secret server at {url} is reachable")

    async def acquire(self, request: httpx.Request) -> tuple[int | None, str]:
        response = await self._client.post("/fetch", json={"url": str(request.url)})
        raise_for_status(response)

        data = response.json()
        token = data.get("token")
        if not token:
            raise CollaboratorError(f"Secret server returned no token for {request.url}")
        return data.get("id"), token

    async def release(self, lease_id: int | None) -> None:
        if lease_id is None:
            return
        try:
            response = await self._client.post("/release", json={"id": lease_id})
            raise_for_status(response)
        except (httpx.HTTPError, APIError) as e:
            logger.warning(f"Failed to release secret server lease {lease_id}: {e}")

    async def aclose(self) -> None:
        await self._client.aclose()


def make_accessor(
    source: CredentialSource,
    *,
    api_url: str = DEFAULT_API_URL,
    transport: httpx.AsyncBaseTransport | None = None,
) -> TokenAccessor:
    """Build the accessor for a resolved credential strategy.

    Args:
        source: The resolved strategy.
        api_url: GitHub API root for installation-token exchange.
        transport: Transport the accessor uses to reach its collaborator.

    Raises:
        FatalConfigurationError: If the strategy cannot be put to use.
    """
    if isinstance(source, StaticTokenSet):
        return RoundRobinAccessor(source.tokens)
    if isinstance(source, AppInstallation):
        return InstallationTokenAccessor(source, api_url=api_url, transport=transport)
    if isinstance(source, RemoteSecretServer):
        return SecretServerAccessor(source, transport=transport)
    raise TypeError(f"Unsupported credential source: {type(source).__name__}")
