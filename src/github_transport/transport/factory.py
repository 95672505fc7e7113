"""Factory for the standard GitHub transport stack.

Layers, innermost first:

1. ``base_transport``: the network (``httpx.AsyncHTTPTransport`` by default)
2. ``AuthenticatingTransport``: attaches the resolved credential
3. ``RateLimitedTransport``: waits out exhausted rate limits
4. ``InstrumentedTransport``: records metrics, including rate-limit waits
"""

import logging

import httpx

from github_transport.auth.accessors import make_accessor
from github_transport.auth.credentials import CredentialResolver
from github_transport.config import TransportConfig
from github_transport.transport.auth import AuthenticatingTransport
from github_transport.transport.instrumentation import InstrumentedTransport, TransportMetrics
from github_transport.transport.rate_limit import RateLimitedTransport


def create_transport_stack(
    config: TransportConfig | None = None,
    *,
    logger: logging.Logger | None = None,
    base_transport: httpx.AsyncBaseTransport | None = None,
    exchange_transport: httpx.AsyncBaseTransport | None = None,
    metrics: TransportMetrics | None = None,
    resolver: CredentialResolver | None = None,
    max_rate_limit_wait: float = 3600.0,
) -> httpx.AsyncBaseTransport:
    """Resolve a credential and build the authenticated transport stack.

    Resolution happens exactly once per call; two calls with the same
    configuration give two independent stacks.

    Args:
        config: Environment snapshot (default: ``TransportConfig.from_env()``).
        logger: Logger for the stack (default: this module's logger).
        base_transport: Network transport at the bottom of the stack.
        exchange_transport: Transport used to reach the installation-token
            endpoint or the secret server. When given, the secret server's
            construction-time reachability check is skipped.
        metrics: Prometheus collectors (default: global registry).
        resolver: Credential resolver (default: ``CredentialResolver()``).
        max_rate_limit_wait: Longest time a request is held for a rate limit.

    Returns:
        The outermost transport, ready for ``httpx.AsyncClient(transport=...)``.

    Raises:
        FatalConfigurationError: If no credential is configured or the
            configured one cannot be used.

    Example:
        ```python
        transport = create_transport_stack()
        async with httpx.AsyncClient(transport=transport, base_url="https://api.github.com") as client:
            response = await client.get("/rate_limit")
        ```
    """
    logger = logger or logging.getLogger(__name__)
    if config is None:
        config = TransportConfig.from_env()

    source = (resolver or CredentialResolver()).resolve(config)
    accessor = make_accessor(source, api_url=config.api_url, transport=exchange_transport)
    logger.info(f"Using {type(source).__name__} credentials for GitHub API requests")

    transport: httpx.AsyncBaseTransport = AuthenticatingTransport(
        wrapped_transport=base_transport or httpx.AsyncHTTPTransport(),
        accessor=accessor,
    )
    transport = RateLimitedTransport(wrapped_transport=transport, max_wait=max_rate_limit_wait, logger=logger)
    return InstrumentedTransport(wrapped_transport=transport, metrics=metrics)
