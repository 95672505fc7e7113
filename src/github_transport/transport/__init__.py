"""Transport layer components for composable HTTP middleware.

This module provides transport layers that are composed around httpx's
AsyncHTTPTransport to authenticate, pace and instrument GitHub API calls.

Modules:
    auth: Attaches the resolved credential to each request
    rate_limit: Waits out exhausted GitHub rate limits
    instrumentation: Prometheus request metrics
    factory: Factory function for the standard transport stack

Example:
    ```python
    from github_transport.transport import create_transport_stack

    transport = create_transport_stack()
    ```
"""

from github_transport.transport.auth import AuthenticatingTransport
from github_transport.transport.factory import create_transport_stack
from github_transport.transport.instrumentation import InstrumentedTransport, TransportMetrics
from github_transport.transport.rate_limit import RateLimitedTransport

__all__ = [
    "AuthenticatingTransport",
    "InstrumentedTransport",
    "RateLimitedTransport",
    "TransportMetrics",
    "create_transport_stack",
]
