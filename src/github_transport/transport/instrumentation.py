"""Prometheus instrumentation transport.

Records one sample per outbound request:

- ``github_transport_requests_total{method, host, status}``: status is the
  HTTP status code, or ``error`` when the request raised
- ``github_transport_request_duration_seconds{method, host}``: wall time
  spent below this layer, including rate-limit waits when stacked outside
  ``RateLimitedTransport``

## Example

```python
from prometheus_client import CollectorRegistry

from github_transport.transport.instrumentation import InstrumentedTransport, TransportMetrics

registry = CollectorRegistry()
transport = InstrumentedTransport(
    wrapped_transport=httpx.AsyncHTTPTransport(),
    metrics=TransportMetrics(registry=registry),
)
```
"""

import logging
import time
from threading import Lock

import httpx
from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

logger = logging.getLogger(__name__)

_default_metrics: "TransportMetrics | None" = None
_default_metrics_lock = Lock()


class TransportMetrics:
    """Prometheus collectors for outbound GitHub requests.

    Collectors can only be registered once per registry, so build one
    ``TransportMetrics`` per registry and share it between transports.
    ``get_default_metrics()`` returns the one bound to the global registry.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        registry = registry if registry is not None else REGISTRY
        self.requests = Counter(
            "github_transport_requests_total",
            "Outbound GitHub API requests",
            labelnames=["method", "host", "status"],
            registry=registry,
        )
        self.duration = Histogram(
            "github_transport_request_duration_seconds",
            "Outbound GitHub API request latency in seconds",
            labelnames=["method", "host"],
            registry=registry,
        )

    def observe(self, request: httpx.Request, status: str, elapsed: float) -> None:
        host = request.url.host
        self.requests.labels(method=request.method, host=host, status=status).inc()
        self.duration.labels(method=request.method, host=host).observe(elapsed)


def get_default_metrics() -> TransportMetrics:
    """Return the process-wide metrics bound to the global registry."""
    global _default_metrics

    with _default_metrics_lock:
        if _default_metrics is None:
            _default_metrics = TransportMetrics()
        return _default_metrics


class InstrumentedTransport(httpx.AsyncBaseTransport):
    """Transport that records request counts and latency.

    Metrics are a side effect only: responses and exceptions from the
    wrapped transport are passed through unchanged.

    Args:
        wrapped_transport: The underlying transport to wrap
        metrics: Collectors to record into (default: ``get_default_metrics()``)
    """

    def __init__(
        self,
        *,
        wrapped_transport: httpx.AsyncBaseTransport,
        metrics: TransportMetrics | None = None,
    ) -> None:
        self._wrapped_transport = wrapped_transport
        self.metrics = metrics or get_default_metrics()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        """Send the request and record its outcome.

        Args:
            request: The HTTP request to send

        Returns:
            HTTP response from the wrapped transport
        """
        start = time.perf_counter()
        try:
            response = await self._wrapped_transport.handle_async_request(request)
        except Exception as e:
            logger.debug(f"Request {request.method} {request.url} failed with {e!r}")
            self.metrics.observe(request, "error", time.perf_counter() - start)
            raise

        self.metrics.observe(request, str(response.status_code), time.perf_counter() - start)
        return response

    async def aclose(self) -> None:
        """Close the wrapped transport."""
        await self._wrapped_transport.aclose()
