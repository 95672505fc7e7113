"""End-to-end tests for the transport stack factory."""

import logging
from datetime import UTC, datetime, timedelta

import httpx
import pytest

from github_transport.auth import CredentialNotFoundError, FatalConfigurationError
from github_transport.auth.exceptions import CredentialFileError
from github_transport.config import TransportConfig
from github_transport.testing import RecordingTransport
from github_transport.transport import (
    AuthenticatingTransport,
    InstrumentedTransport,
    RateLimitedTransport,
    create_transport_stack,
)


def build(environ, metrics, **kwargs):
    return create_transport_stack(TransportConfig.from_env(environ), metrics=metrics, **kwargs)


async def send(transport, count):
    async with httpx.AsyncClient(transport=transport) as client:
        for _ in range(count):
            await client.get("https://api.github.com/repos/octocat/hello-world")


class TestStackComposition:
    """Test layer order."""

    @pytest.mark.unit
    def test_layers_are_stacked_auth_innermost(self, metrics):
        network = RecordingTransport()

        transport = build({"GITHUB_TOKEN": "tok"}, metrics, base_transport=network)

        assert isinstance(transport, InstrumentedTransport)
        rate_limited = transport._wrapped_transport
        assert isinstance(rate_limited, RateLimitedTransport)
        authenticating = rate_limited._wrapped_transport
        assert isinstance(authenticating, AuthenticatingTransport)
        assert authenticating._wrapped_transport is network

    @pytest.mark.unit
    def test_logger_is_used_for_the_stack(self, metrics, caplog):
        caplog.set_level(logging.INFO, logger="scanner")
        sink = logging.getLogger("scanner")

        transport = build({"GITHUB_TOKEN": "tok"}, metrics, logger=sink)

        assert transport._wrapped_transport.logger is sink
        assert "Using StaticTokenSet credentials" in caplog.text

    @pytest.mark.unit
    def test_max_rate_limit_wait(self, metrics):
        transport = build({"GITHUB_TOKEN": "tok"}, metrics, max_rate_limit_wait=30)

        assert transport._wrapped_transport.max_wait == 30


class TestStaticTokenScenarios:
    """Test stacks built from static tokens."""

    @pytest.mark.unit
    async def test_two_tokens_alternate(self, metrics):
        network = RecordingTransport()
        transport = build({"GITHUB_AUTH_TOKEN": "tok1,tok2"}, metrics, base_transport=network)

        await send(transport, 4)

        assert network.authorizations == ["Bearer tok1", "Bearer tok2", "Bearer tok1", "Bearer tok2"]

    @pytest.mark.unit
    async def test_token_beats_app_key_path(self, metrics):
        network = RecordingTransport()
        transport = build(
            {"GH_TOKEN": "ghp_pat", "GITHUB_APP_KEY_PATH": "/does/not/exist", "GITHUB_APP_ID": "1"},
            metrics,
            base_transport=network,
        )

        await send(transport, 1)

        assert network.authorizations == ["Bearer ghp_pat"]

    @pytest.mark.unit
    async def test_identical_environments_build_independent_identical_stacks(self, metrics):
        environ = {"GITHUB_AUTH_TOKEN": "a,b,c"}
        first_network, second_network = RecordingTransport(), RecordingTransport()

        first = build(environ, metrics, base_transport=first_network)
        second = build(environ, metrics, base_transport=second_network)
        await send(first, 2)
        await send(second, 1)

        assert first_network.authorizations == ["Bearer a", "Bearer b"]
        assert second_network.authorizations == ["Bearer a"]

    @pytest.mark.unit
    async def test_requests_are_counted(self, registry, metrics):
        transport = build({"GITHUB_AUTH_TOKEN": "tok"}, metrics, base_transport=RecordingTransport())

        await send(transport, 3)

        assert (
            registry.get_sample_value(
                "github_transport_requests_total", {"method": "GET", "host": "api.github.com", "status": "200"}
            )
            == 3
        )


class TestFatalConfiguration:
    """Test construction failures."""

    @pytest.mark.unit
    def test_nothing_configured(self, metrics):
        with pytest.raises(CredentialNotFoundError):
            build({}, metrics)

    @pytest.mark.unit
    def test_non_numeric_app_id_with_missing_key(self, metrics):
        with pytest.raises(FatalConfigurationError) as exc_info:
            build({"GITHUB_APP_KEY_PATH": "/k", "GITHUB_APP_ID": "not-a-number"}, metrics)

        assert not isinstance(exc_info.value, CredentialFileError)

    @pytest.mark.unit
    def test_non_numeric_app_id_with_existing_key(self, metrics, app_key_file):
        with pytest.raises(FatalConfigurationError) as exc_info:
            build(
                {
                    "GITHUB_APP_KEY_PATH": str(app_key_file),
                    "GITHUB_APP_ID": "not-a-number",
                    "GITHUB_APP_INSTALLATION_ID": "1",
                },
                metrics,
            )

        assert exc_info.value.env_var_name == "GITHUB_APP_ID"

    @pytest.mark.unit
    def test_missing_key_file(self, metrics, tmp_path):
        with pytest.raises(CredentialFileError):
            build(
                {
                    "GITHUB_APP_KEY_PATH": str(tmp_path / "missing.pem"),
                    "GITHUB_APP_ID": "1",
                    "GITHUB_APP_INSTALLATION_ID": "2",
                },
                metrics,
            )

    @pytest.mark.unit
    def test_unusable_secret_server(self, metrics):
        with pytest.raises(FatalConfigurationError):
            build({"GITHUB_SECRET_SERVER": "ftp://secrets.internal"}, metrics)

    @pytest.mark.unit
    def test_unreachable_secret_server(self, metrics):
        # Nothing listens on port 1, so the connection is refused
        with pytest.raises(FatalConfigurationError) as exc_info:
            build({"GITHUB_SECRET_SERVER": "127.0.0.1:1"}, metrics)

        assert exc_info.value.env_var_name == "GITHUB_SECRET_SERVER"


class TestCollaboratorScenarios:
    """Test stacks backed by token collaborators."""

    @pytest.mark.unit
    async def test_app_installation(self, metrics, app_key_file):
        expires_at = (datetime.now(UTC) + timedelta(hours=1)).strftime("%Y-%m-%dT%H:%M:%SZ")
        exchange = RecordingTransport(
            lambda request: httpx.Response(201, json={"token": "ghs_inst", "expires_at": expires_at})
        )
        network = RecordingTransport()
        transport = build(
            {
                "GITHUB_APP_KEY_PATH": str(app_key_file),
                "GITHUB_APP_ID": "11",
                "GITHUB_APP_INSTALLATION_ID": "22",
            },
            metrics,
            base_transport=network,
            exchange_transport=exchange,
        )

        await send(transport, 2)

        assert network.authorizations == ["Bearer ghs_inst", "Bearer ghs_inst"]
        assert [request.url.path for request in exchange.requests] == ["/app/installations/22/access_tokens"]

    @pytest.mark.unit
    async def test_secret_server(self, metrics):
        def secret_server(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/fetch":
                return httpx.Response(200, json={"token": "ghp_served", "id": 1})
            return httpx.Response(204)

        exchange = RecordingTransport(secret_server)
        network = RecordingTransport()
        transport = build(
            {"GITHUB_SECRET_SERVER": "localhost:8080"}, metrics, base_transport=network, exchange_transport=exchange
        )

        await send(transport, 1)

        assert network.authorizations == ["Bearer ghp_served"]
        assert [request.url.path for request in exchange.requests] == ["/fetch", "/release"]

    @pytest.mark.unit
    async def test_collaborator_failure_surfaces_per_request(self, metrics):
        def secret_server(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        network = RecordingTransport()
        transport = build(
            {"GITHUB_SECRET_SERVER": "localhost:8080"},
            metrics,
            base_transport=network,
            exchange_transport=httpx.MockTransport(secret_server),
        )

        with pytest.raises(httpx.ConnectError):
            await send(transport, 1)

        assert network.requests == []
