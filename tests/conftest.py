"""Pytest configuration and shared fixtures for github-transport tests."""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from prometheus_client import CollectorRegistry

from github_transport.transport.instrumentation import TransportMetrics


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    """Auto-cleanup: Clear GitHub credential variables before each test.

    This prevents a developer's own token from leaking into resolution tests.
    """
    import os

    test_prefixes = ("GITHUB_", "GH_")

    for key in list(os.environ.keys()):
        if any(key.startswith(prefix) for prefix in test_prefixes):
            monkeypatch.delenv(key, raising=False)

    yield


@pytest.fixture(scope="session")
def rsa_private_key():
    """RSA key pair standing in for a GitHub App private key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def app_key_file(tmp_path, rsa_private_key):
    """PEM file holding the test App private key."""
    pem = rsa_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    key_file = tmp_path / "app.pem"
    key_file.write_bytes(pem)
    return key_file


@pytest.fixture
def registry():
    """Isolated Prometheus registry."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry):
    """Transport metrics bound to the isolated registry."""
    return TransportMetrics(registry=registry)
