"""Shared test fixtures for the SBTMint test suite."""

import os

import pytest

# Ensure test environment variables are set before any config import
os.environ.setdefault("SBTMINT_API_KEY", "test-api-key")
os.environ.setdefault("SBTMINT_DEMO_MODE", "true")
os.environ.setdefault("SBTMINT_WALLET_MODE", "none")
os.environ.setdefault("SBTMINT_REGISTRY_BACKEND", "memory")

from sbtmint.minter import CredentialMinter
from sbtmint.orchestrator import SubmissionOrchestrator
from sbtmint.registry import InMemoryIdentifierRegistry
from sbtmint.verifier import MetadataVerifier
from tests.fakes import FakeOpenAlex, FakeWallet, work


@pytest.fixture
def registry():
    return InMemoryIdentifierRegistry()


@pytest.fixture
def lookup():
    """OpenAlex double knowing the works used across scenarios."""
    return FakeOpenAlex({
        "10.1/abc": work("Graph Theory Basics", "https://openalex.org/W1"),
        "10.1/xyz": work("Correct Title", "https://openalex.org/W2"),
        "10.1/dl": work(" Deep Learning ", "https://openalex.org/W3"),
    })


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def orchestrator(registry, lookup, wallet):
    verifier = MetadataVerifier(registry, lookup)
    minter = CredentialMinter(wallet)
    return SubmissionOrchestrator(registry, verifier, minter)


@pytest.fixture(autouse=True)
def reset_singletons():
    """Drop cached config and pipeline so every test builds its own."""
    import sbtmint.config
    import sbtmint.services
    from sbtmint.api.auth import reset_rate_limits

    sbtmint.config._config = None
    sbtmint.services.set_orchestrator(None)
    reset_rate_limits()
    yield
    sbtmint.config._config = None
    sbtmint.services.set_orchestrator(None)
