"""Shared fixtures for offline tests."""

from collections.abc import Callable, Iterator

import httpx
import pytest

from regions_contract.config import ContractSettings, get_settings
from regions_contract.http_client import RegionsClient
from regions_contract.scenarios import ScenarioRunner
from regions_contract.schema_validator import SchemaValidator
from fake_regions import BASE_URI, FakeRegionsService


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Drop cached settings so each test reads its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> ContractSettings:
    return ContractSettings(base_uri=BASE_URI, base_path="/1.0", log_http=True, live=False)


@pytest.fixture
def fake_service() -> FakeRegionsService:
    return FakeRegionsService()


@pytest.fixture
def client_for(settings) -> Iterator[Callable[..., RegionsClient]]:
    """Factory: RegionsClient whose network is the given handler."""
    created: list[RegionsClient] = []

    def _make(handler, **kwargs) -> RegionsClient:
        client = RegionsClient(settings, transport=httpx.MockTransport(handler), **kwargs)
        created.append(client)
        return client

    yield _make
    for c in created:
        c.close()


@pytest.fixture
def client(client_for, fake_service) -> RegionsClient:
    return client_for(fake_service)


@pytest.fixture
def runner_for(client_for) -> Callable[..., ScenarioRunner]:
    def _make(handler) -> ScenarioRunner:
        return ScenarioRunner(client_for(handler), SchemaValidator())

    return _make


@pytest.fixture
def runner(runner_for, fake_service) -> ScenarioRunner:
    return runner_for(fake_service)
