# regions_contract/__init__.py
"""
Regions API contract suite

Harness for checking the public ``/1.0/regions`` endpoint: CSV fixtures,
an httpx client wrapper, JSON Schema validation, dotted JSON paths and a
scenario runner that turns each check into a PASS/FAIL/ERROR verdict.
"""

from regions_contract.contract_types import (
    AssertionMismatch,
    ContractError,
    EndpointRequest,
    FixtureLoadError,
    FixtureRow,
    PathNotFound,
    ResponseEnvelope,
    RunSummary,
    ScenarioResult,
    ScenarioStatus,
    SchemaViolation,
    TransportError,
)
from regions_contract.fixture_loader import load_fixture
from regions_contract.http_client import RegionsClient
from regions_contract.json_path import RegionPaths, extract
from regions_contract.scenarios import Scenario, ScenarioRunner, build_default_scenarios
from regions_contract.schema_validator import SchemaValidator

__all__ = [
    "AssertionMismatch",
    "ContractError",
    "EndpointRequest",
    "FixtureLoadError",
    "FixtureRow",
    "PathNotFound",
    "RegionPaths",
    "RegionsClient",
    "ResponseEnvelope",
    "RunSummary",
    "Scenario",
    "ScenarioResult",
    "ScenarioRunner",
    "ScenarioStatus",
    "SchemaValidator",
    "SchemaViolation",
    "TransportError",
    "build_default_scenarios",
    "extract",
    "load_fixture",
]
