# regions_contract/scenarios.py
"""
Scenario runner for the regions API contract.

Each ``check_*`` method is one scenario category: it sends its
request(s), extracts values by JSON path and raises a ContractError
subclass on the first broken expectation. The methods are usable
directly from pytest (the exception is the failure message) or wrapped
by ``ScenarioRunner.run`` into a ScenarioResult.

Categories:
✅ Pagination: totality, uniqueness, default page equals page 1
✅ Page number: valid (schema) / invalid (error payload)
✅ Page size: default 15, fixture-driven valid / invalid
✅ Country code: closure over known codes, valid / invalid filter
✅ Name filter: valid (case-insensitive match) / invalid, precedence over other params
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from regions_contract.contract_types import (
    DEFAULT_PAGE_SIZE,
    REGIONS_PATH,
    VALID_COUNTRY_CODES,
    AssertionMismatch,
    ContractError,
    EndpointRequest,
    FixtureLoadError,
    FixtureRow,
    ResponseEnvelope,
    RunSummary,
    ScenarioResult,
    ScenarioStatus,
    TransportError,
)
from regions_contract.fixture_loader import load_fixture
from regions_contract.http_client import RegionsClient
from regions_contract.json_path import RegionPaths, extract_list, extract_string
from regions_contract.schema_validator import REGIONS_SCHEMA, SchemaValidator

logger = logging.getLogger(__name__)

PAGE_DEFAULT = EndpointRequest(REGIONS_PATH)
PAGE1 = EndpointRequest.of(REGIONS_PATH, page=1)
PAGE1_SIZE15 = EndpointRequest.of(REGIONS_PATH, page=1, page_size=DEFAULT_PAGE_SIZE)
PAGE2_SIZE15 = EndpointRequest.of(REGIONS_PATH, page=2, page_size=DEFAULT_PAGE_SIZE)
NAME_FILTER = EndpointRequest.of(REGIONS_PATH, q="рск")
NAME_FILTER_WITH_EXTRAS = EndpointRequest.of(REGIONS_PATH, q="рск", country_code="kz", page=2)


def _dedupe(values: Iterable[Any]) -> List[Any]:
    seen = set()
    out = []
    for v in values:
        if v not in seen:
            seen.add(v)
            out.append(v)
    return out


def _duplicates(values: Sequence[Any]) -> List[Any]:
    seen = set()
    dups = []
    for v in values:
        if v in seen and v not in dups:
            dups.append(v)
        seen.add(v)
    return dups


# ==================== Scenario Model ====================

@dataclass(frozen=True)
class Scenario:
    """Named, independently runnable check bound to its inputs."""
    name: str
    category: str
    check: Callable[["ScenarioRunner"], None]
    row: Optional[FixtureRow] = None


# name -> (fixture file, column types, runner method)
FIXTURE_SCENARIOS: Dict[str, Tuple[str, Tuple[type, ...], str]] = {
    "invalid_page_number": ("invalid_page_num.csv", (str, str, str), "check_invalid_page_number"),
    "valid_page_number": ("valid_page_num.csv", (str,), "check_valid_page_number"),
    "valid_page_size": ("valid_page_size.csv", (str, str, int), "check_valid_page_size"),
    "invalid_page_size": ("invalid_page_size.csv", (str, str, str), "check_invalid_page_size"),
    "valid_country_code": ("valid_country_code.csv", (str, str, str), "check_valid_country_code"),
    "invalid_country_code": ("invalid_country_code.csv", (str, str, str), "check_invalid_country_code"),
    "valid_name_filter": ("valid_region_name_filter.csv", (str, str, str), "check_valid_name_filter"),
    "invalid_name_filter": ("invalid_region_name_filter.csv", (str, str, str), "check_invalid_name_filter"),
}

FIXED_SCENARIOS: Tuple[str, ...] = (
    "pagination_totality",
    "pagination_uniqueness",
    "default_equals_first_page",
    "default_page_size",
    "country_code_closure",
    "filter_precedence",
)


class ScenarioRunner:
    """
    Runs contract scenarios against the regions API.

    The runner holds no per-scenario state, so one instance can execute
    scenarios concurrently from a thread pool.
    """

    def __init__(
        self,
        client: RegionsClient,
        schema_validator: Optional[SchemaValidator] = None,
        schema_ref: str = REGIONS_SCHEMA,
    ):
        self.client = client
        self.schema_validator = schema_validator or SchemaValidator()
        self.schema_ref = schema_ref

    # ==================== Request Helpers ====================

    def fetch_success(self, request: EndpointRequest) -> Any:
        """GET expecting a well-formed success body; returns the parsed body."""
        resp = self.client.fetch(request)
        self._expect_status(resp, 200)
        if not resp.is_json:
            raise AssertionMismatch(f"content type of {resp.url}", "application/json", resp.content_type)
        if resp.body is None:
            raise AssertionMismatch(f"body of {resp.url}", "JSON document", resp.text[:200])
        self.schema_validator.validate(resp.body, self.schema_ref)
        return resp.body

    def fetch_error(self, request: EndpointRequest) -> Any:
        """GET an invalid-input endpoint; the service answers 200 with an error payload."""
        resp = self.client.fetch(request)
        self._expect_status(resp, 200)
        return resp.body

    @staticmethod
    def _expect_status(resp: ResponseEnvelope, expected: int) -> None:
        if resp.status_code != expected:
            raise AssertionMismatch(f"status of {resp.url}", expected, resp.status_code)

    def _two_pages(self, path: str) -> List[Any]:
        first = extract_list(self.fetch_success(PAGE1_SIZE15), path)
        second = extract_list(self.fetch_success(PAGE2_SIZE15), path)
        return first + second

    # ==================== Pagination ====================

    def check_pagination_totality(self) -> None:
        all_ids = self._two_pages(RegionPaths.IDS)
        unique = _dedupe(all_ids)
        if len(all_ids) != len(unique):
            raise AssertionMismatch(
                f"distinct ids across pages 1-2 (duplicates: {_duplicates(all_ids)})",
                len(all_ids),
                len(unique),
            )

    def check_pagination_uniqueness(self) -> None:
        all_ids = self._two_pages(RegionPaths.IDS)
        unique = _dedupe(all_ids)
        if all_ids != unique:
            raise AssertionMismatch("ids across pages 1-2", unique, all_ids)

    def check_default_equals_first_page(self) -> None:
        default_ids = extract_list(self.fetch_success(PAGE_DEFAULT), RegionPaths.IDS)
        first_ids = extract_list(self.fetch_success(PAGE1), RegionPaths.IDS)
        if default_ids != first_ids:
            raise AssertionMismatch("ids of default page vs page=1", first_ids, default_ids)

    def check_valid_page_number(self, row: FixtureRow) -> None:
        self.fetch_success(row.request)

    def check_invalid_page_number(self, row: FixtureRow) -> None:
        self._check_error_message(row)

    # ==================== Page Size ====================

    def check_default_page_size(self) -> None:
        items = extract_list(self.fetch_success(PAGE_DEFAULT), RegionPaths.ITEMS)
        if len(items) != DEFAULT_PAGE_SIZE:
            raise AssertionMismatch("default page size", DEFAULT_PAGE_SIZE, len(items))

    def check_valid_page_size(self, row: FixtureRow) -> None:
        body = self.fetch_success(row.request)
        size = len(extract_list(body, row.path or RegionPaths.ITEMS))
        if size != row.expected:
            raise AssertionMismatch(f"size of '{row.path}' for {row.endpoint}", row.expected, size)

    def check_invalid_page_size(self, row: FixtureRow) -> None:
        self._check_error_message(row)

    # ==================== Country Code ====================

    def check_country_code_closure(self) -> None:
        codes = self._two_pages(RegionPaths.COUNTRY_CODES)
        unknown = sorted({c for c in codes if c not in VALID_COUNTRY_CODES}, key=str)
        if unknown:
            raise AssertionMismatch(
                "country codes across pages 1-2", sorted(VALID_COUNTRY_CODES), unknown
            )

    def check_valid_country_code(self, row: FixtureRow) -> None:
        body = self.fetch_success(row.request)
        codes = extract_list(body, row.path or RegionPaths.COUNTRY_CODES)
        offending = [c for c in codes if str(row.expected) not in str(c)]
        if offending:
            raise AssertionMismatch(
                f"country codes for {row.endpoint}", f"all containing {row.expected!r}", offending
            )

    def check_invalid_country_code(self, row: FixtureRow) -> None:
        self._check_error_message(row)

    # ==================== Name Filter ====================

    def check_valid_name_filter(self, row: FixtureRow) -> None:
        body = self.fetch_success(row.request)
        names = extract_string(body, row.path or RegionPaths.NAMES)
        if str(row.expected).casefold() not in names.casefold():
            raise AssertionMismatch(
                f"'{row.path}' for {row.endpoint} (case-insensitive)",
                f"containing {row.expected!r}",
                names,
            )

    def check_invalid_name_filter(self, row: FixtureRow) -> None:
        self._check_error_message(row)

    def check_filter_precedence(self) -> None:
        with_extras = extract_list(self.fetch_success(NAME_FILTER_WITH_EXTRAS), RegionPaths.COUNTRY_CODES)
        name_only = extract_list(self.fetch_success(NAME_FILTER), RegionPaths.COUNTRY_CODES)
        if with_extras != name_only:
            raise AssertionMismatch(
                f"country codes of {NAME_FILTER_WITH_EXTRAS.describe()} vs {NAME_FILTER.describe()}",
                name_only,
                with_extras,
            )

    # ==================== Error Payloads ====================

    def _check_error_message(self, row: FixtureRow) -> None:
        body = self.fetch_error(row.request)
        message = extract_string(body, row.path or RegionPaths.ERROR_MESSAGE)
        if message != row.expected:
            raise AssertionMismatch(f"'{row.path}' for {row.endpoint}", row.expected, message)

    # ==================== Execution ====================

    def run(self, scenario: Scenario) -> ScenarioResult:
        """Execute one scenario; any exception becomes a FAIL or ERROR result."""
        t0 = time.perf_counter()
        status = ScenarioStatus.PASS
        message = "OK"
        details: Dict[str, Any] = {"category": scenario.category}
        if scenario.row is not None:
            details["endpoint"] = scenario.row.endpoint

        try:
            scenario.check(self)
        except (TransportError, FixtureLoadError) as e:
            status, message = ScenarioStatus.ERROR, str(e)
        except ContractError as e:
            status, message = ScenarioStatus.FAIL, str(e)
        except Exception as e:
            logger.exception(f"💥 {scenario.name} crashed")
            status, message = ScenarioStatus.ERROR, f"{type(e).__name__}: {e}"

        duration = round(time.perf_counter() - t0, 3)
        if status == ScenarioStatus.PASS:
            logger.info(f"✅ {scenario.name} ({duration}s)")
        else:
            logger.warning(f"❌ {scenario.name} {status.value}: {message}")
        return ScenarioResult(scenario.name, status, message, duration, details)

    def run_all(self, scenarios: Sequence[Scenario], max_workers: int = 1) -> RunSummary:
        """Run scenarios, in parallel when max_workers > 1; results keep input order."""
        start = time.perf_counter()
        logger.info(f"Running {len(scenarios)} scenarios with {max_workers} worker(s)")

        if max_workers <= 1:
            results = [self.run(s) for s in scenarios]
        else:
            with ThreadPoolExecutor(max_workers=max_workers) as pool:
                results = list(pool.map(self.run, scenarios))

        summary = RunSummary(results=results, duration_s=round(time.perf_counter() - start, 2))
        logger.info(
            f"Run done: {summary.passed}/{summary.total} passed, "
            f"{summary.failed} failed, {summary.errors} errors ({summary.duration_s}s)"
        )
        return summary


# ==================== Catalogue ====================

def fixed_scenario(name: str) -> Scenario:
    method = f"check_{name}"
    return Scenario(name=name, category=name, check=lambda runner: getattr(runner, method)())


def fixture_scenarios(category: str, fixtures_dir: Optional[Path] = None) -> List[Scenario]:
    """One scenario per row of the category's fixture file."""
    resource, types, method = FIXTURE_SCENARIOS[category]
    out = []
    for row in load_fixture(resource, types=types, fixtures_dir=fixtures_dir):
        out.append(
            Scenario(
                name=f"{category}[{row.endpoint}]",
                category=category,
                check=partial(_run_row, method, row),
                row=row,
            )
        )
    return out


def _run_row(method: str, row: FixtureRow, runner: ScenarioRunner) -> None:
    getattr(runner, method)(row)


def unloadable_fixture_scenario(category: str, error: FixtureLoadError) -> Scenario:
    """Stand-in for a category whose fixture cannot be read; running it reports the load error."""
    def check(runner: ScenarioRunner) -> None:
        raise error

    return Scenario(name=f"{category}[{error.resource}]", category=category, check=check)


def build_default_scenarios(fixtures_dir: Optional[Path] = None) -> List[Scenario]:
    """
    Fixed scenarios followed by every fixture-driven instance.

    A broken fixture file only costs its own category, which is replaced
    by a single scenario that ends in ERROR.
    """
    scenarios = [fixed_scenario(name) for name in FIXED_SCENARIOS]
    for category in FIXTURE_SCENARIOS:
        try:
            scenarios.extend(fixture_scenarios(category, fixtures_dir))
        except FixtureLoadError as e:
            logger.error(f"⚠️ Fixture for {category} could not be loaded: {e}")
            scenarios.append(unloadable_fixture_scenario(category, e))
    return scenarios
