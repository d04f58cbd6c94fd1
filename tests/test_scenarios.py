import shutil

import httpx
import pytest

from regions_contract.config import RESOURCES_DIR

from regions_contract.contract_types import (
    AssertionMismatch,
    FixtureRow,
    PathNotFound,
    ScenarioStatus,
    SchemaViolation,
)
from regions_contract.scenarios import (
    FIXED_SCENARIOS,
    FIXTURE_SCENARIOS,
    Scenario,
    build_default_scenarios,
    fixed_scenario,
    fixture_scenarios,
)
from fake_regions import REGIONS, FakeRegionsService


def rewriting(service, rewrite):
    """Handler that lets `rewrite(request, body)` edit the fake's JSON before it is sent."""

    def handler(request):
        resp = service(request)
        body = resp.json()
        rewrite(request, body)
        return httpx.Response(resp.status_code, json=body)

    return handler


def param(request, name):
    return request.url.params.get(name)


# ==================== Happy path against the fake service ====================


@pytest.mark.parametrize("name", FIXED_SCENARIOS)
def test_fixed_checks_pass(runner, name):
    getattr(runner, f"check_{name}")()


@pytest.mark.parametrize("category", list(FIXTURE_SCENARIOS))
def test_fixture_driven_scenarios_pass(runner, category):
    scenarios = fixture_scenarios(category)

    assert scenarios
    for scenario in scenarios:
        result = runner.run(scenario)
        assert result.status == ScenarioStatus.PASS, result.message
        assert result.details == {"category": category, "endpoint": scenario.row.endpoint}


def test_default_catalogue_passes_on_a_worker_pool(runner, fake_service):
    scenarios = build_default_scenarios()

    summary = runner.run_all(scenarios, max_workers=4)

    assert summary.ok, [r.message for r in summary.results if not r.passed]
    assert [r.name for r in summary.results] == [s.name for s in scenarios]
    assert summary.total == len(scenarios) > len(FIXED_SCENARIOS)
    assert len(fake_service.requests) >= summary.total


def test_scenario_names_identify_fixture_rows():
    names = [s.name for s in fixture_scenarios("invalid_page_number")]

    assert "invalid_page_number[/regions?page=0]" in names


# ==================== Pagination ====================


def test_overlapping_pages_are_caught(runner_for, fake_service):
    def overlap(request, body):
        if param(request, "page") == "2":
            body["items"][0] = REGIONS[14]

    runner = runner_for(rewriting(fake_service, overlap))

    with pytest.raises(AssertionMismatch, match=r"duplicates: \[15\]"):
        runner.check_pagination_totality()
    with pytest.raises(AssertionMismatch) as exc:
        runner.check_pagination_uniqueness()
    assert exc.value.actual.count(15) == 2


def test_default_page_must_equal_first_page(runner_for, fake_service):
    def shuffle_default(request, body):
        if param(request, "page") is None:
            body["items"].reverse()

    runner = runner_for(rewriting(fake_service, shuffle_default))

    result = runner.run(fixed_scenario("default_equals_first_page"))

    assert result.status == ScenarioStatus.FAIL
    assert "ids of default page vs page=1" in result.message


def test_default_page_size(runner_for):
    runner = runner_for(FakeRegionsService(REGIONS[:10]))

    with pytest.raises(AssertionMismatch) as exc:
        runner.check_default_page_size()
    assert (exc.value.expected, exc.value.actual) == (15, 10)


def test_valid_page_size_compares_item_count(runner_for, fake_service):
    def truncate(request, body):
        body["items"] = body["items"][:3]

    runner = runner_for(rewriting(fake_service, truncate))

    with pytest.raises(AssertionMismatch, match="expected 5, got 3"):
        runner.check_valid_page_size(FixtureRow("/regions?page_size=5", "items", 5))


# ==================== Schema & content ====================


def test_schema_violation_fails_success_scenarios(runner_for, fake_service):
    def stringify_ids(request, body):
        for item in body["items"]:
            item["id"] = str(item["id"])

    runner = runner_for(rewriting(fake_service, stringify_ids))

    with pytest.raises(SchemaViolation) as exc:
        runner.check_valid_page_number(FixtureRow("/regions?page=1"))
    assert exc.value.mismatches[0].startswith("items/0/id:")

    result = runner.run(fixed_scenario("default_page_size"))
    assert result.status == ScenarioStatus.FAIL
    assert "does not match 'regions.schema.json'" in result.message


def test_success_requires_json_content(runner_for):
    runner = runner_for(lambda request: httpx.Response(200, text="ok"))

    with pytest.raises(AssertionMismatch, match="content type"):
        runner.check_default_page_size()


# ==================== Country code ====================


def test_unknown_country_code_breaks_closure(runner_for):
    regions = list(REGIONS)
    regions[20] = {**regions[20], "country": {"code": "ua", "name": "Україна"}}
    runner = runner_for(FakeRegionsService(regions))

    with pytest.raises(AssertionMismatch) as exc:
        runner.check_country_code_closure()
    assert exc.value.actual == ["ua"]


def test_country_filter_must_be_applied(runner_for, fake_service):
    def ignore_filter(request, body):
        if param(request, "country_code"):
            body["items"] = REGIONS[:15]

    runner = runner_for(rewriting(fake_service, ignore_filter))

    with pytest.raises(AssertionMismatch, match="all containing 'kz'"):
        runner.check_valid_country_code(FixtureRow("/regions?country_code=kz", "items.country.code", "kz"))


# ==================== Name filter ====================


def test_name_filter_match_is_case_insensitive(runner):
    runner.check_valid_name_filter(FixtureRow("/regions?q=МОСКВА", "items.name", "москва"))


def test_name_filter_without_match_fails(runner):
    with pytest.raises(AssertionMismatch, match="case-insensitive"):
        runner.check_valid_name_filter(FixtureRow("/regions?q=Москва", "items.name", "Прага"))


def test_name_filter_must_override_other_params(runner_for):
    class CombiningService(FakeRegionsService):
        def list_regions(self, params):
            resp = super().list_regions(params)
            country = params.get("country_code")
            if params.get("q") and country:
                body = resp.json()
                body["items"] = [r for r in body["items"] if r["country"]["code"] == country]
                return httpx.Response(200, json=body)
            return resp

    runner = runner_for(CombiningService())

    with pytest.raises(AssertionMismatch) as exc:
        runner.check_filter_precedence()
    assert exc.value.actual == []
    assert exc.value.expected


# ==================== Error payloads ====================


def test_error_payload_must_come_with_http_200(runner_for, fake_service):
    def as_bad_request(request):
        resp = fake_service(request)
        return httpx.Response(400, json=resp.json())

    runner = runner_for(as_bad_request)

    with pytest.raises(AssertionMismatch, match="expected 200, got 400"):
        runner.check_invalid_page_number(
            FixtureRow("/regions?page=0", "error.message", "Параметр 'page' должен быть больше 0")
        )


def test_error_message_must_match_literally(runner):
    row = FixtureRow("/regions?page=0", "error.message", "Параметр 'page' должен быть положительным")

    with pytest.raises(AssertionMismatch) as exc:
        runner.check_invalid_page_number(row)
    assert exc.value.actual == "Параметр 'page' должен быть больше 0"


def test_missing_error_payload_fails(runner):
    row = FixtureRow("/regions?page=1", "error.message", "anything")

    with pytest.raises(PathNotFound):
        runner.check_invalid_page_number(row)

    scenario = Scenario("missing_error", "invalid_page_number", lambda r: r.check_invalid_page_number(row), row)
    assert runner.run(scenario).status == ScenarioStatus.FAIL


# ==================== Errors vs failures ====================


def test_transport_failure_is_an_error_not_a_failure(runner_for):
    def down(request):
        raise httpx.ConnectError("connection refused", request=request)

    runner = runner_for(down)

    summary = runner.run_all([fixed_scenario(n) for n in FIXED_SCENARIOS], max_workers=2)

    assert summary.errors == summary.total
    assert all("connection refused" in r.message for r in summary.results)


def test_one_failure_does_not_stop_the_batch(runner_for, fake_service):
    def break_default(request, body):
        if param(request, "page") is None and param(request, "q") is None:
            body["items"] = body["items"][:5]

    runner = runner_for(rewriting(fake_service, break_default))

    summary = runner.run_all([fixed_scenario(n) for n in FIXED_SCENARIOS])

    statuses = {r.name: r.status for r in summary.results}
    assert statuses["default_page_size"] == ScenarioStatus.FAIL
    assert statuses["default_equals_first_page"] == ScenarioStatus.FAIL
    assert statuses["pagination_totality"] == ScenarioStatus.PASS
    assert statuses["country_code_closure"] == ScenarioStatus.PASS


def test_redirect_loop_is_an_error_for_that_scenario_only(runner_for, fake_service):
    def loop_default(request):
        if not request.url.params:
            return httpx.Response(302, headers={"Location": str(request.url)})
        return fake_service(request)

    runner = runner_for(loop_default)

    summary = runner.run_all([fixed_scenario(n) for n in FIXED_SCENARIOS])

    statuses = {r.name: r.status for r in summary.results}
    assert statuses["default_equals_first_page"] == ScenarioStatus.ERROR
    assert statuses["default_page_size"] == ScenarioStatus.ERROR
    assert statuses["pagination_totality"] == ScenarioStatus.PASS
    assert statuses["filter_precedence"] == ScenarioStatus.PASS
    assert "TooManyRedirects" in [r for r in summary.results if r.name == "default_page_size"][0].message


def test_unexpected_exception_becomes_an_error(runner):
    def crash(r):
        raise ValueError("bad path")

    result = runner.run(Scenario("crashing", "invalid_page_number", crash))

    assert result.status == ScenarioStatus.ERROR
    assert result.message == "ValueError: bad path"


def test_broken_fixture_only_costs_its_category(runner, tmp_path):
    shutil.copytree(RESOURCES_DIR / "fixtures", tmp_path, dirs_exist_ok=True)
    (tmp_path / "valid_page_size.csv").write_text(
        "endpoint,path,expected\n/regions?page_size=5,items,five\n", encoding="utf-8"
    )

    scenarios = build_default_scenarios(tmp_path)
    summary = runner.run_all(scenarios)

    by_category = {}
    for scenario, result in zip(scenarios, summary.results):
        by_category.setdefault(scenario.category, []).append(result)

    broken = by_category["valid_page_size"]
    assert [r.status for r in broken] == [ScenarioStatus.ERROR]
    assert "cannot convert 'five'" in broken[0].message
    assert summary.errors == 1
    assert summary.passed == summary.total - 1
    assert all(by_category[name][0].passed for name in FIXED_SCENARIOS)


def test_error_message_is_compared_as_text(runner_for, fake_service):
    def numeric_message(request, body):
        body["error"]["message"] = 42

    runner = runner_for(rewriting(fake_service, numeric_message))

    runner.check_invalid_page_number(FixtureRow("/regions?page=0", "error.message", "42"))
