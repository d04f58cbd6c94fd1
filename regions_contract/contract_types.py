# regions_contract/contract_types.py
"""
Shared types, enums, and exceptions for the regions contract suite.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlsplit


VALID_COUNTRY_CODES = frozenset({"ru", "kg", "kz", "cz"})
DEFAULT_PAGE_SIZE = 15
REGIONS_PATH = "/regions"


class ScenarioStatus(Enum):
    """Outcome of a single scenario."""
    PASS = "PASS"
    FAIL = "FAIL"
    ERROR = "ERROR"


# ==================== Data Models ====================

@dataclass(frozen=True)
class EndpointRequest:
    """GET request against the regions API, relative to the base path."""
    path: str
    params: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def of(cls, path: str, **params: Any) -> "EndpointRequest":
        return cls(path=path, params=tuple((k, str(v)) for k, v in params.items()))

    @classmethod
    def from_endpoint(cls, endpoint: str) -> "EndpointRequest":
        """
        Build a request from a fixture endpoint such as ``/regions?page=0``.

        Query order is preserved and blank values are kept, since several
        fixtures probe exactly that (``?page=``).
        """
        parts = urlsplit(endpoint.strip())
        params = tuple(parse_qsl(parts.query, keep_blank_values=True))
        return cls(path=parts.path or REGIONS_PATH, params=params)

    def query(self) -> List[Tuple[str, str]]:
        return list(self.params)

    def describe(self) -> str:
        if not self.params:
            return self.path
        qs = "&".join(f"{k}={v}" for k, v in self.params)
        return f"{self.path}?{qs}"


@dataclass(frozen=True)
class ResponseEnvelope:
    """Response as seen by a scenario: status, content type, parsed body."""
    status_code: int
    content_type: str
    body: Any
    url: str = ""
    text: str = ""
    elapsed_ms: Optional[int] = None

    @property
    def is_json(self) -> bool:
        return "application/json" in (self.content_type or "").lower()


@dataclass(frozen=True)
class FixtureRow:
    """One row of a CSV fixture; drives one scenario instance."""
    endpoint: str
    path: Optional[str] = None
    expected: Any = None
    line: int = 0

    @property
    def request(self) -> EndpointRequest:
        return EndpointRequest.from_endpoint(self.endpoint)


@dataclass(frozen=True)
class RegionItem:
    id: int
    country_code: str
    name: str

    @classmethod
    def from_json(cls, item: Dict[str, Any]) -> "RegionItem":
        country = item.get("country") or {}
        return cls(id=item["id"], country_code=country.get("code", ""), name=item.get("name", ""))


@dataclass
class ScenarioResult:
    """Verdict for one scenario."""
    name: str
    status: ScenarioStatus
    message: str = "OK"
    duration_s: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return self.status == ScenarioStatus.PASS

    def to_dict(self) -> Dict[str, Any]:
        return {**asdict(self), "status": self.status.value}


@dataclass
class RunSummary:
    """Aggregated results of a batch of scenarios."""
    results: List[ScenarioResult] = field(default_factory=list)
    duration_s: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.status == ScenarioStatus.PASS)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == ScenarioStatus.FAIL)

    @property
    def errors(self) -> int:
        return sum(1 for r in self.results if r.status == ScenarioStatus.ERROR)

    @property
    def ok(self) -> bool:
        return self.passed == self.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "errors": self.errors,
            "duration_s": self.duration_s,
            "results": [r.to_dict() for r in self.results],
        }


# ==================== Exceptions ====================

class ContractError(Exception):
    """Base exception for contract suite errors."""
    pass


class FixtureLoadError(ContractError):
    """Raised when a fixture file is missing or a row is malformed."""
    def __init__(self, resource: str, reason: str, line: Optional[int] = None):
        self.resource = resource
        self.reason = reason
        self.line = line
        where = f"{resource}:{line}" if line is not None else resource
        super().__init__(f"Fixture '{where}' could not be loaded: {reason}")


class TransportError(ContractError):
    """Raised when the HTTP request itself fails (connect, timeout, protocol, redirect loop)."""
    def __init__(self, url: str, original_error: Exception):
        self.url = url
        self.original_error = original_error
        super().__init__(f"GET {url} failed: {original_error!r}")


class SchemaViolation(ContractError):
    """Raised when a response body does not match its schema."""
    def __init__(self, schema_ref: str, mismatches: List[str]):
        self.schema_ref = schema_ref
        self.mismatches = list(mismatches)
        listed = "; ".join(self.mismatches[:10])
        more = f" (+{len(self.mismatches) - 10} more)" if len(self.mismatches) > 10 else ""
        super().__init__(f"Response does not match '{schema_ref}': {listed}{more}")


class PathNotFound(ContractError):
    """Raised when a JSON path segment is absent from the document."""
    def __init__(self, path: str, segment: str):
        self.path = path
        self.segment = segment
        super().__init__(f"JSON path '{path}' not found (missing segment '{segment}')")


class AssertionMismatch(ContractError):
    """Raised when an observed value differs from the expected one."""
    def __init__(self, what: str, expected: Any, actual: Any):
        self.what = what
        self.expected = expected
        self.actual = actual
        super().__init__(f"{what}: expected {expected!r}, got {actual!r}")
