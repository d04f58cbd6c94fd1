# regions_contract/schema_validator.py
"""
JSON Schema validation of response bodies.

Schemas live as ``<name>.schema.json``-style files in the configured
schemas directory and are referenced by file name. Each schema is loaded
and checked once, then cached for the life of the validator.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema
from jsonschema.exceptions import SchemaError

from regions_contract.config import get_settings
from regions_contract.contract_types import SchemaViolation

logger = logging.getLogger(__name__)

REGIONS_SCHEMA = "regions.schema.json"


def _location(error: jsonschema.ValidationError) -> str:
    parts = [str(p) for p in error.absolute_path]
    return "/".join(parts) if parts else "<root>"


class SchemaValidator:
    """Validate API responses against JSON schemas"""

    def __init__(self, schemas_dir: Optional[Path] = None):
        self.schemas_dir = Path(schemas_dir or get_settings().schemas_dir)
        self._validators: Dict[str, Any] = {}
        self._lock = threading.Lock()

    def load_schema(self, schema_ref: str) -> Dict[str, Any]:
        path = self.schemas_dir / schema_ref
        if not path.is_file():
            raise FileNotFoundError(f"schema '{schema_ref}' not found in {self.schemas_dir}")
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def _validator(self, schema_ref: str):
        with self._lock:
            validator = self._validators.get(schema_ref)
            if validator is None:
                schema = self.load_schema(schema_ref)
                cls = jsonschema.validators.validator_for(schema)
                try:
                    cls.check_schema(schema)
                except SchemaError:
                    logger.error(f"Schema {schema_ref} is itself invalid")
                    raise
                validator = cls(schema)
                self._validators[schema_ref] = validator
                logger.debug(f"Loaded schema {schema_ref} ({cls.__name__})")
            return validator

    def errors(self, data: Any, schema_ref: str = REGIONS_SCHEMA) -> List[str]:
        """Field-level mismatches, ordered by location; empty when valid."""
        validator = self._validator(schema_ref)
        found = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.absolute_path])
        return [f"{_location(e)}: {e.message}" for e in found]

    def is_valid(self, data: Any, schema_ref: str = REGIONS_SCHEMA) -> bool:
        return not self.errors(data, schema_ref)

    def validate(self, data: Any, schema_ref: str = REGIONS_SCHEMA) -> None:
        """Raise SchemaViolation listing every mismatch, or return None."""
        mismatches = self.errors(data, schema_ref)
        if mismatches:
            raise SchemaViolation(schema_ref, mismatches)
