# stepweave/verifier.py
# Schema validation gate for compiled workflow documents.
# - The packaged schema is loaded once per path and reused.
# - Every violation is reported (no fail-fast), sorted by JSON path.

from __future__ import annotations
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from .errors import SchemaLoadError, WorkflowValidationError

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "workflow.schema.json"


@lru_cache(maxsize=None)
def _load_schema_cached(path_str: str) -> Dict[str, Any]:
    path = Path(path_str)
    try:
        schema = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SchemaLoadError(f"Cannot read workflow schema {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Workflow schema {path} is not valid JSON: {e}") from e
    try:
        Draft202012Validator.check_schema(schema)
    except SchemaError as e:
        raise SchemaLoadError(f"Workflow schema {path} is not a valid JSON Schema: {e.message}") from e
    logger.debug("loaded workflow schema from %s", path)
    return schema


def load_schema(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """Return the schema document at `path` (default: the packaged one).

    Raises SchemaLoadError when the file is missing, unreadable or not a schema.
    Failed loads are not cached.
    """
    target = Path(path) if path is not None else DEFAULT_SCHEMA_PATH
    return _load_schema_cached(str(target.resolve()))


def _fmt_error(err) -> str:
    return f"Validation error: {err.json_path}: {err.message}"


def validate_document(document: Dict[str, Any], schema: Optional[Dict[str, Any]] = None) -> List[str]:
    """Collect every schema violation as a formatted string; [] when valid."""
    validator = Draft202012Validator(schema if schema is not None else load_schema())
    errors = sorted(validator.iter_errors(document), key=lambda e: (e.json_path, e.message))
    return [_fmt_error(e) for e in errors]


def validate_or_raise(document: Dict[str, Any], schema: Optional[Dict[str, Any]] = None) -> None:
    errs = validate_document(document, schema)
    if errs:
        raise WorkflowValidationError(errs)
