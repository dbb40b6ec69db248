# stepweave/__init__.py
from .compiler import CompileResult, Workflow, compile_workflow
from .config import CompileOptions
from .errors import SchemaLoadError, StepweaveError, WorkflowValidationError
from .logging_utils import configure_logging
from .mermaid import render_mermaid
from .receipts import ListRecorder, record_steps
from .verifier import load_schema, validate_document, validate_or_raise

__all__ = [
    "CompileOptions",
    "CompileResult",
    "ListRecorder",
    "SchemaLoadError",
    "StepweaveError",
    "Workflow",
    "WorkflowValidationError",
    "compile_workflow",
    "configure_logging",
    "load_schema",
    "record_steps",
    "render_mermaid",
    "validate_document",
    "validate_or_raise",
]
