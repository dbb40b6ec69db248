# stepweave/errors.py
from __future__ import annotations
from typing import List


class StepweaveError(Exception):
    pass


class SchemaLoadError(StepweaveError):
    """The workflow schema document could not be read or decoded."""


class WorkflowValidationError(StepweaveError):
    def __init__(self, errors: List[str]):
        super().__init__("Workflow validation failed:\n- " + "\n- ".join(errors))
        self.errors = list(errors)
