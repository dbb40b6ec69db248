# stepweave/config.py
# Compile-time options. Defaults yield documents that satisfy the packaged schema.

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

SCHEMA_VERSION = "2.0.0"


@dataclass
class CompileOptions:
    author: str = "stepweave"
    version: str = "1.0.0"
    description: str = "Workflow compiled from line-oriented commands"
    tags: List[str] = field(default_factory=lambda: ["workflow", "generated"])
    language: str = "en"
    schema_path: Optional[Path] = None      # None → packaged schemas/workflow.schema.json
    intent: str = "automation"
    sentiment: str = "neutral"
    # execution policy
    max_runs_per_minute: int = 60
    max_concurrent_runs: int = 10
    priority: str = "medium"
    timeout: int = 300
