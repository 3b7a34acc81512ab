"""Immutable run configuration.

A StepConfig is built once (by the CLI or a caller) and passed explicitly
to every operation. Validation happens on construction, so configuration
errors surface before any key loading, recording or command execution.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from linkseal.errors import InvalidStepNameError
from linkseal.kernel.hash_utils import DEFAULT_ALGORITHMS
from linkseal.kernel.recorder import RecordSettings

EXCLUDE_PATTERNS_ENV = "LINKSEAL_EXCLUDE_PATTERNS"


class StepConfig(BaseModel):
    """Everything needed to record, run and assemble one step."""
    name: str
    material_paths: Tuple[str, ...] = ()
    product_paths: Tuple[str, ...] = ()
    command: Tuple[str, ...] = ()  # empty means no command is executed
    environment: Dict[str, Any] = Field(default_factory=dict)
    run_dir: Optional[str] = None
    base_path: Optional[Path] = None
    exclude_patterns: Tuple[str, ...] = ()
    lstrip_paths: Tuple[str, ...] = ()
    algorithms: Tuple[str, ...] = DEFAULT_ALGORITHMS
    normalize_line_endings: bool = False
    follow_symlink_dirs: bool = False
    timeout: Optional[float] = Field(default=None, gt=0)
    workers: int = Field(default=1, ge=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v:
            raise InvalidStepNameError("Step name must not be empty")
        return v

    @model_validator(mode="after")
    def validate_record_settings(self) -> "StepConfig":
        self.record_settings()
        return self

    def record_settings(self) -> RecordSettings:
        """Recorder settings; validates algorithms, patterns and strip prefixes."""
        return RecordSettings(
            algorithms=self.algorithms,
            exclude_patterns=self.exclude_patterns,
            lstrip_paths=self.lstrip_paths,
            normalize_line_endings=self.normalize_line_endings,
            follow_symlink_dirs=self.follow_symlink_dirs,
            base_path=self.base_path,
            workers=self.workers,
        )
