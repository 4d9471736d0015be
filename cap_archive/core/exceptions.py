"""Pipeline exception taxonomy.

Every error raised by the CAP archive pipeline derives from
``PipelineError`` and carries the stage that raised it, a stable code,
the run id it belongs to and the *scope* it affects:

- ``"archive"``: the whole archive is unusable; the run fails before
  any progress is reported.
- ``"document"``: one archive entry is unusable; the run records the
  failure and moves on.
- ``"run"``: the run as a whole cannot produce a result.
- ``"config"``: the pipeline cannot be configured.

Categories
----------
- ``ValidationError``: malformed input, never retryable.
- ``PermanentError``: a well-formed input that still cannot yield a result.
- ``ContractError``: a caller or controller broke the run's state contract.

``to_error_dict()`` gives a stable payload for run reports and logs.
"""

from __future__ import annotations

from typing import ClassVar

SCOPE_ARCHIVE = "archive"
SCOPE_DOCUMENT = "document"
SCOPE_RUN = "run"
SCOPE_CONFIG = "config"


class PipelineError(Exception):
    """Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error description.
        stage: Pipeline stage that raised the error
            (e.g. ``"extract_archive"``, ``"parse_cap"``).
        code: Machine-readable error code (e.g. ``"CAP_MALFORMED_XML"``).
        scope: What the error invalidates (see module docstring).
        retryable: Whether running the same input again could succeed.
        correlation_id: Run id of the pipeline invocation.
    """

    category: ClassVar[str] = "pipeline"
    default_stage: ClassVar[str] = ""
    default_code: ClassVar[str] = ""
    default_scope: ClassVar[str] = SCOPE_RUN

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        scope: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.scope = scope or self.default_scope
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def recoverable(self) -> bool:
        """True when the run can continue past this error."""
        return self.scope == SCOPE_DOCUMENT

    def bind(self, run_id: str) -> PipelineError:
        """Attach *run_id* unless the error already belongs to a run."""
        if not self.correlation_id:
            self.correlation_id = run_id
        return self

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "scope": self.scope,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


class ValidationError(PipelineError):
    """Input that is not what the pipeline accepts."""

    category = "validation"


class PermanentError(PipelineError):
    """Valid input from which no result can be produced."""

    category = "permanent"


class ContractError(PipelineError):
    """A run was driven outside its state machine."""

    category = "contract"
