"""Tests for the pipeline exception taxonomy.

Validates:
- PipelineError structured attributes and defaults
- Category and scope of every concrete pipeline exception
- ``bind()`` attaches a run id without overwriting an existing one
- ``to_error_dict()`` produces stable payload keys
"""

from __future__ import annotations

from typing import ClassVar

import pytest

from cap_archive.activities.extract_archive import ArchiveFormatError, EmptyArchiveError
from cap_archive.activities.parse_cap import DocumentParseError
from cap_archive.core.config import ConfigValidationError
from cap_archive.core.exceptions import (
    ContractError,
    PermanentError,
    PipelineError,
    ValidationError,
)
from cap_archive.orchestrators import NoFeaturesError


class TestPipelineErrorBase:
    """PipelineError base class behavior."""

    def test_default_attributes(self) -> None:
        err = PipelineError("boom")
        assert err.message == "boom"
        assert err.stage == ""
        assert err.code == ""
        assert err.scope == "run"
        assert err.retryable is False
        assert err.correlation_id == ""

    def test_keyword_overrides(self) -> None:
        err = PipelineError(
            "fail",
            stage="extract_archive",
            code="ENTRY_UNREADABLE",
            scope="document",
            correlation_id="run-1",
        )
        assert err.stage == "extract_archive"
        assert err.code == "ENTRY_UNREADABLE"
        assert err.scope == "document"
        assert err.correlation_id == "run-1"

    def test_str_is_message(self) -> None:
        assert str(PipelineError("human-readable error")) == "human-readable error"

    def test_only_document_scope_is_recoverable(self) -> None:
        assert PipelineError("x", scope="document").recoverable is True
        for scope in ("archive", "run", "config"):
            assert PipelineError("x", scope=scope).recoverable is False


class TestBind:
    """Run id attachment."""

    def test_bind_sets_missing_correlation_id(self) -> None:
        err = PipelineError("x")
        assert err.bind("run-a") is err
        assert err.correlation_id == "run-a"

    def test_bind_keeps_existing_correlation_id(self) -> None:
        err = PipelineError("x", correlation_id="run-a")
        err.bind("run-b")
        assert err.correlation_id == "run-a"


class TestCategories:
    """Category is a class attribute of each taxonomy base."""

    @pytest.mark.parametrize(
        ("cls", "category"),
        [
            (PipelineError, "pipeline"),
            (ValidationError, "validation"),
            (PermanentError, "permanent"),
            (ContractError, "contract"),
        ],
    )
    def test_category(self, cls: type[PipelineError], category: str) -> None:
        assert cls("x").category == category


class TestConcreteExceptions:
    """Every concrete exception has a stage, a code and a scope."""

    EXCEPTION_CLASSES: ClassVar[list[type[PipelineError]]] = [
        ArchiveFormatError,
        EmptyArchiveError,
        DocumentParseError,
        NoFeaturesError,
    ]

    def test_all_subclass_pipeline_error(self) -> None:
        for cls in [*self.EXCEPTION_CLASSES, ConfigValidationError]:
            assert issubclass(cls, PipelineError), f"{cls.__name__} is not a PipelineError"

    def test_archive_format_error(self) -> None:
        err = ArchiveFormatError("not a zip")
        assert err.stage == "extract_archive"
        assert err.code == "ARCHIVE_FORMAT_INVALID"
        assert err.scope == "archive"
        assert err.category == "validation"

    def test_empty_archive_error(self) -> None:
        err = EmptyArchiveError("no documents")
        assert err.code == "ARCHIVE_EMPTY"
        assert err.scope == "archive"
        assert err.recoverable is False

    def test_document_parse_error_is_recoverable(self) -> None:
        err = DocumentParseError("bad xml")
        assert err.stage == "parse_cap"
        assert err.code == "CAP_PARSE_FAILED"
        assert err.scope == "document"
        assert err.recoverable is True

    def test_no_features_error(self) -> None:
        err = NoFeaturesError("nothing usable", total=3)
        assert err.stage == "archive_pipeline"
        assert err.code == "NO_FEATURES"
        assert err.scope == "run"
        assert err.category == "permanent"
        assert err.total == 3
        assert err.failures == ()
        assert err.report is None

    def test_config_validation_error(self) -> None:
        err = ConfigValidationError("CAP_MAX_ENTRY_BYTES", 0, "must be > 0")
        assert err.stage == "config"
        assert err.code == "CONFIG_VALIDATION_FAILED"
        assert err.scope == "config"
        assert err.key == "CAP_MAX_ENTRY_BYTES"
        assert err.value == 0
        assert "CAP_MAX_ENTRY_BYTES=0" in err.message

    def test_none_are_retryable(self) -> None:
        errors = [
            ArchiveFormatError("x"),
            EmptyArchiveError("x"),
            DocumentParseError("x"),
            NoFeaturesError("x"),
            ContractError("x"),
        ]
        for err in errors:
            assert err.retryable is False, f"{type(err).__name__} should not be retryable"


class TestErrorDictStability:
    """to_error_dict() always includes the same keys."""

    REQUIRED_KEYS: ClassVar[set[str]] = {
        "category",
        "scope",
        "code",
        "stage",
        "message",
        "retryable",
        "correlation_id",
    }

    def test_base_error_dict(self) -> None:
        err = PipelineError("x", stage="s", code="C", correlation_id="id")
        d = err.to_error_dict()
        assert set(d) == self.REQUIRED_KEYS
        assert d["message"] == "x"
        assert d["stage"] == "s"
        assert d["code"] == "C"
        assert d["correlation_id"] == "id"

    def test_document_error_dict(self) -> None:
        err = DocumentParseError("bad", code="CAP_MALFORMED_XML").bind("run-9")
        d = err.to_error_dict()
        assert set(d) == self.REQUIRED_KEYS
        assert d["category"] == "validation"
        assert d["scope"] == "document"
        assert d["code"] == "CAP_MALFORMED_XML"
        assert d["correlation_id"] == "run-9"
