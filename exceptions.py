"""
Error taxonomy for the top-up report pipeline.

Every failure raised by the pipeline is a PipelineError carrying an ErrorKind
and a structured context dictionary, so the host can report the entity,
index, id, field and reason without re-running the job.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ErrorKind(str, Enum):
    """Standardized error kinds for the pipeline."""

    MISSING_SOURCE = "missing_source"
    MALFORMED_SOURCE = "malformed_source"
    SCHEMA_VIOLATION = "schema_violation"
    REFERENTIAL_VIOLATION = "referential_violation"
    PIPELINE_STATE = "pipeline_state"
    OUTPUT_FAILURE = "output_failure"


class PipelineError(Exception):
    """
    Base class for all fatal pipeline errors.

    Attributes:
        kind: ErrorKind of the failure.
        message: Human readable description.
        context: Structured details for locating the offending input.
    """

    kind: ErrorKind = ErrorKind.PIPELINE_STATE

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def __str__(self) -> str:
        return self.message


class MissingSourceError(PipelineError):
    """An expected input artifact does not exist."""

    kind = ErrorKind.MISSING_SOURCE

    def __init__(self, source: str, path: str):
        super().__init__(
            f"The {source} file {path} does not exist!",
            source=source,
            path=path,
        )


class MalformedSourceError(PipelineError):
    """An input artifact cannot be parsed into the expected shape."""

    kind = ErrorKind.MALFORMED_SOURCE

    def __init__(self, source: str, path: str, reason: str):
        super().__init__(
            f"An error occurred while reading or parsing {path} ({source}): {reason}",
            source=source,
            path=path,
            reason=reason,
        )


def _describe_record(
    entity: str,
    index: Optional[int],
    record_id: Any,
    source: Optional[str] = None,
) -> str:
    parts = [entity]
    if index is not None:
        parts.append(f"at index {index}")
    if record_id is not None:
        parts.append(f"with id {record_id}")
    if source is not None:
        parts.append(f"in {source}")
    return " ".join(parts)


def _dump_record(record: Any) -> str:
    try:
        return json.dumps(record, default=str)
    except (TypeError, ValueError):
        return repr(record)


class SchemaViolationError(PipelineError):
    """A record failed field-level validation."""

    kind = ErrorKind.SCHEMA_VIOLATION

    def __init__(
        self,
        entity: str,
        errors: List[Tuple[str, str]],
        index: Optional[int] = None,
        record_id: Any = None,
        record: Any = None,
        source: Optional[str] = None,
    ):
        details = "; ".join(f"{field}: {reason}" for field, reason in errors)
        message = f"Invalid data for {_describe_record(entity, index, record_id, source)}: {details}"
        if record is not None:
            message += f"\n {_dump_record(record)}"
        super().__init__(
            message,
            source=source,
            entity=entity,
            index=index,
            id=record_id,
            errors=dict(errors),
            record=record,
        )
        self.errors = errors


class ReferentialIntegrityError(PipelineError):
    """A record references an entity that does not exist."""

    kind = ErrorKind.REFERENTIAL_VIOLATION

    def __init__(
        self,
        entity: str,
        field: str,
        value: Any,
        index: Optional[int] = None,
        record_id: Any = None,
        source: Optional[str] = None,
    ):
        super().__init__(
            f"Invalid reference for {_describe_record(entity, index, record_id, source)}: "
            f"{field}={value!r} does not match any known company",
            source=source,
            entity=entity,
            index=index,
            id=record_id,
            field=field,
            value=value,
        )


class TopUpAlreadyAppliedError(PipelineError):
    """A company's top-up was requested more than once on the same objects."""

    kind = ErrorKind.PIPELINE_STATE

    def __init__(self, company_id: int):
        super().__init__(
            f"Top-up already applied for company {company_id}; "
            "previous balances can only be reconstructed after a single application",
            company_id=company_id,
        )


class OutputWriteError(PipelineError):
    """The report could not be written."""

    kind = ErrorKind.OUTPUT_FAILURE

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Could not write the report to {path}: {reason}",
            path=path,
            reason=reason,
        )
