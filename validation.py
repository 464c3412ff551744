"""
Record validation helpers.

Records are checked against the pydantic schemas in models.record_models and
any failure is raised as a SchemaViolationError or ReferentialIntegrityError
with enough context to locate the bad record.
"""

import logging
from typing import Any, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from exceptions import ReferentialIntegrityError, SchemaViolationError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _record_id(data: Any) -> Any:
    if isinstance(data, dict):
        return data.get("id")
    return getattr(data, "id", None)


def validate_record(
    schema: Type[ModelT],
    data: Any,
    *,
    entity: str,
    index: Optional[int] = None,
    source: Optional[str] = None,
) -> ModelT:
    """
    Validate a single record against a schema.

    Args:
        schema: pydantic model describing the expected shape.
        data: Candidate record (usually a dict parsed from JSON).
        entity: Entity kind used in error messages, e.g. "company".
        index: Position of the record in its source collection.
        source: Artifact the record was read from, usually a file path.

    Returns:
        The validated model instance.

    Raises:
        SchemaViolationError: If any field is missing, mistyped or out of range.
    """
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        errors = [
            (".".join(str(part) for part in error["loc"]) or "record", error["msg"])
            for error in exc.errors()
        ]
        raise SchemaViolationError(
            entity,
            errors,
            index=index,
            record_id=_record_id(data),
            record=data,
            source=source,
        ) from exc


def check_unique_ids(
    records: Iterable[Any],
    *,
    entity: str,
    source: Optional[str] = None,
) -> None:
    """Raise SchemaViolationError on the first id that repeats."""
    seen = set()
    for index, record in enumerate(records):
        record_id = _record_id(record)
        if record_id in seen:
            raise SchemaViolationError(
                entity,
                [("id", f"duplicate id {record_id}")],
                index=index,
                record_id=record_id,
                source=source,
            )
        seen.add(record_id)


def check_company_references(
    companies: Iterable[Any],
    users: Iterable[Any],
    *,
    source: Optional[str] = None,
) -> None:
    """
    Check that every user references an existing company.

    Args:
        source: Artifact the users were read from.

    Raises:
        ReferentialIntegrityError: For the first user whose company_id is unknown.
    """
    company_ids = {company.id for company in companies}
    for index, user in enumerate(users):
        if user.company_id not in company_ids:
            raise ReferentialIntegrityError(
                "user",
                "company_id",
                user.company_id,
                index=index,
                record_id=user.id,
                source=source,
            )
    logger.debug("All users reference one of %d companies", len(company_ids))
