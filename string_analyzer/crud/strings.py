import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from fastapi import status

from string_analyzer.crud.store import RecordStore
from string_analyzer.exceptions import ConflictError, NotFoundError, ValidationError
from string_analyzer.schemas.string_record import (
    InterpretedQuery,
    NaturalLanguageResponse,
    StringListResponse,
    StringRecord,
)
from string_analyzer.services.analyzer import analyze
from string_analyzer.services.filters import (
    EXACT_MATCH,
    RANGE_AND_SUBSTRING,
    evaluate,
    parse_structured_filters,
)
from string_analyzer.services.nl_parser import translate

logger = logging.getLogger(__name__)


def _is_missing(value: Any) -> bool:
    """None, "", false and zero count as missing; empty arrays and objects do not"""
    if value is None or value is False or value == "":
        return True
    return isinstance(value, (int, float)) and value == 0


def _is_encodable(value: str) -> bool:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def create_string(store: RecordStore, value: Any) -> StringRecord:
    """Validate, analyze and store a new string"""
    if _is_missing(value):
        raise ValidationError("Invalid request body or missing 'value' field")
    if not isinstance(value, str):
        raise ValidationError(
            "Invalid data type for 'value' (must be string)",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    # lone surrogates survive JSON decoding but cannot be stored or echoed back
    if not _is_encodable(value):
        raise ValidationError(
            "Invalid value for 'value' (must be valid unicode text)",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    properties = analyze(value)
    record = StringRecord(
        id=properties.sha256_hash,
        value=value,
        properties=properties,
        created_at=datetime.now(timezone.utc),
    )

    if not store.insert_if_absent(record):
        raise ConflictError("String already exists in the system")

    logger.info(f"Stored string {record.id[:12]} ({properties.length} chars)")
    return record


def get_string(store: RecordStore, value: str) -> StringRecord:
    record = store.get_by_value(value)
    if record is None:
        raise NotFoundError("String does not exist in the system")
    return record


def list_strings(store: RecordStore, params: Mapping[str, str]) -> StringListResponse:
    """Structured filtering: exact-match semantics for lengths and characters"""
    spec = parse_structured_filters(params)
    result = evaluate(store.list(), spec, EXACT_MATCH)
    return StringListResponse(
        data=result.data,
        count=result.count,
        filters_applied=spec.applied(),
    )


def filter_by_natural_language(store: RecordStore, query: str) -> NaturalLanguageResponse:
    """Translate the query, then filter with range and substring semantics"""
    if not query or not query.strip():
        raise ValidationError("Query parameter is required")

    parsed = translate(query)
    result = evaluate(store.list(), parsed.filters, RANGE_AND_SUBSTRING)
    return NaturalLanguageResponse(
        data=result.data,
        count=result.count,
        interpreted_query=InterpretedQuery(
            original=parsed.original,
            parsed_filters=parsed.filters.applied(),
        ),
    )


def delete_string(store: RecordStore, value: str) -> None:
    if not value:
        raise ValidationError("Missing string value")
    if not store.delete_by_value(value):
        raise NotFoundError("String does not exist in the system")
    logger.info(f"Deleted string {value[:32]!r}")
