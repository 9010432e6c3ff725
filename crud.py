from typing import Any, List, Mapping, Optional, Tuple
import logging

from errors import ConflictingFilters, InvalidType, MissingInput, NotFound, Unparsable
from models import StringRecord
from query import FilterSet, evaluate, interpret, parse_filter_params
from store import StringStore

logger = logging.getLogger(__name__)


def create_string(store: StringStore, payload: Any) -> StringRecord:
    """Validate a request body, analyze its value and store the new record."""
    value = payload.get("value") if isinstance(payload, dict) else None
    if value is None or value == "":
        raise MissingInput('Invalid request body or missing "value" field')
    if not isinstance(value, str):
        raise InvalidType('Invalid data type for "value", must be a string')
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        # lone surrogates from JSON escapes cannot be written back out
        raise InvalidType('"value" must be valid Unicode text')

    record = store.put(StringRecord.create(value))
    logger.info(f"Stored string {record.id}")
    return record


def get_string(store: StringStore, value: str) -> StringRecord:
    record = store.get_by_value(value)
    if record is None:
        raise NotFound()
    return record


def delete_string(store: StringStore, value: str) -> None:
    record = store.delete(value)
    logger.info(f"Deleted string {record.id}")


def list_strings(
    store: StringStore, params: Mapping[str, Optional[str]]
) -> Tuple[List[StringRecord], FilterSet]:
    """Filter stored strings by explicit query parameters; bad values are ignored."""
    return evaluate(store.all(), parse_filter_params(params))


def filter_by_natural_language(
    store: StringStore, query: Optional[str]
) -> Tuple[List[StringRecord], FilterSet]:
    if query is None or not query.strip():
        raise MissingInput('Missing "query" parameter')

    filters = interpret(query)
    if filters.is_empty():
        raise Unparsable()
    if (
        filters.min_length is not None
        and filters.max_length is not None
        and filters.min_length > filters.max_length
    ):
        raise ConflictingFilters()
    return evaluate(store.all(), filters)
