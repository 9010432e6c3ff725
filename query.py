from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple
from pydantic import BaseModel
import re

from models import StringRecord


class FilterSet(BaseModel):
    """Independent, optional constraints; an unset field places no constraint."""

    is_palindrome: Optional[bool] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    word_count: Optional[int] = None
    contains_character: Optional[str] = None

    def applied(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        return not self.applied()


# --- Natural language interpretation ---
Matcher = Callable[[str], Any]
Setter = Callable[[Any], Dict[str, Any]]


def _phrases(*phrases: str) -> Matcher:
    def match(text: str) -> bool:
        return any(p in text for p in phrases)
    return match


_LONGER_THAN = re.compile(r"longer than (\d+)")
_SHORTER_THAN = re.compile(r"shorter than (\d+)")
_CONTAINS = re.compile(r"contain(?:s|ing) the (?:letter|character) (\w)")

# Applied in order, every rule is tried; later rules overwrite earlier keys.
RULES: List[Tuple[Matcher, Setter]] = [
    (_phrases("palindromic", "palindrome"), lambda m: {"is_palindrome": True}),
    (_phrases("single word", "one word"), lambda m: {"word_count": 1}),
    (_LONGER_THAN.search, lambda m: {"min_length": int(m.group(1)) + 1}),
    (_SHORTER_THAN.search, lambda m: {"max_length": int(m.group(1)) - 1}),
    (_CONTAINS.search, lambda m: {"contains_character": m.group(1)}),
    (_phrases("first vowel"), lambda m: {"contains_character": "a"}),
]


def interpret(query: str) -> FilterSet:
    """Map a free-text query onto a FilterSet. Returns an empty set if no rule fires."""
    text = query.lower()
    parsed: Dict[str, Any] = {}
    for matcher, setter in RULES:
        match = matcher(text)
        if match:
            parsed.update(setter(match))
    return FilterSet(**parsed)


# --- Explicit query parameters ---
_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


def _parse_bool(raw: str) -> Optional[bool]:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


def _parse_int(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except ValueError:
        return None


def _parse_char(raw: str) -> Optional[str]:
    return raw if len(raw) == 1 else None


_PARSERS = {
    "is_palindrome": _parse_bool,
    "min_length": _parse_int,
    "max_length": _parse_int,
    "word_count": _parse_int,
    "contains_character": _parse_char,
}


def parse_filter_params(params: Mapping[str, Optional[str]]) -> FilterSet:
    """Build a FilterSet from raw query-string values.

    Values that do not parse are dropped rather than rejected, so a bad
    parameter only makes the filter laxer.
    """
    parsed: Dict[str, Any] = {}
    for name, parse in _PARSERS.items():
        raw = params.get(name)
        if raw is None:
            continue
        value = parse(raw)
        if value is not None:
            parsed[name] = value
    return FilterSet(**parsed)


# --- Evaluation ---
def matches(record: StringRecord, filters: FilterSet) -> bool:
    p = record.properties
    if filters.is_palindrome is not None and p.is_palindrome != filters.is_palindrome:
        return False
    if filters.min_length is not None and p.length < filters.min_length:
        return False
    if filters.max_length is not None and p.length > filters.max_length:
        return False
    if filters.word_count is not None and p.word_count != filters.word_count:
        return False
    if filters.contains_character is not None and filters.contains_character not in record.value:
        return False
    return True


def evaluate(
    records: Sequence[StringRecord], filters: FilterSet
) -> Tuple[List[StringRecord], FilterSet]:
    """Keep the records satisfying every set constraint, in their original order."""
    return [r for r in records if matches(r, filters)], filters
