from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, Text
import hashlib
import re
from collections import Counter

_NOT_ALNUM = re.compile(r"[^a-z0-9]")
# whitespace as JavaScript's \s defines it: not \x1c-\x1f, but including \ufeff
_WHITESPACE = re.compile(
    r"[\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+"
)


def sha256_hex(value: str) -> str:
    # surrogatepass keeps lone surrogates from JSON input hashable
    return hashlib.sha256(value.encode("utf-8", "surrogatepass")).hexdigest()


def sanitize(value: str) -> str:
    """Lowercase and drop everything that is not an ASCII letter or digit."""
    return _NOT_ALNUM.sub("", value.lower())


def is_palindrome(value: str) -> bool:
    cleaned = sanitize(value)
    return cleaned == cleaned[::-1]


def count_words(value: str) -> int:
    return len([token for token in _WHITESPACE.split(value) if token])


class Properties(BaseModel):
    model_config = ConfigDict(frozen=True)

    length: int
    is_palindrome: bool
    unique_characters: int
    word_count: int
    sha256_hash: str
    character_frequency_map: Dict[str, int]


def analyze_string(value: str) -> Properties:
    """Compute every derived property of ``value``.

    Each property is computed from the raw value on its own; only the
    palindrome check sees the sanitized text. Never raises.
    """
    freq_map = dict(Counter(value))
    return Properties(
        length=len(value),
        is_palindrome=is_palindrome(value),
        unique_characters=len(freq_map),
        word_count=count_words(value),
        sha256_hash=sha256_hex(value),
        character_frequency_map=freq_map,
    )


class StringRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    value: str
    properties: Properties
    created_at: datetime

    @classmethod
    def create(cls, value: str) -> "StringRecord":
        props = analyze_string(value)
        return cls(
            id=props.sha256_hash,
            value=value,
            properties=props,
            created_at=datetime.now(timezone.utc),
        )


# --- Response envelopes ---
class StringListResponse(BaseModel):
    data: List[StringRecord]
    count: int
    filters_applied: Dict[str, Any]


class InterpretedQuery(BaseModel):
    original: str
    parsed_filters: Dict[str, Any]


class NaturalLanguageResponse(BaseModel):
    data: List[StringRecord]
    count: int
    interpreted_query: InterpretedQuery


# --- SQL-backed storage row ---
class StringItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    sha256_hash: str = Field(index=True, unique=True, nullable=False)
    value: str = Field(sa_column=Column(Text, unique=True, nullable=False))
    properties: Dict = Field(sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_record(cls, record: StringRecord) -> "StringItem":
        return cls(
            sha256_hash=record.id,
            value=record.value,
            properties=record.properties.model_dump(),
            created_at=record.created_at,
        )

    def to_record(self) -> StringRecord:
        created_at = self.created_at
        # SQLite drops tzinfo on the way back
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return StringRecord(
            id=self.sha256_hash,
            value=self.value,
            properties=Properties(**self.properties),
            created_at=created_at,
        )
