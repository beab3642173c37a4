import logging
import re
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Mapping, NamedTuple, Sequence

from string_analyzer.exceptions import ValidationError
from string_analyzer.schemas.string_record import FilterSpec, StringRecord

logger = logging.getLogger(__name__)

STRUCTURED_PARAMS = (
    "is_palindrome",
    "min_length",
    "max_length",
    "word_count",
    "contains_character",
)

_INTEGER_RE = re.compile(r"^\d+$")


class FilterResult(NamedTuple):
    data: List[StringRecord]
    count: int


class PredicateProfile(ABC):
    """
    Binds each FilterSpec field to a predicate. Both entry points share the
    FilterSpec shape but not the meaning of every field, so each one picks
    its own profile.
    """

    name = "base"

    def is_palindrome(self, record: StringRecord, expected: bool) -> bool:
        return record.properties.is_palindrome == expected

    @abstractmethod
    def min_length(self, record: StringRecord, bound: int) -> bool:
        ...

    @abstractmethod
    def max_length(self, record: StringRecord, bound: int) -> bool:
        ...

    def word_count(self, record: StringRecord, expected: int) -> bool:
        return record.properties.word_count == expected

    @abstractmethod
    def contains_character(self, record: StringRecord, char: str) -> bool:
        ...

    def predicates(self, spec: FilterSpec) -> List[tuple]:
        return [(getattr(self, field), value) for field, value in spec.applied().items()]


class ExactMatchProfile(PredicateProfile):
    """Structured query semantics: length bounds are equalities and the
    character is looked up in the stored frequency map."""

    name = "exact_match"

    def min_length(self, record, bound):
        return record.properties.length == bound

    def max_length(self, record, bound):
        return record.properties.length == bound

    def contains_character(self, record, char):
        return char.lower() in record.properties.character_frequency_map


class RangeAndSubstringProfile(PredicateProfile):
    """Natural language semantics: inclusive length range on the value and
    case-folded substring search."""

    name = "range_and_substring"

    def min_length(self, record, bound):
        return len(record.value) >= bound

    def max_length(self, record, bound):
        return len(record.value) <= bound

    def contains_character(self, record, char):
        return char.lower() in record.value.lower()


EXACT_MATCH = ExactMatchProfile()
RANGE_AND_SUBSTRING = RangeAndSubstringProfile()


def evaluate(
    records: Sequence[StringRecord],
    spec: FilterSpec,
    profile: PredicateProfile,
) -> FilterResult:
    """Keep the records matching every set field, preserving source order"""
    predicates = profile.predicates(spec)
    data = [
        record for record in records
        if all(predicate(record, value) for predicate, value in predicates)
    ]
    logger.debug(f"{profile.name}: {len(data)}/{len(records)} records matched {spec.applied()}")
    return FilterResult(data=data, count=len(data))


def _parse_bool(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValidationError(f"Invalid value for '{name}': expected true or false")


def _parse_int(name: str, raw: str) -> int:
    if not _INTEGER_RE.match(raw.strip()):
        raise ValidationError(f"Invalid value for '{name}': expected a non-negative integer")
    return int(raw.strip())


def _parse_char(name: str, raw: str) -> str:
    if len(raw) != 1:
        raise ValidationError(f"Invalid value for '{name}': expected a single character")
    return raw


_PARSERS: Dict[str, Callable[[str, str], object]] = {
    "is_palindrome": _parse_bool,
    "min_length": _parse_int,
    "max_length": _parse_int,
    "word_count": _parse_int,
    "contains_character": _parse_char,
}


def parse_structured_filters(params: Mapping[str, str]) -> FilterSpec:
    """
    Build a FilterSpec from raw query parameters.
    Unknown parameter names and malformed values raise ValidationError.
    """
    unknown = sorted(set(params) - set(STRUCTURED_PARAMS))
    if unknown:
        raise ValidationError(f"Unknown query parameter(s): {', '.join(unknown)}")

    values = {name: _PARSERS[name](name, raw) for name, raw in params.items()}
    return FilterSpec(**values)
