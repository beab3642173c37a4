"""
Rule based translation of free-text queries into a FilterSpec.

Each rule is a pure function taking the lower-cased query and returning a
partial dict of filter fields. Rules never look at each other's output; the
partials are merged in order and then validated as a whole.

Examples:
- "all single word palindromic strings" -> {word_count: 1, is_palindrome: true}
- "strings longer than 10 characters" -> {min_length: 11}
- "strings containing the letter z" -> {contains_character: "z"}
- "strings with minimum length 10 and maximum length 2" -> conflicting filters
"""
import logging
import re
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from fastapi import status

from string_analyzer.exceptions import InterpretationError
from string_analyzer.schemas.string_record import FilterSpec

logger = logging.getLogger(__name__)

Rule = Callable[[str], Dict[str, Any]]

_UNITS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4,
    "five": 5, "six": 6, "seven": 7, "eight": 8, "nine": 9,
    "ten": 10, "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
}

_TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}

_MULTIPLES = {"single": 1, "double": 2, "triple": 3}

# digits, or up to two words so "twenty five" / "twenty-five" stay together
NUMBER = r"(\d+|[a-z]+(?:[\s-][a-z]+)?)"


def parse_cardinal(token: str) -> Optional[int]:
    """
    Interpret a digit string or a spelled-out number below one hundred.
    A two-word token that is not a compound number falls back to its
    first word, so "ten characters" reads as 10.
    """
    token = token.strip()
    if token.isdigit():
        return int(token)

    parts = re.split(r"[\s-]", token)
    if len(parts) == 2 and parts[0] in _TENS and 0 < _UNITS.get(parts[1], 0) < 10:
        return _TENS[parts[0]] + _UNITS[parts[1]]

    first = parts[0]
    for table in (_UNITS, _TENS, _MULTIPLES):
        if first in table:
            return table[first]
    return None


def palindrome_rule(text: str) -> Dict[str, Any]:
    if re.search(r"\bnot\b.*palindrom", text) or re.search(r"\bnon[\s-]?palindrom", text):
        return {"is_palindrome": False}
    if "palindrom" in text:
        return {"is_palindrome": True}
    return {}


def word_count_rule(text: str) -> Dict[str, Any]:
    for match in re.finditer(r"\b(?:(" + "|".join(_TENS) + r")[\s-])?(\d+|[a-z]+)\s+words?\b", text):
        token = " ".join(part for part in match.groups() if part)
        count = parse_cardinal(token)
        if count is not None:
            return {"word_count": count}

    for phrase, count in (("single word", 1), ("double word", 2), ("triple word", 3)):
        if phrase in text:
            return {"word_count": count}
    return {}


# (pattern, field, offset applied to the extracted number)
_LENGTH_PATTERNS = [
    (r"\blonger than\s+" + NUMBER, "min_length", 1),
    (r"\bshorter than\s+" + NUMBER, "max_length", -1),
    (r"\bmin(?:imum)?\s+length\s+(?:of\s+)?" + NUMBER, "min_length", 0),
    (r"\bmax(?:imum)?\s+length\s+(?:of\s+)?" + NUMBER, "max_length", 0),
    (r"\bat least\s+" + NUMBER + r"\s+(?:characters?|chars?|letters?)\b", "min_length", 0),
    (r"\bat most\s+" + NUMBER + r"\s+(?:characters?|chars?|letters?)\b", "max_length", 0),
]


def length_rule(text: str) -> Dict[str, Any]:
    # position -> (field, value); the phrase appearing last wins per field
    found = []
    for pattern, field, offset in _LENGTH_PATTERNS:
        for match in re.finditer(pattern, text):
            number = parse_cardinal(match.group(1))
            if number is not None:
                found.append((match.start(), field, number + offset))

    return {field: value for _, field, value in sorted(found)}


_CHARACTER_PATTERNS = [
    r"\bcontain(?:s|ing)?\s+(?:(?:the|an?)\s+)?(?:letter|character)\s+([a-z])\b",
    # without the keyword, "a word" / "an item" is an article, not the letter
    r"\bcontain(?:s|ing)?\s+(?:(?:the|an?)\s+)?(?!an?\s+[a-z])([a-z])\b",
]


def character_rule(text: str) -> Dict[str, Any]:
    if "first vowel" in text:
        return {"contains_character": "a"}
    for pattern in _CHARACTER_PATTERNS:
        match = re.search(pattern, text)
        if match:
            return {"contains_character": match.group(1)}
    return {}


RULES: List[Rule] = [
    palindrome_rule,
    word_count_rule,
    length_rule,
    character_rule,
]


class ParsedQuery(NamedTuple):
    original: str
    filters: FilterSpec


def _is_conflicting(filters: FilterSpec) -> bool:
    if filters.min_length is not None and filters.max_length is not None:
        if filters.min_length > filters.max_length:
            return True
    if filters.max_length is not None and filters.max_length < 0:
        return True
    return filters.word_count is not None and filters.word_count < 1


def translate(query: str, rules: List[Rule] = RULES) -> ParsedQuery:
    """
    Translate a natural language query into a FilterSpec.
    Raises InterpretationError when nothing matched (400) or when the
    parsed filters contradict each other (422).
    """
    text = query.lower()
    parsed: Dict[str, Any] = {}
    for rule in rules:
        parsed.update(rule(text))

    if not parsed:
        logger.info(f"Could not interpret query: {query!r}")
        raise InterpretationError(
            "Unable to parse natural language query",
            original=query,
        )

    filters = FilterSpec(**parsed)
    if _is_conflicting(filters):
        logger.info(f"Conflicting filters for query {query!r}: {filters.applied()}")
        raise InterpretationError(
            "Query parsed but resulted in conflicting filters",
            original=query,
            parsed_filters=filters.applied(),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    return ParsedQuery(original=query, filters=filters)
