import hashlib
from typing import Dict

from string_analyzer.schemas.string_record import StringProperties


def compute_sha256(text: str) -> str:
    """Compute SHA-256 hex digest of a string"""
    return hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()


def is_palindrome(text: str) -> bool:
    """Exact reverse comparison, case-sensitive, whitespace included"""
    return text == text[::-1]


def count_unique_characters(text: str) -> int:
    """Count distinct characters in string"""
    return len(set(text))


def count_words(text: str) -> int:
    """
    Count segments produced by splitting on a single space.
    Consecutive spaces produce empty segments and those count too,
    so "a  b" has 3 words and "" has 1.
    """
    return len(text.split(" "))


def get_character_frequency(text: str) -> Dict[str, int]:
    """
    For each character in scan order, store how many characters in the
    whole string are exactly equal to it, under the lower-cased key.

    Counting is case-sensitive while the key is not, so for mixed case
    input a later occurrence overwrites an earlier count sharing the same
    key: "Aa" -> {"a": 1}, "AAa" -> {"a": 1}, "aAA" -> {"a": 2}.
    """
    frequency = {}
    for char in text:
        frequency[char.lower()] = text.count(char)
    return frequency


def analyze(value: str) -> StringProperties:
    """Analyze a string and return all computed properties"""
    sha256_hash = compute_sha256(value)

    return StringProperties(
        length=len(value),
        is_palindrome=is_palindrome(value),
        unique_characters=count_unique_characters(value),
        word_count=count_words(value),
        sha256_hash=sha256_hash,
        character_frequency_map=get_character_frequency(value),
    )
