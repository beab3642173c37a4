import hashlib

import pytest

from string_analyzer.services.analyzer import (
    analyze,
    count_words,
    get_character_frequency,
    is_palindrome,
)


def test_hash_is_sha256_of_value():
    props = analyze("hello world")
    assert props.sha256_hash == hashlib.sha256(b"hello world").hexdigest()


def test_analyze_is_deterministic():
    assert analyze("Same input").model_dump() == analyze("Same input").model_dump()


def test_basic_properties():
    props = analyze("hello world")
    assert props.length == 11
    assert props.is_palindrome is False
    assert props.unique_characters == 8
    assert props.word_count == 2


@pytest.mark.parametrize("value, expected", [
    ("abba", True),
    ("Abba", False),
    ("racecar", True),
    ("a b a", True),
    ("ab", False),
    ("", True),
])
def test_palindrome_is_case_sensitive(value, expected):
    assert is_palindrome(value) is expected


@pytest.mark.parametrize("value, expected", [
    ("a  b", 3),
    ("one", 1),
    ("", 1),
    (" lead", 2),
    ("tab\tseparated", 1),
])
def test_word_count_splits_on_single_space(value, expected):
    assert count_words(value) == expected


def test_unique_characters_counts_case_and_whitespace():
    assert analyze("aA a").unique_characters == 3


def test_frequency_map_plain_input():
    assert get_character_frequency("hello") == {"h": 1, "e": 1, "l": 2, "o": 1}


def test_frequency_map_later_occurrence_overwrites():
    assert get_character_frequency("Aa") == {"a": 1}
    assert get_character_frequency("AAa") == {"a": 1}
    assert get_character_frequency("aAA") == {"a": 2}


def test_frequency_map_may_not_sum_to_length():
    props = analyze("AAa")
    assert sum(props.character_frequency_map.values()) != props.length


def test_empty_string_is_valid_input():
    props = analyze("")
    assert props.length == 0
    assert props.unique_characters == 0
    assert props.character_frequency_map == {}


def test_lone_surrogate_still_hashes():
    props = analyze("\ud800")
    assert props.sha256_hash == hashlib.sha256(b"\xed\xa0\x80").hexdigest()
    assert props.length == 1
