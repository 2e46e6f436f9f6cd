"""Tests for answer similarity and word-by-word comparison."""
import pytest

from similarity import (
    check_similarity,
    compare_word_by_word,
    has_temporal_conflict,
    normalize_string,
)


def test_identical_answers_score_one():
    assert check_similarity("I like to drink tea.", "I like to drink tea.") == 1.0


def test_missing_word_is_partial():
    assert check_similarity("I am happy", "I am very happy") == pytest.approx(2 / 3)


def test_case_and_punctuation_ignored():
    assert check_similarity("Hello, World!", "hello world") == 1.0
    assert normalize_string("  Wait...   what?  ") == "wait what?"


def test_empty_side_scores_zero():
    assert check_similarity("", "I like tea") == 0.0
    assert check_similarity("!!!", "I like tea") == 0.0
    assert check_similarity("I like tea", "") == 0.0


def test_short_answers_need_exact_match():
    assert check_similarity("Yes.", "yes") == 1.0
    assert check_similarity("yep", "yes") == 0.0


def test_strictness_scales_the_ratio():
    moderate = check_similarity("I am happy", "I am very happy", "moderate")
    assert check_similarity("I am happy", "I am very happy", "strict") == pytest.approx(moderate * 0.8)
    assert check_similarity("I am happy", "I am very happy", "lenient") == pytest.approx(moderate * 1.3)


def test_lenient_is_capped_at_one():
    assert check_similarity("I like to drink teas", "I like to drink tea", "lenient") == 1.0


def test_lenient_credits_keywords():
    assert check_similarity("drink tea", "I like to drink tea", "moderate") < 0.8
    assert check_similarity("drink tea", "I like to drink tea", "lenient") == 1.0


def test_temporal_conflict():
    assert has_temporal_conflict("I will go tomorrow", "I will go today")
    assert has_temporal_conflict("I went today", "I went yesterday")
    assert not has_temporal_conflict("I will go today", "I will go today")
    assert not has_temporal_conflict("Not today, tomorrow.", "not today tomorrow")
    assert not has_temporal_conflict("Yesterday I studied", "I studied")
    assert not has_temporal_conflict("I saw the todays paper", "I will go tomorrow")


def test_word_by_word_marks_exact_and_close_words():
    result = compare_word_by_word("I drink water", "I drinks water")
    assert [e["matched"] for e in result["correctWordElements"]] == [False, True, True]
    assert [e["matched"] for e in result["userWordElements"]] == [False, True, True]


def test_word_by_word_leaves_unrelated_words_unmatched():
    result = compare_word_by_word("I like tea", "dogs run fast")
    assert not any(e["matched"] for e in result["userWordElements"])
