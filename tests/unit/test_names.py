"""Tests for name-query tokenizing and matching."""

from layer_query.core.query.names import (
    NameToken,
    build_matcher,
    clear_matcher_cache,
    is_fully_quoted,
    tokenize_name_query,
)


def test_tokenize_respects_quotes() -> None:
    assert tokenize_name_query('Menu "Item /" =Icon') == [
        NameToken("Menu", quoted=False),
        NameToken("Item /", quoted=True),
        NameToken("=Icon", quoted=False),
    ]


def test_tokenize_unterminated_quote_runs_to_end() -> None:
    assert tokenize_name_query('Card "Big Tit') == [
        NameToken("Card", quoted=False),
        NameToken("Big Tit", quoted=True),
    ]


def test_is_fully_quoted() -> None:
    assert is_fully_quoted(' "Icon" ')
    assert not is_fully_quoted('"Icon" x')
    assert not is_fully_quoted('"')


def test_words_are_case_insensitive_substrings() -> None:
    matches = build_matcher("primary btn")
    assert matches("Btn / Primary")
    assert not matches("Primary")


def test_quoted_literal_is_case_sensitive() -> None:
    matches = build_matcher('menu "Item /"')
    assert matches("Menu Item / Open")
    assert not matches("Menu item / open")


def test_single_quoted_literal_is_exact() -> None:
    matches = build_matcher('"Icon"')
    assert matches("Icon")
    assert not matches("Icons")
    assert not matches("My Icon")


def test_empty_query_matches_everything() -> None:
    assert build_matcher("")("anything")
    assert build_matcher("   ")("")


def test_matchers_are_memoized_until_cleared() -> None:
    clear_matcher_cache()
    first = build_matcher("card")
    assert build_matcher("card") is first
    assert build_matcher.cache_info().hits >= 1
    clear_matcher_cache()
    assert build_matcher.cache_info().currsize == 0
