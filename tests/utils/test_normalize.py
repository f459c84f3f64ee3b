"""Tests for shared value normalizers."""

from gtm_workspace.utils.normalize import (
    clean_string_list,
    clean_text,
    natural_key,
    slugify,
)


class TestCleanText:
    def test_trims(self) -> None:
        assert clean_text("  Ledger  ") == "Ledger"

    def test_non_string_is_empty(self) -> None:
        assert clean_text(None) == ""
        assert clean_text(42) == ""


class TestCleanStringList:
    def test_drops_null_blank_and_non_strings(self) -> None:
        assert clean_string_list(["a", "", None, "  ", 3, " b "]) == ["a", "b"]

    def test_keeps_order_and_duplicates(self) -> None:
        assert clean_string_list(["b", "a", "b"]) == ["b", "a", "b"]

    def test_bare_string_becomes_single_item(self) -> None:
        assert clean_string_list("Problem aware") == ["Problem aware"]

    def test_none_and_non_list(self) -> None:
        assert clean_string_list(None) == []
        assert clean_string_list({"a": 1}) == []


class TestNaturalKey:
    def test_case_and_whitespace_insensitive(self) -> None:
        assert natural_key("  Head of   Finance ") == natural_key("head of finance")


class TestSlugify:
    def test_basic(self) -> None:
        assert slugify("Acme Corp") == "acme-corp"

    def test_special_characters_and_hyphens(self) -> None:
        assert slugify("  Acme -- Corp!! (EU) ") == "acme-corp-eu"

    def test_truncates(self) -> None:
        slug = slugify("a" * 80, max_length=10)
        assert slug == "a" * 10

    def test_empty_falls_back(self) -> None:
        assert slugify("!!!") == "workspace"
