"""Tests for the style name classifier."""

import pytest

from style_names import (
    BASELINE_RULES,
    STRICT_RULES,
    UNKNOWN_SIZE_RANK,
    UNKNOWN_WEIGHT_RANK,
    build_rules,
    category_rank,
    is_excluded,
    size_rank,
    weight_rank,
)


def test_baseline_category_ranks():
    assert category_rank("Display Large") == 1
    assert category_rank("Title/LG/Bold") == 2
    assert category_rank("Text/Body") == 3
    assert category_rank("Caption") == 4
    assert category_rank("Paragraph/MD") == 5


def test_category_is_case_insensitive_and_prefix_only():
    assert category_rank("TITLE/SM") == 2
    assert category_rank("title") == 2
    # "title" must lead the name
    assert category_rank("Card Title") == 4


def test_strict_category_ranks():
    assert category_rank("Title/LG", STRICT_RULES) == 1
    assert category_rank("Text/Body", STRICT_RULES) == 2
    assert category_rank("Caption", STRICT_RULES) == 3
    assert category_rank("Paragraph/MD", STRICT_RULES) == 4


def test_numeric_xl_sizes_rank_largest_first():
    assert size_rank("Heading/8XL") == 1
    assert size_rank("Heading/5xl") == 4
    assert size_rank("Heading/2XL") == 7
    assert size_rank("Heading/8XL") < size_rank("Heading/3XL") < size_rank("Heading/2XL")


def test_xl_is_shadowed_by_numeric_tokens():
    assert size_rank("Title/XL") == 8
    assert size_rank("Title/2XL") == 7
    assert size_rank("Title/2XL") < size_rank("Title/XL") < size_rank("Title/LG")


def test_named_sizes():
    assert size_rank("Title/LG") == 9
    assert size_rank("Paragraph/MD") == 10
    assert size_rank("Text/SM") == 11
    assert size_rank("Text/XS") == 12
    assert size_rank("Text/2XS") == 13


def test_unknown_size():
    assert size_rank("Display Large") == UNKNOWN_SIZE_RANK
    assert size_rank("") == UNKNOWN_SIZE_RANK


def test_weights():
    assert weight_rank("Title/Bold") == 1
    assert weight_rank("Title/SemiBold") == 2
    assert weight_rank("Title/Semi-Bold") == 2
    assert weight_rank("Text/Medium") == 3
    assert weight_rank("Text/Regular") == 4
    assert weight_rank("Text/Light") == 5
    assert weight_rank("Caption") == UNKNOWN_WEIGHT_RANK


def test_semibold_does_not_count_as_bold():
    assert weight_rank("Title/Semibold") != weight_rank("Title/Bold")


def test_spaced_semi_bold_label():
    assert weight_rank("Text/MD/Semi Bold") == 2
    assert weight_rank("Text/MD/SEMI BOLD") == 2
    assert weight_rank("Text/MD/Bold") == 1


def test_exclusion_uses_strict_prefixes_by_default():
    assert is_excluded("Display/Hero")
    assert is_excluded("subheading/sm")
    assert not is_excluded("Title/LG")
    assert not is_excluded("Display/Hero", BASELINE_RULES)


def test_build_rules_adds_extra_prefixes():
    rules = build_rules("baseline", [" Legacy ", "", "Deprecated"])
    assert rules.name == "baseline"
    assert rules.excluded_prefixes == ("legacy", "deprecated")
    assert rules.is_excluded("Legacy/Title")
    assert not rules.is_excluded("Title/Legacy")


def test_build_rules_keeps_ruleset_prefixes():
    rules = build_rules("STRICT", ["display", "legacy"])
    assert rules.excluded_prefixes == ("display", "subheading", "legacy")
    assert rules.category_rank("Title") == 1


def test_build_rules_rejects_unknown_ruleset():
    with pytest.raises(ValueError, match="Unknown style ruleset"):
        build_rules("fancy")
