"""
Style Names - Name Classifier

Pure functions that turn a text style's display name into priority ranks.
Three independent axes are derived from the lower-cased name:

- category: prefix based (display / title / text / other / paragraph)
- size: substring based over a size vocabulary (8xl ... 2xs)
- weight: substring based (bold, semibold, medium, regular, light)

Every axis is an ordered list of (rank, predicate) pairs. The first matching
predicate wins, so shadowing rules such as `xl` vs `2xl` stay explicit.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

NamePredicate = Callable[[str], bool]
RankRules = Tuple[Tuple[int, NamePredicate], ...]


def _starts_with(prefix: str) -> NamePredicate:
    return lambda name: name.startswith(prefix)


def _contains(token: str) -> NamePredicate:
    return lambda name: token in name


def _contains_any(*tokens: str) -> NamePredicate:
    return lambda name: any(t in name for t in tokens)


def _contains_without(token: str, *shadows: str) -> NamePredicate:
    """Match `token` only when none of the larger `shadows` tokens is present."""
    return lambda name: token in name and not any(s in name for s in shadows)


def _first_match(rules: RankRules, name: str, fallback: int) -> int:
    lowered = (name or "").lower()
    for rank, predicate in rules:
        if predicate(lowered):
            return rank
    return fallback


# ============================================
# ================ SIZE ======================
# ============================================

# 8xl is the largest token, 2xl the smallest numeric-scaled one
NUMERIC_XL_TOKENS = tuple(f"{n}xl" for n in range(8, 1, -1))

SIZE_RULES: RankRules = tuple(
    [(rank, _contains(token)) for rank, token in enumerate(NUMERIC_XL_TOKENS, start=1)]
    + [
        (8, _contains_without("xl", *NUMERIC_XL_TOKENS)),
        (9, _contains("lg")),
        (10, _contains("md")),
        (11, _contains("sm")),
        (12, _contains_without("xs", "2xs")),
        (13, _contains("2xs")),
    ]
)
UNKNOWN_SIZE_RANK = 14


# ============================================
# ================ WEIGHT ====================
# ============================================

WEIGHT_RULES: RankRules = (
    # any "semi" disqualifies bold, including Figma's "Semi Bold" label
    (1, _contains_without("bold", "semi")),
    (2, _contains_any("semibold", "semi-bold", "semi bold")),
    (3, _contains("medium")),
    (4, _contains("regular")),
    (5, _contains("light")),
)
UNKNOWN_WEIGHT_RANK = 6


# ============================================
# =============== CATEGORY ===================
# ============================================

@dataclass(frozen=True)
class NamingRules:
    """A category ruleset plus the prefixes that are never reported."""

    name: str
    category_prefixes: Tuple[Tuple[str, int], ...]
    other_rank: int
    excluded_prefixes: Tuple[str, ...] = ()

    @property
    def category_rules(self) -> RankRules:
        return tuple((rank, _starts_with(prefix)) for prefix, rank in self.category_prefixes)

    def category_rank(self, name: str) -> int:
        return _first_match(self.category_rules, name, self.other_rank)

    def is_excluded(self, name: str) -> bool:
        lowered = (name or "").lower()
        return any(lowered.startswith(prefix) for prefix in self.excluded_prefixes)

    def with_exclusions(self, prefixes: Iterable[str]) -> "NamingRules":
        extra = [p.strip().lower() for p in prefixes if p and p.strip()]
        merged: List[str] = list(self.excluded_prefixes)
        for prefix in extra:
            if prefix not in merged:
                merged.append(prefix)
        return NamingRules(
            name=self.name,
            category_prefixes=self.category_prefixes,
            other_rank=self.other_rank,
            excluded_prefixes=tuple(merged),
        )


BASELINE_RULES = NamingRules(
    name="baseline",
    category_prefixes=(("display", 1), ("title", 2), ("text", 3), ("paragraph", 5)),
    other_rank=4,
)

# display and subheading styles are dropped, so title moves up to rank 1
STRICT_RULES = NamingRules(
    name="strict",
    category_prefixes=(("title", 1), ("text", 2), ("paragraph", 4)),
    other_rank=3,
    excluded_prefixes=("display", "subheading"),
)

RULESETS = {
    BASELINE_RULES.name: BASELINE_RULES,
    STRICT_RULES.name: STRICT_RULES,
}


def build_rules(ruleset: str = "baseline", excluded_prefixes: Optional[Iterable[str]] = None) -> NamingRules:
    """Look up a named ruleset and add any extra excluded prefixes.

    Raises:
        ValueError: If the ruleset name is unknown
    """
    rules = RULESETS.get((ruleset or "").strip().lower())
    if rules is None:
        raise ValueError(f"Unknown style ruleset '{ruleset}'. Expected one of: {', '.join(sorted(RULESETS))}")
    if excluded_prefixes:
        rules = rules.with_exclusions(excluded_prefixes)
    return rules


def category_rank(name: str, rules: NamingRules = BASELINE_RULES) -> int:
    return rules.category_rank(name)


def size_rank(name: str) -> int:
    return _first_match(SIZE_RULES, name, UNKNOWN_SIZE_RANK)


def weight_rank(name: str) -> int:
    return _first_match(WEIGHT_RULES, name, UNKNOWN_WEIGHT_RANK)


def is_excluded(name: str, rules: NamingRules = STRICT_RULES) -> bool:
    return rules.is_excluded(name)
