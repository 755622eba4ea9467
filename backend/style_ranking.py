"""
Style Ranking - deterministic ordering of collected text styles

Order: category rank, size rank, weight rank (all ascending, from the style
name), then numeric font size descending. Python's sort is stable, so records
that tie on every key keep their discovery order.
"""

from typing import Iterable, List, Tuple

from style_models import StyleRecord, numeric_font_size
from style_names import BASELINE_RULES, NamingRules, size_rank, weight_rank


def ranking_key(record: StyleRecord, rules: NamingRules = BASELINE_RULES) -> Tuple[int, int, int, float]:
    font_size = numeric_font_size(record.font_size) or 0
    return (
        rules.category_rank(record.name),
        size_rank(record.name),
        weight_rank(record.name),
        -font_size,
    )


def rank_styles(records: Iterable[StyleRecord], rules: NamingRules = BASELINE_RULES) -> List[StyleRecord]:
    return sorted(records, key=lambda record: ranking_key(record, rules))
