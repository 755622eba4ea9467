"""
Style Collector - deduplicated, filtered StyleRecords for one extraction
"""

import logging
from typing import Any, Dict, List, Set

from style_models import StyleRecord, numeric_font_size
from style_names import BASELINE_RULES, NamingRules

logger = logging.getLogger(__name__)


class StyleCollector:
    """
    Builds the identity -> StyleRecord map during a traversal.

    The first node seen with a style supplies the record's font fields. Local
    styles and styles whose name matches an excluded prefix are never kept.
    A collector lives for a single extraction request.
    """

    def __init__(self, rules: NamingRules = BASELINE_RULES):
        self.rules = rules
        self._records: Dict[str, StyleRecord] = {}
        self.divergent_ids: Set[str] = set()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, style_id: str) -> bool:
        return style_id in self._records

    def add(self, style: Dict[str, Any], node: Dict[str, Any]) -> bool:
        """Offer a resolved style seen on `node`. Returns True if a record was created."""
        style_id = style["id"]
        existing = self._records.get(style_id)
        if existing is not None:
            self._note_divergence(existing, node)
            return False
        if not style.get("remote"):
            logger.debug(f"Ignoring local style '{style.get('name')}' ({style_id})")
            return False
        if self.rules.is_excluded(style["name"]):
            logger.debug(f"Ignoring excluded style '{style['name']}' ({style_id})")
            return False
        self._records[style_id] = StyleRecord.from_text_node(style, node)
        return True

    def _note_divergence(self, record: StyleRecord, node: Dict[str, Any]) -> None:
        if record.id in self.divergent_ids:
            return
        candidate = StyleRecord.from_text_node({"id": record.id, "name": record.name, "remote": True}, node)
        if (
            candidate.font_family != record.font_family
            or candidate.font_weight_label != record.font_weight_label
            or numeric_font_size(candidate.font_size) != numeric_font_size(record.font_size)
        ):
            self.divergent_ids.add(record.id)
            logger.info(
                f"🔀 Style '{record.name}' is used with differing fonts "
                f"(kept {record.font_family} {record.font_weight_label} {record.font_size}, "
                f"node {node.get('id', '?')} has {candidate.font_family} {candidate.font_weight_label} {candidate.font_size})"
            )

    def records(self) -> List[StyleRecord]:
        """All records in discovery order."""
        return list(self._records.values())
