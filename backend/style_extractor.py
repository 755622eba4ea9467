"""
Style Extractor - walk, collect and rank the remote text styles of a document

One call to `extract_text_styles` is one request: it builds fresh state
(style cache, collector), reads the document once, and either returns the
complete ranked list or raises. No partial list is ever returned.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from document_walker import PauseHook, ProgressCallback, TreeWalker, document_units
from figma_canvas import CanvasHost, InvalidStyleError
from style_collector import StyleCollector
from style_models import StyleRecord
from style_names import BASELINE_RULES, NamingRules
from style_ranking import rank_styles

logger = logging.getLogger(__name__)

StartCallback = Callable[[int], Awaitable[None]]


class StyleRegistry:
    """Request-scoped cache in front of the host's style lookup.

    Each style id is resolved at most once per extraction; failed lookups are
    remembered too, so a broken reference used by many nodes costs one call.
    """

    def __init__(self, host: CanvasHost):
        self._host = host
        self._styles: Dict[str, Dict[str, Any]] = {}
        self._failures: Dict[str, InvalidStyleError] = {}

    async def get_style_by_id(self, style_id: str) -> Dict[str, Any]:
        if style_id in self._styles:
            return self._styles[style_id]
        if style_id in self._failures:
            raise self._failures[style_id]
        try:
            style = await self._host.get_style_by_id(style_id)
        except InvalidStyleError as e:
            self._failures[style_id] = e
            raise
        self._styles[style_id] = style
        return style


def make_pause(delay_seconds: float) -> Optional[PauseHook]:
    """Build the between-pages pause; None when pausing is disabled."""
    if not delay_seconds or delay_seconds <= 0:
        return None

    async def pause() -> None:
        await asyncio.sleep(delay_seconds)

    return pause


async def extract_text_styles(
    host: CanvasHost,
    rules: NamingRules = BASELINE_RULES,
    *,
    on_start: Optional[StartCallback] = None,
    on_progress: Optional[ProgressCallback] = None,
    pause: Optional[PauseHook] = None,
) -> List[StyleRecord]:
    """Return the ranked remote text styles used anywhere in the host document.

    Args:
        host: Canvas host to read the document and styles from
        rules: Naming ruleset used for exclusion and ranking
        on_start: Awaited once with the number of pages before walking
        on_progress: Awaited with (index, total, page_name) before each page
        pause: Awaited between pages
    """
    logger.info(f"🔍 Extracting text styles (ruleset={rules.name}, excluded={list(rules.excluded_prefixes)})")
    document = await host.get_document()

    if on_start is not None:
        await on_start(len(document_units(document)))

    registry = StyleRegistry(host)
    collector = StyleCollector(rules)
    walker = TreeWalker(registry.get_style_by_id, on_progress=on_progress, pause=pause)
    await walker.walk_document(document, collector.add)

    ranked = rank_styles(collector.records(), rules)
    logger.info(f"✅ Extracted {len(ranked)} text style(s)")
    return ranked
