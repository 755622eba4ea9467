"""
Document Walker - read-only traversal of the host node tree

Nodes are plain dicts as delivered by the host: a `type` discriminator and,
for containers, an ordered `children` list. The walker never keeps a node
beyond the current traversal.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional

from figma_canvas import InvalidStyleError

logger = logging.getLogger(__name__)

TEXT_NODE_TYPE = "TEXT"

StyleResolver = Callable[[str], Awaitable[Dict[str, Any]]]
ProgressCallback = Callable[[int, int, str], Awaitable[None]]
PauseHook = Callable[[], Awaitable[None]]
StyleVisitor = Callable[[Dict[str, Any], Dict[str, Any]], None]


def _children(node: Dict[str, Any]) -> List[Dict[str, Any]]:
    children = node.get("children")
    if not isinstance(children, list):
        return []
    return [c for c in children if isinstance(c, dict)]


def walk_nodes(root: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """Yield every node of the subtree once, depth-first pre-order.

    Uses an explicit stack so deep trees do not hit the recursion limit.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(_children(node)))


def is_text_node(node: Dict[str, Any]) -> bool:
    return str(node.get("type", "")).upper() == TEXT_NODE_TYPE


def text_style_reference(node: Dict[str, Any]) -> Optional[str]:
    """Return the style id of a text node, or None when it has no usable one."""
    if not is_text_node(node):
        return None
    ref = node.get("textStyleId")
    if isinstance(ref, str) and ref:
        return ref
    return None


def document_units(document: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Top-level units of a document (its pages), in document order."""
    return _children(document)


def unit_name(unit: Dict[str, Any]) -> str:
    name = unit.get("name")
    return name if isinstance(name, str) else ""


class TreeWalker:
    """
    Walks a document page by page and hands resolved styles to a visitor.

    Progress is reported once per page, before the page is descended. The
    optional pause hook runs between pages so an observing UI can repaint;
    it never changes what is visited or in which order.
    """

    def __init__(
        self,
        resolve_style: StyleResolver,
        on_progress: Optional[ProgressCallback] = None,
        pause: Optional[PauseHook] = None,
    ):
        self.resolve_style = resolve_style
        self.on_progress = on_progress
        self.pause = pause
        self.skipped_references = 0

    async def walk_document(self, document: Dict[str, Any], visit: StyleVisitor) -> int:
        """Walk every page of `document`. Returns the number of nodes visited."""
        units = document_units(document)
        total = len(units)
        visited = 0
        for index, unit in enumerate(units, start=1):
            if index > 1 and self.pause is not None:
                await self.pause()
            if self.on_progress is not None:
                await self.on_progress(index, total, unit_name(unit))
            visited += await self.walk_unit(unit, visit)
        logger.info(f"🧭 Walked {total} page(s), {visited} node(s), {self.skipped_references} invalid style reference(s) skipped")
        return visited

    async def walk_unit(self, unit: Dict[str, Any], visit: StyleVisitor) -> int:
        visited = 0
        for node in walk_nodes(unit):
            visited += 1
            style_id = text_style_reference(node)
            if style_id is None:
                continue
            try:
                style = await self.resolve_style(style_id)
            except InvalidStyleError as e:
                self.skipped_references += 1
                logger.warning(f"⚠️ Skipping node {node.get('id', '?')}: {e}")
                continue
            visit(style, node)
        return visited
