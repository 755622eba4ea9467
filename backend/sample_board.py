"""
Sample Board - render a ranked style list back onto the canvas

Two independent operations over the host canvas:

- build_sample_board: one frame holding one sample text per style, in order
- select_nodes_with_style: select every text node that uses a given style
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from document_walker import text_style_reference, walk_nodes
from figma_canvas import WHITE, CanvasHost
from figma_communicator import COMMUNICATION_ERROR, PluginCommandError
from style_models import StyleRecord

logger = logging.getLogger(__name__)

BOARD_NAME = "Typography Styles"
BOARD_PADDING = 24
BOARD_ITEM_SPACING = 16
BOARD_WIDTH = 400
BOARD_VIEWPORT_OFFSET = -200


@dataclass
class BoardResult:
    frame_id: str
    sample_node_ids: List[str] = field(default_factory=list)
    fallback_count: int = 0
    dropped: List[str] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.sample_node_ids)


@dataclass
class SelectionResult:
    style_id: str
    node_ids: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.node_ids)


async def _create_sample(host: CanvasHost, frame_id: str, style: StyleRecord) -> Tuple[Optional[str], bool]:
    """Create the sample for one style.

    Returns (node_id, used_fallback); node_id is None when the item is dropped.
    """
    try:
        return await host.create_text(frame_id, style.name, text_style_id=style.id), False
    except PluginCommandError as te:
        if te.code == COMMUNICATION_ERROR:
            raise
        logger.warning(f"⚠️ Could not create styled sample for '{style.name}': {te}. Falling back to plain text")

    try:
        return await host.create_text(frame_id, style.name), True
    except PluginCommandError as te:
        if te.code == COMMUNICATION_ERROR:
            raise
        logger.warning(f"⚠️ Could not create fallback sample for '{style.name}': {te}")
        return None, True


async def build_sample_board(host: CanvasHost, styles: List[StyleRecord]) -> BoardResult:
    """Create a vertical auto-layout frame with one sample text per style.

    Per-item failures never abort the batch. The frame is then resized to a
    fixed width, selected and brought into view, and the user is told how
    many samples were created.
    """
    frame_id = await host.create_frame(
        BOARD_NAME,
        layout_mode="VERTICAL",
        padding=BOARD_PADDING,
        item_spacing=BOARD_ITEM_SPACING,
        fill_color=WHITE,
        offset_from_viewport_center=BOARD_VIEWPORT_OFFSET,
    )
    result = BoardResult(frame_id=frame_id)

    for style in styles:
        node_id, used_fallback = await _create_sample(host, frame_id, style)
        if node_id is None:
            result.dropped.append(style.id)
            continue
        result.sample_node_ids.append(node_id)
        if used_fallback:
            result.fallback_count += 1

    # height stays driven by the auto-layout content
    await host.resize_node(frame_id, BOARD_WIDTH)
    await host.set_selection([frame_id])
    await host.scroll_and_zoom_into_view([frame_id])
    await host.notify(f"Frame created with {result.created_count} text styles")

    logger.info(f"🧱 Sample board {frame_id}: {result.created_count} created, {len(result.dropped)} dropped")
    return result


async def select_nodes_with_style(host: CanvasHost, style_id: str) -> SelectionResult:
    """Select every text node in the document whose style reference is `style_id`.

    Zero matches is a normal outcome, reported with its own notification.
    """
    document = await host.get_document()
    matches = [
        node["id"]
        for node in walk_nodes(document)
        if text_style_reference(node) == style_id and isinstance(node.get("id"), str)
    ]
    result = SelectionResult(style_id=style_id, node_ids=matches)

    if not matches:
        logger.info(f"🔎 No nodes use style {style_id}")
        await host.notify("No nodes found using this style")
        return result

    await host.set_selection(matches)
    await host.scroll_and_zoom_into_view(matches)
    await host.notify(f"Selected {result.count} nodes using this style")
    logger.info(f"🔎 Selected {result.count} node(s) using style {style_id}")
    return result
