"""
Figma Canvas - host capability used by the style pipeline

The pipeline never owns the document. It reads the node tree and the style
registry from a CanvasHost and issues mutations through it. Two hosts exist:

- BridgeCanvas forwards every operation to the Figma plugin as a tool_call
  through the figma_communicator (live plugin session).
- SnapshotCanvas works on an in-memory JSON export of a document
  ({"document": ..., "styles": ...}); used for offline runs and tests.
"""

import copy
import json
import logging
from abc import ABC, abstractmethod
from itertools import count
from pathlib import Path
from typing import Any, Dict, List, Optional

from figma_communicator import (
    COMMUNICATION_ERROR,
    FigmaCommunicator,
    PluginCommandError,
    send_command,
)

logger = logging.getLogger(__name__)

# Plugin error codes that mean "this style reference cannot be resolved"
STYLE_LOOKUP_ERROR_CODES = {"style_not_found", "invalid_style_id", "missing_parameter"}

WHITE = {"r": 1.0, "g": 1.0, "b": 1.0, "a": 1.0}


class InvalidStyleError(Exception):
    """A text node references a style that is missing or malformed."""

    def __init__(self, style_id: Any, reason: str = ""):
        self.style_id = style_id
        self.reason = reason
        super().__init__(f"Invalid style '{style_id}': {reason}" if reason else f"Invalid style '{style_id}'")


def validate_style(style_id: str, style: Any) -> Dict[str, Any]:
    """Check that a resolved style object carries a string id and name."""
    if not isinstance(style, dict):
        raise InvalidStyleError(style_id, "style not found")
    if not isinstance(style.get("id"), str) or not style.get("id"):
        raise InvalidStyleError(style_id, "style has no id")
    if not isinstance(style.get("name"), str):
        raise InvalidStyleError(style_id, "style has no name")
    return style


class CanvasHost(ABC):
    """Operations the pipeline needs from the host document/canvas API."""

    @abstractmethod
    async def get_document(self) -> Dict[str, Any]:
        """Return the document root; its children are the pages."""
        ...

    @abstractmethod
    async def get_style_by_id(self, style_id: str) -> Dict[str, Any]:
        """Resolve a style reference. Raises InvalidStyleError when it cannot."""
        ...

    @abstractmethod
    async def create_frame(
        self,
        name: str,
        *,
        layout_mode: str = "VERTICAL",
        padding: float = 0,
        item_spacing: float = 0,
        fill_color: Optional[Dict[str, float]] = None,
        offset_from_viewport_center: float = 0,
    ) -> str:
        """Create an auto-sizing frame on the current page and return its id."""
        ...

    @abstractmethod
    async def create_text(
        self,
        parent_id: str,
        characters: str,
        *,
        text_style_id: Optional[str] = None,
        layout_align: str = "STRETCH",
        text_align_horizontal: str = "LEFT",
    ) -> str:
        """Create a text node appended to `parent_id` and return its id."""
        ...

    @abstractmethod
    async def resize_node(self, node_id: str, width: float, height: Optional[float] = None) -> None:
        ...

    @abstractmethod
    async def set_selection(self, node_ids: List[str]) -> None:
        ...

    @abstractmethod
    async def scroll_and_zoom_into_view(self, node_ids: List[str]) -> None:
        ...

    @abstractmethod
    async def notify(self, message: str, is_error: bool = False) -> None:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


# ============================================
# ============ LIVE PLUGIN HOST ==============
# ============================================

class BridgeCanvas(CanvasHost):
    """CanvasHost backed by tool calls to the Figma plugin."""

    def __init__(self, communicator: Optional[FigmaCommunicator] = None):
        self._communicator = communicator

    async def _send(self, command: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            if self._communicator is not None:
                return await self._communicator.send_command(command, params or {})
            return await send_command(command, params or {})
        except PluginCommandError:
            raise
        except Exception as e:
            logger.error(f"❌ Communication/system error in {command}: {str(e)}")
            raise PluginCommandError({
                "code": COMMUNICATION_ERROR,
                "message": f"Failed to call {command}: {str(e)}",
                "details": {"command": command},
            }, command=command, params=params)

    @staticmethod
    def _created_id(result: Any, command: str) -> str:
        node_id = result.get("created_node_id") if isinstance(result, dict) else None
        if not isinstance(node_id, str) or not node_id:
            raise PluginCommandError({
                "code": "invalid_response",
                "message": f"{command} did not return a created_node_id",
                "details": {"result": result},
            }, command=command)
        return node_id

    async def get_document(self) -> Dict[str, Any]:
        logger.info("📄 Fetching document tree")
        result = await self._send("get_document_tree", {})
        document = result.get("document") if isinstance(result, dict) else None
        if not isinstance(document, dict):
            raise PluginCommandError({
                "code": "invalid_response",
                "message": "get_document_tree did not return a document",
                "details": {"result": result},
            }, command="get_document_tree")
        return document

    async def get_style_by_id(self, style_id: str) -> Dict[str, Any]:
        try:
            result = await self._send("get_style_by_id", {"style_id": style_id})
        except PluginCommandError as te:
            if te.code in STYLE_LOOKUP_ERROR_CODES:
                raise InvalidStyleError(style_id, te.message or te.code) from te
            raise
        style = result.get("style") if isinstance(result, dict) else None
        return validate_style(style_id, style)

    async def create_frame(
        self,
        name: str,
        *,
        layout_mode: str = "VERTICAL",
        padding: float = 0,
        item_spacing: float = 0,
        fill_color: Optional[Dict[str, float]] = None,
        offset_from_viewport_center: float = 0,
    ) -> str:
        logger.info(f"🖼️ Creating frame '{name}'")
        params: Dict[str, Any] = {
            "name": name,
            "layout_mode": layout_mode,
            "padding_top": padding,
            "padding_right": padding,
            "padding_bottom": padding,
            "padding_left": padding,
            "item_spacing": item_spacing,
            "primary_axis_sizing_mode": "AUTO",
            "counter_axis_sizing_mode": "AUTO",
            "placement": "viewport_center",
            "offset": {"x": offset_from_viewport_center, "y": offset_from_viewport_center},
        }
        if fill_color is not None:
            params["fill_color"] = fill_color
        result = await self._send("create_frame", params)
        return self._created_id(result, "create_frame")

    async def create_text(
        self,
        parent_id: str,
        characters: str,
        *,
        text_style_id: Optional[str] = None,
        layout_align: str = "STRETCH",
        text_align_horizontal: str = "LEFT",
    ) -> str:
        params: Dict[str, Any] = {
            "parent_id": parent_id,
            "characters": characters,
            "name": characters,
            "layout_align": layout_align,
            "text_align_horizontal": text_align_horizontal,
        }
        if text_style_id:
            params["text_style_id"] = text_style_id
        result = await self._send("create_text", params)
        return self._created_id(result, "create_text")

    async def resize_node(self, node_id: str, width: float, height: Optional[float] = None) -> None:
        params: Dict[str, Any] = {"node_ids": [node_id], "width": width}
        if height is not None:
            params["height"] = height
        await self._send("set_size", params)

    async def set_selection(self, node_ids: List[str]) -> None:
        await self._send("set_selection", {"node_ids": node_ids})

    async def scroll_and_zoom_into_view(self, node_ids: List[str]) -> None:
        logger.info(f"🔭 scroll_and_zoom_into_view: node_count={len(node_ids)}")
        await self._send("scroll_and_zoom_into_view", {"node_ids": node_ids})

    async def notify(self, message: str, is_error: bool = False) -> None:
        logger.info(f"🔔 show_notification: message='{message[:80]}' is_error={is_error}")
        params: Dict[str, Any] = {"message": message}
        if is_error:
            params["is_error"] = True
        await self._send("show_notification", params)

    async def close(self) -> None:
        await self._send("close_plugin", {})


# ============================================
# ============ IN-MEMORY HOST ================
# ============================================

class SnapshotCanvas(CanvasHost):
    """CanvasHost over an in-memory document export.

    Mutations are applied to the in-memory tree on the first page, and the
    selection, viewport focus and notifications are recorded so callers can
    inspect what a live plugin would have shown.
    """

    def __init__(self, document: Dict[str, Any], styles: Optional[Dict[str, Any]] = None, source_file: str = ""):
        self.document = document
        self.styles: Dict[str, Any] = styles or {}
        self.source_file = source_file
        self.selection: List[str] = []
        self.viewport_focus: List[str] = []
        self.notifications: List[Dict[str, Any]] = []
        self.closed = False
        self._ids = count(1)

    def _next_id(self) -> str:
        return f"snapshot:{next(self._ids)}"

    def _current_page(self) -> Dict[str, Any]:
        pages = self.document.get("children")
        if not isinstance(pages, list) or not pages or not isinstance(pages[0], dict):
            raise PluginCommandError({"code": "page_unavailable", "message": "Document has no page to draw on"})
        return pages[0]

    def find_node(self, node_id: str) -> Optional[Dict[str, Any]]:
        stack = [self.document]
        while stack:
            node = stack.pop()
            if node.get("id") == node_id:
                return node
            stack.extend(c for c in node.get("children") or [] if isinstance(c, dict))
        return None

    async def get_document(self) -> Dict[str, Any]:
        # Callers get a copy so a request never sees later mutations
        return copy.deepcopy(self.document)

    async def get_style_by_id(self, style_id: str) -> Dict[str, Any]:
        return validate_style(style_id, self.styles.get(style_id))

    async def create_frame(
        self,
        name: str,
        *,
        layout_mode: str = "VERTICAL",
        padding: float = 0,
        item_spacing: float = 0,
        fill_color: Optional[Dict[str, float]] = None,
        offset_from_viewport_center: float = 0,
    ) -> str:
        frame = {
            "id": self._next_id(),
            "type": "FRAME",
            "name": name,
            "layoutMode": layout_mode,
            "primaryAxisSizingMode": "AUTO",
            "counterAxisSizingMode": "AUTO",
            "paddingTop": padding,
            "paddingRight": padding,
            "paddingBottom": padding,
            "paddingLeft": padding,
            "itemSpacing": item_spacing,
            "fills": [{"type": "SOLID", "color": fill_color}] if fill_color else [],
            "x": offset_from_viewport_center,
            "y": offset_from_viewport_center,
            "children": [],
        }
        self._current_page().setdefault("children", []).append(frame)
        return frame["id"]

    async def create_text(
        self,
        parent_id: str,
        characters: str,
        *,
        text_style_id: Optional[str] = None,
        layout_align: str = "STRETCH",
        text_align_horizontal: str = "LEFT",
    ) -> str:
        parent = self.find_node(parent_id)
        if parent is None:
            raise PluginCommandError({"code": "parent_not_found", "message": f"Parent {parent_id} not found"}, command="create_text")
        if text_style_id and text_style_id not in self.styles:
            raise PluginCommandError({"code": "style_not_found", "message": f"Style {text_style_id} not found"}, command="create_text")
        text = {
            "id": self._next_id(),
            "type": "TEXT",
            "name": characters,
            "characters": characters,
            "layoutAlign": layout_align,
            "textAlignHorizontal": text_align_horizontal,
        }
        if text_style_id:
            text["textStyleId"] = text_style_id
        parent.setdefault("children", []).append(text)
        return text["id"]

    async def resize_node(self, node_id: str, width: float, height: Optional[float] = None) -> None:
        node = self.find_node(node_id)
        if node is None:
            raise PluginCommandError({"code": "nodes_not_found", "message": f"Node {node_id} not found"}, command="set_size")
        node["width"] = width
        if height is not None:
            node["height"] = height

    async def set_selection(self, node_ids: List[str]) -> None:
        self.selection = list(node_ids)

    async def scroll_and_zoom_into_view(self, node_ids: List[str]) -> None:
        self.viewport_focus = list(node_ids)

    async def notify(self, message: str, is_error: bool = False) -> None:
        logger.info(f"🔔 {message}")
        self.notifications.append({"message": message, "is_error": is_error})

    async def close(self) -> None:
        self.closed = True


def load_snapshot_file(path: str | Path) -> SnapshotCanvas:
    """Load a JSON document export into a SnapshotCanvas.

    The export holds {"document": <node tree>, "styles": {<id>: <style>}}.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with open(p, encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict) or not isinstance(data.get("document"), dict):
        raise ValueError(f"{path} is not a document export (missing 'document' object)")

    styles = data.get("styles") or {}
    if not isinstance(styles, dict):
        raise ValueError(f"{path} has a malformed 'styles' map")

    return SnapshotCanvas(data["document"], styles, source_file=str(p))
