"""
Style Session - request/response contract with the plugin UI

The session owns no document state between requests. Each request builds
what it needs, talks to the host canvas, and reports back either through UI
events (extraction) or host notifications (board, selection).
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from document_walker import PauseHook
from figma_canvas import CanvasHost
from sample_board import build_sample_board, select_nodes_with_style
from style_extractor import extract_text_styles
from style_models import (
    MESSAGE_TYPE_CLOSE_PLUGIN,
    MESSAGE_TYPE_CREATE_STYLES_FRAME,
    MESSAGE_TYPE_EXTRACT_STYLES,
    MESSAGE_TYPE_SELECT_NODES_WITH_STYLE,
    error_event,
    parse_style_list,
    progress_event,
    progress_init_event,
    styles_extracted_event,
)
from style_names import BASELINE_RULES, NamingRules

logger = logging.getLogger(__name__)

Emit = Callable[[Dict[str, Any]], Awaitable[None]]

SESSION_MESSAGE_TYPES = {
    MESSAGE_TYPE_EXTRACT_STYLES,
    MESSAGE_TYPE_CREATE_STYLES_FRAME,
    MESSAGE_TYPE_SELECT_NODES_WITH_STYLE,
    MESSAGE_TYPE_CLOSE_PLUGIN,
}


class StyleSession:
    def __init__(
        self,
        host: CanvasHost,
        emit: Emit,
        rules: NamingRules = BASELINE_RULES,
        pause: Optional[PauseHook] = None,
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.host = host
        self.emit = emit
        self.rules = rules
        self.pause = pause
        self.on_close = on_close
        self.closed = False

    async def handle_message(self, message: Dict[str, Any]) -> None:
        msg_type = message.get("type")
        handlers = {
            MESSAGE_TYPE_EXTRACT_STYLES: self._handle_extract_styles,
            MESSAGE_TYPE_CREATE_STYLES_FRAME: self._handle_create_styles_frame,
            MESSAGE_TYPE_SELECT_NODES_WITH_STYLE: self._handle_select_nodes_with_style,
            MESSAGE_TYPE_CLOSE_PLUGIN: self._handle_close_plugin,
        }
        handler = handlers.get(msg_type)
        if handler is None:
            logger.debug(f"Ignoring unknown session message type: {msg_type}")
            return
        logger.info(f"📨 Session request: {msg_type}")
        await handler(message)

    async def _emit_progress_init(self, total: int) -> None:
        await self.emit(progress_init_event(total))

    async def _emit_progress(self, current: int, total: int, unit_name: str) -> None:
        logger.debug(f"📈 Page {current}/{total}: {unit_name}")
        await self.emit(progress_event(current, total, unit_name))

    async def _handle_extract_styles(self, _: Dict[str, Any]) -> None:
        try:
            styles = await extract_text_styles(
                self.host,
                self.rules,
                on_start=self._emit_progress_init,
                on_progress=self._emit_progress,
                pause=self.pause,
            )
        except asyncio.CancelledError:
            logger.info("🛑 Extraction cancelled")
            raise
        except Exception as e:
            logger.error(f"❌ Style extraction failed: {e}")
            await self._emit_terminal(error_event(f"Style extraction failed: {e}"))
            return
        await self._emit_terminal(styles_extracted_event(styles))

    async def _emit_terminal(self, event: Dict[str, Any]) -> None:
        # The request ends here; a dead UI channel has nobody left to tell
        try:
            await self.emit(event)
        except Exception as e:
            logger.error(f"❌ Could not deliver '{event.get('type')}' event: {e}")

    async def _notify_failure(self, text: str) -> None:
        try:
            await self.host.notify(text, is_error=True)
        except Exception as e:
            logger.error(f"❌ Could not deliver notification '{text}': {e}")

    async def _handle_create_styles_frame(self, message: Dict[str, Any]) -> None:
        try:
            styles = parse_style_list(message.get("styles"))
            await build_sample_board(self.host, styles)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"❌ Failed to create the styles frame: {e}")
            await self._notify_failure(f"Failed to create the styles frame: {e}")

    async def _handle_select_nodes_with_style(self, message: Dict[str, Any]) -> None:
        style_id = message.get("styleId")
        try:
            if not isinstance(style_id, str) or not style_id:
                raise ValueError("'styleId' must be a non-empty string")
            await select_nodes_with_style(self.host, style_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"❌ Failed to select nodes for style {style_id}: {e}")
            await self._notify_failure(f"Failed to select nodes: {e}")

    async def _handle_close_plugin(self, _: Dict[str, Any]) -> None:
        self.closed = True
        if self.on_close is not None:
            await self.on_close()
        try:
            await self.host.close()
        except Exception as e:
            logger.warning(f"⚠️ close_plugin failed: {e}")
