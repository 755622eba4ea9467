"""
Figma Communicator - RPC Communication Layer

This module provides the communication layer between the Python agent
and the Figma plugin sandbox via WebSocket tool calls and responses.
Every host canvas operation (reading the document, resolving a style,
creating nodes, selecting, notifying) goes through `send_command`.
"""

import asyncio
import json
import uuid
import logging
import time
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

COMMUNICATION_ERROR = "communication_error"
UNKNOWN_PLUGIN_ERROR = "unknown_plugin_error"


class PluginCommandError(Exception):
    """
    Structured failure reported by the plugin for one command.

    Expected payload shape: { code: str, message: str, details?: dict }
    """

    def __init__(self, payload: Any, command: str | None = None, params: Dict[str, Any] | None = None):
        self.command = command
        self.params = params

        if isinstance(payload, dict):
            self.code: str = str(payload.get("code", UNKNOWN_PLUGIN_ERROR))
            self.message: str = str(payload.get("message", ""))
            self.details: Dict[str, Any] = payload.get("details", {}) or {}
            normalized_payload = payload
        else:
            self.code = UNKNOWN_PLUGIN_ERROR
            self.message = str(payload)
            self.details = {}
            normalized_payload = {"code": self.code, "message": self.message, "details": self.details}

        self.payload = normalized_payload

        # Exception text is the structured message (or the code when empty)
        text = self.message if self.message else self.code
        super().__init__(text)


class FigmaCommunicator:
    """
    Handles RPC communication with the Figma plugin.

    This class manages:
    - Sending tool_call messages to the plugin
    - Tracking pending requests with unique IDs
    - Resolving futures when tool_response messages arrive
    - Error handling and timeouts
    """

    def __init__(self, websocket, timeout: float = 30.0):
        """
        Initialize the communicator.

        Args:
            websocket: The WebSocket connection to send messages through
            timeout: Timeout in seconds for tool calls (default: 30.0)
        """
        self.websocket = websocket
        self.timeout = timeout
        self.pending_requests: Dict[str, asyncio.Future] = {}
        self.request_timestamps: Dict[str, float] = {}
        self.request_meta: Dict[str, Dict[str, Any]] = {}

    def generate_id(self) -> str:
        """Generate a unique ID for tool calls."""
        return str(uuid.uuid4())

    def _forget(self, request_id: str) -> Optional[float]:
        self.pending_requests.pop(request_id, None)
        self.request_meta.pop(request_id, None)
        return self.request_timestamps.pop(request_id, None)

    async def send_command(self, command: str, params: Dict[str, Any] = None) -> Any:
        """
        Send a command to the Figma plugin and wait for the response.

        Args:
            command: The command name (e.g., "get_document_tree")
            params: Optional parameters for the command

        Returns:
            The result from the plugin

        Raises:
            asyncio.TimeoutError: If the request times out
            PluginCommandError: If the plugin returns an error
        """
        if not self.websocket:
            raise RuntimeError("WebSocket connection not available")

        request_id = self.generate_id()
        tool_call_message = {
            "type": "tool_call",
            "id": request_id,
            "command": command,
            "params": params or {}
        }

        future = asyncio.get_running_loop().create_future()
        self.pending_requests[request_id] = future
        self.request_timestamps[request_id] = time.time()
        self.request_meta[request_id] = {"command": command, "params": params or {}}

        logger.debug(f"📝 Added to pending requests: {request_id} (total: {len(self.pending_requests)})")

        try:
            logger.info(f"🚀 Sending tool_call: {command} with ID: {request_id}")
            logger.debug(f"🚀 Tool call payload: {json.dumps(tool_call_message)}")
            await self.websocket.send(json.dumps(tool_call_message))

            return await asyncio.wait_for(future, timeout=self.timeout)

        except asyncio.TimeoutError:
            start_time = self._forget(request_id)
            elapsed = time.time() - start_time if start_time else self.timeout
            logger.error(f"⏰ Tool call {command} (ID: {request_id}) timed out after {elapsed:.3f}s (limit: {self.timeout}s)")
            raise asyncio.TimeoutError(f"Tool call '{command}' timed out after {elapsed:.1f} seconds")

        except Exception as e:
            self._forget(request_id)
            logger.error(f"Tool call {command} (ID: {request_id}) failed: {e}")
            raise

    def handle_tool_response(self, message: Dict[str, Any]) -> None:
        """
        Handle incoming tool_response messages from the plugin.

        Args:
            message: The tool_response message from the plugin
        """
        request_id = message.get("id")
        logger.debug(f"🔄 Processing tool_response for ID: {request_id}")

        if not request_id:
            logger.warning("❌ Received tool_response without ID")
            return

        future = self.pending_requests.pop(request_id, None)
        start_time = self.request_timestamps.pop(request_id, None)
        meta = self.request_meta.pop(request_id, None)
        cmd = meta.get("command") if isinstance(meta, dict) else None
        params = meta.get("params") if isinstance(meta, dict) else None

        if not future:
            logger.warning(f"❌ Received tool_response for unknown ID: {request_id}")
            return

        if future.done():
            logger.debug(f"⚠️ Future already completed or cancelled for {request_id}")
            return

        elapsed = time.time() - start_time if start_time else 0

        if isinstance(message.get("error_structured"), dict):
            error_payload = message["error_structured"]
            logger.error(f"❌ Tool call {request_id} failed after {elapsed:.3f}s: code={error_payload.get('code')}, message={error_payload.get('message')}")
            future.set_exception(PluginCommandError(error_payload, command=cmd, params=params))
            return

        if "error" in message:
            error_val = message.get("error")
            logger.error(f"❌ Tool call {request_id} failed after {elapsed:.3f}s: {error_val}")
            # `error` may be an object already or a JSON string
            try:
                error_payload = error_val if isinstance(error_val, dict) else json.loads(error_val)
                if not isinstance(error_payload, dict):
                    raise TypeError("Parsed error is not an object")
            except (TypeError, ValueError):
                error_payload = {"code": UNKNOWN_PLUGIN_ERROR, "message": str(error_val)}
            future.set_exception(PluginCommandError(error_payload, command=cmd, params=params))
            return

        result = message.get("result", {})
        if isinstance(result, dict) and result.get("success") is False:
            err_text = result.get("message") or "Tool reported failure"
            logger.error(f"❌ Tool call {request_id} reported failure after {elapsed:.3f}s: {err_text}")
            future.set_exception(PluginCommandError(
                {"code": result.get("code") or "plugin_reported_failure", "message": str(err_text), "details": {"result": result}},
                command=cmd,
                params=params,
            ))
            return

        logger.info(f"✅ Tool call {cmd} ({request_id}) completed successfully after {elapsed:.3f}s")
        logger.debug(f"🎯 Result payload: {result}")
        future.set_result(result)

    def cleanup_pending_requests(self) -> None:
        """Cancel all pending requests (called on shutdown or when the plugin closes)."""
        for request_id, future in self.pending_requests.items():
            if not future.done():
                future.cancel()
                logger.info(f"Cancelled pending request: {request_id}")
        self.pending_requests.clear()
        self.request_timestamps.clear()
        self.request_meta.clear()


# Global communicator instance (will be set by main.py)
_communicator: Optional[FigmaCommunicator] = None

def set_communicator(communicator: Optional[FigmaCommunicator]) -> None:
    """Set the global communicator instance."""
    global _communicator
    _communicator = communicator

def get_communicator() -> FigmaCommunicator:
    """Get the global communicator instance."""
    if _communicator is None:
        raise RuntimeError("Communicator not initialized. Call set_communicator() first.")
    return _communicator

async def send_command(command: str, params: Dict[str, Any] = None) -> Any:
    """
    Convenience function to send a command using the global communicator.

    Args:
        command: The command name
        params: Optional parameters

    Returns:
        The result from the plugin
    """
    communicator = get_communicator()
    return await communicator.send_command(command, params)
