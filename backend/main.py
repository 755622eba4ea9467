import json
import sys
import signal
import logging
import asyncio
from typing import Dict, Any, Optional

import websockets
from websockets.protocol import State
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from config import AgentConfig, get_config
from figma_canvas import BridgeCanvas, load_snapshot_file
from figma_communicator import FigmaCommunicator, set_communicator
from style_extractor import extract_text_styles, make_pause
from style_names import build_rules
from style_session import SESSION_MESSAGE_TYPES, StyleSession

logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] [style-audit] [%(levelname)s] %(message)s',
    datefmt='%Y-%m-%dT%H:%M:%S'
)
logger = logging.getLogger(__name__)

# Bridge message type constants
MESSAGE_TYPE_JOIN = "join"
MESSAGE_TYPE_PING = "ping"
MESSAGE_TYPE_PONG = "pong"
MESSAGE_TYPE_SYSTEM = "system"
MESSAGE_TYPE_TOOL_RESPONSE = "tool_response"
MESSAGE_TYPE_ERROR = "error"


class StyleAuditAgent:
    def __init__(self, config: AgentConfig):
        self.config = config
        self.bridge_url = config.bridge_url
        self.channel = config.channel
        self.websocket = None
        self.running = True
        self.reconnect_delay = 1  # Start with 1 second
        self.max_reconnect_delay = 30  # Max 30 seconds
        self._keep_alive_task = None
        self._background_tasks: set[asyncio.Task] = set()
        self._cancel_lock = asyncio.Lock()

        self.rules = build_rules(config.ruleset, config.excluded_prefixes)
        self.pause = make_pause(config.progress_yield_seconds)
        self.communicator: Optional[FigmaCommunicator] = None
        self.session: Optional[StyleSession] = None
        logger.info(f"🧮 Ruleset: {self.rules.name} (excluded prefixes: {list(self.rules.excluded_prefixes)})")

    async def _send_json(self, payload: Dict[str, Any]) -> None:
        """Send a JSON-serializable payload over the websocket if connected."""
        if not self.websocket:
            raise RuntimeError("WebSocket not connected")
        await self.websocket.send(json.dumps(payload))

    async def connect(self) -> bool:
        """Connect to the bridge and join as agent"""
        try:
            logger.info(f"Connecting to bridge at {self.bridge_url}")
            # Document trees can be large; no frame size limit
            self.websocket = await websockets.connect(self.bridge_url, max_size=None)

            await self._send_json({
                "type": MESSAGE_TYPE_JOIN,
                "role": "agent",
                "channel": self.channel
            })
            logger.info(f"Sent join message for channel: {self.channel}")

            await self._send_json({"type": MESSAGE_TYPE_PING})
            logger.info("🏓 Sent ping message to test WebSocket bidirectional communication")

            self._keep_alive_task = asyncio.create_task(self._websocket_keep_alive())
            logger.info("💓 Started WebSocket keep-alive mechanism")

            self.communicator = FigmaCommunicator(self.websocket, timeout=self.config.command_timeout)
            set_communicator(self.communicator)
            logger.info(f"Initialized FigmaCommunicator for tool calls (timeout: {self.config.command_timeout}s)")

            self.session = StyleSession(
                BridgeCanvas(self.communicator),
                self._send_json,
                rules=self.rules,
                pause=self.pause,
                on_close=lambda: self.cancel_active_operations("close_plugin"),
            )

            self.reconnect_delay = 1
            return True

        except Exception as e:
            logger.error(f"Failed to connect: {e}")
            return False

    async def handle_message(self, message: Dict[str, Any]) -> None:
        """Handle incoming messages from the bridge via a clean async dispatch."""
        msg_type = message.get("type")
        logger.info(f"🔍 Raw message received - Type: '{msg_type}', Keys: {list(message.keys())}")

        if msg_type in SESSION_MESSAGE_TYPES:
            await self._handle_session_request(message)
            return

        handlers = {
            MESSAGE_TYPE_SYSTEM: self._handle_system,
            MESSAGE_TYPE_PONG: self._handle_pong,
            MESSAGE_TYPE_TOOL_RESPONSE: self._handle_tool_response,
            MESSAGE_TYPE_ERROR: self._handle_bridge_error,
        }

        handler = handlers.get(msg_type, self._handle_unknown)
        await handler(message)

    async def _handle_session_request(self, message: Dict[str, Any]) -> None:
        if not self.session:
            logger.warning(f"Received {message.get('type')} before the session was ready")
            return
        # Requests wait on tool_responses, so they must not block the listen loop
        task = asyncio.create_task(self.session.handle_message(message))
        self._background_tasks.add(task)
        task.add_done_callback(self._on_request_done)

    def _on_request_done(self, task: asyncio.Task) -> None:
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"❌ Request task failed: {error}")

    async def _handle_system(self, message: Dict[str, Any]) -> None:
        sys_msg = message.get('message')
        logger.info(f"🔧 System message: {sys_msg}")
        if isinstance(sys_msg, str) and 'disconnected' in sys_msg.lower() and 'plugin' in sys_msg.lower():
            await self.cancel_active_operations(reason="plugin_disconnected")

    async def _handle_pong(self, _: Dict[str, Any]) -> None:
        logger.info("🏓 Received pong response - WebSocket bidirectional communication WORKING!")

    async def _handle_tool_response(self, message: Dict[str, Any]) -> None:
        logger.info(f"📨 Received tool_response: {message.get('id', 'no-id')}")
        if self.communicator:
            self.communicator.handle_tool_response(message)
        else:
            logger.warning("Received tool_response but communicator not initialized")

    async def _handle_bridge_error(self, message: Dict[str, Any]) -> None:
        error_msg = message.get("message", "Unknown error")
        logger.error(f"Bridge error: {error_msg}")

    async def _handle_unknown(self, message: Dict[str, Any]) -> None:
        logger.debug(f"Ignoring unknown message type: {message.get('type')}")

    async def cancel_active_operations(self, reason: str = "") -> None:
        """Cancel all in-flight requests and pending tool calls."""
        async with self._cancel_lock:
            current = asyncio.current_task()
            others = [t for t in self._background_tasks if t is not current and not t.done()]
            if others:
                logger.info(f"🧹 Cancelling {len(others)} active request(s) ({reason})")
                for task in others:
                    task.cancel()
                await asyncio.sleep(0)
            if self.communicator:
                self.communicator.cleanup_pending_requests()

    async def listen(self) -> None:
        """Listen for messages from the bridge"""
        logger.info("🎧 Starting to listen for messages from bridge")
        while self.running and self.websocket:
            try:
                raw_message = await self.websocket.recv()
            except asyncio.CancelledError:
                logger.info("🛑 Listen loop cancelled")
                break
            except Exception as e:
                logger.error(f"❌ Error receiving message: {e}")
                break

            if not raw_message:
                logger.warning("📡 Received empty WebSocket message")
                continue

            logger.debug(f"📡 Raw WebSocket message received: {raw_message[:200]}...")
            try:
                message = json.loads(raw_message)
            except json.JSONDecodeError as e:
                logger.error(f"❌ Failed to decode message: {e}, Raw: {raw_message[:200]}")
                continue
            if not isinstance(message, dict):
                logger.warning(f"📡 Ignoring non-object message: {raw_message[:200]}")
                continue

            try:
                await self.handle_message(message)
            except Exception as e:
                logger.error(f"❌ Error handling message: {e}")

    async def _websocket_keep_alive(self, interval: int = 30) -> None:
        """Keep WebSocket connection alive with periodic pings"""
        try:
            while self.running and self.websocket:
                await asyncio.sleep(interval)
                if not self.websocket or self.websocket.state is not State.OPEN:
                    break
                try:
                    pong_waiter = await self.websocket.ping()
                    await asyncio.wait_for(pong_waiter, timeout=10)
                    logger.debug("💓 WebSocket keep-alive ping successful")
                except asyncio.TimeoutError:
                    logger.warning("💔 WebSocket keep-alive ping timed out")
                    break
                except Exception as e:
                    logger.error(f"💔 WebSocket keep-alive ping failed: {e}")
                    break
        except asyncio.CancelledError:
            logger.debug("💓 WebSocket keep-alive task cancelled")

    async def run_with_reconnect(self) -> None:
        """Main loop with reconnection logic"""
        while self.running:
            try:
                if await self.connect():
                    logger.info("🌉 Connected to bridge successfully")
                    await self.listen()
                else:
                    logger.warning("Failed to connect to bridge")
            except Exception as e:
                logger.error(f"Unexpected error: {e}")
            finally:
                await self.cancel_active_operations("connection_lost")

            if self.running:
                logger.info(f"Reconnecting in {self.reconnect_delay} seconds...")
                await asyncio.sleep(self.reconnect_delay)

                # Exponential backoff up to max delay
                self.reconnect_delay = min(self.reconnect_delay * 2, self.max_reconnect_delay)

    def shutdown(self) -> None:
        """Graceful shutdown"""
        logger.info("Shutting down agent")
        self.running = False

        if self._keep_alive_task and not self._keep_alive_task.done():
            self._keep_alive_task.cancel()
            logger.debug("💓 Cancelled WebSocket keep-alive task")

        if self.communicator:
            self.communicator.cleanup_pending_requests()
            logger.info("Cleaned up pending tool calls")
            set_communicator(None)

        self.websocket = None


async def run_offline(config: AgentConfig) -> int:
    """Run one extraction against a JSON document export and print the result."""
    host = load_snapshot_file(config.export_path)
    rules = build_rules(config.ruleset, config.excluded_prefixes)

    async def report(current: int, total: int, page_name: str) -> None:
        logger.info(f"📈 Page {current}/{total}: {page_name}")

    styles = await extract_text_styles(host, rules, on_progress=report)
    print(json.dumps([s.to_wire() for s in styles], indent=2, ensure_ascii=False))
    return 0


def main():
    config = get_config(sys.argv[1:])
    logging.getLogger().setLevel(config.log_level)

    if config.export_path:
        try:
            sys.exit(asyncio.run(run_offline(config)))
        except (FileNotFoundError, ValueError) as e:
            logger.error(f"Error: {e}")
            sys.exit(1)

    logger.info("Starting Style Audit Agent")
    logger.info(f"Bridge URL: {config.bridge_url}")
    logger.info(f"Channel: {config.channel}")

    try:
        agent = StyleAuditAgent(config)
    except ValueError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)

    def signal_handler(signum, frame):
        logger.info("Received shutdown signal")
        agent.shutdown()
        sys.exit(0)

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        asyncio.run(agent.run_with_reconnect())
    except KeyboardInterrupt:
        logger.info("Agent interrupted")
    finally:
        agent.shutdown()

if __name__ == "__main__":
    main()
