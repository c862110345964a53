"""
WebSocket Server

Handles real-time bidirectional communication with the browser extension.
Used for streaming interaction events and telemetry samples in, and
pushing state updates out.
"""
from typing import Optional, Dict, Any, Set, Callable, Awaitable
import asyncio
from datetime import datetime, timezone
import json
import uuid

import websockets

from cognitive_backend.api.serialization import json_safe
from cognitive_backend.services.logger_service import get_logger
from cognitive_backend.types.messages import MessageType, WebSocketMessage


# Type alias for message handlers
MessageHandler = Callable[[WebSocketMessage, str], Awaitable[None]]


class WebSocketServer:
    """
    WebSocket server for extension communication.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8765,
    ):
        """
        Initialize the WebSocket server.

        Args:
            host: Host to bind to.
            port: Port to listen on.
        """
        self._host = host
        self._port = port
        self._server: Optional[object] = None
        self._clients: Set[object] = set()
        self._client_info: Dict[str, Dict[str, Any]] = {}
        self._message_handlers: Dict[MessageType, MessageHandler] = {}
        self._disconnect_handlers: list[Callable[[str], None]] = []
        self._is_running: bool = False
        self._logger = get_logger()

    async def start(self) -> None:
        """Start the WebSocket server."""
        self._server = await websockets.serve(
            self._handle_connection,
            self._host,
            self._port,
        )
        self._is_running = True

    async def stop(self) -> None:
        """Stop the WebSocket server and disconnect all clients."""
        self._is_running = False

        for client in list(self._clients):
            try:
                await client.close()
            except websockets.WebSocketException as e:
                self._logger.system(
                    "websocket_close_error",
                    {"error": str(e)},
                    level="DEBUG",
                )
        self._clients.clear()

        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    def is_running(self) -> bool:
        """
        Check if server is running.

        Returns:
            True if server is running.
        """
        return self._is_running

    def get_connected_clients(self) -> int:
        """
        Get number of connected clients.

        Returns:
            Number of connected clients.
        """
        return len(self._clients)

    def register_handler(
        self,
        message_type: MessageType,
        handler: MessageHandler,
    ) -> None:
        """
        Register a handler for a message type.

        Args:
            message_type: Type of message to handle.
            handler: Async function to handle the message.
        """
        self._message_handlers[message_type] = handler

    def register_disconnect_handler(self, handler: Callable[[str], None]) -> None:
        """Call handler with the client id whenever a client disconnects."""
        self._disconnect_handlers.append(handler)

    async def send_to_client(
        self,
        client_id: str,
        message: WebSocketMessage,
    ) -> bool:
        """
        Send a message to a specific client.

        Args:
            client_id: ID of the target client.
            message: Message to send.

        Returns:
            True if sent successfully.
        """
        client_info = self._client_info.get(client_id)
        if not client_info:
            return False

        websocket = client_info["websocket"]
        try:
            await websocket.send(self._serialize_message(message))
            return True
        except websockets.WebSocketException as e:
            self._logger.system(
                "websocket_send_to_client_error",
                {"client_id": client_id, "error": str(e)},
                level="ERROR",
            )
            return False

    async def broadcast(self, message: WebSocketMessage) -> int:
        """
        Send a message to every connected client.

        Returns:
            Number of clients reached.
        """
        sent = 0
        text = self._serialize_message(message)

        for client in list(self._clients):
            try:
                await client.send(text)
                sent += 1
            except websockets.WebSocketException as e:
                self._logger.system(
                    "websocket_broadcast_client_error",
                    {"error": str(e)},
                    level="WARNING",
                )
                self._clients.discard(client)

        return sent

    # --- Internal Methods ---

    async def _handle_connection(self, websocket: object, path: str = "") -> None:
        """
        Handle a new WebSocket connection.

        Args:
            websocket: The WebSocket connection.
            path: Connection path (older websockets releases only).
        """
        client_id = str(uuid.uuid4())
        self._clients.add(websocket)
        self._client_info[client_id] = {
            "websocket": websocket,
            "connected_at": asyncio.get_running_loop().time(),
        }

        self._logger.system(
            "websocket_client_connected",
            {"client_id": client_id, "total_clients": len(self._clients)},
        )

        try:
            async for message in websocket:
                await self._process_message(message, client_id)
        except websockets.ConnectionClosedError as e:
            self._logger.system(
                "websocket_client_error",
                {"client_id": client_id, "error": str(e)},
                level="WARNING",
            )
        finally:
            await self._handle_disconnection(client_id)

    async def _handle_disconnection(self, client_id: str) -> None:
        """
        Handle client disconnection.

        Args:
            client_id: ID of disconnected client.
        """
        info = self._client_info.pop(client_id, None)
        if info is not None:
            self._clients.discard(info["websocket"])

        self._logger.system(
            "websocket_client_disconnected",
            {"client_id": client_id, "total_clients": len(self._clients)},
        )

        for handler in self._disconnect_handlers:
            handler(client_id)

    async def _process_message(
        self,
        raw_message: str,
        client_id: str,
    ) -> None:
        """
        Process a received message.

        Args:
            raw_message: Raw JSON message string.
            client_id: ID of the sending client.
        """
        message = self._parse_message(raw_message)
        if message is None:
            self._logger.system(
                "websocket_message_unparseable",
                {"client_id": client_id},
                level="WARNING",
            )
            await self._send_error(client_id, "Unrecognized message", None)
            return

        handler = self._message_handlers.get(message.type)
        if handler is None:
            await self._send_error(
                client_id, f"No handler for message type: {message.type.value}", message.message_id
            )
            return

        try:
            await handler(message, client_id)
        except Exception as e:
            self._logger.system(
                "websocket_handler_error",
                {"message_type": message.type.value, "error": str(e)},
                level="ERROR",
            )
            await self._send_error(client_id, str(e), message.message_id)

    async def _send_error(self, client_id: str, error: str, message_id: Optional[str]) -> None:
        await self.send_to_client(
            client_id,
            WebSocketMessage(
                type=MessageType.ERROR,
                timestamp=datetime.now(timezone.utc).timestamp(),
                payload={"error": error},
                message_id=message_id,
            ),
        )

    def _parse_message(self, raw_message: str) -> Optional[WebSocketMessage]:
        """
        Parse a raw message into a WebSocketMessage.

        Args:
            raw_message: Raw JSON message string.

        Returns:
            Parsed message or None if invalid.
        """
        try:
            data = json.loads(raw_message)
            if not isinstance(data, dict):
                return None
            return WebSocketMessage.from_dict(data)
        except (json.JSONDecodeError, ValueError, TypeError):
            return None

    def _serialize_message(self, message: WebSocketMessage) -> str:
        return json.dumps(json_safe(message.to_dict()))
