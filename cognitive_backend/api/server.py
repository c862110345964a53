"""
Combined Server

Main server that runs both WebSocket and REST API servers together.
Entry point for the backend application.
"""
from datetime import datetime, timezone
from typing import Optional
import asyncio

from cognitive_backend.api.serialization import json_safe
from cognitive_backend.types import SystemConfig
from cognitive_backend.layers import RuntimeController
from cognitive_backend.api.websocket_server import WebSocketServer
from cognitive_backend.api.rest_api import HttpMethod, RestAPI
from cognitive_backend.services.logger_service import get_logger
from cognitive_backend.types.messages import MessageType, WebSocketMessage
from cognitive_backend.types.domain_events import DomainEvent, DomainEventType


class Server:
    """
    Main server combining WebSocket and REST API.
    """

    def __init__(self, config: Optional[SystemConfig] = None):
        """
        Initialize the combined server.

        Args:
            config: System configuration.
        """
        self._config = config or SystemConfig()

        self._controller = RuntimeController(self._config)
        self._websocket_server = WebSocketServer(
            host=self._config.controller.websocket_host,
            port=self._config.controller.websocket_port,
        )
        self._rest_api = RestAPI(
            host=self._config.controller.api_host,
            port=self._config.controller.api_port,
        )

        self._is_running: bool = False
        self._is_wired: bool = False
        self._logger = get_logger()

    async def start(self) -> None:
        """Start all server components."""
        self._logger.system(
            "servers_starting",
            {
                "websocket_url": f"ws://{self._config.controller.websocket_host}:{self._config.controller.websocket_port}",
                "api_url": f"http://{self._config.controller.api_host}:{self._config.controller.api_port}",
            },
        )

        self.wire_components()

        await self._websocket_server.start()
        await self._rest_api.start()
        await self._controller.initialize()

        self._is_running = True
        self._logger.system("servers_started", {})

    async def stop(self) -> None:
        """Stop all server components gracefully."""
        self._logger.system("servers_stopping", {})
        self._is_running = False

        await self._controller.shutdown()
        await self._websocket_server.stop()
        await self._rest_api.stop()

        self._logger.system("servers_stopped", {})

    def is_running(self) -> bool:
        """
        Check if server is running.

        Returns:
            True if server is running.
        """
        return self._is_running

    def get_controller(self) -> RuntimeController:
        return self._controller

    def get_websocket_server(self) -> WebSocketServer:
        return self._websocket_server

    def get_rest_api(self) -> RestAPI:
        return self._rest_api

    def wire_components(self) -> None:
        """Connect controller, WebSocket server and REST routes. Idempotent."""
        if self._is_wired:
            return

        self._controller.register_event_handler(self._handle_domain_event)
        self._controller.set_client_counter(self._websocket_server.get_connected_clients)

        # WebSocket -> Controller (inbound)
        self._setup_websocket_handlers()

        # REST routes -> Controller (inbound)
        self._setup_api_routes()

        self._is_wired = True

    # --- Internal Methods ---

    def _handle_domain_event(self, event: DomainEvent) -> None:
        """Controller -> WebSocket (outbound)."""
        if event.event_type not in (DomainEventType.STATE_CLASSIFIED, DomainEventType.STATE_RECORDED):
            self._logger.system(
                "unknown_domain_event_type",
                {"event_type": event.event_type.value},
                level="WARNING",
            )
            return

        if not self._websocket_server.is_running():
            return

        recipient_id = (event.metadata or {}).get("recipient_id")
        msg = WebSocketMessage(
            type=MessageType.STATE_UPDATE,
            timestamp=event.timestamp,
            payload=json_safe(event.payload),
            target_client_id=recipient_id,
        )

        if recipient_id:
            task = asyncio.create_task(self._websocket_server.send_to_client(recipient_id, msg))
        else:
            task = asyncio.create_task(self._websocket_server.broadcast(msg))
        task.add_done_callback(self._handle_task_result)

    def _handle_task_result(self, task: asyncio.Task) -> None:
        if task.cancelled():
            self._logger.system(
                "background_task_cancelled",
                {"source": "handle_domain_event"},
                level="DEBUG",
            )
            return
        exc = task.exception()
        if exc is not None:
            self._logger.system(
                "background_task_error",
                {"source": "handle_domain_event", "error": str(exc)},
                level="ERROR",
            )

    def _setup_api_routes(self) -> None:
        """Set up REST API routes with controller handlers."""
        self._rest_api.register_route(
            "/status",
            HttpMethod.GET,
            self._controller.get_system_status,
        )

        self._rest_api.register_route(
            "/cognitive-state/classify",
            HttpMethod.POST,
            self._controller.classify_sample,
        )

        self._rest_api.register_route(
            "/cognitive-state/detect",
            HttpMethod.POST,
            self._controller.detect_from_interactions,
        )

        self._rest_api.register_route(
            "/cognitive-states",
            HttpMethod.POST,
            self._controller.record_state,
        )

        self._rest_api.register_route(
            "/cognitive-states",
            HttpMethod.GET,
            self._controller.list_states,
        )

        self._rest_api.register_route(
            "/cognitive-states/statistics",
            HttpMethod.GET,
            self._controller.get_state_statistics,
        )

    def _setup_websocket_handlers(self) -> None:
        """
        Set up WebSocket message handlers.

        State updates reach the client through the STATE_CLASSIFIED domain
        event, so handlers only feed the controller.
        """
        async def on_interaction(message: WebSocketMessage, client_id: str) -> None:
            self._controller.handle_interaction(client_id, message.payload)

        async def on_telemetry_sample(message: WebSocketMessage, client_id: str) -> None:
            self._controller.handle_sample(client_id, message.payload)

        async def on_ping(message: WebSocketMessage, client_id: str) -> None:
            pong_msg = WebSocketMessage(
                type=MessageType.PONG,
                timestamp=datetime.now(timezone.utc).timestamp(),
                payload={},
                message_id=message.message_id,
            )
            await self._websocket_server.send_to_client(client_id, pong_msg)

        self._websocket_server.register_handler(MessageType.INTERACTION, on_interaction)
        self._websocket_server.register_handler(MessageType.TELEMETRY_SAMPLE, on_telemetry_sample)
        self._websocket_server.register_handler(MessageType.PING, on_ping)
        self._websocket_server.register_disconnect_handler(self._controller.release_client)


def create_server(config_path: Optional[str] = None) -> Server:
    """
    Factory function to create a server instance.

    Args:
        config_path: Optional path to configuration file.

    Returns:
        Configured server instance.
    """
    config = SystemConfig.from_file(config_path) if config_path else SystemConfig()
    return Server(config)
