"""
REST API Server

Provides HTTP endpoints for classification, state history and status.

Design:
- Server.py decides *which* routes exist (wiring) by calling `register_route(...)`.
- RestAPI is a thin transport layer that binds registered routes into aiohttp.
- /health is kept as a built-in liveness endpoint.
- MalformedRequestError -> 400, any other handler error -> 500.
"""
from __future__ import annotations

from typing import Optional, Dict, Any, Callable, Awaitable
from enum import Enum
import json
import inspect

from aiohttp import web

from cognitive_backend.api.serialization import json_safe
from cognitive_backend.services.logger_service import get_logger
from cognitive_backend.types import MalformedRequestError


class HttpMethod(Enum):
    """HTTP methods."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


# Route handler takes nothing or a request envelope dict and returns a payload
RouteHandler = Callable[..., Awaitable[Any]] | Callable[..., Any]


class RestAPI:
    """
    REST API server for classification and status endpoints.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8080,
    ):
        self._host = host
        self._port = port
        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._routes: Dict[str, Dict[HttpMethod, RouteHandler]] = {}
        self._is_running: bool = False
        self._logger = get_logger()

    def build_app(self) -> web.Application:
        """Create the aiohttp application with all registered routes bound."""
        self._app = web.Application(middlewares=[self._logging_middleware])
        self._setup_app()
        return self._app

    async def start(self) -> None:
        """Start the REST API server."""
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()

        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        self._is_running = True

    async def stop(self) -> None:
        """Stop the REST API server."""
        self._is_running = False
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
        self._app = None

    def is_running(self) -> bool:
        """Check if server is running."""
        return self._is_running

    def register_route(
        self,
        path: str,
        method: HttpMethod,
        handler: RouteHandler,
    ) -> None:
        """
        Register a route handler.

        Args:
            path: URL path (e.g., "/status")
            method: HttpMethod enum (e.g., HttpMethod.GET)
            handler: function taking no arguments or the request envelope dict

        Raises:
            ValueError: If the method is already registered for the path.
        """
        if not path.startswith("/"):
            path = "/" + path

        if path not in self._routes:
            self._routes[path] = {}

        if method in self._routes[path]:
            raise ValueError(f"Route already registered: {method.value} {path}")

        self._routes[path][method] = handler

    # --- Internal Methods ---

    def _setup_app(self) -> None:
        """Bind built-in routes and all registered routes into aiohttp."""
        if self._app is None:
            raise RuntimeError("REST API app is not initialized")

        self._app.router.add_get("/health", self._health_handler)

        for path, methods in self._routes.items():
            for method, handler in methods.items():
                self._app.router.add_route(method.value, path, self._make_aiohttp_handler(handler))

    @web.middleware
    async def _logging_middleware(self, request: web.Request, handler) -> web.StreamResponse:
        response = await handler(request)
        self._logger.system(
            "http_request",
            {"method": request.method, "path": request.path, "status": response.status},
            level="DEBUG",
        )
        return response

    def _make_aiohttp_handler(self, handler: RouteHandler):
        takes_request = len(inspect.signature(handler).parameters) > 0

        async def _wrapped(request: web.Request) -> web.Response:
            try:
                if takes_request:
                    call_result = handler(await self._request_to_dict(request))
                else:
                    call_result = handler()

                if inspect.isawaitable(call_result):
                    call_result = await call_result

                call_result = json_safe(call_result)

                if call_result is None:
                    call_result = {"status": "ok"}

                return self._create_response(call_result, status=200)

            except web.HTTPException:
                raise

            except MalformedRequestError as e:
                self._logger.system(
                    "http_bad_request",
                    {"path": request.path, "error": str(e)},
                    level="WARNING",
                )
                return self._create_error_response(str(e), status=400)

            except Exception as e:
                self._logger.system(
                    "http_handler_error",
                    {"path": request.path, "error": str(e), "error_type": type(e).__name__},
                    level="ERROR",
                )
                return self._create_error_response(f"Internal server error: {e}", status=500)

        return _wrapped

    async def _request_to_dict(self, request: web.Request) -> Dict[str, Any]:
        """
        Convert aiohttp Request into a simple dict envelope.
        Includes:
          - method, path
          - query params
          - headers
          - json body (if it parses), otherwise raw text (if any)
        """
        body_json: Any = None
        body_text: Optional[str] = None

        if request.can_read_body:
            try:
                body_text = await request.text()
            except (UnicodeDecodeError, LookupError) as e:
                raise MalformedRequestError("Request body must be UTF-8 encoded JSON") from e
            if body_text.strip():
                try:
                    body_json = json.loads(body_text)
                except ValueError:
                    pass  # left to the handler as text
            else:
                body_text = None

        return {
            "method": request.method,
            "path": request.path,
            "query": dict(request.rel_url.query),
            "headers": dict(request.headers),
            "json": body_json,
            "text": body_text,
        }

    def _create_response(
        self,
        data: Dict[str, Any],
        status: int = 200,
    ) -> web.Response:
        """Create an HTTP JSON response."""
        try:
            json.dumps(data)
        except TypeError:
            data = {"error": "Response not JSON serializable"}
            status = 500

        return web.json_response(data, status=status)

    def _create_error_response(
        self,
        message: str,
        status: int = 400,
    ) -> web.Response:
        """Create an error response."""
        return self._create_response({"error": message}, status=status)

    # --- Built-in Handlers ---

    async def _health_handler(self, request: web.Request) -> web.Response:
        """Health check endpoint handler."""
        return web.json_response({"status": "ok"})
