#!/usr/bin/env python3
"""
Cognitive State Backend - Main Entry Point

Usage:
    python -m cognitive_backend.main [--config CONFIG_PATH] [--host HOST] [--api-port PORT]

Or after installing the package:
    cognitive-backend [--config CONFIG_PATH] [--host HOST] [--api-port PORT]
"""
import argparse
import asyncio
import logging
import signal
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List

import yaml

from cognitive_backend.types import SystemConfig, ClassifierMode
from cognitive_backend.types.config import LOG_LEVELS
from cognitive_backend.services.logger_service import get_logger, initialize_logger


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Cognitive State Backend Server"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file (YAML)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind servers to",
    )
    parser.add_argument(
        "--ws-port",
        type=int,
        default=None,
        help="WebSocket server port",
    )
    parser.add_argument(
        "--api-port",
        type=int,
        default=None,
        help="REST API server port",
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=[m.value for m in ClassifierMode],
        default=None,
        help="Default classification strategy",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--classification-log-level",
        type=str,
        choices=LOG_LEVELS,
        default=None,
        help="Classification log level",
    )
    parser.add_argument(
        "--system-log-level",
        type=str,
        choices=LOG_LEVELS,
        default=None,
        help="System log level",
    )
    return parser.parse_args(argv)


def load_config(config_path: Optional[str]) -> SystemConfig:
    """
    Load configuration from file or use defaults.

    Args:
        config_path: Path to configuration file.

    Returns:
        System configuration.
    """
    logger = get_logger()

    if config_path:
        logger.system("config_loading", {"path": config_path})
        return SystemConfig.from_file(config_path)

    logger.system("config_using_defaults", {})
    return SystemConfig()


def apply_overrides(config: SystemConfig, args: argparse.Namespace) -> SystemConfig:
    """Command line arguments win over the configuration file."""
    if args.host:
        config.controller.websocket_host = args.host
        config.controller.api_host = args.host
    if args.ws_port is not None:
        config.controller.websocket_port = args.ws_port
    if args.api_port is not None:
        config.controller.api_port = args.api_port
    if args.mode:
        config.classifier.default_mode = ClassifierMode(args.mode)
    if args.classification_log_level:
        config.controller.classification_log_level = args.classification_log_level
    if args.system_log_level:
        config.controller.system_log_level = args.system_log_level
    return config


def setup_logging(debug: bool = False) -> None:
    """
    Set up logging configuration for third-party libraries.

    Args:
        debug: Enable debug level logging.
    """
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Suppress verbose third-party library logs
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("websockets.server").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def export_logs(config: SystemConfig) -> None:
    """Write both log categories to CSV if an export directory is configured."""
    export_dir = config.controller.log_export_dir
    if not export_dir:
        return

    logger = get_logger()
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    for category in ("classification", "system"):
        logger.export_logs(category, str(Path(export_dir) / f"{category}_{stamp}.csv"))


async def run_server(config: SystemConfig) -> None:
    """
    Run the backend server until SIGINT/SIGTERM.

    Args:
        config: System configuration.
    """
    from cognitive_backend.api.server import Server

    server = Server(config)
    logger = get_logger()

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def signal_handler():
        logger.system("shutdown_signal_received", {})
        shutdown_event.set()

    # add_signal_handler is not supported on Windows
    if sys.platform != "win32":
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, signal_handler)

    try:
        await server.start()
        await shutdown_event.wait()
    except asyncio.CancelledError:
        logger.system("server_shutdown_requested", {})
    finally:
        await server.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)
    logger = get_logger()

    try:
        config = apply_overrides(load_config(args.config), args)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        logger.system(
            "config_error",
            {"path": args.config, "error": str(e), "error_type": type(e).__name__},
            level="ERROR",
        )
        return 1

    logger = initialize_logger(
        classification_level=config.controller.classification_log_level,
        system_level="DEBUG" if args.debug else config.controller.system_log_level,
    )

    logger.system(
        "backend_startup",
        {
            "websocket_url": f"ws://{config.controller.websocket_host}:{config.controller.websocket_port}",
            "api_url": f"http://{config.controller.api_host}:{config.controller.api_port}",
            "mode": config.classifier.default_mode.value,
            "debug": args.debug,
        },
    )

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        logger.system("keyboard_interrupt", {})
    except Exception as e:
        logger.system(
            "backend_error",
            {"error": str(e), "error_type": type(e).__name__},
            level="ERROR",
        )
        return 1
    finally:
        export_logs(config)

    return 0


if __name__ == "__main__":
    sys.exit(main())
