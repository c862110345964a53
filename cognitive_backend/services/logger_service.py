"""
Logger Service

Provides structured logging with two main categories:
1. Classification Logging - every state evaluation and what triggered it
2. System Logging - Technical/debugging information

Supports configurable log levels and thresholds per category.
"""
import csv
from typing import Dict, Any, List, Optional
from enum import Enum
from dataclasses import dataclass
from datetime import datetime, timezone
import json
from pathlib import Path
from cognitive_backend.api.serialization import json_safe


CATEGORIES = ("classification", "system")


class LogLevel(Enum):
    """Log level hierarchy (ascending severity)."""
    ERROR = 4
    WARNING = 3
    INFO = 2
    DEBUG = 1


@dataclass
class LogEntry:
    """A single log entry."""
    timestamp: float
    level: str
    event_type: str
    data: Dict[str, Any]
    category: str  # "classification" or "system"


class LoggerService:
    """
    Centralized logging service for classification and system logs.
    """

    def __init__(
        self,
        classification_level: str = "INFO",
        system_level: str = "INFO",
        max_entries: int = 10000,
        echo: bool = True,
    ):
        """
        Initialize the logger service.

        Args:
            classification_level: Threshold for classification logs (DEBUG, INFO, WARNING, ERROR).
            system_level: Threshold for system logs (DEBUG, INFO, WARNING, ERROR).
            max_entries: Maximum entries per category before rotating.
            echo: Print system entries to the console.
        """
        self._logs: Dict[str, List[LogEntry]] = {c: [] for c in CATEGORIES}
        self._levels: Dict[str, LogLevel] = {
            "classification": LogLevel[classification_level.upper()],
            "system": LogLevel[system_level.upper()],
        }
        self.max_entries = max_entries
        self.echo = echo

        # Console dedup state (system prints only)
        self._last_print_signature: Optional[str] = None
        self._last_print_line: Optional[str] = None
        self._last_print_repeat_count: int = 0

    def classification(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        level: str = "INFO",
    ) -> None:
        """
        Log a classification event.

        Args:
            event_type: Type of event (e.g., "state_classified", "state_recorded").
            data: Event data as dictionary.
            level: Log level (DEBUG, INFO, WARNING, ERROR).
        """
        self._append("classification", event_type, data, level)

    def system(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        level: str = "INFO",
    ) -> None:
        """
        Log a system event.

        Args:
            event_type: Type of event (e.g., "server_started", "connection_error").
            data: Event data as dictionary.
            level: Log level (DEBUG, INFO, WARNING, ERROR).
        """
        entry = self._append("system", event_type, data, level)
        if entry is not None and self.echo:
            self._print_log(entry)

    def set_level(self, category: str, level: str) -> None:
        """
        Set log level threshold for a category.

        Raises:
            ValueError: For an unknown category.
        """
        category = self._check_category(category)
        self._levels[category] = LogLevel[level.upper()]

    def get_logs(
        self,
        category: str,
        event_type: Optional[str] = None,
        level: Optional[str] = None,
    ) -> List[LogEntry]:
        """
        Retrieve logs of one category with optional filtering.

        Args:
            category: "classification" or "system".
            event_type: Filter by event type.
            level: Filter by log level.
        """
        logs = self._logs[self._check_category(category)]

        if event_type:
            logs = [l for l in logs if l.event_type == event_type]

        if level:
            logs = [l for l in logs if l.level == level.upper()]

        return list(logs)

    def clear_logs(self, category: str = "all") -> None:
        """
        Clear logs.

        Args:
            category: "classification", "system", or "all".
        """
        for name in CATEGORIES:
            if category.lower() in (name, "all"):
                self._logs[name] = []

    def export_logs(self, category: str, filepath: str) -> bool:
        """
        Export one category to a CSV file.

        Args:
            category: "classification" or "system".
            filepath: Path to export file; ".csv" is appended if missing.

        Returns:
            True if successful.
        """
        category = self._check_category(category)
        try:
            path = Path(filepath if filepath.endswith(".csv") else f"{filepath}.csv")
            path.parent.mkdir(parents=True, exist_ok=True)
            entries = list(self._logs[category])

            with open(path, "w", newline="", encoding="utf-8") as f:
                writer = csv.writer(f)
                writer.writerow(["timestamp", "level", "event_type", "data"])
                for entry in entries:
                    dt = datetime.fromtimestamp(entry.timestamp, tz=timezone.utc)
                    writer.writerow([
                        dt.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3],
                        entry.level,
                        entry.event_type,
                        json.dumps(json_safe(entry.data)),
                    ])
        except OSError as e:
            self.system(
                "export_logs_error",
                {"category": category, "error": str(e)},
                level="ERROR",
            )
            return False

        self.system(
            "export_logs",
            {"category": category, "filepath": path, "count": len(entries)},
        )
        return True

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get logging statistics.

        Returns:
            Dictionary with log counts and levels per category.
        """
        stats: Dict[str, Any] = {}
        for name in CATEGORIES:
            by_level: Dict[str, int] = {}
            for entry in self._logs[name]:
                by_level[entry.level] = by_level.get(entry.level, 0) + 1
            stats[name] = {
                "total": len(self._logs[name]),
                "by_level": by_level,
                "level_threshold": self._levels[name].name,
            }
        return stats

    # --- Internal Methods ---

    def _check_category(self, category: str) -> str:
        name = category.lower()
        if name not in CATEGORIES:
            raise ValueError(f"Unknown category: {category}")
        return name

    def _should_log(self, level: str, category: str) -> bool:
        try:
            level_obj = LogLevel[level.upper()]
        except KeyError:
            return True  # Log unknown levels
        return level_obj.value >= self._levels[category].value

    def _append(
        self,
        category: str,
        event_type: str,
        data: Optional[Dict[str, Any]],
        level: str,
    ) -> Optional[LogEntry]:
        if not self._should_log(level, category):
            return None

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).timestamp(),
            level=level.upper(),
            event_type=event_type,
            data=data or {},
            category=category,
        )
        logs = self._logs[category]
        logs.append(entry)

        # Rotate if exceeding max entries
        if len(logs) > self.max_entries:
            self._logs[category] = logs[-self.max_entries:]
        return entry

    def _print_log(self, entry: LogEntry) -> None:
        timestamp = datetime.fromtimestamp(entry.timestamp, tz=timezone.utc).strftime("%H:%M:%S")

        colors = {
            "DEBUG": "\033[36m",
            "INFO": "\033[32m",
            "WARNING": "\033[33m",
            "ERROR": "\033[31m",
        }
        reset = "\033[0m"
        color = colors.get(entry.level, "")

        data_obj = json_safe(entry.data) if entry.data else None
        data_str = json.dumps(data_obj) if data_obj else ""
        base_line = f"{color}[{timestamp}] [{entry.level}] {entry.event_type}{reset} {data_str}"

        signature = json.dumps(
            {"level": entry.level, "event_type": entry.event_type, "data": data_obj},
            sort_keys=True,
        )

        # Same as previous -> rewrite the line with a repeat counter
        if signature == self._last_print_signature:
            self._last_print_repeat_count += 1
            updated = f"{base_line} ×{self._last_print_repeat_count}"
            padded = updated.ljust(len(self._last_print_line or ""))
            print(f"\r{padded}", end="", flush=True)
            self._last_print_line = padded
            return

        if self._last_print_signature is not None:
            print()
        print(base_line, end="", flush=True)

        self._last_print_signature = signature
        self._last_print_line = base_line
        self._last_print_repeat_count = 1


# Global logger instance
_logger: Optional[LoggerService] = None


def get_logger() -> LoggerService:
    """
    Get the global logger instance.

    Returns:
        Global LoggerService instance.
    """
    global _logger
    if _logger is None:
        _logger = LoggerService()
    return _logger


def initialize_logger(
    classification_level: str = "INFO",
    system_level: str = "INFO",
    echo: bool = True,
) -> LoggerService:
    """
    Initialize the global logger service.

    Args:
        classification_level: Log level for classification logs.
        system_level: Log level for system logs.
        echo: Print system entries to the console.

    Returns:
        Initialized LoggerService instance.
    """
    global _logger
    _logger = LoggerService(
        classification_level=classification_level,
        system_level=system_level,
        echo=echo,
    )
    return _logger
