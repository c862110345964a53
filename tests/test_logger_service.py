import csv
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from cognitive_backend.services.logger_service import (
    LoggerService,
    get_logger,
    initialize_logger,
)


def test_entries_below_threshold_are_dropped():
    logger = LoggerService(classification_level="WARNING", system_level="DEBUG", echo=False)
    logger.classification("state_classified", {"state": "focused"})
    logger.classification("classifier_warning", {}, level="WARNING")
    logger.system("debug_event", {}, level="DEBUG")

    assert [e.event_type for e in logger.get_logs("classification")] == ["classifier_warning"]
    assert len(logger.get_logs("system")) == 1


def test_filtering_by_event_type_and_level():
    logger = LoggerService(classification_level="DEBUG", echo=False)
    logger.classification("a", level="DEBUG")
    logger.classification("b", level="INFO")
    logger.classification("b", level="ERROR")

    assert len(logger.get_logs("classification", event_type="b")) == 2
    assert len(logger.get_logs("classification", level="error")) == 1


def test_rotation_keeps_newest_entries():
    logger = LoggerService(max_entries=3, echo=False)
    for i in range(5):
        logger.classification(f"event_{i}")
    assert [e.event_type for e in logger.get_logs("classification")] == ["event_2", "event_3", "event_4"]


def test_set_level_and_unknown_category():
    logger = LoggerService(echo=False)
    logger.set_level("system", "ERROR")
    logger.system("ignored")
    assert logger.get_logs("system") == []
    with pytest.raises(ValueError):
        logger.set_level("experiment", "INFO")


def test_export_writes_csv():
    logger = LoggerService(echo=False)
    logger.classification("state_classified", {"state": "idle", "confidence": 0.8})

    with TemporaryDirectory() as tmp:
        target = Path(tmp) / "nested" / "classification"
        assert logger.export_logs("classification", str(target)) is True

        with open(f"{target}.csv", newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f))

    assert rows[0] == ["timestamp", "level", "event_type", "data"]
    assert rows[1][2] == "state_classified"
    assert '"state": "idle"' in rows[1][3]


def test_statistics_and_clear():
    logger = LoggerService(echo=False)
    logger.classification("x")
    logger.system("y", level="WARNING")

    stats = logger.get_statistics()
    assert stats["classification"]["total"] == 1
    assert stats["system"]["by_level"] == {"WARNING": 1}

    logger.clear_logs("all")
    assert logger.get_statistics()["system"]["total"] == 0


def test_system_entries_echo_to_console(capsys):
    logger = LoggerService(echo=True)
    logger.system("server_started", {"port": 8080})
    logger.system("server_started", {"port": 8080})
    out = capsys.readouterr().out
    assert "server_started" in out
    assert "×2" in out


def test_initialize_replaces_global_logger():
    logger = initialize_logger(system_level="ERROR", echo=False)
    assert get_logger() is logger
