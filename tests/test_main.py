from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from cognitive_backend.main import apply_overrides, main, parse_args
from cognitive_backend.types import ClassifierMode, SystemConfig


def test_overrides_apply_only_when_given():
    config = apply_overrides(SystemConfig(), parse_args([]))
    assert config == SystemConfig()

    args = parse_args(["--host", "0.0.0.0", "--api-port", "9000", "--mode", "interaction_log"])
    config = apply_overrides(SystemConfig(), args)
    assert config.controller.api_host == "0.0.0.0"
    assert config.controller.websocket_host == "0.0.0.0"
    assert config.controller.api_port == 9000
    assert config.controller.websocket_port == 8765
    assert config.classifier.default_mode == ClassifierMode.INTERACTION_LOG


def test_invalid_config_exits_with_error(quiet_logger):
    with TemporaryDirectory() as tmp:
        path = Path(tmp) / "bad.yaml"
        path.write_text("classifier:\n  feature_snapshot:\n    focused_confidence: 3\n", encoding="utf-8")
        assert main(["--config", str(path)]) == 1

    errors = quiet_logger.get_logs("system", event_type="config_error")
    assert errors and errors[0].level == "ERROR"


def test_missing_config_exits_with_error(quiet_logger):
    assert main(["--config", "/nonexistent/config.yaml"]) == 1


@pytest.mark.parametrize(
    "text",
    [
        "classifier: [unclosed\n",
        "controller:\n  system_log_level: LOUD\n",
        "history:\n  max_records: 0\n",
    ],
)
def test_unusable_config_file_exits_with_error(quiet_logger, text):
    with TemporaryDirectory() as tmp:
        path = Path(tmp) / "config.yaml"
        path.write_text(text, encoding="utf-8")
        assert main(["--config", str(path)]) == 1

    errors = quiet_logger.get_logs("system", event_type="config_error")
    assert errors and errors[0].level == "ERROR"
