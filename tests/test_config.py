from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
import yaml

from cognitive_backend.types import (
    ClassifierConfig,
    ClassifierMode,
    ControllerConfig,
    FeatureSnapshotThresholds,
    HistoryConfig,
    InteractionLogThresholds,
    SystemConfig,
)

EXAMPLE_CONFIG = Path(__file__).parent.parent / "config.example.yaml"


def test_defaults_match_documented_rule_table():
    config = SystemConfig()
    feature = config.classifier.feature_snapshot
    assert (feature.max_tab_switches, feature.distracted_confidence) == (5, 0.8)
    assert (feature.fatigued_typing_speed, feature.fatigued_confidence) == (20.0, 0.7)
    assert (feature.focused_typing_speed, feature.focused_confidence) == (60.0, 0.9)
    assert feature.default_confidence == 0.6
    assert config.classifier.interaction_log.recent_event_limit == 10
    assert config.classifier.default_mode == ClassifierMode.FEATURE_SNAPSHOT


def test_example_file_matches_defaults():
    assert SystemConfig.from_file(str(EXAMPLE_CONFIG)) == SystemConfig()


def test_load_partial_file_keeps_defaults():
    with TemporaryDirectory() as tmp:
        path = Path(tmp) / "config.yaml"
        path.write_text(
            "classifier:\n"
            "  default_mode: interaction_log\n"
            "  feature_snapshot:\n"
            "    max_tab_switches: 3\n"
            "    focused_typing_speed: 80\n"
            "  unknown_option: true\n"
            "controller:\n"
            "  api_port: 9090\n",
            encoding="utf-8",
        )
        config = SystemConfig.from_file(str(path))

    assert config.classifier.default_mode == ClassifierMode.INTERACTION_LOG
    assert config.classifier.feature_snapshot.max_tab_switches == 3
    assert config.classifier.feature_snapshot.focused_typing_speed == 80.0
    assert isinstance(config.classifier.feature_snapshot.focused_typing_speed, float)
    assert config.classifier.feature_snapshot.fatigued_typing_speed == 20.0
    assert config.controller.api_port == 9090
    assert config.controller.websocket_port == 8765


def test_save_and_reload():
    config = SystemConfig()
    config.classifier.interaction_log.stressed_min_clicks = 12
    config.history.max_records = 100

    with TemporaryDirectory() as tmp:
        path = str(Path(tmp) / "saved.yaml")
        config.to_file(path)
        assert SystemConfig.from_file(path) == config


def test_empty_file_gives_defaults():
    with TemporaryDirectory() as tmp:
        path = Path(tmp) / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert SystemConfig.from_file(str(path)) == SystemConfig()


def test_non_mapping_document_is_rejected():
    with TemporaryDirectory() as tmp:
        path = Path(tmp) / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            SystemConfig.from_file(str(path))


def test_invalid_confidence_is_rejected():
    with pytest.raises(ValueError):
        FeatureSnapshotThresholds(focused_confidence=1.2)
    with pytest.raises(ValueError):
        InteractionLogThresholds(neutral_confidence=-0.1)


def test_invalid_confidence_in_file_is_rejected():
    with TemporaryDirectory() as tmp:
        path = Path(tmp) / "bad.yaml"
        path.write_text(
            "classifier:\n  interaction_log:\n    idle_confidence: 2\n",
            encoding="utf-8",
        )
        with pytest.raises(ValueError):
            SystemConfig.from_file(str(path))


def test_unknown_mode_is_rejected():
    with TemporaryDirectory() as tmp:
        path = Path(tmp) / "bad_mode.yaml"
        path.write_text("classifier:\n  default_mode: psychic\n", encoding="utf-8")
        with pytest.raises(ValueError):
            SystemConfig.from_file(str(path))


@pytest.mark.parametrize(
    "kwargs",
    [{"tracker_max_events": 0}, {"tracker_max_events": -5}, {"tracker_window_seconds": 0}],
)
def test_invalid_tracker_limits_are_rejected(kwargs):
    with pytest.raises(ValueError):
        ClassifierConfig(**kwargs)


@pytest.mark.parametrize("kwargs", [{"max_records": 0}, {"max_records": -1}, {"default_query_limit": 0}])
def test_invalid_history_limits_are_rejected(kwargs):
    with pytest.raises(ValueError):
        HistoryConfig(**kwargs)


def test_log_levels_are_validated():
    assert ControllerConfig(system_log_level="debug").system_log_level == "debug"
    with pytest.raises(ValueError):
        ControllerConfig(system_log_level="LOUD")
    with pytest.raises(ValueError):
        ControllerConfig(classification_log_level=10)


def test_invalid_yaml_raises_yaml_error():
    with TemporaryDirectory() as tmp:
        path = Path(tmp) / "broken.yaml"
        path.write_text("classifier: [unclosed\n", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            SystemConfig.from_file(str(path))
