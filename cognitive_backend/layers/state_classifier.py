"""
State Classifier

Input: InteractionSample (feature snapshot) or a list of InteractionEvents
Output: CognitiveStateResult (state label + fixed confidence)

Both strategies are ordered rule tables evaluated top to bottom; the first
satisfied rule wins and the last rule always matches. Evaluation is pure:
the output depends only on the observation and the thresholds, apart from
the result timestamp.

Strategies:
- feature_snapshot: tab switches, then typing speed
    distracted / fatigued / focused / receptive
- interaction_log: mean inter-event gap and scroll/click counts over the
    most recent events
    idle / focused / distracted / stressed / neutral
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Sequence, Union, Dict, Any, FrozenSet

from cognitive_backend.types import (
    CognitiveState,
    ClassifierMode,
    CognitiveStateResult,
    InteractionSample,
    InteractionEvent,
    ClassifierConfig,
    FeatureSnapshotThresholds,
    InteractionLogThresholds,
)
from cognitive_backend.types.interaction import as_number

Observation = Union[InteractionSample, Sequence[InteractionEvent]]


@dataclass
class RuleMatch:
    """The rule that fired for an observation."""
    state: CognitiveState
    confidence: float
    factors: List[str] = field(default_factory=list)


class ClassificationStrategy(ABC):
    """
    A named, ordered rule table.
    """

    mode: ClassifierMode
    labels: FrozenSet[CognitiveState]

    @abstractmethod
    def evaluate(self, observation: Observation) -> RuleMatch:
        """
        Apply the rules to an observation.

        Must return a match for every input; never raises.
        """


class FeatureSnapshotStrategy(ClassificationStrategy):
    """
    Classifies aggregated telemetry counters.

    Tab switches are checked before typing speed, so a distracted sample
    stays distracted whatever its typing speed.
    """

    mode = ClassifierMode.FEATURE_SNAPSHOT
    labels = frozenset({
        CognitiveState.DISTRACTED,
        CognitiveState.FATIGUED,
        CognitiveState.FOCUSED,
        CognitiveState.RECEPTIVE,
    })

    def __init__(self, thresholds: Optional[FeatureSnapshotThresholds] = None):
        self._thresholds = thresholds or FeatureSnapshotThresholds()

    @property
    def thresholds(self) -> FeatureSnapshotThresholds:
        return self._thresholds

    def evaluate(self, observation: Observation) -> RuleMatch:
        t = self._thresholds
        sample = observation if isinstance(observation, InteractionSample) else InteractionSample()

        tab_switches = as_number(sample.tab_switches)
        typing_speed = as_number(sample.typing_speed)

        if tab_switches is not None and tab_switches > t.max_tab_switches:
            return RuleMatch(
                CognitiveState.DISTRACTED,
                t.distracted_confidence,
                [f"tab switches above {t.max_tab_switches}"],
            )

        if typing_speed is not None and typing_speed < t.fatigued_typing_speed:
            return RuleMatch(
                CognitiveState.FATIGUED,
                t.fatigued_confidence,
                [f"typing speed below {t.fatigued_typing_speed:g}"],
            )

        if typing_speed is not None and typing_speed > t.focused_typing_speed:
            return RuleMatch(
                CognitiveState.FOCUSED,
                t.focused_confidence,
                [f"typing speed above {t.focused_typing_speed:g}"],
            )

        return RuleMatch(
            CognitiveState.RECEPTIVE,
            t.default_confidence,
            ["no distraction or fatigue signals"],
        )


class InteractionLogStrategy(ClassificationStrategy):
    """
    Classifies a log of timestamped interaction events.
    """

    mode = ClassifierMode.INTERACTION_LOG
    labels = frozenset({
        CognitiveState.IDLE,
        CognitiveState.FOCUSED,
        CognitiveState.DISTRACTED,
        CognitiveState.STRESSED,
        CognitiveState.NEUTRAL,
    })

    def __init__(self, thresholds: Optional[InteractionLogThresholds] = None):
        self._thresholds = thresholds or InteractionLogThresholds()

    @property
    def thresholds(self) -> InteractionLogThresholds:
        return self._thresholds

    def evaluate(self, observation: Observation) -> RuleMatch:
        t = self._thresholds
        events = [] if isinstance(observation, InteractionSample) else list(observation or [])
        recent = events[-t.recent_event_limit:]

        if not recent:
            return RuleMatch(CognitiveState.IDLE, t.idle_confidence, ["no recent interactions"])

        stats = summarize_events(recent)
        avg_gap = stats["avg_gap_ms"]
        scrolls = stats["scroll_count"]
        clicks = stats["click_count"]

        if avg_gap > t.focused_min_gap_ms and scrolls < t.focused_max_scrolls:
            return RuleMatch(
                CognitiveState.FOCUSED,
                t.focused_confidence,
                ["unhurried interaction pace", "minimal scrolling"],
            )

        if scrolls > t.distracted_min_scrolls and avg_gap < t.distracted_max_gap_ms:
            return RuleMatch(
                CognitiveState.DISTRACTED,
                t.distracted_confidence,
                ["excessive scrolling", "rapid interaction pace"],
            )

        if clicks > t.stressed_min_clicks and avg_gap < t.stressed_max_gap_ms:
            return RuleMatch(
                CognitiveState.STRESSED,
                t.stressed_confidence,
                ["rapid clicking pattern"],
            )

        return RuleMatch(CognitiveState.NEUTRAL, t.neutral_confidence, ["normal interaction patterns"])


def average_gap_ms(events: Sequence[InteractionEvent]) -> float:
    """
    Mean time between consecutive timed events, in milliseconds.

    Events are ordered by timestamp first. Untimed events are skipped.
    Returns 0.0 when fewer than two events carry a timestamp.
    """
    times = sorted(
        ts for ts in (as_number(e.timestamp_ms) for e in events) if ts is not None
    )
    if len(times) < 2:
        return 0.0
    return (times[-1] - times[0]) / (len(times) - 1)


def summarize_events(events: Sequence[InteractionEvent]) -> Dict[str, Any]:
    """Counts and pacing of an event window."""
    types = [e.type.lower() if isinstance(e.type, str) else "" for e in events]
    return {
        "event_count": len(types),
        "scroll_count": types.count("scroll"),
        "click_count": types.count("click"),
        "avg_gap_ms": average_gap_ms(events),
    }


class StateClassifier:
    """
    Single entry point over the configured strategies.
    """

    def __init__(self, config: Optional[ClassifierConfig] = None):
        """
        Initialize the classifier.

        Args:
            config: Thresholds and default mode.
        """
        self._config = config or ClassifierConfig()
        self._strategies: Dict[ClassifierMode, ClassificationStrategy] = {}
        self.configure(self._config)

    def configure(self, config: ClassifierConfig) -> None:
        """Replace thresholds and default mode."""
        self._config = config
        self._strategies = {
            ClassifierMode.FEATURE_SNAPSHOT: FeatureSnapshotStrategy(config.feature_snapshot),
            ClassifierMode.INTERACTION_LOG: InteractionLogStrategy(config.interaction_log),
        }

    @property
    def default_mode(self) -> ClassifierMode:
        return self._config.default_mode

    def get_strategy(self, mode: ClassifierMode) -> ClassificationStrategy:
        return self._strategies[mode]

    def classify(
        self,
        observation: Observation,
        mode: Optional[ClassifierMode] = None,
        now: Optional[datetime] = None,
    ) -> CognitiveStateResult:
        """
        Classify an observation.

        Args:
            observation: A sample or an event log, matching the mode.
            mode: Strategy to apply; defaults to the configured mode.
            now: Evaluation instant; defaults to the current UTC time.

        Returns:
            The classification result, stamped with the evaluation time.
        """
        mode = mode or self._config.default_mode
        strategy = self._strategies[mode]
        match = strategy.evaluate(observation)

        return CognitiveStateResult(
            state=match.state,
            confidence=match.confidence,
            timestamp=now or datetime.now(timezone.utc),
            mode=mode,
            factors=match.factors,
        )

    def classify_sample(self, sample: InteractionSample, now: Optional[datetime] = None) -> CognitiveStateResult:
        return self.classify(sample, ClassifierMode.FEATURE_SNAPSHOT, now)

    def classify_events(
        self, events: Sequence[InteractionEvent], now: Optional[datetime] = None
    ) -> CognitiveStateResult:
        return self.classify(events, ClassifierMode.INTERACTION_LOG, now)


def classify_cognitive_state(
    observation: Observation,
    mode: ClassifierMode = ClassifierMode.FEATURE_SNAPSHOT,
    config: Optional[ClassifierConfig] = None,
    now: Optional[datetime] = None,
) -> CognitiveStateResult:
    """
    Classify an observation with the given (or default) rule tables.

    Args:
        observation: InteractionSample for feature_snapshot mode, a list of
            InteractionEvents for interaction_log mode.
        mode: Strategy to apply.
        config: Classifier configuration; defaults are used when omitted.
        now: Evaluation instant for the result timestamp.

    Returns:
        CognitiveStateResult for the first matching rule.
    """
    return StateClassifier(config).classify(observation, mode, now)
