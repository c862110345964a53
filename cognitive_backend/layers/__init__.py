# Backend layers
from .state_classifier import (
    StateClassifier,
    ClassificationStrategy,
    FeatureSnapshotStrategy,
    InteractionLogStrategy,
    classify_cognitive_state,
)
from .interaction_tracker import InteractionTracker
from .runtime_controller import RuntimeController

__all__ = [
    "StateClassifier",
    "ClassificationStrategy",
    "FeatureSnapshotStrategy",
    "InteractionLogStrategy",
    "classify_cognitive_state",
    "InteractionTracker",
    "RuntimeController",
]
