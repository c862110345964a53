# Cognitive state backend package
# Import Server lazily to avoid circular imports

__version__ = "0.1.0"


def get_server():
    """Get the Server class (lazy import)."""
    from cognitive_backend.api.server import Server
    return Server


def create_server(config_path=None):
    """Factory function to create a server instance."""
    from cognitive_backend.api.server import create_server as _create_server
    return _create_server(config_path)


def classify_cognitive_state(*args, **kwargs):
    """Classify an observation; see layers.state_classifier.classify_cognitive_state."""
    from cognitive_backend.layers.state_classifier import classify_cognitive_state as _classify
    return _classify(*args, **kwargs)


__all__ = [
    "get_server",
    "create_server",
    "classify_cognitive_state",
]
