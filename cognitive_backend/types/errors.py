"""
Error types shared by the transport and controller layers.
"""


class MalformedRequestError(ValueError):
    """Raised when a request body or query cannot be interpreted.

    The REST layer answers these with HTTP 400.
    """
