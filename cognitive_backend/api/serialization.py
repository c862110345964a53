from dataclasses import is_dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from cognitive_backend.types.cognitive_state import format_timestamp


def json_safe(x: Any) -> Any:
    if hasattr(x, "to_dict") and not isinstance(x, type):
        return json_safe(x.to_dict())
    if isinstance(x, Path):
        return str(x)
    if isinstance(x, datetime):
        return format_timestamp(x)
    if is_dataclass(x) and not isinstance(x, type):
        return {k: json_safe(getattr(x, k)) for k in x.__dataclass_fields__}
    if isinstance(x, Enum):
        return x.value
    if isinstance(x, dict):
        return {k: json_safe(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [json_safe(v) for v in x]
    return x
