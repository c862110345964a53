"""
State History

In-memory store of recorded classifications, newest last. Queries return
newest first, optionally filtered by session.
"""
import uuid
from collections import deque
from typing import Optional, Dict, Any, List

from cognitive_backend.types import CognitiveStateResult, StateRecord


class StateHistory:
    """
    Bounded history of classification results.
    """

    def __init__(self, max_records: int = 10000):
        """
        Initialize the history.

        Args:
            max_records: Oldest records are dropped beyond this count.
        """
        self._records: deque[StateRecord] = deque(maxlen=max_records)

    def __len__(self) -> int:
        return len(self._records)

    def resize(self, max_records: int) -> None:
        """Change the capacity, keeping the newest records."""
        self._records = deque(self._records, maxlen=max_records)

    def record(
        self,
        result: CognitiveStateResult,
        session_id: Optional[str] = None,
        activity_id: Optional[str] = None,
        duration_ms: Optional[float] = None,
        triggers: Optional[Dict[str, Any]] = None,
    ) -> StateRecord:
        """
        Store a classification result.

        Returns:
            The stored record with its generated id.
        """
        entry = StateRecord(
            id=str(uuid.uuid4()),
            result=result,
            session_id=session_id,
            activity_id=activity_id,
            duration_ms=duration_ms,
            triggers=triggers or {},
        )
        self._records.append(entry)
        return entry

    def query(self, session_id: Optional[str] = None, limit: int = 50) -> List[StateRecord]:
        """
        Most recent records first.

        Args:
            session_id: Only return records of this session.
            limit: Maximum number of records.
        """
        matches: List[StateRecord] = []
        for entry in reversed(self._records):
            if len(matches) >= limit:
                break
            if session_id is not None and entry.session_id != session_id:
                continue
            matches.append(entry)
        return matches

    def get_statistics(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Record counts and mean confidence per state.
        """
        counts: Dict[str, int] = {}
        confidence_sums: Dict[str, float] = {}

        for entry in self._records:
            if session_id is not None and entry.session_id != session_id:
                continue
            label = entry.state.value
            counts[label] = counts.get(label, 0) + 1
            confidence_sums[label] = confidence_sums.get(label, 0.0) + entry.result.confidence

        return {
            "total": sum(counts.values()),
            "by_state": counts,
            "mean_confidence": {
                label: confidence_sums[label] / counts[label] for label in counts
            },
        }

    def clear(self) -> None:
        self._records.clear()
