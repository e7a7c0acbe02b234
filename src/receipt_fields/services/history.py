"""
Per-session candidate history.

Each open document owns one CandidateHistory. Every field keeps its own
bounded, newest-first buffer of candidates seen during the session so
that values from earlier OCR passes can fill gaps in later ones.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Union

from receipt_fields.config import Settings, get_settings
from receipt_fields.models.blocks import ReceiptField
from receipt_fields.utils.candidates import Candidate, utc_now

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = 'OCR'


class CandidateHistory:
    """Bounded, deduplicated candidate buffers keyed by ReceiptField."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.capacity = self.settings.HISTORY_CAPACITY
        self.tolerance = self.settings.DEDUP_TOLERANCE
        self._buffers: Dict[ReceiptField, List[Candidate]] = {
            receipt_field: [] for receipt_field in ReceiptField
        }
        self._lock = threading.RLock()

    def _buffer(self, receipt_field: Union[ReceiptField, str]) -> List[Candidate]:
        return self._buffers[ReceiptField(receipt_field)]

    def _contains(self, buffer: List[Candidate], candidate: Candidate) -> bool:
        return any(
            existing.value == candidate.value
            and abs(existing.confidence - candidate.confidence) < self.tolerance
            for existing in buffer
        )

    def add(self, receipt_field: Union[ReceiptField, str], candidates: Iterable[Candidate]) -> int:
        """
        Push candidates onto the front of a field's history.

        A candidate whose value is already stored with a confidence within
        the dedup tolerance is skipped. Stored entries are stamped with the
        current time and default to the "OCR" source. The buffer is then
        cut to capacity, dropping the oldest entries.

        Returns:
            Number of candidates added
        """
        with self._lock:
            buffer = self._buffer(receipt_field)
            added = 0
            for candidate in candidates:
                if self._contains(buffer, candidate):
                    continue
                buffer.insert(0, replace(
                    candidate,
                    timestamp=utc_now(),
                    source=candidate.source or DEFAULT_SOURCE,
                    is_history=False,
                ))
                added += 1

            del buffer[self.capacity:]

        if added:
            logger.debug("Added candidates to history", extra={
                "field": ReceiptField(receipt_field).value,
                "added": added,
            })
        return added

    def merged(
        self,
        receipt_field: Union[ReceiptField, str],
        fresh_candidates: Iterable[Candidate]
    ) -> List[Candidate]:
        """
        Union of fresh candidates and history entries for other values.

        Fresh candidates are always kept; history entries whose value is
        absent from the fresh set are added with is_history=True. The
        result is sorted by descending confidence, fresh first on ties.
        """
        merged = list(fresh_candidates)
        seen_values = {candidate.value for candidate in merged}

        with self._lock:
            history = list(self._buffer(receipt_field))

        for entry in history:
            if entry.value in seen_values:
                continue
            seen_values.add(entry.value)
            merged.append(replace(entry, is_history=True))

        merged.sort(key=lambda candidate: candidate.confidence, reverse=True)
        return merged

    def remove(self, receipt_field: Union[ReceiptField, str], value: Union[str, int]) -> int:
        """
        Delete every history entry with the given value.

        Returns:
            Number of entries removed
        """
        with self._lock:
            buffer = self._buffer(receipt_field)
            kept = [entry for entry in buffer if entry.value != value]
            removed = len(buffer) - len(kept)
            buffer[:] = kept
        return removed

    def clear(self, receipt_field: Union[ReceiptField, str, None] = None) -> None:
        """Empty one field's history, or every field's if none is given."""
        with self._lock:
            if receipt_field is None:
                for buffer in self._buffers.values():
                    buffer.clear()
            else:
                self._buffer(receipt_field).clear()

    def entries(self, receipt_field: Union[ReceiptField, str]) -> List[Candidate]:
        """Copy of a field's history, newest first."""
        with self._lock:
            return list(self._buffer(receipt_field))

    def __len__(self) -> int:
        with self._lock:
            return sum(len(buffer) for buffer in self._buffers.values())

    def snapshot(self) -> Dict[str, List[dict]]:
        """JSON-ready copy of all histories keyed by field name."""
        with self._lock:
            return {
                receipt_field.value: [entry.to_dict() for entry in buffer]
                for receipt_field, buffer in self._buffers.items()
            }


def format_relative_timestamp(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """
    Render a history entry's age for the review UI.

    今 under a minute, then 分前, 時間前 and 日前; anything a week or
    older is shown as a month/day date.
    """
    now = now or utc_now()
    seconds = (now - timestamp).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return '今'
    if minutes < 60:
        return f'{minutes}分前'
    if hours < 24:
        return f'{hours}時間前'
    if days < 7:
        return f'{days}日前'
    return f'{timestamp.month}月{timestamp.day}日'
