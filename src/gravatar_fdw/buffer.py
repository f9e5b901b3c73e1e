"""Ordered record buffer with a read cursor."""

from __future__ import annotations

from .models import ProfileRecord


class _EndOfScan:
    """Marker returned by ResultBuffer.advance once every record was read."""

    def __repr__(self) -> str:
        return "END_OF_SCAN"


# Distinct from None, which is a valid decoded document.
END_OF_SCAN = _EndOfScan()


class ResultBuffer:
    """FIFO of resolved profiles consumed row by row.

    The cursor always stays within ``[0, len(buffer)]``; reaching the end
    means the scan is exhausted.
    """

    def __init__(self) -> None:
        self._records: list[ProfileRecord] = []
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._records)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def exhausted(self) -> bool:
        return self._cursor >= len(self._records)

    def push(self, record: ProfileRecord) -> None:
        self._records.append(record)

    def reset(self) -> None:
        """Rewind the cursor, keeping records for a re-scan."""
        self._cursor = 0

    def clear(self) -> None:
        """Drop all records and rewind."""
        self._records.clear()
        self._cursor = 0

    def advance(self) -> ProfileRecord | _EndOfScan:
        """Return the record under the cursor and move past it, or END_OF_SCAN."""
        if self.exhausted:
            return END_OF_SCAN
        record = self._records[self._cursor]
        self._cursor += 1
        return record
