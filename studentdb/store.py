"""In-memory student record table.

The store keeps records in insertion order, keyed by a unique integer id.
Deleting shifts later records toward the front so the visible order of
the survivors never changes. Sorted views are built from a private copy.
"""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional

from .text import contains_ignore_case

NAME_MAX_LENGTH = 127
PROGRAMME_MAX_LENGTH = 127


def to_float32(value: float) -> float:
    """Round a Python float to the nearest single-precision value."""
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return float("inf") if value > 0 else float("-inf")


@dataclass(frozen=True)
class Record:
    id: int
    name: str
    programme: str
    mark: float

    def row(self) -> str:
        return f"{self.id} {self.name} {self.programme} {self.mark:.1f}"


class SortField(enum.Enum):
    NONE = "none"
    ID = "id"
    MARK = "mark"


class SortDirection(enum.Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Summary:
    total: int
    average: float
    highest: Record
    lowest: Record


class RecordStore:
    """Insertion-ordered collection of Records with unique ids."""

    def __init__(self):
        self._records: List[Record] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(list(self._records))

    def __contains__(self, record_id: int) -> bool:
        return self._index_of(record_id) != -1

    def _index_of(self, record_id: int) -> int:
        for i, r in enumerate(self._records):
            if r.id == record_id:
                return i
        return -1

    def insert(self, record_id: int, name: str, programme: str, mark: float) -> bool:
        """Append a new record. Returns False if the id is already taken."""
        if self._index_of(record_id) != -1:
            return False
        self._records.append(Record(
            id=record_id,
            name=(name or "")[:NAME_MAX_LENGTH],
            programme=(programme or "")[:PROGRAMME_MAX_LENGTH],
            mark=to_float32(mark),
        ))
        return True

    def find(self, record_id: int) -> Optional[Record]:
        i = self._index_of(record_id)
        return None if i == -1 else self._records[i]

    def update(self, record_id: int, name: Optional[str] = None,
               programme: Optional[str] = None, mark: Optional[float] = None) -> bool:
        """Replace only the supplied fields. Returns False if the id is unknown."""
        i = self._index_of(record_id)
        if i == -1:
            return False
        changes = {}
        if name is not None:
            changes["name"] = name[:NAME_MAX_LENGTH]
        if programme is not None:
            changes["programme"] = programme[:PROGRAMME_MAX_LENGTH]
        if mark is not None:
            changes["mark"] = to_float32(mark)
        self._records[i] = replace(self._records[i], **changes)
        return True

    def delete(self, record_id: int) -> bool:
        i = self._index_of(record_id)
        if i == -1:
            return False
        # list deletion shifts the tail left, keeping survivors in order
        del self._records[i]
        return True

    def clear(self) -> None:
        self._records.clear()

    def records(self) -> List[Record]:
        return list(self._records)

    def snapshot(self, field: SortField = SortField.NONE,
                 direction: SortDirection = SortDirection.ASC) -> List[Record]:
        """Return a sorted copy; the store itself is never reordered.

        Equal keys keep their store order in both directions.
        """
        copy = list(self._records)
        descending = direction is SortDirection.DESC
        if field is SortField.ID:
            copy.sort(key=lambda r: r.id, reverse=descending)
        elif field is SortField.MARK:
            copy.sort(key=lambda r: r.mark, reverse=descending)
        elif descending:
            copy.reverse()
        return copy

    def search(self, field: str, needle: str) -> List[Record]:
        if field not in ("name", "programme"):
            raise ValueError(f"cannot search by {field!r}")
        return [r for r in self._records if contains_ignore_case(getattr(r, field), needle)]

    def summary(self) -> Optional[Summary]:
        if not self._records:
            return None
        highest = lowest = self._records[0]
        total_mark = 0.0
        for r in self._records:
            total_mark += r.mark
            if r.mark < lowest.mark:
                lowest = r
            if r.mark > highest.mark:
                highest = r
        return Summary(
            total=len(self._records),
            average=total_mark / len(self._records),
            highest=highest,
            lowest=lowest,
        )
