"""
Time-hierarchical measurement index.

    EnergyIndex  year  -> YearNode
    YearNode     month -> MonthNode
    MonthNode    day   -> DayNode
    DayNode      hour // 6 -> Bucket
    Bucket       sorted, duplicate-free list of Measurement

Every level owns the next exclusively and is created on first insert.
Reading goes through a Cursor, which flattens the nesting into a single
chronological sequence.
"""
from __future__ import annotations

import bisect
import logging
from typing import Generic, Iterator, Optional, TypeVar, Union

from . import exceptions
from .types import Measurement

logger = logging.getLogger(__name__)

_C = TypeVar("_C")


class Bucket:
    """Leaf 6-hour window: measurements kept ascending by linear time."""

    __slots__ = ("_items", "_times")

    def __init__(self) -> None:
        self._items: list[Measurement] = []
        self._times: list[int] = []

    def add(self, m: Measurement) -> bool:
        """Insert in order; False (and no change) if the instant is taken."""
        t = m.linear_time
        pos = bisect.bisect_left(self._times, t)
        if pos < len(self._times) and self._times[pos] == t:
            return False
        self._times.insert(pos, t)
        self._items.insert(pos, m)
        return True

    def find(self, linear_time: int) -> Optional[Measurement]:
        pos = bisect.bisect_left(self._times, linear_time)
        if pos < len(self._times) and self._times[pos] == linear_time:
            return self._items[pos]
        return None

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, pos: int) -> Measurement:
        return self._items[pos]

    def __iter__(self) -> Iterator[Measurement]:
        return iter(self._items)


class _Branch(Generic[_C]):
    """Ordered int-keyed mapping to child nodes, iterated by ascending key."""

    __slots__ = ("_children", "_keys")

    def __init__(self) -> None:
        self._children: dict[int, _C] = {}
        self._keys: list[int] = []

    def _new_child(self) -> _C:
        raise NotImplementedError

    def child(self, key: int) -> _C:
        """Return the child at key, creating it when missing."""
        node = self._children.get(key)
        if node is None:
            node = self._new_child()
            self._children[key] = node
            bisect.insort(self._keys, key)
        return node

    def get(self, key: int) -> Optional[_C]:
        return self._children.get(key)

    def keys(self) -> list[int]:
        return list(self._keys)

    def child_at(self, pos: int) -> _C:
        return self._children[self._keys[pos]]

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[_C]:
        return (self._children[k] for k in self._keys)


class DayNode(_Branch[Bucket]):
    __slots__ = ()

    def _new_child(self) -> Bucket:
        return Bucket()


class MonthNode(_Branch[DayNode]):
    __slots__ = ()

    def _new_child(self) -> DayNode:
        return DayNode()


class YearNode(_Branch[MonthNode]):
    __slots__ = ()

    def _new_child(self) -> MonthNode:
        return MonthNode()


class _Root(_Branch[YearNode]):
    __slots__ = ()

    def _new_child(self) -> YearNode:
        return YearNode()


_Level = Union[_Root, YearNode, MonthNode, DayNode, Bucket]

# root, year, month, day, bucket
_DEPTH = 5


class Cursor:
    """
    Forward-only traversal over an EnergyIndex.

    The position is a stack of (node, index) pairs from the root down to a
    bucket. Cursors only compare by end state: two live cursors are never
    equal, so the supported scan is ``while cur != index.end()``.

    Inserting into or clearing the index invalidates live cursors; using
    one afterwards raises CursorInvalidatedError.
    """

    __slots__ = ("_index", "_version", "_stack", "_at_end")

    def __init__(self, index: "EnergyIndex", end: bool = False) -> None:
        self._index = index
        self._version = index._version
        self._stack: list[list] = []
        self._at_end = True
        if not end and len(index._root):
            self._stack = [[index._root, 0]]
            self._at_end = False
            self._settle()

    @property
    def at_end(self) -> bool:
        return self._at_end

    @property
    def current(self) -> Measurement:
        """The measurement under the cursor. Raises CursorError at end."""
        self._check_version()
        exceptions.require(
            not self._at_end, "Cannot dereference a cursor at end.", exceptions.CursorError
        )
        bucket, pos = self._stack[-1]
        return bucket[pos]

    def advance(self) -> "Cursor":
        if self._at_end:
            return self
        self._check_version()
        self._stack[-1][1] += 1
        self._settle()
        return self

    def _settle(self) -> None:
        # Carry upwards until a node with a remaining child is found, then
        # descend to its first measurement. Empty nodes are stepped over.
        stack = self._stack
        while stack:
            node, pos = stack[-1]
            if pos < len(node):
                if len(stack) == _DEPTH:
                    return
                stack.append([node.child_at(pos), 0])
                continue
            stack.pop()
            if stack:
                stack[-1][1] += 1
        self._at_end = True

    def _check_version(self) -> None:
        if self._version != self._index._version:
            raise exceptions.CursorInvalidatedError(
                "Energy index was modified while a cursor was in use."
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Cursor):
            return NotImplemented
        return self._at_end and other._at_end

    def __ne__(self, other: object) -> bool:
        if not isinstance(other, Cursor):
            return NotImplemented
        return not (self._at_end and other._at_end)

    __hash__ = None  # type: ignore[assignment]

    def __iter__(self) -> Iterator[Measurement]:
        while not self._at_end:
            yield self.current
            self.advance()

    def __repr__(self) -> str:
        if self._at_end:
            return "<Cursor at end>"
        if self._version != self._index._version:
            return "<Cursor invalidated>"
        return f"<Cursor at {self.current.timestamp}>"


class EnergyIndex:
    """
    Owns every stored measurement, nested by year/month/day/6-hour bucket.

    ``insert`` is the only write path for records; the whole tree can be
    dropped with ``clear``. Calendar fields are not validated: whatever the
    timestamp says decides the path.
    """

    def __init__(self) -> None:
        self._root = _Root()
        self._size = 0
        self._version = 0

    def insert(self, m: Measurement) -> bool:
        ts = m.timestamp
        bucket = (
            self._root.child(ts.year).child(ts.month).child(ts.day).child(ts.bucket)
        )
        if not bucket.add(m):
            logger.debug("Rejected duplicate measurement at %s", ts)
            return False
        self._size += 1
        self._version += 1
        return True

    def clear(self) -> None:
        self._root = _Root()
        self._size = 0
        self._version += 1

    def begin(self) -> Cursor:
        return Cursor(self)

    def end(self) -> Cursor:
        return Cursor(self, end=True)

    def years(self) -> list[int]:
        return self._root.keys()

    def year(self, year: int) -> Optional[YearNode]:
        return self._root.get(year)

    def bucket(self, year: int, month: int, day: int, index: int) -> Optional[Bucket]:
        node: Optional[_Branch] = self._root
        for key in (year, month, day):
            node = node.get(key) if node is not None else None
        return node.get(index) if node is not None else None

    def bucket_count(self) -> int:
        return sum(len(day) for y in self._root for mo in y for day in mo)

    def __iter__(self) -> Iterator[Measurement]:
        return iter(self.begin())

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._size > 0

    def __contains__(self, m: object) -> bool:
        if not isinstance(m, Measurement):
            return False
        ts = m.timestamp
        bucket = self.bucket(ts.year, ts.month, ts.day, ts.bucket)
        return bucket is not None and bucket.find(m.linear_time) is not None
