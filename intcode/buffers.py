from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, Iterator, Optional, Tuple


class FifoBuffer:
    """Integer queue crossing the VM boundary.

    ``try_pop`` is the non-blocking read used by the input instruction: it
    reports an empty queue with ``None`` instead of raising, which is what
    lets the VM suspend and resume without any real blocking primitive.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[int] = ()) -> None:
        self._items: Deque[int] = deque(items)

    def push(self, value: int) -> None:
        self._items.append(value)

    def pop(self) -> int:
        return self._items.popleft()

    def try_pop(self) -> Optional[int]:
        if not self._items:
            return None
        return self._items.popleft()

    def drain(self) -> list[int]:
        values = list(self._items)
        self._items.clear()
        return values

    def clear(self) -> None:
        self._items.clear()

    def snapshot(self) -> Tuple[int, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[int]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"FifoBuffer({list(self._items)!r})"


__all__ = ["FifoBuffer"]
