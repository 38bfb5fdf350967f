"""Fixed-capacity ring buffer used to smooth samples."""

from typing import Generic, TypeVar

T = TypeVar("T", int, float)


class SlidingWindow(Generic[T]):
    """
    Ring buffer retaining the most recent `capacity` samples.

    Stored data is never shifted: once full, each sample overwrites the
    oldest element at the write cursor, and `elements()` rebuilds
    chronological order from the two contiguous runs.
    """

    __slots__ = ("_capacity", "_data", "_cursor")

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError(f"window capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._data: list[T] = []
        self._cursor = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def is_full(self) -> bool:
        return len(self._data) == self._capacity

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"SlidingWindow(capacity={self._capacity}, elements={self.elements()!r})"

    def sample(self, value: T) -> None:
        """Add a sample, overwriting the oldest one once the window is full."""
        if len(self._data) < self._capacity:
            self._data.append(value)
            return
        self._data[self._cursor] = value
        self._cursor = (self._cursor + 1) % self._capacity

    def average(self) -> float:
        """Mean of the held samples; 0.0 while the window is empty."""
        if not self._data:
            return 0.0
        return sum(self._data) / len(self._data)

    def elements(self) -> list[T]:
        """Held samples, oldest first."""
        return self._data[self._cursor :] + self._data[: self._cursor]
