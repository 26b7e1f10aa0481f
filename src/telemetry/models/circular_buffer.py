"""
CircularBuffer for bounded, append-ordered storage of sensor readings.
Fixed capacity with FIFO eviction: once full, every append overwrites the oldest entry.
"""
from typing import Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class CircularBuffer(Generic[T]):
    """
    Ring buffer holding at most `capacity` items in insertion order.
    - O(1) insertion at the end
    - O(1) random access by logical index (0 = oldest)
    - Bulk reads return new lists, so callers get a snapshot that later
      appends cannot disturb
    """

    __slots__ = ('capacity', 'buffer', 'write_index', 'count', '_mask')

    def __init__(self, capacity: int):
        """
        Initialize circular buffer.

        Args:
            capacity: Maximum number of items to retain
        """
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.buffer: List[Optional[T]] = [None] * capacity
        self.write_index = 0  # Next position to write
        self.count = 0  # Number of valid entries (0 to capacity)
        # Power-of-2 capacities can use a bit mask instead of modulo
        self._mask = capacity - 1 if (capacity & (capacity - 1)) == 0 else None

    def _physical(self, index: int) -> int:
        position = self.write_index - self.count + index
        if self._mask is not None:
            return position & self._mask
        return position % self.capacity

    def append(self, item: T) -> Optional[T]:
        """Add an item, returning the evicted oldest item when the buffer was full."""
        evicted = self.buffer[self.write_index] if self.count == self.capacity else None
        self.buffer[self.write_index] = item
        if self._mask is not None:
            self.write_index = (self.write_index + 1) & self._mask
        else:
            self.write_index = (self.write_index + 1) % self.capacity
        if self.count < self.capacity:
            self.count += 1
        return evicted

    def get(self, index: int) -> T:
        """
        Get item at logical index (0 = oldest, count-1 = newest).
        Negative indices count back from the newest entry.
        """
        if index < 0:
            index += self.count
        if index < 0 or index >= self.count:
            raise IndexError(f"Index {index} out of range [0, {self.count})")
        return self.buffer[self._physical(index)]

    def get_range(self, start_index: int, end_index: int) -> List[T]:
        """Get entries from start_index to end_index (exclusive), oldest first."""
        if start_index < 0 or end_index > self.count or start_index > end_index:
            raise IndexError(f"Invalid range [{start_index}, {end_index}) for buffer of size {self.count}")
        return [self.buffer[self._physical(i)] for i in range(start_index, end_index)]

    def get_all(self) -> List[T]:
        """Get all valid entries in chronological order."""
        return self.get_range(0, self.count)

    def last(self, n: int) -> List[T]:
        """Get the newest `n` entries (fewer if the buffer holds less), oldest first."""
        if n <= 0:
            return []
        return self.get_range(max(0, self.count - n), self.count)

    def is_full(self) -> bool:
        """Check if buffer is at capacity."""
        return self.count == self.capacity

    def size(self) -> int:
        """Get number of valid entries."""
        return self.count

    def clear(self) -> None:
        """Clear all entries."""
        self.buffer = [None] * self.capacity
        self.write_index = 0
        self.count = 0

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[T]:
        return iter(self.get_all())
