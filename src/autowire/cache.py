"""A small thread-safe memoization map."""

import threading
from typing import Callable, Generic, TypeVar

__all__ = ["ComputeCache"]

K = TypeVar("K")
V = TypeVar("V")


class ComputeCache(Generic[K, V]):
    """Thread-safe key-value cache with a compute-if-absent primitive.

    Values are computed outside the lock, so two threads racing on the same
    key may both compute it. Only the first stored value is kept and every
    caller receives that value.
    """

    def __init__(self):
        self._values: dict[K, V] = {}
        self._lock = threading.Lock()

    def get_or_compute(self, key: K, compute: Callable[[K], V]) -> V:
        """Return the cached value for ``key``, computing and storing it if absent.

        Args:
            key: The cache key.
            compute: Called with ``key`` when no value is cached yet.

        Returns:
            The value stored for ``key``.
        """
        with self._lock:
            if key in self._values:
                return self._values[key]

        value = compute(key)

        with self._lock:
            return self._values.setdefault(key, value)
