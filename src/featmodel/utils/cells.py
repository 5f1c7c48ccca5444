"""
Compute-once cells for caching expensive values.

A cell is owned by whoever creates it and is passed by reference to the
code that fills it, so callers control its lifetime and can reset it to
force regeneration.
"""

import threading
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class InstanceCell(Generic[T]):
    """
    Thread-safe fill-if-absent cell.

    The factory given to :meth:`get_or_create` runs at most once per fill;
    concurrent callers block until the first caller's factory returns and
    then all observe the same value. A factory that raises leaves the cell
    empty.
    """

    def __init__(self, value: T | None = None) -> None:
        self._lock = threading.RLock()
        self._value = value

    @property
    def is_filled(self) -> bool:
        """Whether the cell currently holds a value."""
        return self._value is not None

    def peek(self) -> T | None:
        """Return the held value without filling the cell."""
        return self._value

    def get_or_create(self, factory: Callable[[], T]) -> T:
        """
        Return the held value, creating it with ``factory`` if absent.

        Args:
            factory: Zero-argument callable producing the value.

        Returns:
            The cached value.
        """
        value = self._value
        if value is not None:
            return value
        with self._lock:
            if self._value is None:
                self._value = factory()
            return self._value

    def reset(self) -> T | None:
        """Empty the cell, returning the previously held value."""
        with self._lock:
            value, self._value = self._value, None
            return value

    def __repr__(self) -> str:
        state = "filled" if self.is_filled else "empty"
        return f"{type(self).__name__}({state})"
