"""Compute-once attributes for lazily built model state."""

from typing import Any, Callable


class memoized:
    """Like ``functools.cached_property`` but guarded by ``instance._lock``.

    The owner must provide a re-entrant ``_lock`` so that one memoized
    value may depend on another. Concurrent first access computes the
    value exactly once.
    """

    def __init__(self, func: Callable[[Any], Any]) -> None:
        self.func = func
        self.name = func.__name__
        self.__doc__ = func.__doc__

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        cache = instance.__dict__
        if self.name in cache:
            return cache[self.name]
        with instance._lock:
            if self.name not in cache:
                cache[self.name] = self.func(instance)
            return cache[self.name]
