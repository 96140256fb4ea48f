"""Identifier allocation for generated objects."""

from abc import ABC, abstractmethod

DEFAULT_PID_PREFIX = "changeme:CModel"


class PidAllocator(ABC):
    """Issues identifiers for newly generated objects.

    Identifiers are never reused within a run.
    """

    @abstractmethod
    def next_id(self) -> str:
        """Return the next unused identifier."""


class SimplePidAllocator(PidAllocator):
    """Allocates ``prefix + n`` for n = start, start + 1, ...

    Example:
        >>> allocator = SimplePidAllocator("demo:CModel")
        >>> allocator.next_id(), allocator.next_id()
        ('demo:CModel1', 'demo:CModel2')
    """

    def __init__(self, prefix: str = DEFAULT_PID_PREFIX, start: int = 1) -> None:
        self.prefix = prefix
        self._next = start
        self.issued = 0

    def next_id(self) -> str:
        pid = f"{self.prefix}{self._next}"
        self._next += 1
        self.issued += 1
        return pid

    def __repr__(self) -> str:
        return f"SimplePidAllocator(prefix={self.prefix!r}, next={self._next})"
