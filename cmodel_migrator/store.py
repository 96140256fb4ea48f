"""Object corpora and stores.

The analyzer iterates an ``ObjectCorpus``; the generator looks source
mechanisms up in an ``ObjectStore``.
"""

import fnmatch
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from pathlib import Path

from .errors import ConfigurationError
from .foxml import ObjectSerializer
from .objects import DigitalObject

logger = logging.getLogger(__name__)


class ObjectCorpus(ABC):
    """An iterable collection of objects to analyze."""

    @abstractmethod
    def __iter__(self) -> Iterator[DigitalObject]:
        """Yield every object once."""


class ObjectStore(ObjectCorpus):
    """A corpus that also supports lookup by pid."""

    @abstractmethod
    def get_object(self, pid: str) -> DigitalObject | None:
        """Return the object with the given pid, or None if absent."""


class InMemoryObjectStore(ObjectStore):
    """Store backed by a list of objects, iterated in insertion order."""

    def __init__(self, objects: Iterable[DigitalObject] = ()) -> None:
        self._objects: dict[str, DigitalObject] = {}
        for obj in objects:
            self.add(obj)

    def add(self, obj: DigitalObject) -> None:
        self._objects[obj.pid] = obj

    def __iter__(self) -> Iterator[DigitalObject]:
        return iter(list(self._objects.values()))

    def __len__(self) -> int:
        return len(self._objects)

    def get_object(self, pid: str) -> DigitalObject | None:
        return self._objects.get(pid)


class DirectoryObjectStore(ObjectStore):
    """Store backed by a directory tree of serialized objects.

    Files are visited in sorted path order so runs over the same directory
    discover content models in the same order.

    Example:
        >>> store = DirectoryObjectStore("objects/", FoxmlSerializer())
        >>> for obj in store:
        ...     print(obj.pid)
        >>> store.get_object("demo:1")
    """

    def __init__(
        self,
        root: str | Path,
        serializer: ObjectSerializer,
        include_patterns: list[str] | None = None,
        ignore_patterns: list[str] | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            root: Directory to crawl recursively.
            serializer: Reads each file into an object.
            include_patterns: Glob patterns for files to read.
                Defaults to ``["*.xml"]``.
            ignore_patterns: Glob patterns for files and directories to
                skip. Defaults to dot files.

        Raises:
            ConfigurationError: If ``root`` is not a directory.
        """
        self.root = Path(root)
        if not self.root.is_dir():
            raise ConfigurationError(f"Not a directory: {self.root}")
        self.serializer = serializer
        self.include_patterns = include_patterns or ["*.xml"]
        self.ignore_patterns = ignore_patterns or [".*"]
        self._index: dict[str, Path] | None = None

    def files(self) -> list[Path]:
        """Every file that will be read, in sorted order."""
        files = []
        for path in sorted(self.root.rglob("*")):
            if not path.is_file() or self._should_ignore(path):
                continue
            if any(fnmatch.fnmatch(path.name, p) for p in self.include_patterns):
                files.append(path)
        return files

    def __iter__(self) -> Iterator[DigitalObject]:
        for path in self.files():
            logger.debug(f"Reading {path}")
            yield self.serializer.read(path)

    def get_object(self, pid: str) -> DigitalObject | None:
        if self._index is None:
            self._index = {}
            for path in self.files():
                obj = self.serializer.read(path)
                self._index[obj.pid] = path
            logger.info(f"Indexed {len(self._index)} objects under {self.root}")
        path = self._index.get(pid)
        return self.serializer.read(path) if path is not None else None

    def _should_ignore(self, path: Path) -> bool:
        rel_path = path.relative_to(self.root)
        for part in rel_path.parts:
            for pattern in self.ignore_patterns:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False
