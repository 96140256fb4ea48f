"""Classification aspects.

An aspect is one dimension along which two objects may be considered
structurally equivalent. The external names are stable: they appear in
configuration files and in rendered class descriptions.
"""

import logging
from collections.abc import Iterable
from enum import Enum

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class Aspect(str, Enum):
    """All aspects an object can be classified by."""

    ORIGINAL_CLASS_ID = "OrigContentModel"
    DEFINITION_IDS = "BDefPIDs"
    MECHANISM_IDS = "BMechPIDs"
    PART_BINDINGS = "BindingKeyAssignments"
    DATASTREAM_IDS = "DatastreamIDs"
    MIME_TYPES = "MIMETypes"
    FORMAT_URIS = "FormatURIs"

    @classmethod
    def from_name(cls, name: str) -> "Aspect":
        """Look up an aspect by external or member name, ignoring case.

        Args:
            name: Name such as ``"DatastreamIDs"`` or ``"datastream_ids"``.

        Returns:
            The matching aspect.

        Raises:
            ConfigurationError: If no aspect has that name.
        """
        wanted = name.strip().lower()
        for aspect in cls:
            if wanted in (aspect.value.lower(), aspect.name.lower()):
                return aspect
        valid = ", ".join(aspect.value for aspect in cls)
        raise ConfigurationError(f"Unrecognized aspect: {name!r} (expected one of {valid})")

    def __str__(self) -> str:
        return self.value


# Ignoring these would silently merge objects with different migration outcomes.
MANDATORY_ASPECTS: frozenset[Aspect] = frozenset(
    {Aspect.DEFINITION_IDS, Aspect.MECHANISM_IDS, Aspect.PART_BINDINGS}
)

# Aspect -> aspect it is meaningless without.
ASPECT_DEPENDENCIES: dict[Aspect, Aspect] = {
    Aspect.MIME_TYPES: Aspect.DATASTREAM_IDS,
    Aspect.FORMAT_URIS: Aspect.DATASTREAM_IDS,
}


def parse_aspects(names: Iterable[str] | str) -> frozenset[Aspect]:
    """Parse aspect names, accepting a space-delimited string or an iterable."""
    if isinstance(names, str):
        names = names.split()
    return frozenset(Aspect.from_name(name) for name in names)


def resolve_active_aspects(
    active: Iterable[Aspect] | None = None,
    ignore: Iterable[Aspect] = (),
) -> frozenset[Aspect]:
    """Fix the set of aspects used for classification.

    Mandatory aspects are kept even when asked to be ignored, and the
    dependency closure is applied once: an aspect whose prerequisite is not
    active is dropped.

    Args:
        active: Aspects requested. Defaults to every aspect.
        ignore: Aspects to remove from ``active``.

    Returns:
        The frozen active aspect set.
    """
    requested = set(Aspect) if active is None else set(active)
    ignored = set(ignore)

    for aspect in sorted(ignored & MANDATORY_ASPECTS, key=list(Aspect).index):
        logger.warning(f"Not ignoring required aspect: {aspect}")
    for aspect in sorted(MANDATORY_ASPECTS - requested, key=list(Aspect).index):
        logger.warning(f"Not omitting required aspect: {aspect}")

    resolved = (requested - ignored) | MANDATORY_ASPECTS

    for aspect, prerequisite in ASPECT_DEPENDENCIES.items():
        if aspect in resolved and prerequisite not in resolved:
            logger.info(f"Ignoring aspect {aspect} because {prerequisite} is ignored")
            resolved.discard(aspect)

    return frozenset(resolved)
