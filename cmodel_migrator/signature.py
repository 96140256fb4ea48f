"""Object signatures.

A signature is the comparable form of an object's active aspects. Each slot
is either ``WILDCARD`` (the aspect is not tracked and constrains nothing) or
``Exact(value)`` (the aspect must match exactly). Signatures are immutable
values and serve as memo-table keys in the classifier.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from .aspects import Aspect
from .errors import SourceDataError
from .objects import MODEL_CONTENT_MODEL, DigitalObject

T = TypeVar("T")

BindingMap = tuple[tuple[str, frozenset[str]], ...]
DatastreamMap = tuple[tuple[str, str | None], ...]


@dataclass(frozen=True)
class Wildcard:
    """An unconstrained slot. All wildcards are equal."""

    def __repr__(self) -> str:
        return "WILDCARD"


WILDCARD = Wildcard()


@dataclass(frozen=True)
class Exact(Generic[T]):
    """A slot that requires exactly ``value``."""

    value: T


Slot = Wildcard | Exact


def _freeze_map(mapping: dict, keys: Iterable[str]) -> tuple:
    # Sorted pairs restricted to the owning id set, so equality is order-free.
    return tuple(sorted((key, mapping[key]) for key in set(keys) if key in mapping))


@dataclass(frozen=True)
class Signature:
    """Canonical, hashable summary of an object along the active aspects.

    Attributes:
        original_class_id: Legacy content-model property, or None if absent.
        definition_ids: Behavior definitions referenced by the object.
        mechanism_ids: Behavior mechanisms referenced by the object.
        part_bindings: Per mechanism, the ``"key=datastreamId"`` assignments.
        datastream_ids: Datastream ids, always including bound datastreams.
        mime_types: Per datastream, the MIME type of its latest version.
        format_uris: Per datastream, the format URI of its latest version.
    """

    original_class_id: Wildcard | Exact[str | None] = WILDCARD
    definition_ids: Wildcard | Exact[frozenset[str]] = WILDCARD
    mechanism_ids: Wildcard | Exact[frozenset[str]] = WILDCARD
    part_bindings: Wildcard | Exact[BindingMap] = WILDCARD
    datastream_ids: Wildcard | Exact[frozenset[str]] = WILDCARD
    mime_types: Wildcard | Exact[DatastreamMap] = WILDCARD
    format_uris: Wildcard | Exact[DatastreamMap] = WILDCARD

    @classmethod
    def build(
        cls,
        obj: DigitalObject,
        aspects: Iterable[Aspect],
        ignore_datastream_ids: Iterable[str] = (),
    ) -> "Signature":
        """Compute the signature of an object.

        Only the latest version of each disseminator and datastream is
        considered.

        Args:
            obj: The object to summarize.
            aspects: Active aspects. Every other slot is a wildcard, except
                that bound datastreams always appear in ``datastream_ids``.
            ignore_datastream_ids: Datastream ids never tracked unless bound.

        Returns:
            The object's signature.

        Raises:
            SourceDataError: If a bound datastream is missing while its MIME
                type or format URI is tracked.
        """
        aspects = frozenset(aspects)
        ignored = frozenset(ignore_datastream_ids)
        disseminators = obj.latest_disseminators()

        mechanisms = frozenset(diss.mechanism_id for diss in disseminators)
        bindings: dict[str, frozenset[str]] = {}
        for diss in disseminators:
            bindings[diss.mechanism_id] = (
                bindings.get(diss.mechanism_id, frozenset()) | diss.assignments()
            )
        bound_ids = frozenset(
            binding.datastream_id for diss in disseminators for binding in diss.bindings
        )

        original_class_id: Slot = WILDCARD
        if Aspect.ORIGINAL_CLASS_ID in aspects:
            original_class_id = Exact(obj.property(MODEL_CONTENT_MODEL) or None)

        definition_ids: Slot = WILDCARD
        if Aspect.DEFINITION_IDS in aspects:
            definition_ids = Exact(
                frozenset(diss.definition_id for diss in disseminators)
            )

        mechanism_ids: Slot = Exact(mechanisms) if Aspect.MECHANISM_IDS in aspects else WILDCARD

        part_bindings: Slot = WILDCARD
        if Aspect.PART_BINDINGS in aspects:
            part_bindings = Exact(_freeze_map(bindings, mechanisms))

        tracked: frozenset[str] | None = None
        if Aspect.DATASTREAM_IDS in aspects:
            tracked = frozenset(obj.datastream_ids()) - ignored
        if Aspect.PART_BINDINGS in aspects:
            tracked = (tracked or frozenset()) | bound_ids
        datastream_ids: Slot = WILDCARD if tracked is None else Exact(tracked)

        mime_types: Slot = WILDCARD
        format_uris: Slot = WILDCARD
        if tracked is not None and Aspect.MIME_TYPES in aspects:
            mime_types = Exact(
                _freeze_map(_latest_attribute(obj, tracked, "mime_type"), tracked)
            )
        if tracked is not None and Aspect.FORMAT_URIS in aspects:
            format_uris = Exact(
                _freeze_map(_latest_attribute(obj, tracked, "format_uri"), tracked)
            )

        return cls(
            original_class_id=original_class_id,
            definition_ids=definition_ids,
            mechanism_ids=mechanism_ids,
            part_bindings=part_bindings,
            datastream_ids=datastream_ids,
            mime_types=mime_types,
            format_uris=format_uris,
        )

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    def slot(self, aspect: Aspect) -> Slot:
        """Return the slot holding ``aspect``."""
        return getattr(self, _SLOT_NAMES[aspect])

    def exact_ids(self, aspect: Aspect) -> frozenset[str] | None:
        """Id set of an id-valued aspect, or None when it is a wildcard."""
        slot = self.slot(aspect)
        return slot.value if isinstance(slot, Exact) else None

    def bindings_for(self, mechanism_id: str) -> frozenset[str] | None:
        """Assignments made to ``mechanism_id``, or None when untracked."""
        if not isinstance(self.part_bindings, Exact):
            return None
        return dict(self.part_bindings.value).get(mechanism_id, frozenset())

    def mime_type(self, datastream_id: str) -> str | None:
        if not isinstance(self.mime_types, Exact):
            return None
        return dict(self.mime_types.value).get(datastream_id)

    def format_uri(self, datastream_id: str) -> str | None:
        if not isinstance(self.format_uris, Exact):
            return None
        return dict(self.format_uris.value).get(datastream_id)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def render(self) -> str:
        """Human-readable dump of every slot, one aspect heading per slot.

        Wildcards render as ``any`` and empty values as ``none``. Values are
        sorted so identical signatures always render identically.
        """
        lines = [Aspect.ORIGINAL_CLASS_ID.value]
        if isinstance(self.original_class_id, Exact):
            value = self.original_class_id.value
            lines.append(f"  '{value}'" if value else "  none")
        else:
            lines.append("  any")

        lines += [Aspect.DEFINITION_IDS.value, f"  {_list_strings(self.definition_ids)}"]
        lines += [Aspect.MECHANISM_IDS.value, f"  {_list_strings(self.mechanism_ids)}"]

        lines.append(Aspect.PART_BINDINGS.value)
        if isinstance(self.part_bindings, Exact):
            for mechanism_id, assignments in self.part_bindings.value:
                lines.append(f"  for {mechanism_id}")
                lines.append(f"    {_list_strings(Exact(assignments))}")
            if not self.part_bindings.value:
                lines.append("  none")
        else:
            lines.append("  any")

        lines += [Aspect.DATASTREAM_IDS.value, f"  {_list_strings(self.datastream_ids)}"]
        lines += _datastream_restrictions(Aspect.MIME_TYPES, self.mime_types)
        lines += _datastream_restrictions(Aspect.FORMAT_URIS, self.format_uris)
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()


_SLOT_NAMES: dict[Aspect, str] = {
    Aspect.ORIGINAL_CLASS_ID: "original_class_id",
    Aspect.DEFINITION_IDS: "definition_ids",
    Aspect.MECHANISM_IDS: "mechanism_ids",
    Aspect.PART_BINDINGS: "part_bindings",
    Aspect.DATASTREAM_IDS: "datastream_ids",
    Aspect.MIME_TYPES: "mime_types",
    Aspect.FORMAT_URIS: "format_uris",
}


def _latest_attribute(
    obj: DigitalObject, datastream_ids: Iterable[str], attribute: str
) -> dict[str, str | None]:
    values = {}
    for ds_id in datastream_ids:
        latest = obj.latest_datastream(ds_id)
        if latest is None:
            raise SourceDataError(
                f"Object {obj.pid} binds datastream {ds_id} but has no such datastream"
            )
        values[ds_id] = getattr(latest, attribute) or None
    return values


def _list_strings(slot: Slot) -> str:
    if not isinstance(slot, Exact):
        return "any"
    if not slot.value:
        return "none"
    return ", ".join(f"'{value}'" for value in sorted(slot.value))


def _datastream_restrictions(aspect: Aspect, slot: Slot) -> list[str]:
    lines = [aspect.value]
    if not isinstance(slot, Exact):
        lines.append("  any")
        return lines
    for ds_id, value in slot.value:
        lines.append(f"  for {ds_id}, '{value}'" if value else f"  for {ds_id}, none")
    if not slot.value:
        lines.append("  none")
    return lines
