"""FOXML serialization for digital objects.

Supports the part of FOXML 1.0 and 1.1 the migrator reads and writes: object
properties, datastream versions with inline XML, base64 or by-reference
content, and legacy disseminators with their datastream bindings.
"""

import base64
import logging
import re
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path

from .errors import ArtifactIOError, SourceDataError
from .objects import (
    INLINE_XML,
    MODEL_LABEL,
    Datastream,
    DatastreamBinding,
    DigitalObject,
    Disseminator,
)
from .xmlutil import local_name, parse_xml

logger = logging.getLogger(__name__)

FOXML_NS = "info:fedora/fedora-system:def/foxml#"

_FRACTION = re.compile(r"\.(\d+)")

ET.register_namespace("foxml", FOXML_NS)


def _q(name: str) -> str:
    return f"{{{FOXML_NS}}}{name}"


class ObjectSerializer(ABC):
    """Reads and writes digital objects in some serialization format."""

    @abstractmethod
    def loads(self, data: bytes) -> DigitalObject:
        """Deserialize one object."""

    @abstractmethod
    def dumps(self, obj: DigitalObject) -> bytes:
        """Serialize one object."""

    def read(self, path: str | Path) -> DigitalObject:
        """Read an object from a file.

        Raises:
            ArtifactIOError: If the file cannot be read.
            SourceDataError: If the file is not a valid serialized object.
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ArtifactIOError(path, e) from e
        try:
            return self.loads(data)
        except SourceDataError as e:
            raise SourceDataError(f"{path}: {e}") from e

    def write(self, obj: DigitalObject, path: str | Path) -> None:
        """Write an object to a file, replacing any existing file.

        Raises:
            ArtifactIOError: If the file cannot be written.
        """
        path = Path(path)
        data = self.dumps(obj)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise ArtifactIOError(path, e) from e
        logger.debug(f"Wrote {obj.pid} to {path}")


class FoxmlSerializer(ObjectSerializer):
    """FOXML reader and writer.

    Objects with disseminators are written as FOXML 1.0, everything else as
    FOXML 1.1.
    """

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def loads(self, data: bytes) -> DigitalObject:
        try:
            root = parse_xml(data)
        except ET.ParseError as e:
            raise SourceDataError(f"Malformed FOXML: {e}") from e
        if root.tag != _q("digitalObject"):
            raise SourceDataError(f"Not a FOXML digital object: <{local_name(root.tag)}>")
        pid = root.get("PID")
        if not pid:
            raise SourceDataError("FOXML digital object has no PID")

        properties: dict[str, str] = {}
        for props in root.findall(_q("objectProperties")):
            for prop in props:
                if prop.tag in (_q("property"), _q("extproperty")):
                    properties[prop.get("NAME", "")] = prop.get("VALUE", "")

        datastreams = []
        for ds in root.findall(_q("datastream")):
            for version in ds.findall(_q("datastreamVersion")):
                datastreams.append(self._read_datastream_version(pid, ds, version))

        disseminators = []
        for diss in root.findall(_q("disseminator")):
            for version in diss.findall(_q("disseminatorVersion")):
                disseminators.append(self._read_disseminator_version(pid, diss, version))

        return DigitalObject(
            pid=pid,
            label=properties.get(MODEL_LABEL, ""),
            properties=properties,
            datastreams=tuple(datastreams),
            disseminators=tuple(disseminators),
        )

    def _read_datastream_version(
        self, pid: str, ds: ET.Element, version: ET.Element
    ) -> Datastream:
        ds_id = ds.get("ID")
        if not ds_id:
            raise SourceDataError(f"Datastream without ID in {pid}")

        content = None
        location = None
        xml_content = version.find(_q("xmlContent"))
        binary_content = version.find(_q("binaryContent"))
        content_location = version.find(_q("contentLocation"))
        if xml_content is not None:
            children = [child for child in xml_content if isinstance(child.tag, str)]
            if children:
                children[0].tail = None
                content = ET.tostring(children[0], encoding="unicode").encode("utf-8")
            else:
                content = b""
        elif binary_content is not None:
            content = base64.b64decode("".join((binary_content.text or "").split()))
        elif content_location is not None:
            location = content_location.get("REF")

        return Datastream(
            id=ds_id,
            version_id=version.get("ID"),
            control_group=ds.get("CONTROL_GROUP", INLINE_XML),
            mime_type=version.get("MIMETYPE") or None,
            format_uri=version.get("FORMAT_URI") or None,
            label=version.get("LABEL", ""),
            created=_parse_datetime(version.get("CREATED"), pid),
            content=content,
            location=location,
            versionable=ds.get("VERSIONABLE", "true").lower() != "false",
            state=ds.get("STATE", "A"),
        )

    def _read_disseminator_version(
        self, pid: str, diss: ET.Element, version: ET.Element
    ) -> Disseminator:
        bindings = []
        for input_map in version.findall(_q("serviceInputMap")):
            for binding in input_map.findall(_q("datastreamBinding")):
                bindings.append(
                    DatastreamBinding(
                        key=binding.get("KEY", ""),
                        datastream_id=binding.get("DATASTREAM_ID", ""),
                        label=binding.get("LABEL", ""),
                        order=_parse_order(binding.get("ORDER"), pid),
                    )
                )
        definition_id = diss.get("BDEF_CONTRACT_PID")
        mechanism_id = version.get("BMECH_SERVICE_PID")
        if not definition_id or not mechanism_id:
            raise SourceDataError(
                f"Disseminator {diss.get('ID')} in {pid} lacks a definition or mechanism"
            )
        return Disseminator(
            id=diss.get("ID", ""),
            definition_id=definition_id,
            mechanism_id=mechanism_id,
            version_id=version.get("ID"),
            label=version.get("LABEL", ""),
            created=_parse_datetime(version.get("CREATED"), pid),
            bindings=tuple(bindings),
            state=diss.get("STATE", "A"),
        )

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def dumps(self, obj: DigitalObject) -> bytes:
        root = ET.Element(
            _q("digitalObject"),
            {"VERSION": "1.0" if obj.disseminators else "1.1", "PID": obj.pid},
        )
        properties = dict(obj.properties)
        if obj.label and MODEL_LABEL not in properties:
            properties[MODEL_LABEL] = obj.label
        if properties:
            props = ET.SubElement(root, _q("objectProperties"))
            for name, value in properties.items():
                ET.SubElement(props, _q("property"), {"NAME": name, "VALUE": value})

        inline: list[tuple[ET.Element, ET.Element]] = []
        for ds_id in obj.datastream_ids():
            versions = obj.datastream_versions(ds_id)
            first = versions[0]
            ds = ET.SubElement(
                root,
                _q("datastream"),
                {
                    "ID": ds_id,
                    "STATE": first.state,
                    "CONTROL_GROUP": first.control_group,
                    "VERSIONABLE": "true" if first.versionable else "false",
                },
            )
            for version in versions:
                inline += self._write_datastream_version(obj.pid, ds, version)

        for diss_id in obj.disseminator_ids():
            versions = [d for d in obj.disseminators if d.id == diss_id]
            diss = ET.SubElement(
                root,
                _q("disseminator"),
                {
                    "ID": diss_id,
                    "BDEF_CONTRACT_PID": versions[0].definition_id,
                    "STATE": versions[0].state,
                    "VERSIONABLE": "true",
                },
            )
            for version in versions:
                self._write_disseminator_version(diss, version)

        ET.indent(root, space="  ")
        # Inline XML is attached after indenting so its whitespace is kept as is.
        for container, content in inline:
            container.append(content)
        body = ET.tostring(root, encoding="unicode")
        return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}\n'.encode("utf-8")

    def _write_datastream_version(
        self, pid: str, ds: ET.Element, version: Datastream
    ) -> list[tuple[ET.Element, ET.Element]]:
        attrs = {"ID": version.version_id or f"{version.id}.0", "LABEL": version.label}
        if version.created is not None:
            attrs["CREATED"] = _format_datetime(version.created)
        if version.mime_type:
            attrs["MIMETYPE"] = version.mime_type
        if version.format_uri:
            attrs["FORMAT_URI"] = version.format_uri
        element = ET.SubElement(ds, _q("datastreamVersion"), attrs)

        if version.control_group == INLINE_XML:
            container = ET.SubElement(element, _q("xmlContent"))
            if not version.content:
                return []
            try:
                return [(container, parse_xml(version.content))]
            except ET.ParseError as e:
                raise SourceDataError(
                    f"Inline datastream {version.id} of {pid} is not well-formed XML: {e}"
                ) from e
        if version.content is not None:
            binary = ET.SubElement(element, _q("binaryContent"))
            binary.text = base64.b64encode(version.content).decode("ascii")
        elif version.location is not None:
            ET.SubElement(
                element, _q("contentLocation"), {"TYPE": "URL", "REF": version.location}
            )
        return []

    def _write_disseminator_version(self, diss: ET.Element, version: Disseminator) -> None:
        attrs = {
            "ID": version.version_id or f"{version.id}.0",
            "LABEL": version.label,
            "BMECH_SERVICE_PID": version.mechanism_id,
        }
        if version.created is not None:
            attrs["CREATED"] = _format_datetime(version.created)
        element = ET.SubElement(diss, _q("disseminatorVersion"), attrs)
        input_map = ET.SubElement(element, _q("serviceInputMap"))
        for binding in version.bindings:
            ET.SubElement(
                input_map,
                _q("datastreamBinding"),
                {
                    "KEY": binding.key,
                    "DATASTREAM_ID": binding.datastream_id,
                    "LABEL": binding.label,
                    "ORDER": str(binding.order),
                },
            )


def _parse_datetime(value: str | None, pid: str) -> datetime | None:
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as e:
        raise SourceDataError(f"Bad timestamp {value!r} in {pid}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_order(value: str | None, pid: str) -> int:
    if not value:
        return 0
    try:
        return int(value)
    except ValueError as e:
        raise SourceDataError(f"Bad binding ORDER {value!r} in {pid}") from e


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"
