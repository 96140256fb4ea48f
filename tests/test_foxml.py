"""Unit tests for FOXML serialization and object stores."""

import datetime

import pytest
from factories import T0, make_data_object, make_datastream, make_mechanism

from cmodel_migrator.errors import ArtifactIOError, ConfigurationError, SourceDataError
from cmodel_migrator.foxml import FoxmlSerializer
from cmodel_migrator.objects import MODEL_LABEL, RDF_TYPE
from cmodel_migrator.store import DirectoryObjectStore, InMemoryObjectStore

LEGACY_FOXML = b"""<?xml version="1.0" encoding="UTF-8"?>
<foxml:digitalObject xmlns:foxml="info:fedora/fedora-system:def/foxml#" PID="demo:29">
  <foxml:objectProperties>
    <foxml:property NAME="http://www.w3.org/1999/02/22-rdf-syntax-ns#type" VALUE="FedoraObject"/>
    <foxml:property NAME="info:fedora/fedora-system:def/model#label" VALUE="Sample image"/>
    <foxml:extproperty NAME="info:fedora/fedora-system:def/model#contentModel" VALUE="UVA_STD_IMAGE"/>
  </foxml:objectProperties>
  <foxml:datastream ID="DC" STATE="A" CONTROL_GROUP="X" VERSIONABLE="true">
    <foxml:datastreamVersion ID="DC.0" LABEL="Dublin Core" CREATED="2008-01-01T12:00:00.000Z" MIMETYPE="text/xml">
      <foxml:xmlContent>
        <oai_dc:dc xmlns:oai_dc="http://www.openarchives.org/OAI/2.0/oai_dc/" xmlns:dc="http://purl.org/dc/elements/1.1/">
          <dc:title>Sample</dc:title>
        </oai_dc:dc>
      </foxml:xmlContent>
    </foxml:datastreamVersion>
  </foxml:datastream>
  <foxml:datastream ID="DS1" STATE="A" CONTROL_GROUP="M" VERSIONABLE="false">
    <foxml:datastreamVersion ID="DS1.0" LABEL="Full" CREATED="2008-01-01T12:00:00Z" MIMETYPE="image/jpeg">
      <foxml:contentLocation TYPE="URL" REF="http://example.org/full.jpg"/>
    </foxml:datastreamVersion>
    <foxml:datastreamVersion ID="DS1.1" LABEL="Full" CREATED="2008-02-01T12:00:00Z" MIMETYPE="image/png">
      <foxml:binaryContent>aGVsbG8=</foxml:binaryContent>
    </foxml:datastreamVersion>
  </foxml:datastream>
  <foxml:disseminator ID="DISS1" BDEF_CONTRACT_PID="demo:DualResImage" STATE="A" VERSIONABLE="true">
    <foxml:disseminatorVersion ID="DISS1.0" BMECH_SERVICE_PID="demo:Mech1" CREATED="2008-01-01T12:00:00Z">
      <foxml:serviceInputMap>
        <foxml:datastreamBinding KEY="FULL_SIZE" DATASTREAM_ID="DS1" LABEL="Full" ORDER="0"/>
      </foxml:serviceInputMap>
    </foxml:disseminatorVersion>
  </foxml:disseminator>
</foxml:digitalObject>
"""


@pytest.fixture
def serializer():
    return FoxmlSerializer()


# ============================================================================
# Reading
# ============================================================================


class TestFoxmlRead:
    """Tests for parsing FOXML documents."""

    def test_properties(self, serializer):
        obj = serializer.loads(LEGACY_FOXML)
        assert obj.pid == "demo:29"
        assert obj.label == "Sample image"
        assert obj.property(RDF_TYPE) == "FedoraObject"
        assert obj.property("info:fedora/fedora-system:def/model#contentModel") == (
            "UVA_STD_IMAGE"
        )

    def test_datastream_versions(self, serializer):
        obj = serializer.loads(LEGACY_FOXML)
        first, second = obj.datastream_versions("DS1")
        assert first.location == "http://example.org/full.jpg"
        assert first.content is None
        assert first.versionable is False
        assert second.content == b"hello"
        assert obj.latest_datastream("DS1") is second
        assert second.created == datetime.datetime(
            2008, 2, 1, 12, tzinfo=datetime.timezone.utc
        )

    def test_inline_xml_content(self, serializer):
        dc = serializer.loads(LEGACY_FOXML).latest_datastream("DC")
        assert dc.control_group == "X"
        assert dc.text.startswith("<oai_dc:dc")
        assert "<dc:title>Sample</dc:title>" in dc.text

    def test_disseminators(self, serializer):
        (diss,) = serializer.loads(LEGACY_FOXML).disseminators
        assert diss.definition_id == "demo:DualResImage"
        assert diss.mechanism_id == "demo:Mech1"
        assert diss.assignments() == frozenset({"FULL_SIZE=DS1"})

    @pytest.mark.parametrize(
        "data,message",
        [
            (b"<foxml:digitalObject", "Malformed FOXML"),
            (b"<other/>", "Not a FOXML digital object"),
            (
                b'<digitalObject xmlns="info:fedora/fedora-system:def/foxml#"/>',
                "has no PID",
            ),
        ],
    )
    def test_invalid_documents(self, serializer, data, message):
        with pytest.raises(SourceDataError, match=message):
            serializer.loads(data)

    def test_bad_timestamp(self, serializer):
        data = LEGACY_FOXML.replace(b"2008-01-01T12:00:00Z", b"yesterday")
        with pytest.raises(SourceDataError, match="Bad timestamp"):
            serializer.loads(data)

    def test_short_fractional_seconds(self, serializer):
        data = LEGACY_FOXML.replace(b"2008-02-01T12:00:00Z", b"2008-02-01T12:00:00.5Z")
        second = serializer.loads(data).latest_datastream("DS1")
        assert second.created == datetime.datetime(
            2008, 2, 1, 12, 0, 0, 500000, tzinfo=datetime.timezone.utc
        )

    def test_bad_binding_order(self, serializer):
        data = LEGACY_FOXML.replace(b'ORDER="0"', b'ORDER="first"')
        with pytest.raises(SourceDataError, match="Bad binding ORDER 'first' in demo:29"):
            serializer.loads(data)


# ============================================================================
# Writing
# ============================================================================


class TestFoxmlWrite:
    """Tests for writing FOXML documents."""

    def test_reads_back_what_it_writes(self, serializer):
        obj = serializer.loads(LEGACY_FOXML)
        again = serializer.loads(serializer.dumps(obj))
        assert again.properties == obj.properties
        assert again.disseminators == obj.disseminators
        assert [ds.content for ds in again.datastreams if ds.id == "DS1"] == [
            None,
            b"hello",
        ]

    def test_version_follows_disseminators(self, serializer, image_object_a):
        assert b'VERSION="1.0"' in serializer.dumps(image_object_a)
        plain = make_data_object("demo:P", datastreams=(make_datastream("DS1"),))
        assert b'VERSION="1.1"' in serializer.dumps(plain)

    def test_timestamp_format(self, serializer):
        obj = make_data_object(
            "demo:T",
            datastreams=(make_datastream("DS1", created=T0 + datetime.timedelta(microseconds=5000)),),
        )
        assert b'CREATED="2008-01-01T12:00:00.005Z"' in serializer.dumps(obj)

    def test_label_written_as_property(self, serializer):
        obj = serializer.loads(serializer.dumps(make_mechanism()))
        assert obj.property(MODEL_LABEL) == "Legacy mechanism"

    def test_malformed_inline_xml(self, serializer):
        obj = make_data_object(
            "demo:X",
            datastreams=(make_datastream("BAD", "text/xml", content=b"<a>", control_group="X"),),
        )
        with pytest.raises(SourceDataError, match="not well-formed"):
            serializer.dumps(obj)

    def test_write_and_read_file(self, serializer, tmp_path):
        path = tmp_path / "mech.xml"
        serializer.write(make_mechanism(), path)
        assert serializer.read(path).pid == "demo:Mech1"

    def test_read_missing_file(self, serializer, tmp_path):
        with pytest.raises(ArtifactIOError, match="I/O failure"):
            serializer.read(tmp_path / "missing.xml")

    def test_read_error_names_file(self, serializer, tmp_path):
        path = tmp_path / "broken.xml"
        path.write_bytes(b"<nope")
        with pytest.raises(SourceDataError, match="broken.xml"):
            serializer.read(path)


# ============================================================================
# Stores
# ============================================================================


class TestStores:
    """Tests for in-memory and directory-backed stores."""

    def test_in_memory_store(self, image_object_a, image_object_b):
        store = InMemoryObjectStore([image_object_a, image_object_b])
        assert len(store) == 2
        assert [obj.pid for obj in store] == ["demo:A", "demo:B"]
        assert store.get_object("demo:B") is image_object_b
        assert store.get_object("demo:Z") is None

    def test_directory_store_sorted_and_filtered(self, serializer, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / ".hidden").mkdir()
        serializer.write(make_mechanism("demo:M2"), tmp_path / "sub" / "b.xml")
        serializer.write(make_mechanism("demo:M1"), tmp_path / "a.xml")
        serializer.write(make_mechanism("demo:M3"), tmp_path / ".hidden" / "c.xml")
        (tmp_path / "notes.txt").write_text("not an object")

        store = DirectoryObjectStore(tmp_path, serializer)

        assert [obj.pid for obj in store] == ["demo:M1", "demo:M2"]
        assert store.get_object("demo:M2").pid == "demo:M2"
        assert store.get_object("demo:M3") is None

    def test_directory_store_requires_directory(self, serializer, tmp_path):
        with pytest.raises(ConfigurationError, match="Not a directory"):
            DirectoryObjectStore(tmp_path / "missing", serializer)
