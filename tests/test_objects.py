"""Unit tests for the object model and pid allocation."""

import datetime

import pytest
from factories import T0, make_data_object, make_datastream, make_disseminator

from cmodel_migrator.objects import (
    DC_FORMAT,
    RDF_TYPE,
    RDF_XML_MIME,
    RELS_EXT_FORMAT,
    DigitalObject,
    ObjectKind,
    latest_version,
    object_kind,
    upgrade_legacy_datastreams,
)
from cmodel_migrator.pid import SimplePidAllocator

# ============================================================================
# Versions
# ============================================================================


class TestVersions:
    """Tests for version bookkeeping on digital objects."""

    def test_datastream_ids_first_seen_order(self):
        obj = make_data_object(
            "demo:1",
            datastreams=(
                make_datastream("B"),
                make_datastream("A"),
                make_datastream("B", created=T0 + datetime.timedelta(days=1)),
            ),
        )
        assert obj.datastream_ids() == ["B", "A"]
        assert len(obj.datastream_versions("B")) == 2

    def test_latest_datastreams(self):
        later = make_datastream("B", "image/png", created=T0 + datetime.timedelta(days=1))
        obj = make_data_object(
            "demo:1", datastreams=(make_datastream("B"), make_datastream("A"), later)
        )
        assert obj.latest_datastreams() == [later, obj.datastreams[1]]

    def test_missing_created_is_oldest(self):
        undated = make_datastream("A", "image/gif", created=None)
        dated = make_datastream("A", "image/png")
        assert latest_version([undated, dated]) is dated
        assert latest_version([dated, undated]) is dated

    def test_latest_version_of_nothing(self):
        assert latest_version([]) is None

    def test_latest_disseminators(self):
        first = make_disseminator("M1", {"FULL": "DS1"})
        second = make_disseminator("M2", {"FULL": "DS1"}, created=T0 + datetime.timedelta(1))
        other = make_disseminator("M3", {"FULL": "DS1"}, diss_id="DISS2")
        obj = make_data_object("demo:1", disseminators=(first, second, other))
        assert obj.disseminator_ids() == ["DISS1", "DISS2"]
        assert obj.latest_disseminators() == [second, other]

    def test_assignments(self):
        diss = make_disseminator("M1", {"FULL": "DS1", "THUMB": "DS2"})
        assert diss.assignments() == frozenset({"FULL=DS1", "THUMB=DS2"})


# ============================================================================
# Object kinds
# ============================================================================


class TestObjectKind:
    """Tests for deciding how an object is treated."""

    @pytest.mark.parametrize(
        "fedora_type,kind",
        [
            ("FedoraObject", ObjectKind.PLAIN_INSTANCE),
            ("info:fedora/fedora-system:def/model#FedoraObject", ObjectKind.PLAIN_INSTANCE),
            ("FedoraBMechObject", ObjectKind.MECHANISM),
            ("FedoraBDefObject", ObjectKind.DEFINITION),
            ("FedoraCModelObject", ObjectKind.UNCLASSIFIABLE),
        ],
    )
    def test_kind_from_type(self, fedora_type, kind):
        obj = DigitalObject(pid="demo:1", properties={RDF_TYPE: fedora_type})
        assert object_kind(obj) is kind

    def test_untyped_object_is_unclassifiable(self):
        assert object_kind(DigitalObject(pid="demo:1")) is ObjectKind.UNCLASSIFIABLE


# ============================================================================
# Legacy upgrade
# ============================================================================


class TestUpgradeLegacyDatastreams:
    """Tests for normalizing legacy RELS-EXT and DC metadata."""

    def test_rels_ext_and_dc_are_upgraded(self):
        obj = make_data_object(
            "demo:1",
            datastreams=(
                make_datastream("RELS-EXT", "text/xml", control_group="X"),
                make_datastream("DC", "text/xml", control_group="X"),
                make_datastream("DS1"),
            ),
        )
        upgraded = upgrade_legacy_datastreams(obj)
        rels_ext, dc, ds1 = upgraded.datastreams
        assert (rels_ext.mime_type, rels_ext.format_uri) == (RDF_XML_MIME, RELS_EXT_FORMAT)
        assert (dc.mime_type, dc.format_uri) == ("text/xml", DC_FORMAT)
        assert ds1 is obj.datastreams[2]

    def test_existing_dc_format_is_kept(self):
        obj = make_data_object(
            "demo:1", datastreams=(make_datastream("DC", "text/xml", format_uri="urn:custom"),)
        )
        assert upgrade_legacy_datastreams(obj) is obj

    def test_conforming_object_is_returned_unchanged(self, image_object_a):
        assert upgrade_legacy_datastreams(image_object_a) is image_object_a


# ============================================================================
# Pid allocation
# ============================================================================


class TestSimplePidAllocator:
    """Tests for the counter-based pid allocator."""

    def test_defaults(self):
        allocator = SimplePidAllocator()
        assert [allocator.next_id() for _ in range(3)] == [
            "changeme:CModel1",
            "changeme:CModel2",
            "changeme:CModel3",
        ]
        assert allocator.issued == 3

    def test_custom_prefix_and_start(self):
        allocator = SimplePidAllocator("demo:X-", start=5)
        assert allocator.next_id() == "demo:X-5"
        assert "next=6" in repr(allocator)
