"""Unit tests for the part-rename transform."""

import xml.etree.ElementTree as ET

import pytest
from factories import DC_XML, DSINPUTSPEC_XML, METHODMAP_XML, WSDL_XML

from cmodel_migrator.errors import SourceDataError
from cmodel_migrator.transform import PartRenameTransform

WSDL_NS = "http://schemas.xmlsoap.org/wsdl/"
HTTP_NS = "http://schemas.xmlsoap.org/wsdl/http/"


@pytest.fixture
def transform():
    return PartRenameTransform()


class TestPartRenameTransform:
    """Tests for renaming a part across the three definition documents."""

    def test_renames_input_spec(self, transform):
        result = transform.apply(DSINPUTSPEC_XML, old_name="FULL_SIZE", new_name="FULL")
        assert 'wsdlMsgPartName="FULL"' in result
        assert 'wsdlMsgPartName="MEDIUM_SIZE"' in result
        assert "FULL_SIZE" not in result

    def test_renames_method_map(self, transform):
        result = transform.apply(METHODMAP_XML, old_name="MEDIUM_SIZE", new_name="MEDIUM")
        assert 'parmName="MEDIUM"' in result
        assert 'parmName="FULL_SIZE"' in result

    def test_renames_wsdl_parts_and_locations(self, transform):
        result = transform.apply(WSDL_XML, old_name="FULL_SIZE", new_name="FULL")
        root = ET.fromstring(result)
        parts = [p.get("name") for p in root.iter(f"{{{WSDL_NS}}}part")]
        locations = [op.get("location") for op in root.iter(f"{{{HTTP_NS}}}operation")]
        assert parts == ["FULL", "MEDIUM_SIZE"]
        assert locations == ["(FULL)", "(MEDIUM_SIZE)"]

    def test_prefixes_survive(self, transform):
        result = transform.apply(WSDL_XML, old_name="FULL_SIZE", new_name="FULL")
        assert result.startswith("<wsdl:definitions")
        assert "<http:operation" in result

    def test_unrelated_document_unchanged(self, transform):
        assert transform.apply(DC_XML, old_name="FULL_SIZE", new_name="FULL") == DC_XML

    def test_identity_rename_unchanged(self, transform):
        assert (
            transform.apply(WSDL_XML, old_name="FULL_SIZE", new_name="FULL_SIZE")
            == WSDL_XML
        )

    def test_comments_are_kept(self, transform):
        text = '<map><!-- keep me --><input parmName="A"/></map>'
        result = transform.apply(text, old_name="A", new_name="B")
        assert "<!-- keep me -->" in result
        assert 'parmName="B"' in result

    def test_malformed_document(self, transform):
        with pytest.raises(SourceDataError, match="Cannot rename part A"):
            transform.apply("<map>", old_name="A", new_name="B")
