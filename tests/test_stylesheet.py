"""Unit tests for the FOXML upgrade stylesheet template."""

import xml.etree.ElementTree as ET

from cmodel_migrator.stylesheet import UPGRADE_STYLESHEET, upgrade_stylesheet

XSL_NS = "http://www.w3.org/1999/XSL/Transform"


class TestUpgradeStylesheet:
    """Tests for binding a content model into the template."""

    def test_template_is_well_formed(self):
        root = ET.fromstring(UPGRADE_STYLESHEET.encode("utf-8"))
        assert root.tag == f"{{{XSL_NS}}}stylesheet"
        assert root.get("version") == "1.0"

    def test_unbound_template_unchanged(self):
        assert upgrade_stylesheet() == UPGRADE_STYLESHEET

    def test_content_model_bound_once(self):
        text = upgrade_stylesheet("demo:CModel7")
        assert text.count("select=\"'info:fedora/demo:CModel7'\"") == 1
        assert '<xsl:param name="cModelPidURI" select=' in text

    def test_relationship_uses_param(self):
        assert 'rdf:resource="{$cModelPidURI}"' in UPGRADE_STYLESHEET
        assert 'PID="{@PID}"' in UPGRADE_STYLESHEET
