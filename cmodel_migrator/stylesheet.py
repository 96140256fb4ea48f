"""FOXML upgrade stylesheets.

The generator writes one stylesheet next to every member and side list of
the analysis. Applied to a legacy FOXML 1.0 object it produces the FOXML 1.1
form: disseminators and the retired object properties are dropped, and when
``cModelPidURI`` is set the object gains a ``hasModel`` relationship to its
generated content model.
"""

from .objects import MODEL_CONTENT_MODEL, RDF_TYPE, RDF_XML_MIME, RELS_EXT, RELS_EXT_FORMAT

CONTENT_MODEL_PARAM = "cModelPidURI"

UPGRADE_STYLESHEET = f"""<?xml version="1.0" encoding="UTF-8"?>
<xsl:stylesheet version="1.0"
    xmlns:xsl="http://www.w3.org/1999/XSL/Transform"
    xmlns:foxml="info:fedora/fedora-system:def/foxml#"
    xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"
    xmlns:fedora-model="info:fedora/fedora-system:def/model#">

  <xsl:output method="xml" indent="yes" encoding="UTF-8"/>

  <xsl:param name="{CONTENT_MODEL_PARAM}"/>

  <xsl:template match="@*|node()">
    <xsl:copy>
      <xsl:apply-templates select="@*|node()"/>
    </xsl:copy>
  </xsl:template>

  <xsl:template match="/foxml:digitalObject">
    <foxml:digitalObject VERSION="1.1" PID="{{@PID}}">
      <xsl:apply-templates select="foxml:objectProperties"/>
      <xsl:apply-templates select="foxml:datastream"/>
      <xsl:if test="${CONTENT_MODEL_PARAM} != '' and not(foxml:datastream[@ID='{RELS_EXT}'])">
        <foxml:datastream ID="{RELS_EXT}" CONTROL_GROUP="X" STATE="A" VERSIONABLE="true">
          <foxml:datastreamVersion ID="{RELS_EXT}1.0" MIMETYPE="{RDF_XML_MIME}"
              FORMAT_URI="{RELS_EXT_FORMAT}" LABEL="RDF Statements about this object">
            <foxml:xmlContent>
              <rdf:RDF>
                <rdf:Description rdf:about="info:fedora/{{@PID}}">
                  <fedora-model:hasModel rdf:resource="{{${CONTENT_MODEL_PARAM}}}"/>
                </rdf:Description>
              </rdf:RDF>
            </foxml:xmlContent>
          </foxml:datastreamVersion>
        </foxml:datastream>
      </xsl:if>
    </foxml:digitalObject>
  </xsl:template>

  <xsl:template match="foxml:property[@NAME='{RDF_TYPE}']"/>
  <xsl:template match="foxml:extproperty[@NAME='{MODEL_CONTENT_MODEL}']"/>
  <xsl:template match="foxml:disseminator"/>

  <xsl:template match="foxml:datastream[@ID='{RELS_EXT}']//rdf:Description">
    <xsl:copy>
      <xsl:apply-templates select="@*|node()"/>
      <xsl:if test="${CONTENT_MODEL_PARAM} != ''">
        <fedora-model:hasModel rdf:resource="{{${CONTENT_MODEL_PARAM}}}"/>
      </xsl:if>
    </xsl:copy>
  </xsl:template>

</xsl:stylesheet>
"""


def upgrade_stylesheet(content_model_pid: str | None = None) -> str:
    """The upgrade stylesheet, with the content model bound in if given."""
    if content_model_pid is None:
        return UPGRADE_STYLESHEET
    declaration = f'<xsl:param name="{CONTENT_MODEL_PARAM}"'
    return UPGRADE_STYLESHEET.replace(
        declaration, f"{declaration} select=\"'info:fedora/{content_model_pid}'\""
    )
