"""Builders for legacy objects used across the test suite."""

import datetime

from cmodel_migrator.objects import (
    DATA_OBJECT_TYPE,
    DEFINITION_OBJECT_TYPE,
    MECHANISM_OBJECT_TYPE,
    MODEL_CONTENT_MODEL,
    MODEL_LABEL,
    RDF_TYPE,
    Datastream,
    DatastreamBinding,
    DigitalObject,
    Disseminator,
)

T0 = datetime.datetime(2008, 1, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)

DSINPUTSPEC_XML = """<fbs:DSInputSpec xmlns:fbs="http://fedora.comm.nsdlib.org/service/bindspec" bDefPID="demo:DualResImage" label="Datastream Input Specification">
  <fbs:DSInput wsdlMsgPartName="FULL_SIZE" DSMin="1" DSMax="1" DSOrdinality="false">
    <fbs:DSInputLabel>Full size image</fbs:DSInputLabel>
    <fbs:DSMIME>image/jpeg</fbs:DSMIME>
  </fbs:DSInput>
  <fbs:DSInput wsdlMsgPartName="MEDIUM_SIZE" DSMin="1" DSMax="1" DSOrdinality="false">
    <fbs:DSInputLabel>Medium size image</fbs:DSInputLabel>
    <fbs:DSMIME>image/jpeg</fbs:DSMIME>
  </fbs:DSInput>
</fbs:DSInputSpec>"""

METHODMAP_XML = """<fmm:MethodMap xmlns:fmm="http://fedora.comm.nsdlib.org/service/methodmap" name="MethodMap">
  <fmm:Method operationName="fullSize" wsdlMsgName="fullSizeRequest" wsdlMsgOutput="image_response">
    <fmm:DatastreamInputParm parmName="FULL_SIZE" passBy="URL_REF" required="true"/>
    <fmm:MethodReturnType wsdlMsgName="image_response"/>
  </fmm:Method>
  <fmm:Method operationName="mediumSize" wsdlMsgName="mediumSizeRequest" wsdlMsgOutput="image_response">
    <fmm:DatastreamInputParm parmName="MEDIUM_SIZE" passBy="URL_REF" required="true"/>
    <fmm:MethodReturnType wsdlMsgName="image_response"/>
  </fmm:Method>
</fmm:MethodMap>"""

WSDL_XML = """<wsdl:definitions xmlns:wsdl="http://schemas.xmlsoap.org/wsdl/" xmlns:http="http://schemas.xmlsoap.org/wsdl/http/" name="DualResImage">
  <wsdl:message name="fullSizeRequest">
    <wsdl:part name="FULL_SIZE" type="xsd:string"/>
  </wsdl:message>
  <wsdl:message name="mediumSizeRequest">
    <wsdl:part name="MEDIUM_SIZE" type="xsd:string"/>
  </wsdl:message>
  <wsdl:binding name="binding" type="this:portType">
    <http:binding verb="GET"/>
    <wsdl:operation name="fullSize">
      <http:operation location="(FULL_SIZE)"/>
    </wsdl:operation>
    <wsdl:operation name="mediumSize">
      <http:operation location="(MEDIUM_SIZE)"/>
    </wsdl:operation>
  </wsdl:binding>
</wsdl:definitions>"""

DC_XML = """<oai_dc:dc xmlns:oai_dc="http://www.openarchives.org/OAI/2.0/oai_dc/" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <dc:title>Sample</dc:title>
</oai_dc:dc>"""


def make_datastream(
    ds_id: str,
    mime_type: str | None = "image/jpeg",
    created: datetime.datetime = T0,
    content: bytes | None = None,
    control_group: str = "M",
    format_uri: str | None = None,
) -> Datastream:
    """Build one datastream version."""
    return Datastream(
        id=ds_id,
        version_id=f"{ds_id}.0",
        control_group=control_group,
        mime_type=mime_type,
        format_uri=format_uri,
        label=f"{ds_id} datastream",
        created=created,
        content=content,
        location=None if content is not None else f"http://example.org/{ds_id}",
    )


def make_disseminator(
    mechanism_id: str,
    bindings: dict[str, str],
    definition_id: str = "demo:DualResImage",
    diss_id: str = "DISS1",
    created: datetime.datetime = T0,
) -> Disseminator:
    """Build one disseminator version binding ``key -> datastream id``."""
    return Disseminator(
        id=diss_id,
        definition_id=definition_id,
        mechanism_id=mechanism_id,
        version_id=f"{diss_id}.0",
        created=created,
        bindings=tuple(
            DatastreamBinding(key=key, datastream_id=ds_id, order=i)
            for i, (key, ds_id) in enumerate(bindings.items())
        ),
    )


def make_data_object(
    pid: str,
    datastreams: tuple[Datastream, ...] = (),
    disseminators: tuple[Disseminator, ...] = (),
    original_content_model: str | None = None,
) -> DigitalObject:
    """Build a plain legacy data object."""
    properties = {RDF_TYPE: DATA_OBJECT_TYPE, MODEL_LABEL: f"Object {pid}"}
    if original_content_model:
        properties[MODEL_CONTENT_MODEL] = original_content_model
    return DigitalObject(
        pid=pid,
        label=f"Object {pid}",
        properties=properties,
        datastreams=datastreams,
        disseminators=disseminators,
    )


def make_mechanism(pid: str = "demo:Mech1", with_rels_ext: bool = False) -> DigitalObject:
    """Build a legacy behavior mechanism with its three part definitions."""
    datastreams = [
        make_datastream("DC", "text/xml", content=DC_XML.encode(), control_group="X"),
        make_datastream(
            "DSINPUTSPEC", "text/xml", content=DSINPUTSPEC_XML.encode(), control_group="X"
        ),
        make_datastream("METHODMAP", "text/xml", content=METHODMAP_XML.encode(), control_group="X"),
        make_datastream("WSDL", "text/xml", content=WSDL_XML.encode(), control_group="X"),
        make_datastream("DOC", "application/pdf", content=b"%PDF-1.4 sample"),
    ]
    if with_rels_ext:
        datastreams.append(
            make_datastream(
                "RELS-EXT",
                "text/xml",
                content=b'<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"/>',
                control_group="X",
            )
        )
    return DigitalObject(
        pid=pid,
        label="Legacy mechanism",
        properties={RDF_TYPE: MECHANISM_OBJECT_TYPE},
        datastreams=tuple(datastreams),
    )


