import logging
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from rich.logging import RichHandler

from cmodel_migrator import (
    Analyzer,
    Aspect,
    Datastream,
    DatastreamBinding,
    DefaultClassifier,
    DeploymentGenerator,
    DigitalObject,
    DirectoryObjectStore,
    Disseminator,
    FoxmlSerializer,
    Generator,
    PartRenameTransform,
    SimplePidAllocator,
    resolve_active_aspects,
)
from cmodel_migrator.objects import (
    DATA_OBJECT_TYPE,
    DEFINITION_OBJECT_TYPE,
    MECHANISM_OBJECT_TYPE,
    RDF_TYPE,
)

logger = logging.getLogger(__name__)


logging.basicConfig(
    level=logging.INFO,
    handlers=[RichHandler()],
)

CREATED = datetime(2008, 1, 1, tzinfo=timezone.utc)

INPUT_SPEC = b"""<fbs:DSInputSpec xmlns:fbs="http://fedora.comm.nsdlib.org/service/bindspec" bDefPID="demo:ImageBehaviors">
  <fbs:DSInput wsdlMsgPartName="HIGH_RES" DSMin="1" DSMax="1"/>
  <fbs:DSInput wsdlMsgPartName="LOW_RES" DSMin="1" DSMax="1"/>
</fbs:DSInputSpec>"""

METHOD_MAP = b"""<fmm:MethodMap xmlns:fmm="http://fedora.comm.nsdlib.org/service/methodmap" name="ImageMethods">
  <fmm:Method operationName="getHigh">
    <fmm:DatastreamInputParm parmName="HIGH_RES" passBy="URL_REF"/>
  </fmm:Method>
  <fmm:Method operationName="getLow">
    <fmm:DatastreamInputParm parmName="LOW_RES" passBy="URL_REF"/>
  </fmm:Method>
</fmm:MethodMap>"""

WSDL = b"""<wsdl:definitions xmlns:wsdl="http://schemas.xmlsoap.org/wsdl/" xmlns:http="http://schemas.xmlsoap.org/wsdl/http/" name="ImageService">
  <wsdl:message name="getHighRequest"><wsdl:part name="HIGH_RES"/></wsdl:message>
  <wsdl:message name="getLowRequest"><wsdl:part name="LOW_RES"/></wsdl:message>
  <wsdl:binding name="binding">
    <wsdl:operation name="getHigh"><http:operation location="(HIGH_RES)"/></wsdl:operation>
    <wsdl:operation name="getLow"><http:operation location="(LOW_RES)"/></wsdl:operation>
  </wsdl:binding>
</wsdl:definitions>"""


def inline(ds_id: str, content: bytes) -> Datastream:
    return Datastream(
        id=ds_id, version_id=f"{ds_id}.0", mime_type="text/xml", created=CREATED, content=content
    )


def image(pid: str, low_res_mime: str) -> DigitalObject:
    """A data object serving two image sizes through demo:ImageMechanism."""
    return DigitalObject(
        pid=pid,
        label=f"Image {pid}",
        properties={RDF_TYPE: DATA_OBJECT_TYPE},
        datastreams=tuple(
            Datastream(
                id=ds_id,
                version_id=f"{ds_id}.0",
                control_group="E",
                mime_type=mime_type,
                created=CREATED,
                location=f"http://images.example.org/{pid}/{ds_id}",
            )
            for ds_id, mime_type in (("HIGH", "image/tiff"), ("LOW", low_res_mime))
        ),
        disseminators=(
            Disseminator(
                id="DISS1",
                definition_id="demo:ImageBehaviors",
                mechanism_id="demo:ImageMechanism",
                created=CREATED,
                bindings=(
                    DatastreamBinding(key="HIGH_RES", datastream_id="HIGH"),
                    DatastreamBinding(key="LOW_RES", datastream_id="LOW", order=1),
                ),
            ),
        ),
    )


def write_corpus(directory: Path) -> None:
    serializer = FoxmlSerializer()
    objects = [
        image("demo:1", "image/jpeg"),
        image("demo:2", "image/jpeg"),
        image("demo:3", "image/png"),
        DigitalObject(
            pid="demo:ImageMechanism",
            label="Image mechanism",
            properties={RDF_TYPE: MECHANISM_OBJECT_TYPE},
            datastreams=(
                inline("DSINPUTSPEC", INPUT_SPEC),
                inline("METHODMAP", METHOD_MAP),
                inline("WSDL", WSDL),
            ),
        ),
        DigitalObject(
            pid="demo:ImageBehaviors",
            label="Image behaviors",
            properties={RDF_TYPE: DEFINITION_OBJECT_TYPE},
        ),
    ]
    for i, obj in enumerate(objects):
        serializer.write(obj, directory / f"object{i}.xml")


def analyze_and_generate(object_dir: Path, analysis_dir: Path, ignore=()):
    serializer = FoxmlSerializer()
    store = DirectoryObjectStore(object_dir, serializer)
    classifier = DefaultClassifier(
        aspects=resolve_active_aspects(ignore=ignore),
        pid_allocator=SimplePidAllocator("demo:CModel"),
        part_renames={"HIGH_RES": "FULL"},
    )

    analysis = Analyzer(classifier, serializer).classify_all(
        store, analysis_dir, clear_output_dir=True
    )
    for summary in analysis.content_models:
        logger.info(f"{summary.pid}: members {summary.members}")

    generator = Generator(
        store, analysis_dir, serializer, DeploymentGenerator(PartRenameTransform())
    )
    generation = generator.generate_all()
    for pid, path in generation.deployments.items():
        logger.info(f"Deployment {pid} written to {path.name}")
    return analysis, generation


def run(work_dir: Path):
    """Run both phases twice in ``work_dir`` and return the last run's results."""
    object_dir = work_dir / "objects"
    analysis_dir = work_dir / "analysis"
    object_dir.mkdir()
    write_corpus(object_dir)

    # demo:3 differs only by MIME type, so it gets its own content model
    analyze_and_generate(object_dir, analysis_dir)

    # Ignoring MIME types puts all three images in one content model
    return analyze_and_generate(object_dir, analysis_dir, ignore=[Aspect.MIME_TYPES])


def main():
    with tempfile.TemporaryDirectory() as tmp:
        run(Path(tmp))


if __name__ == "__main__":
    main()
