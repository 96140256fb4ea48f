"""Pytest configuration and shared fixtures for migrator tests."""

import pytest
from factories import make_data_object, make_datastream, make_disseminator, make_mechanism

from cmodel_migrator.objects import DEFINITION_OBJECT_TYPE, RDF_TYPE, DigitalObject


@pytest.fixture
def image_object_a():
    """A data object bound to mechanism M1 via FULL and THUMB."""
    return make_data_object(
        "demo:A",
        datastreams=(make_datastream("DS1"), make_datastream("DS2")),
        disseminators=(make_disseminator("M1", {"FULL": "DS1", "THUMB": "DS2"}),),
    )


@pytest.fixture
def image_object_b():
    """A data object structurally identical to ``image_object_a``."""
    return make_data_object(
        "demo:B",
        datastreams=(make_datastream("DS1"), make_datastream("DS2")),
        disseminators=(make_disseminator("M1", {"FULL": "DS1", "THUMB": "DS2"}),),
    )


@pytest.fixture
def mechanism():
    """The legacy mechanism demo:Mech1."""
    return make_mechanism()


@pytest.fixture
def definition():
    """A legacy behavior definition."""
    return DigitalObject(
        pid="demo:DualResImage",
        properties={RDF_TYPE: DEFINITION_OBJECT_TYPE},
    )
