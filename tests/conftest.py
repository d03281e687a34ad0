"""
Shared pytest fixtures for rdf-transform tests.

Provides small resource graphs, a factory and program stores so test
modules do not each rebuild them.
"""

import pytest

from rdf_transform.factory import TransformationFactory
from rdf_transform.graph import GraphSource
from rdf_transform.logging_config import reset_logging
from rdf_transform.store import FileProgramStore, MemoryProgramStore


EX = "http://example.org/"

REPORT_TTL = """
@prefix ex: <http://example.org/> .
@prefix dc: <http://purl.org/dc/elements/1.1/> .
@prefix dcterms: <http://purl.org/dc/terms/> .
@prefix foaf: <http://xmlns.com/foaf/0.1/> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .

ex:r1 a ex:Report ;
    dc:title "Report" ;
    dc:description "A", "B" ;
    ex:summary "B" ;
    dc:creator ex:alice ;
    dcterms:hasPart ex:c1 ;
    ex:pages "42"^^xsd:int ;
    ex:label "Hello"@en, "Hallo"@de ;
    ex:flag "true", "maybe" ;
    ex:created "2024-01-02T03:04:05"^^xsd:dateTime .

ex:alice foaf:name "Alice" ;
    foaf:mbox <mailto:alice@example.org> .

ex:c1 a ex:Chapter ;
    dc:title "Intro" ;
    dcterms:isPartOf ex:r1 ;
    dcterms:hasPart ex:c2 .

ex:c2 a ex:Appendix ;
    dc:title "Notes" ;
    dcterms:isPartOf ex:r1 ;
    dcterms:hasPart ex:c3 .

ex:c3 dcterms:hasPart ex:r1 .
"""

FEDORA_TTL = """
@prefix dc: <http://purl.org/dc/elements/1.1/> .
@prefix fedora: <http://fedora.info/definitions/v4/repository#> .
@prefix premis: <http://www.loc.gov/premis/rdf/v1#> .
@prefix xsd: <http://www.w3.org/2001/XMLSchema#> .

<http://localhost/rest/a> a fedora:Resource ;
    dc:title "A resource" ;
    fedora:uuid "1234" ;
    fedora:hasParent <http://localhost/rest/> ;
    fedora:createdBy "bypassAdmin" ;
    fedora:created "2024-01-02T03:04:05Z"^^xsd:dateTime ;
    fedora:hasChild <http://localhost/rest/a/b>, <http://localhost/rest/a/c> ;
    premis:hasSize "1024"^^xsd:long .
"""


@pytest.fixture
def report_graph():
    """Graph rooted at ex:r1 with titles, parts and typed literals."""
    return GraphSource.parse(REPORT_TTL, root=EX + "r1")


@pytest.fixture
def untyped_graph():
    """Same title as report_graph but without the ex:Report type."""
    ttl = """
    @prefix ex: <http://example.org/> .
    @prefix dc: <http://purl.org/dc/elements/1.1/> .
    ex:r1 dc:title "Report" .
    """
    return GraphSource.parse(ttl, root=EX + "r1")


@pytest.fixture
def fedora_graph():
    """Repository resource described with Fedora and PREMIS terms."""
    return GraphSource.parse(FEDORA_TTL, root="http://localhost/rest/a")


@pytest.fixture
def factory():
    return TransformationFactory()


@pytest.fixture
def memory_store():
    return MemoryProgramStore()


@pytest.fixture
def file_store(tmp_path):
    """FileProgramStore rooted in a temporary directory."""
    return FileProgramStore(tmp_path)


@pytest.fixture
def clean_logging():
    """Remove handlers configure_logging() attached during a test."""
    reset_logging()
    yield
    reset_logging()
