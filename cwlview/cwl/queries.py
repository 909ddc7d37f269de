from __future__ import annotations

from collections.abc import MutableMapping

from rdflib import RDF, RDFS, Namespace
from rdflib.plugins.sparql import prepareQuery
from rdflib.plugins.sparql.sparql import Query as PreparedQuery

CWL = Namespace("https://w3id.org/cwl/cwl#")
SLD = Namespace("https://w3id.org/cwl/salad#")
WORKFLOW = Namespace("https://w3id.org/cwl/cwl#Workflow/")

NAMESPACES = {
    "cwl": CWL,
    "sld": SLD,
    "Workflow": WORKFLOW,
    "rdf": RDF,
    "rdfs": RDFS,
}


class Query:
    """A named and versioned SPARQL query. The `?wf` variable is bound to the workflow IRI."""

    __slots__ = ("name", "version", "text", "prepared")

    def __init__(self, name: str, version: str, text: str):
        self.name: str = name
        self.version: str = version
        self.text: str = text
        self.prepared: PreparedQuery = prepareQuery(text, initNs=NAMESPACES)


WORKFLOW_QUERY = Query(
    name="workflow",
    version="v1",
    text="""
SELECT ?label ?doc ?version
WHERE {
    ?wf rdf:type cwl:Workflow .
    OPTIONAL { ?wf rdfs:label|sld:label ?label }
    OPTIONAL { ?wf rdfs:comment|sld:doc ?doc }
    OPTIONAL { ?wf cwl:cwlVersion ?version }
}
""",
)

INPUTS_QUERY = Query(
    name="inputs",
    version="v1",
    text="""
SELECT ?port ?type ?label ?doc ?default
WHERE {
    ?wf cwl:inputs ?port .
    OPTIONAL { ?port sld:type ?type }
    OPTIONAL { ?port rdfs:label|sld:label ?label }
    OPTIONAL { ?port rdfs:comment|sld:doc ?doc }
    OPTIONAL { ?port cwl:default ?default }
}
""",
)

OUTPUTS_QUERY = Query(
    name="outputs",
    version="v1",
    text="""
SELECT ?port ?type ?label ?doc ?src
WHERE {
    ?wf cwl:outputs ?port .
    OPTIONAL { ?port sld:type ?type }
    OPTIONAL { ?port rdfs:label|sld:label ?label }
    OPTIONAL { ?port rdfs:comment|sld:doc ?doc }
    OPTIONAL { ?port cwl:outputSource ?src }
}
""",
)

STEPS_QUERY = Query(
    name="steps",
    version="v1",
    text="""
SELECT ?step ?run ?runtype ?label ?doc
WHERE {
    ?wf Workflow:steps|cwl:steps ?step .
    OPTIONAL {
        ?step cwl:run ?run .
        OPTIONAL { ?run rdf:type ?runtype }
    }
    OPTIONAL { ?step rdfs:label|sld:label ?label }
    OPTIONAL { ?step rdfs:comment|sld:doc ?doc }
}
""",
)

STEP_INPUTS_QUERY = Query(
    name="step_inputs",
    version="v1",
    text="""
SELECT ?step ?port ?src ?default
WHERE {
    ?wf Workflow:steps|cwl:steps ?step .
    ?step cwl:in ?port .
    OPTIONAL { ?port cwl:source ?src }
    OPTIONAL { ?port cwl:default ?default }
}
""",
)

STEP_OUTPUTS_QUERY = Query(
    name="step_outputs",
    version="v1",
    text="""
SELECT ?step ?port
WHERE {
    ?wf Workflow:steps|cwl:steps ?step .
    ?step cwl:out ?port .
}
""",
)

SCATTER_QUERY = Query(
    name="scatter",
    version="v1",
    text="""
SELECT ?step ?port
WHERE {
    ?wf Workflow:steps|cwl:steps ?step .
    ?step cwl:scatter ?port .
}
""",
)

RUN_INPUTS_QUERY = Query(
    name="run_inputs",
    version="v1",
    text="""
SELECT ?step ?port
WHERE {
    ?wf Workflow:steps|cwl:steps ?step .
    ?step cwl:run ?run .
    ?run cwl:inputs ?port .
}
""",
)

QUERIES: MutableMapping[str, Query] = {
    q.name: q
    for q in (
        WORKFLOW_QUERY,
        INPUTS_QUERY,
        OUTPUTS_QUERY,
        STEPS_QUERY,
        STEP_INPUTS_QUERY,
        STEP_OUTPUTS_QUERY,
        SCATTER_QUERY,
        RUN_INPUTS_QUERY,
    )
}
