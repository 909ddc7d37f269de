from __future__ import annotations

import logging
import posixpath
from collections.abc import MutableMapping, MutableSequence
from typing import Any

from rdflib import RDF, BNode, Dataset, Graph, URIRef
from rdflib.collection import Collection
from rdflib.query import Result

from cwlview.core.exception import CWLValidationException, WorkflowNotFoundException
from cwlview.cwl.facts import PortFacts, SourceRef, StepFacts, WorkflowFacts
from cwlview.cwl.queries import CWL, QUERIES, SLD
from cwlview.cwl.utils import get_fragment, get_name, split_source, type_to_string
from cwlview.log_handler import logger

RDF_MEMBER_PREFIX = str(RDF) + "_"


def _container_members(graph: Graph, node: Any) -> MutableSequence[Any]:
    members = []
    for predicate, obj in graph.predicate_objects(node):
        position = str(predicate)[len(RDF_MEMBER_PREFIX) :]
        if str(predicate).startswith(RDF_MEMBER_PREFIX) and position.isdigit():
            members.append((int(position), obj))
    return [obj for _, obj in sorted(members, key=lambda m: m[0])]


def _ordered(graph: Graph, nodes: MutableSequence[Any]) -> MutableSequence[Any]:
    """
    Expand the objects of a multi-valued property into a positional list.

    Order is taken from RDF collections (`rdf:first`/`rdf:rest`) or from container
    membership properties (`rdf:_1`, `rdf:_2`, ...). Plain repeated values carry
    no position and are sorted lexically.
    """
    ordered = []
    plain = []
    for node in nodes:
        if (node, RDF.first, None) in graph:
            ordered.extend(Collection(graph, node))
        elif members := _container_members(graph, node):
            ordered.extend(members)
        else:
            plain.append(node)
    if len(plain) > 1 and logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"Values {', '.join(str(p) for p in plain)} have no explicit position: "
            "sorting them lexically"
        )
    return ordered + sorted(plain, key=str)


def _to_cwl_type(graph: Graph, node: Any) -> Any:
    if isinstance(node, BNode):
        kind = graph.value(node, SLD.type)
        kind = get_name(str(kind)) if kind is not None else None
        if kind == "array" or (node, RDF.type, SLD.ArraySchema) in graph:
            items = sorted(graph.objects(node, SLD.items), key=str)
            return {
                "type": "array",
                "items": (
                    [_to_cwl_type(graph, i) for i in items]
                    if len(items) > 1
                    else _to_cwl_type(graph, items[0]) if items else "Any"
                ),
            }
        elif kind in ("enum", "record"):
            return {"type": kind}
        elif (node, RDF.type, SLD.EnumSchema) in graph:
            return {"type": "enum"}
        elif (node, RDF.type, SLD.RecordSchema) in graph:
            return {"type": "record"}
        return "Any"
    return get_name(str(node))


class _PortRecord:
    __slots__ = ("types", "label", "doc", "sources", "default")

    def __init__(self):
        self.types: MutableSequence[Any] = []
        self.label: str | None = None
        self.doc: str | None = None
        self.sources: MutableSequence[Any] = []
        self.default: bool = False

    def update(self, values: MutableMapping[str, Any]) -> None:
        if (t := values.get("type")) is not None and t not in self.types:
            self.types.append(t)
        if (src := values.get("src")) is not None and src not in self.sources:
            self.sources.append(src)
        if values.get("label") is not None:
            self.label = str(values["label"])
        if values.get("doc") is not None:
            self.doc = str(values["doc"])
        if values.get("default") is not None:
            self.default = True


class RDFService:
    """
    In-memory triple store for the RDF serialisation of CWL workflows.

    Each workflow lives in a named graph keyed by its IRI (including the packed
    fragment, when present). Instances are meant to be scoped to a single parse.
    """

    def __init__(self) -> None:
        self.dataset: Dataset = Dataset()

    def _get_graph(self, name: str) -> Graph:
        return Graph(store=self.dataset.store, identifier=URIRef(name))

    def _query(self, graph: Graph, query_name: str, workflow: URIRef) -> Result:
        query = QUERIES[query_name]
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"QUERYING {query.name} ({query.version}) on {graph.identifier}"
            )
        return graph.query(query.prepared, initBindings={"wf": workflow})

    def _get_run(self, run: Any, name: str) -> str:
        run = str(run)
        base = name.split("#")[0]
        if run.startswith(base + "#"):
            return get_fragment(run)
        elif run.startswith(posixpath.dirname(base) + posixpath.sep):
            return posixpath.relpath(run, posixpath.dirname(base))
        return run

    def _get_sources(
        self, graph: Graph, nodes: MutableSequence[Any], prefix: str | None
    ) -> MutableSequence[SourceRef]:
        return [
            SourceRef(*split_source(str(node), prefix))
            for node in _ordered(graph, nodes)
        ]

    def _get_type(self, graph: Graph, nodes: MutableSequence[Any]) -> str | None:
        if not nodes:
            return None
        types = [_to_cwl_type(graph, n) for n in nodes]
        return type_to_string(types[0] if len(types) == 1 else types)

    def _extract_ports(
        self, graph: Graph, query_name: str, workflow: URIRef, prefix: str | None
    ) -> MutableSequence[PortFacts]:
        records = {}
        for row in self._query(graph, query_name, workflow):
            values = row.asdict()
            records.setdefault(get_name(str(values["port"])), _PortRecord()).update(
                values
            )
        return [
            PortFacts(
                name=name,
                type=self._get_type(graph, record.types),
                label=record.label,
                doc=record.doc,
                sources=self._get_sources(graph, record.sources, prefix),
                default=record.default,
            )
            for name, record in sorted(records.items())
        ]

    def _extract_steps(
        self, graph: Graph, workflow: URIRef, name: str, prefix: str | None
    ) -> MutableSequence[StepFacts]:
        steps = {}
        for row in self._query(graph, "steps", workflow):
            values = row.asdict()
            step = steps.setdefault(
                values["step"], StepFacts(id=get_name(str(values["step"])))
            )
            if values.get("run") is not None:
                step.run = self._get_run(values["run"], name)
            if values.get("runtype") is not None:
                step.run_type = get_name(str(values["runtype"]))
            if values.get("label") is not None:
                step.label = str(values["label"])
            if values.get("doc") is not None:
                step.doc = str(values["doc"])
        ports = {}
        for row in self._query(graph, "step_inputs", workflow):
            values = row.asdict()
            if values["step"] in steps:
                ports.setdefault(values["step"], {}).setdefault(
                    get_name(str(values["port"])), _PortRecord()
                ).update(values)
        for step_iri, records in ports.items():
            steps[step_iri].inputs = [
                PortFacts(
                    name=port_name,
                    sources=self._get_sources(graph, record.sources, prefix),
                    default=record.default,
                )
                for port_name, record in sorted(records.items())
            ]
        for query_name, attribute in (
            ("step_outputs", "outputs"),
            ("scatter", "scatter"),
            ("run_inputs", "run_inputs"),
        ):
            for row in self._query(graph, query_name, workflow):
                if (step := steps.get(row.step)) is not None:
                    if getattr(step, attribute) is None:
                        setattr(step, attribute, [])
                    getattr(step, attribute).append(get_name(str(row.port)))
        for step in steps.values():
            step.outputs = sorted(set(step.outputs))
            step.scatter = sorted(set(step.scatter))
            if step.run_inputs is not None:
                step.run_inputs = sorted(set(step.run_inputs))
        return sorted(steps.values(), key=lambda s: s.id)

    def add_graph(self, name: str, data: str, format: str = "turtle") -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Loading RDF for {name} into the triple store")
        try:
            self.dataset.graph(URIRef(name)).parse(data=data, format=format)
        except SyntaxError as e:
            raise CWLValidationException(
                f"The RDF serialisation of {name} is not valid {format}: {e}"
            ) from e

    def graph_exists(self, name: str) -> bool:
        return (URIRef(name), RDF.type, CWL.Workflow) in self._get_graph(name)

    def extract(self, name: str) -> WorkflowFacts:
        if not self.graph_exists(name):
            raise WorkflowNotFoundException(f"No workflow found at {name}")
        graph = self._get_graph(name)
        workflow = URIRef(name)
        prefix = get_fragment(name) if "#" in name else None
        facts = WorkflowFacts(packed_id=prefix)
        for row in self._query(graph, "workflow", workflow):
            values = row.asdict()
            facts.label = facts.label or (
                str(values["label"]) if "label" in values else None
            )
            facts.doc = facts.doc or (str(values["doc"]) if "doc" in values else None)
            if "version" in values:
                facts.cwl_version = get_name(str(values["version"]))
        facts.inputs = self._extract_ports(graph, "inputs", workflow, prefix)
        facts.outputs = self._extract_ports(graph, "outputs", workflow, prefix)
        facts.steps = self._extract_steps(graph, workflow, name, prefix)
        return facts
