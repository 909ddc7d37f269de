from __future__ import annotations

import logging
from collections.abc import Iterable, MutableMapping, MutableSequence
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from cwlview.core.exception import (
    CyclicReferenceException,
    WorkflowDefinitionException,
    WorkflowNotFoundException,
)
from cwlview.core.loader import DocumentLoader
from cwlview.cwl.facts import PortFacts, SourceRef, StepFacts, WorkflowFacts
from cwlview.cwl.utils import (
    get_doc,
    get_fragment,
    get_name,
    get_relative_fragment,
    normalize_version,
    split_source,
    type_to_string,
)
from cwlview.log_handler import logger

DEFAULT_PACKED_ID = "main"


class CWLDialect:
    __slots__ = (
        "name",
        "step_inputs",
        "step_outputs",
        "output_source",
        "doc",
        "separator",
    )

    def __init__(
        self,
        name: str,
        step_inputs: str,
        step_outputs: str,
        output_source: str,
        doc: str,
        separator: str,
    ):
        self.name: str = name
        self.step_inputs: str = step_inputs
        self.step_outputs: str = step_outputs
        self.output_source: str = output_source
        self.doc: str = doc
        self.separator: str = separator


DRAFT3 = CWLDialect(
    name="draft-3",
    step_inputs="inputs",
    step_outputs="outputs",
    output_source="source",
    doc="description",
    separator=".",
)
V1 = CWLDialect(
    name="v1.0",
    step_inputs="in",
    step_outputs="out",
    output_source="outputSource",
    doc="doc",
    separator="/",
)
DIALECTS = {
    "draft-2": DRAFT3,
    "draft-3": DRAFT3,
    "v1.0": V1,
    "v1.1": V1,
    "v1.2": V1,
}
# cwlVersion is mandatory since v1.0, so a root document without it is a draft
DEFAULT_VERSION = "draft-3"


def get_dialect(version: str) -> CWLDialect:
    if version not in DIALECTS:
        raise WorkflowDefinitionException(f"Unsupported cwlVersion `{version}`")
    return DIALECTS[version]


def _get_doc(process: MutableMapping[str, Any], dialect: CWLDialect) -> str | None:
    return get_doc(process, dialect.doc, "doc")


def _iterate(
    value: Any, map_predicate: str
) -> Iterable[tuple[str, MutableMapping[str, Any]]]:
    """Iterate over the entries of a CWL field written either in list or in map form."""
    if isinstance(value, MutableMapping):
        for name, entry in value.items():
            yield str(name), (
                entry
                if isinstance(entry, MutableMapping)
                else {map_predicate: entry}
            )
    elif isinstance(value, MutableSequence):
        for entry in value:
            if isinstance(entry, MutableMapping):
                yield str(entry.get("id", "")), entry
            else:
                yield str(entry), {}


class ParsingContext:
    __slots__ = ("location", "graph", "version", "dialect", "prefix")

    def __init__(
        self,
        location: str,
        graph: MutableSequence[MutableMapping[str, Any]] | None,
        version: str,
        prefix: str | None = None,
    ):
        self.location: str = location
        self.graph: MutableSequence[MutableMapping[str, Any]] | None = graph
        self.version: str = version
        self.dialect: CWLDialect = get_dialect(version)
        self.prefix: str | None = prefix


class NativeParser:
    """
    Parses CWL documents directly from their YAML tree.

    A parser instance is meant to serve a single parse request: documents
    fetched through the loader are cached for the lifetime of the instance, and
    the stack of documents being visited detects cyclic `run` references.
    """

    def __init__(self, loader: DocumentLoader, single_file_size_limit: int):
        self.loader: DocumentLoader = loader
        self.single_file_size_limit: int = single_file_size_limit
        self.yaml: YAML = YAML(typ="safe")
        self.documents: MutableMapping[str, MutableMapping[str, Any]] = {}
        self.visiting: MutableSequence[str] = []

    def _enter(self, key: str) -> None:
        if key in self.visiting:
            cycle = self.visiting[self.visiting.index(key) :] + [key]
            raise CyclicReferenceException(
                f"Cyclic `run` reference detected: {' -> '.join(cycle)}"
            )
        self.visiting.append(key)

    def _exit(self) -> None:
        self.visiting.pop()

    def _find_packed(
        self,
        graph: MutableSequence[MutableMapping[str, Any]],
        packed_id: str,
        location: str,
    ) -> MutableMapping[str, Any]:
        packed_id = packed_id.lstrip("#")
        for process in graph:
            if isinstance(process, MutableMapping) and (
                get_fragment(str(process.get("id", ""))) == packed_id
            ):
                return process
        raise WorkflowNotFoundException(
            f"Process `#{packed_id}` not found in packed document {location}"
        )

    def _get_port_name(self, raw_name: str, step_id: str, dialect: CWLDialect) -> str:
        name = get_name(raw_name)
        if dialect.separator != "/" and name.startswith(step_id + dialect.separator):
            name = name[len(step_id) + 1 :]
        return name

    def _get_sources(
        self, value: Any, context: ParsingContext, input_names: set[str]
    ) -> MutableSequence[SourceRef]:
        if value is None:
            return []
        sources = []
        for reference in value if isinstance(value, MutableSequence) else [value]:
            reference = str(reference)
            if (
                fragment := get_relative_fragment(reference, context.prefix)
            ) in input_names:
                sources.append(SourceRef(fragment))
            else:
                sources.append(
                    SourceRef(
                        *split_source(
                            reference, context.prefix, context.dialect.separator
                        )
                    )
                )
        return sources

    def _load(self, location: str) -> MutableMapping[str, Any]:
        if location not in self.documents:
            text = self.loader.load(location, self.single_file_size_limit)
            try:
                document = self.yaml.load(text)
            except YAMLError as e:
                raise WorkflowDefinitionException(
                    f"Document {location} is not valid YAML: {e}"
                ) from e
            if not isinstance(document, MutableMapping):
                raise WorkflowDefinitionException(
                    f"Document {location} does not describe a CWL process"
                )
            self.documents[location] = document
        return self.documents[location]

    def _parse_ports(
        self,
        ports: Any,
        context: ParsingContext,
        source_field: str | None = None,
        input_names: set[str] | None = None,
    ) -> MutableSequence[PortFacts]:
        facts = []
        for raw_name, port in _iterate(ports, "type"):
            facts.append(
                PortFacts(
                    name=get_name(raw_name),
                    type=type_to_string(port.get("type")),
                    label=port.get("label"),
                    doc=_get_doc(port, context.dialect),
                    sources=(
                        self._get_sources(port.get(source_field), context, input_names)
                        if source_field
                        else []
                    ),
                    default="default" in port,
                )
            )
        return facts

    def _parse_run(
        self, run: Any, context: ParsingContext
    ) -> tuple[str | None, str | None, MutableSequence[str] | None]:
        if isinstance(run, MutableMapping) and ("$import" in run or "import" in run):
            run = run.get("$import", run.get("import"))
        if run is None:
            return None, None, None
        # Inline process
        if isinstance(run, MutableMapping):
            run_id = run.get("id")
            key = f"{context.location}#{get_fragment(run_id) if run_id else id(run)}"
            self._parse_process(
                run,
                key,
                ParsingContext(
                    location=context.location,
                    graph=context.graph,
                    version=normalize_version(run.get("cwlVersion"))
                    or context.version,
                    prefix=get_fragment(run_id) if run_id else None,
                ),
            )
            return run_id, run.get("class"), self._get_input_names(run)
        run = str(run)
        # Process in the same packed document
        if run.startswith("#") and context.graph is not None:
            process = self._find_packed(context.graph, run, context.location)
            run_context = ParsingContext(
                location=context.location,
                graph=context.graph,
                version=context.version,
                prefix=get_fragment(run),
            )
            key = context.location + run
        # External document
        else:
            path, _, fragment = run.partition("#")
            location = self.loader.resolve(context.location, path)
            key = f"{location}#{fragment}" if fragment else location
            document = self._load(location)
            version = normalize_version(document.get("cwlVersion")) or context.version
            if "$graph" in document:
                process = self._find_packed(
                    document["$graph"], fragment or DEFAULT_PACKED_ID, location
                )
                prefix = get_fragment(str(process.get("id")))
            else:
                process = document
                prefix = get_fragment(process["id"]) if "id" in process else None
            run_context = ParsingContext(
                location=location,
                graph=document.get("$graph"),
                version=version,
                prefix=prefix,
            )
        self._parse_process(process, key, run_context)
        return run, process.get("class"), self._get_input_names(process)

    def _get_input_names(self, process: MutableMapping[str, Any]) -> MutableSequence[str]:
        return [get_name(name) for name, _ in _iterate(process.get("inputs"), "type")]

    def _parse_process(
        self, process: MutableMapping[str, Any], key: str, context: ParsingContext
    ) -> WorkflowFacts | None:
        if process.get("class") != "Workflow":
            return None
        self._enter(key)
        try:
            return self._parse_workflow(process, context)
        finally:
            self._exit()

    def _parse_step(
        self,
        raw_id: str,
        step: MutableMapping[str, Any],
        context: ParsingContext,
        input_names: set[str],
    ) -> StepFacts:
        step_id = get_name(raw_id)
        dialect = context.dialect
        run, run_type, run_inputs = self._parse_run(step.get("run"), context)
        inputs = [
            PortFacts(
                name=self._get_port_name(raw_name, step_id, dialect),
                label=port.get("label"),
                doc=_get_doc(port, dialect),
                sources=self._get_sources(port.get("source"), context, input_names),
                default="default" in port,
            )
            for raw_name, port in _iterate(step.get(dialect.step_inputs), "source")
        ]
        outputs = [
            self._get_port_name(raw_name, step_id, dialect)
            for raw_name, _ in _iterate(step.get(dialect.step_outputs), "id")
        ]
        scatter = step.get("scatter") or []
        return StepFacts(
            id=step_id,
            label=step.get("label"),
            doc=_get_doc(step, dialect),
            run=run,
            run_type=run_type,
            run_inputs=run_inputs,
            inputs=inputs,
            outputs=outputs,
            scatter=[
                self._get_port_name(str(s), step_id, dialect)
                for s in (scatter if isinstance(scatter, MutableSequence) else [scatter])
            ],
        )

    def _parse_workflow(
        self, process: MutableMapping[str, Any], context: ParsingContext
    ) -> WorkflowFacts:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Parsing workflow {context.location} "
                f"(prefix: {context.prefix}, dialect: {context.dialect.name})"
            )
        facts = WorkflowFacts(
            label=process.get("label"),
            doc=_get_doc(process, context.dialect),
            cwl_version=context.version,
        )
        facts.inputs = self._parse_ports(process.get("inputs"), context)
        input_names = {p.name for p in facts.inputs}
        facts.outputs = self._parse_ports(
            process.get("outputs"),
            context,
            source_field=context.dialect.output_source,
            input_names=input_names,
        )
        for raw_id, step in _iterate(process.get("steps"), "run"):
            facts.steps.append(self._parse_step(raw_id, step, context, input_names))
        return facts

    def parse(self, location: str, packed_id: str | None = None) -> WorkflowFacts:
        document = self._load(location)
        version = normalize_version(document.get("cwlVersion")) or DEFAULT_VERSION
        if "$graph" in document:
            packed_id = (packed_id or DEFAULT_PACKED_ID).lstrip("#")
            process = self._find_packed(document["$graph"], packed_id, location)
            key = f"{location}#{packed_id}"
        elif packed_id is not None:
            raise WorkflowNotFoundException(
                f"Document {location} is not packed: cannot select `#{packed_id}`"
            )
        else:
            process = document
            key = location
        if process.get("class") != "Workflow":
            raise WorkflowDefinitionException(
                f"Document {location} describes a {process.get('class')}, not a Workflow"
            )
        context = ParsingContext(
            location=location,
            graph=document.get("$graph"),
            version=version,
            prefix=get_fragment(str(process["id"])) if "id" in process else None,
        )
        facts = self._parse_process(process, key, context)
        facts.packed_id = packed_id
        return facts
