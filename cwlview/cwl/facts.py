from __future__ import annotations

from collections.abc import MutableMapping, MutableSequence


class SourceRef:
    """A pointer to an upstream port: a workflow input (`port` is None) or a step output."""

    __slots__ = ("id", "port")

    def __init__(self, id: str, port: str | None = None):
        self.id: str = id
        self.port: str | None = port

    def __eq__(self, other):
        if not isinstance(other, SourceRef):
            return False
        return self.id == other.id and self.port == other.port

    def __hash__(self):
        return hash((self.id, self.port))

    def __repr__(self):
        return f"{self.id}/{self.port}" if self.port else self.id


class PortFacts:
    __slots__ = ("name", "type", "label", "doc", "sources", "default")

    def __init__(
        self,
        name: str,
        type: str | None = None,
        label: str | None = None,
        doc: str | None = None,
        sources: MutableSequence[SourceRef] | None = None,
        default: bool = False,
    ):
        self.name: str = name
        self.type: str | None = type
        self.label: str | None = label
        self.doc: str | None = doc
        self.sources: MutableSequence[SourceRef] = sources or []
        self.default: bool = default


class StepFacts:
    __slots__ = (
        "id",
        "label",
        "doc",
        "run",
        "run_type",
        "run_inputs",
        "inputs",
        "outputs",
        "scatter",
    )

    def __init__(
        self,
        id: str,
        label: str | None = None,
        doc: str | None = None,
        run: str | None = None,
        run_type: str | None = None,
        run_inputs: MutableSequence[str] | None = None,
        inputs: MutableSequence[PortFacts] | None = None,
        outputs: MutableSequence[str] | None = None,
        scatter: MutableSequence[str] | None = None,
    ):
        self.id: str = id
        self.label: str | None = label
        self.doc: str | None = doc
        self.run: str | None = run
        self.run_type: str | None = run_type
        # Input names declared by the `run` target, when known
        self.run_inputs: MutableSequence[str] | None = run_inputs
        self.inputs: MutableSequence[PortFacts] = inputs or []
        self.outputs: MutableSequence[str] = outputs or []
        self.scatter: MutableSequence[str] = scatter or []


class WorkflowFacts:
    """Structural facts extracted by a parser, before any resolution takes place."""

    __slots__ = (
        "label",
        "doc",
        "cwl_version",
        "packed_id",
        "inputs",
        "outputs",
        "steps",
    )

    def __init__(
        self,
        label: str | None = None,
        doc: str | None = None,
        cwl_version: str | None = None,
        packed_id: str | None = None,
    ):
        self.label: str | None = label
        self.doc: str | None = doc
        self.cwl_version: str | None = cwl_version
        self.packed_id: str | None = packed_id
        self.inputs: MutableSequence[PortFacts] = []
        self.outputs: MutableSequence[PortFacts] = []
        self.steps: MutableSequence[StepFacts] = []

    def edges(self) -> set[tuple[str, str, str]]:
        """Set of (upstream ID, step ID, step input port) data edges."""
        return {
            (source.id, step.id, port.name)
            for step in self.steps
            for port in step.inputs
            for source in port.sources
        }

    def names(self) -> MutableMapping[str, set[str]]:
        return {
            "inputs": {p.name for p in self.inputs},
            "outputs": {p.name for p in self.outputs},
            "steps": {s.id for s in self.steps},
        }
