from __future__ import annotations

from collections.abc import MutableMapping, MutableSequence
from enum import Enum
from typing import Any

from cwlview.core.exception import UnresolvedReferenceWarning


class CWLProcess(Enum):
    COMMANDLINETOOL = "CommandLineTool"
    WORKFLOW = "Workflow"
    EXPRESSIONTOOL = "ExpressionTool"

    @classmethod
    def from_name(cls, name: str | None) -> CWLProcess | None:
        if name is None:
            return None
        # Accept both bare class names and IRIs like https://w3id.org/cwl/cwl#Workflow
        name = str(name).split("#")[-1].split("/")[-1]
        for process in cls:
            if process.value == name:
                return process
        return None


class Element:
    __slots__ = ("type", "label", "doc", "source_ids", "default", "unresolved_ids")

    def __init__(
        self,
        type: str | None = None,
        label: str | None = None,
        doc: str | None = None,
        source_ids: MutableSequence[str] | None = None,
        default: bool = False,
        unresolved_ids: MutableSequence[str] | None = None,
    ):
        self.type: str | None = type
        self.label: str | None = label
        self.doc: str | None = doc
        self.source_ids: MutableSequence[str] = source_ids or []
        self.default: bool = default
        self.unresolved_ids: MutableSequence[str] = unresolved_ids or []

    @property
    def resolved_ids(self) -> MutableSequence[str]:
        return [s for s in self.source_ids if s not in self.unresolved_ids]

    def as_dict(self) -> MutableMapping[str, Any]:
        return {
            "type": self.type,
            "label": self.label,
            "doc": self.doc,
            "sourceIDs": list(self.source_ids),
            "default": self.default,
            "unresolvedIDs": list(self.unresolved_ids),
        }


class Step:
    __slots__ = ("id", "label", "doc", "run", "run_type", "sources", "outputs", "scatter")

    def __init__(
        self,
        id: str,
        label: str | None = None,
        doc: str | None = None,
        run: str | None = None,
        run_type: CWLProcess | None = None,
        sources: MutableMapping[str, Element] | None = None,
        outputs: MutableSequence[str] | None = None,
        scatter: MutableSequence[str] | None = None,
    ):
        self.id: str = id
        self.label: str | None = label
        self.doc: str | None = doc
        self.run: str | None = run
        self.run_type: CWLProcess | None = run_type
        self.sources: MutableMapping[str, Element] = sources or {}
        self.outputs: MutableSequence[str] = outputs or []
        self.scatter: MutableSequence[str] = scatter or []

    @property
    def is_scattered(self) -> bool:
        return len(self.scatter) > 0

    def as_dict(self) -> MutableMapping[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "doc": self.doc,
            "run": self.run,
            "runType": self.run_type.value if self.run_type else None,
            "sources": {k: v.as_dict() for k, v in self.sources.items()},
            "outputs": list(self.outputs),
            "scatter": list(self.scatter),
        }


class Workflow:
    """
    The graph model of a CWL workflow.

    Instances are fully populated by the `WorkflowBuilder` and are not meant to be
    modified afterwards. Unresolved source references are listed both in the
    `unresolved_ids` of the affected `Element` and in `warnings`.
    """

    __slots__ = (
        "label",
        "doc",
        "inputs",
        "outputs",
        "steps",
        "packed_id",
        "cwl_version",
        "warnings",
    )

    def __init__(
        self,
        label: str | None = None,
        doc: str | None = None,
        inputs: MutableMapping[str, Element] | None = None,
        outputs: MutableMapping[str, Element] | None = None,
        steps: MutableMapping[str, Step] | None = None,
        packed_id: str | None = None,
        cwl_version: str | None = None,
        warnings: MutableSequence[UnresolvedReferenceWarning] | None = None,
    ):
        self.label: str | None = label
        self.doc: str | None = doc
        self.inputs: MutableMapping[str, Element] = inputs or {}
        self.outputs: MutableMapping[str, Element] = outputs or {}
        self.steps: MutableMapping[str, Step] = steps or {}
        self.packed_id: str | None = packed_id
        self.cwl_version: str | None = cwl_version
        self.warnings: MutableSequence[UnresolvedReferenceWarning] = warnings or []

    def edges(self) -> MutableSequence[tuple[str, str]]:
        """Resolved data-flow edges as (upstream, downstream) pairs, in model order.

        Steps are named by their ID, workflow ports by their name. Outputs are
        listed after step inputs.
        """
        edges = []
        for step in self.steps.values():
            for element in step.sources.values():
                for source_id in element.resolved_ids:
                    edges.append((source_id, step.id))
        for name, element in self.outputs.items():
            for source_id in element.resolved_ids:
                edges.append((source_id, name))
        return edges

    def as_dict(self) -> MutableMapping[str, Any]:
        return {
            "label": self.label,
            "doc": self.doc,
            "cwlVersion": self.cwl_version,
            "packedID": self.packed_id,
            "inputs": {k: v.as_dict() for k, v in self.inputs.items()},
            "outputs": {k: v.as_dict() for k, v in self.outputs.items()},
            "steps": {k: v.as_dict() for k, v in self.steps.items()},
            "warnings": [str(w) for w in self.warnings],
        }


class WorkflowOverview:
    __slots__ = ("file_name", "label", "doc", "cwl_version")

    def __init__(
        self,
        file_name: str,
        label: str | None = None,
        doc: str | None = None,
        cwl_version: str | None = None,
    ):
        self.file_name: str = file_name
        self.label: str | None = label
        self.doc: str | None = doc
        self.cwl_version: str | None = cwl_version

    def as_dict(self) -> MutableMapping[str, Any]:
        return {
            "fileName": self.file_name,
            "label": self.label,
            "doc": self.doc,
            "cwlVersion": self.cwl_version,
        }
