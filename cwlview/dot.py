from __future__ import annotations

from collections.abc import MutableMapping

import graphviz

from cwlview.core.workflow import CWLProcess, Element, Step, Workflow

STEP_SHAPES: MutableMapping[CWLProcess | None, str] = {
    CWLProcess.WORKFLOW: "box3d",
    CWLProcess.COMMANDLINETOOL: "box",
    CWLProcess.EXPRESSIONTOOL: "component",
    None: "box",
}

INPUT_COLOR = "#94DDF4"
OUTPUT_COLOR = "#94DDF4"
STEP_COLOR = "#F3CEA1"


def _node_id(kind: str, name: str) -> str:
    # Colons would be read as port separators in edge statements
    return f"{kind}/{name}".replace("%", "%25").replace(":", "%3A")


class DotWriter:
    """
    Writes the DOT description of a workflow graph.

    The output only depends on the workflow model, so the same workflow always
    yields the same text. Unresolved references are skipped and cyclic
    references are plain edges.
    """

    def __init__(self, workflow: Workflow, name: str = "workflow"):
        self.workflow: Workflow = workflow
        self.name: str = name

    def _add_ports(
        self,
        dot: graphviz.Digraph,
        kind: str,
        title: str,
        ports: MutableMapping[str, Element],
        color: str,
    ) -> None:
        if not ports:
            return
        with dot.subgraph(name=f"cluster_{kind}") as cluster:
            cluster.attr(rank="same", style="dashed", label=title)
            for name, element in ports.items():
                cluster.node(
                    _node_id(kind, name),
                    label=name,
                    tooltip=element.label,
                    fillcolor=color,
                )

    def _get_source_node(self, source_id: str) -> str:
        if source_id in self.workflow.steps:
            return _node_id("steps", source_id)
        return _node_id("inputs", source_id)

    def _get_step_attributes(self, step: Step) -> MutableMapping[str, str]:
        attributes = {
            "shape": STEP_SHAPES.get(step.run_type, "box"),
            "fillcolor": STEP_COLOR,
        }
        if step.is_scattered:
            attributes |= {"peripheries": "2", "style": "filled,dashed"}
        return attributes

    def write(self) -> str:
        dot = graphviz.Digraph(name=self.name)
        dot.attr(rankdir="TB", bgcolor="#eeeeee", clusterrank="local")
        dot.attr("node", fontname="Helvetica", fontsize="10", style="filled")
        dot.attr("edge", color="#333333")
        self._add_ports(
            dot, "inputs", "Workflow Inputs", self.workflow.inputs, INPUT_COLOR
        )
        self._add_ports(
            dot, "outputs", "Workflow Outputs", self.workflow.outputs, OUTPUT_COLOR
        )
        for step in self.workflow.steps.values():
            dot.node(
                _node_id("steps", step.id),
                label=step.id,
                tooltip=step.label,
                **self._get_step_attributes(step),
            )
        for step in self.workflow.steps.values():
            for element in step.sources.values():
                for source_id in element.resolved_ids:
                    dot.edge(
                        self._get_source_node(source_id), _node_id("steps", step.id)
                    )
        for name, element in self.workflow.outputs.items():
            for source_id in element.resolved_ids:
                dot.edge(self._get_source_node(source_id), _node_id("outputs", name))
        return dot.source


def create_dot(workflow: Workflow) -> str:
    return DotWriter(workflow).write()
