from __future__ import annotations

import logging
from collections.abc import MutableMapping, MutableSequence

from cwlview.core.exception import UnresolvedReferenceWarning
from cwlview.core.workflow import CWLProcess, Element, Step, Workflow
from cwlview.cwl.facts import PortFacts, StepFacts, WorkflowFacts
from cwlview.log_handler import logger


def _unique(values: MutableSequence[str]) -> MutableSequence[str]:
    return list(dict.fromkeys(values))


class WorkflowBuilder:
    """
    Turns the facts extracted by either parser into a `Workflow`.

    Port names keep their first occurrence, and every source reference is
    resolved against the workflow inputs and the output ports of the other
    steps. References that cannot be resolved are kept in the `source_ids` of
    their element, listed in its `unresolved_ids` and reported as warnings.
    Cycles are not rejected.
    """

    def __init__(self) -> None:
        self.warnings: MutableSequence[UnresolvedReferenceWarning] = []

    def _build_element(
        self,
        port: PortFacts,
        element_name: str,
        inputs: MutableMapping[str, Element],
        step_outputs: MutableMapping[str, MutableSequence[str]],
    ) -> Element:
        source_ids = []
        resolved = set()
        for source in port.sources:
            if source.id not in source_ids:
                source_ids.append(source.id)
            if source.port is None:
                if source.id in inputs:
                    resolved.add(source.id)
                else:
                    self._warn(element_name, str(source), "is not a workflow input")
            elif source.id not in step_outputs:
                self._warn(element_name, str(source), "does not refer to a known step")
            elif step_outputs[source.id] and source.port not in step_outputs[source.id]:
                self._warn(
                    element_name,
                    str(source),
                    f"is not an output port of step `{source.id}`",
                )
            else:
                resolved.add(source.id)
        return Element(
            type=port.type,
            label=port.label,
            doc=port.doc,
            source_ids=source_ids,
            default=port.default,
            unresolved_ids=[s for s in source_ids if s not in resolved],
        )

    def _build_step(
        self,
        step: StepFacts,
        inputs: MutableMapping[str, Element],
        step_outputs: MutableMapping[str, MutableSequence[str]],
    ) -> Step:
        sources = {}
        for port in step.inputs:
            if port.name in sources:
                continue
            element_name = f"{step.id}/{port.name}"
            if step.run_inputs is not None and port.name not in step.run_inputs:
                self._warn(
                    element_name, port.name, f"is not an input of `{step.run}`"
                )
            sources[port.name] = self._build_element(
                port, element_name, inputs, step_outputs
            )
        return Step(
            id=step.id,
            label=step.label,
            doc=step.doc,
            run=step.run,
            run_type=CWLProcess.from_name(step.run_type),
            sources=sources,
            outputs=_unique(step.outputs),
            scatter=_unique(step.scatter),
        )

    def _warn(self, element: str, reference: str, reason: str) -> None:
        warning = UnresolvedReferenceWarning(element, reference, reason)
        if logger.isEnabledFor(logging.WARNING):
            logger.warning(str(warning))
        self.warnings.append(warning)

    def build(self, facts: WorkflowFacts) -> Workflow:
        self.warnings = []
        inputs = {}
        for port in facts.inputs:
            if port.name not in inputs:
                inputs[port.name] = Element(
                    type=port.type,
                    label=port.label,
                    doc=port.doc,
                    default=port.default,
                )
        step_outputs = {}
        for step in facts.steps:
            step_outputs.setdefault(step.id, _unique(step.outputs))
        steps = {}
        for step in facts.steps:
            if step.id not in steps:
                steps[step.id] = self._build_step(step, inputs, step_outputs)
        outputs = {}
        for port in facts.outputs:
            if port.name not in outputs:
                outputs[port.name] = self._build_element(
                    port, port.name, inputs, step_outputs
                )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Built workflow model with {len(inputs)} inputs, "
                f"{len(outputs)} outputs and {len(steps)} steps"
            )
        return Workflow(
            label=facts.label,
            doc=facts.doc,
            inputs=inputs,
            outputs=outputs,
            steps=steps,
            packed_id=facts.packed_id,
            cwl_version=facts.cwl_version,
            warnings=list(self.warnings),
        )
