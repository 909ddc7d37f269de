from __future__ import annotations

import os

import pytest

from cwlview.core.exception import (
    CyclicReferenceException,
    WorkflowDefinitionException,
    WorkflowNotFoundException,
)
from cwlview.core.workflow import CWLProcess
from cwlview.cwl.native import NativeParser
from cwlview.cwl.service import CWLService
from cwlview.loader import FileSystemLoader
from tests.utils.data import get_data_path

LOBSTR_EDGES = {
    ("p1", "lobSTR"),
    ("p2", "lobSTR"),
    ("output_prefix", "lobSTR"),
    ("reference", "lobSTR"),
    ("rg-sample", "lobSTR"),
    ("rg-lib", "lobSTR"),
    ("lobSTR", "samsort"),
    ("samsort", "samindex"),
    ("samindex", "allelotype"),
    ("reference", "allelotype"),
    ("output_prefix", "allelotype"),
    ("noise_model", "allelotype"),
    ("strinfo", "allelotype"),
    ("samindex", "bam"),
    ("lobSTR", "bam_stats"),
    ("allelotype", "vcf"),
    ("allelotype", "vcf_stats"),
}


def _write(directory, name: str, content: str) -> str:
    path = os.path.join(directory, name)
    with open(path, "w") as f:
        f.write(content)
    return path


def test_hello_world(service: CWLService):
    """Check that a simple v1.0 workflow is parsed with its metadata and data links."""
    workflow = service.parse_workflow_native(
        str(get_data_path("hello", "hello.cwl"))
    )
    assert workflow.label == "Hello World"
    assert workflow.doc == "Puts a message into a file using echo"
    assert workflow.cwl_version == "v1.0"
    assert workflow.packed_id is None
    assert list(workflow.inputs) == ["message"]
    assert workflow.inputs["message"].type == "string"
    assert workflow.inputs["message"].default
    assert list(workflow.outputs) == ["output"]
    assert workflow.outputs["output"].source_ids == ["echo"]
    step = workflow.steps["echo"]
    assert step.run == "echo.cwl"
    assert step.run_type == CWLProcess.COMMANDLINETOOL
    assert step.outputs == ["output"]
    assert step.sources["message"].source_ids == ["message"]
    assert not step.is_scattered
    assert workflow.edges() == [("message", "echo"), ("echo", "output")]
    assert workflow.warnings == []


def test_draft3_workflow(service: CWLService):
    """Check that draft-3 documents are parsed with their own field names and separators."""
    workflow = service.parse_workflow_native(
        str(get_data_path("lobstr-draft3", "lobSTR-workflow.cwl"))
    )
    assert workflow.cwl_version == "draft-3"
    assert (
        workflow.doc
        == "Align paired end reads with lobSTR and call STR genotypes with allelotype"
    )
    assert list(workflow.inputs) == [
        "p1",
        "p2",
        "output_prefix",
        "reference",
        "rg-sample",
        "rg-lib",
        "strinfo",
        "noise_model",
    ]
    assert workflow.inputs["p1"].type == "File[]?"
    assert workflow.inputs["p2"].type == "File[]?"
    assert workflow.inputs["rg-sample"].doc == "Use this in the read group SM tag"
    assert list(workflow.outputs) == ["bam", "bam_stats", "vcf", "vcf_stats"]
    assert list(workflow.steps) == ["lobSTR", "samsort", "samindex", "allelotype"]
    assert workflow.steps["lobSTR"].run == "lobSTR-tool.cwl"
    assert workflow.steps["samindex"].sources["input"].source_ids == ["samsort"]
    assert workflow.steps["samsort"].sources["output_name"].default
    assert workflow.steps["samsort"].sources["output_name"].source_ids == []
    assert workflow.steps["lobSTR"].outputs == ["bam", "bam_stats"]
    assert set(workflow.edges()) == LOBSTR_EDGES
    assert len(workflow.edges()) == len(LOBSTR_EDGES)
    assert workflow.warnings == []


def test_draft3_and_v1_equivalence(service: CWLService):
    """Check that the same workflow written in draft-3 and in v1.0 yields the same model."""
    draft3 = service.parse_workflow_native(
        str(get_data_path("lobstr-draft3", "lobSTR-workflow.cwl"))
    )
    v1 = service.parse_workflow_native(
        str(get_data_path("lobstr-v1", "lobSTR-workflow.cwl"))
    )
    assert v1.cwl_version == "v1.0"
    assert list(draft3.inputs) == list(v1.inputs)
    assert list(draft3.outputs) == list(v1.outputs)
    assert list(draft3.steps) == list(v1.steps)
    assert {k: e.type for k, e in draft3.inputs.items()} == {
        k: e.type for k, e in v1.inputs.items()
    }
    assert draft3.edges() == v1.edges()


def test_packed_workflow(service: CWLService):
    """Check that the `#main` process is selected by default in packed documents."""
    location = str(get_data_path("packed", "packed.cwl"))
    workflow = service.parse_workflow_native(location)
    assert workflow.label == "Packed Hello World"
    assert workflow.packed_id == "main"
    assert list(workflow.inputs) == ["message"]
    assert workflow.steps["echo"].run == "#echo.cwl"
    assert workflow.steps["echo"].run_type == CWLProcess.COMMANDLINETOOL
    assert workflow.edges() == [("message", "echo"), ("echo", "output")]
    assert service.parse_workflow_native(location, "#main").edges() == workflow.edges()


def test_packed_workflow_selection(service: CWLService):
    """Check that a process other than `#main` can be selected in packed documents."""
    workflow = service.parse_workflow_native(
        str(get_data_path("packed", "packed.cwl")), "twice"
    )
    assert workflow.label == "Echo twice"
    assert workflow.packed_id == "twice"
    assert workflow.steps["first"].run_type == CWLProcess.WORKFLOW
    assert workflow.outputs["outputs"].type == "File[]"
    assert workflow.outputs["outputs"].source_ids == ["first", "second"]
    assert workflow.warnings == []


def test_packed_workflow_not_found(service: CWLService):
    """Check that selecting a missing process in a packed document fails."""
    with pytest.raises(WorkflowNotFoundException):
        service.parse_workflow_native(
            str(get_data_path("packed", "packed.cwl")), "missing"
        )


def test_packed_id_on_plain_document(service: CWLService):
    """Check that selecting a process in a document that is not packed fails."""
    with pytest.raises(WorkflowNotFoundException):
        service.parse_workflow_native(str(get_data_path("hello", "hello.cwl")), "main")


def test_not_a_workflow(service: CWLService):
    """Check that parsing a tool document as a workflow fails."""
    with pytest.raises(WorkflowDefinitionException):
        service.parse_workflow_native(str(get_data_path("hello", "echo.cwl")))


def test_cyclic_run_reference(service: CWLService):
    """Check that two workflows running each other are rejected."""
    with pytest.raises(CyclicReferenceException) as exc_info:
        service.parse_workflow_native(str(get_data_path("cycle", "first.cwl")))
    assert "first.cwl -> " in str(exc_info.value)
    assert "second.cwl -> " in str(exc_info.value)


def test_self_run_reference(service: CWLService):
    """Check that a packed workflow running itself is rejected."""
    with pytest.raises(CyclicReferenceException):
        service.parse_workflow_native(str(get_data_path("cycle", "self.cwl")))


def test_cyclic_dataflow(service: CWLService):
    """Check that cycles in the data flow between steps are kept in the model."""
    workflow = service.parse_workflow_native(
        str(get_data_path("cycle", "dataflow.cwl"))
    )
    assert workflow.inputs == {}
    assert workflow.steps["ping"].run_type == CWLProcess.EXPRESSIONTOOL
    assert workflow.steps["ping"].run is None
    assert workflow.edges() == [("pong", "ping"), ("ping", "pong"), ("ping", "result")]
    assert workflow.warnings == []


def test_dangling_references(service: CWLService):
    """Check that unresolved references are kept, flagged and reported as warnings."""
    workflow = service.parse_workflow_native(
        str(get_data_path("dangling", "dangling.cwl"))
    )
    step = workflow.steps["echo"]
    assert step.sources["first"].source_ids == ["missing_input"]
    assert step.sources["first"].unresolved_ids == ["missing_input"]
    assert step.sources["second"].unresolved_ids == ["ghost"]
    assert workflow.outputs["result"].source_ids == ["echo"]
    assert workflow.outputs["result"].unresolved_ids == ["echo"]
    assert workflow.edges() == []
    assert len(workflow.warnings) == 3
    assert {w.element for w in workflow.warnings} == {
        "echo/first",
        "echo/second",
        "result",
    }


def test_unknown_step_input(tmp_path):
    """Check that step inputs not declared by the `run` target are reported."""
    _write(
        tmp_path,
        "tool.cwl",
        "cwlVersion: v1.2\n"
        "class: CommandLineTool\n"
        "baseCommand: cat\n"
        "inputs:\n"
        "  file: File\n"
        "outputs: []\n",
    )
    location = _write(
        tmp_path,
        "main.cwl",
        "cwlVersion: v1.2\n"
        "class: Workflow\n"
        "inputs:\n"
        "  file: File\n"
        "outputs: []\n"
        "steps:\n"
        "  cat:\n"
        "    run: tool.cwl\n"
        "    in:\n"
        "      file: file\n"
        "      extra: file\n"
        "    out: []\n",
    )
    workflow = CWLService(loader=FileSystemLoader()).parse_workflow_native(location)
    assert workflow.edges() == [("file", "cat"), ("file", "cat")]
    assert len(workflow.warnings) == 1
    assert workflow.warnings[0].element == "cat/extra"


def test_missing_version_defaults_to_draft3(tmp_path):
    """Check that a root document without `cwlVersion` is read as a draft-3 document."""
    location = _write(
        tmp_path,
        "main.cwl",
        "class: Workflow\n"
        "inputs:\n"
        "  - id: '#text'\n"
        "    type: string\n"
        "    description: Some text\n"
        "outputs:\n"
        "  - id: '#out'\n"
        "    type: string\n"
        "    source: '#upper.out'\n"
        "steps:\n"
        "  - id: '#upper'\n"
        "    run:\n"
        "      class: ExpressionTool\n"
        "      inputs:\n"
        "        - id: '#text'\n"
        "          type: string\n"
        "      outputs:\n"
        "        - id: '#out'\n"
        "          type: string\n"
        "      expression: '$({out: inputs.text.toUpperCase()})'\n"
        "    inputs:\n"
        "      - {id: '#upper.text', source: '#text'}\n"
        "    outputs:\n"
        "      - {id: '#upper.out'}\n",
    )
    facts = NativeParser(loader=FileSystemLoader(), single_file_size_limit=1024).parse(
        location
    )
    assert facts.cwl_version == "draft-3"
    assert facts.inputs[0].doc == "Some text"
    assert facts.edges() == {("text", "upper", "text")}
    assert facts.outputs[0].sources[0].id == "upper"
    assert facts.outputs[0].sources[0].port == "out"


def test_invalid_yaml(tmp_path):
    """Check that documents that are not valid YAML are rejected."""
    location = _write(tmp_path, "main.cwl", "class: Workflow\ninputs: [\n")
    with pytest.raises(WorkflowDefinitionException):
        CWLService(loader=FileSystemLoader()).parse_workflow_native(location)


def test_fanin_document_order(tmp_path):
    """Check that multiple sources keep the order in which the document lists them."""
    location = _write(
        tmp_path,
        "main.cwl",
        "cwlVersion: v1.0\n"
        "class: Workflow\n"
        "requirements:\n"
        "  MultipleInputFeatureRequirement: {}\n"
        "inputs:\n"
        "  a: File\n"
        "  b: File\n"
        "outputs:\n"
        "  files:\n"
        "    type: File[]\n"
        "    outputSource: [second/output, first/output]\n"
        "steps:\n"
        "  first:\n"
        "    run: tool.cwl\n"
        "    in: {files: [a]}\n"
        "    out: [output]\n"
        "  second:\n"
        "    run: tool.cwl\n"
        "    in:\n"
        "      files:\n"
        "        source: [b, a]\n"
        "        linkMerge: merge_flattened\n"
        "    out: [output]\n",
    )
    _write(
        tmp_path,
        "tool.cwl",
        "cwlVersion: v1.0\n"
        "class: CommandLineTool\n"
        "baseCommand: cat\n"
        "inputs:\n"
        "  files: File[]\n"
        "outputs:\n"
        "  output: stdout\n",
    )
    workflow = CWLService(loader=FileSystemLoader()).parse_workflow_native(location)
    assert workflow.steps["second"].sources["files"].source_ids == ["b", "a"]
    assert workflow.outputs["files"].source_ids == ["second", "first"]
    assert workflow.edges() == [
        ("a", "first"),
        ("b", "second"),
        ("a", "second"),
        ("second", "files"),
        ("first", "files"),
    ]
    assert workflow.warnings == []


def test_scatter(tmp_path):
    """Check that scattered steps are flagged."""
    location = _write(
        tmp_path,
        "main.cwl",
        "cwlVersion: v1.0\n"
        "class: Workflow\n"
        "requirements:\n"
        "  ScatterFeatureRequirement: {}\n"
        "inputs:\n"
        "  messages: string[]\n"
        "outputs:\n"
        "  outputs:\n"
        "    type: File[]\n"
        "    outputSource: echo/output\n"
        "steps:\n"
        "  echo:\n"
        "    run:\n"
        "      class: CommandLineTool\n"
        "      baseCommand: echo\n"
        "      inputs:\n"
        "        message: string\n"
        "      outputs:\n"
        "        output: stdout\n"
        "    scatter: message\n"
        "    in:\n"
        "      message: messages\n"
        "    out: [output]\n",
    )
    workflow = CWLService(loader=FileSystemLoader()).parse_workflow_native(location)
    assert workflow.steps["echo"].scatter == ["message"]
    assert workflow.steps["echo"].is_scattered
    assert workflow.inputs["messages"].type == "string[]"
    assert workflow.outputs["outputs"].type == "File[]"
