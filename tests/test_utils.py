from __future__ import annotations

from typing import Any

import pytest

from cwlview.core.workflow import CWLProcess
from cwlview.cwl.facts import SourceRef
from cwlview.cwl.utils import (
    get_cwl_version,
    get_name,
    split_source,
    type_to_string,
)


@pytest.mark.parametrize(
    "cwl_type,expected",
    [
        (None, None),
        ("File", "File"),
        ("File?", "File?"),
        ("File[]", "File[]"),
        ("File[]?", "File[]?"),
        ("https://w3id.org/cwl/cwl#File", "File"),
        (["null", "File"], "File?"),
        ({"type": "array", "items": "File"}, "File[]"),
        (["null", {"type": "array", "items": "File"}], "File[]?"),
        ({"type": "array", "items": ["null", "string"]}, "string?[]"),
        ({"type": "array", "items": {"type": "array", "items": "int"}}, "int[][]"),
        (["string", "int"], "(int | string)"),
        (["null", "string", "int"], "(int | string)?"),
        ({"type": "enum", "symbols": ["a", "b"]}, "enum"),
        ({"type": "record", "fields": []}, "record"),
        ({"type": "File"}, "File"),
    ],
)
def test_type_to_string(cwl_type: Any, expected: str | None):
    """Check that type expressions are rendered in their canonical form."""
    assert type_to_string(cwl_type) == expected


@pytest.mark.parametrize(
    "content,expected",
    [
        ("cwlVersion: v1.0\nclass: Workflow\n", "v1.0"),
        ('cwlVersion: "cwl:draft-3"\nclass: Workflow\n', "draft-3"),
        ('{"cwlVersion": "v1.2", "$graph": []}', "v1.2"),
        ("cwlVersion: 'v1.1'\n", "v1.1"),
        ("class: Workflow\n", None),
    ],
)
def test_get_cwl_version(content: str, expected: str | None):
    """Check that the declared CWL version is extracted from the raw document."""
    assert get_cwl_version(content) == expected


@pytest.mark.parametrize(
    "reference,prefix,separator,expected",
    [
        ("#message", None, "/", ("message", None)),
        ("step/output", None, "/", ("step", "output")),
        ("#main/step/output", "main", "/", ("step", "output")),
        ("file:///wf.cwl#main/message", "main", "/", ("message", None)),
        ("#step.output", None, ".", ("step", "output")),
    ],
)
def test_split_source(
    reference: str, prefix: str | None, separator: str, expected: tuple[str, str | None]
):
    """Check that source references are split into upstream ID and port."""
    assert split_source(reference, prefix, separator) == expected


def test_get_name():
    """Check that names are the last segment of the fragment."""
    assert get_name("file:///wf.cwl#main/step/output") == "output"
    assert get_name("#message") == "message"
    assert get_name("message") == "message"


def test_process_from_name():
    """Check that process classes are recognised from bare names and IRIs."""
    assert CWLProcess.from_name("Workflow") == CWLProcess.WORKFLOW
    assert (
        CWLProcess.from_name("https://w3id.org/cwl/cwl#CommandLineTool")
        == CWLProcess.COMMANDLINETOOL
    )
    assert CWLProcess.from_name("Operation") is None
    assert CWLProcess.from_name(None) is None


def test_source_ref():
    """Check equality and representation of source references."""
    assert SourceRef("step", "out") == SourceRef("step", "out")
    assert len({SourceRef("step", "out"), SourceRef("step", "out")}) == 1
    assert SourceRef("step", "out") != SourceRef("step")
    assert str(SourceRef("step", "out")) == "step/out"
    assert str(SourceRef("message")) == "message"
