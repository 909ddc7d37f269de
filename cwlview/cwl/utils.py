from __future__ import annotations

import posixpath
import re
from collections.abc import MutableMapping, MutableSequence
from typing import Any

CWL_VERSION_REGEX = re.compile(r"cwlVersion\"?\s*:\s*[\"']?(?:cwl:)?([^\s\"',}]+)")


def _local_name(name: str) -> str:
    return name.split("#")[-1].split(posixpath.sep)[-1]


def _type_to_string(cwl_type: Any) -> tuple[str, bool]:
    if isinstance(cwl_type, str):
        optional = cwl_type.endswith("?")
        return _local_name(cwl_type[:-1] if optional else cwl_type), optional
    elif isinstance(cwl_type, MutableSequence):
        optional = False
        members = []
        for t in cwl_type:
            if t == "null":
                optional = True
                continue
            member, member_optional = _type_to_string(t)
            optional = optional or member_optional
            if member not in members:
                members.append(member)
        if not members:
            return "null", False
        # Unions are sorted, as triple stores do not preserve their order
        members = sorted(members)
        return (
            members[0] if len(members) == 1 else f"({' | '.join(members)})"
        ), optional
    elif isinstance(cwl_type, MutableMapping):
        kind = cwl_type.get("type")
        if kind == "array":
            items, items_optional = _type_to_string(cwl_type.get("items", "Any"))
            return (items + "?" if items_optional else items) + "[]", False
        elif kind in ("enum", "record"):
            return kind, False
        elif kind is not None:
            return _type_to_string(kind)
    return "Any", False


def type_to_string(cwl_type: Any) -> str | None:
    """
    Render a CWL type expression in the canonical form used by both parsers:
    `T[]` for arrays, `T?` for optional types and `T[]?` for optional arrays,
    regardless of whether the document uses the shorthand or the expanded form.
    """
    if cwl_type is None:
        return None
    type_str, optional = _type_to_string(cwl_type)
    return type_str + "?" if optional else type_str


def get_cwl_version(content: str) -> str | None:
    if match := CWL_VERSION_REGEX.search(content):
        return match.group(1)
    return None


def normalize_version(version: str | None) -> str | None:
    if version is None:
        return None
    version = str(version)
    return version[4:] if version.startswith("cwl:") else version


def get_doc(process: MutableMapping[str, Any], *fields: str) -> str | None:
    """Return the first documentation field found, joining list-form values with newlines."""
    for field in fields:
        if (doc := process.get(field)) is not None:
            if isinstance(doc, MutableSequence):
                return "\n".join(str(d) for d in doc)
            return str(doc)
    return None


def get_fragment(reference: str) -> str:
    return reference.split("#")[-1]


def get_name(reference: str) -> str:
    return get_fragment(reference).split(posixpath.sep)[-1]


def get_relative_fragment(reference: str, prefix: str | None) -> str:
    fragment = get_fragment(reference)
    if prefix and fragment.startswith(prefix + posixpath.sep):
        fragment = fragment[len(prefix) + 1 :]
    return fragment


def split_source(
    reference: str, prefix: str | None = None, separator: str = posixpath.sep
) -> tuple[str, str | None]:
    """Split a source reference into its upstream ID and, for step outputs, the port name."""
    fragment = get_relative_fragment(reference, prefix)
    if separator in fragment:
        parts = fragment.split(separator)
        return parts[-2], parts[-1]
    return fragment, None
