from __future__ import annotations

from collections.abc import MutableMapping, MutableSequence
from typing import Any

from cwlview.cwl.service import DEFAULT_SINGLE_FILE_SIZE_LIMIT


class ViewerConfig:
    __slots__ = ("single_file_size_limit", "packed_id", "cwltool_command", "cwltool_options")

    def __init__(self, config: MutableMapping[str, Any] | None = None) -> None:
        config = config or {}
        self.single_file_size_limit: int = config.get(
            "singleFileSizeLimit", DEFAULT_SINGLE_FILE_SIZE_LIMIT
        )
        self.packed_id: str | None = config.get("packedId")
        cwltool = config.get("cwltool", {})
        self.cwltool_command: str = cwltool.get("command", "cwltool")
        self.cwltool_options: MutableSequence[str] | None = cwltool.get("options")
