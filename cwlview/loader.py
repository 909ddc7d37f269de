from __future__ import annotations

import os

from cwlview.core.exception import LoaderException
from cwlview.core.loader import DocumentLoader


class FileSystemLoader(DocumentLoader):
    def __init__(self, base_directory: str | None = None):
        super().__init__()
        self.base_directory: str | None = base_directory

    def _get_path(self, location: str) -> str:
        if location.startswith("file://"):
            location = location[7:]
        if self.base_directory is not None and not os.path.isabs(location):
            return os.path.join(self.base_directory, location)
        return location

    def fetch(self, location: str) -> str:
        try:
            with open(self._get_path(location), encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise LoaderException(f"Cannot read document {location}: {e}") from e

    def resolve(self, base: str, reference: str) -> str:
        if "://" in reference or os.path.isabs(reference):
            return reference
        scheme = "file://" if base.startswith("file://") else ""
        return scheme + os.path.normpath(
            os.path.join(os.path.dirname(base.removeprefix("file://")), reference)
        )

    def size(self, location: str) -> int:
        try:
            return os.stat(self._get_path(location)).st_size
        except OSError as e:
            raise LoaderException(f"Cannot access document {location}: {e}") from e
