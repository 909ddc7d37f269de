from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from cwlview.core.exception import SizeLimitExceededException
from cwlview.log_handler import logger


def check_file_size(location: str, size: int, limit: int) -> None:
    if size > limit:
        raise SizeLimitExceededException(path=location, size=size, limit=limit)


class DocumentLoader(ABC):
    """Supplies the raw text of CWL documents given a location reference."""

    @abstractmethod
    def fetch(self, location: str) -> str: ...

    @abstractmethod
    def resolve(self, base: str, reference: str) -> str: ...

    @abstractmethod
    def size(self, location: str) -> int: ...

    def load(self, location: str, size_limit: int) -> str:
        check_file_size(location, self.size(location), size_limit)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Loading document {location}")
        return self.fetch(location)
