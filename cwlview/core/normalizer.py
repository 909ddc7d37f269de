from __future__ import annotations

from abc import ABC, abstractmethod


class CWLNormalizer(ABC):
    """External conformance tool boundary.

    Both methods receive a dereferenceable location (optionally carrying a
    `#fragment` that selects a process in a packed document) and return
    opaque text. Failures are raised as `CWLValidationException`.
    """

    @abstractmethod
    def pack(self, location: str) -> str: ...

    @abstractmethod
    def to_rdf(self, location: str) -> str: ...
