from __future__ import annotations

import pytest

from cwlview.cwl.service import CWLService
from cwlview.loader import FileSystemLoader
from tests.utils.normalizer import CannedNormalizer


@pytest.fixture
def loader() -> FileSystemLoader:
    return FileSystemLoader()


@pytest.fixture
def normalizer() -> CannedNormalizer:
    return CannedNormalizer()


@pytest.fixture
def service(loader: FileSystemLoader, normalizer: CannedNormalizer) -> CWLService:
    return CWLService(loader=loader, normalizer=normalizer)
