from __future__ import annotations

import logging
import posixpath
from collections.abc import MutableMapping
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from cwlview.core.exception import CWLValidationException, WorkflowDefinitionException
from cwlview.core.loader import DocumentLoader
from cwlview.core.normalizer import CWLNormalizer
from cwlview.core.workflow import Workflow, WorkflowOverview
from cwlview.cwl.builder import WorkflowBuilder
from cwlview.cwl.native import DEFAULT_PACKED_ID, NativeParser
from cwlview.cwl.rdf import RDFService
from cwlview.cwl.utils import get_cwl_version, get_doc, get_fragment
from cwlview.log_handler import logger

DEFAULT_SINGLE_FILE_SIZE_LIMIT = 5242880


def get_packed_url(location: str, packed_id: str | None = None) -> str:
    url = location if "://" in location else Path(location).absolute().as_uri()
    if packed_id:
        if packed_id[0] != "#":
            url += "#"
        url += packed_id
    return url


class CWLService:
    def __init__(
        self,
        loader: DocumentLoader,
        normalizer: CWLNormalizer | None = None,
        single_file_size_limit: int = DEFAULT_SINGLE_FILE_SIZE_LIMIT,
    ):
        self.loader: DocumentLoader = loader
        self.normalizer: CWLNormalizer | None = normalizer
        self.single_file_size_limit: int = single_file_size_limit

    def _get_normalizer(self) -> CWLNormalizer:
        if self.normalizer is None:
            raise CWLValidationException(
                "No normalization tool has been configured for this service"
            )
        return self.normalizer

    def get_annotations(
        self, location: str, packed_id: str | None = None
    ) -> MutableMapping[str, str]:
        """Return the packed document and its RDF serialisation, keyed by file name."""
        url = get_packed_url(location, packed_id)
        normalizer = self._get_normalizer()
        annotations = {}
        for file_name, method in (
            ("merged.cwl", normalizer.pack),
            ("workflow.ttl", normalizer.to_rdf),
        ):
            try:
                annotations[file_name] = method(url)
            except CWLValidationException as e:
                if logger.isEnabledFor(logging.ERROR):
                    logger.error(f"FAILED to produce {file_name} for {url}: {e}")
        return annotations

    def get_workflow_overview(self, location: str) -> WorkflowOverview:
        content = self.loader.load(location, self.single_file_size_limit)
        try:
            document = YAML(typ="safe").load(content)
        except YAMLError as e:
            raise WorkflowDefinitionException(
                f"Document {location} is not valid YAML: {e}"
            ) from e
        if not isinstance(document, MutableMapping):
            raise WorkflowDefinitionException(
                f"Document {location} does not describe a CWL process"
            )
        if "$graph" in document:
            document = next(
                (
                    p
                    for p in document["$graph"]
                    if isinstance(p, MutableMapping)
                    and get_fragment(str(p.get("id", ""))) == DEFAULT_PACKED_ID
                ),
                {},
            )
        return WorkflowOverview(
            file_name=posixpath.basename(location),
            label=document.get("label"),
            doc=get_doc(document, "doc", "description"),
            cwl_version=get_cwl_version(content),
        )

    def parse_workflow_native(
        self, location: str, packed_id: str | None = None
    ) -> Workflow:
        if logger.isEnabledFor(logging.INFO):
            logger.info(f"PARSING workflow {location}")
        facts = NativeParser(
            loader=self.loader, single_file_size_limit=self.single_file_size_limit
        ).parse(location, packed_id)
        workflow = WorkflowBuilder().build(facts)
        if logger.isEnabledFor(logging.INFO):
            logger.info(f"COMPLETED parsing of workflow {location}")
        return workflow

    def parse_workflow_with_cwltool(
        self, location: str, packed_id: str | None = None
    ) -> Workflow:
        url = get_packed_url(location, packed_id)
        if logger.isEnabledFor(logging.INFO):
            logger.info(f"PARSING workflow {url} with cwltool")
        rdf_service = RDFService()
        rdf_service.add_graph(url, self._get_normalizer().to_rdf(url))
        workflow = WorkflowBuilder().build(rdf_service.extract(url))
        if logger.isEnabledFor(logging.INFO):
            logger.info(f"COMPLETED parsing of workflow {url} with cwltool")
        return workflow
