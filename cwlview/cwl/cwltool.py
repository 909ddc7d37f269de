from __future__ import annotations

import logging
import shlex
import subprocess  # nosec
from collections.abc import MutableSequence

from cwlview.core.exception import CWLValidationException, WorkflowExecutionException
from cwlview.core.normalizer import CWLNormalizer
from cwlview.log_handler import logger


class CWLTool(CWLNormalizer):
    """Runs the `cwltool` reference implementation as an external process."""

    def __init__(
        self,
        command: str = "cwltool",
        options: MutableSequence[str] | None = None,
    ):
        super().__init__()
        self.command: MutableSequence[str] = shlex.split(command)
        self.options: MutableSequence[str] = (
            options if options is not None else ["--non-strict", "--quiet"]
        )

    def _run(self, args: MutableSequence[str]) -> str:
        command = [*self.command, *args]
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Running {shlex.join(command)}")
        try:
            result = subprocess.run(  # nosec
                command, capture_output=True, text=True, check=True
            )
        except FileNotFoundError as e:
            raise WorkflowExecutionException(
                f"Cannot run `{self.command[0]}`: is cwltool installed?"
            ) from e
        except subprocess.CalledProcessError as e:
            raise CWLValidationException(
                (e.stderr or "").strip()
                or f"`{shlex.join(command)}` exited with status {e.returncode}"
            ) from e
        return result.stdout

    def get_version(self) -> str:
        return self._run(["--version"]).strip()

    def pack(self, location: str) -> str:
        if logger.isEnabledFor(logging.INFO):
            logger.info(f"PACKING workflow {location}")
        return self._run([*self.options, "--pack", location])

    def to_rdf(self, location: str) -> str:
        if logger.isEnabledFor(logging.INFO):
            logger.info(f"Serialising workflow {location} to RDF")
        return self._run([*self.options, "--print-rdf", location])
