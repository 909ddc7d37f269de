from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from collections.abc import Sequence

from cwlview.config.config import ViewerConfig
from cwlview.config.schema import ViewerSchema
from cwlview.config.validator import ViewerValidator
from cwlview.cwl.cwltool import CWLTool
from cwlview.cwl.service import CWLService
from cwlview.dot import create_dot
from cwlview.loader import FileSystemLoader
from cwlview.log_handler import CustomFormatter, HighlitingFilter, logger
from cwlview.parser import parser
from cwlview.version import VERSION


def _build_service(args: argparse.Namespace) -> tuple[CWLService, ViewerConfig]:
    if os.path.exists(args.config):
        config = ViewerConfig(ViewerValidator().validate_file(args.config))
    else:
        config = ViewerConfig()
    service = CWLService(
        loader=FileSystemLoader(),
        normalizer=CWLTool(
            command=config.cwltool_command, options=config.cwltool_options
        ),
        single_file_size_limit=config.single_file_size_limit,
    )
    return service, config


def _configure_logging(args: argparse.Namespace) -> None:
    if args.quiet:
        logger.setLevel(logging.WARNING)
    elif args.debug:
        logger.setLevel(logging.DEBUG)
    if args.color and hasattr(sys.stdout, "isatty") and sys.stdout.isatty():
        colored_stream_handler = logging.StreamHandler()
        colored_stream_handler.setFormatter(CustomFormatter())
        logger.handlers = []
        logger.addHandler(colored_stream_handler)
        logger.addFilter(HighlitingFilter())


def _annotate(args: argparse.Namespace) -> None:
    service, config = _build_service(args)
    annotations = service.get_annotations(
        args.workflow, args.packed_id or config.packed_id
    )
    os.makedirs(args.outdir, exist_ok=True)
    for file_name, content in annotations.items():
        with open(os.path.join(args.outdir, file_name), "w") as f:
            f.write(content)
        if logger.isEnabledFor(logging.INFO):
            logger.info(f"COMPLETED writing {file_name}")


def _overview(args: argparse.Namespace) -> None:
    service, _ = _build_service(args)
    print(
        json.dumps(service.get_workflow_overview(args.workflow).as_dict(), indent=4)
    )


def _parse(args: argparse.Namespace) -> None:
    service, config = _build_service(args)
    packed_id = args.packed_id or config.packed_id
    if args.cwltool:
        workflow = service.parse_workflow_with_cwltool(args.workflow, packed_id)
    else:
        workflow = service.parse_workflow_native(args.workflow, packed_id)
    if args.dot:
        with open(args.dot, "w") as f:
            f.write(create_dot(workflow))
    print(json.dumps(workflow.as_dict(), indent=4))


def main(args: Sequence[str]) -> int:
    try:
        parsed_args = parser.parse_args(args)
        match parsed_args.context:
            case "annotate":
                _configure_logging(parsed_args)
                _annotate(parsed_args)
            case "overview":
                _configure_logging(parsed_args)
                _overview(parsed_args)
            case "parse":
                _configure_logging(parsed_args)
                _parse(parsed_args)
            case "schema":
                print(ViewerSchema().dump(parsed_args.version, parsed_args.pretty))
            case "version":
                print(f"cwlview version {VERSION}")
            case _:
                parser.print_help(file=sys.stderr)
                return 1
        return 0
    except SystemExit as se:
        if se.code != 0:
            logger.exception(se)
        return int(se.code) if se.code is not None else 1
    except Exception as e:
        logger.exception(e)
        return 1


def run() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":
    main(sys.argv[1:])
