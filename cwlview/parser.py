import argparse
import os


def _add_common_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "workflow",
        metavar="WORKFLOW",
        type=str,
        help="Path or URL of the CWL document describing the workflow",
    )
    subparser.add_argument(
        "--config",
        "-c",
        default="cwlview.yml",
        type=str,
        help="Path to the cwlview configuration file (default: cwlview.yml, if present)",
    )
    subparser.add_argument(
        "--packed-id",
        type=str,
        help="Identifier of the workflow to select inside a packed document",
    )
    subparser.add_argument(
        "--color",
        action="store_true",
        help="Prints log preamble with colors related to the logging level",
    )
    subparser.add_argument(
        "--debug", action="store_true", help="Prints debug-level diagnostic output"
    )
    subparser.add_argument(
        "--quiet", action="store_true", help="Only prints results, warnings and errors"
    )


parser = argparse.ArgumentParser(description="cwlview Command Line")
subparsers = parser.add_subparsers(dest="context")

# cwlview annotate
annotate_parser = subparsers.add_parser(
    "annotate",
    help="Write the packed document and the RDF serialisation of a workflow",
)
_add_common_arguments(annotate_parser)
annotate_parser.add_argument(
    "--outdir",
    default=os.getcwd(),
    type=str,
    help="Where the annotation files should be written (default: current directory)",
)

# cwlview overview
overview_parser = subparsers.add_parser(
    "overview", help="Print label, doc and version of a CWL document"
)
_add_common_arguments(overview_parser)

# cwlview parse
parse_parser = subparsers.add_parser(
    "parse", help="Parse a workflow and print its graph model"
)
_add_common_arguments(parse_parser)
parse_parser.add_argument(
    "--cwltool",
    action="store_true",
    help="Parse the workflow through its cwltool RDF serialisation instead of natively",
)
parse_parser.add_argument(
    "--dot",
    type=str,
    help="Write the DOT description of the workflow graph to the given path",
)

# cwlview schema
schema_parser = subparsers.add_parser(
    "schema", help="Dump the cwlview configuration JSON Schema"
)
schema_parser.add_argument(
    "version",
    metavar="VERSION",
    nargs="?",
    type=str,
    default="v1.0",
    help="Version of the cwlview configuration schema",
)
schema_parser.add_argument(
    "--pretty", action="store_true", help="Format JSON output"
)

# cwlview version
version_parser = subparsers.add_parser(
    "version", help="Only print cwlview version and exit"
)
