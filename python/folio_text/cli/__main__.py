import argparse
import pathlib
import sys
from typing import Any

from folio_text.cli import autodetect_input, parse_input, print_outline, write_outputs
from folio_text.errors import FolioSyntaxError


def wrap_parse(args: Any) -> int:
    input_params = autodetect_input(args.tokens, args.file_name, args.chapter)
    try:
        parsed = parse_input(input_params)
    except FolioSyntaxError as e:
        print(f"Syntax error: {e}", file=sys.stderr)
        return 1

    print(
        f"Parsed chapter {parsed.chapter.ordinal} of {input_params.file_name}: "
        f"{len(parsed.registry)} labels, {len(parsed.code_blocks)} code blocks"
    )
    if args.outline:
        print_outline(parsed)

    write_outputs(
        parsed,
        pathlib.Path(args.code_blocks) if args.code_blocks else None,
        pathlib.Path(args.bib) if args.bib else None,
    )
    return 0


def run_cli() -> None:
    parser = argparse.ArgumentParser(
        "folio_text",
        description="Parse the token stream of a folio chapter into its document tree, labels and code blocks.",
    )
    subparsers = parser.add_subparsers(required=True)

    parse_subcommand = subparsers.add_parser(
        "parse", help="Parse one chapter's token stream."
    )
    parse_subcommand.add_argument(
        "tokens",
        type=str,
        help="The token stream of one chapter, as JSON lines with one {kind, text, line, column} object per line.",
    )
    parse_subcommand.add_argument(
        "--file-name",
        type=str,
        default=None,
        help="The name of the source file the tokens came from. Its basename is stamped onto code blocks. Can be overridden by a '# folio-cli file-name=X' line at the start of the token file.",
    )
    parse_subcommand.add_argument(
        "--chapter",
        type=int,
        default=None,
        help="The ordinal of this chapter within the book, defaults to 1. Can be overridden by a '# folio-cli chapter=N' line at the start of the token file.",
    )
    parse_subcommand.add_argument(
        "--outline",
        action="store_true",
        help="Print the numbered heading outline of the chapter.",
    )
    parse_subcommand.add_argument(
        "--code-blocks",
        type=str,
        default=None,
        help="Write the executable code blocks to this file as JSON, for the code runner.",
    )
    parse_subcommand.add_argument(
        "--bib",
        type=str,
        default=None,
        help="Write the citations and sites defined in the chapter to this file as BibTeX.",
    )
    # If the parse subcommand is selected, set `args.func = wrap_parse`
    parse_subcommand.set_defaults(func=wrap_parse)

    args = parser.parse_args()
    # call args.func() with the args, should be wrap_parse
    sys.exit(args.func(args))


if __name__ == "__main__":
    run_cli()
