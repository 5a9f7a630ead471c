import pathlib
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, TextIO

from folio_text.cite.db import write_citation_db
from folio_text.diagnostics import DiagnosticSink, PrintDiagnostics
from folio_text.doc.dfs import outline
from folio_text.parse.builder import parse_chapter
from folio_text.parse.session import ParsedChapter
from folio_text.tokens import Token, tokens_from_json_lines

# Token dumps can override command-line arguments with comment lines at the start of the file.
# The lines are read until they stop being comments, and of those all that fit the `# folio-cli .*` pattern are checked.
# folio-cli chapter=N sets the chapter ordinal.
# folio-cli file-name=X sets the source file name stamped onto code blocks.
FOLIO_CLI_SHEBANG = re.compile(r"^#\s*folio-cli\s+(.*)$")
CHAPTER_SHEBANG = re.compile(r"chapter=(\d+)")
FILE_NAME_SHEBANG = re.compile(r"file-name=(.+)")


@dataclass
class InputParams:
    tokens_path: pathlib.Path
    file_name: str
    chapter_ordinal: int


def read_shebang_overrides(lines: List[str]) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    for line in lines:
        if not line.startswith("#"):
            break
        match = FOLIO_CLI_SHEBANG.match(line.strip())
        if not match:
            continue
        setting = match.group(1).strip()
        chapter = CHAPTER_SHEBANG.fullmatch(setting)
        file_name = FILE_NAME_SHEBANG.fullmatch(setting)
        if chapter:
            if "chapter" in overrides:
                raise RuntimeError(
                    "Can't use the `# folio-cli chapter=` shebang multiple times"
                )
            overrides["chapter"] = chapter.group(1)
        elif file_name:
            if "file_name" in overrides:
                raise RuntimeError(
                    "Can't use the `# folio-cli file-name=` shebang multiple times"
                )
            overrides["file_name"] = file_name.group(1).strip()
        else:
            raise ValueError(f"Unknown folio-cli setting '{setting}'")
    return overrides


def autodetect_input(
    tokens_arg: str, file_name_arg: Optional[str], chapter_arg: Optional[int]
) -> InputParams:
    """
    Given the required [tokens] argument and the optional [--file-name] and [--chapter] arguments,
    determine the source file name and chapter ordinal for the parse.

    `# folio-cli` shebang lines in the token file override the command line.
    If no file name is given anywhere, the token file's name with its suffix dropped is used
    e.g. notes/chapter3.tokens.jsonl will infer chapter3.tokens.
    If no chapter is given anywhere, it's chapter 1.
    """
    tokens_path = pathlib.Path(tokens_arg)
    with open(tokens_path, "r", encoding="utf-8") as f:
        overrides = read_shebang_overrides(f.readlines())

    if "file_name" in overrides:
        file_name = overrides["file_name"]
        print(f"Taking source file name from token file shebang: '{file_name}'")
    elif file_name_arg:
        file_name = file_name_arg
    else:
        file_name = tokens_path.stem
        print(f"Assuming source file name {file_name} from {tokens_path}")

    if "chapter" in overrides:
        chapter_ordinal = int(overrides["chapter"])
        print(f"Taking chapter ordinal from token file shebang: {chapter_ordinal}")
    elif chapter_arg is not None:
        chapter_ordinal = chapter_arg
    else:
        chapter_ordinal = 1

    if chapter_ordinal < 1:
        raise ValueError(f"Chapter ordinals start at 1, got {chapter_ordinal}")

    return InputParams(tokens_path, file_name, chapter_ordinal)


def load_tokens(input_params: InputParams) -> List[Token]:
    with open(input_params.tokens_path, "r", encoding="utf-8") as f:
        return tokens_from_json_lines(f.readlines())


def parse_input(
    input_params: InputParams, diagnostics: Optional[DiagnosticSink] = None
) -> ParsedChapter:
    if diagnostics is None:
        diagnostics = PrintDiagnostics(input_params.file_name)
    return parse_chapter(
        load_tokens(input_params),
        input_params.file_name,
        input_params.chapter_ordinal,
        diagnostics,
    )


def print_outline(parsed: ParsedChapter, out: Optional[TextIO] = None) -> None:
    for path, heading in outline(parsed.chapter):
        indent = "  " * heading.weight
        label = f" [{heading.label}]" if heading.label else ""
        print(
            f"{indent}{'.'.join(str(n) for n in path)} {heading.title_text}{label}",
            file=out,
        )


def write_outputs(
    parsed: ParsedChapter,
    code_blocks_path: Optional[pathlib.Path],
    bib_path: Optional[pathlib.Path],
) -> None:
    if code_blocks_path is not None:
        print(f"Writing {len(parsed.code_blocks)} code blocks to {code_blocks_path}")
        with open(code_blocks_path, "w", encoding="utf-8") as f:
            parsed.dump_code_blocks(f)
    if bib_path is not None:
        print(f"Writing citation database to {bib_path}")
        with open(bib_path, "w", encoding="utf-8") as f:
            write_citation_db(parsed.registry, f)
