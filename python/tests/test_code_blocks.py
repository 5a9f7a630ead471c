import io
import json

from folio_text import *
from folio_text.doc.entities import ChapterDef, PyEvalDef, PyFigDef
from folio_text.parse.code_blocks import CodeBlockExtractor, code_block_to_json
from folio_text.parse.numbering import DocCounter


def make_extractor(file_name="book/ch1.md"):
    return CodeBlockExtractor(file_name, DocCounter("code_blocks"))


def test_file_basename_is_stamped_on_blocks():
    ex = make_extractor()
    assert ex.basename == "ch1.md"
    block = ex.extract_pyfig("[fig1]", "plot()", 3)
    assert block.file_basename == "ch1.md"
    assert block.label is None
    assert block.args == {"label": "fig1"}
    assert block.code == "plot()"


def test_code_is_trimmed_and_whitespace_only_means_no_code():
    ex = make_extractor()
    assert ex.extract_pyfig("", "\n  x = 1\n\n", 1).code == "x = 1"
    assert ex.extract_pyfig("", " \n\t\n", 2).code is None
    assert ex.extract_pyeval("[output=y]", "", 3).code is None


def test_every_block_is_kept_and_numbered_in_order():
    ex = make_extractor()
    a = ex.extract_pyfig("", "", 1)
    b = ex.extract_pyeval("", "1", 2)
    c = ex.extract_pyfig("[f]", "x", 3)
    assert ex.code_blocks == [a, b, c]
    assert [blk.code_id for blk in ex.code_blocks] == [1, 2, 3]
    assert isinstance(a, PyFigDef)
    assert isinstance(b, PyEvalDef)
    assert ex.counter.value == 4


def test_pyeval_output_expr():
    ex = make_extractor()
    assert ex.extract_pyeval("[output=total]", "total = 1+1", 1).output_expr == "total"
    assert ex.extract_pyeval("[]", "1+1", 2).output_expr is None


def test_runner_fields_start_empty():
    block = make_extractor().extract_pyfig("", "x", 1)
    assert block.stdout is None
    assert block.stderr is None
    assert block.display_data == []


def test_parent_is_kept():
    chapter = ChapterDef(label=None, line=1, number=1)
    block = make_extractor().extract_pyfig("", "x", 1, parent=chapter)
    assert block.parent is chapter


def test_code_block_json():
    block = make_extractor().extract_pyeval('[calc, output="r"]', "r = 2", 5)
    assert code_block_to_json(block) == {
        "kind": "pyeval",
        "file": "ch1.md",
        "id": 1,
        "line": 5,
        "args": {"label": "calc", "output": "r"},
        "code": "r = 2",
        "stdout": None,
        "stderr": None,
        "display_data": [],
    }


def test_dump_code_blocks_from_parse():
    toks = [
        Token(TokenKind.CHAPTER, "", 1),
        Token(TokenKind.TEXT, "T", 1),
        Token(TokenKind.NEWLINE, "\n", 1),
        Token(TokenKind.PYFIG_OPEN, "[a]", 2),
        Token(TokenKind.PYFIG_BODY, "plot()", 2),
        Token(TokenKind.PYFIG_CLOSE, "", 2),
        Token(TokenKind.NEWLINE, "\n", 2),
        Token(TokenKind.PYEVAL_OPEN, "", 3),
        Token(TokenKind.PYEVAL_CLOSE, "", 3),
    ]
    parsed = parse_chapter(toks, "notes/ch4.md", 4, CollectingDiagnostics())
    out = io.StringIO()
    parsed.dump_code_blocks(out, pretty_print=False)
    dumped = json.loads(out.getvalue())
    assert [(b["kind"], b["id"], b["file"], b["code"]) for b in dumped] == [
        ("pyfig", 1, "ch4.md", "plot()"),
        ("pyeval", 2, "ch4.md", None),
    ]
