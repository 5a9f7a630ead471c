import os
from typing import Any, Dict, List, Optional, Type

from folio_text.doc.entities import CodeBlockDef, Entity, PyEvalDef, PyFigDef
from folio_text.parse.attrs import parse_code_args
from folio_text.parse.numbering import DocCounter


class CodeBlockExtractor:
    """Collects the executable code blocks of one chapter, in the order they appear.

    Every block gets the next code-block id, whether or not it has any source.
    The blocks are handed to an external runner, which fills in stdout/stderr/display_data."""

    file_name: str
    basename: str
    counter: DocCounter
    code_blocks: List[CodeBlockDef]

    def __init__(self, file_name: str, counter: DocCounter) -> None:
        self.file_name = file_name
        self.basename = os.path.basename(file_name)
        self.counter = counter
        self.code_blocks = []

    def extract(
        self,
        block_type: Type[CodeBlockDef],
        arg_text: str,
        body: str,
        line: int,
        column: int = 0,
        parent: Optional[Entity] = None,
    ) -> CodeBlockDef:
        args = parse_code_args(arg_text, line, column, file_name=self.file_name)
        code: Optional[str] = body.strip()
        if not code:
            code = None
        # A "label" argument stays in args, code blocks are found by id and never registered
        block = block_type(
            label=None,
            line=line,
            number=self.counter.take(),
            file_basename=self.basename,
            args=args,
            code=code,
            parent=parent,
        )
        # pyfig and pyeval blocks are kept even when they have no code, they may still show output
        self.code_blocks.append(block)
        return block

    def extract_pyfig(
        self,
        arg_text: str,
        body: str,
        line: int,
        column: int = 0,
        parent: Optional[Entity] = None,
    ) -> PyFigDef:
        block = self.extract(PyFigDef, arg_text, body, line, column, parent)
        assert isinstance(block, PyFigDef)
        return block

    def extract_pyeval(
        self,
        arg_text: str,
        body: str,
        line: int,
        column: int = 0,
        parent: Optional[Entity] = None,
    ) -> PyEvalDef:
        """Like extract_pyfig, but the `output` argument names the expression whose value is displayed."""
        block = self.extract(PyEvalDef, arg_text, body, line, column, parent)
        assert isinstance(block, PyEvalDef)
        return block


def code_block_to_json(block: CodeBlockDef) -> Dict[str, Any]:
    return {
        "kind": block.kind,
        "file": block.file_basename,
        "id": block.code_id,
        "line": block.line,
        "args": dict(block.args),
        "code": block.code,
        "stdout": block.stdout,
        "stderr": block.stderr,
        "display_data": list(block.display_data),
    }
