import abc
import sys
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, TextIO

from typing_extensions import override


class Severity(Enum):
    Warning = "warning"
    Error = "error"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    line: int
    message: str

    def __str__(self) -> str:
        return f"line {self.line}: {self.severity.value}: {self.message}"


class DiagnosticSink(abc.ABC):
    """Receives the non-fatal problems found during a parse.

    Warnings (e.g. a redefined label) and errors (e.g. a figure with no label) never stop the parse.
    Syntax errors don't come through here, they're raised as FolioSyntaxError."""

    @abc.abstractmethod
    def report(self, diagnostic: Diagnostic) -> None: ...

    def warning(self, line: int, message: str) -> None:
        self.report(Diagnostic(Severity.Warning, line, message))

    def error(self, line: int, message: str) -> None:
        self.report(Diagnostic(Severity.Error, line, message))


class PrintDiagnostics(DiagnosticSink):
    file_name: str
    out: Optional[TextIO]

    def __init__(self, file_name: str = "<tokens>", out: Optional[TextIO] = None) -> None:
        super().__init__()
        self.file_name = file_name
        # Resolved on each report so pytest's capsys can swap sys.stderr
        self.out = out

    @override
    def report(self, diagnostic: Diagnostic) -> None:
        print(
            f"{self.file_name}:{diagnostic.line}: {diagnostic.severity.value}: {diagnostic.message}",
            file=self.out if self.out is not None else sys.stderr,
        )


class CollectingDiagnostics(DiagnosticSink):
    """Keeps every diagnostic in order. Useful for callers that want to present them later."""

    diagnostics: List[Diagnostic]

    def __init__(self) -> None:
        super().__init__()
        self.diagnostics = []

    @override
    def report(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.Warning]

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.Error]
