class FolioTextError(Exception):
    """Base class for errors raised while parsing folio markup."""

    pass


class FolioSyntaxError(FolioTextError):
    """The token stream matched no production of the grammar.

    Always fatal: the parse of the current chapter is abandoned and no partial tree is returned.
    """

    message: str
    line: int
    column: int
    file_name: str

    def __init__(
        self, message: str, line: int = 0, column: int = 0, file_name: str = "<tokens>"
    ) -> None:
        super().__init__(f"{file_name}:{line}:{column}: {message}")
        self.message = message
        self.line = line
        self.column = column
        self.file_name = file_name
