"""Key-value lists, in the two flavours the markup uses.

Tag attributes, as in `<figure label="fig1" width=10em>`:
    name=value pairs separated by nothing but whitespace.
Code-block arguments, as in `pyfig[fig1, width="10em", hide=true]`:
    name=value pairs separated by commas, optionally preceded by a bare token which is shorthand for `label=<token>`.

Both go through KeyValueListParser. Values which start with a quote character have their first and last characters dropped,
everything else passes through as written. The resulting dicts keep the order keys were first seen in,
and a repeated key overwrites the earlier value.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from folio_text.errors import FolioSyntaxError
from folio_text.tokens import WHITESPACE_KINDS, Token, TokenKind


class KvKind(Enum):
    Name = 0
    Equals = 1
    Value = 2
    Number = 3
    Comma = 4


@dataclass(frozen=True)
class KvItem:
    kind: KvKind
    text: str
    line: int = 0
    column: int = 0


VALUE_KINDS = (KvKind.Value, KvKind.Number, KvKind.Name)

BARE_LABEL_KEY = "label"


def unquote(value: str) -> str:
    # The closing quote isn't checked, only the opening one decides
    if value.startswith(('"', "'")):
        return value[1:-1]
    return value


class KeyValueListParser:
    separator: Optional[KvKind]
    allow_bare_label: bool
    file_name: str

    def __init__(
        self,
        separator: Optional[KvKind],
        allow_bare_label: bool,
        file_name: str = "<tokens>",
    ) -> None:
        self.separator = separator
        self.allow_bare_label = allow_bare_label
        self.file_name = file_name

    def _error(
        self, message: str, items: Sequence[KvItem], i: int, line: int
    ) -> FolioSyntaxError:
        if i < len(items):
            item = items[i]
            return FolioSyntaxError(
                f"{message}, found {item.text!r}",
                line=item.line or line,
                column=item.column,
                file_name=self.file_name,
            )
        return FolioSyntaxError(
            f"{message}, found end of list", line=line, file_name=self.file_name
        )

    def _expect(
        self, items: Sequence[KvItem], i: int, kinds: Iterable[KvKind], what: str, line: int
    ) -> KvItem:
        if i >= len(items) or items[i].kind not in tuple(kinds):
            raise self._error(f"expected {what}", items, i, line)
        return items[i]

    def parse(self, items: Sequence[KvItem], line: int = 0) -> Dict[str, str]:
        result: Dict[str, str] = {}
        i = 0

        if (
            self.allow_bare_label
            and items
            and items[0].kind in VALUE_KINDS
            and (len(items) == 1 or items[1].kind == self.separator)
        ):
            result[BARE_LABEL_KEY] = unquote(items[0].text)
            i = 1
            if i < len(items):
                # A separator after the bare label must be followed by at least one pair
                i += 1
                if i >= len(items):
                    raise self._error("expected an argument name", items, i, line)

        first_pair = True
        while i < len(items):
            if self.separator is not None and not first_pair:
                self._expect(items, i, [self.separator], "','", line)
                i += 1
            name = self._expect(items, i, [KvKind.Name], "an argument name", line)
            self._expect(items, i + 1, [KvKind.Equals], "'='", line)
            value = self._expect(items, i + 2, VALUE_KINDS, "a value", line)
            result[name.text] = unquote(value.text)
            i += 3
            first_pair = False

        return result


_STREAM_KV_KINDS = {
    TokenKind.ATTR_NAME: KvKind.Name,
    TokenKind.ATTR_EQUALS: KvKind.Equals,
    TokenKind.ATTR_VALUE: KvKind.Value,
    TokenKind.ATTR_NUMBER: KvKind.Number,
}


def parse_tag_attrs(
    tokens: Sequence[Token], line: int = 0, file_name: str = "<tokens>"
) -> Dict[str, str]:
    """Parse the attribute tokens of an opening tag, not including the tag name or TAG_END."""
    items: List[KvItem] = []
    for tok in tokens:
        if tok.kind in WHITESPACE_KINDS:
            continue
        kind = _STREAM_KV_KINDS.get(tok.kind)
        if kind is None:
            raise FolioSyntaxError(
                f"unexpected {tok.kind.name} {tok.text!r} in tag attributes",
                line=tok.line,
                column=tok.column,
                file_name=file_name,
            )
        items.append(KvItem(kind, tok.text, tok.line, tok.column))
    return KeyValueListParser(None, allow_bare_label=False, file_name=file_name).parse(
        items, line
    )


_CODE_ARG_TOKEN = re.compile(
    r"""\s*(?:
        (?P<quoted>"[^"]*"?|'[^']*'?)
        |(?P<number>-?\d+(?:\.\d+)?)(?![\w.])
        |(?P<comma>,)
        |(?P<equals>=)
        |(?P<word>[^\s,="']+)
    )""",
    re.VERBOSE,
)

_CODE_ARG_GROUP_KINDS = {
    "quoted": KvKind.Value,
    "number": KvKind.Number,
    "comma": KvKind.Comma,
    "equals": KvKind.Equals,
    "word": KvKind.Name,
}


def lex_code_args(text: str, line: int = 0, column: int = 0) -> List[KvItem]:
    items = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        m = _CODE_ARG_TOKEN.match(text, pos)
        # Every non-space character starts one of the alternatives, so this only fails on trailing whitespace
        assert m is not None and m.lastgroup is not None
        items.append(
            KvItem(
                _CODE_ARG_GROUP_KINDS[m.lastgroup],
                m.group(m.lastgroup),
                line,
                column + m.start(m.lastgroup),
            )
        )
        pos = m.end()
    return items


def parse_code_args(
    text: str, line: int = 0, column: int = 0, file_name: str = "<tokens>"
) -> Dict[str, str]:
    """Parse the bracketed argument payload of an executable code block.

    >>> parse_code_args('label,width="10em",hide=true')
    {'label': 'label', 'width': '10em', 'hide': 'true'}
    """
    text = text.strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]
    return KeyValueListParser(
        KvKind.Comma, allow_bare_label=True, file_name=file_name
    ).parse(lex_code_args(text, line, column), line)
