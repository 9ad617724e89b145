from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class Token:
    type: str
    value: str
    line: int
    column: int
    argument: str | None = None


# Ordered; the first rule whose pattern matches the trimmed line decides its
# kind. Anything else is a plain statement for the dispatcher.
LINE_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("END", re.compile(r"end", re.IGNORECASE)),
    ("ELSE", re.compile(r"else", re.IGNORECASE)),
    ("WHEN", re.compile(r"when\b.*")),
    ("FOREVER", re.compile(r"forever")),
    ("REPEAT_UNTIL", re.compile(r"repeat\s+until\b\s*(?P<argument>.*)")),
    ("REPEAT", re.compile(r"repeat(?:\s+|(?=[(\[]))(?P<argument>.+)")),
    ("IF", re.compile(r"if\s*(?P<argument>.+?)\s*then")),
)

COMMENT_PREFIXES = ("#", "//")


class Lexer:
    def __init__(self, source: str) -> None:
        self.source = source
        self.length = len(source)
        self.index = 0
        self.line = 1
        self.column = 1

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while not self._at_end():
            ch = self._peek()
            if ch == "\ufeff":
                self._advance()
                continue
            line_no = self.line
            raw = self._read_line()
            text = raw.strip()
            if not text or text.startswith(COMMENT_PREFIXES):
                continue
            column = len(raw) - len(raw.lstrip()) + 1
            tokens.append(classify(text, line_no, column))
        tokens.append(Token("EOF", "", self.line, self.column))
        return tokens

    def _read_line(self) -> str:
        chars: list[str] = []
        while not self._at_end():
            ch = self._advance()
            if ch == "\n":
                break
            if ch != "\r":
                chars.append(ch)
        return "".join(chars)

    def _peek(self) -> str:
        if self._at_end():
            return "\0"
        return self.source[self.index]

    def _advance(self) -> str:
        ch = self.source[self.index]
        self.index += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _at_end(self) -> bool:
        return self.index >= self.length


def classify(text: str, line: int = 1, column: int = 1) -> Token:
    for token_type, pattern in LINE_RULES:
        found = pattern.fullmatch(text)
        if found is None:
            continue
        argument = found.groupdict().get("argument")
        return Token(token_type, text, line, column, argument.strip() if argument else None)
    return Token("STATEMENT", text, line, column)
