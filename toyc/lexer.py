"""Lexical analysis for the toy language."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Kinds of tokens produced by the lexer."""

    # Keywords and compound operators
    FUNC = auto()
    INC = auto()
    DEC = auto()
    INT = auto()
    BOOL = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    FOR = auto()
    RETURN = auto()
    PRINT = auto()
    LENGTH = auto()

    # Symbols
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    SEMICOLON = auto()
    COMMA = auto()
    DOT = auto()
    EQUAL = auto()
    PLUS = auto()
    MINUS = auto()
    MULTIPLY = auto()
    DIVIDE = auto()
    BANG = auto()
    DOUBLE_EQUAL = auto()
    LESS_THAN = auto()

    # Literals
    IDENTIFIER = auto()
    NUMBER = auto()
    STRING = auto()
    TRUE = auto()
    FALSE = auto()

    # Special
    INVALID = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    """A lexical token with its source position (1-based)."""

    type: TokenType
    literal: str = ""
    line: int = 0
    column: int = 0


class LexError(Exception):
    """Raised when the source contains a token that cannot be recognised."""

    def __init__(self, line: int, column: int, literal: str) -> None:
        super().__init__(f"invalid token at line {line}, column {column}: {literal}")
        self.line = line
        self.column = column
        self.literal = literal


_KEYWORDS = {
    "func": TokenType.FUNC,
    "int": TokenType.INT,
    "bool": TokenType.BOOL,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "while": TokenType.WHILE,
    "for": TokenType.FOR,
    "return": TokenType.RETURN,
    "print": TokenType.PRINT,
    "length": TokenType.LENGTH,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
}

_DOUBLE_SYMBOLS = {
    "==": TokenType.DOUBLE_EQUAL,
    "++": TokenType.INC,
    "--": TokenType.DEC,
}

_SINGLE_SYMBOLS = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ";": TokenType.SEMICOLON,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    "=": TokenType.EQUAL,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULTIPLY,
    "/": TokenType.DIVIDE,
    "!": TokenType.BANG,
    "<": TokenType.LESS_THAN,
}

_WHITESPACE = " \t\n\r"


class Lexer:
    """Turns source text into a list of tokens."""

    def __init__(self, source: str) -> None:
        self.source = source
        self._pos = 0
        self._line = 1
        self._column = 1

    def scan(self) -> list[Token]:
        """Return all tokens, ending with an EOF token.

        Raises LexError on the first invalid token.
        """
        tokens: list[Token] = []
        while True:
            token = self._next_token()
            tokens.append(token)
            if token.type is TokenType.EOF:
                return tokens
            if token.type is TokenType.INVALID:
                raise LexError(token.line, token.column, token.literal)

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _current(self) -> str:
        return self.source[self._pos]

    def _advance(self, count: int = 1) -> None:
        self._pos += count
        self._column += count

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._current() in _WHITESPACE:
            if self._current() == "\n":
                self._line += 1
                self._column = 1
            else:
                self._column += 1
            self._pos += 1

    def _skip_comment(self) -> None:
        while not self._at_end() and self._current() != "\n":
            self._advance()

    def _next_token(self) -> Token:
        while True:
            self._skip_whitespace()
            if self._at_end():
                return Token(TokenType.EOF, "", self._line, self._column)
            if self.source.startswith("//", self._pos):
                self._skip_comment()
                continue
            break

        line, column = self._line, self._column
        ch = self._current()

        pair = self.source[self._pos:self._pos + 2]
        if pair in _DOUBLE_SYMBOLS:
            self._advance(2)
            return Token(_DOUBLE_SYMBOLS[pair], pair, line, column)
        if ch in _SINGLE_SYMBOLS:
            self._advance()
            return Token(_SINGLE_SYMBOLS[ch], ch, line, column)
        if ch.isalpha():
            ident = self._read_while(lambda c: c.isalpha() or c.isdecimal() or c == "_")
            return Token(_KEYWORDS.get(ident, TokenType.IDENTIFIER), ident, line, column)
        if ch.isdecimal():
            number = self._read_while(str.isdecimal)
            return Token(TokenType.NUMBER, number, line, column)
        if ch == '"':
            text = self._read_string()
            if text is None:
                return Token(TokenType.INVALID, "unterminated string", line, column)
            return Token(TokenType.STRING, text, line, column)

        self._advance()
        return Token(TokenType.INVALID, ch, line, column)

    def _read_while(self, predicate) -> str:
        start = self._pos
        while not self._at_end() and predicate(self._current()):
            self._advance()
        return self.source[start:self._pos]

    def _read_string(self) -> str | None:
        """Read a quoted string; return None if it is unterminated."""
        self._advance()  # opening quote
        start = self._pos
        while not self._at_end() and self._current() != '"':
            if self._current() in "\n\r":
                return None
            self._advance()
        if self._at_end():
            return None
        text = self.source[start:self._pos]
        self._advance()  # closing quote
        return text


def tokenize(source: str) -> list[Token]:
    """Scan ``source`` and return its tokens."""
    return Lexer(source).scan()