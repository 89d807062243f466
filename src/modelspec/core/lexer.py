"""
Lexer/Tokenizer for the modelspec schema language.

Converts raw spec text into a stream of tokens with source location tracking.
The language is brace-delimited, so whitespace and newlines are insignificant
except for ending ``//`` comments and ``import`` lines. ``import`` is a
keyword only where a top-level statement may begin.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .errors import LexError, make_lex_error


class TokenType(Enum):
    """Token types in the modelspec language."""

    # Literals
    IDENTIFIER = "IDENT"
    STRING = "STRING_LIT"
    NUMBER = "NUMBER_LIT"
    PATH = "PATH_LIT"

    # Keywords
    IMPORT = "import"

    # Punctuation
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"
    LPAREN = "("
    RPAREN = ")"
    LANGLE = "<"
    RANGLE = ">"
    QUESTION = "?"
    PIPE = "|"
    COLON = ":"
    COMMA = ","
    SEMICOLON = ";"
    DOT = "."
    SPREAD = "..."

    # Trivia
    COMMENT = "COMMENT"
    EOF = "EOF"


SINGLE_CHAR_TOKENS = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "<": TokenType.LANGLE,
    ">": TokenType.RANGLE,
    "?": TokenType.QUESTION,
    "|": TokenType.PIPE,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    ";": TokenType.SEMICOLON,
}

# Characters that end a bare path literal
PATH_TERMINATORS = frozenset(" \t\r\n;{}")

# Extra characters allowed in bare enum literals such as en-US or image/png
ENUM_WORD_CHARS = frozenset("_$-./:")

NUMBER_LITERAL = re.compile(r"^-?\d+(\.\d+)?$")

# Tokens after which, at top level, a new statement begins
STATEMENT_ENDS = frozenset({TokenType.RBRACE, TokenType.SEMICOLON})


@dataclass(frozen=True)
class Token:
    """
    A single token in a spec file.

    Attributes:
        type: Type of token
        value: String value of the token
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        offset: Character offset of the first character
    """

    type: TokenType
    value: str
    line: int
    column: int
    offset: int = 0

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class Lexer:
    """
    Lexer for spec files.

    Iterating a Lexer yields tokens lazily; every new iteration starts again
    from the beginning of the text.
    """

    def __init__(self, text: str, file: Path):
        """
        Initialize lexer.

        Args:
            text: Source text to tokenize
            file: Source file path (for error reporting)
        """
        self.text = text
        self.file = file
        self._reset()

    def _reset(self) -> None:
        self.pos = 0
        self.line = 1
        self.column = 1

    def current_char(self) -> str | None:
        """Get current character or None if at end."""
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def peek_char(self, offset: int = 1) -> str | None:
        """Peek ahead at character."""
        pos = self.pos + offset
        if pos >= len(self.text):
            return None
        return self.text[pos]

    def advance(self) -> None:
        """Move to next character, updating line/column."""
        if self.pos < len(self.text):
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def skip_whitespace(self, skip_newlines: bool = True) -> None:
        """Skip whitespace characters."""
        while self.current_char() in (" ", "\t", "\r") or (
            skip_newlines and self.current_char() == "\n"
        ):
            self.advance()

    def _error(self, message: str, line: int, column: int, offset: int) -> LexError:
        lines = self.text.splitlines()
        snippet = lines[line - 1] if line <= len(lines) else None
        return make_lex_error(message, self.file, line, column, offset, snippet)

    def read_comment(self) -> str:
        """Read a ``//`` comment and return its text without the marker."""
        self.advance()
        self.advance()
        chars = []
        while self.current_char() is not None and self.current_char() != "\n":
            chars.append(self.current_char())
            self.advance()
        return "".join(chars).strip()

    def read_string(self) -> str:
        """Read a quoted string."""
        start_line = self.line
        start_col = self.column
        start_pos = self.pos
        quote = self.current_char()
        self.advance()

        chars = []
        while True:
            current = self.current_char()
            if current is None or current == "\n" or current == quote:
                break

            if current == "\\":
                self.advance()
                escape_char = self.current_char()
                if escape_char == "n":
                    chars.append("\n")
                elif escape_char == "t":
                    chars.append("\t")
                elif escape_char is not None:
                    chars.append(escape_char)
                self.advance()
            else:
                chars.append(current)
                self.advance()

        if self.current_char() != quote:
            raise self._error("Unterminated string literal", start_line, start_col, start_pos)

        self.advance()
        return "".join(chars)

    def read_number(self) -> str:
        """Read an integer or decimal, with an optional leading minus sign."""
        chars = []
        if self.current_char() == "-":
            chars.append("-")
            self.advance()
        seen_dot = False
        current = self.current_char()
        while current is not None and (current.isdigit() or (current == "." and not seen_dot)):
            if current == ".":
                following = self.peek_char()
                if following is None or not following.isdigit():
                    break
                seen_dot = True
            chars.append(current)
            self.advance()
            current = self.current_char()
        return "".join(chars)

    def read_identifier(self) -> str:
        """Read an identifier or keyword."""
        chars = []
        current = self.current_char()
        while current is not None and (current.isalnum() or current in "_$"):
            chars.append(current)
            self.advance()
            current = self.current_char()
        return "".join(chars)

    def read_enum_word(self) -> str:
        """Read a bare literal inside ``(...)``, where ``-``, ``.``, ``/`` and ``:`` are allowed."""
        chars = []
        current = self.current_char()
        while current is not None and (current.isalnum() or current in ENUM_WORD_CHARS):
            chars.append(current)
            self.advance()
            current = self.current_char()
        return "".join(chars)

    def read_path(self) -> str:
        """Read a bare path literal such as ``/profiles/:id`` or ``../commons.go``."""
        chars = []
        current = self.current_char()
        while current is not None and current not in PATH_TERMINATORS:
            chars.append(current)
            self.advance()
            current = self.current_char()
        return "".join(chars)

    def _starts_path(self, ch: str) -> bool:
        if ch == "/":
            return self.peek_char() != "/"
        if ch == ".":
            if self.peek_char() == "/":
                return True
            return self.peek_char() == "." and self.peek_char(2) == "/"
        return False

    def __iter__(self) -> Iterator[Token]:
        """
        Yield tokens for the entire source text.

        Each iteration scans with its own cursor, so iterators over the same
        Lexer never interfere.

        Raises:
            LexError: If a malformed token is encountered
        """
        return Lexer(self.text, self.file)._scan()

    def _scan(self) -> Iterator[Token]:
        depth = 0
        statement_start = True
        in_enum = False

        while True:
            self.skip_whitespace()

            ch = self.current_char()
            if ch is None:
                break

            token_line = self.line
            token_col = self.column
            token_pos = self.pos

            if ch == "/" and self.peek_char() == "/":
                value = self.read_comment()
                yield Token(TokenType.COMMENT, value, token_line, token_col, token_pos)
                continue

            if ch in ('"', "'"):
                value = self.read_string()
                yield Token(TokenType.STRING, value, token_line, token_col, token_pos)

            elif in_enum and (ch.isalnum() or ch in ENUM_WORD_CHARS):
                value = self.read_enum_word()
                kind = TokenType.NUMBER if NUMBER_LITERAL.match(value) else TokenType.IDENTIFIER
                yield Token(kind, value, token_line, token_col, token_pos)

            elif ch.isdigit() or (ch == "-" and (self.peek_char() or "").isdigit()):
                value = self.read_number()
                yield Token(TokenType.NUMBER, value, token_line, token_col, token_pos)

            elif ch.isalpha() or ch in "_$":
                value = self.read_identifier()
                if (
                    value == TokenType.IMPORT.value
                    and statement_start
                    and self._next_significant_char() != "{"
                ):
                    yield Token(TokenType.IMPORT, value, token_line, token_col, token_pos)
                    yield from self._import_argument()
                    continue
                yield Token(TokenType.IDENTIFIER, value, token_line, token_col, token_pos)

            elif self._starts_path(ch):
                value = self.read_path()
                yield Token(TokenType.PATH, value, token_line, token_col, token_pos)

            elif ch == "." and self.peek_char() == "." and self.peek_char(2) == ".":
                self.advance()
                self.advance()
                self.advance()
                yield Token(TokenType.SPREAD, "...", token_line, token_col, token_pos)

            elif ch == ".":
                self.advance()
                yield Token(TokenType.DOT, ".", token_line, token_col, token_pos)

            elif ch in SINGLE_CHAR_TOKENS:
                self.advance()
                token_type = SINGLE_CHAR_TOKENS[ch]
                if token_type is TokenType.LBRACE:
                    depth += 1
                elif token_type is TokenType.RBRACE:
                    depth = max(depth - 1, 0)
                elif token_type is TokenType.LPAREN:
                    in_enum = True
                elif token_type is TokenType.RPAREN:
                    in_enum = False
                yield Token(token_type, ch, token_line, token_col, token_pos)
                statement_start = depth == 0 and token_type in STATEMENT_ENDS
                continue

            else:
                raise self._error(f"Unexpected character: {ch!r}", token_line, token_col, token_pos)

            statement_start = False

        yield Token(TokenType.EOF, "", self.line, self.column, self.pos)

    def _next_significant_char(self) -> str | None:
        pos = self.pos
        while pos < len(self.text) and self.text[pos] in " \t\r\n":
            pos += 1
        return self.text[pos] if pos < len(self.text) else None

    def _import_argument(self) -> Iterator[Token]:
        """The rest of an ``import`` line is a single path, quoted or bare."""
        self.skip_whitespace(skip_newlines=False)
        ch = self.current_char()
        if ch is None or ch == "\n":
            return
        token_line = self.line
        token_col = self.column
        token_pos = self.pos
        if ch in ('"', "'"):
            yield Token(TokenType.STRING, self.read_string(), token_line, token_col, token_pos)
        elif not (ch == "/" and self.peek_char() == "/"):
            yield Token(TokenType.PATH, self.read_path(), token_line, token_col, token_pos)

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source text.

        Returns:
            List of tokens including COMMENT tokens and a final EOF
        """
        return list(self)


def tokenize(text: str, file: Path) -> list[Token]:
    """
    Convenience function to tokenize spec text.

    Args:
        text: Source text
        file: Source file path

    Returns:
        List of tokens
    """
    return Lexer(text, file).tokenize()
