"""
Base parser class for the modelspec language.

Provides common token manipulation and utility methods used by all parser mixins.
"""

from pathlib import Path

from ..errors import ParseError, make_parse_error
from ..lexer import Token, TokenType


def describe(token: Token) -> str:
    """Human-readable rendering of a token for error messages."""
    if token.type == TokenType.EOF:
        return "end of file"
    if token.type in (TokenType.IDENTIFIER, TokenType.NUMBER, TokenType.PATH):
        return f"'{token.value}'"
    if token.type == TokenType.STRING:
        return f'"{token.value}"'
    return f"'{token.type.value}'"


class BaseParser:
    """
    Base parser class with token manipulation utilities.

    This class provides the foundation for recursive descent parsing,
    including token navigation, matching, and error generation. Comment
    tokens are split off at construction: comments that trail another token
    on the same line are kept by line number for field descriptions.
    """

    def __init__(self, tokens: list[Token], file: Path):
        """
        Initialize parser.

        Args:
            tokens: List of tokens from lexer
            file: Source file path (for error reporting)
        """
        self.file = file
        self.pos = 0
        self.tokens: list[Token] = []
        self.comments: dict[int, str] = {}

        last_line = 0
        for token in tokens:
            if token.type == TokenType.COMMENT:
                if token.line == last_line:
                    self.comments[token.line] = token.value
                continue
            self.tokens.append(token)
            last_line = token.line

        if not self.tokens or self.tokens[-1].type != TokenType.EOF:
            self.tokens.append(Token(TokenType.EOF, "", last_line + 1, 1))

    def current_token(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[self.pos]

    def peek_token(self, offset: int = 1) -> Token:
        """Peek ahead at token."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[pos]

    def advance(self) -> Token:
        """Consume and return current token."""
        token = self.current_token()
        if token.type != TokenType.EOF:
            self.pos += 1
        return token

    def error(self, message: str, expected: str | None = None) -> ParseError:
        """Build a ParseError located at the current token."""
        token = self.current_token()
        return make_parse_error(
            message,
            self.file,
            token.line,
            token.column,
            expected=expected,
            found=describe(token),
        )

    def expect(self, token_type: TokenType, expected: str | None = None) -> Token:
        """
        Expect a specific token type and consume it.

        Raises:
            ParseError: If token doesn't match
        """
        token = self.current_token()
        if token.type != token_type:
            wanted = expected or f"'{token_type.value}'"
            raise self.error(f"Expected {wanted}, got {describe(token)}", expected=wanted)
        return self.advance()

    def match(self, *token_types: TokenType) -> bool:
        """Check if current token matches any of the given types."""
        return self.current_token().type in token_types

    def match_word(self, word: str) -> bool:
        """Check if current token is the identifier ``word``."""
        token = self.current_token()
        return token.type == TokenType.IDENTIFIER and token.value == word

    def skip_separators(self) -> None:
        """Skip optional ``;`` separators."""
        while self.match(TokenType.SEMICOLON):
            self.advance()

    def trailing_comment(self, line: int) -> str | None:
        """Return the ``//`` comment ending ``line``, if any."""
        return self.comments.get(line)
