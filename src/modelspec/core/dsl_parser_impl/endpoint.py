"""
Endpoint parsing for the modelspec language.

Handles endpoint declarations: path, method, input shapes and response blocks.
"""

from typing import TYPE_CHECKING, Any

from .. import syntax
from ..errors import make_parse_error
from ..lexer import Token, TokenType

INPUT_SECTIONS = ("params", "query", "body")


class EndpointParserMixin:
    """
    Mixin providing endpoint parsing.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    if TYPE_CHECKING:
        file: Any
        expect: Any
        advance: Any
        match: Any
        match_word: Any
        current_token: Any
        peek_token: Any
        error: Any
        skip_separators: Any
        parse_shape_block: Any

    def parse_endpoint(self, name_token: Token) -> syntax.EndpointNode:
        """
        Parse an endpoint body.

        Example:
            UpdateProfileRequest {
              path /profiles/:id
              method PATCH
              params { id string<length:26> }
              response.ok { http.code 200 ... }
            }
        """
        self.expect(TokenType.LBRACE)
        path_token: Token | None = None
        method_token: Token | None = None
        inputs: dict[str, syntax.ShapeBlock] = {}
        responses: list[syntax.ResponseNode] = []

        while True:
            self.skip_separators()
            token = self.current_token()

            if self.match(TokenType.RBRACE):
                self.advance()
                break

            if self.match(TokenType.EOF):
                raise self.error(
                    f"Unclosed endpoint '{name_token.value}' opened at line {name_token.line}",
                    expected="'}'",
                )

            if self.match_word("path") and self.peek_token().type == TokenType.PATH:
                if path_token is not None:
                    raise self.error(f"Endpoint '{name_token.value}' declares 'path' twice")
                self.advance()
                path_token = self.advance()

            elif self.match_word("method"):
                if method_token is not None:
                    raise self.error(f"Endpoint '{name_token.value}' declares 'method' twice")
                self.advance()
                method_token = self.expect(TokenType.IDENTIFIER, "HTTP method")

            elif token.type == TokenType.IDENTIFIER and token.value in INPUT_SECTIONS:
                if token.value in inputs:
                    raise self.error(
                        f"Endpoint '{name_token.value}' declares '{token.value}' twice"
                    )
                self.advance()
                inputs[token.value] = self.parse_shape_block()

            elif self.match_word("response") and self.peek_token().type == TokenType.DOT:
                responses.append(self.parse_response())

            else:
                raise self.error(
                    f"Unexpected {token.value or token.type.value!r} in endpoint "
                    f"'{name_token.value}'",
                    expected="path, method, params, query, body or response.<tag>",
                )

        if path_token is None or method_token is None:
            missing = "path" if path_token is None else "method"
            raise make_parse_error(
                f"Endpoint '{name_token.value}' is missing '{missing}'",
                self.file,
                name_token.line,
                name_token.column,
                expected=missing,
                found="'}'",
            )

        return syntax.EndpointNode(
            name=name_token.value,
            path=path_token.value,
            method=method_token.value,
            file=self.file,
            params=inputs.get("params"),
            query=inputs.get("query"),
            body=inputs.get("body"),
            responses=responses,
            line=name_token.line,
            column=name_token.column,
            path_line=path_token.line,
            path_column=path_token.column,
            method_line=method_token.line,
            method_column=method_token.column,
        )

    def parse_response(self) -> syntax.ResponseNode:
        """Parse ``response.<tag> { http.code N status s message "m" data { ... } }``."""
        start = self.expect(TokenType.IDENTIFIER)
        self.expect(TokenType.DOT)
        tag = self.expect(TokenType.IDENTIFIER, "response tag").value
        self.expect(TokenType.LBRACE)

        response = syntax.ResponseNode(tag=tag, line=start.line, column=start.column)

        while True:
            self.skip_separators()
            token = self.current_token()

            if self.match(TokenType.RBRACE):
                self.advance()
                return response

            if self.match(TokenType.EOF):
                raise self.error(f"Unclosed block 'response.{tag}'", expected="'}'")

            if self.match_word("http"):
                self.advance()
                self.expect(TokenType.DOT)
                if not self.match_word("code"):
                    raise self.error("Expected 'http.code'", expected="'code'")
                self.advance()
                code_token = self.expect(TokenType.NUMBER, "HTTP status code")
                response.http_code = code_token.value
                response.code_line = code_token.line
                response.code_column = code_token.column

            elif self.match_word("status"):
                self.advance()
                response.status = self._expect_scalar("status tag")

            elif self.match_word("message"):
                self.advance()
                response.message = self._expect_scalar("message template")

            elif self.match_word("data"):
                self.advance()
                response.data = self.parse_shape_block()

            else:
                raise self.error(
                    f"Unexpected {token.value or token.type.value!r} in 'response.{tag}'",
                    expected="http.code, status, message or data",
                )

    def _expect_scalar(self, what: str) -> str:
        if self.match(TokenType.STRING, TokenType.IDENTIFIER):
            return self.advance().value
        raise self.error(f"Expected {what}", expected=what)
