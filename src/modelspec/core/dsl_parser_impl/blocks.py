"""
Block parsing for the modelspec language.

Handles top-level declarations, ``{ ... }`` shapes and spread directives.
"""

from typing import TYPE_CHECKING, Any

from .. import syntax
from ..lexer import Token, TokenType


class BlockParserMixin:
    """
    Mixin providing declaration and shape block parsing.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    if TYPE_CHECKING:
        tokens: list[Token]
        pos: int
        file: Any
        expect: Any
        advance: Any
        match: Any
        current_token: Any
        peek_token: Any
        error: Any
        skip_separators: Any
        parse_field: Any
        parse_endpoint: Any

    def parse_declaration(self) -> syntax.DeclarationNode | syntax.EndpointNode:
        """
        Parse ``Name { ... }``.

        The block is an endpoint when it carries endpoint keys; otherwise it
        is an entity or field group, told apart later by the linker.
        """
        name_token = self.expect(TokenType.IDENTIFIER, "declaration name")
        if not self.match(TokenType.LBRACE):
            raise self.error(
                f"Expected '{{' after declaration name '{name_token.value}'",
                expected="'{'",
            )

        if self.is_endpoint_block():
            return self.parse_endpoint(name_token)

        body = self.parse_shape_block()
        return syntax.DeclarationNode(
            name=name_token.value,
            body=body,
            file=self.file,
            line=name_token.line,
            column=name_token.column,
        )

    def is_endpoint_block(self) -> bool:
        """
        Scan the block at the current ``{`` for endpoint keys at depth one.

        Endpoint keys are ``path <path>``, ``method <VERB>`` and ``response.<tag>``.
        """
        depth = 0
        index = self.pos
        while index < len(self.tokens):
            token = self.tokens[index]
            if token.type == TokenType.EOF:
                return False
            if token.type == TokenType.LBRACE:
                depth += 1
            elif token.type == TokenType.RBRACE:
                depth -= 1
                if depth == 0:
                    return False
            elif depth == 1 and token.type == TokenType.IDENTIFIER:
                following = self.tokens[index + 1] if index + 1 < len(self.tokens) else token
                if token.value == "path" and following.type == TokenType.PATH:
                    return True
                if (
                    token.value == "method"
                    and following.type == TokenType.IDENTIFIER
                    and following.value.isupper()
                ):
                    return True
                if token.value == "response" and following.type == TokenType.DOT:
                    return True
            index += 1
        return False

    def parse_shape_block(self) -> syntax.ShapeBlock:
        """Parse ``{ (field | spread)* }``."""
        open_token = self.expect(TokenType.LBRACE)
        block = syntax.ShapeBlock(line=open_token.line, column=open_token.column)

        while True:
            self.skip_separators()
            if self.match(TokenType.RBRACE):
                self.advance()
                return block
            if self.match(TokenType.EOF):
                raise self.error(
                    f"Unclosed block opened at line {open_token.line}", expected="'}'"
                )
            if self.match(TokenType.SPREAD):
                block.items.append(self.parse_spread())
            else:
                block.items.append(self.parse_field())

    def parse_spread(self) -> syntax.SpreadNode:
        """Parse ``...name`` or ``...Declaration.nested.path``."""
        spread_token = self.expect(TokenType.SPREAD)
        segments = [self.expect(TokenType.IDENTIFIER, "field group name").value]
        while self.match(TokenType.DOT):
            self.advance()
            segments.append(self.expect(TokenType.IDENTIFIER, "nested field name").value)
        return syntax.SpreadNode(
            target=".".join(segments),
            line=spread_token.line,
            column=spread_token.column,
        )

    def parse_import(self) -> syntax.ImportNode:
        import_token = self.expect(TokenType.IMPORT)
        if self.match(TokenType.PATH, TokenType.STRING):
            path = self.advance().value
        else:
            raise self.error("Expected a relative path after 'import'", expected="import path")
        return syntax.ImportNode(path=path, line=import_token.line, column=import_token.column)
