"""
Field parsing for the modelspec language.

Handles field lines, cardinality markers, and constraint/enum annotations.
"""

from typing import TYPE_CHECKING, Any

from .. import syntax
from ..lexer import TokenType
from .base import describe

LITERAL_KINDS = {
    TokenType.NUMBER: "number",
    TokenType.IDENTIFIER: "ident",
    TokenType.STRING: "string",
}


class TypeParserMixin:
    """
    Mixin providing field and annotation parsing.

    Note: This mixin expects to be combined with BaseParser via multiple inheritance.
    """

    if TYPE_CHECKING:
        expect: Any
        advance: Any
        match: Any
        current_token: Any
        error: Any
        trailing_comment: Any
        parse_shape_block: Any

    def parse_field(self) -> syntax.FieldNode:
        """
        Parse a field line.

        Examples:
            email string<trim|lowercase|isEmail>
            deleted? number
            roles[] string
            addresses[]? { street string }
            theme? string(light|dark|auto)
        """
        name_token = self.expect(TokenType.IDENTIFIER, "field name")
        optional, array = self.parse_cardinality()

        type_token = self.current_token()
        if self.match(TokenType.LBRACE):
            shape = self.parse_shape_block()
            return syntax.FieldNode(
                name=name_token.value,
                base_type=None,
                optional=optional,
                array=array,
                shape=shape,
                description=self.trailing_comment(name_token.line),
                file=self.file,
                line=name_token.line,
                column=name_token.column,
                type_line=type_token.line,
                type_column=type_token.column,
            )

        base_type = self.expect(TokenType.IDENTIFIER, "a type or '{'").value
        annotations = self.parse_annotations()

        return syntax.FieldNode(
            name=name_token.value,
            base_type=base_type,
            optional=optional,
            array=array,
            annotations=annotations,
            description=self.trailing_comment(name_token.line),
            file=self.file,
            line=name_token.line,
            column=name_token.column,
            type_line=type_token.line,
            type_column=type_token.column,
        )

    def parse_cardinality(self) -> tuple[bool, bool]:
        """
        Parse the optional ``[]`` and ``?`` markers after a field name.

        Returns:
            Tuple of (optional, array)
        """
        optional = False
        array = False

        if self.match(TokenType.LBRACKET):
            self.advance()
            self.expect(TokenType.RBRACKET)
            array = True

        if self.match(TokenType.QUESTION):
            self.advance()
            optional = True
            if self.match(TokenType.LBRACKET):
                raise self.error(
                    "Arrays of optional values are not supported; write 'name[]?' "
                    "for an optional array",
                    expected="a type or '{'",
                )

        return optional, array

    def parse_annotations(self) -> list[syntax.AnnotationNode]:
        """Parse any number of ``<...>`` and ``(...)`` groups, in either order."""
        annotations: list[syntax.AnnotationNode] = []
        while self.match(TokenType.LANGLE, TokenType.LPAREN):
            if self.match(TokenType.LANGLE):
                annotations.extend(self.parse_constraint_group())
            else:
                annotations.append(self.parse_enum_group())
        return annotations

    def parse_constraint_group(self) -> list[syntax.AnnotationNode]:
        """Parse ``<flag|name:arg|...>``."""
        self.expect(TokenType.LANGLE)
        constraints = [self.parse_constraint()]
        while self.match(TokenType.PIPE):
            self.advance()
            constraints.append(self.parse_constraint())
        self.expect(TokenType.RANGLE, "'|' or '>'")
        return constraints

    def parse_constraint(self) -> syntax.AnnotationNode:
        name_token = self.expect(TokenType.IDENTIFIER, "constraint name")
        node = syntax.AnnotationNode(
            name=name_token.value,
            line=name_token.line,
            column=name_token.column,
        )
        if self.match(TokenType.COLON):
            self.advance()
            node.has_colon = True
            node.params.append(self.parse_literal("constraint argument"))
            while self.match(TokenType.COMMA):
                self.advance()
                node.params.append(self.parse_literal("constraint argument"))
        return node

    def parse_enum_group(self) -> syntax.AnnotationNode:
        """Parse ``(a|b|c)``; an empty group is left for the validator to reject."""
        open_token = self.expect(TokenType.LPAREN)
        node = syntax.AnnotationNode(
            name=syntax.ENUM_ANNOTATION,
            line=open_token.line,
            column=open_token.column,
            is_enum=True,
        )
        if not self.match(TokenType.RPAREN):
            node.params.append(self.parse_literal("enum value"))
            while self.match(TokenType.PIPE):
                self.advance()
                node.params.append(self.parse_literal("enum value"))
        self.expect(TokenType.RPAREN, "'|' or ')'")
        return node

    def parse_literal(self, what: str) -> syntax.AnnotationParam:
        token = self.current_token()
        kind = LITERAL_KINDS.get(token.type)
        if kind is None:
            raise self.error(f"Expected {what}, got {describe(token)}", what)
        self.advance()
        return syntax.AnnotationParam(value=token.value, kind=kind)
