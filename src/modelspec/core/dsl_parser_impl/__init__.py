"""
modelspec parser package.

The parser is built using mixins to separate parsing logic by construct type.

The main exports are:
- Parser: The complete parser class
- parse_dsl: Convenience function to parse a spec file

Usage:
    from modelspec.core.dsl_parser_impl import parse_dsl

    spec_file = parse_dsl(text, file)
"""

from pathlib import Path

from .. import syntax
from ..lexer import TokenType, tokenize
from .base import BaseParser
from .blocks import BlockParserMixin
from .endpoint import EndpointParserMixin
from .types import TypeParserMixin


class Parser(
    BaseParser,
    TypeParserMixin,
    BlockParserMixin,
    EndpointParserMixin,
):
    """
    Complete modelspec parser.

    - TypeParserMixin: Field lines, cardinality and annotations
    - BlockParserMixin: Declarations, shapes, spreads and imports
    - EndpointParserMixin: Endpoint and response blocks
    """

    def parse(self) -> syntax.SpecFile:
        """
        Parse an entire file.

        Returns:
            SpecFile with declarations and imports in source order
        """
        spec_file = syntax.SpecFile(path=self.file)

        while True:
            self.skip_separators()
            if self.match(TokenType.EOF):
                return spec_file

            if self.match(TokenType.IMPORT):
                spec_file.imports.append(self.parse_import())
            elif self.match(TokenType.IDENTIFIER):
                spec_file.declarations.append(self.parse_declaration())
            else:
                raise self.error(
                    "Expected an import or a declaration", expected="import or declaration"
                )


def parse_dsl(text: str, file: Path) -> syntax.SpecFile:
    """
    Parse a complete spec file.

    Args:
        text: Spec source text
        file: Source file path

    Returns:
        The raw SpecFile

    Raises:
        LexError: On a malformed token
        ParseError: On the first grammar violation
    """
    tokens = tokenize(text, file)
    parser = Parser(tokens, file)
    return parser.parse()


__all__ = [
    "Parser",
    "parse_dsl",
    "BaseParser",
    "TypeParserMixin",
    "BlockParserMixin",
    "EndpointParserMixin",
]
