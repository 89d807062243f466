import logging
from pathlib import Path

from . import syntax
from .dsl_parser_impl import parse_dsl

logger = logging.getLogger(__name__)


def parse_spec_file(path: Path, encoding: str = "utf-8") -> syntax.SpecFile:
    """
    Read, tokenize and parse one spec file.

    Args:
        path: File to parse; stored resolved on the returned SpecFile
        encoding: Text encoding of the file

    Returns:
        Raw SpecFile with declarations and unresolved imports

    Raises:
        LexError: On a malformed token
        ParseError: On the first grammar violation
        OSError: If the file cannot be read
    """
    resolved = path.resolve()
    text = resolved.read_text(encoding=encoding)
    spec_file = parse_dsl(text, resolved)
    logger.debug(
        "Parsed %s: %d declaration(s), %d import(s)",
        resolved,
        len(spec_file.declarations),
        len(spec_file.imports),
    )
    return spec_file
