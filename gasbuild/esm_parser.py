"""
ECMAScript module item parser.

Parses a source file into the list of its top-level import/export items
with character offsets, so callers can rewrite them in place. Comments,
strings and template literals are tokenised properly, so ``import`` inside
them is never mistaken for a statement.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput

logger = logging.getLogger("gasbuild.esm_parser")

GRAMMAR_PATH = Path(__file__).with_name("esm.lark")

IMPORT_TYPES = ("import_default", "import_named", "import_bare")


class SourceSyntaxError(Exception):
    """Source could not be split into module items."""

    def __init__(self, source_file: str, line: int, column: int, detail: str):
        super().__init__(f"Syntax error in {source_file} at line {line}, col {column}: {detail}")
        self.source_file = source_file
        self.line = line
        self.column = column


def _unquote(token: Token) -> str:
    return str(token)[1:-1]


class ModuleTransformer(Transformer):
    def __init__(self, source_file: str = "<unknown>"):
        super().__init__()
        self.source_file = source_file

    def _add_span(self, node: Dict[str, Any], tokens: List[Token]) -> Dict[str, Any]:
        node["start"] = tokens[0].start_pos
        node["end"] = tokens[-1].end_pos
        node["line"] = tokens[0].line
        node["file"] = self.source_file
        return node

    def start(self, items):
        return [item for item in items if isinstance(item, dict)]

    def specifier(self, args):
        names = [str(t) for t in args if t.type != "AS"]
        name = names[0]
        return {"name": name, "alias": names[1] if len(names) > 1 else name}

    def import_default(self, args):
        return self._add_span(
            {"type": "import_default", "local": str(args[1]), "source": _unquote(args[3])},
            args,
        )

    def import_named(self, args):
        tokens = [a for a in args if isinstance(a, Token)]
        specifiers = [a for a in args if isinstance(a, dict)]
        return self._add_span(
            {"type": "import_named", "specifiers": specifiers, "source": _unquote(tokens[-1])},
            tokens,
        )

    def import_bare(self, args):
        return self._add_span({"type": "import_bare", "source": _unquote(args[1])}, args)

    def import_expression(self, args):
        return None

    def export_declaration(self, args):
        keyword = args[1]
        node = self._add_span({"type": "export_declaration", "keyword": str(keyword)}, args)
        node["keyword_start"] = keyword.start_pos
        return node

    def export_clause(self, args):
        tokens = [a for a in args if isinstance(a, Token)]
        specifiers = [a for a in args if isinstance(a, dict)]
        source = _unquote(tokens[-1]) if tokens[-1].type == "STRING" else None
        return self._add_span(
            {"type": "export_clause", "specifiers": specifiers, "source": source},
            tokens,
        )

    def export_default(self, args):
        return self._add_span({"type": "export_default"}, args)


class ModuleParser:
    _parsers: Dict[str, Lark] = {}

    def __init__(self, grammar_path: Union[str, Path] = GRAMMAR_PATH):
        key = str(grammar_path)
        if key not in self._parsers:
            grammar = Path(grammar_path).read_text(encoding="utf-8")
            self._parsers[key] = Lark(grammar, start="start", parser="lalr")
        self.parser = self._parsers[key]

    def parse(self, source: str, source_file: str = "<unknown>") -> List[Dict[str, Any]]:
        """
        Returns the module's import/export items in source order.

        Each item is a dict with ``type``, ``start`` and ``end`` offsets and
        type-specific fields (``source``, ``local``, ``specifiers``,
        ``keyword``).

        Raises:
            SourceSyntaxError: if the source cannot be tokenised or an
                import/export form is malformed.
        """
        try:
            tree = self.parser.parse(source)
        except UnexpectedInput as e:
            line = getattr(e, "line", -1)
            column = getattr(e, "column", -1)
            detail = (str(e).strip().splitlines() or ["unexpected input"])[0]
            raise SourceSyntaxError(source_file, line, column, detail) from e

        items = ModuleTransformer(source_file).transform(tree)
        logger.debug(f"Parsed {source_file}: {len(items)} module items")
        return items


def parse_module(source: str, source_file: str = "<unknown>") -> List[Dict[str, Any]]:
    return ModuleParser().parse(source, source_file)
