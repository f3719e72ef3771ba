"""
Import inlining for the Apps Script runtime.

Apps Script loads every file into one flat global scope and has no module
loader. Each ``import`` (and each ``export ... from`` re-export) is therefore
bundled on its own and replaced by a constant bound to an
immediately-invoked closure that returns the imported bindings; ``export``
keywords on declarations are dropped.
"""

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from gasbuild.esm_parser import IMPORT_TYPES, parse_module
from gasbuild.scanner import SourceFile
from gasbuild.tools.base import Bundler

logger = logging.getLogger("gasbuild.inliner")

_TRAILING_SEMICOLON = re.compile(r"[ \t]*;")
_EXPORT_TAIL = re.compile(r"\bexport(?:\s*\{|\s+default\b)")


@dataclass(frozen=True)
class ProcessedFile:
    path: Path
    rel_path: str
    code: str


def _specifier_text(spec: Dict[str, str]) -> str:
    if spec["name"] == spec["alias"]:
        return spec["name"]
    return f"{spec['name']} as {spec['alias']}"


def entry_module(node: Dict[str, Any]) -> str:
    """One-line module re-exporting exactly what ``node`` imports."""
    source = json.dumps(node["source"])
    if node["type"] == "import_default":
        return f"export {{ default as default }} from {source};"
    if node["type"] in ("import_named", "export_clause"):
        names = ", ".join(_specifier_text(s) for s in node["specifiers"])
        return f"export {{ {names} }} from {source};"
    return f"import {source};"


def _export_object(tail: str) -> str:
    match = re.match(r"export\s+default\b", tail)
    if match:
        return f"{{ default: {tail[match.end():].strip()} }}"

    clause = parse_module(tail, "<bundle>")[-1]
    props = [f"{s['alias']}: {s['name']}" for s in clause["specifiers"]]
    return "{ " + ", ".join(props) + " }"


def wrap_bundle(code: str) -> str:
    """
    Turn bundler output into an expression evaluating to its exports.

    The final ``export`` statement becomes the closure's returned object:
    ``export{a as b,c}`` -> ``{ b: a, c: c }``, ``export default x`` ->
    ``{ default: x }``.
    """
    code = code.strip().rstrip(";\n")

    tail = None
    for tail in _EXPORT_TAIL.finditer(code):
        pass
    if tail is None:
        return f"(() => {{ {code}; return {{}}; }})()"

    body = code[: tail.start()]
    exports = _export_object(code[tail.start():])
    separator = "" if body.strip().endswith(";") else ";"
    return f"(() => {{ {body}{separator} return {exports}; }})()"


def _statement_end(source: str, end: int) -> int:
    semicolon = _TRAILING_SEMICOLON.match(source, end)
    return semicolon.end() if semicolon else end


def _import_replacement(node: Dict[str, Any], closure: str) -> str:
    if node["type"] == "import_default":
        return f"const {node['local']} = (function(r){{ return r.default || r; }})({closure});"
    if node["type"] in ("import_named", "export_clause"):
        # "default" cannot be a global name.
        names = ", ".join(s["alias"] for s in node["specifiers"] if s["alias"] != "default")
        if names:
            return f"const {{ {names} }} = {closure};"
    return f"{closure};"


def rewrite_module(
    source: str,
    base_dir: Optional[Path],
    bundler: Optional[Bundler],
    *,
    inline: bool = True,
    strip: bool = True,
    source_file: str = "<unknown>",
) -> str:
    """
    Inline imports and/or strip export keywords in one pass.

    Imports and ``export { ... } from`` re-exports are bundled in reverse
    order of appearance so earlier offsets stay valid while the text is
    rewritten. Bundler errors propagate.
    """
    nodes = parse_module(source, source_file)
    edits: List[Tuple[int, int, str]] = []

    for node in reversed(nodes):
        reexport = node["type"] == "export_clause" and node["source"] is not None
        if inline and (node["type"] in IMPORT_TYPES or reexport):
            if bundler is None:
                raise ValueError("A bundler is required to inline imports")
            end = _statement_end(source, node["end"])
            logger.debug(f"Inlining '{node['source']}' in {source_file}")
            output = bundler.bundle(entry_module(node), resolve_dir=base_dir)
            edits.append((node["start"], end, _import_replacement(node, wrap_bundle(output))))
        elif strip and node["type"] == "export_declaration":
            edits.append((node["start"], node["keyword_start"], ""))
        elif strip and node["type"] == "export_clause" and node["source"] is None:
            # Local bindings are already global once files share one scope.
            end = _statement_end(source, node["end"])
            edits.append((node["start"], end, ""))

    result = source
    for start, end, text in edits:
        result = result[:start] + text + result[end:]
    return result


def inline_imports(source: str, base_dir: Path, bundler: Bundler, source_file: str = "<unknown>") -> str:
    return rewrite_module(source, base_dir, bundler, strip=False, source_file=source_file)


def strip_exports(source: str, source_file: str = "<unknown>") -> str:
    return rewrite_module(source, None, None, inline=False, source_file=source_file)


def process_file(source_file: SourceFile, bundler: Bundler) -> ProcessedFile:
    source = source_file.path.read_text(encoding="utf-8")
    code = rewrite_module(source, source_file.path.parent, bundler, source_file=source_file.rel_path)
    return ProcessedFile(path=source_file.path, rel_path=source_file.rel_path, code=code)
