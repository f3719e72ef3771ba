"""
Minification with graceful degradation.

A minifier failure never stops the build: the error is logged and the
unminified input is used instead.
"""

import copy
import logging
import re
from typing import Any, Dict, Iterable, List

from gasbuild.tools.base import HtmlMinifier, Minifier, ToolError

logger = logging.getLogger("gasbuild.minify")

TERSER_OPTIONS: Dict[str, Any] = {
    "ecma": 2020,
    "parse": {"html5_comments": False},
    "mangle": {"toplevel": True, "reserved": []},
    "compress": {"dead_code": True, "drop_console": False, "passes": 2},
    "format": {"comments": False, "ascii_only": False, "ecma": 2020},
}

HTML_MINIFIER_OPTIONS: Dict[str, Any] = {
    "collapseWhitespace": True,
    "removeComments": True,
    "removeRedundantAttributes": True,
    "removeScriptTypeAttributes": True,
    "removeStyleLinkTypeAttributes": True,
    "useShortDoctype": True,
    "minifyCSS": True,
    "minifyJS": True,
    "keepClosingSlash": False,
    "removeAttributeQuotes": False,
}

# Apps Script calls entry points (doGet, onOpen, triggers) by name.
_GLOBAL_FUNCTION = re.compile(r"^function\s+([a-zA-Z0-9_$]+)", re.MULTILINE)
_GLOBAL_VAR = re.compile(r"^var\s+([a-zA-Z0-9_$]+)", re.MULTILINE)


def extract_global_names(code: str) -> List[str]:
    """Names of line-start ``function``/``var`` declarations, first seen first."""
    names = _GLOBAL_FUNCTION.findall(code) + _GLOBAL_VAR.findall(code)
    return list(dict.fromkeys(names))


def terser_options(reserved: Iterable[str]) -> Dict[str, Any]:
    options = copy.deepcopy(TERSER_OPTIONS)
    options["mangle"]["reserved"] = list(reserved)
    return options


def minify_code(code: str, minifier: Minifier) -> str:
    reserved = extract_global_names(code)
    try:
        result = minifier.minify(code, terser_options(reserved))
    except ToolError as e:
        logger.error(f"JS minify error: {e}")
        return code
    return result or code


def minify_html(html: str, minifier: HtmlMinifier, label: str = "<html>") -> str:
    try:
        result = minifier.minify(html, dict(HTML_MINIFIER_OPTIONS))
    except ToolError as e:
        logger.warning(f"HTML minify error: {label}: {e}")
        return html
    return result or html
