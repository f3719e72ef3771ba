from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from gasbuild.config import settings

from .base import Bundler, DeployCli, FrontendBuilder, HtmlMinifier, Minifier
from .clasp import ClaspCli
from .node import EsbuildBundler, HtmlMinifierTerser, TerserMinifier, ViteBuilder


@dataclass
class Toolchain:
    """The set of external capabilities one build run uses."""

    bundler: Bundler
    minifier: Minifier
    html_minifier: HtmlMinifier
    frontend: FrontendBuilder
    deploy_cli: DeployCli


# Cache: (kind, project root) -> instance
_TOOLCHAIN_CACHE: Dict[Tuple[str, str], Toolchain] = {}


def create_toolchain(kind: str = "node", cwd: Optional[Union[str, Path]] = None) -> Toolchain:
    """
    Create or retrieve a toolchain.

    Args:
        kind: toolchain family; only "node" (npx-driven tools) exists.
        cwd: project root the deployment CLI runs in.

    Raises:
        ValueError: for an unknown kind.
    """
    kind = kind.lower()
    root = str(Path(cwd).resolve()) if cwd else ""
    cache_key = (kind, root)
    if cache_key in _TOOLCHAIN_CACHE:
        return _TOOLCHAIN_CACHE[cache_key]

    if kind == "node":
        toolchain = Toolchain(
            bundler=EsbuildBundler(),
            minifier=TerserMinifier(),
            html_minifier=HtmlMinifierTerser(),
            frontend=ViteBuilder(),
            deploy_cli=ClaspCli(cwd=root or None),
        )
        _TOOLCHAIN_CACHE[cache_key] = toolchain
        return toolchain

    raise ValueError(f"Unknown toolchain: {kind}")


def get_toolchain(cwd: Optional[Union[str, Path]] = None) -> Toolchain:
    """Toolchain selected by ``GASBUILD_TOOLCHAIN`` (default: "node")."""
    return create_toolchain(settings.TOOLCHAIN, cwd)
