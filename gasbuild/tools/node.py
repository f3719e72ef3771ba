"""
Node-based build tools invoked through ``npx``.

esbuild, terser, html-minifier-terser and vite are driven through their
command-line interfaces: source goes in on stdin, results come back on
stdout, and options are handed over as temporary JSON/JS config files.
"""

import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from gasbuild.config import settings

from .base import (
    Bundler,
    FrontendBuilder,
    HtmlMinifier,
    Minifier,
    run_command,
    run_foreground,
)

logger = logging.getLogger("gasbuild.tools.node")

VITE_PLUGIN_IMPORTS = (
    "import { svelte } from '@sveltejs/vite-plugin-svelte';\n"
    "import { viteSingleFile } from 'vite-plugin-singlefile';\n"
)

VITE_TERSER_OPTIONS = {
    "ecma": 2020,
    "compress": {"drop_console": False, "passes": 2},
    "format": {"comments": False},
}


class NodeTool:
    """A node package executed with ``npx``."""

    package = ""

    def __init__(self, npx: Optional[str] = None):
        self.npx = npx or settings.NPX_COMMAND

    def command(self, *args: str) -> List[str]:
        return [self.npx, "--yes", self.package, *args]


class EsbuildBundler(NodeTool, Bundler):
    package = "esbuild"

    def bundle(self, entry_source: str, resolve_dir: Path) -> str:
        # esbuild resolves stdin imports relative to its working directory.
        cmd = self.command(
            "--bundle",
            "--minify",
            "--format=esm",
            "--target=es2020",
            "--loader=js",
            "--sourcefile=virtual-entry.js",
            "--log-level=error",
        )
        return run_command(cmd, input_text=entry_source, cwd=resolve_dir).stdout


class _ConfigFileMinifier(NodeTool):
    def _run_with_options(self, text: str, options: Dict[str, Any]) -> str:
        with tempfile.TemporaryDirectory(prefix="gasbuild_") as temp_dir:
            config_path = Path(temp_dir) / "options.json"
            config_path.write_text(json.dumps(options), encoding="utf-8")
            cmd = self.command("--config-file", str(config_path))
            return run_command(cmd, input_text=text).stdout


class TerserMinifier(_ConfigFileMinifier, Minifier):
    package = "terser"

    def minify(self, code: str, options: Dict[str, Any]) -> str:
        return self._run_with_options(code, options)


class HtmlMinifierTerser(_ConfigFileMinifier, HtmlMinifier):
    package = "html-minifier-terser"

    def minify(self, html: str, options: Dict[str, Any]) -> str:
        return self._run_with_options(html, options)


class ViteBuilder(NodeTool, FrontendBuilder):
    """
    Builds each HTML entry with vite, the svelte plugin and
    vite-plugin-singlefile so scripts and styles are inlined into the page.
    """

    package = "vite"

    def entry_config(self, entry, src_dir: Path, out_dir: Path, minify: bool) -> Dict[str, Any]:
        # "sub/index.html" -> input name "sub/index" -> <out_dir>/sub/index.html
        entry_name = entry.rel_path[: -len(".html")] if entry.rel_path.endswith(".html") else entry.rel_path
        build: Dict[str, Any] = {
            "outDir": str(out_dir),
            "emptyOutDir": False,
            "minify": "terser" if minify else False,
            "modulePreload": False,
            "rollupOptions": {
                "input": {entry_name: str(entry.path)},
                "output": {
                    "entryFileNames": "[name].js",
                    "assetFileNames": "[name].[ext]",
                },
            },
        }
        if minify:
            build["terserOptions"] = VITE_TERSER_OPTIONS
        return {"root": str(src_dir), "build": build}

    def dev_config(self, src_dir: Path, port: int) -> Dict[str, Any]:
        return {
            "root": str(src_dir),
            "server": {"port": port, "open": True, "cors": True},
        }

    def render_config(self, config: Dict[str, Any], single_file: bool) -> str:
        plugins = "svelte()"
        if single_file:
            plugins += ", viteSingleFile({ removeViteModuleLoader: true })"
        return (
            VITE_PLUGIN_IMPORTS
            + f"\nconst config = {json.dumps(config, indent=2)};\n"
            + f"config.plugins = [{plugins}];\n\n"
            + "export default config;\n"
        )

    def _write_config(self, cwd: Path, text: str) -> Path:
        # Kept inside the project so the plugin imports resolve from its node_modules.
        handle = tempfile.NamedTemporaryFile(
            "w", suffix=".vite.config.mjs", prefix=".gasbuild_", dir=str(cwd), delete=False, encoding="utf-8"
        )
        with handle:
            handle.write(text)
        return Path(handle.name)

    def build_entry(self, entry, src_dir: Path, out_dir: Path, minify: bool, cwd: Path) -> None:
        config = self.entry_config(entry, src_dir, out_dir, minify)
        config_path = self._write_config(cwd, self.render_config(config, single_file=True))
        try:
            run_command(self.command("build", "--config", str(config_path)), cwd=cwd)
        finally:
            config_path.unlink(missing_ok=True)

    def serve(self, src_dir: Path, port: int, cwd: Path) -> None:
        config_path = self._write_config(cwd, self.render_config(self.dev_config(src_dir, port), single_file=False))
        logger.info("Starting Vite dev server...")
        try:
            run_foreground(self.command("--config", str(config_path)), cwd=cwd)
        except KeyboardInterrupt:
            logger.info("Dev server stopped.")
        finally:
            config_path.unlink(missing_ok=True)
