import logging
from pathlib import Path
from typing import List

from gasbuild.config import BuildConfig, settings
from gasbuild.minify import minify_html
from gasbuild.scanner import scan_files
from gasbuild.tools.base import ToolError
from gasbuild.tools.factory import Toolchain

logger = logging.getLogger("gasbuild.frontend")


class FrontendBuildError(Exception):
    """Building one HTML entry failed; the whole build stops."""

    def __init__(self, entry: str, cause: Exception):
        super().__init__(f"Error building {entry}: {cause}")
        self.entry = entry


def build_frontend(config: BuildConfig, toolchain: Toolchain, project_root: Path) -> List[Path]:
    """
    Build every HTML entry under ``frontend.src`` into its own
    self-contained file at the same relative path under ``outDir``.

    Entries are built one at a time without emptying the output directory,
    so earlier outputs survive later builds.
    """
    frontend = config.frontend
    if not frontend.build:
        return []

    src_dir = (project_root / frontend.src).resolve()
    out_dir = (project_root / config.out_dir).resolve()
    entries = scan_files(src_dir, ".html")
    if not entries:
        logger.info(f"No HTML entries in {frontend.src}, skipping frontend.")
        return []

    logger.info("Building Frontend...")
    written = []
    for entry in entries:
        logger.info(f"-> {entry.rel_path}")
        try:
            toolchain.frontend.build_entry(
                entry, src_dir=src_dir, out_dir=out_dir, minify=frontend.minify, cwd=project_root
            )
        except ToolError as e:
            raise FrontendBuildError(entry.rel_path, e) from e

        output = out_dir / entry.rel_path
        if frontend.minify and output.is_file():
            html = output.read_text(encoding="utf-8")
            output.write_text(minify_html(html, toolchain.html_minifier, entry.rel_path), encoding="utf-8")
        written.append(output)

    logger.info(f"Frontend built ({len(entries)} files)")
    return written


def start_dev_server(config: BuildConfig, toolchain: Toolchain, project_root: Path) -> None:
    src_dir = (project_root / config.frontend.src).resolve()
    toolchain.frontend.serve(src_dir, port=settings.DEV_SERVER_PORT, cwd=project_root)
