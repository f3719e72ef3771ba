"""
Backend amalgamation.

Backend sources are ordered, stripped of module syntax and either joined
into one script (``concatenate``) or emitted file by file, optionally
minified. Apps Script evaluates files in push order, so priority entries
(polyfills, shared constants) come first.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from gasbuild.config import BuildConfig, read_banner
from gasbuild.inliner import ProcessedFile, process_file
from gasbuild.minify import minify_code
from gasbuild.scanner import order_by_priority, scan_files
from gasbuild.tools.base import Minifier
from gasbuild.tools.factory import Toolchain

logger = logging.getLogger("gasbuild.backend")


def concatenate_files(processed: Iterable[ProcessedFile]) -> str:
    content = ""
    for pfile in processed:
        content += f"\n// --- {pfile.rel_path} ---\n{pfile.code}\n"
    return content


def write_concatenated(
    processed: List[ProcessedFile],
    out_file: Path,
    banner: str = "",
    minifier: Optional[Minifier] = None,
) -> Path:
    content = concatenate_files(processed)
    if minifier is not None:
        content = minify_code(content, minifier)

    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(banner + content, encoding="utf-8")
    return out_file


def write_separate(
    processed: List[ProcessedFile],
    out_dir: Path,
    minifier: Optional[Minifier] = None,
) -> List[Path]:
    written = []
    for pfile in processed:
        content = pfile.code
        if minifier is not None:
            content = minify_code(content, minifier)

        dest = out_dir / pfile.rel_path
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(content, encoding="utf-8")
        logger.info(f"-> {pfile.rel_path}")
        written.append(dest)
    return written


def build_backend(config: BuildConfig, toolchain: Toolchain, project_root: Path) -> List[Path]:
    backend = config.backend
    if not backend.build:
        return []

    src_dir = (project_root / backend.src).resolve()
    out_dir = (project_root / config.out_dir).resolve()
    files = scan_files(src_dir, ".js")
    if not files:
        logger.info(f"No JS sources in {backend.src}, skipping backend.")
        return []

    logger.info("Building Backend...")
    ordered = order_by_priority(files, backend.priority_order)
    processed = [process_file(source, toolchain.bundler) for source in ordered]
    minifier = toolchain.minifier if backend.minify else None

    if backend.concatenate:
        banner = read_banner(project_root / config.package)
        out_file = write_concatenated(processed, out_dir / backend.out_file, banner, minifier)
        logger.info(f"Backend concatenated to {backend.out_file}")
        return [out_file]

    logger.info("Processing backend as separate files...")
    written = write_separate(processed, out_dir, minifier)
    logger.info(f"Backend files processed ({len(written)})")
    return written
