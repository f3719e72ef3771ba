"""
Black-box tool boundary.

Every external program the build drives (bundler, minifiers, frontend
build tool, deployment CLI) sits behind one of the interfaces below, so a
pipeline can be run against fakes without spawning node.
"""

import logging
import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

logger = logging.getLogger("gasbuild.tools")

DEFAULT_LOG_CHARS = 2000


@dataclass
class CommandResult:
    command: List[str]
    stdout: str
    stderr: str
    exit_code: int
    duration_ms: float


class ToolError(Exception):
    """An external tool failed. ``stderr`` is the tool's raw error stream."""

    def __init__(
        self,
        message: str,
        command: Optional[Sequence[str]] = None,
        exit_code: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = list(command or [])
        self.exit_code = exit_code
        self.stderr = stderr


class CommandNotFoundError(ToolError):
    """The tool's executable is not on PATH."""


def truncate_output(text: str, max_chars: int = DEFAULT_LOG_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "\n... (output truncated)"


def run_command(
    command: Sequence[str],
    input_text: Optional[str] = None,
    cwd: Optional[Union[str, Path]] = None,
) -> CommandResult:
    """
    Run ``command`` to completion and capture its output.

    No timeout is applied. A non-zero exit raises ``ToolError`` carrying the
    command's stderr (or stdout when stderr is empty).
    """
    command = [str(part) for part in command]
    start_time = time.time()
    logger.debug(f"$ {' '.join(command)}")

    try:
        result = subprocess.run(
            command,
            input=input_text,
            capture_output=True,
            encoding="utf-8",
            cwd=str(cwd) if cwd else None,
        )
    except FileNotFoundError:
        raise CommandNotFoundError(f"Command not found: {command[0]}", command=command)

    duration_ms = (time.time() - start_time) * 1000
    stdout = result.stdout or ""
    stderr = result.stderr or ""

    if result.returncode != 0:
        detail = (stderr or stdout).strip()
        raise ToolError(
            f"Command failed: {' '.join(command)}\n{detail}",
            command=command,
            exit_code=result.returncode,
            stderr=stderr,
        )

    logger.debug(f"{command[0]} finished in {duration_ms:.0f}ms: {truncate_output(stdout)}")
    return CommandResult(
        command=command,
        stdout=stdout,
        stderr=stderr,
        exit_code=result.returncode,
        duration_ms=duration_ms,
    )


def run_foreground(command: Sequence[str], cwd: Optional[Union[str, Path]] = None) -> int:
    """Run a long-lived command attached to the terminal until it exits."""
    command = [str(part) for part in command]
    logger.debug(f"$ {' '.join(command)}")
    try:
        result = subprocess.run(command, cwd=str(cwd) if cwd else None)
    except FileNotFoundError:
        raise CommandNotFoundError(f"Command not found: {command[0]}", command=command)
    if result.returncode != 0:
        raise ToolError(
            f"Command failed: {' '.join(command)}",
            command=command,
            exit_code=result.returncode,
        )
    return result.returncode


class Bundler(ABC):
    @abstractmethod
    def bundle(self, entry_source: str, resolve_dir: Path) -> str:
        """Bundle a one-line entry module; imports resolve from ``resolve_dir``."""


class Minifier(ABC):
    @abstractmethod
    def minify(self, code: str, options: Dict[str, Any]) -> str:
        """Minify JavaScript with terser-style ``options``."""


class HtmlMinifier(ABC):
    @abstractmethod
    def minify(self, html: str, options: Dict[str, Any]) -> str:
        """Minify an HTML document with html-minifier-style ``options``."""


class FrontendBuilder(ABC):
    @abstractmethod
    def build_entry(self, entry, src_dir: Path, out_dir: Path, minify: bool, cwd: Path) -> None:
        """Build one HTML entry into a single self-contained file under ``out_dir``."""

    @abstractmethod
    def serve(self, src_dir: Path, port: int, cwd: Path) -> None:
        """Run the development server until it exits."""


class DeployCli(ABC):
    @abstractmethod
    def run(self, *args: str) -> str:
        """Run a deployment CLI subcommand and return its stdout."""
