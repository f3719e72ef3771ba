from pathlib import Path
from typing import Optional, Union

from .base import DeployCli, run_command
from .node import NodeTool


class ClaspCli(NodeTool, DeployCli):
    """The Apps Script ``clasp`` CLI, run from the project root."""

    package = "@google/clasp"

    def __init__(self, npx: Optional[str] = None, cwd: Optional[Union[str, Path]] = None):
        super().__init__(npx)
        self.cwd = cwd

    def run(self, *args: str) -> str:
        return run_command(self.command(*args), cwd=self.cwd).stdout
