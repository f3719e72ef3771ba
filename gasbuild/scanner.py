import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union


@dataclass(frozen=True)
class SourceFile:
    path: Path
    rel_path: str


def normalize_rel_path(value: str) -> str:
    """POSIX separators, no ``./`` prefix, no redundant segments."""
    return posixpath.normpath(value.replace("\\", "/"))


def scan_files(root: Union[str, Path], extension: str) -> List[SourceFile]:
    """Recursively collect files ending in ``extension`` under ``root``."""
    root = Path(root)
    if not root.is_dir():
        return []

    files = []
    for path in root.rglob(f"*{extension}"):
        if not path.is_file():
            continue
        rel_path = normalize_rel_path(path.relative_to(root).as_posix())
        files.append(SourceFile(path=path.resolve(), rel_path=rel_path))
    return sorted(files, key=lambda f: f.rel_path)


def order_by_priority(
    files: Iterable[SourceFile], priority: Optional[Iterable[str]] = None
) -> List[SourceFile]:
    """
    Files named in ``priority`` first, in that order; the rest sorted by
    relative path.
    """
    ranks: Dict[str, int] = {}
    for index, entry in enumerate(priority or []):
        ranks.setdefault(normalize_rel_path(entry), index)

    def sort_key(source: SourceFile):
        rank = ranks.get(source.rel_path)
        if rank is None:
            return (1, 0, source.rel_path)
        return (0, rank, "")

    return sorted(files, key=sort_key)
