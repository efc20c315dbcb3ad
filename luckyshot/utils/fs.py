import os
from pathlib import Path
from typing import Iterable, List
import portalocker

SKIP_DIRS = {"node_modules", "venv", "__pycache__", "dist", "build", "target"}


class FileLock:
    def __init__(self, target: Path):
        self.target = Path(target).with_suffix(Path(target).suffix + ".lock")
        self._fh = None

    def __enter__(self):
        self.target.parent.mkdir(parents=True, exist_ok=True)
        self._fh = open(self.target, "w")
        portalocker.lock(self._fh, portalocker.LOCK_EX)
        return self

    def __exit__(self, exc_type, exc, tb):
        portalocker.unlock(self._fh)
        self._fh.close()


def atomic_write(path: Path, content: str) -> None:
    """
    Write content to `path` atomically: write to a temp file, then rename.
    Readers see either the old file or the new one, never a partial write.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as fh:
        fh.write(content)
    os.replace(tmp, path)


def find_matching_files(
    root: Path,
    pattern: str,
    exclude: Iterable[str] = (),
    exclude_dirs: Iterable[Path] = (),
) -> List[Path]:
    """
    Return files under `root` matching the glob `pattern` (relative to root),
    sorted. Hidden files/directories, common build directories, the names in
    `exclude` and anything under `exclude_dirs` are skipped.
    """
    excluded = set(exclude)
    skipped_dirs = [Path(d).resolve() for d in exclude_dirs]
    matches: List[Path] = []
    for path in root.glob(pattern):
        if not path.is_file():
            continue
        rel_parts = path.relative_to(root).parts
        if any(part.startswith(".") for part in rel_parts):
            continue
        if any(part in SKIP_DIRS for part in rel_parts[:-1]):
            continue
        if path.name in excluded:
            continue
        if any(path.resolve().is_relative_to(d) for d in skipped_dirs):
            continue
        matches.append(path)
    return sorted(matches)
