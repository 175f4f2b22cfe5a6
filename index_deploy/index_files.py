"""Find and read the index definition files under a folder."""
from dataclasses import dataclass
from pathlib import Path


@dataclass
class IndexFile:
    path: Path
    name: str
    content: str


def discover_index_files(folder: Path) -> list[Path]:
    """All *.json files under folder (suffix matched case-insensitively), recursively, sorted by relative path."""
    return sorted(
        (p for p in folder.rglob("*") if p.suffix.lower() == ".json" and p.is_file()),
        key=lambda p: p.relative_to(folder).as_posix(),
    )


def read_index_file(path: Path, root: Path) -> IndexFile:
    return IndexFile(
        path=path,
        name=path.relative_to(root).as_posix(),
        content=path.read_text(encoding="utf-8"),
    )
