"""Data models for layer indexing."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


class LayerFileNotFoundError(FileNotFoundError):
    """None of the requested paths exist in the layer."""


@dataclass
class Layer:
    """An unpacked image layer: content hash plus file contents by relative path."""

    hash: str
    contents: dict[str, bytes] = field(default_factory=dict)

    @classmethod
    def from_directory(cls, root: Path, subdir: str = "etc") -> Layer:
        """Load the regular files under *root*/*subdir* of an unpacked layer."""
        contents: dict[str, bytes] = {}
        base = root / subdir
        if base.is_dir():
            for path in sorted(base.rglob("*")):
                if path.is_file():
                    contents[path.relative_to(root).as_posix()] = path.read_bytes()
        return cls(hash=str(root), contents=contents)

    def files(self, *paths: str) -> dict[str, bytes]:
        """Return the contents of every requested path present in the layer.

        Paths are relative to the layer root; a leading ``/`` is ignored.
        Raises :class:`LayerFileNotFoundError` if none of them exist.
        """
        found: dict[str, bytes] = {}
        for path in paths:
            rel = path.lstrip("/")
            if rel in self.contents:
                found[rel] = self.contents[rel]
        if not found:
            raise LayerFileNotFoundError(f"layer {self.hash}: none of {list(paths)} found")
        return found
