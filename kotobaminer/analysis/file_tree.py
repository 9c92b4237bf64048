import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Iterator, List, Optional, Union

from ..extractors.base import SUPPORTED_EXTENSIONS
from .base import FileReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TreeNodeId:
    """Stable node identity: node kind plus the path relative to the tree root."""

    kind: str
    key: str

    @classmethod
    def file(cls, key: str) -> "TreeNodeId":
        return cls("file", key)

    @classmethod
    def directory(cls, key: str) -> "TreeNodeId":
        return cls("dir", key)


@dataclass
class FileTreeNode:
    id: TreeNodeId
    name: str
    path: Path
    children: List["FileTreeNode"] = field(default_factory=list)
    size: int = 0
    selected: bool = True
    processed: bool = False
    comprehension: Optional[float] = None

    @property
    def is_file(self) -> bool:
        return self.id.kind == "file"

    def iter_files(self) -> Iterator["FileTreeNode"]:
        if self.is_file:
            yield self
            return
        for child in self.children:
            yield from child.iter_files()

    def files(self) -> List[Path]:
        return [node.path for node in self.iter_files()]

    def count_files(self) -> int:
        return sum(1 for _ in self.iter_files())

    def find(self, node_id: TreeNodeId) -> Optional["FileTreeNode"]:
        if self.id == node_id:
            return self
        for child in self.children:
            found = child.find(node_id)
            if found is not None:
                return found
        return None

    def set_selected(self, selected: bool) -> None:
        """Select or deselect this node and everything beneath it."""
        self.selected = selected
        for child in self.children:
            child.set_selected(selected)

    def selected_files(self) -> List[Path]:
        return [node.path for node in self.iter_files() if node.selected]

    def selection_state(self) -> str:
        """'all', 'none' or 'partial' over the leaf files."""
        flags = [node.selected for node in self.iter_files()]
        if flags and all(flags):
            return "all"
        if not any(flags):
            return "none"
        return "partial"

    def progress(self) -> float:
        """Fraction of leaf files already processed."""
        total = self.count_files()
        if total == 0:
            return 0.0
        return sum(1 for node in self.iter_files() if node.processed) / total


@dataclass
class FileTree:
    root: FileTreeNode
    skipped: List[Path] = field(default_factory=list)

    @property
    def files(self) -> List[Path]:
        return self.root.files()

    def sizes(self) -> Dict[Path, int]:
        return {node.path: node.size for node in self.root.iter_files()}

    def annotate(self, reports: Dict[Path, FileReport]) -> None:
        """Copy per-file comprehension onto leaf nodes."""
        for node in self.root.iter_files():
            report = reports.get(node.path)
            if report is not None:
                node.processed = True
                node.comprehension = report.comprehension


class FileTreeBuilder:
    """
    Discovers supported source files under a root and mirrors them as a tree.

    Unreadable directories are skipped and recorded, directories without
    supported descendants are pruned, and siblings are sorted by name.
    Symlinked directories are not followed.
    """

    def __init__(self, extensions: Optional[FrozenSet[str]] = None):
        self.extensions = frozenset(e.lower() for e in (extensions or SUPPORTED_EXTENSIONS))

    def _supported(self, name: str) -> bool:
        return os.path.splitext(name)[1].lower() in self.extensions

    def build(self, root: Union[str, Path]) -> FileTree:
        root = Path(root)
        skipped: List[Path] = []

        if root.is_file():
            node = self._file_node(root, root.name, root.name)
            tree_root = FileTreeNode(
                id=TreeNodeId.directory(""),
                name=root.parent.name,
                path=root.parent,
                children=[node] if self._supported(root.name) else [],
            )
            return FileTree(root=tree_root, skipped=skipped)

        tree_root = self._scan(root, "", skipped)
        if tree_root is None:
            tree_root = FileTreeNode(id=TreeNodeId.directory(""), name=root.name, path=root)
        logger.info(f"Found {tree_root.count_files()} source files under {root}")
        return FileTree(root=tree_root, skipped=skipped)

    def _file_node(self, path: Path, name: str, key: str) -> FileTreeNode:
        try:
            size = path.stat().st_size
        except OSError:
            size = 0
        return FileTreeNode(id=TreeNodeId.file(key), name=name, path=path, size=size)

    def _scan(self, directory: Path, key: str, skipped: List[Path]) -> Optional[FileTreeNode]:
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.warning(f"Skipping unreadable directory {directory}: {e}")
            skipped.append(directory)
            return None

        children: List[FileTreeNode] = []
        for entry in entries:
            child_key = f"{key}/{entry.name}" if key else entry.name
            try:
                if entry.is_dir(follow_symlinks=False):
                    child = self._scan(Path(entry.path), child_key, skipped)
                    if child is not None and child.children:
                        children.append(child)
                elif entry.is_file() and self._supported(entry.name):
                    children.append(self._file_node(Path(entry.path), entry.name, child_key))
            except OSError as e:
                logger.warning(f"Skipping {entry.path}: {e}")
                skipped.append(Path(entry.path))

        return FileTreeNode(
            id=TreeNodeId.directory(key),
            name=directory.name,
            path=directory,
            children=children,
        )
