"""Filesystem enumeration for a vectorization run.

The tree is walked once, up front.  Hidden directories and dependency
folders are never entered; paths matching an exclusion are kept as
leaves flagged ``excluded`` so the run can count them.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from semtree.domain.paths import is_ignored_directory, normalize_path


@dataclass
class TreeNode:
    path: str
    fs_path: Path
    is_dir: bool
    depth: int = 0
    excluded: bool = False
    children: list[TreeNode] = field(default_factory=list)

    def walk(self) -> Iterator[TreeNode]:
        """Pre-order traversal of this node and everything under it."""
        yield self
        for child in self.children:
            yield from child.walk()


def discover_tree(root: Path, is_excluded: Callable[[str], bool]) -> TreeNode:
    """Enumerate *root* into a :class:`TreeNode` hierarchy.

    Symlinked directories are not followed.  Unreadable directories are
    kept as empty nodes.
    """
    root = Path(root)
    if not root.is_dir():
        raise NotADirectoryError(f"'{root}' is not a directory")
    node = TreeNode(path=normalize_path(root), fs_path=root, is_dir=True)
    node.excluded = is_excluded(node.path)
    if not node.excluded:
        _fill(node, is_excluded)
    return node


def _fill(node: TreeNode, is_excluded: Callable[[str], bool]) -> None:
    try:
        entries = sorted(os.scandir(node.fs_path), key=lambda e: e.name)
    except OSError:
        return
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
            is_file = entry.is_file()
        except OSError:
            continue
        if is_dir and is_ignored_directory(entry.name):
            continue
        if not is_dir and not is_file:
            continue
        child = TreeNode(
            path=normalize_path(entry.path),
            fs_path=Path(entry.path),
            is_dir=is_dir,
            depth=node.depth + 1,
        )
        child.excluded = is_excluded(child.path)
        if is_dir and not child.excluded:
            _fill(child, is_excluded)
        node.children.append(child)


def bottom_up(root: TreeNode) -> list[TreeNode]:
    """Non-excluded nodes ordered deepest first; ties keep walk order."""
    nodes = [n for n in root.walk() if not n.excluded]
    return sorted(nodes, key=lambda n: -n.depth)
