from typing import Dict, Iterable, List, Optional

from models import FileNode

_FILE = object()


def build_file_tree(paths: Iterable[str], sizes: Optional[Dict[str, int]] = None) -> List[FileNode]:
    """Nests slash-separated relative paths into FileNodes.

    Sibling order is first-insertion order of ``paths``, never alphabetical.
    Repeated paths collapse into one node.
    """
    sizes = sizes or {}
    root: dict = {}

    for path in paths:
        parts = [p for p in path.split("/") if p]
        current = root
        for i, part in enumerate(parts):
            last = i == len(parts) - 1
            existing = current.get(part)
            if last:
                if isinstance(existing, dict):
                    raise ValueError(f"{path} is already a folder")
                current[part] = _FILE
            else:
                if existing is _FILE:
                    raise ValueError(f"{'/'.join(parts[:i + 1])} is already a file")
                current = current.setdefault(part, {})

    return _to_nodes(root, "", sizes)


def _to_nodes(level: dict, base: str, sizes: Dict[str, int]) -> List[FileNode]:
    nodes = []
    for name, value in level.items():
        path = f"{base}/{name}" if base else name
        if value is _FILE:
            nodes.append(FileNode(name=name, path=path, type="file", size=sizes.get(path)))
        else:
            nodes.append(FileNode(name=name, path=path, type="folder", children=_to_nodes(value, path, sizes)))
    return nodes
