"""Tree-sitter powered scanner for UAST references in Go mapping code."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Set

import tree_sitter_go
from tree_sitter import Language, Node, Parser

from .base import UsageScanner

GO_LANGUAGE = Language(tree_sitter_go.language())

# Marks `import . "<package>"`, whose types are referenced without a qualifier.
_DOT_IMPORT = "."
_DECLARING_PARENTS = frozenset({"qualified_type", "type_spec", "type_alias"})


class CodeScanner(UsageScanner):
    """Counts syntactic references to catalog types through the UAST package.

    ``uast.Identifier{}`` composite literals, ``*uast.Identifier`` type
    references and ``uast.Identifier`` selector expressions each count once per
    use-site. When the package is dot-imported, bare ``Identifier{}`` type
    references count instead. Names outside ``node_types`` are ignored, as are
    references made through any package other than ``package``.
    """

    def __init__(
        self,
        node_types: Iterable[str],
        patterns: Sequence[str] = ("driver/normalizer/*.go",),
        *,
        package: str = "github.com/bblfsh/sdk/v3/uast",
    ) -> None:
        super().__init__(patterns)
        self.node_types = frozenset(node_types)
        self.package = package
        self._parser = Parser(GO_LANGUAGE)

    def count(self, path: Path) -> Iterable[str]:
        source = path.read_bytes()
        tree = self._parser.parse(source)
        aliases = self._package_aliases(tree.root_node, source)
        if not aliases:
            return []
        return list(self._references(tree.root_node, source, aliases))

    def _package_aliases(self, root: Node, source: bytes) -> Set[str]:
        aliases: Set[str] = set()
        default_name = self.package.rstrip("/").rsplit("/", 1)[-1]
        for node in _walk(root):
            if node.type != "import_spec":
                continue
            path_node = node.child_by_field_name("path")
            if path_node is None:
                continue
            import_path = _node_text(path_node, source).strip("\"`")
            if not _same_package(import_path, self.package):
                continue
            name_node = node.child_by_field_name("name")
            if name_node is None:
                aliases.add(default_name)
            elif name_node.type == "dot":
                aliases.add(_DOT_IMPORT)
            elif name_node.type == "package_identifier":
                aliases.add(_node_text(name_node, source))
        return aliases

    def _references(self, root: Node, source: bytes, aliases: Set[str]) -> Iterator[str]:
        for node in _walk(root):
            name = self._referenced_type(node, source, aliases)
            if name is not None:
                yield name

    def _referenced_type(self, node: Node, source: bytes, aliases: Set[str]) -> Optional[str]:
        if node.type == "type_identifier":
            if _DOT_IMPORT not in aliases:
                return None
            parent = node.parent
            if parent is not None and parent.type in _DECLARING_PARENTS:
                return None
            name = _node_text(node, source)
            return name if name in self.node_types else None
        if node.type == "qualified_type":
            qualifier = node.child_by_field_name("package")
            target = node.child_by_field_name("name")
        elif node.type == "selector_expression":
            qualifier = node.child_by_field_name("operand")
            target = node.child_by_field_name("field")
            if qualifier is not None and qualifier.type != "identifier":
                return None
        else:
            return None
        if qualifier is None or target is None:
            return None
        if _node_text(qualifier, source) not in aliases:
            return None
        name = _node_text(target, source)
        return name if name in self.node_types else None


def _walk(root: Node) -> Iterator[Node]:
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


def _same_package(import_path: str, package: str) -> bool:
    # Major version suffixes (sdk/v3/uast vs sdk/uast) refer to the same package.
    def _strip_version(value: str) -> str:
        parts = [part for part in value.strip("/").split("/") if not _is_major_version(part)]
        return "/".join(parts)

    return _strip_version(import_path) == _strip_version(package)


def _is_major_version(part: str) -> bool:
    return len(part) > 1 and part[0] == "v" and part[1:].isdigit()


__all__ = ["CodeScanner", "GO_LANGUAGE"]
