"""The ordered universe of UAST node types enumerated by the report."""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence, Tuple

from .errors import CatalogError
from .logging import get_logger

DEFAULT_NODE_TYPES: Tuple[str, ...] = (
    "Identifier",
    "String",
    "Bool",
    "QualifiedIdentifier",
    "Comment",
    "Group",
    "FunctionGroup",
    "Block",
    "Alias",
    "Import",
    "RuntimeImport",
    "RuntimeReImport",
    "InlineImport",
    "Argument",
    "FunctionType",
    "Function",
)


class NodeTypeCatalog(Sequence[str]):
    """Immutable, ordered list of node type names."""

    def __init__(self, names: Iterable[str]) -> None:
        ordered: list[str] = []
        seen: set[str] = set()
        for raw in names:
            name = str(raw).strip()
            if not name:
                raise CatalogError("Node type names must not be empty")
            if name in seen:
                raise CatalogError(f"Duplicate node type in catalog: {name}")
            seen.add(name)
            ordered.append(name)
        if not ordered:
            raise CatalogError("Node type catalog is empty")
        self._names: Tuple[str, ...] = tuple(ordered)
        self._members = frozenset(ordered)

    @classmethod
    def default(cls) -> "NodeTypeCatalog":
        return cls(DEFAULT_NODE_TYPES)

    def __getitem__(self, index):  # type: ignore[no-untyped-def, override]
        return self._names[index]

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._members

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NodeTypeCatalog):
            return self._names == other._names
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._names)

    def __repr__(self) -> str:
        return f"NodeTypeCatalog({list(self._names)!r})"

    def zeroed(self) -> dict[str, int]:
        """Return a usage mapping with every catalog entry present and set to zero."""
        return {name: 0 for name in self._names}


def resolve_catalog(names: Sequence[str] | None = None) -> NodeTypeCatalog:
    """Build the run's catalog from configured names, falling back to the defaults."""
    catalog = NodeTypeCatalog(names) if names else NodeTypeCatalog.default()
    get_logger("catalog").info("%d uast:* types found", len(catalog))
    return catalog


__all__ = ["DEFAULT_NODE_TYPES", "NodeTypeCatalog", "resolve_catalog"]
