"""In-memory category forest used for breadcrumbs, subtree filters and menus.

Rows are loaded once into an id-indexed mapping and every walk is done by id
lookup, so a corrupt parent loop can never send a traversal around forever.
Only active categories take part in traversals.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.orm import Session

from storefront.models.category import Category

logger = logging.getLogger(__name__)

BREADCRUMB_SEPARATOR = " > "


@dataclass(frozen=True)
class CategoryNode:
    id: int
    name: str
    parent_id: int | None


@dataclass(frozen=True)
class CategoryMenuNode:
    id: int
    name: str
    children: tuple[CategoryMenuNode, ...] = ()


def _sort_key(node: CategoryNode) -> tuple[str, int]:
    # Plain str ordering is code point (ordinal) ordering.
    return node.name, node.id


class CategoryTree:
    def __init__(self, rows: Iterable[CategoryNode]) -> None:
        self._nodes: dict[int, CategoryNode] = {}
        for row in rows:
            self._nodes[row.id] = CategoryNode(id=row.id, name=row.name, parent_id=row.parent_id)

        self._children: dict[int, list[int]] = defaultdict(list)
        self._roots: list[int] = []
        for node in self._nodes.values():
            if node.parent_id is not None and node.parent_id in self._nodes:
                self._children[node.parent_id].append(node.id)
            else:
                self._roots.append(node.id)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get(self, category_id: int) -> CategoryNode | None:
        return self._nodes.get(category_id)

    def parent_of(self, category_id: int) -> int | None:
        node = self._nodes.get(category_id)
        if node is None or node.parent_id not in self._nodes:
            return None
        return node.parent_id

    def ancestor_chain(self, leaf_id: int) -> list[int]:
        """Return ``[root, ..., leaf]``; empty when ``leaf_id`` is unknown."""
        chain: list[int] = []
        seen: set[int] = set()
        current: int | None = leaf_id
        while current is not None and current in self._nodes and current not in seen:
            seen.add(current)
            chain.append(current)
            current = self._nodes[current].parent_id
        if current is not None and current in seen:
            logger.warning("Category parent loop detected at %s", current)
        chain.reverse()
        return chain

    def descendants_inclusive(self, root_id: int) -> set[int]:
        """Return ``root_id`` plus every transitive child of it.

        Ids outside the tree (unknown or inactive) have no subtree and yield an
        empty set.
        """
        if root_id not in self._nodes:
            return set()
        found: set[int] = {root_id}
        stack = [root_id]
        while stack:
            current = stack.pop()
            for child_id in self._children.get(current, ()):
                if child_id in found:
                    continue
                found.add(child_id)
                stack.append(child_id)
        return found

    def children_of(self, parent_id: int | None) -> list[CategoryNode]:
        ids = self._roots if parent_id is None else self._children.get(parent_id, [])
        return sorted((self._nodes[child_id] for child_id in ids), key=_sort_key)

    def picker_levels(self, leaf_id: int | None, depth: int = 4) -> list[int | None]:
        chain = self.ancestor_chain(leaf_id) if leaf_id is not None else []
        levels: list[int | None] = list(chain[:depth])
        levels.extend([None] * (depth - len(levels)))
        return levels

    def breadcrumb(self, leaf_id: int) -> str:
        return BREADCRUMB_SEPARATOR.join(self._nodes[category_id].name for category_id in self.ancestor_chain(leaf_id))

    def subtree_union(self, root_ids: Iterable[int]) -> set[int]:
        merged: set[int] = set()
        for root_id in root_ids:
            if root_id not in merged:
                merged |= self.descendants_inclusive(root_id)
        return merged

    def with_ancestors(self, category_ids: Iterable[int]) -> set[int]:
        visible = set(category_ids)
        for category_id in list(visible):
            current = category_id
            while True:
                node = self._nodes.get(current)
                if node is None or node.parent_id is None:
                    break
                # Anything above an already-visible ancestor was added by an earlier walk.
                if node.parent_id in visible:
                    break
                visible.add(node.parent_id)
                current = node.parent_id
        return visible

    def build_forest(self, include: set[int] | None = None) -> list[CategoryMenuNode]:
        """Build sorted menu nodes for ``include`` (all categories when ``None``).

        A node whose parent is not included becomes a forest root.
        """
        selected = {category_id for category_id in self._nodes if include is None or category_id in include}

        children: dict[int, list[CategoryNode]] = defaultdict(list)
        roots: list[CategoryNode] = []
        for category_id in selected:
            node = self._nodes[category_id]
            if node.parent_id is not None and node.parent_id in selected:
                children[node.parent_id].append(node)
            else:
                roots.append(node)

        def _make(node: CategoryNode, path: frozenset[int]) -> CategoryMenuNode:
            kids = tuple(
                _make(child, path | {child.id})
                for child in sorted(children.get(node.id, ()), key=_sort_key)
                if child.id not in path
            )
            return CategoryMenuNode(id=node.id, name=node.name, children=kids)

        return [_make(root, frozenset({root.id})) for root in sorted(roots, key=_sort_key)]


def load_category_tree(db: Session) -> CategoryTree:
    rows = (
        db.query(Category.id, Category.name, Category.parent_id)
        .filter(Category.is_active.is_(True), Category.deleted_at.is_(None))
        .all()
    )
    return CategoryTree(CategoryNode(id=row.id, name=row.name, parent_id=row.parent_id) for row in rows)
