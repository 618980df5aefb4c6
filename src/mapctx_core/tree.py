"""Node arena holding the group/context hierarchy.

Groups and contexts live in one dict keyed by id. Parent and child links are
ids, so the hierarchy is an index rather than a graph of references, and
reparenting is a matter of rewriting ``items``/``parent`` fields.

A node is *attached* when it is reachable from the root. ``delete_item``
detaches a node without removing it (or its descendants) from the arena;
see ``mutations.prune_orphans``.
"""

from typing import Dict, Iterator, List, Optional, Set, Union

from .models import Context, Group

TreeNode = Union[Group, Context]


class NodeArena:
    """Id-keyed storage and traversal for the group tree."""

    def __init__(self, root: Group, nodes: Optional[Dict[int, TreeNode]] = None):
        self.root_id = root.id
        self.nodes: Dict[int, TreeNode] = dict(nodes or {})
        self.nodes[root.id] = root

    @property
    def root(self) -> Group:
        return self.nodes[self.root_id]  # type: ignore[return-value]

    def add(self, node: TreeNode) -> None:
        self.nodes[node.id] = node

    def get(self, node_id: int) -> Optional[TreeNode]:
        """Arena lookup, including detached nodes."""
        return self.nodes.get(node_id)

    def get_group(self, node_id: int) -> Optional[Group]:
        node = self.nodes.get(node_id)
        return node if isinstance(node, Group) else None

    def get_context(self, node_id: int) -> Optional[Context]:
        node = self.nodes.get(node_id)
        return node if isinstance(node, Context) else None

    def walk(self, start_id: Optional[int] = None) -> Iterator[TreeNode]:
        """Depth-first pre-order walk in insertion order, starting node included."""
        start = self.nodes.get(self.root_id if start_id is None else start_id)
        if start is None:
            return
        stack: List[TreeNode] = [start]
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Group):
                children = [self.nodes[i] for i in node.items if i in self.nodes]
                stack.extend(reversed(children))

    def find_by_id(self, node_id: int) -> Optional[TreeNode]:
        """First attached group or context with ``node_id`` (depth-first from the root)."""
        for node in self.walk():
            if node.id == node_id:
                return node
        return None

    def parent_of(self, node_id: int) -> Optional[Group]:
        node = self.nodes.get(node_id)
        if node is None or node.parent is None:
            return None
        return self.get_group(node.parent)

    def children(self, group_id: int) -> List[TreeNode]:
        group = self.get_group(group_id)
        if group is None:
            return []
        return [self.nodes[i] for i in group.items if i in self.nodes]

    def ancestors(self, node_id: int) -> List[Group]:
        """Parents from the immediate one up to the root."""
        result: List[Group] = []
        seen: Set[int] = {node_id}
        parent = self.parent_of(node_id)
        while parent is not None and parent.id not in seen:
            result.append(parent)
            seen.add(parent.id)
            parent = self.parent_of(parent.id)
        return result

    def is_descendant(self, node_id: int, ancestor_id: int) -> bool:
        return any(group.id == ancestor_id for group in self.ancestors(node_id))

    def attached_ids(self) -> Set[int]:
        return {node.id for node in self.walk()}

    def is_attached(self, node_id: int) -> bool:
        return node_id in self.attached_ids()

    def detached_ids(self) -> Set[int]:
        return set(self.nodes) - self.attached_ids()

    def contexts(self) -> List[Context]:
        """Attached contexts in tree order."""
        return [node for node in self.walk() if isinstance(node, Context)]

    def next_id(self) -> int:
        """Fresh id in the shared group/context identity space."""
        return max(self.nodes) + 1 if self.nodes else 1
