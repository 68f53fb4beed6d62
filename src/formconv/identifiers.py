"""
Identifier Assigner

Numbers the nodes of a built tree. The first child of a node gets
parent_id * 1000 + 1, each following sibling the id of the previous one
plus one. `previous` points to the node preceding each node in tree order:
the parent for a first child, the previous sibling otherwise.

Top-level nodes are numbered from parent id 0: 1, 2, 3, ...
Their children: 1001, 1002, ..., 2001, ...
"""

from typing import List

from formconv.model import Node

ID_MULTIPLIER = 1000


def assign_ids(nodes: List[Node], parent: int = 0) -> None:
    """Assign id and previous to every node of the tree, in place."""
    previous = parent
    for i, node in enumerate(nodes):
        node.previous = previous
        node.id = parent * ID_MULTIPLIER + 1 if i == 0 else previous + 1
        assign_ids(node.nodes, node.id)
        previous = node.id
