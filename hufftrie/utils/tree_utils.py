from dataclasses import dataclass
from typing import Any, List, Tuple


@dataclass
class BinaryNode:
    left_child: Any = None
    right_child: Any = None
    id: Any = None

    @property
    def is_leaf_node(self):
        return (self.left_child is None) and (self.right_child is None)

    @property
    def children(self) -> list:
        return [c for c in (self.left_child, self.right_child) if c is not None]

    def get_leaves(self) -> list:
        """returns the leaf nodes, left to right"""
        if self.is_leaf_node:
            return [self]
        leaves = []
        for child in self.children:
            leaves += child.get_leaves()
        return leaves

    def get_depth(self) -> int:
        """number of edges on the longest root-to-leaf path"""
        if self.is_leaf_node:
            return 0
        return 1 + max(child.get_depth() for child in self.children)

    def _get_label(self) -> str:
        if self.is_leaf_node:
            return repr(self.id)
        return "·"  # -> center dot

    def _get_lines(self) -> Tuple[List[str], int]:
        """
        internal function to visualize the tree starting from this node.

        The children are drawn one below the other (separated by an empty line), and joined as:
           |--left_tree
        id-|
           |--right_tree

        Returns:
            lines, line number of this node
        """
        label = self._get_label()
        if self.is_leaf_node:
            return [label], 0

        lines, child_locs = [], []
        node_loc = None
        for child in self.children:
            if lines:
                # the node sits on the separator line if there are two children
                node_loc = len(lines)
                lines.append("")
            child_lines, child_loc = child._get_lines()
            child_locs.append(len(lines) + child_loc)
            lines += child_lines

        top, bottom = child_locs[0], child_locs[-1]
        if node_loc is None:
            node_loc = top

        head, pad = label + "-", " " * (len(label) + 1)
        out = []
        for i, line in enumerate(lines):
            if i in child_locs:
                branch = "|--"
            elif top < i < bottom:
                branch = "|  "
            else:
                branch = "   "
            out.append(((head if i == node_loc else pad) + branch + line).rstrip())
        return out, node_loc

    def get_tree_str(self) -> str:
        lines, _ = self._get_lines()
        return "\n".join(lines)

    def print_node(self):
        """
        Print the tree from the root node

          |--'a'
        ·-|
          |    |--'b'
          |--·-|
               |--'c'
        """
        print()  # add empty line to make sure we start on newline
        print(self.get_tree_str())


def test_print_node():
    tree = BinaryNode(
        left_child=BinaryNode(id="a"),
        right_child=BinaryNode(left_child=BinaryNode(id="b"), right_child=BinaryNode(id="c")),
    )
    expected = "\n".join(
        [
            "  |--'a'",
            "·-|",
            "  |    |--'b'",
            "  |--·-|",
            "       |--'c'",
        ]
    )
    assert tree.get_tree_str() == expected
    assert tree.get_depth() == 2
    assert [leaf.id for leaf in tree.get_leaves()] == ["a", "b", "c"]


def test_single_leaf():
    leaf = BinaryNode(id="x")
    assert leaf.is_leaf_node
    assert leaf.get_tree_str() == "'x'"
    assert leaf.get_depth() == 0
