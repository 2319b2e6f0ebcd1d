"""
Node traversal for Vellum compiler passes.

A compiler pass is a ``NodeVisitor``: the traverser calls ``enter_node``
before descending into a node's children and ``leave_node`` once every
child has been visited. Whatever ``leave_node`` returns is written back
into the parent: the same node is kept, a different node replaces it, and
``None`` removes the slot.

Each visitor runs as its own complete walk, ordered by priority. Visitors
that keep per-walk state return it from ``new_context`` so that one visitor
instance can safely serve any number of traversals.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterable, Optional

from vellum.compiler.nodes import Node

if TYPE_CHECKING:
    from vellum.environment import Environment

logger = logging.getLogger(__name__)

# Highest priority a visitor can claim; such visitors run after all others.
MAX_PRIORITY = 255


class NodeVisitor(ABC):
    """
    Interface for compiler passes over a template tree.

    Priorities normally lie between -10 and 10 (0 is the default). Lower
    priorities run first.
    """

    def new_context(self) -> Any:
        """Create the state threaded through a single traversal."""
        return None

    @abstractmethod
    def enter_node(self, node: Node, env: Environment, context: Any) -> Node:
        """Called before the children of ``node`` are visited."""
        pass

    @abstractmethod
    def leave_node(self, node: Node, env: Environment, context: Any) -> Optional[Node]:
        """
        Called after the children of ``node`` are visited.

        Returns:
            The node to keep in the parent slot, or None to remove it.
        """
        pass

    @property
    def priority(self) -> int:
        return 0


class NodeTraverser:
    """
    Walks a node tree once per registered visitor.

    Example:
        traverser = NodeTraverser(env, [OptimizerNodeVisitor()])
        tree = traverser.traverse(tree)
    """

    def __init__(self, env: Environment, visitors: Iterable[NodeVisitor] = ()) -> None:
        self.env = env
        self._visitors: dict[int, list[NodeVisitor]] = {}
        for visitor in visitors:
            self.add_visitor(visitor)

    def add_visitor(self, visitor: NodeVisitor) -> None:
        self._visitors.setdefault(visitor.priority, []).append(visitor)

    @property
    def visitors(self) -> list[NodeVisitor]:
        """All visitors in the order they will run."""
        return [
            visitor
            for priority in sorted(self._visitors)
            for visitor in self._visitors[priority]
        ]

    def traverse(self, node: Node) -> Optional[Node]:
        """
        Run every visitor over the tree rooted at ``node``.

        Returns:
            The (possibly replaced) root, or None if a visitor removed it.
        """
        result: Optional[Node] = node
        for visitor in self.visitors:
            if result is None:
                break
            logger.debug("Running %s (priority %d)", type(visitor).__name__, visitor.priority)
            result = self._traverse_for_visitor(visitor, result, visitor.new_context())
        return result

    def _traverse_for_visitor(self, visitor: NodeVisitor, node: Node, context: Any) -> Optional[Node]:
        node = visitor.enter_node(node, self.env, context)

        for name, child in node.items():
            new_child = self._traverse_for_visitor(visitor, child, context)
            if new_child is None:
                node.remove_node(name)
            elif new_child is not child:
                node.set_node(name, new_child)

        return visitor.leave_node(node, self.env, context)


__all__ = [
    "MAX_PRIORITY",
    "NodeVisitor",
    "NodeTraverser",
]
