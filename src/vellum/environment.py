"""
Compilation environment for Vellum templates.

The environment holds the compiler options and the node visitors that run
over every parsed template. The optimizer is always registered; which of
its optimizations are active is controlled by the ``optimizations`` option.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional

from vellum.compiler.nodes import Node
from vellum.compiler.optimizer import OPTIMIZE_ALL, OptimizerNodeVisitor
from vellum.compiler.traverser import NodeTraverser, NodeVisitor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EnvironmentOptions:
    """
    Options controlling template compilation.

    Attributes:
        optimizations: OptimizerMode bitmask, or OPTIMIZE_ALL
        debug: Log every compiler rewrite at DEBUG level
    """

    optimizations: int = OPTIMIZE_ALL
    debug: bool = False


class Environment:
    """
    Holds compiler options and the registered node visitors.

    Example:
        env = Environment(optimizations=OptimizerMode.FOR | OptimizerMode.PRINT)
        tree = env.traverse(tree)

    Raises:
        InvalidOptimizerModeError: If ``optimizations`` is not a valid mode
    """

    def __init__(self, options: Optional[EnvironmentOptions] = None, **overrides: Any) -> None:
        options = options or EnvironmentOptions()
        if overrides:
            options = replace(options, **overrides)
        self.options = options

        if options.debug:
            logging.getLogger("vellum").setLevel(logging.DEBUG)

        self._visitors: list[NodeVisitor] = [OptimizerNodeVisitor(options.optimizations)]

    @property
    def optimizations(self) -> int:
        return self.options.optimizations

    @property
    def node_visitors(self) -> list[NodeVisitor]:
        return list(self._visitors)

    def add_node_visitor(self, visitor: NodeVisitor) -> None:
        self._visitors.append(visitor)

    def traverse(self, tree: Node) -> Optional[Node]:
        """
        Run every registered visitor over a parsed template tree.

        Args:
            tree: Root of the tree produced by the parser

        Returns:
            The rewritten root, or None if a visitor removed it
        """
        traverser = NodeTraverser(self, self._visitors)
        logger.debug(
            "Traversing %s with %d visitor(s)", type(tree).__name__, len(self._visitors)
        )
        return traverser.traverse(tree)


__all__ = [
    "EnvironmentOptions",
    "Environment",
]
