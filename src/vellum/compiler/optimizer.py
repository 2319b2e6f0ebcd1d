"""
Template tree optimizer for Vellum.

The optimizer is the last pass to run over a parsed template before code
generation. It rewrites the tree into an equivalent form that is cheaper
to render:

- Text merging: adjacent literal text children collapse into one TextNode
- Print simplification: ``{{ "text" }}`` becomes literal text, and block
  or parent renders write their output directly
- Raw filter removal: ``|raw`` is dropped once escaping has been decided
- Loop variable elision: the ``loop`` metadata variable is only built for
  loops whose bodies may reference it

Each optimization can be switched on or off through an ``OptimizerMode``
bitmask.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntFlag
from typing import TYPE_CHECKING, Optional, Union

from vellum.compiler.nodes import (
    BlockReferenceExpression,
    BlockReferenceNode,
    ConstantExpression,
    FilterExpression,
    ForNode,
    FunctionExpression,
    GetAttrExpression,
    IncludeNode,
    NameExpression,
    Node,
    NodeKey,
    ParentExpression,
    PrintNode,
    TextNode,
)
from vellum.compiler.traverser import MAX_PRIORITY, NodeVisitor
from vellum.utils.errors import InvalidOptimizerModeError

if TYPE_CHECKING:
    from vellum.environment import Environment

logger = logging.getLogger(__name__)

# Name of the per-iteration metadata variable available inside loop bodies.
LOOP_VARIABLE = "loop"


class OptimizerMode(IntFlag):
    """Optimizations that can be enabled on the optimizer."""

    NONE = 0
    PRINT = 1
    FOR = 2
    RAW_FILTER = 4
    TEXT_NODES = 8


# Enables every optimization, including ones added in later versions.
OPTIMIZE_ALL = -1

_KNOWN_MODES = int(
    OptimizerMode.PRINT | OptimizerMode.FOR | OptimizerMode.RAW_FILTER | OptimizerMode.TEXT_NODES
)


def validate_mode(optimizations: Union[int, OptimizerMode]) -> int:
    """
    Check an optimizer bitmask.

    Returns:
        The mask as a plain integer

    Raises:
        InvalidOptimizerModeError: If the mask is not OPTIMIZE_ALL and sets
            a bit outside the known optimizations
    """
    mode = int(optimizations)
    if mode != OPTIMIZE_ALL and mode & ~_KNOWN_MODES:
        raise InvalidOptimizerModeError(optimizations)
    return mode


@dataclass
class LoopScope:
    """
    Loops enclosing the node being visited, innermost last.

    ``targets`` holds the names bound by every open loop, two per loop:
    the value target followed by the key target.
    """

    loops: list[ForNode] = field(default_factory=list)
    targets: list[str] = field(default_factory=list)

    def push(self, loop: ForNode) -> None:
        self.loops.append(loop)
        self.targets.append(loop.get_node("value_target").get_attribute("name"))
        self.targets.append(loop.get_node("key_target").get_attribute("name"))

    def pop(self) -> None:
        self.loops.pop()
        del self.targets[-2:]

    @property
    def innermost(self) -> ForNode:
        return self.loops[-1]

    def binds(self, name: str) -> bool:
        return name in self.targets

    def enable_innermost(self) -> None:
        self.innermost.set_attribute("with_loop", True)

    def enable_all(self) -> None:
        for loop in self.loops:
            loop.set_attribute("with_loop", True)

    def __bool__(self) -> bool:
        return bool(self.loops)


class OptimizerNodeVisitor(NodeVisitor):
    """
    Optimize a template tree in a single traversal.

    This visitor always runs after every other registered visitor.

    Example:
        optimizer = OptimizerNodeVisitor(OptimizerMode.PRINT | OptimizerMode.TEXT_NODES)
        tree = NodeTraverser(env, [optimizer]).traverse(tree)
    """

    def __init__(self, optimizations: Union[int, OptimizerMode] = OPTIMIZE_ALL) -> None:
        """
        Args:
            optimizations: Bitmask of OptimizerMode flags, or OPTIMIZE_ALL
        """
        self.optimizations = validate_mode(optimizations)

    @property
    def priority(self) -> int:
        return MAX_PRIORITY

    def is_enabled(self, mode: OptimizerMode) -> bool:
        return self.optimizations & int(mode) == int(mode)

    def new_context(self) -> LoopScope:
        return LoopScope()

    def enter_node(self, node: Node, env: Environment, context: LoopScope) -> Node:
        if self.is_enabled(OptimizerMode.FOR):
            self._enter_optimize_for(node, context)

        return node

    def leave_node(self, node: Node, env: Environment, context: LoopScope) -> Optional[Node]:
        if self.is_enabled(OptimizerMode.FOR):
            self._leave_optimize_for(node, context)

        if self.is_enabled(OptimizerMode.RAW_FILTER):
            node = self._optimize_raw_filter(node)

        if self.is_enabled(OptimizerMode.PRINT):
            node = self._optimize_print_node(node)

        if self.is_enabled(OptimizerMode.TEXT_NODES):
            node = self._merge_text_nodes(node)

        return node

    # -------------------------------------------------------------------------
    # Text nodes
    # -------------------------------------------------------------------------

    def _merge_text_nodes(self, node: Node) -> Node:
        """Collapse children that are all TextNodes into a single TextNode."""
        names: list[NodeKey] = []
        chunks: list[str] = []
        for name, child in node.items():
            if not isinstance(child, TextNode):
                return node
            names.append(name)
            chunks.append(child.get_attribute("data"))

        text = "".join(chunks)
        if not text:
            return node

        first = node.get_node(names[0])
        merged = TextNode(text, first.template_line)
        merged.source_context = first.source_context

        if type(node) is Node:
            logger.debug("Merged %d text nodes at line %d", len(names), first.template_line)
            return merged

        node.set_node(names[0], merged)
        for name in names[1:]:
            node.remove_node(name)
        logger.debug(
            "Merged %d text nodes inside %s at line %d",
            len(names),
            type(node).__name__,
            first.template_line,
        )
        return node

    # -------------------------------------------------------------------------
    # Print and raw filter
    # -------------------------------------------------------------------------

    def _optimize_print_node(self, node: Node) -> Node:
        """
        Simplify print nodes.

        It replaces:

          * ``{{ "text" }}`` with the literal text
          * ``{{ block("name") }}`` and ``{{ parent() }}`` with the block
            render itself, which writes its output directly
        """
        if not isinstance(node, PrintNode):
            return node

        expr = node.get_node("expr")

        if isinstance(expr, ConstantExpression) and isinstance(expr.get_attribute("value"), str):
            text = TextNode(expr.get_attribute("value"), node.template_line)
            text.source_context = node.source_context
            logger.debug("Folded constant print at line %d", node.template_line)
            return text

        if isinstance(expr, (BlockReferenceExpression, ParentExpression)):
            expr.set_attribute("output", True)
            logger.debug("Hoisted %s out of print at line %d", type(expr).__name__, node.template_line)
            return expr

        return node

    def _optimize_raw_filter(self, node: Node) -> Node:
        """Remove ``raw`` filters."""
        if isinstance(node, FilterExpression) and node.get_node("filter").get_attribute("value") == "raw":
            logger.debug("Removed raw filter at line %d", node.template_line)
            return node.get_node("node")

        return node

    # -------------------------------------------------------------------------
    # Loop variable
    # -------------------------------------------------------------------------

    def _enter_optimize_for(self, node: Node, scope: LoopScope) -> None:
        """Disable the loop variable of every loop unless its body may need it."""
        if isinstance(node, ForNode):
            node.set_attribute("with_loop", False)
            scope.push(node)
            return

        if not scope:
            return

        # the loop variable is referenced for the current loop
        if isinstance(node, NameExpression) and node.get_attribute("name") == LOOP_VARIABLE:
            node.set_attribute("always_defined", True)
            self._enable_innermost(scope, node, "loop variable")

        # loop targets are always bound inside the body
        elif isinstance(node, NameExpression) and scope.binds(node.get_attribute("name")):
            node.set_attribute("always_defined", True)

        # a block may read the loop variable through the enclosing context
        elif isinstance(node, (BlockReferenceNode, BlockReferenceExpression)):
            self._enable_innermost(scope, node, "block reference")

        # include without the "only" keyword
        elif isinstance(node, IncludeNode) and not node.get_attribute("only"):
            self._enable_all(scope, node, "include")

        # include() without with_context=false
        elif isinstance(node, FunctionExpression) and node.get_attribute("name") == "include":
            if self._passes_context(node.get_node("arguments")):
                self._enable_all(scope, node, "include()")

        # the loop variable is reached through a dynamic or parent attribute
        elif (
            isinstance(node, GetAttrExpression)
            and self._is_dynamic_or_parent(node.get_node("attribute"))
            and (
                scope.innermost.get_attribute("with_loop") is True
                or self._is_loop_variable(node.get_node("node"))
            )
        ):
            self._enable_all(scope, node, "attribute access")

    def _leave_optimize_for(self, node: Node, scope: LoopScope) -> None:
        if isinstance(node, ForNode):
            scope.pop()

    def _enable_innermost(self, scope: LoopScope, node: Node, reason: str) -> None:
        scope.enable_innermost()
        logger.debug("Loop variable enabled by %s at line %d", reason, node.template_line)

    def _enable_all(self, scope: LoopScope, node: Node, reason: str) -> None:
        scope.enable_all()
        logger.debug(
            "Loop variable enabled for %d loop(s) by %s at line %d",
            len(scope.loops),
            reason,
            node.template_line,
        )

    @staticmethod
    def _passes_context(arguments: Node) -> bool:
        if not arguments.has_node("with_context"):
            return True
        with_context = arguments.get_node("with_context")
        return not (
            isinstance(with_context, ConstantExpression)
            and with_context.get_attribute("value") is False
        )

    @staticmethod
    def _is_dynamic_or_parent(attribute: Node) -> bool:
        return (
            not isinstance(attribute, ConstantExpression)
            or attribute.get_attribute("value") == "parent"
        )

    @staticmethod
    def _is_loop_variable(node: Node) -> bool:
        return isinstance(node, NameExpression) and node.get_attribute("name") == LOOP_VARIABLE


__all__ = [
    "LOOP_VARIABLE",
    "OPTIMIZE_ALL",
    "OptimizerMode",
    "LoopScope",
    "OptimizerNodeVisitor",
    "validate_mode",
]
