"""
Vellum Compiler Package.

This package contains the template compiler's tree-level components:
- Nodes: Mutable node definitions for the template syntax tree
- Traverser: Visitor interface and the driver that walks trees with it
- Optimizer: The final pass that rewrites trees into cheaper forms
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Union

from vellum.compiler.nodes import (
    AbstractExpression,
    AssignNameExpression,
    BlockReferenceExpression,
    BlockReferenceNode,
    BodyNode,
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
from vellum.compiler.optimizer import (
    LOOP_VARIABLE,
    OPTIMIZE_ALL,
    LoopScope,
    OptimizerMode,
    OptimizerNodeVisitor,
    validate_mode,
)
from vellum.compiler.traverser import MAX_PRIORITY, NodeTraverser, NodeVisitor

if TYPE_CHECKING:
    from vellum.environment import Environment


def optimize(
    tree: Node,
    optimizations: Union[int, OptimizerMode] = OPTIMIZE_ALL,
    env: Optional[Environment] = None,
) -> Optional[Node]:
    """
    Convenience function to run only the optimizer over a tree.

    Args:
        tree: The template tree to optimize
        optimizations: OptimizerMode bitmask, or OPTIMIZE_ALL
        env: Environment handed to the visitor callbacks

    Returns:
        The optimized tree root
    """
    if env is None:
        from vellum.environment import Environment

        env = Environment(optimizations=optimizations)
    return NodeTraverser(env, [OptimizerNodeVisitor(optimizations)]).traverse(tree)


__all__ = [
    # Nodes
    "NodeKey",
    "Node",
    "BodyNode",
    "TextNode",
    "PrintNode",
    "ForNode",
    "IncludeNode",
    "BlockReferenceNode",
    "AbstractExpression",
    "ConstantExpression",
    "NameExpression",
    "AssignNameExpression",
    "GetAttrExpression",
    "FilterExpression",
    "FunctionExpression",
    "BlockReferenceExpression",
    "ParentExpression",
    # Traversal
    "MAX_PRIORITY",
    "NodeVisitor",
    "NodeTraverser",
    # Optimizer
    "LOOP_VARIABLE",
    "OPTIMIZE_ALL",
    "OptimizerMode",
    "LoopScope",
    "OptimizerNodeVisitor",
    "validate_mode",
    # Convenience functions
    "optimize",
]
